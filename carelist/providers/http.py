"""REST adapter for the care facility backend."""

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from carelist.core.errors import NotAuthenticatedError, ProviderError
from carelist.core.models import (
    AssessmentRecord,
    Assignment,
    ResidentLocation,
    VitalSignRecord,
)
from carelist.providers.base import CareDataProvider

logger = logging.getLogger(__name__)

ASSIGNMENTS_PATH = "/staff-assignments/my-assignments"
VITAL_SIGNS_PATH = "/vital-signs/resident/{resident_ref}"
ASSESSMENTS_PATH = "/care-notes/resident/{resident_ref}"

# Deployed backends expose the bed-assignment lookup under different routes
BED_ASSIGNMENT_PATHS = (
    ("/bed-assignments/by-resident/{resident_ref}", None),
    ("/bed-assignments/resident/{resident_ref}", None),
    ("/bed-assignments", "resident_id"),
    ("/bed-assignments", "residentId"),
)


def _unwrap_list(payload: Any) -> List[Any]:
    """Accept either a bare list or a ``{"data": [...]}`` envelope."""
    if isinstance(payload, dict) and "data" in payload:
        payload = payload["data"]
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    return [payload]


def _dig(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def location_from_bed_assignment(payload: Any) -> ResidentLocation:
    """
    Extract room and bed numbers from a bed-assignment payload.

    The payload may be an object or a list (first entry is used); room and
    bed may be nested under ``bed_id.room_id`` or given flat.
    """
    entries = _unwrap_list(payload)
    if not entries or not isinstance(entries[0], dict):
        return ResidentLocation.unresolved()
    entry = entries[0]

    room = _dig(entry, "bed_id", "room_id", "room_number") or entry.get("room_number")
    bed = _dig(entry, "bed_id", "bed_number") or entry.get("bed_number")
    return ResidentLocation(
        room_number=str(room) if room not in (None, "") else None,
        bed_number=str(bed) if bed not in (None, "") else None,
    )


class HttpCareDataProvider(CareDataProvider):
    """Care data provider backed by the facility REST API."""

    def __init__(
        self,
        api_base: str,
        access_token: Optional[str],
        *,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._access_token = access_token
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _headers(self, source: str) -> Dict[str, str]:
        if not self._access_token:
            raise NotAuthenticatedError(source)
        return {"Authorization": f"Bearer {self._access_token}"}

    def _url(self, path: str) -> str:
        return f"{self._api_base}{path}"

    async def _get_json(self, source: str, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        headers = self._headers(source)
        try:
            response = await self._client.get(self._url(path), params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderError(source, f"request failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise NotAuthenticatedError(source, "session rejected", response.status_code)
        if response.status_code >= 400:
            raise ProviderError(
                source, f"HTTP {response.status_code} for {path}", response.status_code
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(source, "response is not valid JSON") from exc

    def _parse_records(
        self,
        source: str,
        payload: Any,
        resident_ref: str,
        factory: Callable[..., Any],
    ) -> List[Any]:
        records = []
        for item in _unwrap_list(payload):
            if not isinstance(item, dict):
                logger.debug("Skipping malformed %s entry for %s", source, resident_ref)
                continue
            records.append(factory(item, resident_ref=resident_ref))
        return records

    # ------------------------------------------------------------------
    # CareDataProvider
    # ------------------------------------------------------------------
    async def get_my_assignments(self) -> List[Assignment]:
        payload = await self._get_json("assignments", ASSIGNMENTS_PATH)
        if not isinstance(payload, (list, dict)):
            raise ProviderError("assignments", "unexpected assignments payload")

        assignments = []
        for item in _unwrap_list(payload):
            if not isinstance(item, dict):
                logger.warning("Skipping malformed assignment entry: %r", item)
                continue
            try:
                assignments.append(Assignment.from_dict(item))
            except ValueError as exc:
                logger.warning("Skipping assignment %s: %s", item.get("_id", item.get("id")), exc)
        return assignments

    async def resolve_resident_location(self, resident_ref: str) -> ResidentLocation:
        last_error: Optional[ProviderError] = None
        for path, query_key in BED_ASSIGNMENT_PATHS:
            params = {query_key: resident_ref} if query_key else None
            try:
                payload = await self._get_json(
                    "location", path.format(resident_ref=resident_ref), params
                )
            except NotAuthenticatedError:
                raise
            except ProviderError as exc:
                logger.debug("Bed assignment route %s failed: %s", path, exc)
                last_error = exc
                continue
            return location_from_bed_assignment(payload)

        raise last_error or ProviderError("location", "no bed assignment route available")

    async def get_vital_sign_records(self, resident_ref: str) -> List[VitalSignRecord]:
        payload = await self._get_json(
            "vital_signs", VITAL_SIGNS_PATH.format(resident_ref=resident_ref)
        )
        return self._parse_records("vital_signs", payload, resident_ref, VitalSignRecord.from_dict)

    async def get_assessment_records(self, resident_ref: str) -> List[AssessmentRecord]:
        payload = await self._get_json(
            "assessments", ASSESSMENTS_PATH.format(resident_ref=resident_ref)
        )
        return self._parse_records("assessments", payload, resident_ref, AssessmentRecord.from_dict)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpCareDataProvider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
