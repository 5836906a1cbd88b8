"""
In-memory care data provider.

Serves assignments, locations and activity records from plain
dictionaries or a JSON fixture file. Failures and delays can be injected
per (source, resident) to exercise degraded builds offline.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from carelist.core.errors import NotAuthenticatedError, ProviderError
from carelist.core.models import (
    AssessmentRecord,
    Assignment,
    ResidentLocation,
    VitalSignRecord,
)
from carelist.providers.base import CareDataProvider

ASSIGNMENTS = "assignments"
LOCATION = "location"
VITAL_SIGNS = "vital_signs"
ASSESSMENTS = "assessments"


class InMemoryCareDataProvider(CareDataProvider):
    """
    CareDataProvider over in-process data.

    Attributes:
        calls: (source, resident_ref) log of every call, in call order
    """

    def __init__(
        self,
        assignments: Optional[Iterable[Assignment]] = None,
        locations: Optional[Dict[str, ResidentLocation]] = None,
        vital_signs: Optional[Dict[str, List[VitalSignRecord]]] = None,
        assessments: Optional[Dict[str, List[AssessmentRecord]]] = None,
        authenticated: bool = True,
    ):
        self.assignments = list(assignments or [])
        self.locations = dict(locations or {})
        self.vital_signs = dict(vital_signs or {})
        self.assessments = dict(assessments or {})
        self.authenticated = authenticated
        self.calls: List[Tuple[str, Optional[str]]] = []
        self._failures: Dict[Tuple[str, Optional[str]], BaseException] = {}
        self._delays: Dict[Tuple[str, Optional[str]], float] = {}

    @classmethod
    def from_fixture(cls, path: Path) -> 'InMemoryCareDataProvider':
        """
        Load a provider from a JSON fixture.

        Expected shape::

            {
              "assignments": [{"resident_id": {"_id": "r1", "full_name": "..."}}],
              "locations": {"r1": {"room_number": "101", "bed_number": "A"}},
              "vital_signs": {"r1": [{"date_time": "2024-05-01T09:00:00+07:00"}]},
              "assessments": {"r1": [{"date": "..."}]}
            }
        """
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        locations = {
            ref: ResidentLocation(
                room_number=_str_or_none(loc.get("room_number")),
                bed_number=_str_or_none(loc.get("bed_number")),
            )
            for ref, loc in (data.get("locations") or {}).items()
        }
        return cls(
            assignments=[Assignment.from_dict(a) for a in data.get("assignments", [])],
            locations=locations,
            vital_signs={
                ref: [VitalSignRecord.from_dict(r, resident_ref=ref) for r in records]
                for ref, records in (data.get("vital_signs") or {}).items()
            },
            assessments={
                ref: [AssessmentRecord.from_dict(r, resident_ref=ref) for r in records]
                for ref, records in (data.get("assessments") or {}).items()
            },
        )

    def fail(self, source: str, resident_ref: Optional[str] = None,
             error: Optional[BaseException] = None) -> None:
        """Make calls to source (for one resident, or all when None) raise."""
        self._failures[(source, resident_ref)] = error or ProviderError(source, "injected failure")

    def delay(self, source: str, seconds: float, resident_ref: Optional[str] = None) -> None:
        """Make calls to source sleep before answering."""
        self._delays[(source, resident_ref)] = seconds

    async def _enter(self, source: str, resident_ref: Optional[str] = None) -> None:
        self.calls.append((source, resident_ref))
        delay = self._delays.get((source, resident_ref), self._delays.get((source, None)))
        if delay:
            await asyncio.sleep(delay)
        error = self._failures.get((source, resident_ref), self._failures.get((source, None)))
        if error is not None:
            raise error

    async def get_my_assignments(self) -> List[Assignment]:
        if not self.authenticated:
            raise NotAuthenticatedError(ASSIGNMENTS)
        await self._enter(ASSIGNMENTS)
        return list(self.assignments)

    async def resolve_resident_location(self, resident_ref: str) -> ResidentLocation:
        await self._enter(LOCATION, resident_ref)
        return self.locations.get(resident_ref, ResidentLocation.unresolved())

    async def get_vital_sign_records(self, resident_ref: str) -> List[VitalSignRecord]:
        await self._enter(VITAL_SIGNS, resident_ref)
        return list(self.vital_signs.get(resident_ref, []))

    async def get_assessment_records(self, resident_ref: str) -> List[AssessmentRecord]:
        await self._enter(ASSESSMENTS, resident_ref)
        return list(self.assessments.get(resident_ref, []))


def _str_or_none(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    return str(value)
