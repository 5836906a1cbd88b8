"""
Worklist aggregation for the caregiver's day.

Collects assignments, room/bed locations, vital-sign records and
assessment records from a CareDataProvider and synthesizes the
per-resident task pairs. Residents are processed concurrently, and the
three lookups of a resident run concurrently with each other.

Only the assignment fetch is fatal. Every per-resident failure or
timeout degrades that resident's data (unresolved location, pending
status) and is logged, so the result always holds exactly two tasks per
assignment.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, List, Optional, Tuple

from carelist.core.config import Config
from carelist.core.errors import (
    AggregationError,
    NotAuthenticatedError,
    ProviderError,
    WorklistResult,
)
from carelist.core.models import Assignment, ResidentLocation, Task, ensure_aware
from carelist.providers.base import CareDataProvider
from carelist.worklist.day_boundary import TimeZoneLike, has_record_today
from carelist.worklist.synthesizer import TaskSynthesizer

logger = logging.getLogger(__name__)

ASSIGNMENTS_SOURCE = "assignments"
LOCATION_SOURCE = "location"
VITALS_SOURCE = "vital_signs"
ASSESSMENTS_SOURCE = "assessments"


class WorklistAggregator:
    """
    Builds the full task collection for the current caregiver.

    The order of the returned tasks is unspecified; use WorklistView to
    get a display order.
    """

    def __init__(
        self,
        provider: CareDataProvider,
        config: Optional[Config] = None,
        tz: Optional[TimeZoneLike] = None,
        fetch_timeout: Optional[float] = None,
    ):
        """
        Initialize aggregator.

        Args:
            provider: Source of assignments and activity records
            config: Configuration (creates default if not provided)
            tz: Facility timezone, overrides the configured one
            fetch_timeout: Seconds allowed per remote call, overrides config
        """
        self.provider = provider
        self.config = config if config else Config()
        self.tz = tz if tz is not None else self.config.facility_timezone
        self.fetch_timeout = (
            fetch_timeout if fetch_timeout is not None else self.config.fetch_timeout
        )
        self.synthesizer = TaskSynthesizer(self.tz)

    async def _with_timeout(self, awaitable: Awaitable[Any]) -> Any:
        if self.fetch_timeout and self.fetch_timeout > 0:
            return await asyncio.wait_for(awaitable, timeout=self.fetch_timeout)
        return await awaitable

    async def _best_effort(
        self,
        source: str,
        resident_ref: str,
        awaitable: Awaitable[Any],
    ) -> Tuple[bool, Any]:
        """
        Await a per-resident lookup, absorbing any failure.

        Returns:
            (ok, value) where value is None when ok is False
        """
        try:
            return True, await self._with_timeout(awaitable)
        except asyncio.TimeoutError:
            logger.warning(
                "%s lookup timed out after %ss for resident %s",
                source, self.fetch_timeout, resident_ref,
            )
        except ProviderError as e:
            logger.warning("%s lookup failed for resident %s: %s", source, resident_ref, e)
        except Exception:
            logger.warning(
                "%s lookup raised unexpectedly for resident %s",
                source, resident_ref, exc_info=True,
            )
        return False, None

    async def _resolve_location(self, resident_ref: str) -> ResidentLocation:
        ok, location = await self._best_effort(
            LOCATION_SOURCE,
            resident_ref,
            self.provider.resolve_resident_location(resident_ref),
        )
        if not ok or location is None:
            return ResidentLocation.unresolved()
        return location

    async def _vitals_today(self, resident_ref: str, now: datetime) -> bool:
        ok, records = await self._best_effort(
            VITALS_SOURCE,
            resident_ref,
            self.provider.get_vital_sign_records(resident_ref),
        )
        return ok and has_record_today(records or [], now, self.tz)

    async def _assessment_today(self, resident_ref: str, now: datetime) -> bool:
        ok, records = await self._best_effort(
            ASSESSMENTS_SOURCE,
            resident_ref,
            self.provider.get_assessment_records(resident_ref),
        )
        return ok and has_record_today(records or [], now, self.tz)

    async def build_resident_tasks(
        self,
        assignment: Assignment,
        now: datetime,
    ) -> Tuple[Task, Task]:
        """Resolve one resident's data concurrently and synthesize its tasks."""
        ref = assignment.resident_ref
        location, vitals_done, assessment_done = await asyncio.gather(
            self._resolve_location(ref),
            self._vitals_today(ref, now),
            self._assessment_today(ref, now),
        )
        return self.synthesizer.synthesize(
            assignment, location, vitals_done, assessment_done, now
        )

    async def fetch_assignments(self) -> List[Assignment]:
        """
        Fetch assignments; failures here are fatal to the build.

        Raises:
            NotAuthenticatedError: No valid session
            ProviderError: Assignment source unavailable
        """
        try:
            return list(await self._with_timeout(self.provider.get_my_assignments()))
        except asyncio.TimeoutError as e:
            raise ProviderError(ASSIGNMENTS_SOURCE, "request timed out") from e

    async def build_worklist(self, now: Optional[datetime] = None) -> WorklistResult:
        """
        Build the worklist for the current caregiver.

        Main entry point for collecting all worklist data.

        Args:
            now: Reference instant for "today" (defaults to current UTC time)

        Returns:
            WorklistResult holding 2 tasks per assignment, or a fatal error
        """
        now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)

        try:
            assignments = await self.fetch_assignments()
        except NotAuthenticatedError as e:
            logger.error("Worklist build rejected: %s", e)
            return WorklistResult.failure(AggregationError.unauthenticated(str(e)), now)
        except ProviderError as e:
            logger.error("Assignment source unavailable: %s", e)
            return WorklistResult.failure(
                AggregationError.source_unavailable(ASSIGNMENTS_SOURCE, str(e)), now
            )

        pairs = await asyncio.gather(
            *(self.build_resident_tasks(a, now) for a in assignments)
        )
        tasks = [task for pair in pairs for task in pair]

        logger.info(
            "Built worklist: %d tasks for %d assignments", len(tasks), len(assignments)
        )
        return WorklistResult.ok(tasks, now)


class WorklistRefresher:
    """
    Sequences repeated builds so the newest refresh wins.

    Each refresh() takes the next sequence number. A finished build is
    published as `latest` only if no newer refresh has already been
    published; otherwise it is returned with stale=True and `latest` is
    left alone.
    """

    def __init__(self, aggregator: WorklistAggregator):
        self.aggregator = aggregator
        self.latest: Optional[WorklistResult] = None
        self._sequence = 0
        self._published_sequence = 0
        self._inflight: Optional[asyncio.Future] = None

    @property
    def sequence(self) -> int:
        return self._sequence

    async def refresh(
        self,
        now: Optional[datetime] = None,
        cancel_previous: bool = False,
    ) -> WorklistResult:
        """
        Start a new build.

        Args:
            now: Reference instant passed to the aggregator
            cancel_previous: Cancel the build of the previous refresh if it
                is still running; its caller receives CancelledError

        Returns:
            The build result, tagged with its sequence number
        """
        self._sequence += 1
        sequence = self._sequence

        previous = self._inflight
        if cancel_previous and previous is not None and not previous.done():
            logger.info("Cancelling superseded worklist refresh")
            previous.cancel()

        build = asyncio.ensure_future(self.aggregator.build_worklist(now))
        self._inflight = build
        try:
            result = await build
        finally:
            if self._inflight is build:
                self._inflight = None

        result.sequence = sequence
        if sequence > self._published_sequence:
            self._published_sequence = sequence
            self.latest = result
        else:
            result.stale = True
            logger.info(
                "Discarding stale worklist refresh #%d (latest is #%d)",
                sequence, self._published_sequence,
            )
        return result
