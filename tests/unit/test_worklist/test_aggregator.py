"""
Unit tests for the aggregator module.
Tests WorklistAggregator completeness, degradation and fatal errors, and
WorklistRefresher sequencing.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from carelist.core.errors import AggregationErrorKind, ProviderError
from carelist.core.models import (
    ActivityKind,
    AssessmentRecord,
    Assignment,
    ResidentLocation,
    StatusFilter,
    TaskStatus,
    VitalSignRecord,
    WorklistQuery,
)
from carelist.providers.memory import (
    ASSESSMENTS,
    ASSIGNMENTS,
    LOCATION,
    VITAL_SIGNS,
    InMemoryCareDataProvider,
)
from carelist.worklist.aggregator import WorklistAggregator, WorklistRefresher
from carelist.worklist.stats import summarize
from carelist.worklist.view import apply

ICT = timezone(timedelta(hours=7))
NOW = datetime(2025, 1, 15, 10, 0, tzinfo=ICT)


def make_assignments(n):
    return [Assignment(resident_ref=f"r{i}", resident_name=f"Resident {i}") for i in range(n)]


class ConcurrencyTracker(InMemoryCareDataProvider):
    """Provider that records the peak number of in-flight lookups."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.active = 0
        self.peak = 0

    async def _enter(self, source, resident_ref=None):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.05)
            await super()._enter(source, resident_ref)
        finally:
            self.active -= 1


class SlowFirstProvider(InMemoryCareDataProvider):
    """Provider whose first assignment fetch is slow and later ones fast."""

    def __init__(self, *args, first_delay=0.2, **kwargs):
        super().__init__(*args, **kwargs)
        self.assignment_calls = 0
        self.first_delay = first_delay

    async def get_my_assignments(self):
        self.assignment_calls += 1
        if self.assignment_calls == 1:
            await asyncio.sleep(self.first_delay)
        return await super().get_my_assignments()


@pytest.fixture
def provider():
    return InMemoryCareDataProvider(assignments=make_assignments(3))


@pytest.fixture
def aggregator(provider, config):
    return WorklistAggregator(provider, config, tz="+07:00", fetch_timeout=1.0)


class TestWorklistAggregatorInit:
    """Tests for WorklistAggregator initialization."""

    def test_uses_configured_timezone_and_timeout(self, provider, config):
        agg = WorklistAggregator(provider, config)
        assert agg.tz == "Asia/Ho_Chi_Minh"
        assert agg.fetch_timeout == 10.0
        assert agg.config is config

    def test_overrides_take_precedence(self, provider, config):
        agg = WorklistAggregator(provider, config, tz="+07:00", fetch_timeout=2.5)
        assert agg.tz == "+07:00"
        assert agg.fetch_timeout == 2.5


class TestCompleteness:
    """Exactly two tasks per assignment, whatever fails downstream."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 1, 5])
    async def test_two_tasks_per_assignment(self, config, count):
        provider = InMemoryCareDataProvider(assignments=make_assignments(count))
        agg = WorklistAggregator(provider, config, tz="+07:00")

        result = await agg.build_worklist(NOW)

        assert result.success is True
        assert len(result.tasks) == 2 * count

    @pytest.mark.asyncio
    async def test_every_sub_fetch_failing_still_yields_all_tasks(self, provider, aggregator):
        provider.fail(LOCATION)
        provider.fail(VITAL_SIGNS)
        provider.fail(ASSESSMENTS)

        result = await aggregator.build_worklist(NOW)

        assert result.success is True
        assert len(result.tasks) == 6
        assert all(t.status is TaskStatus.PENDING for t in result.tasks)
        assert all(t.location.label == "—" for t in result.tasks)

    @pytest.mark.asyncio
    async def test_one_task_of_each_kind_per_resident(self, aggregator):
        result = await aggregator.build_worklist(NOW)

        pairs = {(t.resident_ref, t.kind) for t in result.tasks}
        assert len(pairs) == len(result.tasks)
        for ref in ("r0", "r1", "r2"):
            assert (ref, ActivityKind.VITAL_SIGNS) in pairs
            assert (ref, ActivityKind.ASSESSMENT) in pairs

    @pytest.mark.asyncio
    async def test_identical_upstream_gives_identical_ids(self, aggregator):
        first = await aggregator.build_worklist(NOW)
        second = await aggregator.build_worklist(NOW + timedelta(minutes=5))

        assert {t.id for t in first.tasks} == {t.id for t in second.tasks}


class TestDegradation:
    """Per-resident failures degrade to pending/unresolved."""

    @pytest.mark.asyncio
    async def test_vitals_failure_leaves_pending_task(self, provider, aggregator):
        provider.vital_signs["r1"] = [VitalSignRecord("r1", NOW - timedelta(hours=1))]
        provider.fail(VITAL_SIGNS, "r1")

        result = await aggregator.build_worklist(NOW)

        vitals = [t for t in result.tasks
                  if t.resident_ref == "r1" and t.kind is ActivityKind.VITAL_SIGNS]
        assert len(vitals) == 1
        assert vitals[0].status is TaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_failure_is_isolated_to_one_resident(self, provider, aggregator):
        for ref in ("r0", "r1"):
            provider.assessments[ref] = [AssessmentRecord(ref, NOW - timedelta(hours=2))]
        provider.fail(ASSESSMENTS, "r1")

        result = await aggregator.build_worklist(NOW)
        by_id = {t.id: t for t in result.tasks}

        assert by_id["assessment:r0"].status is TaskStatus.COMPLETED
        assert by_id["assessment:r1"].status is TaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_location_failure_gives_unresolved_label(self, provider, aggregator):
        provider.locations["r0"] = ResidentLocation("101", "1")
        provider.locations["r2"] = ResidentLocation("103", None)
        provider.fail(LOCATION, "r0")

        result = await aggregator.build_worklist(NOW)
        by_id = {t.id: t for t in result.tasks}

        assert by_id["vital_signs:r0"].location.label == "—"
        assert by_id["vital_signs:r2"].location.label == "Room 103"

    @pytest.mark.asyncio
    async def test_timed_out_sub_fetch_degrades(self, provider, config):
        provider.vital_signs["r0"] = [VitalSignRecord("r0", NOW)]
        provider.delay(VITAL_SIGNS, 5.0, "r0")
        agg = WorklistAggregator(provider, config, tz="+07:00", fetch_timeout=0.05)

        result = await asyncio.wait_for(agg.build_worklist(NOW), timeout=2.0)

        assert result.success is True
        assert len(result.tasks) == 6
        assert {t.id: t for t in result.tasks}["vital_signs:r0"].status is TaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_unexpected_exception_degrades(self, provider, aggregator):
        provider.fail(ASSESSMENTS, "r2", RuntimeError("boom"))

        result = await aggregator.build_worklist(NOW)

        assert len(result.tasks) == 6
        assert {t.id: t for t in result.tasks}["assessment:r2"].status is TaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_degradation_is_logged(self, provider, aggregator, caplog):
        provider.fail(VITAL_SIGNS, "r1")

        with caplog.at_level("WARNING", logger="carelist.worklist.aggregator"):
            await aggregator.build_worklist(NOW)

        assert any("r1" in rec.getMessage() and "vital_signs" in rec.getMessage()
                   for rec in caplog.records)

    @pytest.mark.asyncio
    async def test_records_from_other_days_do_not_complete(self, provider, aggregator):
        provider.vital_signs["r0"] = [
            VitalSignRecord("r0", datetime(2025, 1, 14, 23, 59, tzinfo=ICT)),
            VitalSignRecord("r0", None),
        ]

        result = await aggregator.build_worklist(NOW)

        assert {t.id: t for t in result.tasks}["vital_signs:r0"].status is TaskStatus.PENDING


class TestFatalErrors:
    """Only the assignment fetch can fail the build."""

    @pytest.mark.asyncio
    async def test_unauthenticated(self, config):
        provider = InMemoryCareDataProvider(make_assignments(2), authenticated=False)
        agg = WorklistAggregator(provider, config, tz="+07:00")

        result = await agg.build_worklist(NOW)

        assert result.success is False
        assert result.tasks == []
        assert result.error.kind is AggregationErrorKind.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_assignment_source_unavailable(self, provider, aggregator):
        provider.fail(ASSIGNMENTS)

        result = await aggregator.build_worklist(NOW)

        assert result.success is False
        assert result.error.kind is AggregationErrorKind.SOURCE_UNAVAILABLE
        assert result.error.source == "assignments"
        assert provider.calls == [(ASSIGNMENTS, None)]

    @pytest.mark.asyncio
    async def test_assignment_timeout_is_source_unavailable(self, provider, config):
        provider.delay(ASSIGNMENTS, 5.0)
        agg = WorklistAggregator(provider, config, tz="+07:00", fetch_timeout=0.05)

        result = await agg.build_worklist(NOW)

        assert result.success is False
        assert result.error.source == "assignments"

    @pytest.mark.asyncio
    async def test_failure_result_serializes(self, provider, aggregator):
        provider.fail(ASSIGNMENTS, error=ProviderError("assignments", "HTTP 500"))

        result = await aggregator.build_worklist(NOW)
        data = result.to_dict()

        assert data["success"] is False
        assert data["error"]["kind"] == "source_unavailable"
        assert data["tasks"] == []


class TestConcurrency:
    """Residents and their lookups are fetched concurrently."""

    @pytest.mark.asyncio
    async def test_all_lookups_in_flight_together(self, config):
        provider = ConcurrencyTracker(assignments=make_assignments(4))
        agg = WorklistAggregator(provider, config, tz="+07:00")

        result = await agg.build_worklist(NOW)

        assert len(result.tasks) == 8
        # 4 residents x (location, vitals, assessments)
        assert provider.peak == 12


class TestEndToEnd:
    """Full scenario through the in-memory provider."""

    @pytest.mark.asyncio
    async def test_vitals_recorded_this_morning(self, config):
        provider = InMemoryCareDataProvider(
            assignments=[Assignment(resident_ref="a", resident_name="Nguyễn Văn A")],
            vital_signs={"a": [VitalSignRecord("a", datetime(2025, 1, 15, 9, 0, tzinfo=ICT))]},
        )
        agg = WorklistAggregator(provider, config, tz="+07:00")

        result = await agg.build_worklist(NOW)

        statuses = {t.kind: t.status for t in result.tasks if t.resident_name == "Nguyễn Văn A"}
        assert statuses == {
            ActivityKind.VITAL_SIGNS: TaskStatus.COMPLETED,
            ActivityKind.ASSESSMENT: TaskStatus.PENDING,
        }

    @pytest.mark.asyncio
    async def test_generated_at_is_reference_instant(self, aggregator):
        result = await aggregator.build_worklist(NOW)
        assert result.generated_at == NOW

    @pytest.mark.asyncio
    async def test_naive_reference_instant_is_utc(self, aggregator):
        naive = datetime(2025, 1, 15, 3, 0)

        result = await aggregator.build_worklist(naive)

        assert result.generated_at == NOW
        assert result.generated_at.tzinfo is not None
        assert summarize(result.tasks, result.generated_at).overdue == 0
        assert summarize(result.tasks, naive).pending == 6
        overdue = WorklistQuery(status=StatusFilter.OVERDUE)
        assert apply(result.tasks, overdue, datetime(2025, 1, 16, 3, 0))


class TestWorklistRefresher:
    """Tests for latest-refresh-wins sequencing."""

    @pytest.mark.asyncio
    async def test_sequential_refreshes_publish_in_order(self, aggregator):
        refresher = WorklistRefresher(aggregator)

        first = await refresher.refresh(NOW)
        second = await refresher.refresh(NOW)

        assert (first.sequence, second.sequence) == (1, 2)
        assert not first.stale and not second.stale
        assert refresher.latest is second

    @pytest.mark.asyncio
    async def test_slow_earlier_refresh_is_stale(self, config):
        provider = SlowFirstProvider(assignments=make_assignments(2), first_delay=0.2)
        refresher = WorklistRefresher(WorklistAggregator(provider, config, tz="+07:00"))

        slow = asyncio.ensure_future(refresher.refresh(NOW))
        await asyncio.sleep(0.01)
        fast = await refresher.refresh(NOW)
        slow_result = await slow

        assert fast.stale is False
        assert slow_result.stale is True
        assert refresher.latest is fast
        assert slow_result.sequence < fast.sequence

    @pytest.mark.asyncio
    async def test_cancel_previous(self, config):
        provider = SlowFirstProvider(assignments=make_assignments(1), first_delay=5.0)
        refresher = WorklistRefresher(WorklistAggregator(provider, config, tz="+07:00"))

        slow = asyncio.ensure_future(refresher.refresh(NOW))
        await asyncio.sleep(0.01)
        fresh = await refresher.refresh(NOW, cancel_previous=True)

        with pytest.raises(asyncio.CancelledError):
            await slow
        assert fresh.success is True
        assert refresher.latest is fresh

    @pytest.mark.asyncio
    async def test_failed_refresh_is_published(self, provider, aggregator):
        refresher = WorklistRefresher(aggregator)
        provider.fail(ASSIGNMENTS)

        result = await refresher.refresh(NOW)

        assert result.success is False
        assert refresher.latest is result
        assert refresher.sequence == 1
