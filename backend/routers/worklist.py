"""
Worklist API endpoints.

Builds the caregiver's daily worklist with the WorklistAggregator and
projects it through the WorklistView.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.dependencies import get_config, get_worklist_aggregator, get_worklist_view
from backend.schemas import ErrorResponse, TaskResponse, WorklistResponse, WorklistStatsResponse
from carelist.core.config import Config
from carelist.core.errors import AggregationErrorKind, WorklistResult
from carelist.core.models import SortKey, StatusFilter, WorklistQuery
from carelist.worklist.aggregator import WorklistAggregator
from carelist.worklist.stats import summarize
from carelist.worklist.view import WorklistView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/worklist", tags=["worklist"])

ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Caregiver session missing or rejected"},
    503: {"model": ErrorResponse, "description": "Assignment source unavailable"},
    500: {"model": ErrorResponse, "description": "Unexpected failure while building"},
}


def _raise_for_failure(result: WorklistResult) -> None:
    """Translate a fatal aggregation error into an HTTP error."""
    if result.success:
        return
    error = result.error
    if error is not None and error.kind is AggregationErrorKind.UNAUTHENTICATED:
        raise HTTPException(status_code=401, detail=error.message)
    raise HTTPException(
        status_code=503,
        detail=error.message if error else "Worklist unavailable",
    )


async def _build(aggregator: WorklistAggregator) -> WorklistResult:
    try:
        result = await aggregator.build_worklist()
    except Exception as e:
        logger.exception("Worklist build crashed")
        raise HTTPException(status_code=500, detail=f"Failed to build worklist: {str(e)}")
    _raise_for_failure(result)
    return result


@router.get("", response_model=WorklistResponse, responses=ERROR_RESPONSES)
async def get_worklist(
    search: str = Query("", description="Matches title, resident name or location"),
    status: Optional[StatusFilter] = Query(None, description="Defaults to the default_status_filter preference"),
    sort: Optional[SortKey] = Query(None, description="Defaults to the default_sort preference"),
    aggregator: WorklistAggregator = Depends(get_worklist_aggregator),
    view: WorklistView = Depends(get_worklist_view),
    config: Config = Depends(get_config),
):
    """
    Get today's worklist for the signed-in caregiver.

    Returns every (resident, activity) task for today, filtered and
    sorted as requested, plus the unfiltered summary.
    """
    result = await _build(aggregator)
    now = result.generated_at

    query = WorklistQuery(
        search=search,
        status=status or config.get_default_status_filter(),
        sort=sort or config.get_default_sort(),
    )
    tasks = view.apply(result.tasks, query, now)

    return WorklistResponse(
        generated_at=now.isoformat(),
        status=query.status,
        sort=query.sort,
        search=search,
        tasks=[TaskResponse.from_task(t, overdue=t.is_overdue(now)) for t in tasks],
        stats=WorklistStatsResponse.from_stats(summarize(result.tasks, now)),
    )


@router.get("/stats", response_model=WorklistStatsResponse, responses=ERROR_RESPONSES)
async def get_worklist_stats(
    aggregator: WorklistAggregator = Depends(get_worklist_aggregator),
):
    """
    Get just the summary portion of the worklist.

    Lighter-weight endpoint for quick status checks.
    """
    result = await _build(aggregator)
    return WorklistStatsResponse.from_stats(summarize(result.tasks, result.generated_at))
