"""
Worklist view: search, status filter and sort over a task collection.

Pure projection; the input list is never modified and a new list is
returned on every call.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from carelist.core.models import (
    ActivityKind,
    SortKey,
    StatusFilter,
    Task,
    TaskStatus,
    WorklistQuery,
    ensure_aware,
)

# Default rank order, highest first
DEFAULT_KIND_PRIORITY: Tuple[ActivityKind, ...] = (
    ActivityKind.VITAL_SIGNS,
    ActivityKind.ASSESSMENT,
)


def build_priority_table(kinds: Optional[Sequence[ActivityKind]] = None) -> Dict[ActivityKind, int]:
    """
    Map each kind to a rank (1 = highest).

    Kinds missing from `kinds` are appended in DEFAULT_KIND_PRIORITY order.
    """
    ordered: List[ActivityKind] = []
    for kind in list(kinds or []) + list(DEFAULT_KIND_PRIORITY):
        if kind not in ordered:
            ordered.append(kind)
    return {kind: rank for rank, kind in enumerate(ordered, 1)}


def matches_search(task: Task, search: str) -> bool:
    """Case-insensitive substring match on title, resident name and location."""
    needle = search.strip().casefold()
    if not needle:
        return True
    return (
        needle in task.title.casefold()
        or needle in task.resident_name.casefold()
        or needle in task.location.label.casefold()
    )


def matches_status(task: Task, status: StatusFilter, now: datetime) -> bool:
    if status is StatusFilter.PENDING:
        return task.status is TaskStatus.PENDING
    if status is StatusFilter.COMPLETED:
        return task.status is TaskStatus.COMPLETED
    if status is StatusFilter.OVERDUE:
        return task.is_overdue(now)
    return True


def _name_key(task: Task) -> str:
    return task.resident_name.casefold()


class WorklistView:
    """
    Stateless filter/sort projection for presentation.

    Ties are broken by resident name and then task id, so the same tasks
    always come back in the same order whatever order they arrive in.
    """

    def __init__(self, kind_priority: Optional[Sequence[ActivityKind]] = None):
        self.priority_table = build_priority_table(kind_priority)

    def _sort_key(self, sort: SortKey) -> Callable[[Task], tuple]:
        if sort is SortKey.PRIORITY:
            return lambda t: (self.priority_table[t.kind], t.due_at, _name_key(t), t.id)
        if sort is SortKey.RESIDENT_NAME:
            return lambda t: (_name_key(t), t.id)
        return lambda t: (t.due_at, _name_key(t), t.id)

    def apply(
        self,
        tasks: Sequence[Task],
        query: Optional[WorklistQuery] = None,
        now: Optional[datetime] = None,
    ) -> List[Task]:
        """
        Filter and sort tasks.

        Args:
            tasks: Task collection from the aggregator
            query: Search/filter/sort (defaults to all, by due time)
            now: Reference instant for the overdue filter

        Returns:
            New list of matching tasks in display order
        """
        if query is None:
            query = WorklistQuery()
        now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)

        view = self
        if query.kind_priority:
            view = WorklistView(query.kind_priority)

        filtered = [
            t for t in tasks
            if matches_search(t, query.search) and matches_status(t, query.status, now)
        ]
        return sorted(filtered, key=view._sort_key(query.sort))


def apply(
    tasks: Sequence[Task],
    query: Optional[WorklistQuery] = None,
    now: Optional[datetime] = None,
) -> List[Task]:
    """Apply a query with the default priority table."""
    return WorklistView().apply(tasks, query, now)
