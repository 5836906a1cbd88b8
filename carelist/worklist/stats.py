"""Completion summary for a worklist snapshot."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence

from carelist.core.models import ActivityKind, Task, ensure_aware


@dataclass
class WorklistStats:
    """Statistics for the worklist header/stats bar."""
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    completion_rate: float = 0.0
    completed_by_kind: Dict[ActivityKind, int] = field(default_factory=dict)
    residents: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "overdue": self.overdue,
            "completion_rate": self.completion_rate,
            "completed_by_kind": {k.value: v for k, v in self.completed_by_kind.items()},
            "residents": self.residents,
        }


def summarize(tasks: Sequence[Task], now: Optional[datetime] = None) -> WorklistStats:
    """
    Count completed, pending and overdue tasks.

    Args:
        tasks: Task collection (any order)
        now: Reference instant for overdue

    Returns:
        WorklistStats; completion_rate is a percentage
    """
    now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)

    completed_by_kind = {kind: 0 for kind in ActivityKind}
    completed = 0
    overdue = 0
    for task in tasks:
        if task.is_completed:
            completed += 1
            completed_by_kind[task.kind] += 1
        elif task.is_overdue(now):
            overdue += 1

    total = len(tasks)
    return WorklistStats(
        total=total,
        completed=completed,
        pending=total - completed,
        overdue=overdue,
        completion_rate=(completed / total * 100) if total > 0 else 0.0,
        completed_by_kind=completed_by_kind,
        residents=len({t.resident_ref for t in tasks}),
    )
