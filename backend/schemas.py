"""
Pydantic schemas for API request/response validation.

These schemas provide:
- Type safety for API outputs
- OpenAPI documentation generation
- Serialization of worklist snapshots
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from carelist.core.models import ActivityKind, SortKey, StatusFilter, Task, TaskStatus
from carelist.worklist.stats import WorklistStats


class ErrorResponse(BaseModel):
    """Error response for API errors."""
    detail: str
    code: Optional[str] = None


class TaskResponse(BaseModel):
    """Synthetic worklist task returned from API."""
    id: str
    kind: ActivityKind
    resident_ref: str
    resident_name: str
    location: str
    title: str
    description: str
    due_at: str
    status: TaskStatus
    overdue: bool = False

    @classmethod
    def from_task(cls, task: Task, overdue: bool = False) -> "TaskResponse":
        return cls(
            id=task.id,
            kind=task.kind,
            resident_ref=task.resident_ref,
            resident_name=task.resident_name,
            location=task.location.label,
            title=task.title,
            description=task.description,
            due_at=task.due_at.isoformat(),
            status=task.status,
            overdue=overdue,
        )


class WorklistStatsResponse(BaseModel):
    """Completion summary of the current worklist."""
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    completion_rate: float = Field(default=0.0, ge=0, le=100)
    residents: int = 0
    completed_by_kind: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_stats(cls, stats: WorklistStats) -> "WorklistStatsResponse":
        return cls(
            total=stats.total,
            completed=stats.completed,
            pending=stats.pending,
            overdue=stats.overdue,
            completion_rate=stats.completion_rate,
            residents=stats.residents,
            completed_by_kind={k.value: v for k, v in stats.completed_by_kind.items()},
        )


class WorklistResponse(BaseModel):
    """Filtered and sorted worklist with its summary."""
    generated_at: str
    status: StatusFilter
    sort: SortKey
    search: str = ""
    tasks: List[TaskResponse]
    stats: WorklistStatsResponse
