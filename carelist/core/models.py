"""
Data models for the Care Worklist engine
Defines assignments, activity records, synthetic tasks and worklist queries.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Sequence


# Label used when a resident's room/bed cannot be resolved
UNRESOLVED_LOCATION = "—"


class ActivityKind(str, Enum):
    """Daily activities tracked per resident."""
    VITAL_SIGNS = "vital_signs"
    ASSESSMENT = "assessment"


class TaskStatus(str, Enum):
    """Completion state of a synthetic task."""
    PENDING = "pending"
    COMPLETED = "completed"


class StatusFilter(str, Enum):
    """Status filter applied by the worklist view."""
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class SortKey(str, Enum):
    """Sort orders supported by the worklist view."""
    DUE_TIME = "due_time"
    PRIORITY = "priority"
    RESIDENT_NAME = "resident_name"


def ensure_aware(instant: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware values pass through."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Naive values are taken as UTC. Returns None for missing or
    unparseable input instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    return ensure_aware(parsed)


def _first_present(data: Dict[str, Any], keys: Sequence[str]) -> Any:
    """Return the first non-null value among keys."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class Assignment:
    """Caregiver-to-resident assignment for the current session"""
    resident_ref: str
    resident_name: str = ""
    assignment_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Assignment':
        """
        Create Assignment from an API payload.

        The resident may be embedded as an object (``{"_id", "full_name"}``)
        or referenced by id with the name alongside.
        """
        resident = data.get("resident_id", data.get("resident"))
        if isinstance(resident, dict):
            ref = _first_present(resident, ("_id", "id"))
            name = _first_present(resident, ("full_name", "name")) or ""
        else:
            ref = resident
            name = _first_present(data, ("resident_name", "full_name")) or ""

        if ref is None:
            raise ValueError("assignment payload has no resident reference")

        return cls(
            resident_ref=str(ref),
            resident_name=str(name),
            assignment_id=_first_present(data, ("_id", "id")),
        )


@dataclass(frozen=True)
class ResidentLocation:
    """Resolved room/bed of a resident"""
    room_number: Optional[str] = None
    bed_number: Optional[str] = None

    @classmethod
    def unresolved(cls) -> 'ResidentLocation':
        return cls()

    @property
    def is_resolved(self) -> bool:
        return bool(self.room_number or self.bed_number)

    @property
    def label(self) -> str:
        """Human readable label, e.g. 'Room 101 - Bed 2'."""
        if self.room_number and self.bed_number:
            return f"Room {self.room_number} - Bed {self.bed_number}"
        if self.room_number:
            return f"Room {self.room_number}"
        if self.bed_number:
            return f"Bed {self.bed_number}"
        return UNRESOLVED_LOCATION

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class ActivityRecord:
    """Timestamped activity event recorded for a resident"""
    resident_ref: str
    occurred_at: Optional[datetime] = None
    record_id: Optional[str] = None

    # Candidate source fields for occurred_at, first non-null wins
    TIMESTAMP_FIELDS = ("created_at", "createdAt", "date")

    @classmethod
    def from_dict(cls, data: Dict[str, Any], resident_ref: Optional[str] = None):
        """Create a record from an API payload, normalising occurred_at."""
        ref = resident_ref
        if ref is None:
            resident = data.get("resident_id")
            if isinstance(resident, dict):
                resident = _first_present(resident, ("_id", "id"))
            ref = resident
        record_id = _first_present(data, ("_id", "id"))
        return cls(
            resident_ref=str(ref) if ref is not None else "",
            occurred_at=parse_datetime(_first_present(data, cls.TIMESTAMP_FIELDS)),
            record_id=str(record_id) if record_id is not None else None,
        )


@dataclass(frozen=True)
class VitalSignRecord(ActivityRecord):
    """Vital-sign measurement"""
    TIMESTAMP_FIELDS = ("date_time", "created_at", "createdAt", "date")


@dataclass(frozen=True)
class AssessmentRecord(ActivityRecord):
    """Care assessment note"""
    TIMESTAMP_FIELDS = ("date", "created_at", "createdAt", "assessment_date")


def task_id_for(kind: ActivityKind, resident_ref: str) -> str:
    """Deterministic task identity for a kind/resident pair."""
    return f"{kind.value}:{resident_ref}"


@dataclass(frozen=True)
class Task:
    """Synthetic worklist entry for one resident and activity kind"""
    id: str
    kind: ActivityKind
    resident_ref: str
    resident_name: str
    location: ResidentLocation
    title: str
    description: str
    due_at: datetime
    status: TaskStatus = TaskStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    def is_overdue(self, now: datetime) -> bool:
        """Pending and past its due time."""
        return self.status is TaskStatus.PENDING and self.due_at < ensure_aware(now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "resident_ref": self.resident_ref,
            "resident_name": self.resident_name,
            "location": self.location.label,
            "title": self.title,
            "description": self.description,
            "due_at": self.due_at.isoformat(),
            "status": self.status.value,
        }


@dataclass
class WorklistQuery:
    """Caller-supplied search, filter and sort for the worklist"""
    search: str = ""
    status: StatusFilter = StatusFilter.ALL
    sort: SortKey = SortKey.DUE_TIME
    kind_priority: Optional[Sequence[ActivityKind]] = field(default=None)
