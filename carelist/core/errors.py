"""
Error taxonomy and result types for worklist aggregation.

Provider adapters raise ProviderError. The aggregator never lets those
escape: per-resident failures degrade to conservative defaults, and the
only fatal outcomes are returned as an AggregationError inside a
WorklistResult.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from carelist.core.models import Task


class ProviderError(Exception):
    """Raised by a data provider when a remote call fails."""

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message
        self.status_code = status_code


class NotAuthenticatedError(ProviderError):
    """No valid session, or the remote rejected our credentials."""

    def __init__(self, source: str = "session", message: str = "User not authenticated",
                 status_code: Optional[int] = None):
        super().__init__(source, message, status_code)


class AggregationErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    SOURCE_UNAVAILABLE = "source_unavailable"


@dataclass(frozen=True)
class AggregationError:
    """Fatal failure of a worklist build."""
    kind: AggregationErrorKind
    source: Optional[str] = None
    detail: str = ""

    @classmethod
    def unauthenticated(cls, detail: str = "") -> 'AggregationError':
        return cls(AggregationErrorKind.UNAUTHENTICATED, detail=detail)

    @classmethod
    def source_unavailable(cls, source: str, detail: str = "") -> 'AggregationError':
        return cls(AggregationErrorKind.SOURCE_UNAVAILABLE, source=source, detail=detail)

    @property
    def message(self) -> str:
        if self.kind is AggregationErrorKind.UNAUTHENTICATED:
            return "Not signed in. Please log in and try again."
        return f"Could not load {self.source or 'data'}. Please try again."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "source": self.source,
            "detail": self.detail,
            "message": self.message,
        }


@dataclass
class WorklistResult:
    """
    Outcome of a worklist build.

    Attributes:
        success: Whether the worklist was produced
        tasks: Synthesized tasks (empty on failure)
        error: Fatal error when success is False
        generated_at: Reference instant the build used for "today"
        sequence: Refresh sequence number, 0 for direct builds
        stale: True when a newer refresh finished first
    """
    success: bool
    tasks: List[Task] = field(default_factory=list)
    error: Optional[AggregationError] = None
    generated_at: Optional[datetime] = None
    sequence: int = 0
    stale: bool = False

    @classmethod
    def ok(cls, tasks: List[Task], generated_at: Optional[datetime] = None) -> 'WorklistResult':
        """Factory method for a successful build."""
        return cls(
            success=True,
            tasks=tasks,
            generated_at=generated_at or datetime.now(timezone.utc),
        )

    @classmethod
    def failure(cls, error: AggregationError,
                generated_at: Optional[datetime] = None) -> 'WorklistResult':
        """Factory method for a failed build."""
        return cls(
            success=False,
            error=error,
            generated_at=generated_at or datetime.now(timezone.utc),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "success": self.success,
            "tasks": [t.to_dict() for t in self.tasks],
            "error": self.error.to_dict() if self.error else None,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "sequence": self.sequence,
            "stale": self.stale,
        }
