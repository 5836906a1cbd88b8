"""
Provider contracts consumed by the worklist aggregator.

All calls are asynchronous and may raise ProviderError (or
NotAuthenticatedError). Activity records come back with a single
normalised `occurred_at` timestamp.
"""

from abc import ABC, abstractmethod
from typing import List

from carelist.core.models import (
    AssessmentRecord,
    Assignment,
    ResidentLocation,
    VitalSignRecord,
)


class CareDataProvider(ABC):
    """
    Read-only access to the care data the worklist is built from.

    Subclasses must implement:
    - get_my_assignments(): Current caregiver's resident assignments
    - resolve_resident_location(): Best-effort room/bed lookup
    - get_vital_sign_records(): Vital-sign records of a resident
    - get_assessment_records(): Assessment records of a resident
    """

    @abstractmethod
    async def get_my_assignments(self) -> List[Assignment]:
        """Raises NotAuthenticatedError when there is no session."""

    @abstractmethod
    async def resolve_resident_location(self, resident_ref: str) -> ResidentLocation:
        """May return ResidentLocation.unresolved() when nothing is known."""

    @abstractmethod
    async def get_vital_sign_records(self, resident_ref: str) -> List[VitalSignRecord]:
        ...

    @abstractmethod
    async def get_assessment_records(self, resident_ref: str) -> List[AssessmentRecord]:
        ...

    async def aclose(self) -> None:
        """Release any held resources."""
        return None
