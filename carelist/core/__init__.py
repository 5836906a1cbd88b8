"""
Core module for the Care Worklist engine
Contains configuration, data models and error types
"""

from .config import Config
from .errors import (
    AggregationError,
    AggregationErrorKind,
    NotAuthenticatedError,
    ProviderError,
    WorklistResult,
)
from .models import (
    ActivityKind,
    AssessmentRecord,
    Assignment,
    ResidentLocation,
    SortKey,
    StatusFilter,
    Task,
    TaskStatus,
    VitalSignRecord,
    WorklistQuery,
)

__all__ = [
    'Config',
    'AggregationError', 'AggregationErrorKind', 'NotAuthenticatedError',
    'ProviderError', 'WorklistResult',
    'ActivityKind', 'AssessmentRecord', 'Assignment', 'ResidentLocation',
    'SortKey', 'StatusFilter', 'Task', 'TaskStatus', 'VitalSignRecord',
    'WorklistQuery',
]
