"""
Worklist module for the Care Worklist engine.

Provides day-boundary rules, task synthesis, concurrent aggregation,
filter/sort projection and Rich CLI formatting.
"""

from .day_boundary import (
    end_of_local_day,
    resolve_timezone,
    same_local_day,
)
from .synthesizer import TaskSynthesizer, TASK_TEMPLATES
from .aggregator import WorklistAggregator, WorklistRefresher
from .view import WorklistView, DEFAULT_KIND_PRIORITY, apply
from .stats import WorklistStats, summarize
from .formatter import WorklistFormatter

__all__ = [
    # Day boundary
    'end_of_local_day',
    'resolve_timezone',
    'same_local_day',
    # Synthesis
    'TaskSynthesizer',
    'TASK_TEMPLATES',
    # Aggregation
    'WorklistAggregator',
    'WorklistRefresher',
    # View
    'WorklistView',
    'DEFAULT_KIND_PRIORITY',
    'apply',
    # Stats
    'WorklistStats',
    'summarize',
    # Formatter
    'WorklistFormatter',
]
