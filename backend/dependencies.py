"""
Dependency injection for FastAPI endpoints.

Provides singleton instances of Config and the care data provider, and
a per-request WorklistAggregator built on top of them.
"""

from functools import lru_cache

from carelist.core.config import Config
from carelist.providers import CareDataProvider, create_provider
from carelist.worklist.aggregator import WorklistAggregator
from carelist.worklist.view import WorklistView


@lru_cache()
def get_config() -> Config:
    """
    Get cached Config instance.

    lru_cache ensures we only create one Config instance
    for the lifetime of the application.
    """
    return Config()


@lru_cache()
def get_provider() -> CareDataProvider:
    """Get cached provider; the REST adapter reuses one HTTP client."""
    return create_provider(get_config())


def get_worklist_aggregator() -> WorklistAggregator:
    """Get WorklistAggregator for worklist builds."""
    return WorklistAggregator(get_provider(), get_config())


def get_worklist_view() -> WorklistView:
    """Get WorklistView using the configured kind priority."""
    return WorklistView(get_config().get_kind_priority())
