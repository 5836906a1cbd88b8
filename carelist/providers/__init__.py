"""
Data providers for the Care Worklist engine.

The aggregator depends only on the CareDataProvider contract; the REST
and in-memory implementations live here.
"""

from pathlib import Path
from typing import Optional

from carelist.core.config import Config

from .base import CareDataProvider
from .http import HttpCareDataProvider
from .memory import InMemoryCareDataProvider


def create_provider(config: Config, fixture: Optional[Path] = None) -> CareDataProvider:
    """
    Build the provider described by configuration.

    A fixture path (argument or `fixture_path` setting) selects the
    in-memory provider; otherwise the REST adapter is used.
    """
    fixture = fixture or config.get_fixture_path()
    if fixture is not None:
        return InMemoryCareDataProvider.from_fixture(fixture)
    return HttpCareDataProvider(
        config.get("api_base_url"),
        config.get_access_token(),
        timeout=config.fetch_timeout,
    )


__all__ = [
    'CareDataProvider',
    'HttpCareDataProvider',
    'InMemoryCareDataProvider',
    'create_provider',
]
