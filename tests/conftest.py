"""Shared fixtures for the worklist test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from carelist.core.config import Config
from carelist.core.models import (
    ActivityKind,
    ResidentLocation,
    Task,
    TaskStatus,
    task_id_for,
)

ICT = timezone(timedelta(hours=7))


@pytest.fixture
def config(tmp_path):
    """Config backed by a temporary directory."""
    return Config(config_dir=tmp_path / "config")


@pytest.fixture
def now():
    """10:00 on 15 Jan 2025 in the facility timezone (UTC+7)."""
    return datetime(2025, 1, 15, 10, 0, tzinfo=ICT)


def make_task(
    resident_ref="r1",
    resident_name="Nguyễn Văn A",
    kind=ActivityKind.VITAL_SIGNS,
    status=TaskStatus.PENDING,
    due_at=None,
    location=None,
    title=None,
):
    """Build a Task with sensible defaults."""
    return Task(
        id=task_id_for(kind, resident_ref),
        kind=kind,
        resident_ref=resident_ref,
        resident_name=resident_name,
        location=location or ResidentLocation("101", "A"),
        title=title or f"{kind.value} - {resident_name}",
        description="",
        due_at=due_at or datetime(2025, 1, 15, 23, 59, 59, 999000, tzinfo=ICT),
        status=status,
    )


@pytest.fixture
def task_factory():
    """Factory fixture for building tasks."""
    return make_task
