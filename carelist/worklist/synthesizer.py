"""
Task synthesis for the daily worklist.

Each assignment yields exactly one task per ActivityKind. Tasks are
rebuilt on every run; identity is derived from kind and resident so that
repeated builds produce the same ids.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Tuple

from carelist.core.models import (
    ActivityKind,
    Assignment,
    ResidentLocation,
    Task,
    TaskStatus,
    task_id_for,
)
from carelist.worklist.day_boundary import TimeZoneLike, end_of_local_day


@dataclass(frozen=True)
class TaskTemplate:
    """Title/description pattern for one activity kind."""
    title: str
    description: str

    def render(self, resident_name: str) -> Tuple[str, str]:
        name = resident_name or "resident"
        return self.title.format(name=name), self.description.format(name=name)


TASK_TEMPLATES: Dict[ActivityKind, TaskTemplate] = {
    ActivityKind.VITAL_SIGNS: TaskTemplate(
        title="Record vital signs - {name}",
        description="Measure and record today's vital signs for {name}",
    ),
    ActivityKind.ASSESSMENT: TaskTemplate(
        title="Daily assessment - {name}",
        description="Complete today's care assessment for {name}",
    ),
}


def synthesize_task(
    kind: ActivityKind,
    assignment: Assignment,
    location: ResidentLocation,
    done_today: bool,
    due_at: datetime,
) -> Task:
    """Build the task for one kind of one assignment."""
    title, description = TASK_TEMPLATES[kind].render(assignment.resident_name)
    return Task(
        id=task_id_for(kind, assignment.resident_ref),
        kind=kind,
        resident_ref=assignment.resident_ref,
        resident_name=assignment.resident_name,
        location=location,
        title=title,
        description=description,
        due_at=due_at,
        status=TaskStatus.COMPLETED if done_today else TaskStatus.PENDING,
    )


class TaskSynthesizer:
    """
    Produces a resident's (vitals, assessment) task pair.

    Pure: output depends only on the arguments, including `now`, which
    fixes the due time to the end of the current facility day.
    """

    def __init__(self, tz: TimeZoneLike):
        self.tz = tz

    def synthesize(
        self,
        assignment: Assignment,
        location: ResidentLocation,
        has_vitals_today: bool,
        has_assessment_today: bool,
        now: datetime,
    ) -> Tuple[Task, Task]:
        """
        Args:
            assignment: The resident assignment
            location: Resolved location, or ResidentLocation.unresolved()
            has_vitals_today: A vital-sign record exists for today
            has_assessment_today: An assessment record exists for today
            now: Reference instant for "today"

        Returns:
            (vitals_task, assessment_task)
        """
        due_at = end_of_local_day(now, self.tz)
        vitals = synthesize_task(
            ActivityKind.VITAL_SIGNS, assignment, location, has_vitals_today, due_at
        )
        assessment = synthesize_task(
            ActivityKind.ASSESSMENT, assignment, location, has_assessment_today, due_at
        )
        return vitals, assessment
