"""Data models shared across the planning engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Hashable, List, Optional, Union

DateLike = Union[date, datetime]

DEFAULT_GROUP = "Uncategorized"


class TaskStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


_KNOWN_STATUSES = frozenset(status.value for status in TaskStatus)


def normalize_status(value) -> str:
    """Fold a status label to the lowercase, underscore-separated form."""
    if isinstance(value, Enum):
        value = value.value
    return str(value).strip().casefold().replace("-", "_").replace(" ", "_")


class ZoomMode(str, Enum):
    """Calendar granularity of the timeline."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


@dataclass
class Task:
    """Read-only view of a task as handed over by the task service."""

    id: Hashable
    title: str = ""
    category: Optional[str] = None
    start_date: Optional[DateLike] = None
    end_date: Optional[DateLike] = None
    status: Union[TaskStatus, str] = TaskStatus.NOT_STARTED
    dependencies: List[Hashable] = field(default_factory=list)
    is_milestone: bool = False

    def __post_init__(self) -> None:
        # Labels belong to the task service; unknown ones are kept as given.
        if not isinstance(self.status, TaskStatus):
            label = normalize_status(self.status)
            if label in _KNOWN_STATUSES:
                self.status = TaskStatus(label)

    @property
    def group(self) -> str:
        """Grouping key, falling back to the default group for blank categories."""
        if self.category is None or not str(self.category).strip():
            return DEFAULT_GROUP
        return self.category

    @property
    def is_completed(self) -> bool:
        return normalize_status(self.status) == TaskStatus.COMPLETED.value

    def has_schedule(self) -> bool:
        """Return True when both start and end values are defined."""
        return self.start_date is not None and self.end_date is not None

    def is_dated(self) -> bool:
        """Return True when at least one calendar date is set."""
        return self.start_date is not None or self.end_date is not None

    def unique_dependencies(self) -> List[Hashable]:
        """Dependencies in first-seen order with duplicates removed."""
        seen = set()
        ordered: List[Hashable] = []
        for dep in self.dependencies:
            if dep in seen:
                continue
            seen.add(dep)
            ordered.append(dep)
        return ordered


def as_date(value: DateLike) -> date:
    """Truncate a datetime to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def as_datetime(value: DateLike) -> datetime:
    """Promote a plain date to midnight of that day."""
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)
