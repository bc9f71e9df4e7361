"""Timeline range derivation and date/pixel projection."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .models import DateLike, Task, ZoomMode, as_date, as_datetime
from .schedule import DEFAULT_NOMINAL_DAYS, task_duration

DEFAULT_MARGIN_DAYS = 7

# Pixels per calendar day for each zoom mode.
DAY_WIDTHS: Dict[ZoomMode, int] = {
    ZoomMode.DAY: 40,
    ZoomMode.WEEK: 16,
    ZoomMode.MONTH: 4,
    ZoomMode.QUARTER: 2,
}

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class TimelineRange:
    start: date
    end: date

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days

    def __contains__(self, value: DateLike) -> bool:
        return self.start <= as_date(value) <= self.end


@dataclass(frozen=True)
class HeaderSegment:
    """One header cell: a day, ISO week, month or quarter clipped to the range."""

    label: str
    start: date
    days: int
    x: float
    width: float


@dataclass(frozen=True)
class Projection:
    """Maps calendar dates onto horizontal pixel offsets and back."""

    range: TimelineRange
    zoom: ZoomMode
    day_width: int
    header_segments: Tuple[HeaderSegment, ...] = field(default=())

    @property
    def total_days(self) -> int:
        return self.range.total_days

    @property
    def total_width(self) -> int:
        return self.total_days * self.day_width

    def date_to_x(self, value: DateLike) -> float:
        """Pixel offset of a date; datetimes land part way through their day."""
        if isinstance(value, datetime):
            elapsed = as_datetime(value) - as_datetime(self.range.start)
            return elapsed / _ONE_DAY * self.day_width
        return (value - self.range.start).days * self.day_width

    def x_to_date(self, x: float) -> date:
        """Calendar day containing the pixel offset ``x``."""
        return self.range.start + timedelta(days=math.floor(x / self.day_width))

    def today_x(self, today: Optional[date] = None) -> Optional[float]:
        """Position of the today marker, or None when today is off the timeline."""
        today = today or date.today()
        if today not in self.range:
            return None
        return self.date_to_x(today)


def compute_range(
    tasks: Iterable[Task],
    *,
    lead_days: int = DEFAULT_MARGIN_DAYS,
    trail_days: int = DEFAULT_MARGIN_DAYS,
    today: Optional[date] = None,
) -> TimelineRange:
    """Span every task date plus a margin on either side.

    With no dated task at all the range is centred on ``today``.
    """
    if tasks is None:
        raise TypeError("tasks must not be None")
    if lead_days < 1 or trail_days < 1:
        raise ValueError("timeline margins must be at least one day")

    dates: List[date] = []
    for task in tasks:
        for value in (task.start_date, task.end_date):
            if value is not None:
                dates.append(as_date(value))

    if dates:
        first, last = min(dates), max(dates)
    else:
        first = last = today or date.today()
    return TimelineRange(start=first - timedelta(days=lead_days), end=last + timedelta(days=trail_days))


def projection(timeline_range: TimelineRange, zoom: Union[ZoomMode, str]) -> Projection:
    """Build the projection for a zoom mode; the range itself is left untouched."""
    if timeline_range is None:
        raise TypeError("timeline_range must not be None")
    zoom = ZoomMode(zoom)
    day_width = DAY_WIDTHS[zoom]
    return Projection(
        range=timeline_range,
        zoom=zoom,
        day_width=day_width,
        header_segments=tuple(_header_segments(timeline_range, zoom, day_width)),
    )


def bar_extent(
    task: Task,
    proj: Projection,
    *,
    nominal_days: int = DEFAULT_NOMINAL_DAYS,
) -> Optional[Tuple[float, float]]:
    """Left and right pixel edges of a task bar, or None for undated tasks."""
    anchor = task.start_date if task.start_date is not None else task.end_date
    if anchor is None:
        return None
    left = proj.date_to_x(anchor)
    right = left + task_duration(task, nominal_days=nominal_days) * proj.day_width
    return left, right


def daily_load(tasks: Iterable[Task], timeline_range: TimelineRange) -> List[int]:
    """Count the dated tasks active on each day of the range."""
    counts = [0] * timeline_range.total_days
    for task in tasks:
        anchor = task.start_date if task.start_date is not None else task.end_date
        if anchor is None:
            continue
        offset = (as_date(anchor) - timeline_range.start).days
        for day in range(offset, offset + max(1, task_duration(task))):
            if 0 <= day < len(counts):
                counts[day] += 1
    return counts


def _header_segments(timeline_range: TimelineRange, zoom: ZoomMode, day_width: int) -> List[HeaderSegment]:
    """Split the range into calendar cells for the zoom mode."""
    segments: List[HeaderSegment] = []
    cursor = timeline_range.start
    while cursor < timeline_range.end:
        boundary = min(_next_boundary(cursor, zoom), timeline_range.end)
        days = (boundary - cursor).days
        segments.append(
            HeaderSegment(
                label=_segment_label(cursor, zoom),
                start=cursor,
                days=days,
                x=(cursor - timeline_range.start).days * day_width,
                width=days * day_width,
            )
        )
        cursor = boundary
    return segments


def _next_boundary(day: date, zoom: ZoomMode) -> date:
    if zoom is ZoomMode.DAY:
        return day + _ONE_DAY
    if zoom is ZoomMode.WEEK:
        # ISO weeks start on Monday.
        return day + timedelta(days=7 - day.weekday())
    if zoom is ZoomMode.MONTH:
        if day.month == 12:
            return date(day.year + 1, 1, 1)
        return date(day.year, day.month + 1, 1)
    quarter_start_month = 3 * ((day.month - 1) // 3) + 1
    if quarter_start_month == 10:
        return date(day.year + 1, 1, 1)
    return date(day.year, quarter_start_month + 3, 1)


def _segment_label(day: date, zoom: ZoomMode) -> str:
    if zoom is ZoomMode.DAY:
        return day.strftime("%d %b")
    if zoom is ZoomMode.WEEK:
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if zoom is ZoomMode.MONTH:
        return day.strftime("%b %Y")
    return f"Q{(day.month - 1) // 3 + 1} {day.year}"
