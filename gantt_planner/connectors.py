"""Geometry for the arrows drawn between dependent task bars."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Tuple

from .graph import Graph
from .layout import RowLayout
from .logging_utils import get_logger
from .models import Task
from .schedule import DEFAULT_NOMINAL_DAYS
from .timeline import Projection, bar_extent

logger = get_logger(__name__)

DEFAULT_ROW_HEIGHT = 32
DEFAULT_CURVATURE_CAP = 80

Point = Tuple[float, float]


@dataclass(frozen=True)
class Connector:
    """A dependency arrow from the end of one bar to the start of another."""

    source_id: Hashable
    target_id: Hashable
    start: Point
    end: Point
    curvature: float
    satisfied: bool

    @property
    def style(self) -> str:
        return "solid" if self.satisfied else "dashed"

    @property
    def control_points(self) -> Tuple[Point, Point]:
        """Cubic Bezier control points bowing out horizontally from both ends."""
        return (
            (self.start[0] + self.curvature, self.start[1]),
            (self.end[0] - self.curvature, self.end[1]),
        )

    def svg_path(self) -> str:
        (c1x, c1y), (c2x, c2y) = self.control_points
        return (
            f"M {self.start[0]:g} {self.start[1]:g} "
            f"C {c1x:g} {c1y:g}, {c2x:g} {c2y:g}, {self.end[0]:g} {self.end[1]:g}"
        )


def row_center(row: int, row_height: float = DEFAULT_ROW_HEIGHT) -> float:
    return row * row_height + row_height / 2


def route_connectors(
    graph: Graph,
    tasks: Iterable[Task],
    layout: RowLayout,
    proj: Projection,
    *,
    row_height: float = DEFAULT_ROW_HEIGHT,
    curvature_cap: float = DEFAULT_CURVATURE_CAP,
    nominal_days: int = DEFAULT_NOMINAL_DAYS,
) -> List[Connector]:
    """Compute one connector per drawable edge.

    Edges touching a task hidden in a collapsed group, or a task without any
    date, are skipped. A completed source marks the connector satisfied.
    """
    for name, value in (("graph", graph), ("tasks", tasks), ("layout", layout), ("proj", proj)):
        if value is None:
            raise TypeError(f"{name} must not be None")
    if row_height <= 0:
        raise ValueError("row_height must be positive")

    by_id: Dict[Hashable, Task] = {}
    for task in tasks:
        by_id.setdefault(task.id, task)

    connectors: List[Connector] = []
    for source_id, target_id in graph.edges:
        if source_id == target_id:
            continue
        source_row = layout.row_index_by_task_id.get(source_id)
        target_row = layout.row_index_by_task_id.get(target_id)
        if source_row is None or target_row is None:
            continue
        source = by_id.get(source_id)
        target = by_id.get(target_id)
        if source is None or target is None:
            continue
        source_bar = bar_extent(source, proj, nominal_days=nominal_days)
        target_bar = bar_extent(target, proj, nominal_days=nominal_days)
        if source_bar is None or target_bar is None:
            logger.debug("Skipping connector %r -> %r: undated endpoint", source_id, target_id)
            continue

        start = (source_bar[1], row_center(source_row, row_height))
        end = (target_bar[0], row_center(target_row, row_height))
        curvature = min(abs(end[0] - start[0]) / 3, curvature_cap)
        connectors.append(
            Connector(
                source_id=source_id,
                target_id=target_id,
                start=start,
                end=end,
                curvature=curvature,
                satisfied=source.is_completed,
            )
        )
    return connectors
