"""Critical path calculation over the dependency graph."""
from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

from .graph import Graph, build_graph
from .logging_utils import get_logger
from .models import Task, as_datetime

logger = get_logger(__name__)

DEFAULT_NOMINAL_DAYS = 1
_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class ScheduleEntry:
    """Earliest/latest times of one task, measured in days from project start."""

    task_id: Hashable
    duration: int
    earliest_start: int
    earliest_finish: int
    latest_start: int
    latest_finish: int

    @property
    def total_float(self) -> int:
        return self.latest_start - self.earliest_start

    @property
    def is_critical(self) -> bool:
        return self.total_float == 0


@dataclass(frozen=True)
class CriticalPathResult:
    path: List[Hashable] = field(default_factory=list)
    schedule: Dict[Hashable, ScheduleEntry] = field(default_factory=dict)
    unscheduled: List[Hashable] = field(default_factory=list)
    project_duration: int = 0

    @property
    def floats(self) -> Dict[Hashable, int]:
        return {task_id: entry.total_float for task_id, entry in self.schedule.items()}

    def is_critical(self, task_id: Hashable) -> bool:
        entry = self.schedule.get(task_id)
        return entry is not None and entry.is_critical


def task_duration(task: Task, *, nominal_days: int = DEFAULT_NOMINAL_DAYS) -> int:
    """Whole-day duration of a task.

    Milestones last zero days, tasks missing a date fall back to
    ``nominal_days`` and everything else lasts at least one day.
    """
    if task.is_milestone:
        return 0
    if not task.has_schedule():
        return nominal_days
    span = as_datetime(task.end_date) - as_datetime(task.start_date)
    return max(1, math.ceil(span / _ONE_DAY))


def topological_order(graph: Graph) -> Tuple[List[Hashable], List[Hashable]]:
    """Kahn's algorithm.

    Returns the ordered ids plus the ids that could not be ordered because
    they sit on, or downstream of, a cycle.
    """
    in_degree = {node: len(graph.predecessors[node]) for node in graph.nodes}
    queue = deque(node for node in graph.nodes if in_degree[node] == 0)
    order: List[Hashable] = []
    while queue:
        node = queue.popleft()
        order.append(node)
        for successor in graph.successors[node]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)

    ordered = set(order)
    blocked = [node for node in graph.nodes if node not in ordered]
    if blocked:
        logger.warning("%d task(s) cannot be scheduled because of dependency cycles", len(blocked))
    return order, blocked


def compute_schedule(
    graph: Graph,
    durations: Mapping[Hashable, int],
) -> Tuple[Dict[Hashable, ScheduleEntry], List[Hashable], List[Hashable]]:
    """Run the forward and backward passes.

    Returns the schedule entries, the topological order used and the ids
    left unscheduled.
    """
    order, blocked = topological_order(graph)
    if not order:
        return {}, order, blocked

    earliest_start: Dict[Hashable, int] = {}
    earliest_finish: Dict[Hashable, int] = {}
    for node in order:
        earliest_start[node] = max((earliest_finish[dep] for dep in graph.predecessors[node]), default=0)
        earliest_finish[node] = earliest_start[node] + durations[node]

    project_finish = max(earliest_finish.values())

    latest_start: Dict[Hashable, int] = {}
    latest_finish: Dict[Hashable, int] = {}
    for node in reversed(order):
        # Dependents of an ordered node are either ordered or blocked; only
        # the ordered ones carry latest times.
        dependents = [succ for succ in graph.successors[node] if succ in latest_start]
        latest_finish[node] = min((latest_start[succ] for succ in dependents), default=project_finish)
        latest_start[node] = latest_finish[node] - durations[node]

    schedule = {
        node: ScheduleEntry(
            task_id=node,
            duration=durations[node],
            earliest_start=earliest_start[node],
            earliest_finish=earliest_finish[node],
            latest_start=latest_start[node],
            latest_finish=latest_finish[node],
        )
        for node in order
    }
    return schedule, order, blocked


def compute_critical_path(
    tasks: Iterable[Task],
    *,
    nominal_days: int = DEFAULT_NOMINAL_DAYS,
    graph: Optional[Graph] = None,
) -> CriticalPathResult:
    """Longest dependency chain by duration, plus the full schedule.

    Cyclic tasks are excluded from the calculation and listed in
    ``unscheduled`` instead of raising.
    """
    if tasks is None:
        raise TypeError("tasks must not be None")
    if nominal_days < 1:
        raise ValueError("nominal_days must be at least 1")

    task_list = list(tasks)
    if graph is None:
        graph = build_graph(task_list)

    by_id: Dict[Hashable, Task] = {}
    for task in task_list:
        by_id.setdefault(task.id, task)
    # A graph built from a wider collection may hold nodes with no task here.
    durations = {
        node: task_duration(by_id[node], nominal_days=nominal_days) if node in by_id else nominal_days
        for node in graph.nodes
    }

    schedule, _order, blocked = compute_schedule(graph, durations)
    if not schedule:
        return CriticalPathResult(unscheduled=blocked)

    path = _trace_critical_path(graph, schedule)
    project_duration = max(entry.earliest_finish for entry in schedule.values())
    return CriticalPathResult(
        path=path,
        schedule=schedule,
        unscheduled=blocked,
        project_duration=project_duration,
    )


def _trace_critical_path(graph: Graph, schedule: Dict[Hashable, ScheduleEntry]) -> List[Hashable]:
    """Walk from a zero-float sink back to a zero-float source."""
    sinks = [
        node
        for node, entry in schedule.items()
        if entry.is_critical and not any(succ in schedule for succ in graph.successors[node])
    ]
    if not sinks:
        return []

    current = min(sinks, key=lambda node: (schedule[node].earliest_start, _id_key(node)))
    path = [current]
    while True:
        candidates = [
            dep for dep in graph.predecessors[current] if dep in schedule and schedule[dep].is_critical
        ]
        if not candidates:
            break
        current = min(candidates, key=lambda node: (-schedule[node].earliest_finish, _id_key(node)))
        path.append(current)

    path.reverse()
    return path


def _id_key(task_id: Hashable) -> str:
    return str(task_id)
