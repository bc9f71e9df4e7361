"""Dependency graph construction and cycle detection."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Set, Tuple

from .logging_utils import get_logger
from .models import Task

logger = get_logger(__name__)

Edge = Tuple[Hashable, Hashable]

_WHITE = 0
_GRAY = 1
_BLACK = 2


@dataclass(frozen=True)
class Graph:
    """Task ids plus adjacency lists.

    Edges point from a dependency to its dependent, so ``successors[a]``
    lists the tasks waiting on ``a``.
    """

    nodes: Tuple[Hashable, ...]
    edges: Tuple[Edge, ...]
    successors: Dict[Hashable, Tuple[Hashable, ...]]
    predecessors: Dict[Hashable, Tuple[Hashable, ...]]

    def __contains__(self, task_id: Hashable) -> bool:
        return task_id in self.successors

    def __len__(self) -> int:
        return len(self.nodes)


def build_graph(tasks: Iterable[Task]) -> Graph:
    """Build the dependency graph for a task collection.

    Dependency ids missing from the collection are dropped; the caller may
    be passing a filtered page of a larger task set.
    """
    if tasks is None:
        raise TypeError("tasks must not be None")

    task_list = _unique_tasks(tasks)
    nodes = tuple(task.id for task in task_list)
    successors: Dict[Hashable, List[Hashable]] = {task_id: [] for task_id in nodes}
    predecessors: Dict[Hashable, List[Hashable]] = {task_id: [] for task_id in nodes}
    edges: List[Edge] = []

    for task in task_list:
        for dep in task.unique_dependencies():
            if dep not in successors:
                logger.debug("Dropping dangling dependency %r on task %r", dep, task.id)
                continue
            edges.append((dep, task.id))
            successors[dep].append(task.id)
            predecessors[task.id].append(dep)

    return Graph(
        nodes=nodes,
        edges=tuple(edges),
        successors={key: tuple(value) for key, value in successors.items()},
        predecessors={key: tuple(value) for key, value in predecessors.items()},
    )


def detect_cycles(graph: Graph) -> List[List[Hashable]]:
    """Report every cycle found by a three-colour depth-first search.

    Each cycle starts and ends with the same id, e.g. ``[a, b, a]``; a task
    depending on itself is reported as ``[a, a]``.
    """
    if graph is None:
        raise TypeError("graph must not be None")

    color = {node: _WHITE for node in graph.nodes}
    cycles: List[List[Hashable]] = []

    for root in graph.nodes:
        if color[root] != _WHITE:
            continue
        color[root] = _GRAY
        path: List[Hashable] = [root]
        position: Dict[Hashable, int] = {root: 0}
        # Each frame holds a node and the index of its next successor to visit.
        stack: List[List] = [[root, 0]]
        while stack:
            frame = stack[-1]
            node, index = frame
            children = graph.successors[node]
            if index >= len(children):
                color[node] = _BLACK
                stack.pop()
                del position[path.pop()]
                continue
            frame[1] = index + 1
            child = children[index]
            if color[child] == _WHITE:
                color[child] = _GRAY
                position[child] = len(path)
                path.append(child)
                stack.append([child, 0])
            elif color[child] == _GRAY:
                start = position[child]
                cycles.append(path[start:] + [child])

    if cycles:
        logger.warning("Detected %d dependency cycle(s)", len(cycles))
    return cycles


def find_cycle_members(graph: Graph) -> Set[Hashable]:
    """Return the ids taking part in any detected cycle."""
    members: Set[Hashable] = set()
    for cycle in detect_cycles(graph):
        members.update(cycle)
    return members


def _unique_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Drop repeated ids, keeping the first task seen for each."""
    seen = set()
    unique: List[Task] = []
    for task in tasks:
        if task.id in seen:
            logger.warning("Ignoring duplicate task id %r", task.id)
            continue
        seen.add(task.id)
        unique.append(task)
    return unique
