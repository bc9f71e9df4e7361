"""Row assignment for grouped, collapsible task lists."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Dict, FrozenSet, Hashable, Iterable, List

from .models import Task


@dataclass(frozen=True)
class RowLayout:
    """Vertical arrangement of group headers and visible tasks.

    Tasks inside a collapsed group have no entry in ``row_index_by_task_id``.
    """

    group_order: List[str] = field(default_factory=list)
    row_index_by_task_id: Dict[Hashable, int] = field(default_factory=dict)
    header_row_by_group: Dict[str, int] = field(default_factory=dict)
    total_rows: int = 0

    def is_visible(self, task_id: Hashable) -> bool:
        return task_id in self.row_index_by_task_id


def layout_rows(tasks: Iterable[Task], expanded_groups: AbstractSet[str]) -> RowLayout:
    """Assign row indices in one pass: each header, then its members if expanded."""
    if tasks is None:
        raise TypeError("tasks must not be None")
    if expanded_groups is None:
        raise TypeError("expanded_groups must not be None")

    members: Dict[str, List[Task]] = {}
    for task in tasks:
        members.setdefault(task.group, []).append(task)

    row_index_by_task_id: Dict[Hashable, int] = {}
    header_row_by_group: Dict[str, int] = {}
    row = 0
    for group, group_tasks in members.items():
        header_row_by_group[group] = row
        row += 1
        if group not in expanded_groups:
            continue
        for task in group_tasks:
            if task.id in row_index_by_task_id:
                continue
            row_index_by_task_id[task.id] = row
            row += 1

    return RowLayout(
        group_order=list(members),
        row_index_by_task_id=row_index_by_task_id,
        header_row_by_group=header_row_by_group,
        total_rows=row,
    )


def toggle_group(expanded_groups: AbstractSet[str], group: str) -> FrozenSet[str]:
    """Return a copy of the expanded set with ``group`` flipped."""
    if group in expanded_groups:
        return frozenset(expanded_groups) - {group}
    return frozenset(expanded_groups) | {group}
