from datetime import date, timedelta

import pytest

from gantt_planner.connectors import DEFAULT_CURVATURE_CAP, row_center, route_connectors
from gantt_planner.graph import build_graph
from gantt_planner.layout import layout_rows
from gantt_planner.models import Task, TaskStatus, ZoomMode
from gantt_planner.timeline import compute_range, projection

MONDAY = date(2026, 1, 5)


def _day(offset: int) -> date:
    return MONDAY + timedelta(days=offset)


def _tasks():
    return [
        Task(id="A", category="Design", start_date=_day(0), end_date=_day(1), status="completed"),
        Task(id="B", category="Design", start_date=_day(1), end_date=_day(3), dependencies=["A"]),
        Task(id="C", category="Build", start_date=_day(15), end_date=_day(16), dependencies=["A"], status=TaskStatus.IN_PROGRESS),
        Task(id="D", category="Build", start_date=_day(3), end_date=_day(4), dependencies=["B"]),
    ]


def _route(tasks, expanded):
    proj = projection(compute_range(tasks), ZoomMode.DAY)
    return route_connectors(build_graph(tasks), tasks, layout_rows(tasks, expanded), proj)


def test_connectors_run_from_bar_end_to_bar_start() -> None:
    connectors = {(c.source_id, c.target_id): c for c in _route(_tasks(), {"Design", "Build"})}

    assert set(connectors) == {("A", "B"), ("A", "C"), ("B", "D")}

    a_to_b = connectors[("A", "B")]
    assert a_to_b.start == (320, 48)
    assert a_to_b.end == (320, 80)
    assert a_to_b.curvature == 0

    a_to_c = connectors[("A", "C")]
    assert a_to_c.start == (320, 48)
    assert a_to_c.end == (880, 144)
    assert a_to_c.curvature == DEFAULT_CURVATURE_CAP
    assert a_to_c.control_points == ((400, 48), (800, 144))
    assert a_to_c.svg_path() == "M 320 48 C 400 48, 800 144, 880 144"


def test_short_connectors_bend_proportionally() -> None:
    tasks = [
        Task(id="x", start_date=_day(0), end_date=_day(1)),
        Task(id="y", start_date=_day(2), end_date=_day(3), dependencies=["x"]),
    ]

    (connector,) = _route(tasks, {"Uncategorized"})

    assert connector.end[0] - connector.start[0] == 40
    assert connector.curvature == pytest.approx(40 / 3)


def test_satisfied_only_when_source_completed() -> None:
    connectors = {(c.source_id, c.target_id): c for c in _route(_tasks(), {"Design", "Build"})}

    assert connectors[("A", "B")].satisfied
    assert connectors[("A", "B")].style == "solid"
    assert not connectors[("B", "D")].satisfied
    assert connectors[("B", "D")].style == "dashed"


def test_collapsed_group_hides_its_connectors() -> None:
    connectors = _route(_tasks(), {"Design"})

    assert [(c.source_id, c.target_id) for c in connectors] == [("A", "B")]
    referenced = {c.source_id for c in connectors} | {c.target_id for c in connectors}
    assert not referenced & {"C", "D"}


def test_undated_and_self_edges_are_skipped() -> None:
    tasks = [
        Task(id="a", start_date=_day(0), end_date=_day(1), dependencies=["a"]),
        Task(id="b", dependencies=["a"]),
        Task(id="c", start_date=_day(4), end_date=_day(5), dependencies=["a", "gone"]),
    ]

    connectors = _route(tasks, {"Uncategorized"})

    assert [(c.source_id, c.target_id) for c in connectors] == [("a", "c")]


def test_custom_row_height() -> None:
    tasks = _tasks()
    proj = projection(compute_range(tasks), ZoomMode.DAY)
    layout = layout_rows(tasks, {"Design"})

    (connector,) = route_connectors(build_graph(tasks), tasks, layout, proj, row_height=20)

    assert connector.start[1] == row_center(1, 20) == 30
    assert connector.end[1] == row_center(2, 20) == 50


def test_invalid_arguments_raise() -> None:
    tasks = _tasks()
    proj = projection(compute_range(tasks), ZoomMode.DAY)
    layout = layout_rows(tasks, set())

    with pytest.raises(TypeError):
        route_connectors(build_graph(tasks), tasks, None, proj)
    with pytest.raises(ValueError):
        route_connectors(build_graph(tasks), tasks, layout, proj, row_height=0)


@pytest.mark.parametrize(
    ("label", "style"),
    [
        ("COMPLETED", "solid"),
        ("Completed", "solid"),
        ("REVIEW_REQUIRED", "dashed"),
        ("in-progress", "dashed"),
        ("not-started", "dashed"),
    ],
)
def test_service_status_labels_are_accepted(label: str, style: str) -> None:
    tasks = [
        Task(id="src", start_date=_day(0), end_date=_day(1), status=label),
        Task(id="dst", start_date=_day(2), end_date=_day(3), dependencies=["src"]),
    ]

    (connector,) = _route(tasks, {"Uncategorized"})

    assert connector.style == style
    assert connector.satisfied is (style == "solid")
