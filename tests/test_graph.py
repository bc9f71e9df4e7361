from gantt_planner.graph import build_graph, detect_cycles, find_cycle_members
from gantt_planner.models import Task


def _normalize(cycle):
    """Rotate a closed cycle so it starts at its smallest id."""
    body = cycle[:-1]
    pivot = body.index(min(body))
    rotated = body[pivot:] + body[:pivot]
    return rotated + [rotated[0]]


def test_build_graph_drops_dangling_dependencies() -> None:
    tasks = [
        Task(id="a"),
        Task(id="b", dependencies=["a", "elsewhere"]),
        Task(id="c", dependencies=["b", "b", "a"]),
    ]

    graph = build_graph(tasks)

    assert graph.nodes == ("a", "b", "c")
    assert graph.edges == (("a", "b"), ("b", "c"), ("a", "c"))
    assert graph.successors["a"] == ("b", "c")
    assert graph.predecessors["c"] == ("b", "a")
    assert "elsewhere" not in graph


def test_build_graph_keeps_first_of_duplicate_ids() -> None:
    tasks = [
        Task(id="a"),
        Task(id="b", dependencies=["a"]),
        Task(id="b", dependencies=[]),
    ]

    graph = build_graph(tasks)

    assert graph.nodes == ("a", "b")
    assert graph.edges == (("a", "b"),)


def test_acyclic_graph_reports_no_cycles() -> None:
    tasks = [
        Task(id="a"),
        Task(id="b", dependencies=["a"]),
        Task(id="c", dependencies=["a"]),
        Task(id="d", dependencies=["b", "c"]),
    ]

    assert detect_cycles(build_graph(tasks)) == []


def test_two_task_cycle() -> None:
    tasks = [Task(id="A", dependencies=["B"]), Task(id="B", dependencies=["A"])]

    cycles = detect_cycles(build_graph(tasks))

    assert [_normalize(cycle) for cycle in cycles] == [["A", "B", "A"]]


def test_self_dependency_is_a_cycle_of_length_one() -> None:
    cycles = detect_cycles(build_graph([Task(id="solo", dependencies=["solo"])]))

    assert cycles == [["solo", "solo"]]


def test_every_disjoint_cycle_is_reported() -> None:
    tasks = [
        Task(id="a1", dependencies=["a2"]),
        Task(id="a2", dependencies=["a1"]),
        Task(id="b1", dependencies=["b3"]),
        Task(id="b2", dependencies=["b1"]),
        Task(id="b3", dependencies=["b2"]),
        Task(id="c", dependencies=["c"]),
        Task(id="free"),
        Task(id="tail", dependencies=["free", "a1"]),
    ]

    cycles = detect_cycles(build_graph(tasks))

    assert len(cycles) == 3
    assert sorted(_normalize(cycle) for cycle in cycles) == [
        ["a1", "a2", "a1"],
        ["b1", "b2", "b3", "b1"],
        ["c", "c"],
    ]
    assert find_cycle_members(build_graph(tasks)) == {"a1", "a2", "b1", "b2", "b3", "c"}


def test_long_chain_does_not_hit_recursion_limit() -> None:
    size = 5000
    tasks = [Task(id=0)] + [Task(id=index, dependencies=[index - 1]) for index in range(1, size)]
    tasks[0].dependencies = [size - 1]

    cycles = detect_cycles(build_graph(tasks))

    assert len(cycles) == 1
    assert len(cycles[0]) == size + 1


def test_back_edges_into_a_deep_path_each_close_a_cycle() -> None:
    size = 400
    tasks = [Task(id=0, dependencies=list(range(1, size)))]
    tasks += [Task(id=index, dependencies=[index - 1]) for index in range(1, size)]

    cycles = detect_cycles(build_graph(tasks))

    assert len(cycles) == size - 1
    assert cycles[0] == [0, 1, 0]
    assert cycles[-1] == list(range(size)) + [0]
    assert all(cycle == list(range(len(cycle) - 1)) + [0] for cycle in cycles)
