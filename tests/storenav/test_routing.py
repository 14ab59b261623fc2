"""Unit tests for storenav.routing."""

from __future__ import annotations

import itertools

import pytest

from storenav.errors import NodeNotFound, NoPathFound
from storenav.layout import LayoutStore, load_layout
from storenav.routing import Router


def _line_with_exits() -> LayoutStore:
    """Single corridor; exits 7, 3 and 9 cells away from column 10."""
    return load_layout(
        {
            "floors": [{"id": 0, "rows": 1, "cols": 21}],
            "portals": [
                {"origin": [0, 0, 3], "kind": "exit"},
                {"origin": [0, 0, 13], "kind": "exit"},
                {"origin": [0, 0, 19], "kind": "exit"},
            ],
        }
    )


def test_same_start_and_goal_returns_single_node(escalator_layout: LayoutStore) -> None:
    """start == goal yields a one-node path on every cell."""
    router = Router(escalator_layout)
    for floor in escalator_layout.floors():
        for row, col in itertools.product(range(floor.rows), range(floor.cols)):
            node = (floor.id, row, col)
            assert router.shortest_path(node, node) == (node,)


def test_escalator_route_both_directions(escalator_layout: LayoutStore) -> None:
    """Escalators route up and down."""
    router = Router(escalator_layout)

    assert router.shortest_path((0, 2, 2), (1, 2, 2)) == ((0, 2, 2), (1, 2, 2))
    assert router.shortest_path((1, 2, 2), (0, 2, 2)) == ((1, 2, 2), (0, 2, 2))


def test_floor_without_portal_is_unreachable(escalator_layout: LayoutStore) -> None:
    """Disconnected floors give an empty path and NoPathFound."""
    router = Router(escalator_layout)

    assert router.shortest_path((0, 0, 0), (2, 0, 0)) == ()
    with pytest.raises(NoPathFound):
        router.route((0, 0, 0), (2, 0, 0))


def test_unknown_node_raises_instead_of_empty_path(escalator_layout: LayoutStore) -> None:
    """Unknown nodes raise instead of returning an empty path."""
    router = Router(escalator_layout)

    with pytest.raises(NodeNotFound):
        router.shortest_path((0, 0, 0), (0, 8, 0))
    with pytest.raises(NodeNotFound):
        router.shortest_path((7, 0, 0), (0, 0, 0))


def test_path_is_minimal_on_open_floor(escalator_layout: LayoutStore) -> None:
    """Open floors route in Manhattan distance."""
    router = Router(escalator_layout)
    path = router.shortest_path((2, 0, 0), (2, 7, 11))

    assert path[0] == (2, 0, 0)
    assert path[-1] == (2, 7, 11)
    assert len(path) == 7 + 11 + 1


def test_paths_follow_neighbor_relation(demo_router: Router, demo_layout: LayoutStore) -> None:
    """Every step is an adapter edge and no node repeats."""
    pois = [p.node for p in demo_layout.points_of_interest()]
    for start, goal in itertools.permutations(pois, 2):
        path = demo_router.shortest_path(start, goal)
        assert path, f"{start} -> {goal} should be reachable"
        assert path[0] == start and path[-1] == goal
        for a, b in zip(path, path[1:]):
            assert demo_router.adapter.is_neighbor(a, b)
        assert len(set(path)) == len(path)


def test_path_length_is_symmetric(demo_router: Router) -> None:
    """Reverse routes have the same length."""
    forward = demo_router.shortest_path((0, 7, 5), (2, 1, 3))
    backward = demo_router.shortest_path((2, 1, 3), (0, 7, 5))
    assert len(forward) == len(backward)


def test_cross_floor_route_reports_transitions(demo_router: Router) -> None:
    """Cross-floor routes list their portal hops."""
    route = demo_router.route((0, 7, 5), (2, 1, 3))

    assert route.floors_visited[0] == 0
    assert route.floors_visited[-1] == 2
    assert route.hops == len(route.nodes) - 1
    assert len(route.transitions) >= 1
    for a, b in route.transitions:
        assert a[0] != b[0]


def test_portal_shortcut_beats_walking() -> None:
    """A reversed lift beats walking the corridor."""
    layout = load_layout(
        {
            "floors": [{"id": 0, "rows": 1, "cols": 10}],
            "portals": [{"origin": [0, 0, 9], "destination": [0, 0, 0], "kind": "lift"}],
        }
    )
    router = Router(layout)

    # Reverse traversal of the lift: 0 -> 9 directly.
    assert router.shortest_path((0, 0, 0), (0, 0, 9)) == ((0, 0, 0), (0, 0, 9))


def test_nearest_reachable_picks_shortest_candidate() -> None:
    """Multi-target search picks the closest candidate."""
    layout = _line_with_exits()
    router = Router(layout)
    candidates = [(0, 0, 3), (0, 0, 13), (0, 0, 19)]

    route = router.nearest_reachable((0, 0, 10), candidates)

    assert route is not None
    assert route.goal == (0, 0, 13)
    assert route.nodes == router.shortest_path((0, 0, 10), (0, 0, 13))
    assert route.hops == 3


def test_nearest_exit_uses_exit_portals() -> None:
    """Exit search considers exit portals only."""
    router = Router(_line_with_exits())
    route = router.nearest_exit((0, 0, 10))

    assert route is not None
    assert route.goal == (0, 0, 13)


def test_nearest_tie_broken_by_candidate_order() -> None:
    """Equal distances go to the earlier candidate."""
    router = Router(_line_with_exits())

    # (0, 0, 3) and (0, 0, 13) are both 5 hops from column 8.
    first = router.nearest_reachable((0, 0, 8), [(0, 0, 13), (0, 0, 3)])
    second = router.nearest_reachable((0, 0, 8), [(0, 0, 3), (0, 0, 13)])

    assert first.goal == (0, 0, 13)
    assert second.goal == (0, 0, 3)


def test_nearest_reachable_start_is_candidate(escalator_layout: LayoutStore) -> None:
    """Start itself wins at zero hops."""
    router = Router(escalator_layout)
    route = router.nearest_reachable((0, 1, 1), [(0, 5, 5), (0, 1, 1)])
    assert route.nodes == ((0, 1, 1),)


def test_nearest_reachable_none_when_unreachable(escalator_layout: LayoutStore) -> None:
    """No reachable candidate gives None."""
    router = Router(escalator_layout)

    assert router.nearest_reachable((0, 0, 0), [(2, 0, 0), (2, 7, 11)]) is None
    assert router.nearest_reachable((0, 0, 0), []) is None


def test_nearest_reachable_unknown_candidate_raises(escalator_layout: LayoutStore) -> None:
    """Unknown candidates raise NodeNotFound."""
    router = Router(escalator_layout)
    with pytest.raises(NodeNotFound):
        router.nearest_reachable((0, 0, 0), [(0, 1, 1), (3, 0, 0)])


def test_demo_nearest_exit_from_entrance(demo_router: Router) -> None:
    """Demo mall: closest exit from the entrance."""
    route = demo_router.nearest_exit((0, 7, 5))

    assert route.goal == (0, 7, 0)
    assert route.hops == 5


def test_demo_nearest_washroom_from_second_floor(demo_router: Router) -> None:
    """Demo mall: washroom on the same floor."""
    route = demo_router.nearest_of_kind((2, 1, 3), "washroom")

    assert route.goal == (2, 0, 0)
    assert route.hops == 4


def test_tour_chains_legs(demo_router: Router) -> None:
    """Tour is the concatenation of its legs."""
    stops = [(1, 1, 4), (1, 5, 9)]
    route = demo_router.tour((0, 7, 5), stops)

    leg1 = demo_router.shortest_path((0, 7, 5), (1, 1, 4))
    leg2 = demo_router.shortest_path((1, 1, 4), (1, 5, 9))
    assert route.nodes == leg1 + leg2[1:]
    assert route.goal == (1, 5, 9)


def test_tour_unreachable_leg_raises(escalator_layout: LayoutStore) -> None:
    """An unreachable leg fails the whole tour."""
    router = Router(escalator_layout)
    with pytest.raises(NoPathFound):
        router.tour((0, 0, 0), [(1, 0, 0), (2, 0, 0)])


def test_visited_cap_stops_search(escalator_layout: LayoutStore) -> None:
    """Expansion cap gives up on distant goals only."""
    router = Router(escalator_layout, max_visited=5)

    assert router.shortest_path((0, 0, 0), (0, 7, 11)) == ()
    assert router.shortest_path((0, 0, 0), (0, 0, 1)) == ((0, 0, 0), (0, 0, 1))


def test_non_integer_node_raises(escalator_layout: LayoutStore) -> None:
    """Fractional coordinates never produce a path of phantom nodes."""
    router = Router(escalator_layout)

    with pytest.raises(NodeNotFound):
        router.shortest_path((0, 1.5, 2), (0, 3.5, 2))
    with pytest.raises(NodeNotFound):
        router.nearest_reachable((0, 1, 2), [(0, 3.5, 2)])


def test_adjacent_same_floor_portal_counts_as_transition() -> None:
    """Transitions come from the portal index, not from step distance."""
    layout = load_layout(
        {
            "floors": [{"id": 0, "rows": 1, "cols": 3}],
            "portals": [{"origin": [0, 0, 1], "destination": [0, 0, 2], "kind": "escalator"}],
        }
    )
    router = Router(layout)

    forward = router.route((0, 0, 1), (0, 0, 2))
    backward = router.route((0, 0, 2), (0, 0, 1))
    walk = router.route((0, 0, 1), (0, 0, 0))

    assert forward.transitions == (((0, 0, 1), (0, 0, 2)),)
    assert backward.transitions == (((0, 0, 2), (0, 0, 1)),)
    assert walk.transitions == ()
