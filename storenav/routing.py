"""Breadth-first routing over the navigation graph.

Purpose:
- Compute minimum-hop routes between two nodes, across floors via portals.
- Find the nearest of a candidate set (e.g. every exit) with one multi-target
  BFS instead of one search per candidate.

Usage example:
    >>> router = Router(layout)
    >>> router.shortest_path((0, 2, 2), (1, 2, 2))
    ((0, 2, 2), (1, 2, 2))
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from storenav.errors import NoPathFound
from storenav.graph import GraphAdapter
from storenav.layout import LayoutStore, NodeKey, PortalKind

logger = logging.getLogger(__name__)

Path = tuple[NodeKey, ...]


@dataclass(frozen=True, slots=True)
class Route:
    """Immutable route from `start` to `goal` inclusive."""

    start: NodeKey
    goal: NodeKey
    nodes: Path
    transitions: tuple[tuple[NodeKey, NodeKey], ...] = field(default=())

    @property
    def hops(self) -> int:
        return max(0, len(self.nodes) - 1)

    @property
    def floors_visited(self) -> tuple[int, ...]:
        """Floors in the order the route enters them, without repeats in a row."""
        floors: list[int] = []
        for f, _, _ in self.nodes:
            if not floors or floors[-1] != f:
                floors.append(f)
        return tuple(floors)


def _unwind(parent: dict[NodeKey, NodeKey | None], goal: NodeKey) -> Path:
    route = [goal]
    while True:
        prev = parent[route[-1]]
        if prev is None:
            break
        route.append(prev)
    route.reverse()
    return tuple(route)


class Router:
    """Unweighted shortest-path search over a `GraphAdapter`.

    Args:
        layout: Loaded layout store.
        adapter: Optional pre-built adapter; one is created from `layout` otherwise.
        max_visited: Cap on expanded nodes per search. `None` or 0 disables it.
    """

    def __init__(
        self,
        layout: LayoutStore,
        adapter: GraphAdapter | None = None,
        max_visited: int | None = None,
    ) -> None:
        self.layout = layout
        self.adapter = adapter or GraphAdapter(layout)
        self.max_visited = max_visited or None

    def _transitions(self, path: Path) -> tuple[tuple[NodeKey, NodeKey], ...]:
        return tuple((a, b) for a, b in zip(path, path[1:]) if self.adapter.is_portal_step(a, b))

    def _cap_reached(self, expanded: int) -> bool:
        if self.max_visited is not None and expanded >= self.max_visited:
            logger.warning("BFS stopped after expanding %d nodes (cap reached)", expanded)
            return True
        return False

    def shortest_path(self, start: NodeKey, goal: NodeKey) -> Path:
        """Return the minimum-hop node sequence from `start` to `goal`.

        Returns:
            `(start,)` when both endpoints are equal, an empty tuple when `goal`
            is unreachable, otherwise the first minimal path discovered in
            adapter neighbour order.

        Raises:
            NodeNotFound: If `start` or `goal` is not in the layout.
        """
        self.layout.require_node(start)
        self.layout.require_node(goal)
        if start == goal:
            return (start,)

        queue: deque[NodeKey] = deque([start])
        parent: dict[NodeKey, NodeKey | None] = {start: None}
        expanded = 0

        while queue:
            current = queue.popleft()
            if current == goal:
                path = _unwind(parent, goal)
                logger.debug("Route %s -> %s: %d hops, %d expanded", start, goal, len(path) - 1, expanded)
                return path

            if self._cap_reached(expanded):
                return ()
            expanded += 1

            for nxt in self.adapter.neighbors(current):
                if nxt in parent:
                    continue
                parent[nxt] = current
                queue.append(nxt)

        logger.debug("No route %s -> %s after expanding %d nodes", start, goal, expanded)
        return ()

    def route(self, start: NodeKey, goal: NodeKey) -> Route:
        """Like `shortest_path`, but raises `NoPathFound` instead of returning empty."""
        path = self.shortest_path(start, goal)
        if not path:
            raise NoPathFound(start, goal)
        return Route(start=start, goal=goal, nodes=path, transitions=self._transitions(path))

    def nearest_reachable(self, start: NodeKey, candidates: Iterable[NodeKey]) -> Route | None:
        """Find the candidate with the shortest route from `start`.

        Runs a single layered BFS and stops at the first layer containing any
        candidate. Within that layer the candidate appearing earliest in
        `candidates` wins, which gives the same answer as routing to every
        candidate separately and keeping the first minimum.

        Returns:
            Route to the winning candidate, or None if no candidate is reachable.

        Raises:
            NodeNotFound: If `start` or any candidate is not in the layout.
        """
        self.layout.require_node(start)
        order: dict[NodeKey, int] = {}
        for candidate in candidates:
            self.layout.require_node(candidate)
            order.setdefault(candidate, len(order))
        if not order:
            return None

        parent: dict[NodeKey, NodeKey | None] = {start: None}
        frontier: list[NodeKey] = [start]
        expanded = 0

        while frontier:
            hits = [node for node in frontier if node in order]
            if hits:
                best = min(hits, key=order.__getitem__)
                path = _unwind(parent, best)
                logger.debug("Nearest of %d candidates from %s: %s (%d hops)", len(order), start, best, len(path) - 1)
                return Route(start=start, goal=best, nodes=path, transitions=self._transitions(path))

            next_frontier: list[NodeKey] = []
            for current in frontier:
                if self._cap_reached(expanded):
                    return None
                expanded += 1
                for nxt in self.adapter.neighbors(current):
                    if nxt in parent:
                        continue
                    parent[nxt] = current
                    next_frontier.append(nxt)
            frontier = next_frontier

        return None

    def nearest_of_kind(self, start: NodeKey, kind: PortalKind | str) -> Route | None:
        """Nearest portal endpoint (origin) of the given kind."""
        candidates = [portal.origin for portal in self.layout.portals_of_kind(kind)]
        return self.nearest_reachable(start, candidates)

    def nearest_exit(self, start: NodeKey) -> Route | None:
        """Emergency search: nearest reachable exit."""
        return self.nearest_of_kind(start, PortalKind.EXIT)

    def tour(self, start: NodeKey, stops: Iterable[NodeKey]) -> Route:
        """Chain shortest paths through `stops` in the given order.

        Raises:
            NodeNotFound: If any node is not in the layout.
            NoPathFound: If any leg is unreachable.
        """
        self.layout.require_node(start)
        nodes: list[NodeKey] = [start]
        current = start
        for stop in stops:
            leg = self.route(current, stop)
            nodes.extend(leg.nodes[1:])
            current = stop

        path = tuple(nodes)
        return Route(start=start, goal=current, nodes=path, transitions=self._transitions(path))
