"""Graph adapter deriving node neighbours from a layout store.

Edges come from two sources:
- 4-way grid adjacency on the node's own floor (every cell is walkable)
- Portals, traversed forwards (origin -> destination) and in reverse

Reverse edges are looked up through an index built once at construction, so
`neighbors` never re-scans the portal list.
"""

from __future__ import annotations

from storenav.layout import LayoutStore, NodeKey

# Fixed order keeps BFS tie-breaking reproducible: up, down, left, right.
GRID_MOVES: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


class GraphAdapter:
    """Neighbour enumeration over a `LayoutStore`."""

    def __init__(self, layout: LayoutStore) -> None:
        self.layout = layout
        self._forward: dict[NodeKey, NodeKey] = {}
        self._reverse: dict[NodeKey, list[NodeKey]] = {}

        for portal in layout.all_portals():
            if not portal.is_traversal_edge:
                continue
            self._forward[portal.origin] = portal.destination
            self._reverse.setdefault(portal.destination, []).append(portal.origin)

    def neighbors(self, node: NodeKey) -> tuple[NodeKey, ...]:
        """Return deduplicated neighbours in deterministic order.

        Order: grid moves (up, down, left, right), then the node's own portal
        destination, then origins of portals terminating here in declaration
        order.

        Raises:
            NodeNotFound: If `node` is not in the layout.
        """
        f, r, c = self.layout.require_node(node)
        floor = self.layout.get_floor(f)

        out: list[NodeKey] = []
        seen: set[NodeKey] = set()

        def add(candidate: NodeKey) -> None:
            if candidate in seen or candidate == node:
                return
            seen.add(candidate)
            out.append(candidate)

        for dr, dc in GRID_MOVES:
            if floor.contains(r + dr, c + dc):
                add((f, r + dr, c + dc))

        destination = self._forward.get(node)
        if destination is not None:
            add(destination)

        for origin in self._reverse.get(node, ()):
            add(origin)

        return tuple(out)

    def is_neighbor(self, a: NodeKey, b: NodeKey) -> bool:
        return b in self.neighbors(a)

    def reverse_origins(self, node: NodeKey) -> tuple[NodeKey, ...]:
        """Origins of every portal terminating at `node`, in declaration order."""
        return tuple(self._reverse.get(node, ()))

    def is_portal_step(self, a: NodeKey, b: NodeKey) -> bool:
        """True when moving `a -> b` crosses a portal, in either direction."""
        return self._forward.get(a) == b or b in self._reverse.get(a, ())
