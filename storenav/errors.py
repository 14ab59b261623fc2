"""Error taxonomy shared by the layout store, router and HTTP layer."""

from __future__ import annotations

from typing import Any


class StoreNavError(Exception):
    """Base class for navigation engine errors."""


class InvalidLayout(StoreNavError, ValueError):
    """Layout description is malformed or has overlapping entities."""


class NodeNotFound(StoreNavError, KeyError):
    """A supplied node key (or floor id) does not exist in the layout."""

    def __init__(self, node: Any, message: str | None = None) -> None:
        self.node = node
        self.message = message or f"Node {node!r} does not exist in the layout"
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class NoPathFound(StoreNavError):
    """Both endpoints exist but the graph has no route between them."""

    def __init__(self, start: Any, goal: Any) -> None:
        self.start = start
        self.goal = goal
        super().__init__(f"No navigable path from {start!r} to {goal!r}")


class RenameTargetMissing(StoreNavError, KeyError):
    """Rename requested on a node that hosts no point of interest."""

    def __init__(self, node: Any) -> None:
        self.node = node
        self.message = f"No point of interest at {node!r}"
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
