"""Layout store for multi-floor indoor maps.

Purpose:
- Validate a layout description (floors, points of interest, portals).
- Provide O(1) keyed lookups used by the graph adapter and HTTP layer.
- Own the single runtime mutation: renaming a point of interest.

Usage example:
    >>> from storenav.layout import load_layout
    >>> layout = load_layout({"floors": [{"id": 0, "rows": 4, "cols": 4, "name": "Ground"}]})
    >>> layout.has_node((0, 3, 3))
    True
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import numpy as np
from pydantic import BaseModel, Field, ValidationError, model_validator

from storenav.errors import InvalidLayout, NodeNotFound, RenameTargetMissing

logger = logging.getLogger(__name__)

NodeKey = tuple[int, int, int]  # (floor, row, col)

CELL_EMPTY = 0
CELL_POINT_OF_INTEREST = 1
CELL_PORTAL = 2


class PortalKind(str, Enum):
    """Kinds of portal endpoints placed on the map."""

    LIFT = "lift"
    ESCALATOR = "escalator"
    EXIT = "exit"
    WASHROOM = "washroom"


@dataclass(frozen=True, slots=True)
class Floor:
    """One floor of the building; immutable after load."""

    id: int
    rows: int
    cols: int
    name: str

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols


@dataclass(frozen=True, slots=True)
class CatalogItem:
    """Priced line item sold at a point of interest."""

    name: str
    price: float


@dataclass(frozen=True, slots=True)
class PointOfInterest:
    """Shop or amenity attached to exactly one node."""

    node: NodeKey
    name: str
    brand: str = ""
    rating: float = 0.0
    bogo: bool = False
    discount_percent: float = 0.0
    catalog: tuple[CatalogItem, ...] = ()
    category: str = "shop"

    def catalog_item(self, item_name: str) -> CatalogItem:
        """Return catalog entry by name or raise KeyError."""
        for item in self.catalog:
            if item.name == item_name:
                return item
        raise KeyError(f"'{item_name}' is not sold at {self.name}")


@dataclass(frozen=True, slots=True)
class Portal:
    """Declared shortcut edge, traversable in both directions.

    Exits never have a destination; a washroom may omit one, in which case it
    is a terminal amenity like an exit.
    """

    origin: NodeKey
    destination: NodeKey | None
    kind: PortalKind

    @property
    def is_traversal_edge(self) -> bool:
        return self.kind is not PortalKind.EXIT and self.destination is not None


# ---------------------------------------------------------------------------
# Layout description schema (input boundary).
# ---------------------------------------------------------------------------


class FloorSpec(BaseModel):
    id: int = Field(..., ge=0)
    rows: int = Field(..., gt=0)
    cols: int = Field(..., gt=0)
    name: str = ""


class CatalogItemSpec(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)


class PointOfInterestSpec(BaseModel):
    node: tuple[int, int, int]
    name: str = Field(..., min_length=1)
    brand: str = ""
    rating: float = Field(default=0.0, ge=0, le=5)
    bogo: bool = False
    discount_percent: float = Field(default=0.0, ge=0, le=100)
    catalog: list[CatalogItemSpec] = Field(default_factory=list)
    category: str = "shop"


class PortalSpec(BaseModel):
    origin: tuple[int, int, int]
    destination: tuple[int, int, int] | None = None
    kind: PortalKind

    @model_validator(mode="after")
    def validate_destination(self) -> "PortalSpec":
        """Exits are terminal; lifts and escalators must lead somewhere."""
        if self.kind is PortalKind.EXIT and self.destination is not None:
            raise ValueError(f"exit portal at {self.origin} must not declare a destination")
        if self.kind in (PortalKind.LIFT, PortalKind.ESCALATOR) and self.destination is None:
            raise ValueError(f"{self.kind.value} portal at {self.origin} requires a destination")
        return self


class LayoutDescription(BaseModel):
    """Validated static layout configuration."""

    floors: list[FloorSpec] = Field(..., min_length=1)
    points_of_interest: list[PointOfInterestSpec] = Field(default_factory=list)
    portals: list[PortalSpec] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Store.
# ---------------------------------------------------------------------------


class LayoutStore:
    """Keyed, validated view over floors, points of interest and portals.

    Instances are only produced by `load_layout`; the constructor assumes its
    inputs already satisfy every layout invariant.
    """

    def __init__(
        self,
        floors: dict[int, Floor],
        points_of_interest: dict[NodeKey, PointOfInterest],
        portals: list[Portal],
    ) -> None:
        self._floors = dict(sorted(floors.items()))
        self._pois = dict(points_of_interest)
        self._portals = tuple(portals)
        self._portals_by_origin: dict[NodeKey, list[Portal]] = {}
        for portal in self._portals:
            self._portals_by_origin.setdefault(portal.origin, []).append(portal)
        self._lock = threading.Lock()

    # Floors -----------------------------------------------------------------

    def get_floor(self, floor_id: int) -> Floor:
        try:
            return self._floors[floor_id]
        except KeyError as exc:
            raise NodeNotFound(floor_id, f"Floor {floor_id!r} does not exist") from exc

    def floors(self) -> tuple[Floor, ...]:
        return tuple(self._floors.values())

    def has_node(self, node: Any) -> bool:
        """True when `node` is a well-formed key inside an existing floor."""
        if not isinstance(node, tuple) or len(node) != 3:
            return False
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in node):
            return False
        floor = self._floors.get(node[0])
        return floor is not None and floor.contains(node[1], node[2])

    def require_node(self, node: Any) -> NodeKey:
        if not self.has_node(node):
            raise NodeNotFound(node)
        return node

    # Points of interest -----------------------------------------------------

    def point_of_interest_at(self, node: NodeKey) -> PointOfInterest | None:
        with self._lock:
            return self._pois.get(node)

    def points_of_interest(self, floor_id: int | None = None) -> tuple[PointOfInterest, ...]:
        with self._lock:
            pois = tuple(self._pois.values())
        if floor_id is None:
            return pois
        return tuple(p for p in pois if p.node[0] == floor_id)

    def find_point_of_interest(self, name: str) -> PointOfInterest | None:
        """Case-insensitive lookup by display name."""
        needle = name.strip().casefold()
        for poi in self.points_of_interest():
            if poi.name.casefold() == needle:
                return poi
        return None

    def rename_point_of_interest(self, node: NodeKey, new_name: str) -> PointOfInterest:
        """Rename the point of interest hosted at `node`.

        Raises:
            RenameTargetMissing: If no point of interest lives at `node`.
            ValueError: If `new_name` is blank.
        """
        cleaned = new_name.strip()
        with self._lock:
            current = self._pois.get(node)
            if current is None:
                raise RenameTargetMissing(node)
            if not cleaned:
                raise ValueError("Point of interest name must not be blank")
            renamed = replace(current, name=cleaned)
            self._pois[node] = renamed

        logger.info("Renamed point of interest at %s: %r -> %r", node, current.name, cleaned)
        return renamed

    # Portals ----------------------------------------------------------------

    def portal_at(self, node: NodeKey) -> Portal | None:
        """Portal originating at `node`, preferring the non-exit portal over an exit."""
        portals = self._portals_by_origin.get(node)
        if not portals:
            return None
        for portal in portals:
            if portal.kind is not PortalKind.EXIT:
                return portal
        return portals[0]

    def portals_at(self, node: NodeKey) -> tuple[Portal, ...]:
        return tuple(self._portals_by_origin.get(node, ()))

    def all_portals(self) -> tuple[Portal, ...]:
        return self._portals

    def portals_of_kind(self, kind: PortalKind | str) -> tuple[Portal, ...]:
        kind = PortalKind(kind)
        return tuple(p for p in self._portals if p.kind is kind)

    # Rendering helpers ------------------------------------------------------

    def cell_grid(self, floor_id: int) -> np.ndarray:
        """Classify every cell of a floor for renderers.

        Returns:
            `uint8` array of shape (rows, cols): 0 empty, 1 point of interest,
            2 portal endpoint (origin or destination).
        """
        floor = self.get_floor(floor_id)
        grid = np.full((floor.rows, floor.cols), CELL_EMPTY, dtype=np.uint8)

        for poi in self.points_of_interest(floor_id):
            grid[poi.node[1], poi.node[2]] = CELL_POINT_OF_INTEREST

        for portal in self._portals:
            for endpoint in (portal.origin, portal.destination):
                if endpoint is not None and endpoint[0] == floor_id:
                    grid[endpoint[1], endpoint[2]] = CELL_PORTAL

        return grid


def _check_in_bounds(floors: dict[int, Floor], node: NodeKey, label: str) -> None:
    floor = floors.get(node[0])
    if floor is None:
        raise InvalidLayout(f"{label} {node} references unknown floor {node[0]}")
    if not floor.contains(node[1], node[2]):
        raise InvalidLayout(
            f"{label} {node} is outside floor {floor.id} bounds ({floor.rows}x{floor.cols})"
        )


def load_layout(description: Mapping[str, Any] | LayoutDescription) -> LayoutStore:
    """Validate a layout description and build a `LayoutStore`.

    Args:
        description: Mapping with `floors`, `points_of_interest` and `portals`
            lists, or an already parsed `LayoutDescription`.

    Returns:
        Fully validated layout store.

    Raises:
        InvalidLayout: If any field is malformed, any coordinate falls outside
            its floor, two points of interest share a node, or a node originates
            more than one non-exit portal. No partial store is returned.
    """
    if isinstance(description, LayoutDescription):
        parsed = description
    else:
        try:
            parsed = LayoutDescription.model_validate(description)
        except ValidationError as exc:
            raise InvalidLayout(f"Layout description is malformed: {exc}") from exc

    floors: dict[int, Floor] = {}
    for spec in parsed.floors:
        if spec.id in floors:
            raise InvalidLayout(f"Duplicate floor id {spec.id}")
        floors[spec.id] = Floor(id=spec.id, rows=spec.rows, cols=spec.cols, name=spec.name or f"Floor {spec.id}")

    pois: dict[NodeKey, PointOfInterest] = {}
    for spec in parsed.points_of_interest:
        node = tuple(spec.node)
        _check_in_bounds(floors, node, f"Point of interest '{spec.name}' at")
        if node in pois:
            raise InvalidLayout(
                f"Points of interest '{pois[node].name}' and '{spec.name}' share node {node}"
            )
        pois[node] = PointOfInterest(
            node=node,
            name=spec.name,
            brand=spec.brand,
            rating=float(spec.rating),
            bogo=bool(spec.bogo),
            discount_percent=float(spec.discount_percent),
            catalog=tuple(CatalogItem(name=i.name, price=float(i.price)) for i in spec.catalog),
            category=spec.category,
        )

    portals: list[Portal] = []
    non_exit_origins: set[NodeKey] = set()
    for spec in parsed.portals:
        origin = tuple(spec.origin)
        destination = tuple(spec.destination) if spec.destination is not None else None
        _check_in_bounds(floors, origin, f"{spec.kind.value} portal origin")
        if destination is not None:
            _check_in_bounds(floors, destination, f"{spec.kind.value} portal destination")

        portal = Portal(origin=origin, destination=destination, kind=spec.kind)
        if portal.kind is not PortalKind.EXIT:
            if origin in non_exit_origins:
                raise InvalidLayout(f"Node {origin} is the origin of more than one non-exit portal")
            non_exit_origins.add(origin)
        portals.append(portal)

    store = LayoutStore(floors=floors, points_of_interest=pois, portals=portals)
    logger.info(
        "Loaded layout: %d floors, %d points of interest, %d portals",
        len(floors),
        len(pois),
        len(portals),
    )
    return store


def load_layout_file(path: str | Path) -> LayoutStore:
    """Load a layout description from a JSON file."""
    source = Path(path)
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidLayout(f"{source} is not valid JSON: {exc}") from exc
    return load_layout(raw)
