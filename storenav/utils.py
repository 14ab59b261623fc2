"""Utility helpers shared across storenav modules.

Purpose:
- Convert node keys and routes to JSON-safe payloads.
- Convert numpy cell grids to nested Python lists.
- Read numeric settings from the environment.
"""

from __future__ import annotations

import os
from typing import Any, Iterable

import numpy as np

from storenav.layout import NodeKey, PointOfInterest, Portal


def node_to_dict(node: NodeKey) -> dict[str, int]:
    f, r, c = node
    return {"floor": int(f), "row": int(r), "col": int(c)}


def to_serializable_path(path: Iterable[NodeKey]) -> list[dict[str, int]]:
    """Convert `(floor, row, col)` tuples to JSON-friendly dictionary objects."""
    return [node_to_dict(node) for node in path]


def json_grid(grid: np.ndarray) -> list[list[int]]:
    """Convert a numpy cell grid to nested Python int lists."""
    if not isinstance(grid, np.ndarray) or grid.ndim != 2:
        raise ValueError("grid must be a 2D numpy array")
    return grid.astype(int).tolist()


def serialize_point_of_interest(poi: PointOfInterest) -> dict[str, Any]:
    return {
        "node": node_to_dict(poi.node),
        "name": poi.name,
        "brand": poi.brand,
        "category": poi.category,
        "rating": poi.rating,
        "bogo": poi.bogo,
        "discount_percent": poi.discount_percent,
        "catalog": [{"name": item.name, "price": item.price} for item in poi.catalog],
    }


def serialize_portal(portal: Portal) -> dict[str, Any]:
    return {
        "kind": portal.kind.value,
        "origin": node_to_dict(portal.origin),
        "destination": node_to_dict(portal.destination) if portal.destination is not None else None,
    }


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
