"""Bundled demo mall layout used when no layout file is configured."""

from __future__ import annotations

from typing import Any

from storenav.layout import LayoutStore, load_layout

DEMO_LAYOUT: dict[str, Any] = {
    "floors": [
        {"id": 0, "rows": 8, "cols": 12, "name": "Ground Floor"},
        {"id": 1, "rows": 8, "cols": 12, "name": "First Floor"},
        {"id": 2, "rows": 8, "cols": 12, "name": "Second Floor"},
    ],
    "points_of_interest": [
        {"node": [0, 7, 5], "name": "Entrance", "category": "amenity"},
        {"node": [0, 1, 8], "name": "Mall Office", "category": "amenity"},
        {"node": [0, 4, 10], "name": "Billing", "category": "amenity"},
        {
            "node": [1, 1, 4],
            "name": "Grocery",
            "brand": "FreshMart",
            "rating": 4.2,
            "discount_percent": 10,
            "catalog": [
                {"name": "Rice 1kg", "price": 2.5},
                {"name": "Milk 1L", "price": 1.2},
                {"name": "Apples 1kg", "price": 3.0},
            ],
        },
        {
            "node": [1, 5, 9],
            "name": "Clothing",
            "brand": "UrbanThreads",
            "rating": 4.5,
            "bogo": True,
            "catalog": [
                {"name": "T-Shirt", "price": 12.99},
                {"name": "Jeans", "price": 39.99},
            ],
        },
        {
            "node": [2, 1, 3],
            "name": "Electronics",
            "brand": "VoltHub",
            "rating": 4.0,
            "discount_percent": 15,
            "catalog": [
                {"name": "Headphones", "price": 59.99},
                {"name": "Charger", "price": 19.99},
            ],
        },
        {
            "node": [2, 6, 10],
            "name": "Movies",
            "brand": "CineStar",
            "rating": 4.7,
            "catalog": [
                {"name": "Ticket", "price": 9.5},
                {"name": "Popcorn", "price": 4.0},
            ],
        },
    ],
    "portals": [
        {"origin": [0, 2, 2], "destination": [1, 2, 2], "kind": "escalator"},
        {"origin": [1, 2, 9], "destination": [2, 2, 9], "kind": "escalator"},
        {"origin": [0, 6, 6], "destination": [1, 6, 6], "kind": "lift"},
        {"origin": [1, 6, 6], "destination": [2, 6, 6], "kind": "lift"},
        {"origin": [1, 0, 11], "kind": "washroom"},
        {"origin": [2, 0, 0], "kind": "washroom"},
        {"origin": [0, 7, 0], "kind": "exit"},
        {"origin": [0, 0, 11], "kind": "exit"},
        {"origin": [0, 7, 11], "kind": "exit"},
    ],
}


def build_demo_layout() -> LayoutStore:
    """Load a fresh copy of the demo layout (renames never leak between copies)."""
    return load_layout(DEMO_LAYOUT)
