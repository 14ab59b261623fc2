"""Discount and buy-one-get-one pricing for points of interest.

All price math is a pure function of a `PointOfInterest`; the cart only groups
line items and exposes the stops a shopping tour has to visit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from storenav.errors import NodeNotFound
from storenav.layout import LayoutStore, NodeKey, PointOfInterest


def discounted_price(poi: PointOfInterest, item_price: float) -> float:
    """Unit price after the shop's percentage discount."""
    if item_price < 0:
        raise ValueError("item_price must be >= 0")
    return round(item_price * (1.0 - poi.discount_percent / 100.0), 2)


def paid_units(poi: PointOfInterest, quantity: int) -> int:
    """Units charged for `quantity`; every second unit is free under BOGO."""
    if quantity < 1:
        raise ValueError("quantity must be >= 1")
    return math.ceil(quantity / 2) if poi.bogo else quantity


def line_total(poi: PointOfInterest, item_price: float, quantity: int = 1) -> float:
    return round(discounted_price(poi, item_price) * paid_units(poi, quantity), 2)


@dataclass(frozen=True, slots=True)
class CartLineItem:
    node: NodeKey
    shop_name: str
    item_name: str
    unit_price: float
    quantity: int
    total: float


@dataclass
class Cart:
    """Shopping cart built against a layout."""

    items: list[CartLineItem] = field(default_factory=list)

    def add(self, layout: LayoutStore, node: NodeKey, item_name: str, quantity: int = 1) -> CartLineItem:
        """Add a catalog entry sold at `node`.

        Raises:
            NodeNotFound: If no point of interest is hosted at `node`.
            KeyError: If the point of interest does not sell `item_name`.
            ValueError: If `quantity` is < 1.
        """
        poi = layout.point_of_interest_at(node)
        if poi is None:
            raise NodeNotFound(node, f"No point of interest at {node!r}")

        entry = poi.catalog_item(item_name)
        line = CartLineItem(
            node=node,
            shop_name=poi.name,
            item_name=entry.name,
            unit_price=discounted_price(poi, entry.price),
            quantity=quantity,
            total=line_total(poi, entry.price, quantity),
        )
        self.items.append(line)
        return line

    def total(self) -> float:
        return round(sum(item.total for item in self.items), 2)

    def stops(self) -> list[NodeKey]:
        """Unique shop nodes in the order they were first added."""
        return list(dict.fromkeys(item.node for item in self.items))
