"""FastAPI routes exposing the multi-floor routing engine.

Endpoints:
- Layout browsing (`/floors`, `/points-of-interest`, `/portals`)
- Routing (`/route`, `/nearest`, `/tour`)
- Shopkeeper edits (`PATCH /points-of-interest/{floor}/{row}/{col}`)
- Cart pricing (`/cart/quote`)

The loaded layout and router live on `app.state`; every app instance owns its
own layout.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from storenav.errors import NodeNotFound, NoPathFound, RenameTargetMissing
from storenav.layout import LayoutStore, NodeKey, PortalKind, load_layout_file
from storenav.pricing import Cart
from storenav.routing import Route, Router
from storenav.sample_layout import build_demo_layout
from storenav.utils import (
    env_int,
    json_grid,
    node_to_dict,
    serialize_point_of_interest,
    serialize_portal,
    to_serializable_path,
)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


class NodeRef(BaseModel):
    """Node coordinate with floor/row/column indexing."""

    floor: int = Field(..., ge=0)
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)

    def key(self) -> NodeKey:
        return (self.floor, self.row, self.col)


class RouteRequest(BaseModel):
    start: NodeRef
    goal: NodeRef


class NearestRequest(BaseModel):
    start: NodeRef
    kind: PortalKind = PortalKind.EXIT


class TourRequest(BaseModel):
    start: NodeRef
    stops: list[NodeRef] = Field(..., min_length=1)


class RenameRequest(BaseModel):
    name: str = Field(..., min_length=1)


class CartItemRequest(BaseModel):
    node: NodeRef
    item: str
    quantity: int = Field(default=1, ge=1)


class CartQuoteRequest(BaseModel):
    items: list[CartItemRequest] = Field(..., min_length=1)


class RouteResponse(BaseModel):
    """Response payload for routing requests."""

    start: dict[str, int]
    goal: dict[str, int]
    path: list[dict[str, int]]
    hops: int
    floors_visited: list[int]
    transitions: list[dict[str, dict[str, int]]]


def _serialize_route(route: Route) -> RouteResponse:
    return RouteResponse(
        start=node_to_dict(route.start),
        goal=node_to_dict(route.goal),
        path=to_serializable_path(route.nodes),
        hops=route.hops,
        floors_visited=list(route.floors_visited),
        transitions=[{"from": node_to_dict(a), "to": node_to_dict(b)} for a, b in route.transitions],
    )


def _error(status_code: int, error: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": error, "message": message})


def _default_layout() -> LayoutStore:
    """Load the configured layout file, or the bundled demo layout."""
    layout_path = os.getenv("STORENAV_LAYOUT_PATH", "").strip()
    if layout_path:
        logger.info("Loading layout from %s", layout_path)
        return load_layout_file(layout_path)
    return build_demo_layout()


def create_app(layout: LayoutStore | None = None, max_visited: int | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        layout: Layout to serve. Defaults to `STORENAV_LAYOUT_PATH` or the demo mall.
        max_visited: BFS expansion cap. Defaults to `STORENAV_MAX_VISITED` (0 = none).
    """
    app = FastAPI(title="StoreNav API", version=API_VERSION)

    raw_origins = os.getenv("STORENAV_CORS_ORIGINS", "*").strip()
    if raw_origins == "*":
        cors_origins = ["*"]
        allow_credentials = False
    else:
        cors_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
        allow_credentials = True

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = layout if layout is not None else _default_layout()
    if max_visited is None:
        max_visited = env_int("STORENAV_MAX_VISITED", 0)
    app.state.layout = store
    app.state.router = Router(store, max_visited=max_visited)

    def get_layout(request: Request) -> LayoutStore:
        return request.app.state.layout

    def get_router(request: Request) -> Router:
        return request.app.state.router

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Health endpoint with layout summary."""
        store = get_layout(request)
        return {
            "status": "ok",
            "version": app.version,
            "floor_count": len(store.floors()),
            "point_of_interest_count": len(store.points_of_interest()),
            "portal_count": len(store.all_portals()),
        }

    @app.get("/floors")
    async def get_floors(request: Request) -> dict[str, Any]:
        """Return floor metadata ordered by floor id."""
        return {
            "floors": [
                {"id": f.id, "name": f.name, "rows": f.rows, "cols": f.cols}
                for f in get_layout(request).floors()
            ]
        }

    @app.get("/floors/{floor_id}")
    async def get_floor(floor_id: int, request: Request) -> dict[str, Any]:
        store = get_layout(request)
        try:
            floor = store.get_floor(floor_id)
        except NodeNotFound as exc:
            raise _error(404, "node_not_found", str(exc)) from exc

        return {
            "id": floor.id,
            "name": floor.name,
            "rows": floor.rows,
            "cols": floor.cols,
            "points_of_interest": [serialize_point_of_interest(p) for p in store.points_of_interest(floor_id)],
            "portals": [
                serialize_portal(p)
                for p in store.all_portals()
                if p.origin[0] == floor_id or (p.destination is not None and p.destination[0] == floor_id)
            ],
        }

    @app.get("/floors/{floor_id}/grid")
    async def get_floor_grid(floor_id: int, request: Request) -> dict[str, Any]:
        """Cell classification grid: 0 empty, 1 point of interest, 2 portal."""
        try:
            grid = get_layout(request).cell_grid(floor_id)
        except NodeNotFound as exc:
            raise _error(404, "node_not_found", str(exc)) from exc

        rows, cols = grid.shape
        return {"floor": floor_id, "grid": json_grid(grid), "grid_shape": {"rows": rows, "cols": cols}}

    @app.get("/points-of-interest")
    async def get_points_of_interest(request: Request, floor: int | None = Query(default=None)) -> dict[str, Any]:
        pois = get_layout(request).points_of_interest(floor)
        return {"points_of_interest": [serialize_point_of_interest(p) for p in pois]}

    @app.patch("/points-of-interest/{floor}/{row}/{col}")
    async def rename_point_of_interest(floor: int, row: int, col: int, payload: RenameRequest, request: Request) -> dict[str, Any]:
        """Shopkeeper edit: rename the point of interest at a node."""
        try:
            poi = get_layout(request).rename_point_of_interest((floor, row, col), payload.name)
        except RenameTargetMissing as exc:
            raise _error(404, "rename_target_missing", str(exc)) from exc
        except ValueError as exc:
            raise _error(400, "invalid_name", str(exc)) from exc

        return serialize_point_of_interest(poi)

    @app.get("/portals")
    async def get_portals(request: Request, kind: PortalKind | None = Query(default=None)) -> dict[str, Any]:
        store = get_layout(request)
        portals = store.all_portals() if kind is None else store.portals_of_kind(kind)
        return {"portals": [serialize_portal(p) for p in portals]}

    @app.post("/route", response_model=RouteResponse)
    async def find_route(payload: RouteRequest, request: Request) -> RouteResponse:
        """Compute the minimum-hop route between two nodes."""
        try:
            route = get_router(request).route(payload.start.key(), payload.goal.key())
        except NodeNotFound as exc:
            raise _error(404, "node_not_found", str(exc)) from exc
        except NoPathFound as exc:
            raise _error(404, "no_path", str(exc)) from exc

        return _serialize_route(route)

    @app.post("/nearest", response_model=RouteResponse)
    async def find_nearest(payload: NearestRequest, request: Request) -> RouteResponse:
        """Route to the nearest portal of a kind (exit by default)."""
        start = payload.start.key()
        try:
            route = get_router(request).nearest_of_kind(start, payload.kind)
        except NodeNotFound as exc:
            raise _error(404, "node_not_found", str(exc)) from exc

        if route is None:
            raise _error(404, "no_path", f"No reachable {payload.kind.value} from {start}")
        return _serialize_route(route)

    @app.post("/tour", response_model=RouteResponse)
    async def find_tour(payload: TourRequest, request: Request) -> RouteResponse:
        """Route through several stops in the given order."""
        try:
            route = get_router(request).tour(payload.start.key(), [s.key() for s in payload.stops])
        except NodeNotFound as exc:
            raise _error(404, "node_not_found", str(exc)) from exc
        except NoPathFound as exc:
            raise _error(404, "no_path", str(exc)) from exc

        return _serialize_route(route)

    @app.post("/cart/quote")
    async def quote_cart(payload: CartQuoteRequest, request: Request) -> dict[str, Any]:
        """Price a cart with discounts and buy-one-get-one offers applied."""
        store = get_layout(request)
        cart = Cart()
        try:
            for entry in payload.items:
                cart.add(store, entry.node.key(), entry.item, entry.quantity)
        except NodeNotFound as exc:
            raise _error(404, "node_not_found", str(exc)) from exc
        except KeyError as exc:
            raise _error(400, "unknown_item", str(exc.args[0])) from exc

        return {
            "items": [
                {
                    "node": node_to_dict(line.node),
                    "shop": line.shop_name,
                    "item": line.item_name,
                    "unit_price": line.unit_price,
                    "quantity": line.quantity,
                    "total": line.total,
                }
                for line in cart.items
            ],
            "total": cart.total(),
            "stops": to_serializable_path(cart.stops()),
        }

    return app
