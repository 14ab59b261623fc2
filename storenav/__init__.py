"""StoreNav: multi-floor indoor navigation graph and routing engine."""

from storenav.errors import InvalidLayout, NodeNotFound, NoPathFound, RenameTargetMissing, StoreNavError
from storenav.graph import GraphAdapter
from storenav.layout import LayoutStore, load_layout, load_layout_file
from storenav.routing import Route, Router

__all__ = [
    "GraphAdapter",
    "InvalidLayout",
    "LayoutStore",
    "NoPathFound",
    "NodeNotFound",
    "RenameTargetMissing",
    "Route",
    "Router",
    "StoreNavError",
    "load_layout",
    "load_layout_file",
]
