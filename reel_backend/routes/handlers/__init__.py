"""
Route handlers.
"""
from .catalog import register_catalog_routes
from .feed import register_feed_routes
from .health import register_health_routes
from .progress import register_progress_routes

__all__ = [
    "register_catalog_routes",
    "register_feed_routes",
    "register_health_routes",
    "register_progress_routes",
]
