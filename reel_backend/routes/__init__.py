"""
Modular route system for Reel Catalog.
Importing this package is side-effect free; route registration is explicit.
"""
from .registry import build_routes, register_routes

__all__ = ["build_routes", "register_routes"]
