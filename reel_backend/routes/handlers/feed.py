"""
Home feed endpoint.
"""
from aiohttp import web

from ..core import _json_response, _require_services


def register_feed_routes(routes: web.RouteTableDef) -> None:
    """Register the home feed route."""

    @routes.get("/api/feed")
    async def feed(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        return _json_response(await svc["feeds"].build_feed())
