"""
Health check endpoints.
"""
from aiohttp import web

from reel_backend.shared import Result

from ..core import _json_response, _require_services, get_services_error


def register_health_routes(routes: web.RouteTableDef) -> None:
    """Register liveness and cache maintenance routes."""

    @routes.get("/health")
    async def health(request):
        """Liveness: answers as long as the process is up."""
        return _json_response(Result.Ok({"status": "ok", "services_error": get_services_error()}))

    @routes.get("/api/health/tools")
    async def health_tools(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        ffprobe = svc.get("ffprobe")
        return _json_response(Result.Ok({"ffprobe": bool(ffprobe and ffprobe.is_available())}))

    @routes.post("/api/cache/empty")
    async def empty_caches(request):
        """Drop every cached catalog record; returns the counts that were held."""
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        probe = svc.get("probe")
        if hasattr(probe, "clear"):
            probe.clear()
        return _json_response(svc["catalog"].empty_caches())
