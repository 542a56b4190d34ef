import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from accounting_api.core.base_path import BasePathResolver, is_static_upload_path

logger = logging.getLogger(__name__)

MAX_LOG_LINE = 80


def _raw_url(scope) -> str:
    query_string = scope.get("query_string", b"").decode("latin-1")
    return scope["path"] + (f"?{query_string}" if query_string else "")


def _strip_raw_path(raw_path: bytes, base_path: str, path: str) -> bytes:
    # Keep the client's percent-encoding; only re-encode when the prefix is not found verbatim
    prefix = base_path.encode("utf-8")
    if not raw_path or not raw_path.startswith(prefix):
        return path.encode("utf-8")
    stripped = raw_path[len(prefix):]
    if not stripped.startswith(b"/"):
        stripped = b"/" + stripped
    return stripped


class BasePathMiddleware(BaseHTTPMiddleware):
    """
    Strips the reverse proxy prefix (e.g. /staging) from every request before routing.
    Paths under /uploads are left alone so uploaded files stay reachable.
    The query string is never looked at or changed.
    """

    def __init__(self, app, resolver: BasePathResolver):
        super().__init__(app)
        self.resolver = resolver

    async def dispatch(self, request: Request, call_next):
        scope = request.scope
        path = scope["path"]
        if is_static_upload_path(path):
            return await call_next(request)

        resolution = self.resolver.resolve(request.headers, path)
        request.state.base_path = resolution.base_path
        request.state.base_path_source = resolution.source
        request.state.original_url = _raw_url(scope)

        if resolution.base_path:
            logger.debug("Base path %r from %s", resolution.base_path, resolution.source)
            normalized = self.resolver.strip(path, resolution.base_path)
            if normalized != path:
                scope["path"] = normalized
                scope["raw_path"] = _strip_raw_path(scope.get("raw_path"), resolution.base_path, normalized)
                logger.debug("Base path %s stripped to: %s", resolution.base_path, normalized)

        return await call_next(request)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        path = request.url.path
        if "/api" in path:
            log_line = f"{request.method} {path} {response.status_code} in {duration_ms:.0f}ms"
            if len(log_line) > MAX_LOG_LINE:
                log_line = log_line[: MAX_LOG_LINE - 1] + "…"
            logger.info(log_line)
        return response
