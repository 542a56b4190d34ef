"""
Reverse-proxy base path detection.

A proxy may mount the whole application under a prefix such as "/staging".
The resolver works out that prefix from the request and strips it so routes
can be declared without any environment-specific prefix.
"""
from dataclasses import dataclass
from typing import Mapping, Optional

API_MARKER = "/api"
STATIC_UPLOADS_PREFIX = "/uploads"

# Base path segments that collide with application routes
RESERVED_BASE_PATHS = frozenset({"api", "uploads", "debug-path", "test-uploads"})

# Sources, in priority order
SOURCE_FORWARDED_PREFIX = "x-forwarded-prefix"
SOURCE_ORIGINAL_URI = "x-original-uri"
SOURCE_FORWARDED_PATH = "x-forwarded-path"
SOURCE_ENV = "BASE_PATH"
SOURCE_URL = "url"
SOURCE_NONE = "none"


@dataclass(frozen=True)
class BasePathResolution:
    base_path: str
    source: str


def _prefix_before_api(value: str) -> str:
    return value[: value.index(API_MARKER)]


def is_static_upload_path(path: str) -> bool:
    return path.startswith(STATIC_UPLOADS_PREFIX)


def is_reserved_base_path(segment: Optional[str]) -> bool:
    return bool(segment) and segment.strip("/") in RESERVED_BASE_PATHS


class BasePathResolver:
    """
    Works out the base path for a request. The first matching source wins:

    1. X-Forwarded-Prefix header, verbatim
    2. X-Original-URI header, everything before "/api"
    3. X-Forwarded-Path header, everything before "/api"
    4. the configured BASE_PATH
    5. the request's own path, everything before "/api"

    When nothing matches the base path is empty and requests pass through.
    """

    def __init__(self, env_base_path: Optional[str] = None):
        # Injected once at startup so resolution only depends on the request
        self.env_base_path = env_base_path or ""

    def resolve(self, headers: Mapping[str, str], raw_url: str) -> BasePathResolution:
        # Starlette's Headers is case-insensitive; plain dicts are normalised here
        if not hasattr(headers, "getlist"):
            headers = {k.lower(): v for k, v in headers.items()}

        forwarded_prefix = headers.get("x-forwarded-prefix")
        original_uri = headers.get("x-original-uri")
        forwarded_path = headers.get("x-forwarded-path")

        if forwarded_prefix:
            return BasePathResolution(forwarded_prefix, SOURCE_FORWARDED_PREFIX)
        if original_uri and API_MARKER in original_uri:
            return BasePathResolution(_prefix_before_api(original_uri), SOURCE_ORIGINAL_URI)
        if forwarded_path and API_MARKER in forwarded_path:
            return BasePathResolution(_prefix_before_api(forwarded_path), SOURCE_FORWARDED_PATH)
        if self.env_base_path:
            return BasePathResolution(self.env_base_path, SOURCE_ENV)
        # Only the path counts; "/api" inside the query string is data
        url_path = (raw_url or "").partition("?")[0]
        if API_MARKER in url_path:
            return BasePathResolution(_prefix_before_api(url_path), SOURCE_URL)
        return BasePathResolution("", SOURCE_NONE)

    @staticmethod
    def strip(raw_url: str, base_path: str) -> str:
        """
        Remove base_path from the front of raw_url. The query string is kept as is.
        """
        if not base_path or not raw_url.startswith(base_path):
            return raw_url
        stripped = raw_url[len(base_path):]
        if not stripped.startswith("/"):
            stripped = "/" + stripped
        return stripped
