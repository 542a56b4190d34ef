from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from accounting_api.core.base_path import BasePathResolver, is_reserved_base_path
from accounting_api.middleware import BasePathMiddleware


def test_forwarded_prefix_wins_over_every_other_source() -> None:
    resolver = BasePathResolver(env_base_path="/from-env")
    resolution = resolver.resolve(
        {
            "X-Forwarded-Prefix": "/staging",
            "X-Original-URI": "/prod/api/clients",
            "X-Forwarded-Path": "/other/api/clients",
        },
        "/elsewhere/api/clients",
    )
    assert resolution.base_path == "/staging"
    assert resolution.source == "x-forwarded-prefix"


def test_original_uri_before_forwarded_path() -> None:
    resolution = BasePathResolver().resolve(
        {"x-original-uri": "/prod/api/clients?active=true", "x-forwarded-path": "/other/api/clients"},
        "/api/clients",
    )
    assert resolution.base_path == "/prod"
    assert resolution.source == "x-original-uri"


def test_header_with_api_at_start_still_counts_as_matched() -> None:
    resolver = BasePathResolver(env_base_path="/from-env")
    resolution = resolver.resolve({"x-original-uri": "/api/clients"}, "/api/clients")
    assert resolution.base_path == ""
    assert resolution.source == "x-original-uri"


def test_header_without_api_is_skipped() -> None:
    resolution = BasePathResolver().resolve(
        {"x-original-uri": "/prod/health", "x-forwarded-path": "/edge/api/clients"},
        "/api/clients",
    )
    assert resolution.base_path == "/edge"
    assert resolution.source == "x-forwarded-path"


def test_configured_base_path_used_when_no_header_matches() -> None:
    resolution = BasePathResolver(env_base_path="/tenant").resolve({}, "/tenant/api/clients")
    assert resolution.base_path == "/tenant"
    assert resolution.source == "BASE_PATH"


def test_fallback_to_request_url() -> None:
    resolution = BasePathResolver().resolve({}, "/prod/api/clients?active=true")
    assert resolution.base_path == "/prod"
    assert resolution.source == "url"


def test_nothing_matches() -> None:
    resolution = BasePathResolver().resolve({}, "/health")
    assert resolution.base_path == ""
    assert resolution.source == "none"


def test_strip_keeps_query_string() -> None:
    assert BasePathResolver.strip("/prod/api/clients?active=true", "/prod") == "/api/clients?active=true"


def test_strip_leaves_unprefixed_url_alone() -> None:
    assert BasePathResolver.strip("/api/clients", "/prod") == "/api/clients"
    assert BasePathResolver.strip("/api/clients", "") == "/api/clients"


def test_strip_empty_remainder_becomes_root() -> None:
    assert BasePathResolver.strip("/prod", "/prod") == "/"


def test_reserved_base_paths() -> None:
    for name in ("api", "uploads", "debug-path", "test-uploads", "/api"):
        assert is_reserved_base_path(name)
    assert not is_reserved_base_path("staging")
    assert not is_reserved_base_path("")


# --- middleware, through the app ---

def test_forwarded_prefix_is_stripped_before_routing(client: TestClient) -> None:
    response = client.get("/staging/debug-path", headers={"X-Forwarded-Prefix": "/staging"})
    assert response.status_code == 200
    data = response.json()
    assert data["basePath"] == "/staging"
    assert data["basePathSource"] == "x-forwarded-prefix"
    assert data["path"] == "/debug-path"
    assert data["originalUrl"] == "/staging/debug-path"
    assert data["headers"]["x-forwarded-prefix"] == "/staging"


def test_original_uri_prefix_keeps_query(client: TestClient) -> None:
    response = client.get(
        "/prod/debug-path?active=true",
        headers={"X-Original-URI": "/prod/api/clients?active=true"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["basePath"] == "/prod"
    assert data["path"] == "/debug-path"
    assert data["url"] == "/debug-path?active=true"


def test_prefixed_api_request_is_routed(client: TestClient) -> None:
    response = client.get("/prod/api/document-templates/registry?active=true")
    assert response.status_code == 200
    assert "cheque" in response.json()


def test_unprefixed_request_passes_through(client: TestClient) -> None:
    response = client.get("/debug-path")
    assert response.status_code == 200
    data = response.json()
    assert data["basePath"] == ""
    assert data["basePathSource"] == "none"
    assert data["path"] == "/debug-path"


def test_uploads_are_never_rewritten(client: TestClient, uploads_dir) -> None:
    logo_dir = uploads_dir / "client-logos"
    logo_dir.mkdir(parents=True, exist_ok=True)
    (logo_dir / "11.png").write_bytes(b"\x89PNG fake")

    # Were /uploads stripped, this would become /client-logos/11.png and 404
    response = client.get("/uploads/client-logos/11.png", headers={"X-Forwarded-Prefix": "/uploads"})
    assert response.status_code == 200
    assert response.content == b"\x89PNG fake"


def test_api_in_query_string_is_not_a_base_path() -> None:
    resolution = BasePathResolver().resolve({}, "/health?next=/api/document-templates/registry")
    assert resolution.base_path == ""
    assert resolution.source == "none"


def test_api_in_query_string_does_not_reroute(client: TestClient) -> None:
    response = client.get("/health?next=/api/document-templates/registry")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

    response = client.get("/debug-path?next=/api/document-templates/registry")
    data = response.json()
    assert data["basePath"] == ""
    assert data["path"] == "/debug-path"
    assert data["url"] == "/debug-path?next=/api/document-templates/registry"


def _raw_path_echo_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(BasePathMiddleware, resolver=BasePathResolver())

    @app.get("/{rest:path}")
    async def echo(rest: str, request: Request):
        return {
            "path": request.scope["path"],
            "rawPath": request.scope["raw_path"].decode("ascii"),
            "query": request.url.query,
        }

    return app


def test_stripping_keeps_percent_encoding_in_raw_path() -> None:
    response = TestClient(_raw_path_echo_app()).get("/prod/api/files/a%2Fb%20c?x=1")
    assert response.status_code == 200
    data = response.json()
    assert data["path"] == "/api/files/a/b c"
    assert data["rawPath"].startswith("/api/files/a%2Fb%20c")
    assert data["query"] == "x=1"
