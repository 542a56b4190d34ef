from fastapi.testclient import TestClient

from accounting_api.uploads import content_type_for, is_safe_filename


def _write_logo(uploads_dir, name: str, content: bytes = b"logo-bytes") -> None:
    logo_dir = uploads_dir / "client-logos"
    logo_dir.mkdir(parents=True, exist_ok=True)
    (logo_dir / name).write_bytes(content)


def test_content_types() -> None:
    assert content_type_for("a.JPG") == "image/jpeg"
    assert content_type_for("a.jpeg") == "image/jpeg"
    assert content_type_for("a.png") == "image/png"
    assert content_type_for("a.gif") == "image/gif"
    assert content_type_for("a.webp") == "image/webp"
    assert content_type_for("a.svg") == "image/svg+xml"
    assert content_type_for("a.pdf") == "application/octet-stream"


def test_safe_filenames() -> None:
    assert is_safe_filename("7.png")
    assert not is_safe_filename("../7.png")
    assert not is_safe_filename("a/7.png")
    assert not is_safe_filename("a\\7.png")


def test_static_image_has_cache_and_cors_headers(client: TestClient, uploads_dir) -> None:
    misc = uploads_dir / "misc"
    misc.mkdir(parents=True, exist_ok=True)
    (misc / "banner.webp").write_bytes(b"webp")

    response = client.get("/uploads/misc/banner.webp")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/webp"
    assert response.headers["cache-control"] == "public, max-age=31536000"
    assert response.headers["access-control-allow-origin"] == "*"


def test_static_other_file_is_octet_stream(client: TestClient, uploads_dir) -> None:
    misc = uploads_dir / "misc"
    misc.mkdir(parents=True, exist_ok=True)
    (misc / "notes.bin").write_bytes(b"data")

    response = client.get("/uploads/misc/notes.bin")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/octet-stream"
    assert "cache-control" not in response.headers


def test_client_logo_served_with_and_without_prefix(client: TestClient, uploads_dir) -> None:
    _write_logo(uploads_dir, "21.png")

    for url in ("/uploads/client-logos/21.png", "/staging/uploads/client-logos/21.png"):
        response = client.get(url)
        assert response.status_code == 200, url
        assert response.content == b"logo-bytes"
        assert response.headers["content-type"] == "image/png"
        assert response.headers["access-control-allow-methods"] == "GET, OPTIONS"


def test_client_logo_invalid_filename(client: TestClient) -> None:
    response = client.get("/uploads/client-logos/evil..png")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid filename"}


def test_client_logo_missing(client: TestClient) -> None:
    response = client.get("/uploads/client-logos/does-not-exist.png")
    assert response.status_code == 404
    assert response.json() == {"error": "Logo not found"}


def test_client_logo_reserved_base_path(client: TestClient, uploads_dir) -> None:
    _write_logo(uploads_dir, "22.png")
    for base in ("api", "debug-path", "test-uploads"):
        response = client.get(f"/{base}/uploads/client-logos/22.png")
        assert response.status_code == 404, base


def test_client_logo_preflight(client: TestClient) -> None:
    response = client.options("/uploads/client-logos/21.png")
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-headers"] == "Content-Type"


def test_upload_client_logo_replaces_old_extension(client: TestClient, uploads_dir) -> None:
    _write_logo(uploads_dir, "23.jpg", b"old")

    response = client.post(
        "/api/client-logos/23",
        files={"logo_file": ("logo.png", b"new-logo", "image/png")},
    )
    assert response.status_code == 200
    assert response.json() == {"clientId": 23, "logoUrl": "/uploads/client-logos/23.png"}
    assert not (uploads_dir / "client-logos" / "23.jpg").exists()

    served = client.get("/uploads/client-logos/23.png")
    assert served.status_code == 200
    assert served.content == b"new-logo"


def test_upload_client_logo_rejects_non_images(client: TestClient) -> None:
    response = client.post(
        "/api/client-logos/24",
        files={"logo_file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400


def test_test_uploads_lists_files(client: TestClient, uploads_dir) -> None:
    _write_logo(uploads_dir, "25.png")
    (uploads_dir / "notes.txt").write_bytes(b"not a logo")
    response = client.get("/test-uploads")
    assert response.status_code == 200
    data = response.json()
    assert data["staticConfigured"] is True
    assert "25.png" in data["files"]
    assert data["uploadsDir"].endswith("client-logos")
    assert "notes.txt" not in data["files"]
