"""Tests for optional front-end serving via STATIC_DIR.

The built front end is mounted at / after the API routes, so API paths keep
working and unknown paths fall through to the static files. Paths the files
do not cover get index.html, except under the API prefixes.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from api.main import create_app


def test_static_dir_is_served_after_api_routes(tmp_path, settings_factory):
    (tmp_path / "index.html").write_text("<h1>NoteVault</h1>")
    settings = settings_factory(
        static_dir=str(tmp_path),
        database_url="sqlite:///file:test_static?mode=memory&cache=shared&uri=true",
    )
    with TestClient(create_app(settings)) as client:
        assert "NoteVault" in client.get("/").text
        assert client.get("/health").json()["status"] == "healthy"
        assert client.get("/auth/me").status_code == 401


def test_missing_static_dir_is_not_mounted(tmp_path, settings_factory):
    settings = settings_factory(
        static_dir=str(tmp_path / "missing"),
        database_url="sqlite:///file:test_static_missing?mode=memory&cache=shared&uri=true",
    )
    with TestClient(create_app(settings)) as client:
        assert client.get("/").status_code == 404


def test_client_side_routes_fall_back_to_index(tmp_path, settings_factory):
    (tmp_path / "index.html").write_text("<h1>NoteVault</h1>")
    (tmp_path / "app.js").write_text("console.log('notevault')")
    settings = settings_factory(
        static_dir=str(tmp_path),
        database_url="sqlite:///file:test_static_fallback?mode=memory&cache=shared&uri=true",
    )
    with TestClient(create_app(settings)) as client:
        deep = client.get("/notes/42")
        assert deep.status_code == 200
        assert "NoteVault" in deep.text
        assert deep.headers["content-type"].startswith("text/html")
        assert deep.headers["X-Content-Type-Options"] == "nosniff"

        asset = client.get("/app.js")
        assert asset.status_code == 200
        assert "console.log" in asset.text

        # Unknown paths under an API prefix keep the JSON 404.
        missing = client.get("/auth/does-not-exist")
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "http_404"
