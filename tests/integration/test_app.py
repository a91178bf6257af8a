"""
HTTP integration tests, run once per backend via the `client` fixture.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlink_platform.storage.base import StorageUnavailable
from shortlink_platform.storage.storage import MemoryStore


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_short_id_named_health_redirects():
    store = MemoryStore(id_factory=lambda: "health")
    client = TestClient(create_app(store))
    assert client.post("/api/shorten", json={"url": "https://example.com/h"}).json()["id"] == "health"

    response = client.get("/health", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com/h"


def test_shorten_success(client):
    response = client.post("/api/shorten", json={"url": "https://example.com/test"})
    assert response.status_code == 200
    data = response.json()
    assert data["original"] == "https://example.com/test"
    assert data["hits"] == 0
    assert len(data["id"]) == 6
    assert "created_at" in data


def test_shorten_invalid_url(client):
    response = client.post("/api/shorten", json={"url": "not-a-url"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid URL"


def test_shorten_bad_payload(client):
    response = client.post("/api/shorten", json={"link": "https://example.com"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid request"


def test_redirect_counts_hits(client):
    code = client.post("/api/shorten", json={"url": "https://example.com/r"}).json()["id"]

    response = client.get(f"/{code}", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com/r"

    client.get(f"/{code}", follow_redirects=False)
    stats = client.get("/api/stats").json()["urls"]
    assert [(u["id"], u["hits"]) for u in stats] == [(code, 2)]


def test_redirect_not_found(client):
    response = client.get("/zzzzzz", follow_redirects=False)
    assert response.status_code == 404
    assert response.json()["detail"] == "URL not found"


def test_metrics_totals(client):
    a = client.post("/api/shorten", json={"url": "https://a.example"}).json()["id"]
    client.post("/api/shorten", json={"url": "https://b.example"})
    for _ in range(3):
        client.get(f"/{a}", follow_redirects=False)
    client.get("/zzzzzz", follow_redirects=False)

    assert client.get("/api/metrics").json() == {"total_urls": 2, "total_hits": 3}


def test_stats_empty(client):
    assert client.get("/api/stats").json() == {"urls": []}


class BrokenStore(MemoryStore):
    def create(self, original):
        raise StorageUnavailable("down")

    def get(self, record_id):
        raise StorageUnavailable("down")

    def get_stats(self):
        raise StorageUnavailable("down")

    def get_total_count(self):
        raise StorageUnavailable("down")


def test_storage_failures_map_to_500():
    client = TestClient(create_app(BrokenStore()))

    r = client.post("/api/shorten", json={"url": "https://example.com"})
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to create shortened URL"

    r = client.get("/abcdef", follow_redirects=False)
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to get URL"

    assert client.get("/api/stats").status_code == 500
    assert client.get("/api/metrics").status_code == 500


def test_store_closed_on_shutdown(tmp_path):
    from shortlink_platform.storage.sqlite_storage import SQLiteStore

    store = SQLiteStore(str(tmp_path / "app.db"))
    with TestClient(create_app(store)) as client:
        assert client.post("/api/shorten", json={"url": "https://example.com"}).status_code == 200
    with pytest.raises(StorageUnavailable):
        store.get_total_count()


def test_main_wires_cli_flags(monkeypatch, tmp_path):
    import main as entrypoint
    from shortlink_platform.storage.sqlite_storage import SQLiteStore

    calls = {}

    def fake_run(app, host, port, log_level):
        calls.update(app=app, host=host, port=port)

    monkeypatch.setattr(entrypoint.uvicorn, "run", fake_run)
    db_path = tmp_path / "cli.db"
    entrypoint.main(["--port", "9090", "--db", "sqlite", "--db-path", str(db_path)])

    assert calls["port"] == 9090
    assert isinstance(calls["app"].state.store, SQLiteStore)
    assert db_path.exists()
    calls["app"].state.store.close()


def test_prometheus_counters(client):
    registry = client.app.state.metrics_registry

    code = client.post("/api/shorten", json={"url": "https://example.com/p"}).json()["id"]
    client.post("/api/shorten", json={"url": "not-a-url"})
    client.post("/api/shorten", json={"link": "https://example.com"})
    client.get(f"/{code}", follow_redirects=False)
    client.get(f"/{code}", follow_redirects=False)
    client.get("/zzzzzz", follow_redirects=False)

    assert registry.get_sample_value("url_shortener_shorten_requests_total") == 3
    assert registry.get_sample_value("url_shortener_redirects_total", {"url_id": code}) == 2
    assert registry.get_sample_value("url_shortener_errors_total") == 3

    response = client.get("/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "url_shortener_shorten_requests_total 3.0" in response.text
    assert f'url_shortener_redirects_total{{url_id="{code}"}} 2.0' in response.text


def test_apps_do_not_share_counters():
    first = TestClient(create_app(MemoryStore()))
    second = TestClient(create_app(MemoryStore()))
    first.post("/api/shorten", json={"url": "https://example.com"})

    assert first.app.state.metrics_registry.get_sample_value("url_shortener_shorten_requests_total") == 1
    assert second.app.state.metrics_registry.get_sample_value("url_shortener_shorten_requests_total") == 0


def test_request_log_includes_query(client, caplog):
    caplog.set_level(logging.INFO, logger="shortlink.http")
    client.get("/api/stats?page=2&sort=hits")

    lines = [r.getMessage() for r in caplog.records if r.name == "shortlink.http"]
    assert any("GET /api/stats" in line and "page=2&sort=hits" in line and "status=200" in line
               for line in lines)


class CrashingStore(MemoryStore):
    def get(self, record_id):
        raise RuntimeError("boom")


def test_request_log_written_when_handler_raises(caplog):
    caplog.set_level(logging.INFO, logger="shortlink.http")
    client = TestClient(create_app(CrashingStore()), raise_server_exceptions=False)

    assert client.get("/abcdef", follow_redirects=False).status_code == 500

    lines = [r.getMessage() for r in caplog.records if r.name == "shortlink.http"]
    assert any("GET /abcdef" in line and "status=500" in line for line in lines)
