"""Health check and entry page."""
from fastapi.testclient import TestClient


def test_health_returns_ok(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j.get("status") == "ok"
    assert j.get("database") == "ok"
    assert j.get("entitlement_backend") == "database"
    assert j.get("stripe_configured") is False


def test_index_serves_entry_page(client: TestClient):
    r = client.get("/")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "Bass Note Master" in r.text


def test_request_id_header(client: TestClient):
    r = client.get("/health")
    assert r.headers.get("X-Request-ID")


def test_app_starts_when_database_is_unreachable(monkeypatch, tmp_path):
    import bassnote.main as main_module
    from bassnote.core.database import build_engine

    broken = build_engine(f"sqlite:///{tmp_path / 'missing_dir' / 'bassnote.db'}")
    monkeypatch.setattr(main_module, "engine", broken)
    with TestClient(main_module.app) as c:
        r = c.get("/user-status", headers={"X-User-Id": "u1"})
        assert r.status_code == 500
        assert r.json()["error"] == "Internal server error during status fetch."
        assert c.get("/health").json()["database"] == "error"
    broken.dispose()


def test_memory_backend_starts_without_database(monkeypatch, tmp_path):
    import bassnote.main as main_module
    from bassnote.core.database import build_engine

    broken = build_engine(f"sqlite:///{tmp_path / 'missing_dir' / 'bassnote.db'}")
    monkeypatch.setattr(main_module, "engine", broken)
    monkeypatch.setattr(main_module.settings, "entitlement_backend", "memory")
    with TestClient(main_module.app) as c:
        r = c.get("/user-status", headers={"X-User-Id": "u1"})
        assert r.status_code == 200
        assert r.json() == {"isPro": False}
    broken.dispose()
