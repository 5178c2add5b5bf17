from fastapi.testclient import TestClient

from app.main import app


def test_health_ok(monkeypatch) -> None:
    monkeypatch.setattr("app.main.check_db_connection", lambda: None)
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_reports_database_outage(monkeypatch) -> None:
    def broken() -> None:
        raise ConnectionError("database is gone")

    monkeypatch.setattr("app.main.check_db_connection", broken)
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 503
