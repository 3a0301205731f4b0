from conftest import NOW, SESSION_ID, TOKEN_A

from app.core.clock import to_epoch_ms


def test_health_reports_connected(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy", "database": "connected", "timestamp": NOW.isoformat()}


def test_health_reports_unreachable_store(broken_client):
    r = broken_client.get("/health")
    body = r.json()
    assert r.status_code == 503
    assert body["status"] == "unhealthy"
    assert body["database"] == "disconnected"
    assert body["error"]


def test_stats_counts_searches_and_clicks(client):
    client.post("/interactions", json={"tokenAddress": TOKEN_A, "interactionType": "search"})
    client.post(
        "/analytics/click",
        json={
            "sessionId": SESSION_ID,
            "query": "pepe",
            "clickedAddress": TOKEN_A,
            "resultRank": 0,
            "timestamp": to_epoch_ms(NOW),
        },
    )

    r = client.get("/stats")

    assert r.status_code == 200
    assert r.headers["Cache-Control"] == "public, max-age=300"
    body = r.json()
    assert (body["searches"], body["clicks"], body["cached"]) == (1, 1, False)
    assert client.get("/stats").json()["cached"] is True


def test_stats_default_to_zero_when_store_unreachable(broken_client):
    r = broken_client.get("/stats")
    assert r.status_code == 200
    body = r.json()
    assert (body["searches"], body["clicks"]) == (0, 0)
