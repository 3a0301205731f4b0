from conftest import NOW, SESSION_ID, TOKEN_A, TOKEN_B

from app.core.clock import to_epoch_ms


def test_search_click_trending_and_recommendations(client):
    ts = to_epoch_ms(NOW)
    client.post(
        "/analytics/search",
        json={"sessionId": SESSION_ID, "query": "pepe coin", "results": [TOKEN_A, TOKEN_B], "resultCount": 2, "timestamp": ts},
    )
    client.post(
        "/analytics/click",
        json={"sessionId": SESSION_ID, "query": "pepe coin", "clickedAddress": TOKEN_A, "resultRank": 0, "timestamp": ts},
    )
    for address in (TOKEN_A, TOKEN_A, TOKEN_B):
        client.post("/trending/log", json={"address": address, "assetType": "TOKEN"})

    trending = client.get("/trending", params={"type": "TOKEN", "cache": "false"}).json()
    peers = client.get("/recommendations/peers", params={"query": "pepe coins", "type": "token"}).json()

    assert trending["assets"][0]["address"] == TOKEN_A
    assert trending["assets"][0]["totalSearches"] == 2
    assert peers["query"] == "pepe coins"
    assert peers["type"] == "TOKEN"
    assert peers["count"] == 1
    assert peers["recommendations"] == [
        {
            "address": TOKEN_A,
            "name": "Unknown Token",
            "symbol": "UNKNOWN",
            "score": 1.0,
            "reason": "Frequently clicked result",
        }
    ]


def test_recommendations_reject_short_query(client):
    r = client.get("/recommendations/peers", params={"query": "p"})
    assert r.status_code == 400
    assert "query length" in r.json()["error"]
