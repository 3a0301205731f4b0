from conftest import TOKEN_A, TOKEN_B


def test_upsert_counts_added_and_updated(client):
    batch = [
        {"address": TOKEN_A, "type": "TOKEN", "name": "Pepe", "symbol": "PEPE", "decimals": 18},
        {"address": TOKEN_B, "type": "nft", "name": "Punks"},
        {"address": "not-an-address", "type": "TOKEN"},
    ]
    first = client.post("/learned-tokens", json=batch)
    second = client.post("/learned-tokens", json={"address": TOKEN_A, "type": "TOKEN"})

    assert first.json() == {"success": True, "added": 2, "updated": 0}
    assert second.json() == {"success": True, "added": 0, "updated": 1}


def test_rescan_bumps_score_and_keeps_labels(client):
    client.post("/learned-tokens", json={"address": TOKEN_A, "type": "TOKEN", "symbol": "PEPE"})
    client.post("/learned-tokens", json={"address": TOKEN_A, "type": "TOKEN"})

    r = client.get("/learned-tokens", params={"type": "TOKEN"})

    assert r.status_code == 200
    assert r.headers["Cache-Control"] == "public, s-maxage=300, stale-while-revalidate=600"
    token = r.json()["tokens"][0]
    assert token["symbol"] == "PEPE"
    assert token["scan_frequency"] == 2
    assert token["popularity_score"] == 5


def test_list_filters_by_type(client):
    client.post(
        "/learned-tokens",
        json=[{"address": TOKEN_A, "type": "TOKEN"}, {"address": TOKEN_B, "type": "NFT"}],
    )

    body = client.get("/learned-tokens", params={"type": "NFT"}).json()

    assert body["count"] == 1
    assert body["tokens"][0]["address"] == TOKEN_B
    assert body["tokens"][0]["type"] == "NFT"


def test_empty_batch_rejected(client):
    r = client.post("/learned-tokens", json=[])
    assert r.status_code == 400
    assert r.json() == {"error": "No tokens provided"}


def test_invalid_type_filter_rejected(client):
    assert client.get("/learned-tokens", params={"type": "COIN"}).status_code == 400
