from neurotrader.limiter import api_limits

API_BUDGET = next(iter(api_limits)).limit.amount


def test_api_budget_is_shared_across_routes(client):
    for i in range(API_BUDGET):
        path = "/api/waitlist/count" if i % 2 else "/api/users/profile?walletAddress=0xabc"
        assert client.get(path).status_code == 200

    limited = client.get("/api/waitlist/check", params={"walletAddress": "0xabc"})

    assert limited.status_code == 429
    assert limited.json()["error"] == "Too many requests, please try again later."


def test_chat_requests_count_toward_api_budget(client):
    for i in range(10):
        assert client.post("/api/agent/chat", json={"message": f"msg {i}"}).status_code == 200
    for _ in range(API_BUDGET - 10):
        assert client.get("/api/waitlist/count").status_code == 200

    limited = client.get("/api/waitlist/count")

    assert limited.status_code == 429
    assert "error" in limited.json()


def test_chat_over_api_budget_gets_general_message(client):
    for _ in range(API_BUDGET):
        client.get("/api/waitlist/count")

    limited = client.post("/api/agent/chat", json={"message": "still there?"})

    assert limited.status_code == 429
    assert limited.json()["error"] == "Too many requests, please try again later."


def test_root_and_health_are_outside_api_budget(client):
    for _ in range(API_BUDGET):
        client.get("/api/waitlist/count")

    assert client.get("/health").status_code == 200
    assert client.get("/").status_code == 200
