def test_session_lifecycle_end_to_end(client):
    created = client.post("/api/agent/session", json={})
    assert created.status_code == 200
    session_id = created.json()["sessionId"]
    assert created.json()["createdAt"]

    chat = client.post("/api/agent/chat", json={"message": "hello", "sessionId": session_id})
    assert chat.status_code == 200
    body = chat.json()
    assert body["sessionId"] == session_id
    assert body["response"]["content"]
    assert body["response"]["timestamp"]

    history = client.get(f"/api/agent/session/{session_id}/history")
    assert history.status_code == 200
    entries = history.json()["history"]
    assert [(e["role"], e["content"]) for e in entries] == [
        ("user", "hello"),
        ("assistant", body["response"]["content"]),
    ]
    assert history.json()["session"]["id"] == session_id

    deleted = client.delete(f"/api/agent/session/{session_id}")
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True}

    gone = client.get(f"/api/agent/session/{session_id}/history")
    assert gone.status_code == 404
    assert gone.json()["error"] == "Session not found"


def test_chat_without_session_creates_one(client):
    response = client.post("/api/agent/chat", json={"message": "gm"})

    assert response.status_code == 200
    session_id = response.json()["sessionId"]
    assert client.get(f"/api/agent/session/{session_id}/history").status_code == 200


def test_create_session_without_body(client):
    response = client.post("/api/agent/session")
    assert response.status_code == 200
    assert response.json()["sessionId"]


def test_chat_requires_message(client):
    response = client.post("/api/agent/chat", json={"sessionId": "abc"})

    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}


def test_chat_rejects_non_json_body(client):
    response = client.post("/api/agent/chat", content="hello", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert "error" in response.json()


def test_delete_unknown_session_is_404(client):
    response = client.delete("/api/agent/session/not-a-session")
    assert response.status_code == 404


def test_upstream_failure_keeps_user_message(failing_client):
    session_id = failing_client.post("/api/agent/session").json()["sessionId"]

    response = failing_client.post("/api/agent/chat", json={"message": "hello?", "sessionId": session_id})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to process your request"
    assert "temporarily unavailable" in body["message"]
    assert "tip" in body
    assert "simulated outage" not in str(body)

    history = failing_client.get(f"/api/agent/session/{session_id}/history").json()["history"]
    assert [(e["role"], e["content"]) for e in history] == [("user", "hello?")]


def test_chat_is_rate_limited(client):
    for i in range(10):
        assert client.post("/api/agent/chat", json={"message": f"msg {i}"}).status_code == 200

    limited = client.post("/api/agent/chat", json={"message": "one too many"})

    assert limited.status_code == 429
    assert limited.json()["error"] == "Too many chat requests, please try again after a minute."


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "online"
    assert client.get("/health").json()["status"] == "ok"


def test_unknown_route_uses_error_field(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert "error" in response.json()
