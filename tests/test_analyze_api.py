"""End-to-end tests for the quota-gated analysis pipeline."""

from copilot_server.core.analysis_client import AnalysisError

from conftest import bearer, login

PAYLOAD = {"imageBase64": "aGVsbG8=", "mediaType": "image/png", "prompt": "Analyse"}


def _user_id(client, admin_headers, email):
    users = client.get("/admin/users", headers=admin_headers).json()["users"]
    return next(u["id"] for u in users if u["email"] == email)


def _activated_user(client, admin_headers, limit):
    client.post(
        "/auth/register", json={"email": "a@x.com", "password": "secret1", "name": "A"}
    )
    user_id = _user_id(client, admin_headers, "a@x.com")
    client.put(
        f"/admin/users/{user_id}",
        headers=admin_headers,
        json={"status": "active", "dailyLimit": limit},
    )
    return bearer(login(client, "a@x.com", "secret1"))


def test_register_activate_and_consume_until_limit(client, admin_headers, analysis_client):
    # Pending until an admin acts
    client.post(
        "/auth/register", json={"email": "a@x.com", "password": "secret1", "name": "A"}
    )
    refused = client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert refused.status_code == 403
    assert "pending approval" in refused.json()["error"]

    user_id = _user_id(client, admin_headers, "a@x.com")
    client.put(
        f"/admin/users/{user_id}",
        headers=admin_headers,
        json={"status": "active", "dailyLimit": 2},
    )
    headers = bearer(login(client, "a@x.com", "secret1"))

    first = client.post("/api/analyze", headers=headers, json=PAYLOAD)
    assert first.status_code == 200
    assert first.json()["response"] == "analysis result"
    assert first.json()["usage"] == {
        "allowed": True, "used": 1, "limit": 2, "remaining": 1,
    }

    second = client.post("/api/analyze", headers=headers, json=PAYLOAD)
    assert second.status_code == 200
    assert second.json()["usage"]["used"] == 2
    assert second.json()["usage"]["remaining"] == 0

    third = client.post("/api/analyze", headers=headers, json=PAYLOAD)
    assert third.status_code == 403
    assert third.json() == {
        "success": False, "error": "Daily limit reached", "used": 2, "limit": 2,
    }
    # The denied call never reached the downstream client
    assert len(analysis_client.calls) == 2


def test_usage_endpoint_reports_decision(client, admin_headers):
    headers = _activated_user(client, admin_headers, limit=3)
    client.post("/api/analyze", headers=headers, json=PAYLOAD)

    usage = client.get("/api/usage", headers=headers).json()["usage"]

    assert usage == {"allowed": True, "used": 1, "limit": 3, "remaining": 2}


def test_admin_is_never_limited(client, admin_headers):
    for _ in range(3):
        response = client.post("/api/analyze", headers=admin_headers, json=PAYLOAD)
        assert response.status_code == 200

    usage = response.json()["usage"]
    assert usage["used"] == 3
    assert usage["limit"] == -1
    assert usage["remaining"] == "unlimited"


def test_failed_downstream_call_consumes_nothing(client, admin_headers, analysis_client):
    headers = _activated_user(client, admin_headers, limit=1)
    analysis_client.fail_with = AnalysisError("boom", status_code=500)

    response = client.post("/api/analyze", headers=headers, json=PAYLOAD)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Analysis failed"}
    assert client.get("/api/usage", headers=headers).json()["usage"]["used"] == 0


def test_downstream_auth_and_rate_limit_errors(client, admin_headers, analysis_client):
    analysis_client.fail_with = AnalysisError("bad key", status_code=401)
    response = client.post("/api/analyze", headers=admin_headers, json=PAYLOAD)
    assert response.status_code == 500
    assert response.json()["error"] == "Server API key invalid"

    analysis_client.fail_with = AnalysisError("slow down", status_code=429)
    response = client.post("/api/analyze", headers=admin_headers, json=PAYLOAD)
    assert response.status_code == 429
    assert response.json()["error"] == "Rate limit exceeded. Please wait a moment."


def test_missing_api_key(client, admin_headers, analysis_client):
    analysis_client.configured = False

    response = client.post("/api/analyze", headers=admin_headers, json=PAYLOAD)

    assert response.status_code == 500
    assert response.json()["error"] == "Server API key not configured"
    assert analysis_client.calls == []


def test_analyze_requires_image(client, admin_headers):
    response = client.post("/api/analyze", headers=admin_headers, json={"prompt": "x"})

    assert response.status_code == 400


def test_analyze_requires_auth(client):
    response = client.post("/api/analyze", json=PAYLOAD)

    assert response.status_code == 401
    assert response.json()["error"] == "No token provided"


def test_status_is_public(client, admin_headers):
    anonymous = client.get("/api/status").json()
    authed = client.get("/api/status", headers=admin_headers).json()
    bad_token = client.get("/api/status", headers=bearer("junk"))

    assert anonymous["status"] == "operational"
    assert anonymous["authenticated"] is False
    assert anonymous["apiConfigured"] is True
    assert authed["authenticated"] is True
    assert bad_token.status_code == 200


def test_analyze_forwards_client_payload(client, admin_headers, analysis_client):
    response = client.post(
        "/api/analyze",
        headers=admin_headers,
        json={"imageBase64": "aGk=", "mediaType": "image/jpeg", "prompt": "Levels?"},
    )

    assert response.status_code == 200
    assert analysis_client.calls == [("aGk=", "image/jpeg", "Levels?")]


def test_analyze_accepts_field_names_too(client, admin_headers, analysis_client):
    response = client.post(
        "/api/analyze",
        headers=admin_headers,
        json={"image_base64": "aGk=", "prompt": "Levels?"},
    )

    assert response.status_code == 200
    assert analysis_client.calls == [("aGk=", "image/png", "Levels?")]


def test_usage_reason_only_sent_on_denial(client, admin_headers):
    headers = _activated_user(client, admin_headers, limit=1)
    allowed = client.get("/api/usage", headers=headers).json()["usage"]
    assert "reason" not in allowed

    client.post("/api/analyze", headers=headers, json=PAYLOAD)
    denied = client.get("/api/usage", headers=headers).json()["usage"]

    assert denied == {
        "allowed": False, "used": 1, "limit": 1, "remaining": 0,
        "reason": "Daily limit reached",
    }
