import routes.email
import routes.health

from conftest import bearer


def test_health_reports_database_state(client, monkeypatch):
    async def connected(db):
        return {"isConnected": True, "database": "coursemaster_test"}

    async def disconnected(db):
        return {"isConnected": False, "database": "coursemaster_test", "error": "timed out"}

    monkeypatch.setattr(routes.health, "check_database_health", connected)
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["services"]["database"]["isConnected"] is True

    monkeypatch.setattr(routes.health, "check_database_health", disconnected)
    response = client.get("/api/health")
    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_send_email_to_the_caller(client, student, monkeypatch):
    sent = []

    async def fake_send(name, email, subject, message, action_url=None, action_text=None):
        sent.append((name, email, subject, action_url))
        return True

    monkeypatch.setattr(routes.email, "send_custom_email", fake_send)
    response = client.post(
        "/api/email/send",
        headers=bearer(student),
        json={"subject": "Hello", "message": "Line one\nLine two", "actionUrl": ""},
    )
    assert response.status_code == 200
    assert response.json() == {
        "message": "Email sent successfully",
        "data": {"to": student["email"], "subject": "Hello"},
    }
    assert sent == [(student["name"], student["email"], "Hello", None)]


def test_send_email_failure(client, student, monkeypatch):
    async def failing(*args, **kwargs):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(routes.email, "send_custom_email", failing)
    response = client.post("/api/email/send", headers=bearer(student), json={"subject": "Hi", "message": "Body"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send email", "details": "smtp down"}


def test_send_email_bug_is_not_reported_as_delivery_failure(client, student, monkeypatch):
    async def buggy(*args, **kwargs):
        raise KeyError("missing template variable")

    monkeypatch.setattr(routes.email, "send_custom_email", buggy)
    response = client.post("/api/email/send", headers=bearer(student), json={"subject": "Hi", "message": "Body"})
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_send_email_requires_login(client):
    assert client.post("/api/email/send", json={"subject": "Hi", "message": "Body"}).status_code == 401


def test_unknown_routes_use_error_shape(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_unexpected_errors_hide_their_details(client, monkeypatch):
    async def broken(db):
        raise RuntimeError("connection string mongodb://user:hunter2@db")

    monkeypatch.setattr(routes.health, "check_database_health", broken)
    response = client.get("/api/health")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "hunter2" not in response.text
