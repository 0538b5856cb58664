from fastapi.testclient import TestClient

from app.main import app


def test_login_hands_out_csrf_token():
    client = TestClient(app)
    resp = client.get("/login")
    assert resp.status_code == 200
    assert resp.json()["csrfToken"]
    assert client.get("/login").json()["csrfToken"] == resp.json()["csrfToken"]


def test_health():
    assert TestClient(app).get("/health").status_code == 200
