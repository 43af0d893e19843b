"""Auth collaborator: register, login, bearer/cookie sessions, logout."""

from conftest import ADMIN_EMAIL, register_and_login


def test_register_rejects_bad_input(client):
    assert client.post("/auth/register", json={"email": "nope", "password": "password-123"}).status_code == 400
    assert client.post("/auth/register", json={"email": "a@b.test", "password": "short"}).status_code == 400


def test_register_duplicate_email(client):
    register_and_login(client, "erin@salonslot.test")
    resp = client.post("/auth/register", json={"email": "ERIN@salonslot.test", "password": "password-123"})
    assert resp.status_code == 409


def test_login_wrong_password(client):
    register_and_login(client, "frank@salonslot.test")
    resp = client.post("/auth/login", json={"email": "frank@salonslot.test", "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.get_json()["kind"] == "Unauthenticated"


def test_me_with_bearer_token(app):
    headers = register_and_login(app.test_client(), "gina@salonslot.test", full_name="Gina")
    resp = app.test_client().get("/auth/me", headers=headers)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["email"] == "gina@salonslot.test"
    assert data["full_name"] == "Gina"
    assert data["roles"] == ["CUSTOMER"]


def test_admin_bootstrapped_from_config(client, admin_headers):
    data = client.get("/auth/me", headers=admin_headers).get_json()
    assert data["email"] == ADMIN_EMAIL
    assert "ADMIN" in data["roles"]


def test_logout_revokes_token(app):
    headers = register_and_login(app.test_client(), "hank@salonslot.test")
    other = app.test_client()
    assert other.post("/auth/logout", headers=headers).status_code == 200
    assert other.get("/auth/me", headers=headers).status_code == 401


def test_login_with_non_string_fields(client):
    register_and_login(client, "ivy@salonslot.test")
    for body in (
        {"email": "ivy@salonslot.test", "password": 12345678},
        {"email": 42, "password": "password-123"},
        {"email": "ivy@salonslot.test", "password": ["password-123"]},
    ):
        resp = client.post("/auth/login", json=body)
        assert resp.status_code == 401
        assert resp.get_json()["kind"] == "Unauthenticated"
