from datetime import timedelta

from app.core.security import create_access_token, decode_access_token, get_password_hash, verify_password


def test_password_hashing_round_trip():
    hashed = get_password_hash("Password123!")
    assert hashed != "Password123!"
    assert verify_password("Password123!", hashed)
    assert not verify_password("wrong-password", hashed)


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "someone@example.com"}, expires_delta=timedelta(minutes=-1))
    assert decode_access_token(token) is None


def test_first_registered_user_becomes_admin(client):
    status = client.get("/auth/bootstrap-status").json()
    assert status["requires_admin_setup"] is True

    first = client.post("/auth/register", json={"email": "first@example.com", "password": "Password123!"})
    second = client.post("/auth/register", json={"email": "second@example.com", "password": "Password123!"})

    assert first.status_code == 200
    assert first.json()["user"]["role"] == "admin"
    assert second.json()["user"]["role"] == "user"
    assert client.get("/auth/bootstrap-status").json()["requires_admin_setup"] is False


def test_register_rejects_short_password_and_duplicates(client):
    short = client.post("/auth/register", json={"email": "a@example.com", "password": "short"})
    assert short.status_code == 400

    client.post("/auth/register", json={"email": "dup@example.com", "password": "Password123!"})
    duplicate = client.post("/auth/register", json={"email": "dup@example.com", "password": "Password123!"})
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "Email already registered"


def test_login_before_any_user_exists(client):
    response = client.post("/auth/login", json={"email": "nobody@example.com", "password": "Password123!"})
    assert response.status_code == 400


def test_login_and_me(client, user_factory):
    user = user_factory()

    bad = client.post("/auth/login", json={"email": user["email"], "password": "nope-nope"})
    good = client.post("/auth/login", json={"email": user["email"], "password": user["password"]})

    assert bad.status_code == 401
    assert good.status_code == 200
    token = good.json()["token"]["access_token"]
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == user["email"]


def test_session_for_anonymous_and_signed_in_callers(client, user_factory):
    anonymous = client.get("/auth/session").json()
    assert anonymous == {"authenticated": False, "user": None, "is_premium": False}

    premium = user_factory(premium=True)
    session = client.get("/auth/session", headers=premium["headers"]).json()
    assert session["authenticated"] is True
    assert session["user"]["email"] == premium["email"]
    assert session["is_premium"] is True


def test_logout_requires_token(client, user_factory):
    user = user_factory()
    assert client.post("/auth/logout", headers=user["headers"]).json()["success"] is True
    assert client.post("/auth/logout").status_code in (401, 403)
