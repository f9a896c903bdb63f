from datetime import timedelta

from fastapi.testclient import TestClient

from gateway.core.security import create_access_token, decode_access_token


def _login(client: TestClient, email: str, password: str = "StrongPass1"):
    return client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )


def test_login_success(client: TestClient, auth_provider):
    auth_provider.add_account("login@example.com", "StrongPass1", id="42", first_name="Login")

    response = _login(client, "login@example.com")

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["message"] == "Login successful"
    data = payload["data"]
    assert data["user"]["email"] == "login@example.com"
    assert data["refresh_token"] == "directus-refresh"
    assert isinstance(data["expires"], int)

    user = decode_access_token(data["access_token"])
    assert user.id == "42"
    assert user.first_name == "Login"


def test_login_failure(client: TestClient, auth_provider):
    auth_provider.add_account("wrongpass@example.com", "StrongPass1")

    response = _login(client, "wrongpass@example.com", "WrongPass1")

    assert response.status_code == 401
    payload = response.json()
    assert payload["success"] is False
    assert payload["message"] == "Invalid credentials"


def test_login_validates_payload(client: TestClient):
    response = client.post("/api/v1/auth/login", json={"email": "not-an-email", "password": "123"})

    assert response.status_code == 400
    payload = response.json()
    assert payload["message"] == "Validation failed"
    assert payload["errors"]


def test_validation_errors_do_not_echo_submitted_values(client: TestClient):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "someone@example.com", "password": "hunt2"},
    )

    assert response.status_code == 400
    errors = response.json()["errors"]
    assert [err["loc"] for err in errors] == [["body", "password"]]
    assert all("input" not in err for err in errors)
    assert "hunt2" not in response.text


def test_login_backend_outage_is_500(client: TestClient, auth_provider):
    auth_provider.fail = True

    response = _login(client, "someone@example.com")

    assert response.status_code == 500
    assert response.json()["message"] == "Something went wrong"


def test_register_success(client: TestClient):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "register@example.com",
            "password": "StrongPass1",
            "first_name": "Register",
            "last_name": "User",
        },
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["data"]["user"]["email"] == "register@example.com"
    assert "refresh_token" not in payload["data"]
    assert decode_access_token(payload["data"]["access_token"]).email == "register@example.com"


def test_register_rejected_by_backend(client: TestClient, auth_provider):
    auth_provider.add_account("taken@example.com", "StrongPass1")

    response = client.post(
        "/api/v1/auth/register",
        json={"email": "taken@example.com", "password": "StrongPass1"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Registration failed"


def test_register_rejects_blank_names(client: TestClient):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "blank@example.com", "password": "StrongPass1", "first_name": ""},
    )

    assert response.status_code == 400


def test_logout(client: TestClient):
    response = client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert response.json()["message"] == "Logout successful"


def test_me_returns_token_profile(client: TestClient, auth_headers):
    response = client.get("/api/v1/auth/me", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"]["user"]["email"] == "test@example.com"


def test_me_requires_token(client: TestClient):
    response = client.get("/api/v1/auth/me")

    assert response.status_code == 401
    assert response.json()["message"] == "Access token required"


def test_expired_token_is_rejected(client: TestClient, user):
    token = create_access_token(user, expires_delta=timedelta(seconds=-10))

    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Token expired"
