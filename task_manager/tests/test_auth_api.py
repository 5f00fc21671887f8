from src.api.auth import get_token_signer
from src.api.main import app
from src.api.security import TokenSigner

from .helpers import assert_error_shape, register, signed_up


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")


class TestRegister:
    def test_register_returns_user_summary(self, client):
        res = register(client, email="  Ada@Example.com ", name="Ada")
        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["name"] == "Ada"
        assert isinstance(body["user"]["id"], int)
        assert "password" not in str(body)

    def test_name_is_optional(self, client):
        res = register(client, name=None)
        assert res.status_code == 201
        assert res.json()["user"]["name"] is None

    def test_password_is_stored_hashed(self, client, backends):
        register(client, password="secret123")
        stored = backends.users.get_by_email("ada@example.com")
        assert stored["password_hash"] != "secret123"
        assert stored["password_hash"].startswith("pbkdf2_sha256$")

    def test_duplicate_email_rejected(self, client, backends):
        assert register(client).status_code == 201
        res = register(client, email="ADA@example.com", password="another1")
        assert res.status_code == 400
        body = res.json()
        assert_error_shape(body)
        assert body["message"] == "Email is already registered"
        assert backends.users.get_by_id(2) is None

    def test_malformed_email_rejected(self, client):
        res = register(client, email="not-an-email")
        assert res.status_code == 400
        assert_error_shape(res.json())
        assert "email" in res.json()["message"].lower()

    def test_short_password_rejected(self, client):
        res = register(client, password="12345")
        assert res.status_code == 400
        assert "at least 6" in res.json()["message"]

    def test_missing_fields_are_invalid_input(self, client):
        res = client.post("/auth/register", json={"email": "ada@example.com"})
        assert res.status_code == 400
        body = res.json()
        assert_error_shape(body)
        assert "password" in body["message"]


class TestLogin:
    def test_login_returns_credential_accepted_by_validate(self, client):
        register(client)
        res = client.post("/auth/login", json={"email": "ADA@example.com", "password": "secret123"})
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["user"]["email"] == "ada@example.com"
        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["user"]["id"] == body["user"]["id"]

    def test_wrong_password_twice_gives_same_generic_message(self, client):
        register(client)
        first = client.post("/auth/login", json={"email": "ada@example.com", "password": "wrong-one"})
        second = client.post("/auth/login", json={"email": "ada@example.com", "password": "wrong-one"})
        assert first.status_code == second.status_code == 401
        assert first.json()["message"] == second.json()["message"] == "Invalid email or password"

    def test_unknown_email_indistinguishable_from_wrong_password(self, client):
        register(client)
        unknown = client.post("/auth/login", json={"email": "who@example.com", "password": "secret123"})
        wrong = client.post("/auth/login", json={"email": "ada@example.com", "password": "nope-nope"})
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json()["message"] == wrong.json()["message"]


class TestCredentialValidation:
    def test_missing_credential(self, client):
        res = client.get("/auth/me")
        assert res.status_code == 401
        assert res.headers["www-authenticate"] == "Bearer"
        assert_error_shape(res.json())
        assert res.json()["message"] == "Not authenticated"

    def test_non_bearer_scheme(self, client):
        res = client.get("/auth/me", headers={"Authorization": "Basic YWRhOnNlY3JldA=="})
        assert res.status_code == 401

    def test_garbage_credential(self, client):
        res = client.get("/tasks", headers={"Authorization": "Bearer not.valid"})
        assert res.status_code == 401
        assert res.json()["message"] == "Not authenticated"

    def test_expired_credential_rejected(self, client):
        now = [1_700_000_000.0]
        app.dependency_overrides[get_token_signer] = lambda: TokenSigner(
            "test-signing-secret", ttl_seconds=60, clock=lambda: now[0]
        )
        headers = signed_up(client)
        assert client.get("/tasks", headers=headers).status_code == 200
        now[0] += 61
        res = client.get("/tasks", headers=headers)
        assert res.status_code == 401
        assert res.json()["message"] == "Not authenticated"

    def test_credential_for_vanished_user_rejected(self, client, backends):
        headers = signed_up(client)
        backends.users._by_id.clear()
        assert client.get("/auth/me", headers=headers).status_code == 401

