"""API tests for registration, login and profile endpoints."""

from todo_api.core.security import create_access_token, get_user_id_from_token, hash_password


class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register_success(self, client, db, user_row):
        """A new user gets a token and no password in the response."""
        db.user_conflict_exists.return_value = False
        db.create_user.return_value = dict(user_row)

        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "secret123"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User registered successfully"
        assert get_user_id_from_token(body["token"]) == 1
        assert body["user"]["username"] == "alice"
        assert "password" not in body["user"]

    def test_password_is_hashed_before_storage(self, client, db, user_row):
        db.user_conflict_exists.return_value = False
        db.create_user.return_value = dict(user_row)

        client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "secret123"},
        )

        stored = db.create_user.call_args.kwargs["password_hash"]
        assert stored != "secret123"
        assert stored.startswith("$argon2")

    def test_register_duplicate(self, client, db):
        db.user_conflict_exists.return_value = True

        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "secret123"},
        )

        assert response.status_code == 409
        assert response.json() == {"error": "User with this username or email already exists"}
        db.create_user.assert_not_called()

    def test_register_invalid_email(self, client, db):
        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "not-an-email", "password": "secret123"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "email: Invalid email format"}

    def test_register_short_password(self, client, db):
        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "123"},
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("password:")

    def test_register_invalid_json(self, client):
        response = client.post(
            "/api/auth/register",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON in request body"}


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_success(self, client, db, user_row):
        db.get_user_credentials.return_value = {
            **user_row,
            "password": hash_password("secret123"),
        }

        response = client.post("/api/auth/login", json={"username": "alice", "password": "secret123"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["user"]["id"] == 1
        assert "password" not in body["user"]

    def test_login_wrong_password(self, client, db, user_row):
        db.get_user_credentials.return_value = {
            **user_row,
            "password": hash_password("secret123"),
        }

        response = client.post("/api/auth/login", json={"username": "alice", "password": "nope123"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_login_unknown_user(self, client, db):
        db.get_user_credentials.return_value = None

        response = client.post("/api/auth/login", json={"username": "ghost", "password": "x"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}


class TestProfile:
    """Tests for GET /api/auth/profile and /api/auth/me."""

    def test_profile(self, client, auth_headers):
        response = client.get("/api/auth/profile", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "alice@example.com"

    def test_me_is_an_alias(self, client, auth_headers):
        response = client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["id"] == 1

    def test_missing_token(self, client):
        response = client.get("/api/auth/profile")

        assert response.status_code == 401
        assert response.json() == {"error": "Access token required"}

    def test_invalid_token(self, client):
        response = client.get("/api/auth/profile", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 403
        assert response.json() == {"error": "Invalid or expired token"}

    def test_token_for_deleted_user(self, client, db):
        db.get_user.return_value = None
        headers = {"Authorization": f"Bearer {create_access_token(77)}"}

        response = client.get("/api/auth/profile", headers=headers)

        assert response.status_code == 403
        assert response.json() == {"error": "User not found"}
