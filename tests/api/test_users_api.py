"""API tests for the user endpoints."""


class TestUserRead:
    def test_list_users(self, client, db, user_row):
        db.list_users.return_value = ([dict(user_row)], 1)

        response = client.get("/api/users?limit=10")

        assert response.status_code == 200
        body = response.json()
        assert body["users"][0]["username"] == "alice"
        assert body["pagination"] == {"total": 1, "limit": 10, "offset": 0, "has_more": False}

    def test_get_user_includes_todo_stats(self, client, db):
        db.get_user_todo_stats.return_value = {
            "total_todos": 3,
            "completed_todos": 1,
            "pending_todos": 2,
        }

        response = client.get("/api/users/1")

        assert response.status_code == 200
        assert response.json()["user"]["todo_stats"]["pending_todos"] == 2

    def test_get_missing_user(self, client, db):
        db.get_user.return_value = None

        response = client.get("/api/users/404")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    def test_user_todos(self, client, db, make_todo):
        db.list_todos.return_value = ([make_todo()], 1)

        response = client.get("/api/users/1/todos?completed=false")

        assert response.status_code == 200
        filters = db.list_todos.call_args.args[0]
        assert filters.user_id == 1
        assert filters.completed is False


class TestUserUpdate:
    def test_update_own_profile(self, client, db, auth_headers, user_row):
        db.update_user.return_value = {**user_row, "first_name": "Ally"}

        response = client.put("/api/users/1", json={"first_name": "Ally"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "User updated successfully"
        db.update_user.assert_called_once_with(1, {"first_name": "Ally"})

    def test_cannot_update_someone_else(self, client, db, auth_headers):
        response = client.put("/api/users/2", json={"first_name": "X"}, headers=auth_headers)

        assert response.status_code == 403
        assert response.json() == {"error": "You can only update your own profile"}

    def test_duplicate_username(self, client, db, auth_headers):
        db.user_conflict_exists.return_value = True

        response = client.put("/api/users/1", json={"username": "bob"}, headers=auth_headers)

        assert response.status_code == 409
        assert response.json() == {"error": "Username or email already exists"}

    def test_password_is_rehashed(self, client, db, auth_headers, user_row):
        db.user_conflict_exists.return_value = False
        db.update_user.return_value = dict(user_row)

        client.put("/api/users/1", json={"password": "newsecret"}, headers=auth_headers)

        fields = db.update_user.call_args.args[1]
        assert fields["password"].startswith("$argon2")

    def test_null_username_is_left_alone(self, client, db, auth_headers, user_row):
        db.update_user.return_value = dict(user_row)

        client.put(
            "/api/users/1",
            json={"username": None, "last_name": "Smith"},
            headers=auth_headers,
        )

        db.update_user.assert_called_once_with(1, {"last_name": "Smith"})

    def test_requires_token(self, client):
        response = client.put("/api/users/1", json={"first_name": "X"})

        assert response.status_code == 401


class TestUserDelete:
    def test_delete_own_account(self, client, db, auth_headers):
        db.delete_user.return_value = "alice"

        response = client.delete("/api/users/1", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully", "deleted_user": "alice"}

    def test_cannot_delete_someone_else(self, client, db, auth_headers):
        response = client.delete("/api/users/2", headers=auth_headers)

        assert response.status_code == 403
        assert response.json() == {"error": "You can only delete your own account"}
        db.delete_user.assert_not_called()
