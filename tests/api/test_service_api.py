"""API tests for health, the endpoint index and unknown routes."""


class TestHealth:
    def test_health(self, client, db):
        db.health_check.return_value = True

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["database"] == "connected"
        assert body["uptime"] >= 0

    def test_health_with_database_down(self, client, db):
        db.health_check.return_value = False

        assert client.get("/health").json()["database"] == "disconnected"


class TestIndex:
    def test_api_index(self, client):
        response = client.get("/api")

        assert response.status_code == 200
        assert response.json()["documentation"] == "/api-docs"


class TestUnknownRoute:
    def test_not_found(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {
            "error": "Route not found",
            "message": "The endpoint GET /api/nope does not exist",
        }
