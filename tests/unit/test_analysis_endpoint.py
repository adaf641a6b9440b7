"""Unit tests for POST /api/analyze-image and the liveness endpoints."""

from tests.helpers import SAMPLE_IMAGE, bearer, register


class TestAnalyzeImage:
    def test_anonymous_analysis(self, client, store):
        response = client.post("/api/analyze-image", json={"imageData": SAMPLE_IMAGE})

        assert response.status_code == 200
        body = response.json()
        assert 1 <= len(body["items"]) <= 2
        assert body["ecoRewardPoints"] > 0
        assert body["analysisId"].startswith("analysis_")
        item = body["items"][0]
        assert set(item) == {"id", "name", "type", "carbonFootprint", "confidence"}

    def test_authenticated_analysis_earns_points(self, client):
        alice = register(client)

        analysis = client.post(
            "/api/analyze-image",
            json={"imageData": SAMPLE_IMAGE},
            headers=bearer(alice),
        ).json()
        rewards = client.get("/api/eco-rewards", headers=bearer(alice)).json()

        assert rewards["totalPoints"] == analysis["ecoRewardPoints"]
        assert rewards["totalCarbonSaved"] == analysis["totalCarbonFootprint"]
        assert rewards["analysesCount"] == 1

    def test_invalid_token_is_treated_as_anonymous(self, client):
        response = client.post(
            "/api/analyze-image",
            json={"imageData": SAMPLE_IMAGE},
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 200

    def test_tiny_image_has_no_items(self, client):
        response = client.post("/api/analyze-image", json={"imageData": "data:image/png;base64,AAAA"})

        body = response.json()
        assert body["items"] == []
        assert body["ecoRewardPoints"] == 10
        assert "No clothing items detected" in body["message"]

    def test_missing_image_data(self, client):
        response = client.post("/api/analyze-image", json={})
        assert response.status_code == 400
        assert response.json()["type"] == "validation"


class TestLiveness:
    def test_ping(self, client):
        response = client.get("/api/ping")
        assert response.json() == {"message": "EcoWear API is running!"}

    def test_health_counts_users(self, client):
        register(client)
        body = client.get("/api/health").json()
        assert body["status"] == "healthy"
        assert body["users"] == 1

    def test_unknown_route_is_json(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}
