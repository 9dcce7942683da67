class TestHealthAPI:
    """Test cases for the health endpoint"""

    def test_health_check(self, client):
        """Test health check endpoint"""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "Holder Gate"
        assert data["verified_holders"] == 0


class TestDocsAPI:
    """Docs sit behind HTTP basic auth"""

    def test_docs_require_password(self, client):
        assert client.get("/docs").status_code == 401
        assert client.get("/openapi.json", auth=("docs", "wrong")).status_code == 401

    def test_openapi_with_password(self, client):
        response = client.get("/openapi.json", auth=("docs", "docs-secret"))
        assert response.status_code == 200
        assert "/api/verification/{discord_id}" in response.json()["paths"]
