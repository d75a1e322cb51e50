from unittest.mock import patch

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.core.config import AppEnvironment, settings
from app.core.errors import InvalidArgumentError, NotFoundError
from app.main import create_app


class TestExceptionHandlers:
    @pytest.mark.anyio
    async def test_domain_error_handler(self):
        app = create_app()
        client = TestClient(app)

        @app.get("/test-error")
        def test_error():
            raise NotFoundError("Test not found", details={"id": 123})

        response = client.get("/test-error")
        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "NotFoundError"
        assert data["message"] == "Test not found"
        assert data["details"]["id"] == 123

    @pytest.mark.anyio
    async def test_invalid_argument_handler(self):
        app = create_app()
        client = TestClient(app)

        @app.get("/test-invalid")
        def test_invalid():
            raise InvalidArgumentError("Page limit must be positive, got 0", details={"limit": 0})

        response = client.get("/test-invalid")
        assert response.status_code == 400
        assert response.json()["details"] == {"limit": 0}

    @pytest.mark.anyio
    async def test_query_validation_error_is_invalid_argument(self):
        app = create_app()
        client = TestClient(app)

        @app.get("/test-query")
        def test_query(size: int):
            return {"size": size}

        response = client.get("/test-query", params={"size": "large"})
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "InvalidArgumentError"
        assert data["details"]["errors"][0]["field"] == "size"

    @pytest.mark.anyio
    async def test_body_validation_error_stays_422(self):
        app = create_app()
        client = TestClient(app)

        @app.post("/test-body")
        def test_body(payload: dict[str, int]):
            return payload

        response = client.post("/test-body", json={"age": "old"})
        assert response.status_code == 422
        assert "detail" in response.json()

    @pytest.mark.anyio
    async def test_data_access_failure_handler(self):
        app = create_app()
        client = TestClient(app)

        @app.get("/test-db")
        def test_db():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        response = client.get("/test-db")
        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "DataAccessFailure"
        # Driver messages never reach the client
        assert "connection refused" not in response.text

    @pytest.mark.anyio
    async def test_http_exception_handler(self):
        app = create_app()
        client = TestClient(app)

        @app.get("/test-http")
        def test_http():
            raise HTTPException(status_code=400, detail="Bad request")

        response = client.get("/test-http")
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "HTTPException"
        assert data["message"] == "Bad request"

    @pytest.mark.anyio
    async def test_general_exception_handler(self):
        app = create_app()
        client = TestClient(app, raise_server_exceptions=False)

        @app.get("/test-general")
        def test_general():
            raise ValueError("Something unexpected")

        response = client.get("/test-general")
        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "InternalServerError"
        assert data["message"] == "An unexpected error occurred"


class TestAppFactory:
    @pytest.mark.anyio
    async def test_create_app_registers_routers(self):
        paths = {route.path for route in create_app().routes}

        assert "/api/health" in paths
        assert "/api/readyz" in paths
        assert "/api/v1/members" in paths
        assert "/api/v2/members" in paths
        assert "/api/v2/members/simple" in paths
        assert "/api/v1/members/{member_id}" in paths
        assert "/api/v1/teams" in paths
        assert "/api/test-utils/seed" in paths
        assert "/metrics" in paths

    @pytest.mark.anyio
    async def test_test_utils_not_registered_in_prod(self):
        with patch.object(settings, "app_env", AppEnvironment.PROD):
            paths = {route.path for route in create_app().routes}

        assert "/api/test-utils/seed" not in paths
        assert "/api/v2/members" in paths

    @pytest.mark.anyio
    async def test_app_has_cors_middleware(self):
        app = create_app()
        middleware_classes = [m.cls.__name__ for m in app.user_middleware]
        assert "CORSMiddleware" in middleware_classes
        assert "ObservabilityMiddleware" in middleware_classes

    @pytest.mark.anyio
    async def test_app_metadata(self):
        app = create_app()
        assert app.title == "Member Search API"
        assert app.version == "0.1.0"
