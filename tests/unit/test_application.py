"""Tests for application factory and endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import status
from httpx import AsyncClient

from app.application import create_app


class TestApplication:
    """Application wiring."""

    def test_create_app_includes_routes(self):
        app = create_app()
        routes = set(app.openapi()["paths"])

        assert "/" in routes
        assert "/health" in routes
        assert "/api/health" in routes
        assert "/api/health/db" in routes
        assert "/api/subjects" in routes
        assert "/api/subjects/{slug}" in routes
        assert "/api/subjects/autocomplete/search" in routes
        assert "/api/specialists" in routes

    @pytest.mark.asyncio
    async def test_root_and_health_are_public(self, async_client: AsyncClient):
        root = await async_client.get("/")
        health = await async_client.get("/health")

        assert root.status_code == status.HTTP_200_OK
        assert root.json()["message"] == "LMS Subject Directory API"
        assert health.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_api_health(self, async_client: AsyncClient, api_headers):
        response = await async_client.get("/api/health", headers=api_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["service"] == "lms-subjects"

    @pytest.mark.asyncio
    async def test_api_health_db_reports_failure(
        self, async_client: AsyncClient, api_headers
    ):
        with patch(
            "app.api.router.db_manager.verify_connection",
            new_callable=AsyncMock,
            side_effect=ConnectionError("refused"),
        ):
            response = await async_client.get("/api/health/db", headers=api_headers)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["database"] == "disconnected"

    @pytest.mark.asyncio
    async def test_api_health_db_connected(self, async_client: AsyncClient, api_headers):
        with patch(
            "app.api.router.db_manager.verify_connection",
            new_callable=AsyncMock,
            return_value=True,
        ):
            response = await async_client.get("/api/health/db", headers=api_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "healthy", "database": "connected"}

    @pytest.mark.asyncio
    async def test_unknown_route_returns_json_404(
        self, async_client: AsyncClient, api_headers
    ):
        response = await async_client.get("/api/unknown/path/here", headers=api_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Not Found"

    @pytest.mark.asyncio
    async def test_lifespan_initializes_and_closes_database(self):
        with patch("app.application.init_db", new_callable=AsyncMock) as init_db:
            with patch("app.application.close_db", new_callable=AsyncMock) as close_db:
                app = create_app()
                async with app.router.lifespan_context(app):
                    init_db.assert_awaited_once()
                    close_db.assert_not_awaited()

        close_db.assert_awaited_once()
