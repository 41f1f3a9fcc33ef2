# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for health probes, metrics and bearer token authentication."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient
from jose import jwt

from factories import ORG_ID
from teammove.config import settings
from teammove.database import get_db


def _token(**claims) -> str:
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class TestHealth:
    def test_liveness(self, app):
        with TestClient(app) as client:
            response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_readiness_ok(self, app_public, mock_db_session):
        with TestClient(app_public) as client:
            response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {"database": "ok"}

    def test_readiness_database_down(self, app_public, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=OSError("connection refused"))

        with TestClient(app_public) as client:
            response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_metrics_exposed(self, app):
        with TestClient(app) as client:
            client.get("/health/live")
            response = client.get("/metrics")

        assert response.status_code == 200
        assert "teammove_http_requests_total" in response.text


class TestAuthentication:
    def test_valid_token(self, app):
        async def override_get_db():
            yield AsyncMock()

        app.dependency_overrides[get_db] = override_get_db
        with patch("teammove.api.v1.notifications.NotificationRepository") as MockRepo:
            MockRepo.return_value.mark_all_read = AsyncMock(return_value=0)

            with TestClient(app) as client:
                response = client.put(
                    "/v1/notifications/mark-all-read",
                    headers={"Authorization": f"Bearer {_token(sub=str(ORG_ID), email='c@x.fr')}"},
                )

            assert response.status_code == 200
            MockRepo.return_value.mark_all_read.assert_awaited_once_with(ORG_ID)

    def test_invalid_token_401(self, app):
        with TestClient(app) as client:
            response = client.get(
                "/v1/subscription", headers={"Authorization": "Bearer not-a-jwt"}
            )

        assert response.status_code == 401

    def test_token_with_malformed_organization_401(self, app):
        token = _token(sub="user-1", organization_id="not-a-uuid")
        with TestClient(app) as client:
            response = client.get("/v1/subscription", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
