"""Tests for bearer token authentication."""

from __future__ import annotations

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from httpx import AsyncClient

from smartwardrobe.core.dependencies import get_auth_service, get_current_user


class FakeAuthService:
    def __init__(self, session_data: dict | None = None, error: str | None = None) -> None:
        self.session_data = session_data or {}
        self.error = error

    async def verify_session(self, access_token: str) -> dict:
        if self.error is not None:
            raise ValueError(self.error)
        return self.session_data


def bearer(token: str = "token") -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.asyncio
async def test_current_user_comes_from_token_subject() -> None:
    service = FakeAuthService({"user_id": "user_01H", "session_id": "session_01H"})

    user = await get_current_user(bearer(), service)

    assert user.id == "user_01H"
    assert user.session_id == "session_01H"


@pytest.mark.asyncio
async def test_expired_token_is_unauthorized() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(bearer(), FakeAuthService(error="Token has expired"))

    assert exc_info.value.status_code == 401
    assert 'error_description="The access token expired"' in exc_info.value.headers["WWW-Authenticate"]


@pytest.mark.asyncio
async def test_token_without_subject_is_unauthorized() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(bearer(), FakeAuthService({"session_id": "session_01H"}))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client: AsyncClient) -> None:
    from smartwardrobe.main import app

    app.dependency_overrides.pop(get_current_user)

    response = await client.get("/api/v1/garments")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_requests_with_invalid_token_are_rejected(client: AsyncClient) -> None:
    from smartwardrobe.main import app

    app.dependency_overrides.pop(get_current_user)
    app.dependency_overrides[get_auth_service] = lambda: FakeAuthService(error="Invalid token signature")

    response = await client.get(
        "/api/v1/collections", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"].startswith("Bearer")
