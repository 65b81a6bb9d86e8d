"""Pytest configuration and fixtures."""

import time

import jwt
import pytest
from fastapi.testclient import TestClient

from app.auth import JwtTokenVerifier
from app.config import Settings
from app.main import create_app

TEST_SECRET = "test-secret-key-that-is-at-least-32-bytes"


@pytest.fixture
def event_loop_policy():
    """Use the default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest.fixture
def jwt_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def verifier() -> JwtTokenVerifier:
    return JwtTokenVerifier(TEST_SECRET)


@pytest.fixture
def make_token():
    """Factory for signed session tokens."""

    def _make(user_id: str = "user-1", email: str | None = None, expires_in: float = 3600, secret: str = TEST_SECRET) -> str:
        payload = {"userId": user_id, "exp": int(time.time() + expires_in)}
        if email is not None:
            payload["email"] = email
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture
def settings() -> Settings:
    """Settings with ticks and sweeps slow enough to never fire during a test."""
    return Settings(
        JWT_SECRET=TEST_SECRET,
        TICK_INTERVAL=3600,
        SWEEP_INTERVAL=3600,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def price_app(settings):
    return create_app(settings)


@pytest.fixture
def client(price_app):
    with TestClient(price_app) as client:
        yield client
