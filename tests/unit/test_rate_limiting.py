"""Tests for rate limiting: 429 handler, key function and enforcement."""

import json
from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request as StarletteRequest

from app.core.config import settings
from app.core.rate_limiting import (
    _rate_limit_key_func,
    limiter,
    rate_limit_exceeded_handler,
)
from tests.helpers import TEST_AUTH_SECRET, TEST_USER_ID, USER_B_ID, create_test_jwt


def _request(*, host: str = "192.168.1.1", headers: dict[str, str] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/education",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": (host, 50000),
    }
    return StarletteRequest(scope)


@pytest.fixture
def auth_enabled_settings() -> Iterator[None]:
    """Enable auth with the test secret, restore after test."""
    original_auth = settings.auth_enabled
    original_secret = settings.auth_secret
    settings.auth_enabled = True
    settings.auth_secret = SecretStr(TEST_AUTH_SECRET)
    yield
    settings.auth_enabled = original_auth
    settings.auth_secret = original_secret


class TestRateLimitExceededHandler:
    """Tests for the 429 response."""

    def test_returns_429_with_error_envelope(self) -> None:
        """Rate limit responses use the standard error envelope."""
        exc = MagicMock()
        exc.detail = "10 per 1 minute"

        response = rate_limit_exceeded_handler(_request(), exc)

        assert response.status_code == 429
        body = json.loads(response.body.decode())
        assert body["error"]["code"] == "RATE_LIMITED"
        assert body["error"]["message"] == "Rate limit exceeded: 10 per 1 minute"

    @pytest.mark.parametrize("detail", ["unexpected format", None])
    def test_retry_after_fallback(self, detail: str | None) -> None:
        """Unparseable details fall back to a 60 second Retry-After."""
        exc = MagicMock()
        exc.detail = detail

        response = rate_limit_exceeded_handler(_request(), exc)

        assert response.headers.get("Retry-After") == "60"


class TestRateLimitKeyFunction:
    """Keys are per-user when a valid token is present, else per-IP."""

    def test_ip_when_auth_disabled(self) -> None:
        """Local mode keys on the client address."""
        original = settings.auth_enabled
        settings.auth_enabled = False
        try:
            assert _rate_limit_key_func(_request(host="10.0.0.1")) == "10.0.0.1"
        finally:
            settings.auth_enabled = original

    def test_user_key_from_cookie(self, auth_enabled_settings: None) -> None:  # noqa: ARG002
        """A valid session cookie keys on the identity id."""
        cookie = f"{settings.auth_cookie_name}={create_test_jwt()}"

        key = _rate_limit_key_func(_request(headers={"Cookie": cookie}))

        assert key == f"user:{TEST_USER_ID}"

    def test_user_key_from_bearer(self, auth_enabled_settings: None) -> None:  # noqa: ARG002
        """A Bearer token keys on the identity id."""
        token = create_test_jwt(USER_B_ID)

        key = _rate_limit_key_func(_request(headers={"Authorization": f"Bearer {token}"}))

        assert key == f"user:{USER_B_ID}"

    def test_unauth_without_token(self, auth_enabled_settings: None) -> None:  # noqa: ARG002
        """No token keys on the address with an unauth prefix."""
        assert _rate_limit_key_func(_request(host="10.0.0.2")) == "unauth:10.0.0.2"

    def test_unauth_with_invalid_token(self, auth_enabled_settings: None) -> None:  # noqa: ARG002
        """A token signed with another secret is treated as anonymous."""
        token = create_test_jwt(secret="another-secret-that-is-also-32-characters!")

        key = _rate_limit_key_func(
            _request(host="10.0.0.3", headers={"Authorization": f"Bearer {token}"})
        )

        assert key == "unauth:10.0.0.3"


class TestRateLimitEnforcement:
    """Limits are enforced per identity."""

    @staticmethod
    def _build_app() -> FastAPI:
        test_limiter = Limiter(key_func=_rate_limit_key_func)
        app = FastAPI()
        app.state.limiter = test_limiter
        app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

        @app.post("/write")
        @test_limiter.limit("2/minute")
        async def write(request: Request) -> dict[str, str]:  # noqa: ARG001
            return {"status": "ok"}

        return app

    @pytest.mark.asyncio
    async def test_identities_have_separate_buckets(
        self, auth_enabled_settings: None  # noqa: ARG002
    ) -> None:
        """One user exhausting the limit does not throttle another."""
        transport = ASGITransport(app=self._build_app())
        headers_a = {"Authorization": f"Bearer {create_test_jwt(TEST_USER_ID)}"}
        headers_b = {"Authorization": f"Bearer {create_test_jwt(USER_B_ID)}"}

        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            codes_a = [(await ac.post("/write", headers=headers_a)).status_code for _ in range(3)]
            response_b = await ac.post("/write", headers=headers_b)

        assert codes_a == [200, 200, 429]
        assert response_b.status_code == 200

    def test_sub_record_kinds_have_separate_limits(self) -> None:
        """Education and experience writes are registered under distinct names."""
        import app.main  # noqa: F401

        names = set(limiter._route_limits)

        assert "app.api.routes.sub_records.create_record_education" in names
        assert "app.api.routes.sub_records.create_record_experience" in names
