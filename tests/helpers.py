"""Shared test constants, token helper and object-store fake."""

import json
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import jwt

from app.core.storage import StorageClient

# Test identities (consistent across tests for predictable auth)
TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
TEST_USER_EMAIL = "teacher@example.com"
USER_B_ID = uuid.UUID("00000000-0000-0000-0000-000000000099")
USER_B_EMAIL = "userb@example.com"

# Security: test-only secret. Production uses the identity provider's secret.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow

TEST_STORAGE_URL = "https://storage.test/storage/v1"


def create_test_jwt(
    user_id: uuid.UUID = TEST_USER_ID,
    *,
    email: str | None = TEST_USER_EMAIL,
    provider: str = "email",
    secret: str = TEST_AUTH_SECRET,
    audience: str = "authenticated",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token shaped like the identity provider's.

    Args:
        user_id: Identity UUID for the sub claim.
        email: Email claim (omitted when None).
        provider: app_metadata.provider ("email" or a federated provider).
        secret: Signing secret (must match settings.auth_secret in tests).
        audience: aud claim.
        expires_delta: Time until expiration. Defaults to 1 hour.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "aud": audience,
        "exp": now + (expires_delta or timedelta(hours=1)),
        "iat": now,
        "app_metadata": {"provider": provider},
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, secret, algorithm="HS256")


class FakeObjectStore:
    """In-memory stand-in for the object store REST API (httpx.MockTransport).

    Attributes:
        buckets: Existing bucket names.
        objects: Uploaded objects keyed by "bucket/path".
        requests: Every request seen, in order.
        fail_with: When set, every request answers (status, message).
        raise_error: When set, every request raises this httpx error.
    """

    def __init__(self) -> None:
        self.buckets: set[str] = set()
        self.objects: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.fail_with: tuple[int, str] | None = None
        self.raise_error: httpx.HTTPError | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail_with is not None:
            status, message = self.fail_with
            return httpx.Response(status, json={"message": message})

        path = request.url.path.removeprefix("/storage/v1")
        if request.method == "GET" and path == "/bucket":
            return httpx.Response(200, json=[{"name": name} for name in sorted(self.buckets)])
        if request.method == "POST" and path == "/bucket":
            name = json.loads(request.content)["name"]
            if name in self.buckets:
                return httpx.Response(400, json={"message": "The resource already exists"})
            self.buckets.add(name)
            return httpx.Response(200, json={"name": name})
        if request.method == "POST" and path.startswith("/object/"):
            key = path.removeprefix("/object/")
            bucket = key.split("/", 1)[0]
            if bucket not in self.buckets:
                return httpx.Response(404, json={"message": "Bucket not found"})
            self.objects[key] = request.content
            return httpx.Response(200, json={"Key": key})
        return httpx.Response(404, json={"message": "Not found"})

    def client(self, *, base_url: str = TEST_STORAGE_URL) -> StorageClient:
        """A StorageClient wired to this fake."""
        return StorageClient(
            base_url,
            "service-key",
            timeout=5.0,
            transport=httpx.MockTransport(self.handler),
        )
