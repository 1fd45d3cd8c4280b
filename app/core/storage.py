"""Object storage client - bucket provisioning and avatar upload.

Thin httpx client over the hosted object store's REST API:
- GET  {storage_url}/bucket                      list buckets
- POST {storage_url}/bucket                      create bucket
- POST {storage_url}/object/{bucket}/{path}      upload (x-upsert)
- GET  {storage_url}/object/public/{bucket}/{path}  public object URL

All calls authenticate with the service key as a Bearer token. Network and
store failures are returned as values (Result / {"error": ...}); callers
decide whether a failure matters.
"""

import time
import uuid
from typing import Any

import httpx
import structlog

from app.core.config import settings
from app.core.result import Err, ErrorKind, Ok, Result

logger = structlog.get_logger()

_IMAGE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

_RLS_VIOLATION_MARKER = "row-level security policy"
_BUCKET_NOT_FOUND_MARKER = "bucket not found"

BUCKET_EXISTS = "exists"
BUCKET_CREATED = "created"


def _error_message(response: httpx.Response) -> str:
    """Pull the store's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class StorageClient:
    """Client for one object-store project.

    Args:
        base_url: Storage REST base URL (e.g. https://x.example.co/storage/v1).
            Empty means storage is not configured.
        service_key: Key sent as Bearer token.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._base_url)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._service_key}"},
            timeout=self._timeout,
            transport=self._transport,
        )

    def public_url(self, bucket: str, path: str) -> str:
        """Public URL of an object in a public bucket."""
        return f"{self._base_url}/object/public/{bucket}/{path}"

    async def ensure_bucket(
        self,
        name: str,
        *,
        public: bool = True,
        file_size_limit: int | None = None,
    ) -> Result[str]:
        """Make sure a bucket exists, creating it if absent.

        Idempotent: calling it for an existing bucket changes nothing.

        Args:
            name: Bucket name.
            public: Whether objects are publicly readable.
            file_size_limit: Max object size in bytes (defaults to the
                avatar limit).

        Returns:
            Ok("exists") or Ok("created"); Err(UNAVAILABLE) when storage is
            not configured or unreachable, Err(STORE) when the store refuses.
        """
        if not self.configured:
            return Err(ErrorKind.UNAVAILABLE, "Object storage is not configured")

        limit = file_size_limit if file_size_limit is not None else settings.avatar_max_bytes
        try:
            async with self._client() as client:
                resp = await client.get("/bucket")
                if resp.status_code >= 400:
                    message = _error_message(resp)
                    logger.warning("Listing buckets failed", status=resp.status_code, error=message)
                    return Err(ErrorKind.STORE, "Failed to list buckets")

                buckets: list[dict[str, Any]] = resp.json() or []
                if any(bucket.get("name") == name for bucket in buckets):
                    return Ok(BUCKET_EXISTS)

                resp = await client.post(
                    "/bucket",
                    json={
                        "id": name,
                        "name": name,
                        "public": public,
                        "file_size_limit": limit,
                    },
                )
                if resp.status_code >= 400:
                    message = _error_message(resp)
                    # Lost a creation race with another caller
                    if "already exists" in message.lower():
                        return Ok(BUCKET_EXISTS)
                    logger.warning("Creating bucket failed", bucket=name, error=message)
                    return Err(ErrorKind.STORE, "Failed to create bucket")
        except httpx.TimeoutException:
            return Err(ErrorKind.TIMEOUT, "Object storage timed out")
        except httpx.HTTPError as exc:
            logger.warning("Object storage unreachable", error=str(exc))
            return Err(ErrorKind.UNAVAILABLE, "Object storage is unreachable")

        logger.info("Bucket created", bucket=name)
        return Ok(BUCKET_CREATED)

    async def upload_avatar(
        self,
        content: bytes,
        content_type: str | None,
        owner_id: uuid.UUID | str,
    ) -> dict[str, str]:
        """Upload an avatar image to the avatar bucket.

        Args:
            content: Image bytes.
            content_type: Declared MIME type; must be image/*.
            owner_id: Identity id used to name the object.

        Returns:
            {"url": public_url} on success, {"error": message} otherwise.
        """
        if not content_type or not content_type.startswith("image/"):
            return {"error": "File must be an image"}
        if len(content) > settings.avatar_max_bytes:
            max_mb = settings.avatar_max_bytes / (1024 * 1024)
            return {"error": f"File size must be at most {max_mb:g}MB"}
        if not self.configured:
            return {"error": "Object storage is not configured"}

        bucket = settings.avatar_bucket
        extension = _IMAGE_EXTENSIONS.get(content_type, "img")
        path = f"{owner_id}-{int(time.time() * 1000)}.{extension}"

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"/object/{bucket}/{path}",
                    content=content,
                    headers={
                        "Content-Type": content_type,
                        "x-upsert": "true",
                        "Cache-Control": "max-age=3600",
                    },
                )
        except httpx.HTTPError as exc:
            logger.warning("Avatar upload failed", error=str(exc))
            return {"error": "Failed to upload avatar. Please try again."}

        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.warning("Avatar upload rejected", status=resp.status_code, error=message)
            lowered = message.lower()
            if _RLS_VIOLATION_MARKER in lowered:
                return {"error": "Storage permission denied for avatar uploads."}
            if _BUCKET_NOT_FOUND_MARKER in lowered:
                return {"error": "Storage bucket not found. Please contact an administrator."}
            return {"error": message}

        return {"url": self.public_url(bucket, path)}


_storage_client: StorageClient | None = None


def get_storage_client() -> StorageClient:
    """Get the singleton storage client (FastAPI dependency).

    Returns:
        StorageClient configured from settings.
    """
    global _storage_client
    if _storage_client is None:
        _storage_client = StorageClient(
            settings.storage_url,
            settings.storage_service_key.get_secret_value(),
            timeout=settings.storage_timeout_seconds,
        )
    return _storage_client


def reset_storage_client() -> None:
    """Reset the storage client singleton (for testing)."""
    global _storage_client
    _storage_client = None
