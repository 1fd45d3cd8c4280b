"""Identity verification for tokens issued by the hosted identity provider.

The identity provider owns sign-up, sign-in and token issuance. This module
only reads a token from the request (Bearer header first, then the session
cookie), verifies it, and turns its claims into an Identity.

Claims used:
- sub: identity id (UUID)
- email: identity email (may be absent for phone-only logins)
- app_metadata.provider: "email" for password logins, else the federated
  provider name ("google", ...)
"""

import uuid
from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Request

from app.core.config import settings
from app.core.errors import UnauthorizedError

_EMAIL_PROVIDER = "email"
_BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class Identity:
    """The authenticated caller as asserted by the identity provider.

    Attributes:
        id: Identity id; equals Profile.id once the profile exists.
        email: Identity email, if the provider supplied one.
        provider: Sign-in provider ("email", "google", ...), if known.
    """

    id: uuid.UUID
    email: str | None = None
    provider: str | None = None

    @property
    def is_federated(self) -> bool:
        """Whether the identity came from a federated (OAuth) login.

        Federated identities always carry an email that the user cannot edit.
        """
        return self.provider is not None and self.provider != _EMAIL_PROVIDER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "email": self.email,
            "provider": self.provider,
        }


def extract_token(request: Request) -> str | None:
    """Read the access token from the Authorization header or session cookie.

    Args:
        request: The incoming request.

    Returns:
        Raw token string, or None if neither source carries one.
    """
    header = request.headers.get("authorization", "")
    if header.lower().startswith(_BEARER_PREFIX):
        token = header[len(_BEARER_PREFIX) :].strip()
        if token:
            return token
    return request.cookies.get(settings.auth_cookie_name) or None


def decode_access_token(token: str) -> Identity:
    """Verify an access token and build the Identity it asserts.

    Validation: HS256 signature, exp, aud, and iss when configured;
    sub must be a UUID.

    Args:
        token: Encoded JWT.

    Returns:
        Identity built from the token claims.

    Raises:
        UnauthorizedError: For any verification failure. The message is
            deliberately generic.
    """
    options: dict[str, Any] = {"require": ["exp", "sub"]}
    kwargs: dict[str, Any] = {}
    if settings.auth_issuer:
        kwargs["issuer"] = settings.auth_issuer

    try:
        payload = jwt.decode(
            token,
            settings.auth_secret.get_secret_value(),
            algorithms=["HS256"],
            audience=settings.auth_audience,
            options=options,
            **kwargs,
        )
        identity_id = uuid.UUID(str(payload["sub"]))
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        raise UnauthorizedError() from exc

    app_metadata = payload.get("app_metadata")
    provider = None
    if isinstance(app_metadata, dict):
        provider = app_metadata.get("provider")

    return Identity(
        id=identity_id,
        email=payload.get("email") or None,
        provider=provider,
    )
