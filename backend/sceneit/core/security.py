"""
Bearer-token verification against the external identity provider (Supabase Auth).
Never import DB models here — keep this layer pure.

Two modes:
  1. SUPABASE_JWT_SECRET configured → verify signature, expiry and audience
     locally with python-jose.
  2. Otherwise → ask the provider: GET {SUPABASE_URL}/auth/v1/user with the
     caller's token. Any non-200 answer is a rejection.
"""
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from jose import JWTError, jwt

from sceneit.core.config import settings

logger = logging.getLogger(__name__)


class IdentityVerificationError(Exception):
    """Raised when a bearer token is missing, malformed, expired or rejected."""


class IdentityProviderUnavailableError(Exception):
    """Raised when the identity provider cannot be reached."""


@dataclass(frozen=True)
class Identity:
    """The verified caller: provider subject id plus the raw claims."""

    subject_id: str
    email: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)


def identity_from_claims(claims: dict[str, Any]) -> Identity:
    """Build an Identity from a decoded token or a provider user payload."""
    subject = claims.get("sub") or claims.get("id")
    if not subject or not isinstance(subject, str):
        raise IdentityVerificationError("Token has no subject")
    email = claims.get("email")
    return Identity(
        subject_id=subject,
        email=email if isinstance(email, str) and email else None,
        claims=dict(claims),
    )


def decode_provider_token(
    token: str,
    secret: str,
    *,
    algorithm: str = "HS256",
    audience: str | None = None,
) -> Identity:
    """
    Verify a provider-issued JWT with the shared secret.

    Raises IdentityVerificationError on any failure (expired, tampered,
    wrong audience, no subject).
    """
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except JWTError as exc:
        raise IdentityVerificationError("Invalid or expired token") from exc
    return identity_from_claims(claims)


class IdentityProvider:
    """
    Thin async client for the provider's token check.
    Uses httpx so verification does not block the event loop.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        jwt_secret: str | None = None,
        *,
        audience: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.SUPABASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.SUPABASE_ANON_KEY
        self.jwt_secret = jwt_secret if jwt_secret is not None else settings.SUPABASE_JWT_SECRET
        self.audience = audience if audience is not None else settings.JWT_AUDIENCE
        self.timeout = timeout if timeout is not None else settings.IDENTITY_TIMEOUT_SECONDS
        self._transport = transport

    async def verify(self, token: str) -> Identity:
        """Return the verified Identity for *token* or raise IdentityVerificationError."""
        token = (token or "").strip()
        if not token:
            raise IdentityVerificationError("Missing bearer token")

        if self.jwt_secret:
            return decode_provider_token(
                token,
                self.jwt_secret,
                algorithm=settings.JWT_ALGORITHM,
                audience=self.audience or None,
            )
        return await self._fetch_user(token)

    async def _fetch_user(self, token: str) -> Identity:
        if not self.base_url:
            raise IdentityProviderUnavailableError(
                "Neither SUPABASE_JWT_SECRET nor SUPABASE_URL is configured"
            )

        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.RequestError as exc:
            raise IdentityProviderUnavailableError("Identity provider request failed") from exc

        if response.status_code in (401, 403):
            raise IdentityVerificationError("Token rejected by identity provider")
        if response.status_code >= 500:
            raise IdentityProviderUnavailableError(
                f"Identity provider failed with status {response.status_code}"
            )
        if response.status_code != 200:
            raise IdentityVerificationError(
                f"Unexpected identity provider status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise IdentityVerificationError("Malformed identity provider response") from exc
        if not isinstance(payload, dict):
            raise IdentityVerificationError("Malformed identity provider response")
        return identity_from_claims(payload)
