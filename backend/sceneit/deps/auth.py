"""
Auth dependencies — shared across all protected endpoints.

Usage in any route:
    from sceneit.deps.auth import get_current_identity, get_current_profile

    @router.get("/protected")
    def protected(profile: Profile = Depends(get_current_profile)):
        ...

Verification happens before any data-layer call; a rejected token yields
401 and the handler never runs.
"""
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from sceneit.core.security import (
    Identity,
    IdentityProvider,
    IdentityProviderUnavailableError,
    IdentityVerificationError,
)
from sceneit.db.models import Profile
from sceneit.db.session import get_db

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _credentials_exception(detail: str = "Invalid or expired token") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_identity_provider() -> IdentityProvider:
    """Provider client built from settings; overridable in tests."""
    return IdentityProvider()


async def _verify(credentials: HTTPAuthorizationCredentials, provider: IdentityProvider) -> Identity:
    try:
        return await provider.verify(credentials.credentials)
    except IdentityVerificationError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise _credentials_exception() from exc
    except IdentityProviderUnavailableError as exc:
        logger.error("Identity provider unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    """
    Verify the bearer token and return the caller's Identity.

    Raises 401 when the header is missing or the token is rejected.
    """
    if credentials is None or not credentials.credentials:
        raise _credentials_exception("Missing bearer token")
    return await _verify(credentials, provider)


async def get_optional_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity | None:
    """
    Like get_current_identity, but anonymous callers get None instead of 401.

    A rejected token is treated as anonymous, so public reads never fail on a
    stale session. An unreachable provider still yields 503.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        return await provider.verify(credentials.credentials)
    except IdentityVerificationError as exc:
        logger.info("Ignoring rejected bearer token on public read: %s", exc)
        return None
    except IdentityProviderUnavailableError as exc:
        logger.error("Identity provider unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc


def get_current_profile(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> Profile:
    """
    Load the caller's profile.

    Raises 404 when the account is verified but has never created a profile.
    """
    profile = db.query(Profile).filter(Profile.user_id == identity.subject_id).first()
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found. Create a profile first.",
        )
    return profile
