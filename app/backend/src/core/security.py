"""Bearer-token authentication and role enforcement."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import httpx
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.backend.src.core.config import get_settings
from app.backend.src.core.errors import AccessError, UpstreamError
from app.backend.src.db import get_session_dependency
from app.backend.src.models import User
from app.backend.src.services.users import provision_user

LOGGER = structlog.get_logger(__name__)

ALGORITHMS = ["RS256"]
_bearer = HTTPBearer(auto_error=False)


@lru_cache()
def _signing_keys(domain: str) -> dict[str, dict[str, Any]]:
    """Return the identity provider's public keys indexed by ``kid``."""

    url = f"https://{domain}/.well-known/jwks.json"
    try:
        response = httpx.get(url, timeout=5.0)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        LOGGER.error("jwks_fetch_failed", url=url, error=str(exc))
        raise UpstreamError("Provedor de identidade indisponível", details=str(exc)) from exc
    return {key["kid"]: key for key in response.json().get("keys", []) if key.get("kid")}


def _audience_set(values: Any) -> set[str]:
    """Normalise an audience claim or config value into comparable strings.

    Accepts a single string (comma or whitespace separated) or a list. Trailing
    slashes are ignored so ``https://api/`` and ``https://api`` match.
    """

    if isinstance(values, str):
        values = values.replace(",", " ").split()
    if not isinstance(values, (list, tuple, set)):
        return set()
    return {value.strip().rstrip("/") for value in values if isinstance(value, str) and value.strip()}


def decode_token(token: str, *, domain: str, audiences: set[str]) -> dict[str, Any]:
    """Verify an RS256 access token against the domain's JWKS and audiences."""

    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError as exc:
        raise AccessError("Token inválido", authenticated=False) from exc

    key = _signing_keys(domain).get(kid) if kid else None
    if key is None:
        raise AccessError("Token inválido", details="Unknown signing key", authenticated=False)

    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=ALGORITHMS,
            issuer=f"https://{domain}/",
            options={"verify_aud": False},
        )
    except JWTError as exc:
        raise AccessError("Token inválido", details=str(exc), authenticated=False) from exc

    if not _audience_set(claims.get("aud")) & audiences:
        raise AccessError("Token inválido", details="Invalid audience", authenticated=False)
    return claims


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    session: Session = Depends(get_session_dependency),
) -> User:
    """Resolve (and on first login provision) the caller from the bearer token."""

    if credentials is None:
        raise AccessError(
            "Usuário não autenticado",
            details="Missing authorization header",
            authenticated=False,
        )

    settings = get_settings()
    audiences = _audience_set(settings.auth_audience or "")
    if not settings.auth_domain or not audiences:
        LOGGER.error("auth_configuration_incomplete")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication configuration is incomplete",
        )

    claims = decode_token(credentials.credentials, domain=settings.auth_domain, audiences=audiences)
    if not claims.get("sub"):
        raise AccessError("Token inválido", details="Token missing subject", authenticated=False)

    user = provision_user(session, claims)
    if user is None:
        raise AccessError("Usuário não encontrado", details="Token lacks subject or e-mail")

    LOGGER.debug("current_user_resolved", user_id=user.id, role=user.role)
    return user


def require_manager_user(user: User = Depends(get_current_user)) -> User:
    """Dependency ensuring the caller is a gestora."""

    if not user.is_manager:
        raise AccessError("Apenas gestoras podem acessar este recurso")
    return user


__all__ = [
    "decode_token",
    "get_current_user",
    "require_manager_user",
]
