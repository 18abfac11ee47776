"""Auth0 JWT Authentication backend for Django REST Framework.

Uses PyJWT with RS256 asymmetric verification.  JWKS keys are fetched
from the Auth0 tenant and cached in-memory (default 300 s) via
``PyJWKClient``; no network call on every request, and the fetch itself
is bounded by ``AUTH0_JWKS_TIMEOUT``.

The identity provider is the source of truth for *who* the caller is.
A local ``users.User`` row keyed by the token ``sub`` is found or created
on first sight so orders can reference their buyer; the role comes from
the ``AUTH0_ROLE_CLAIM`` custom claim (default ``buyer``).

Security decisions
------------------
* **Fail Closed**: any decode / validation error returns 401.
* ``algorithms`` is hard-coded to the configured value (default RS256).
  Never derived from the incoming token (prevents algorithm-confusion
  attacks like CVE-2024-33663).
* Audience **and** issuer are always validated.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

import jwt as pyjwt
import structlog
from django.conf import settings
from django.contrib.auth import get_user_model
from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientError, PyJWTError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from modules.users.constants import UserRole, UserStatus

logger = structlog.get_logger(__name__)


def _issuer() -> str:
    return f"https://{settings.AUTH0_DOMAIN}/" if settings.AUTH0_DOMAIN else ""


@lru_cache(maxsize=1)
def _jwks_client() -> Optional[PyJWKClient]:
    if not settings.AUTH0_DOMAIN:
        return None
    return PyJWKClient(
        f"https://{settings.AUTH0_DOMAIN}/.well-known/jwks.json",
        cache_jwk_set=True,
        lifespan=300,
        timeout=settings.AUTH0_JWKS_TIMEOUT,
    )


def _auth0_enabled() -> bool:
    return bool(_jwks_client() and settings.AUTH0_AUDIENCE and _issuer())


class Auth0JSONWebTokenAuthentication(BaseAuthentication):
    """DRF authentication class that validates Auth0 JWT Bearer tokens."""

    keyword = "Bearer"

    # ------------------------------------------------------------------
    # Public API (DRF contract)
    # ------------------------------------------------------------------

    def authenticate(self, request):
        """Return ``(User, token)`` or ``None`` (no credentials)."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None  # no credentials, let other backends try

        # Allow other JWT backends (e.g. SimpleJWT) if Auth0 is not configured
        # or if the token issuer does not match the Auth0 tenant.
        if not _auth0_enabled():
            return None

        token = self._extract_token(header)
        if not self._token_has_auth0_issuer(token):
            return None

        payload = self._decode_token(token)
        user = self._get_or_create_user(payload)
        logger.info("jwt_authenticated", sub=payload.get("sub", ""), role=user.role)
        return (user, token)

    def authenticate_header(self, request):
        """Value for the ``WWW-Authenticate`` response header on 401."""
        return f'{self.keyword} realm="api"'

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_token(header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _token_has_auth0_issuer(token: str) -> bool:
        try:
            payload = pyjwt.decode(
                token,
                options={
                    "verify_signature": False,
                    "verify_aud": False,
                    "verify_iss": False,
                },
            )
        except PyJWTError:
            return False
        return payload.get("iss") == _issuer()

    @staticmethod
    def _decode_token(token: str) -> dict:
        client = _jwks_client()
        if client is None:
            raise AuthenticationFailed(
                "Auth0 is not configured (AUTH0_DOMAIN missing)."
            )
        try:
            signing_key = client.get_signing_key_from_jwt(token)
            payload = pyjwt.decode(
                token,
                signing_key.key,
                algorithms=[settings.AUTH0_ALGORITHM],
                audience=settings.AUTH0_AUDIENCE,
                issuer=_issuer(),
            )
        except PyJWKClientError as exc:
            logger.error("jwks_fetch_failed", error=str(exc))
            raise AuthenticationFailed("Identity provider unavailable.") from exc
        except PyJWTError as exc:
            logger.warning("jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
        return payload

    @staticmethod
    def _get_or_create_user(payload: dict):
        sub = payload.get("sub")
        if not sub:
            raise AuthenticationFailed("Token has no subject.")

        role = payload.get(settings.AUTH0_ROLE_CLAIM, UserRole.BUYER)
        if role not in UserRole.values:
            role = UserRole.BUYER

        User = get_user_model()
        user, created = User.objects.get_or_create(
            auth0_sub=sub,
            defaults={
                "username": sub[:150],
                "email": payload.get("email", ""),
                "role": role,
                "status": UserStatus.APPROVED,
            },
        )
        if created:
            logger.info("auth0_user_provisioned", user_id=str(user.id), role=role)
        return user
