"""Verification of bearer tokens issued by the external identity provider.

The service never issues tokens itself.  It only checks that a token was
signed by the provider (a configured PEM public key, or the provider's
JWKS endpoint), that it has not expired, and, when configured, that it
was minted for this issuer/audience.

Algorithms are pinned from configuration so a token cannot pick its own
(alg:none, HS256-with-public-key).
"""

from __future__ import annotations

import logging
from typing import Any

import jwt

from lms_api.core.config import Settings
from lms_api.models.principal import Principal

logger = logging.getLogger(__name__)


class IdentityVerifier:
    def __init__(
        self,
        *,
        algorithms: tuple[str, ...],
        public_key: Any = None,
        jwks_client: jwt.PyJWKClient | None = None,
        issuer: str | None = None,
        audience: str | None = None,
    ) -> None:
        if public_key is None and jwks_client is None:
            raise ValueError("IdentityVerifier needs a public key or a JWKS client")
        self._algorithms = list(algorithms)
        self._public_key = public_key
        self._jwks_client = jwks_client
        self._issuer = issuer
        self._audience = audience

    def _signing_key(self, token: str) -> Any:
        if self._jwks_client is not None:
            # Raises PyJWKClientError (an InvalidTokenError) for unknown kids
            return self._jwks_client.get_signing_key_from_jwt(token).key
        return self._public_key

    def decode(self, token: str) -> dict[str, Any]:
        """Verify signature and claims, return the payload.

        Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError.
        """
        options: dict[str, Any] = {"require": ["sub", "exp"]}
        if self._audience is None:
            options["verify_aud"] = False
        return jwt.decode(
            token,
            self._signing_key(token),
            algorithms=self._algorithms,
            issuer=self._issuer,
            audience=self._audience,
            options=options,
        )

    def verify(self, token: str) -> Principal:
        claims = self.decode(token)
        roles = claims.get("roles") or []
        if isinstance(roles, str):
            roles = roles.split()
        return Principal(
            user_id=str(claims["sub"]),
            roles=frozenset(roles),
            session_id=claims.get("sid"),
        )


def build_identity_verifier(settings: Settings) -> IdentityVerifier | None:
    """Build the verifier from settings; None when no key source is configured."""
    if settings.identity_public_key:
        logger.info("Identity tokens verified with configured public key")
        return IdentityVerifier(
            algorithms=settings.identity_algorithms,
            public_key=settings.identity_public_key,
            issuer=settings.identity_issuer,
            audience=settings.identity_audience,
        )
    if settings.identity_jwks_url:
        logger.info("Identity tokens verified against JWKS %s", settings.identity_jwks_url)
        return IdentityVerifier(
            algorithms=settings.identity_algorithms,
            jwks_client=jwt.PyJWKClient(settings.identity_jwks_url, cache_keys=True),
            issuer=settings.identity_issuer,
            audience=settings.identity_audience,
        )
    logger.warning("No identity provider key configured; authenticated routes return 503")
    return None
