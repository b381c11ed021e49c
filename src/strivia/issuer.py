"""Token issuer."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

import structlog
from safir.datetime import current_datetime
from structlog.stdlib import BoundLogger

from .config import IssuerConfig
from .keypair import Ed25519KeyPair
from .models.claims import CustomClaims
from .models.token import Token
from .signing import SigningMethodRegistry, create_registry
from .util import random_jti

__all__ = ["TokenIssuer"]


class TokenIssuer:
    """Issue new EdDSA-signed JWTs.

    Parameters
    ----------
    config
        Configuration parameters for the issuer.
    keypair
        Key pair used to sign issued tokens.
    logger
        Logger to use to report status information.
    registry
        Signing methods to use. Defaults to the standard set.
    """

    def __init__(
        self,
        config: IssuerConfig,
        keypair: Ed25519KeyPair,
        logger: BoundLogger | None = None,
        registry: SigningMethodRegistry | None = None,
    ) -> None:
        self._config = config
        self._keypair = keypair
        self._logger = logger or structlog.get_logger("strivia")
        self._registry = registry or create_registry()

    def issue_token(
        self,
        subject: str,
        *,
        audience: Iterable[str] | None = None,
        lifetime: timedelta | None = None,
        now: datetime | None = None,
        claims: Mapping[str, Any] | None = None,
    ) -> Token[CustomClaims]:
        """Issue a signed token.

        The token carries the configured issuer, the given subject, an
        ``iat`` and ``nbf`` of the current time, an ``exp`` of the current
        time plus the lifetime, and a random ``jti``.

        Parameters
        ----------
        subject
            Subject (``sub``) claim of the token.
        audience
            Audiences of the token. Defaults to the configured audience.
        lifetime
            How long the token is valid. Defaults to the configured
            lifetime.
        now
            Issue time of the token. Defaults to the current time.
        claims
            Additional claims to add to the token. These may override the
            registered claims set by the issuer.

        Returns
        -------
        Token
            The signed token.

        Raises
        ------
        strivia.exceptions.InvalidKeyError
            Raised if the signing key is unusable.
        """
        if now is None:
            now = current_datetime()
        if lifetime is None:
            lifetime = self._config.lifetime
        if audience is None:
            audience = self._config.audience
        payload = {
            "iss": self._config.issuer,
            "sub": subject,
            "aud": list(audience),
            "exp": now + lifetime,
            "nbf": now,
            "iat": now,
            "jti": random_jti(),
            **(claims or {}),
        }
        token = Token.new(
            CustomClaims.model_validate(payload, by_alias=True, by_name=False)
        )
        if self._config.key_id:
            token.header["kid"] = self._config.key_id
        token.signed_string(self._keypair.private_key, self._registry)

        assert token.claims
        self._logger.info(
            "Issued token",
            jti=token.claims.id,
            subject=token.claims.subject,
            expires=token.claims.expires_at,
        )
        return token
