"""Verify a JWT."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

import structlog
from structlog.stdlib import BoundLogger

from .constants import ALGORITHM, RSA_ALGORITHM
from .exceptions import InvalidAlgorithmError, StriviaError, UnknownKeyIdError
from .keypair import PublicKey
from .models.claims import ExpectedClaims, RegisteredClaims
from .models.token import ClaimsT, Token
from .parser import decode_token
from .signing import SigningMethodRegistry, create_registry
from .validate import validate_claims

__all__ = ["KeyResolver", "TokenVerifier", "verify_token"]


class KeyResolver(Protocol):
    """Source of public keys for tokens that name their key by ``kid``."""

    async def get_key(self, kid: str) -> PublicKey:
        """Return the public key with the given key ID.

        Raises
        ------
        strivia.exceptions.UnknownKeyIdError
            Raised if there is no key with that ID.
        """


class TokenVerifier:
    """Verifies the validity of a JWT.

    Verification decodes the token, checks that the header names the
    expected algorithm, verifies the signature over the segments exactly as
    received, and finally validates the registered claims. The algorithm
    check happens before any cryptographic operation, so a token claiming
    ``alg`` of ``none`` or any other unexpected algorithm never reaches
    signature verification.

    Parameters
    ----------
    registry
        Signing methods available for verification.
    logger
        Logger to use to report status information.
    """

    def __init__(
        self,
        registry: SigningMethodRegistry,
        logger: BoundLogger | None = None,
    ) -> None:
        self._registry = registry
        self._logger = logger or structlog.get_logger("strivia")

    def verify(
        self,
        raw: str,
        key: Any,
        expected: ExpectedClaims | None = None,
        claims_type: type[ClaimsT] = (
            RegisteredClaims  # type: ignore[assignment]
        ),
        *,
        algorithm: str = ALGORITHM,
        now: datetime | None = None,
    ) -> Token[ClaimsT]:
        """Verify a token signed with a known key.

        Parameters
        ----------
        raw
            The encoded token.
        key
            Public key for ``algorithm``.
        expected
            Required issuer, subject, and audience. `None` is the same as an
            empty `~strivia.models.claims.ExpectedClaims`, which will fail
            the audience check.
        claims_type
            Pydantic model into which to decode the claims.
        algorithm
            The only acceptable value of the ``alg`` header.
        now
            Time against which to check the time claims. Defaults to the
            current time.

        Returns
        -------
        Token
            The verified token with ``valid`` set to `True`.

        Raises
        ------
        strivia.exceptions.MalformedTokenError
            Raised if the token cannot be decoded.
        strivia.exceptions.InvalidAlgorithmError
            Raised if the ``alg`` header is not ``algorithm``.
        strivia.exceptions.InvalidKeyError
            Raised if the key is not usable with ``algorithm``.
        strivia.exceptions.SignatureVerificationError
            Raised if the signature does not verify.
        strivia.exceptions.InvalidClaimsError
            Raised if any registered claim check failed.
        """
        try:
            token = decode_token(raw, claims_type)
            self._check_algorithm(token, algorithm)
            self._verify_token(token, key, expected, algorithm, now)
        except StriviaError as e:
            self._log_failure(e)
            raise
        return token

    async def verify_with_key_set(
        self,
        raw: str,
        resolver: KeyResolver,
        expected: ExpectedClaims | None = None,
        claims_type: type[ClaimsT] = (
            RegisteredClaims  # type: ignore[assignment]
        ),
        *,
        algorithm: str = RSA_ALGORITHM,
        now: datetime | None = None,
    ) -> Token[ClaimsT]:
        """Verify a third-party token whose key is named by ``kid``.

        The key is only retrieved after the token has been decoded and its
        algorithm checked.

        Parameters
        ----------
        raw
            The encoded token.
        resolver
            Source of public keys by key ID.
        expected
            Required issuer, subject, and audience.
        claims_type
            Pydantic model into which to decode the claims.
        algorithm
            The only acceptable value of the ``alg`` header.
        now
            Time against which to check the time claims.

        Returns
        -------
        Token
            The verified token with ``valid`` set to `True`.

        Raises
        ------
        strivia.exceptions.UnknownKeyIdError
            Raised if the header has no ``kid`` or the resolver does not
            know it.
        strivia.exceptions.FetchKeysError
            Raised if the resolver could not retrieve its keys.
        strivia.exceptions.StriviaError
            Any of the exceptions raised by `verify`.
        """
        try:
            token = decode_token(raw, claims_type)
            self._check_algorithm(token, algorithm)
            kid = token.header.get("kid")
            if not isinstance(kid, str) or not kid:
                raise UnknownKeyIdError("No kid in token header")
            key = await resolver.get_key(kid)
            self._verify_token(token, key, expected, algorithm, now)
        except StriviaError as e:
            self._log_failure(e)
            raise
        return token

    def _check_algorithm(self, token: Token[Any], algorithm: str) -> None:
        alg = token.header.get("alg")
        if alg != algorithm:
            msg = f"token has algorithm {alg!r}, expected {algorithm}"
            raise InvalidAlgorithmError(msg)

    def _verify_token(
        self,
        token: Token[ClaimsT],
        key: Any,
        expected: ExpectedClaims | None,
        algorithm: str,
        now: datetime | None,
    ) -> None:
        method = self._registry.get(algorithm)
        method.verify(token.signing_input, token.signature, key)
        validate_claims(token.claims, expected or ExpectedClaims(), now=now)
        token.valid = True
        if token.claims is not None and hasattr(token.claims, "get_id"):
            self._logger.debug("Verified token", jti=token.claims.get_id())

    def _log_failure(self, error: StriviaError) -> None:
        self._logger.debug(
            "Token verification failed",
            error=str(error),
            error_type=type(error).__name__,
        )


def verify_token(
    raw: str,
    key: Any,
    expected: ExpectedClaims | None = None,
    claims_type: type[ClaimsT] = RegisteredClaims,  # type: ignore[assignment]
    *,
    algorithm: str = ALGORITHM,
    now: datetime | None = None,
) -> Token[ClaimsT]:
    """Verify a token with the standard set of signing methods.

    This is a convenience wrapper around `TokenVerifier.verify`. See that
    method for the parameters and exceptions.
    """
    verifier = TokenVerifier(create_registry())
    return verifier.verify(
        raw, key, expected, claims_type, algorithm=algorithm, now=now
    )
