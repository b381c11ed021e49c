"""Exceptions for Strivia."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models.token import Token

__all__ = [
    "AudienceMismatchError",
    "AudienceRequiredError",
    "ClaimError",
    "ExpiresAtRequiredError",
    "FetchKeysError",
    "InvalidAlgorithmError",
    "InvalidClaimsError",
    "InvalidKeyError",
    "IssuedAtRequiredError",
    "IssuerMismatchError",
    "IssuerRequiredError",
    "MalformedTokenError",
    "NotBeforeRequiredError",
    "NotConfiguredError",
    "SignatureVerificationError",
    "StriviaError",
    "SubjectMismatchError",
    "SubjectRequiredError",
    "TokenExpiredError",
    "TokenIssuedInFutureError",
    "TokenNotValidYetError",
    "UnknownAlgorithmError",
    "UnknownKeyIdError",
]


class StriviaError(Exception):
    """Base class for all Strivia exceptions."""


class MalformedTokenError(StriviaError):
    """The token could not be split or decoded.

    Parameters
    ----------
    message
        Description of the problem.
    token
        Whatever could be recovered from the token before decoding failed.
        This is `None` if the token could not be split or a segment was not
        valid base64, and a partially populated token if the header or
        claims segment was not valid JSON.
    """

    def __init__(
        self,
        message: str = "token is malformed",
        token: Token[Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.token = token


class InvalidAlgorithmError(StriviaError):
    """The token header names an algorithm other than the one expected."""


class UnknownAlgorithmError(StriviaError):
    """No signing method is registered for the requested algorithm."""


class SignatureVerificationError(StriviaError):
    """The token signature did not verify."""


class InvalidKeyError(StriviaError):
    """The key is of the wrong type or size for the algorithm."""


class UnknownKeyIdError(StriviaError):
    """The key ID is missing or was not found in the key set."""


class FetchKeysError(StriviaError):
    """Unable to retrieve a key set."""


class NotConfiguredError(StriviaError):
    """A part of the configuration needed for an operation is missing."""


class ClaimError(StriviaError):
    """Base class for a single failed claim check.

    Subclasses carry a fixed message, so they can be raised or collected
    without arguments.
    """

    message = "claim is invalid"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class ExpiresAtRequiredError(ClaimError):
    """The ``exp`` claim is missing."""

    message = "'exp' claim is required"


class NotBeforeRequiredError(ClaimError):
    """The ``nbf`` claim is missing."""

    message = "'nbf' claim is required"


class IssuedAtRequiredError(ClaimError):
    """The ``iat`` claim is missing."""

    message = "'iat' claim is required"


class IssuerRequiredError(ClaimError):
    """The ``iss`` claim is missing or empty."""

    message = "'iss' claim is required"


class SubjectRequiredError(ClaimError):
    """The ``sub`` claim is missing or empty."""

    message = "'sub' claim is required"


class AudienceRequiredError(ClaimError):
    """The ``aud`` claim is missing or empty."""

    message = "'aud' claim is required"


class TokenExpiredError(ClaimError):
    """The token is past its expiration time."""

    message = "token is expired"


class TokenNotValidYetError(ClaimError):
    """The token is before its not-before time."""

    message = "token is not valid yet"


class TokenIssuedInFutureError(ClaimError):
    """The token claims to have been issued in the future."""

    message = "token is issued in the future"


class IssuerMismatchError(ClaimError):
    """The ``iss`` claim does not match the expected issuer."""

    message = "issuer does not match expected issuer"


class SubjectMismatchError(ClaimError):
    """The ``sub`` claim does not match the expected subject."""

    message = "subject does not match expected subject"


class AudienceMismatchError(ClaimError):
    """No expected audience appears in the ``aud`` claim."""

    message = "audience does not match expected audience"


class InvalidClaimsError(StriviaError):
    """One or more claim checks failed.

    Parameters
    ----------
    errors
        Every individual failure, in the order the checks ran.
    """

    def __init__(self, errors: list[ClaimError]) -> None:
        super().__init__("; ".join(str(e) for e in errors))
        self.errors = errors

    def has(self, kind: type[ClaimError]) -> bool:
        """Whether a failure of the given kind was recorded.

        Parameters
        ----------
        kind
            Exception class of the individual check.

        Returns
        -------
        bool
            `True` if any collected failure is an instance of ``kind``.
        """
        return any(isinstance(e, kind) for e in self.errors)
