"""Validation of registered claims."""

from __future__ import annotations

from datetime import UTC, datetime

from safir.datetime import current_datetime

from .exceptions import (
    AudienceMismatchError,
    AudienceRequiredError,
    ClaimError,
    ExpiresAtRequiredError,
    InvalidClaimsError,
    IssuedAtRequiredError,
    IssuerMismatchError,
    IssuerRequiredError,
    NotBeforeRequiredError,
    SubjectMismatchError,
    SubjectRequiredError,
    TokenExpiredError,
    TokenIssuedInFutureError,
    TokenNotValidYetError,
)
from .models.claims import Claims, ExpectedClaims

__all__ = ["validate_claims"]


def validate_claims(
    claims: Claims,
    expected: ExpectedClaims,
    *,
    now: datetime | None = None,
) -> None:
    """Check the registered claims of a token.

    All six checks are always run, so the resulting exception describes
    every problem with the token rather than only the first.

    Parameters
    ----------
    claims
        Claims to check.
    expected
        Required issuer, subject, and audience.
    now
        Time against which to check ``exp``, ``nbf``, and ``iat``. Defaults
        to the current time.

    Raises
    ------
    strivia.exceptions.InvalidClaimsError
        Raised if any check failed. Its ``errors`` attribute holds the
        individual failures.
    """
    if now is None:
        now = current_datetime(microseconds=True)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    checks = (
        _verify_expires_at(claims, now),
        _verify_not_before(claims, now),
        _verify_issued_at(claims, now),
        _verify_issuer(claims, expected.issuer),
        _verify_subject(claims, expected.subject),
        _verify_audience(claims, expected.audience),
    )
    errors = [e for e in checks if e is not None]
    if errors:
        raise InvalidClaimsError(errors)


def _verify_expires_at(claims: Claims, now: datetime) -> ClaimError | None:
    """Succeeds if now is not after ``exp``."""
    exp = claims.get_expiration_time()
    if exp is None:
        return ExpiresAtRequiredError()
    if now > exp:
        return TokenExpiredError()
    return None


def _verify_not_before(claims: Claims, now: datetime) -> ClaimError | None:
    """Succeeds if now is not before ``nbf``."""
    nbf = claims.get_not_before()
    if nbf is None:
        return NotBeforeRequiredError()
    if now < nbf:
        return TokenNotValidYetError()
    return None


def _verify_issued_at(claims: Claims, now: datetime) -> ClaimError | None:
    """Succeeds if now is not before ``iat``."""
    iat = claims.get_issued_at()
    if iat is None:
        return IssuedAtRequiredError()
    if now < iat:
        return TokenIssuedInFutureError()
    return None


def _verify_issuer(claims: Claims, expected: str) -> ClaimError | None:
    # An empty expected issuer is compared like any other value.
    issuer = claims.get_issuer()
    if not issuer:
        return IssuerRequiredError()
    if issuer != expected:
        return IssuerMismatchError()
    return None


def _verify_subject(claims: Claims, expected: str) -> ClaimError | None:
    subject = claims.get_subject()
    if not subject:
        return SubjectRequiredError()
    if expected and subject != expected:
        return SubjectMismatchError()
    return None


def _verify_audience(
    claims: Claims, expected: list[str]
) -> ClaimError | None:
    # An empty expected audience never matches.
    audience = claims.get_audience()
    if not audience:
        return AudienceRequiredError()
    if any(aud in audience for aud in expected):
        return None
    return AudienceMismatchError()
