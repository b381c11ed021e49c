"""Tests for the strivia.validate package."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from strivia.exceptions import (
    AudienceMismatchError,
    AudienceRequiredError,
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
from strivia.models.claims import ExpectedClaims, RegisteredClaims
from strivia.validate import validate_claims

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)


def build_claims(**kwargs: object) -> RegisteredClaims:
    """Build a set of claims valid at `NOW`, overridden by ``kwargs``."""
    data: dict[str, object] = {
        "issuer": "https://example.com/",
        "subject": "some-user",
        "audience": ["https://example.com/api"],
        "expires_at": NOW + timedelta(hours=1),
        "not_before": NOW - timedelta(minutes=5),
        "issued_at": NOW - timedelta(minutes=5),
        "id": "some-id",
    }
    data.update(kwargs)
    return RegisteredClaims.model_validate(data)


def test_valid(expected: ExpectedClaims) -> None:
    validate_claims(build_claims(), expected, now=NOW)

    # Naive times are UTC.
    validate_claims(build_claims(), expected, now=NOW.replace(tzinfo=None))


def test_default_now(
    claims: RegisteredClaims, expected: ExpectedClaims
) -> None:
    validate_claims(claims, expected)

    claims.expires_at = datetime(2020, 1, 1, tzinfo=UTC)
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(claims, expected)
    assert excinfo.value.has(TokenExpiredError)


def test_expiration_boundary(expected: ExpectedClaims) -> None:
    claims = build_claims(expires_at=NOW)
    validate_claims(claims, expected, now=NOW)

    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(
            claims, expected, now=NOW + timedelta(microseconds=1)
        )
    assert excinfo.value.has(TokenExpiredError)
    assert len(excinfo.value.errors) == 1
    assert str(excinfo.value) == "token is expired"


def test_not_before_boundary(expected: ExpectedClaims) -> None:
    claims = build_claims(not_before=NOW, issued_at=NOW)
    validate_claims(claims, expected, now=NOW)

    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(
            claims, expected, now=NOW - timedelta(microseconds=1)
        )
    assert excinfo.value.has(TokenNotValidYetError)
    assert excinfo.value.has(TokenIssuedInFutureError)
    assert len(excinfo.value.errors) == 2


def test_issued_in_future(expected: ExpectedClaims) -> None:
    claims = build_claims(issued_at=NOW + timedelta(seconds=1))
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(claims, expected, now=NOW)
    assert [type(e) for e in excinfo.value.errors] == [
        TokenIssuedInFutureError
    ]


def test_missing_claims() -> None:
    expected = ExpectedClaims(issuer="foo", subject="bar", audience=["baz"])
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(RegisteredClaims(), expected, now=NOW)
    assert [type(e) for e in excinfo.value.errors] == [
        ExpiresAtRequiredError,
        NotBeforeRequiredError,
        IssuedAtRequiredError,
        IssuerRequiredError,
        SubjectRequiredError,
        AudienceRequiredError,
    ]
    assert str(excinfo.value) == (
        "'exp' claim is required; 'nbf' claim is required; 'iat' claim is"
        " required; 'iss' claim is required; 'sub' claim is required; 'aud'"
        " claim is required"
    )


def test_issuer(expected: ExpectedClaims) -> None:
    claims = build_claims(issuer="https://evil.example.com/")
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(claims, expected, now=NOW)
    assert excinfo.value.has(IssuerMismatchError)
    assert not excinfo.value.has(SubjectMismatchError)

    # An empty expected issuer is not a wildcard.
    expected = expected.model_copy(update={"issuer": ""})
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(build_claims(), expected, now=NOW)
    assert excinfo.value.has(IssuerMismatchError)


def test_subject(expected: ExpectedClaims) -> None:
    claims = build_claims(subject="other-user")
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(claims, expected, now=NOW)
    assert excinfo.value.has(SubjectMismatchError)

    # An empty expected subject accepts any subject, but one is required.
    expected = expected.model_copy(update={"subject": ""})
    validate_claims(claims, expected, now=NOW)
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(build_claims(subject=""), expected, now=NOW)
    assert excinfo.value.has(SubjectRequiredError)


def test_audience(expected: ExpectedClaims) -> None:
    claims = build_claims(audience=["one", "two", "three"])
    for audience in (["two"], ["four", "three"], ["one", "two"]):
        expected = expected.model_copy(update={"audience": audience})
        validate_claims(claims, expected, now=NOW)

    expected = expected.model_copy(update={"audience": ["four", "five"]})
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(claims, expected, now=NOW)
    assert excinfo.value.has(AudienceMismatchError)

    # An empty expected audience never matches.
    expected = expected.model_copy(update={"audience": []})
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(claims, expected, now=NOW)
    assert excinfo.value.has(AudienceMismatchError)


def test_all_failures(expected: ExpectedClaims) -> None:
    claims = build_claims(
        issuer="other",
        subject="other",
        audience=["other"],
        expires_at=NOW - timedelta(seconds=1),
        not_before=NOW + timedelta(seconds=1),
        issued_at=NOW + timedelta(seconds=1),
    )
    with pytest.raises(InvalidClaimsError) as excinfo:
        validate_claims(claims, expected, now=NOW)
    assert [type(e) for e in excinfo.value.errors] == [
        TokenExpiredError,
        TokenNotValidYetError,
        TokenIssuedInFutureError,
        IssuerMismatchError,
        SubjectMismatchError,
        AudienceMismatchError,
    ]
