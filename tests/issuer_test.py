"""Tests for issuing tokens."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from safir.datetime import current_datetime
from structlog.testing import capture_logs

from strivia.config import IssuerConfig
from strivia.constants import ALGORITHM, DEFAULT_LIFETIME
from strivia.issuer import TokenIssuer
from strivia.keypair import Ed25519KeyPair
from strivia.models.claims import CustomClaims, ExpectedClaims
from strivia.verify import TokenVerifier, verify_token


def build_issuer(keypair: Ed25519KeyPair, **kwargs: object) -> TokenIssuer:
    config = IssuerConfig.model_validate(
        {
            "issuer": "https://example.com/",
            "audience": ["https://example.com/api"],
            **kwargs,
        }
    )
    return TokenIssuer(config, keypair)


def test_issue(
    keypair: Ed25519KeyPair,
    verifier: TokenVerifier,
    expected: ExpectedClaims,
) -> None:
    issuer = build_issuer(keypair)
    now = current_datetime()
    token = issuer.issue_token("some-user")

    assert token.header == {"alg": ALGORITHM, "typ": "JWT"}
    assert token.raw
    assert token.claims
    assert token.claims.issuer == "https://example.com/"
    assert token.claims.subject == "some-user"
    assert token.claims.audience == ["https://example.com/api"]
    assert token.claims.issued_at
    assert now <= token.claims.issued_at <= now + timedelta(seconds=5)
    assert token.claims.not_before == token.claims.issued_at
    assert token.claims.expires_at == (
        token.claims.issued_at + DEFAULT_LIFETIME
    )
    assert len(token.claims.id) == 32

    verified = verifier.verify(
        token.raw, keypair.public_key, expected, CustomClaims
    )
    assert verified.claims == token.claims

    # Each token gets its own ID.
    other = issuer.issue_token("some-user")
    assert other.claims
    assert other.claims.id != token.claims.id


def test_issue_options(keypair: Ed25519KeyPair) -> None:
    issuer = build_issuer(keypair, keyId="some-kid", lifetime="2h")
    now = datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)
    token = issuer.issue_token("some-user", now=now)
    assert token.header == {"alg": ALGORITHM, "kid": "some-kid", "typ": "JWT"}
    assert token.claims
    assert token.claims.issued_at == now
    assert token.claims.expires_at == now + timedelta(hours=2)

    token = issuer.issue_token(
        "other-user",
        audience=["one", "two"],
        lifetime=timedelta(minutes=5),
        now=now,
    )
    assert token.claims
    assert token.claims.subject == "other-user"
    assert token.claims.audience == ["one", "two"]
    assert token.claims.expires_at == now + timedelta(minutes=5)

    expected = ExpectedClaims(
        issuer="https://example.com/", audience=["two", "three"]
    )
    verified = verify_token(
        token.raw,
        keypair.public_key,
        expected,
        now=now + timedelta(minutes=1),
    )
    assert verified.valid


def test_extra_claims(keypair: Ed25519KeyPair) -> None:
    issuer = build_issuer(keypair)
    token = issuer.issue_token(
        "some-user",
        claims={"email": "user@example.com", "iss": "https://other.com/"},
    )
    assert token.claims
    assert token.claims.issuer == "https://other.com/"
    assert token.claims.model_extra == {"email": "user@example.com"}

    expected = ExpectedClaims(
        issuer="https://other.com/", audience=["https://example.com/api"]
    )
    verified = verify_token(
        token.raw, keypair.public_key, expected, CustomClaims
    )
    assert verified.claims
    assert verified.claims.model_extra == {"email": "user@example.com"}


def test_id_claim_is_extension(keypair: Ed25519KeyPair) -> None:
    issuer = build_issuer(keypair)
    token = issuer.issue_token("some-user", claims={"id": "legacy-id"})
    assert token.claims
    assert token.claims.model_extra == {"id": "legacy-id"}
    assert len(token.claims.id) == 32


def test_logging(keypair: Ed25519KeyPair) -> None:
    issuer = build_issuer(keypair)
    with capture_logs() as logs:
        token = issuer.issue_token("some-user")
    assert token.claims
    assert logs == [
        {
            "event": "Issued token",
            "expires": token.claims.expires_at,
            "jti": token.claims.id,
            "log_level": "info",
            "subject": "some-user",
        }
    ]
