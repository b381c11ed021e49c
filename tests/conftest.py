"""Test fixtures."""

from __future__ import annotations

from datetime import timedelta

import pytest
from safir.datetime import current_datetime

from strivia.keypair import Ed25519KeyPair
from strivia.models.claims import ExpectedClaims, RegisteredClaims
from strivia.signing import SigningMethodRegistry, create_registry
from strivia.verify import TokenVerifier


@pytest.fixture
def keypair() -> Ed25519KeyPair:
    """Return a freshly generated Ed25519 key pair."""
    return Ed25519KeyPair.generate()


@pytest.fixture
def registry() -> SigningMethodRegistry:
    return create_registry()


@pytest.fixture
def verifier(registry: SigningMethodRegistry) -> TokenVerifier:
    return TokenVerifier(registry)


@pytest.fixture
def expected() -> ExpectedClaims:
    """Return the expected claims matching `claims`."""
    return ExpectedClaims(
        issuer="https://example.com/",
        subject="some-user",
        audience=["https://example.com/api"],
    )


@pytest.fixture
def claims() -> RegisteredClaims:
    """Return a valid set of claims issued now and good for an hour."""
    now = current_datetime()
    return RegisteredClaims(
        issuer="https://example.com/",
        subject="some-user",
        audience=["https://example.com/api"],
        expires_at=now + timedelta(hours=1),
        not_before=now,
        issued_at=now,
        id="some-id",
    )
