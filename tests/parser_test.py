"""Tests for the strivia.parser package."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from strivia.exceptions import MalformedTokenError
from strivia.models.claims import CustomClaims, RegisteredClaims
from strivia.parser import decode_token, split_token
from strivia.util import encode_segment

from .support.constants import GOLDEN_CLAIMS_TOKEN, GOLDEN_SIGNED_TOKEN

_HEADER = encode_segment(b'{"alg":"EdDSA","typ":"JWT"}')
_CLAIMS = encode_segment(b'{"sub":"123"}')


class EmailClaims(RegisteredClaims):
    email: str


def test_split_token() -> None:
    assert split_token("a.b.c") == ["a", "b", "c"]
    assert split_token("..") == ["", "", ""]
    for bad in ("", "abc", "a.b", "a.b.c.d", "a.b.c.", "...."):
        assert split_token(bad) is None


def test_decode_token() -> None:
    token = decode_token(GOLDEN_CLAIMS_TOKEN)
    assert token.header == {"alg": "EdDSA", "typ": "JWT"}
    assert token.raw == GOLDEN_CLAIMS_TOKEN
    assert token.raw_parts == GOLDEN_CLAIMS_TOKEN.split(".")
    assert len(token.signature) == 64
    assert not token.valid

    assert token.claims
    assert token.claims.issuer == "loggd.me"
    assert token.claims.subject == "unique-user-id"
    assert token.claims.audience == ["loggd.me"]
    assert token.claims.expires_at == datetime.fromtimestamp(
        1797770620, tz=UTC
    )
    assert token.claims.not_before == datetime.fromtimestamp(
        1766234620, tz=UTC
    )
    assert token.claims.issued_at == token.claims.not_before
    assert token.claims.id == (
        "5UGP3V3L3E7PBMDOAQA6NPSQMHAAE5A5BOBJJAG5C2LKLKQASSWA"
    )


def test_decode_extension_claims() -> None:
    token = decode_token(GOLDEN_SIGNED_TOKEN, EmailClaims)
    assert token.claims
    assert token.claims.email == "user@loggd.me"
    assert token.claims.subject == ""

    custom = decode_token(GOLDEN_CLAIMS_TOKEN, CustomClaims)
    assert custom.claims
    assert custom.claims.model_extra == {"email": "user@loggd.me"}


def test_decode_segment_count() -> None:
    for bad in (
        f"{_HEADER}.{_CLAIMS}",
        f"{_HEADER}.{_CLAIMS}.c2ln.c2ln",
        f"{_HEADER}{_CLAIMS}",
        "",
    ):
        with pytest.raises(MalformedTokenError) as excinfo:
            decode_token(bad)
        assert excinfo.value.token is None


def test_decode_bad_base64() -> None:
    for bad in (
        f"!!{_HEADER}.{_CLAIMS}.c2ln",
        f"{_HEADER}.{_CLAIMS}==.c2ln",
        f"{_HEADER}.{_CLAIMS}.!!invalid!!",
        f"{_HEADER}.{_CLAIMS}.c2ln=",
    ):
        with pytest.raises(MalformedTokenError) as excinfo:
            decode_token(bad)
        assert excinfo.value.token is None


def test_decode_bad_header() -> None:
    for header in (b"not json", b"[]", b'"EdDSA"'):
        raw = f"{encode_segment(header)}.{_CLAIMS}.c2ln"
        with pytest.raises(MalformedTokenError) as excinfo:
            decode_token(raw)
        token = excinfo.value.token
        assert token is not None
        assert token.raw == raw
        assert token.claims is None
        assert not token.valid

    # Deeply nested JSON is rejected rather than exhausting the stack.
    nested = b"[" * 100000 + b"]" * 100000
    raw = f"{encode_segment(nested)}.{_CLAIMS}.c2ln"
    with pytest.raises(MalformedTokenError) as excinfo:
        decode_token(raw)
    assert excinfo.value.token is not None
    with pytest.raises(MalformedTokenError):
        decode_token(f"{encode_segment(nested)}.e30.")


def test_decode_bad_claims() -> None:
    for claims in (b"not json", b"[]", b'{"exp": "tomorrow"}'):
        raw = f"{_HEADER}.{encode_segment(claims)}.c2ln"
        with pytest.raises(MalformedTokenError) as excinfo:
            decode_token(raw)
        token = excinfo.value.token
        assert token is not None
        assert token.header == {"alg": "EdDSA", "typ": "JWT"}
        assert token.claims is None

    # Missing extension claims are a claims decoding failure.
    raw = f"{_HEADER}.{_CLAIMS}.c2ln"
    with pytest.raises(MalformedTokenError):
        decode_token(raw, EmailClaims)

    nested = encode_segment(b'{"a":' * 100000 + b"1" + b"}" * 100000)
    with pytest.raises(MalformedTokenError):
        decode_token(f"{_HEADER}.{nested}.c2ln")


def test_decode_python_field_names() -> None:
    claims = encode_segment(
        b'{"issuer":"loggd.me","subject":"x","audience":["api"],'
        b'"expires_at":4102444800,"issued_at":0,"id":"y"}'
    )
    token = decode_token(f"{_HEADER}.{claims}.c2ln")
    assert token.claims
    assert token.claims.issuer == ""
    assert token.claims.subject == ""
    assert token.claims.audience == []
    assert token.claims.expires_at is None
    assert token.claims.issued_at is None
    assert token.claims.id == ""

    claims = encode_segment(b'{"sub":"u","id":"x"}')
    custom = decode_token(f"{_HEADER}.{claims}.c2ln", CustomClaims)
    assert custom.claims
    assert custom.claims.subject == "u"
    assert custom.claims.id == ""
    assert custom.claims.model_extra == {"id": "x"}
    assert custom.claims.model_dump(by_alias=True) == {"sub": "u", "id": "x"}
