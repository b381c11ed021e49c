"""Decode a compact JWT without verifying it."""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from .exceptions import MalformedTokenError
from .models.claims import RegisteredClaims
from .models.token import ClaimsT, Token
from .util import decode_segment

__all__ = ["decode_token", "split_token"]

_HEADER_ADAPTER = TypeAdapter(dict[str, Any])


def split_token(raw: str) -> list[str] | None:
    """Split a compact JWT into its three segments.

    Parameters
    ----------
    raw
        The encoded token.

    Returns
    -------
    list of str or None
        Header, claims, and signature segments, or `None` unless the token
        contains exactly two periods. A token with a fourth segment is
        rejected rather than truncated.
    """
    header, sep, remain = raw.partition(".")
    if not sep:
        return None
    claims, sep, signature = remain.partition(".")
    if not sep or "." in signature:
        return None
    return [header, claims, signature]


def decode_token(
    raw: str,
    claims_type: type[ClaimsT] = RegisteredClaims,  # type: ignore[assignment]
) -> Token[ClaimsT]:
    """Decode a compact JWT without checking its signature or claims.

    This does no cryptographic verification. Use
    `~strivia.verify.TokenVerifier` for tokens from untrusted sources.

    Parameters
    ----------
    raw
        The encoded token.
    claims_type
        Pydantic model into which to decode the claims.

    Returns
    -------
    Token
        The decoded token. Its ``valid`` attribute is always `False`.

    Raises
    ------
    strivia.exceptions.MalformedTokenError
        Raised if the token cannot be decoded. If the token could be split
        and the failure was in parsing the JSON of the header or claims,
        the ``token`` attribute of the exception holds the partially decoded
        token. Otherwise it is `None`.
    """
    parts = split_token(raw)
    if parts is None:
        raise MalformedTokenError("token does not have three segments")
    token: Token[ClaimsT] = Token(raw=raw, raw_parts=parts)

    try:
        header_bytes = decode_segment(parts[0])
    except ValueError as e:
        raise MalformedTokenError("header is not valid base64url") from e
    try:
        token.header = _HEADER_ADAPTER.validate_json(header_bytes)
    except ValidationError as e:
        msg = "header is not a valid JSON object"
        raise MalformedTokenError(msg, token) from e

    try:
        claims_bytes = decode_segment(parts[1])
    except ValueError as e:
        raise MalformedTokenError("claims are not valid base64url") from e
    try:
        token.claims = claims_type.model_validate_json(
            claims_bytes, by_alias=True, by_name=False
        )
    except ValidationError as e:
        raise MalformedTokenError("claims are not valid JSON", token) from e

    try:
        token.signature = decode_segment(parts[2])
    except ValueError as e:
        raise MalformedTokenError("signature is not valid base64url") from e

    return token
