"""General utility functions."""

from __future__ import annotations

import base64
import binascii
import os
import re

from .constants import JTI_BYTES

_SEGMENT_REGEX = re.compile("[A-Za-z0-9_-]*")
"""Characters allowed in an unpadded base64url segment."""

__all__ = [
    "add_padding",
    "base64_to_number",
    "decode_segment",
    "encode_segment",
    "number_to_base64",
    "random_jti",
]


def add_padding(encoded: str) -> str:
    """Add padding to base64 encoded bytes.

    Parameters
    ----------
    encoded
        A base64-encoded string, possibly with the padding removed.

    Returns
    -------
    str
        A correctly-padded version of the encoded string.
    """
    underflow = len(encoded) % 4
    if underflow:
        return encoded + ("=" * (4 - underflow))
    else:
        return encoded


def encode_segment(data: bytes) -> str:
    """Encode one segment of a compact JWT.

    Parameters
    ----------
    data
        Raw bytes of the segment.

    Returns
    -------
    str
        URL-safe base64 encoding of the data with all padding removed.
    """
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def decode_segment(segment: str) -> bytes:
    """Decode one segment of a compact JWT.

    Decoding is strict: only the URL-safe alphabet is accepted and padding
    characters are rejected rather than ignored.

    Parameters
    ----------
    segment
        Unpadded URL-safe base64 text.

    Returns
    -------
    bytes
        The decoded bytes.

    Raises
    ------
    binascii.Error
        Raised if the segment contains characters outside the URL-safe
        alphabet (including ``=``) or has an impossible length.
    """
    if not _SEGMENT_REGEX.fullmatch(segment):
        raise binascii.Error("Invalid character in base64url segment")
    return base64.urlsafe_b64decode(add_padding(segment))


def base64_to_number(data: str) -> int:
    """Convert base64-encoded bytes to an integer.

    Parameters
    ----------
    data
        Base64-encoded number, possibly without padding.

    Returns
    -------
    int
        The result converted to a number.  Note that Python ints can be
        arbitrarily large.

    Notes
    -----
    Used for converting the modulus and exponent in a JWKS to integers in
    preparation for turning them into a public key.
    """
    decoded = base64.urlsafe_b64decode(add_padding(data))
    return int.from_bytes(decoded, byteorder="big")


def number_to_base64(data: int) -> bytes:
    """Convert an integer to base64-encoded bytes in big endian order.

    The base64 encoding used here is the Base64urlUInt encoding defined in RFC
    7515 and 7518, which uses the URL-safe encoding characters and omits all
    padding.

    Parameters
    ----------
    data
        Arbitrarily large non-negative number.

    Returns
    -------
    bytes
        The equivalent URL-safe base64-encoded string corresponding to the
        number in big endian order.
    """
    byte_length = max(1, (data.bit_length() + 7) // 8)
    data_as_bytes = data.to_bytes(byte_length, byteorder="big", signed=False)
    return base64.urlsafe_b64encode(data_as_bytes).rstrip(b"=")


def random_jti() -> str:
    """Generate a random token ID.

    Returns
    -------
    str
        160 random bits encoded in base32 without padding.
    """
    return base64.b32encode(os.urandom(JTI_BYTES)).decode().rstrip("=")
