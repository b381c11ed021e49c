"""Constants for Strivia."""

from datetime import timedelta

__all__ = [
    "ALGORITHM",
    "DEFAULT_LIFETIME",
    "ED25519_PUBLIC_KEY_SIZE",
    "HTTP_TIMEOUT",
    "JTI_BYTES",
    "RSA_ALGORITHM",
    "TOKEN_TYPE",
]

ALGORITHM = "EdDSA"
"""JWT algorithm used for all tokens issued by Strivia."""

DEFAULT_LIFETIME = timedelta(days=1)
"""Default lifetime of newly-issued tokens."""

ED25519_PUBLIC_KEY_SIZE = 32
"""Size in bytes of a raw Ed25519 public key."""

HTTP_TIMEOUT = 20.0
"""Timeout (in seconds) for outbound HTTP requests for key sets."""

JTI_BYTES = 20
"""Number of random bytes in a generated ``jti`` claim."""

RSA_ALGORITHM = "RS256"
"""Default algorithm for third-party tokens verified against a key set."""

TOKEN_TYPE = "JWT"
"""Value of the ``typ`` header of every built token."""
