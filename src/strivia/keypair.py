"""Key pair handling for Ed25519 and RSA keys."""

from __future__ import annotations

import base64
import binascii
from typing import Self

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_der_private_key,
    load_der_public_key,
    load_pem_private_key,
    load_pem_public_key,
)

from .constants import RSA_ALGORITHM
from .exceptions import InvalidKeyError
from .models.jwks import JWK, JWKS
from .util import number_to_base64

PublicKey = Ed25519PublicKey | rsa.RSAPublicKey
"""Type of public keys that can verify tokens."""

__all__ = [
    "Ed25519KeyPair",
    "PublicKey",
    "RSAKeyPair",
    "load_public_key",
    "parse_ed25519_private_key",
    "parse_ed25519_public_key",
]


def _decode_der(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise InvalidKeyError(f"Key is not valid base64: {e!s}") from e


def parse_ed25519_private_key(data: str) -> Ed25519PrivateKey:
    """Parse an Ed25519 private key from base64-encoded PKCS#8 DER.

    Parameters
    ----------
    data
        Standard base64 encoding of the DER form of the key.

    Returns
    -------
    Ed25519PrivateKey
        The parsed key.

    Raises
    ------
    strivia.exceptions.InvalidKeyError
        Raised if the data cannot be parsed or is not an Ed25519 key.
    """
    try:
        key = load_der_private_key(_decode_der(data), password=None)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError(f"Cannot parse private key: {e!s}") from e
    if not isinstance(key, Ed25519PrivateKey):
        raise InvalidKeyError("Key is not a valid Ed25519 private key")
    return key


def parse_ed25519_public_key(data: str) -> Ed25519PublicKey:
    """Parse an Ed25519 public key from base64-encoded DER.

    Parameters
    ----------
    data
        Standard base64 encoding of the SubjectPublicKeyInfo DER form.

    Returns
    -------
    Ed25519PublicKey
        The parsed key.

    Raises
    ------
    strivia.exceptions.InvalidKeyError
        Raised if the data cannot be parsed or is not an Ed25519 key.
    """
    try:
        key = load_der_public_key(_decode_der(data))
    except (ValueError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError(f"Cannot parse public key: {e!s}") from e
    if not isinstance(key, Ed25519PublicKey):
        raise InvalidKeyError("Key is not a valid Ed25519 public key")
    return key


def load_public_key(pem: bytes) -> PublicKey:
    """Load a PEM-encoded public key usable for token verification.

    Parameters
    ----------
    pem
        The key in SubjectPublicKeyInfo PEM format.

    Returns
    -------
    PublicKey
        The Ed25519 or RSA public key.

    Raises
    ------
    strivia.exceptions.InvalidKeyError
        Raised if the key cannot be parsed or is of another type.
    """
    try:
        key = load_pem_public_key(pem)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError(f"Cannot parse public key: {e!s}") from e
    if not isinstance(key, Ed25519PublicKey | rsa.RSAPublicKey):
        raise InvalidKeyError("Key is not an Ed25519 or RSA public key")
    return key


class Ed25519KeyPair:
    """An Ed25519 key pair used to issue tokens.

    Notes
    -----
    Created by calling :py:meth:`~Ed25519KeyPair.generate`,
    :py:meth:`~Ed25519KeyPair.from_pem`, or
    :py:meth:`~Ed25519KeyPair.from_base64` rather than the constructor.
    """

    @classmethod
    def from_base64(cls, data: str) -> Self:
        """Import a key pair from a base64-encoded PKCS#8 DER private key."""
        return cls(parse_ed25519_private_key(data))

    @classmethod
    def from_pem(cls, pem: bytes) -> Self:
        """Import an Ed25519 key pair from a PEM-encoded private key.

        Parameters
        ----------
        pem
            The PEM-encoded key (must not be password-protected).

        Returns
        -------
        Ed25519KeyPair
            The corresponding key pair.

        Raises
        ------
        strivia.exceptions.InvalidKeyError
            Raised if the provided key is not an Ed25519 private key.
        """
        try:
            private_key = load_pem_private_key(pem, password=None)
        except (ValueError, UnsupportedAlgorithm) as e:
            raise InvalidKeyError(f"Cannot parse private key: {e!s}") from e
        if not isinstance(private_key, Ed25519PrivateKey):
            raise InvalidKeyError("Key is not an Ed25519 private key")
        return cls(private_key)

    @classmethod
    def generate(cls) -> Self:
        """Generate a new Ed25519 key pair."""
        return cls(Ed25519PrivateKey.generate())

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self.private_key = private_key

    @property
    def public_key(self) -> Ed25519PublicKey:
        """The public half of the key pair."""
        return self.private_key.public_key()

    def private_key_as_base64(self) -> str:
        """Return the private key as base64-encoded PKCS#8 DER."""
        der = self.private_key.private_bytes(
            Encoding.DER, PrivateFormat.PKCS8, NoEncryption()
        )
        return base64.b64encode(der).decode()

    def private_key_as_pem(self) -> bytes:
        """Return the private key encoded using PKCS#8 with no encryption."""
        return self.private_key.private_bytes(
            Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
        )

    def public_key_as_base64(self) -> str:
        """Return the public key as base64-encoded SubjectPublicKeyInfo."""
        der = self.public_key.public_bytes(
            Encoding.DER, PublicFormat.SubjectPublicKeyInfo
        )
        return base64.b64encode(der).decode()

    def public_key_as_pem(self) -> bytes:
        """Return the public key in SubjectPublicKeyInfo PEM format."""
        return self.public_key.public_bytes(
            Encoding.PEM, PublicFormat.SubjectPublicKeyInfo
        )


class RSAKeyPair:
    """An RSA key pair with some simple helper functions.

    Strivia only issues EdDSA tokens, so this is used for third-party keys
    and for publishing RSA keys as a key set.

    Notes
    -----
    Created by calling :py:meth:`~RSAKeyPair.generate` or
    :py:meth:`~RSAKeyPair.from_pem` rather than the constructor.
    """

    @classmethod
    def from_pem(cls, pem: bytes) -> Self:
        """Import an RSA key pair from a PEM-encoded private key.

        Parameters
        ----------
        pem
            The PEM-encoded key (must not be password-protected).

        Returns
        -------
        RSAKeyPair
            The corresponding key pair.

        Raises
        ------
        strivia.exceptions.InvalidKeyError
            Raised if the provided key is not an RSA private key.
        """
        try:
            private_key = load_pem_private_key(pem, password=None)
        except (ValueError, UnsupportedAlgorithm) as e:
            raise InvalidKeyError(f"Cannot parse private key: {e!s}") from e
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise InvalidKeyError("Key is not an RSA private key")
        return cls(private_key)

    @classmethod
    def generate(cls) -> Self:
        """Generate a new 2048-bit RSA key pair."""
        private_key = rsa.generate_private_key(
            public_exponent=65537, key_size=2048
        )
        return cls(private_key)

    def __init__(self, private_key: rsa.RSAPrivateKey) -> None:
        self.private_key = private_key

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        """The public half of the key pair."""
        return self.private_key.public_key()

    def public_key_as_jwks(
        self, kid: str | None = None, alg: str = RSA_ALGORITHM
    ) -> JWKS:
        """Return the public key in JWKS format.

        Parameters
        ----------
        kid
            The key ID.  If not included, the kid will be omitted, making the
            result invalid JWKS.
        alg
            Algorithm to advertise for the key.

        Returns
        -------
        JWKS
            The public key in JWKS format.
        """
        public_numbers = self.public_key.public_numbers()
        jwk = JWK(
            alg=alg,
            kid=kid,
            kty="RSA",
            use="sig",
            n=number_to_base64(public_numbers.n).decode(),
            e=number_to_base64(public_numbers.e).decode(),
        )
        return JWKS(keys=[jwk])

    def public_key_as_pem(self) -> bytes:
        """Return the public key in SubjectPublicKeyInfo PEM format."""
        return self.public_key.public_bytes(
            Encoding.PEM, PublicFormat.SubjectPublicKeyInfo
        )
