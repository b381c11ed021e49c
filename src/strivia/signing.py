"""Signing methods for JWTs.

Each supported ``alg`` header value maps to a `SigningMethod` that knows
how to sign and verify a signing input with the right kind of key. The
mapping lives in a `SigningMethodRegistry` built by `create_registry` and
passed to whatever needs it.
"""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from typing import Any, override

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from .constants import ALGORITHM, ED25519_PUBLIC_KEY_SIZE
from .exceptions import (
    InvalidKeyError,
    SignatureVerificationError,
    UnknownAlgorithmError,
)

__all__ = [
    "Ed25519SigningMethod",
    "RSASigningMethod",
    "SigningMethod",
    "SigningMethodRegistry",
    "create_registry",
]


class SigningMethod(metaclass=ABCMeta):
    """Abstract base class for a JWT signature algorithm."""

    alg: str
    """Value of the ``alg`` header for this method."""

    @abstractmethod
    def sign(self, signing_input: str, key: Any) -> bytes:
        """Sign the encoded header and claims of a token.

        Parameters
        ----------
        signing_input
            Encoded header and claims joined by a period.
        key
            Private key.

        Returns
        -------
        bytes
            Raw signature.

        Raises
        ------
        InvalidKeyError
            Raised if the key is not usable with this algorithm.
        """

    @abstractmethod
    def verify(self, signing_input: str, signature: bytes, key: Any) -> None:
        """Verify the signature of a token.

        Parameters
        ----------
        signing_input
            Encoded header and claims joined by a period, exactly as received.
        signature
            Decoded signature segment.
        key
            Public key.

        Raises
        ------
        InvalidKeyError
            Raised if the key is not usable with this algorithm.
        SignatureVerificationError
            Raised if the signature does not match.
        """


class Ed25519SigningMethod(SigningMethod):
    """EdDSA signatures using Ed25519.

    Ed25519 hashes the message itself, so the signing input is passed
    through unchanged, and signing is deterministic.
    """

    alg = ALGORITHM

    @override
    def sign(self, signing_input: str, key: Any) -> bytes:
        if not isinstance(key, Ed25519PrivateKey):
            raise InvalidKeyError("Key is not an Ed25519 private key")
        return key.sign(signing_input.encode())

    @override
    def verify(self, signing_input: str, signature: bytes, key: Any) -> None:
        public_key = self._load_public_key(key)
        try:
            public_key.verify(signature, signing_input.encode())
        except InvalidSignature as e:
            msg = "Ed25519 verification error"
            raise SignatureVerificationError(msg) from e

    @staticmethod
    def _load_public_key(key: Any) -> Ed25519PublicKey:
        """Check the type and size of a public key.

        Raw key bytes are accepted as well as loaded keys.
        """
        if isinstance(key, Ed25519PublicKey):
            raw = key.public_bytes_raw()
        elif isinstance(key, bytes):
            raw = key
        else:
            raise InvalidKeyError("Key is not an Ed25519 public key")
        if len(raw) != ED25519_PUBLIC_KEY_SIZE:
            raise InvalidKeyError("Ed25519 public key has the wrong size")
        if isinstance(key, Ed25519PublicKey):
            return key
        return Ed25519PublicKey.from_public_bytes(raw)


class RSASigningMethod(SigningMethod):
    """RSA PKCS#1 v1.5 signatures.

    Parameters
    ----------
    alg
        Value of the ``alg`` header, such as ``RS256``.
    hash_algorithm
        Hash applied to the signing input before signing.
    """

    def __init__(self, alg: str, hash_algorithm: hashes.HashAlgorithm) -> None:
        self.alg = alg
        self._hash = hash_algorithm

    @override
    def sign(self, signing_input: str, key: Any) -> bytes:
        if not isinstance(key, rsa.RSAPrivateKey):
            raise InvalidKeyError("Key is not an RSA private key")
        try:
            return key.sign(
                signing_input.encode(), padding.PKCS1v15(), self._hash
            )
        except ValueError as e:
            raise InvalidKeyError(f"Cannot sign with key: {e!s}") from e

    @override
    def verify(self, signing_input: str, signature: bytes, key: Any) -> None:
        if not isinstance(key, rsa.RSAPublicKey):
            raise InvalidKeyError("Key is not an RSA public key")
        try:
            key.verify(
                signature,
                signing_input.encode(),
                padding.PKCS1v15(),
                self._hash,
            )
        except InvalidSignature as e:
            raise SignatureVerificationError("RSA verification error") from e


class SigningMethodRegistry:
    """Mapping from algorithm name to signing method.

    Parameters
    ----------
    methods
        Initial signing methods.
    """

    def __init__(self, methods: list[SigningMethod] | None = None) -> None:
        self._methods: dict[str, SigningMethod] = {}
        for method in methods or []:
            self.register(method)

    def __contains__(self, alg: object) -> bool:
        return alg in self._methods

    @property
    def algorithms(self) -> list[str]:
        """Names of all registered algorithms, sorted."""
        return sorted(self._methods)

    def get(self, alg: str) -> SigningMethod:
        """Return the signing method for an algorithm.

        Parameters
        ----------
        alg
            Value of the ``alg`` header.

        Returns
        -------
        SigningMethod
            The matching signing method.

        Raises
        ------
        UnknownAlgorithmError
            Raised if no method is registered for that algorithm.
        """
        method = self._methods.get(alg)
        if method is None:
            raise UnknownAlgorithmError(f"Unknown signing algorithm {alg}")
        return method

    def register(self, method: SigningMethod) -> None:
        """Add or replace the signing method for its algorithm."""
        self._methods[method.alg] = method


def create_registry() -> SigningMethodRegistry:
    """Create a registry of all supported signing methods.

    Returns
    -------
    SigningMethodRegistry
        Registry with ``EdDSA``, ``RS256``, ``RS384``, and ``RS512``.
    """
    return SigningMethodRegistry(
        [
            Ed25519SigningMethod(),
            RSASigningMethod("RS256", hashes.SHA256()),
            RSASigningMethod("RS384", hashes.SHA384()),
            RSASigningMethod("RS512", hashes.SHA512()),
        ]
    )
