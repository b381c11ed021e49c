"""Representation of JSON Web Keys and key sets."""

from __future__ import annotations

from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PublicKey,
)
from pydantic import BaseModel, Field

from ..constants import ED25519_PUBLIC_KEY_SIZE
from ..exceptions import InvalidKeyError, UnknownKeyIdError
from ..util import base64_to_number, decode_segment

__all__ = ["JWK", "JWKS"]


class JWK(BaseModel):
    """The schema for a JSON Web Key (RFCs 7517, 7518, and 8037).

    Only the fields needed to reconstruct RSA and Ed25519 public keys are
    modeled. Other fields are ignored.
    """

    kty: str = Field(
        ...,
        title="Key type",
        description="Either `RSA` or `OKP` (Ed25519)",
        examples=["RSA"],
    )

    alg: str | None = Field(
        None,
        title="Algorithm",
        description="Algorithm with which the key is meant to be used",
        examples=["RS256"],
    )

    use: str | None = Field(
        None,
        title="Key usage",
        description="Normally `sig` (signatures)",
        examples=["sig"],
    )

    kid: str | None = Field(
        None,
        title="Key ID",
        description=(
            "A name for the key, also used in the header of a JWT signed by"
            " that key. Allows the signer to have multiple valid keys at a"
            " time and thus support key rotation."
        ),
        examples=["some-key-id"],
    )

    n: str | None = Field(
        None,
        title="RSA modulus",
        description=(
            "Big-endian modulus component of the RSA public key encoded in"
            " URL-safe base64 without trailing padding"
        ),
    )

    e: str | None = Field(
        None,
        title="RSA exponent",
        description=(
            "Big-endian exponent component of the RSA public key encoded in"
            " URL-safe base64 without trailing padding"
        ),
        examples=["AQAB"],
    )

    crv: str | None = Field(
        None, title="Curve", description="`Ed25519` for OKP keys"
    )

    x: str | None = Field(
        None,
        title="Public key",
        description=(
            "Raw Ed25519 public key encoded in URL-safe base64 without"
            " trailing padding"
        ),
    )

    def to_public_key(self) -> Ed25519PublicKey | rsa.RSAPublicKey:
        """Convert to a public key usable for verification.

        Raises
        ------
        strivia.exceptions.InvalidKeyError
            Raised if the key type is unsupported or the key is incomplete.
        """
        if self.kty == "RSA":
            return self.to_rsa_public_key()
        elif self.kty == "OKP":
            return self.to_ed25519_public_key()
        else:
            raise InvalidKeyError(f"Unsupported key type {self.kty}")

    def to_ed25519_public_key(self) -> Ed25519PublicKey:
        """Convert an OKP key to an Ed25519 public key."""
        if self.kty != "OKP" or self.crv != "Ed25519" or not self.x:
            raise InvalidKeyError("JWK is not an Ed25519 public key")
        try:
            raw = decode_segment(self.x)
        except ValueError as e:
            raise InvalidKeyError("Invalid Ed25519 public key in JWK") from e
        if len(raw) != ED25519_PUBLIC_KEY_SIZE:
            raise InvalidKeyError("Ed25519 public key has the wrong size")
        return Ed25519PublicKey.from_public_bytes(raw)

    def to_rsa_public_key(self) -> rsa.RSAPublicKey:
        """Convert an RSA key to an RSA public key."""
        if self.kty != "RSA" or not self.n or not self.e:
            raise InvalidKeyError("JWK is not an RSA public key")
        try:
            numbers = rsa.RSAPublicNumbers(
                base64_to_number(self.e), base64_to_number(self.n)
            )
            return numbers.public_key()
        except ValueError as e:
            msg = f"Invalid RSA public key in JWK: {e!s}"
            raise InvalidKeyError(msg) from e


class JWKS(BaseModel):
    """Schema for a JSON Web Key Set."""

    keys: list[JWK] = Field(
        ...,
        title="Signing keys",
        description="Valid signing keys for JWTs",
    )

    def find_key_by_kid(self, kid: str) -> JWK:
        """Find a key by its key ID.

        Parameters
        ----------
        kid
            Key ID from a token header.

        Returns
        -------
        JWK
            The first key with that ID.

        Raises
        ------
        strivia.exceptions.UnknownKeyIdError
            Raised if no key has that ID.
        """
        for key in self.keys:
            if key.kid == kid:
                return key
        raise UnknownKeyIdError(f"key with kid '{kid}' not found")
