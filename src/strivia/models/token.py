"""Representation of a JWT being built or decoded."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Generic, Self, TypeVar

from pydantic import BaseModel

from ..constants import ALGORITHM, TOKEN_TYPE
from ..signing import SigningMethodRegistry, create_registry
from ..util import encode_segment

ClaimsT = TypeVar("ClaimsT", bound=BaseModel)

__all__ = ["ClaimsT", "Token", "serialize_header"]


def serialize_header(header: dict[str, Any]) -> bytes:
    """Serialize a JOSE header to compact JSON.

    Keys are sorted so that the same header always produces the same bytes.

    Parameters
    ----------
    header
        The header fields.

    Returns
    -------
    bytes
        UTF-8 JSON with no insignificant whitespace.
    """
    encoded = json.dumps(
        header, separators=(",", ":"), sort_keys=True, ensure_ascii=False
    )
    return encoded.encode()


@dataclass
class Token(Generic[ClaimsT]):
    """A JWT, either being built or decoded from its compact form.

    Tokens to be issued are created with `new` and turned into their
    compact form with `signed_string`. Tokens received from elsewhere are
    created by `~strivia.parser.decode_token`, and only a successful run of
    `~strivia.verify.TokenVerifier.verify` sets ``valid``.
    """

    header: dict[str, Any] = field(default_factory=dict)
    """Decoded JOSE header."""

    claims: ClaimsT | None = None
    """Decoded claims, or `None` if they could not be decoded."""

    raw: str = ""
    """Compact form of the token, set once signed or parsed."""

    raw_parts: list[str] = field(default_factory=list)
    """The three undecoded segments of ``raw``."""

    signature: bytes = b""
    """Decoded signature, set once signed or parsed."""

    valid: bool = False
    """Whether the token was fully verified."""

    @classmethod
    def new(cls, claims: ClaimsT) -> Self:
        """Create a token to be signed with EdDSA.

        Parameters
        ----------
        claims
            Claims of the new token.

        Returns
        -------
        Token
            Token with a ``typ`` of ``JWT`` and an ``alg`` of ``EdDSA``.
        """
        return cls(header={"typ": TOKEN_TYPE, "alg": ALGORITHM}, claims=claims)

    @property
    def signing_input(self) -> str:
        """Header and claims segments exactly as they appear on the wire."""
        if len(self.raw_parts) != 3:
            raise ValueError("Token has not been signed or parsed")
        return self.raw_parts[0] + "." + self.raw_parts[1]

    def signed_string(
        self, key: Any, registry: SigningMethodRegistry | None = None
    ) -> str:
        """Sign the token and return its compact serialization.

        Parameters
        ----------
        key
            Private key for the algorithm named in the ``alg`` header.
        registry
            Signing methods to choose from. If not given, the standard set
            from `~strivia.signing.create_registry` is used.

        Returns
        -------
        str
            The signed token.

        Raises
        ------
        strivia.exceptions.InvalidKeyError
            Raised if the key cannot be used with the token algorithm.
        strivia.exceptions.UnknownAlgorithmError
            Raised if the ``alg`` header names an unregistered algorithm.
        """
        if registry is None:
            registry = create_registry()
        method = registry.get(self.header["alg"])
        if self.claims is None:
            raise ValueError("Token has no claims to sign")

        header = encode_segment(serialize_header(self.header))
        claims = encode_segment(
            self.claims.model_dump_json(by_alias=True).encode()
        )
        signing_input = header + "." + claims
        signature = method.sign(signing_input, key)

        self.raw_parts = [header, claims, encode_segment(signature)]
        self.raw = ".".join(self.raw_parts)
        self.signature = signature
        return self.raw
