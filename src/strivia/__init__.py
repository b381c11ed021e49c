"""Issue and verify compact, signed JSON Web Tokens."""

from .exceptions import (
    InvalidAlgorithmError,
    InvalidClaimsError,
    InvalidKeyError,
    MalformedTokenError,
    SignatureVerificationError,
    StriviaError,
)
from .issuer import TokenIssuer
from .keypair import Ed25519KeyPair, RSAKeyPair
from .models.claims import (
    Claims,
    CustomClaims,
    ExpectedClaims,
    RegisteredClaims,
)
from .models.token import Token
from .parser import decode_token
from .signing import SigningMethodRegistry, create_registry
from .validate import validate_claims
from .verify import TokenVerifier, verify_token

__all__ = [
    "Claims",
    "CustomClaims",
    "Ed25519KeyPair",
    "ExpectedClaims",
    "InvalidAlgorithmError",
    "InvalidClaimsError",
    "InvalidKeyError",
    "MalformedTokenError",
    "RSAKeyPair",
    "RegisteredClaims",
    "SignatureVerificationError",
    "SigningMethodRegistry",
    "StriviaError",
    "Token",
    "TokenIssuer",
    "TokenVerifier",
    "create_registry",
    "decode_token",
    "validate_claims",
    "verify_token",
]
