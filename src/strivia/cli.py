"""Command-line interface for issuing and checking tokens."""

from __future__ import annotations

import json
import sys
from datetime import timedelta
from pathlib import Path

import click
from httpx import AsyncClient
from safir.asyncio import run_with_asyncio
from safir.click import display_help
from safir.logging import LogLevel

from .config import Config, IssuerConfig
from .constants import ALGORITHM, HTTP_TIMEOUT
from .exceptions import StriviaError
from .issuer import TokenIssuer
from .jwks import JWKSResolver
from .keypair import Ed25519KeyPair, load_public_key
from .models.claims import CustomClaims, ExpectedClaims
from .parser import decode_token
from .signing import create_registry
from .util import encode_segment
from .verify import TokenVerifier

__all__ = [
    "decode",
    "generate_key",
    "help",
    "issue",
    "main",
    "verify",
]

_config_path_option = click.option(
    "--config-path",
    envvar="STRIVIA_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=None,
    help="Configuration file supplying defaults.",
)


def _load_config(config_path: Path | None) -> Config:
    """Load the configuration and configure logging.

    Without a configuration file, only warnings are logged so that log
    messages do not get mixed into command output.
    """
    if config_path:
        config = Config.from_file(config_path)
    else:
        config = Config(log_level=LogLevel.WARNING)
    config.configure_logging()
    return config


def _parse_claims(claims: tuple[str, ...]) -> dict[str, str]:
    result = {}
    for claim in claims:
        name, sep, value = claim.partition("=")
        if not sep or not name:
            msg = f"claim {claim!r} is not of the form name=value"
            raise click.BadParameter(msg, param_hint="--claim")
        result[name] = value
    return result


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s")
def main() -> None:
    """Command-line interface for Strivia."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command()
def generate_key() -> None:
    """Generate a new Ed25519 key pair.

    The output will be the private key of the newly-generated key pair in
    PEM format, from which the public key can be recovered.
    """
    keypair = Ed25519KeyPair.generate()
    sys.stdout.write(keypair.private_key_as_pem().decode())


@main.command()
@_config_path_option
@click.option(
    "--key-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="PEM-encoded Ed25519 private key.",
)
@click.option("--subject", required=True, help="Subject of the token.")
@click.option("--issuer", default=None, help="Issuer of the token.")
@click.option(
    "--audience", multiple=True, help="Audience of the token (repeatable)."
)
@click.option(
    "--lifetime",
    type=click.IntRange(min=1),
    default=None,
    help="Lifetime of the token in minutes.",
)
@click.option(
    "--claim",
    "claims",
    multiple=True,
    help="Additional claim as name=value (repeatable).",
)
def issue(
    *,
    config_path: Path | None,
    key_file: Path | None,
    subject: str,
    issuer: str | None,
    audience: tuple[str, ...],
    lifetime: int | None,
    claims: tuple[str, ...],
) -> None:
    """Issue a new signed token.

    Settings not given on the command line are taken from the issuer
    section of the configuration file.
    """
    config = _load_config(config_path)
    extra_claims = _parse_claims(claims)
    if config.issuer:
        issuer_config = config.issuer
    elif issuer:
        issuer_config = IssuerConfig(issuer=issuer)
    else:
        raise click.UsageError("--issuer is required without configuration")

    updates: dict[str, object] = {}
    if issuer:
        updates["issuer"] = issuer
    if audience:
        updates["audience"] = list(audience)
    if lifetime:
        updates["lifetime"] = timedelta(minutes=lifetime)
    issuer_config = issuer_config.model_copy(update=updates)

    try:
        if key_file:
            keypair = Ed25519KeyPair.from_pem(key_file.read_bytes())
        else:
            keypair = issuer_config.load_keypair()
        token_issuer = TokenIssuer(issuer_config, keypair)
        token = token_issuer.issue_token(subject, claims=extra_claims)
    except StriviaError as e:
        raise click.ClickException(str(e)) from e
    sys.stdout.write(token.raw + "\n")


@main.command()
@_config_path_option
@click.option(
    "--public-key-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="PEM-encoded Ed25519 or RSA public key.",
)
@click.option(
    "--jwks-url", default=None, help="URL of a JSON Web Key Set to use."
)
@click.option("--issuer", default=None, help="Required issuer.")
@click.option("--subject", default=None, help="Required subject.")
@click.option(
    "--audience", multiple=True, help="Acceptable audience (repeatable)."
)
@click.option("--algorithm", default=None, help="Required algorithm.")
@click.argument("token")
@run_with_asyncio
async def verify(
    *,
    config_path: Path | None,
    public_key_file: Path | None,
    jwks_url: str | None,
    issuer: str | None,
    subject: str | None,
    audience: tuple[str, ...],
    algorithm: str | None,
    token: str,
) -> None:
    """Verify a token and print its claims as JSON."""
    config = _load_config(config_path)
    verifier_config = config.verifier
    if verifier_config:
        expected = verifier_config.to_expected_claims()
        algorithm = algorithm or verifier_config.algorithm
        if not public_key_file and not jwks_url:
            public_key_file = verifier_config.public_key_file
            if verifier_config.jwks_url:
                jwks_url = str(verifier_config.jwks_url)
    else:
        expected = ExpectedClaims()
        algorithm = algorithm or ALGORITHM
    updates: dict[str, object] = {}
    if issuer is not None:
        updates["issuer"] = issuer
    if subject is not None:
        updates["subject"] = subject
    if audience:
        updates["audience"] = list(audience)
    expected = expected.model_copy(update=updates)
    if not public_key_file and not jwks_url:
        msg = "One of --public-key-file or --jwks-url is required"
        raise click.UsageError(msg)

    verifier = TokenVerifier(create_registry())
    try:
        if public_key_file:
            key = load_public_key(public_key_file.read_bytes())
            verified = verifier.verify(
                token, key, expected, CustomClaims, algorithm=algorithm
            )
        else:
            assert jwks_url
            async with AsyncClient(timeout=HTTP_TIMEOUT) as client:
                resolver = JWKSResolver(jwks_url, client)
                verified = await verifier.verify_with_key_set(
                    token,
                    resolver,
                    expected,
                    CustomClaims,
                    algorithm=algorithm,
                )
    except StriviaError as e:
        raise click.ClickException(str(e)) from e

    assert verified.claims
    sys.stdout.write(verified.claims.model_dump_json(by_alias=True, indent=2))
    sys.stdout.write("\n")


@main.command()
@click.argument("token")
def decode(*, token: str) -> None:
    """Decode a token without verifying it.

    Prints the header, the claims, and the base64url-encoded signature as
    JSON.
    """
    try:
        decoded = decode_token(token, CustomClaims)
    except StriviaError as e:
        raise click.ClickException(str(e)) from e

    assert decoded.claims
    result = {
        "header": decoded.header,
        "claims": decoded.claims.model_dump(mode="json", by_alias=True),
        "signature": encode_segment(decoded.signature),
    }
    sys.stdout.write(json.dumps(result, indent=2) + "\n")
