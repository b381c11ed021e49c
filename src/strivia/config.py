"""Configuration for Strivia.

Strivia is configured by a YAML file given with ``--config-path``, whose
keys are the camel-case forms of the settings below. Secrets may instead be
injected via environment variables. Only the settings with explicit
``validation_alias`` settings are intended to be set that way.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Self, override

import yaml
from pydantic import AliasChoices, Field, HttpUrl, SecretStr, model_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging
from safir.pydantic import HumanTimedelta

from .constants import ALGORITHM, DEFAULT_LIFETIME
from .exceptions import NotConfiguredError
from .keypair import Ed25519KeyPair, PublicKey, load_public_key
from .models.claims import ExpectedClaims

_ENV_PREFIX = "STRIVIA_"
"""Prefix of the environment variables that override settings."""

__all__ = [
    "Config",
    "EnvFirstSettings",
    "IssuerConfig",
    "VerifierConfig",
]


class EnvFirstSettings(BaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Settings use camel-case in the configuration file and forbid all extra
    attributes. Environment variables take precedence over arguments to
    the class constructor.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )

    @override
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support. Init parameters
        come from the YAML configuration file and environment variables
        should take precedence over them.
        """
        return (env_settings, init_settings)

    @model_validator(mode="before")
    @classmethod
    def _prefer_environment(cls, data: Any) -> Any:
        """Drop file settings that are overridden by the environment.

        The environment and the configuration file are merged before
        validation, and the merged data may contain both the field name from
        the environment and the camel-case key from the file. Pydantic
        prefers the latter, so remove it when the environment variable is
        set.
        """
        if not isinstance(data, dict):
            return data
        environ = {k.upper() for k in os.environ}
        data = dict(data)
        for name, field in cls.model_fields.items():
            if not isinstance(field.validation_alias, AliasChoices):
                continue
            choices = [
                c for c in field.validation_alias.choices if isinstance(c, str)
            ]
            overrides = [c for c in choices if c.startswith(_ENV_PREFIX)]
            if not any(c.upper() in environ for c in overrides):
                continue
            for choice in choices:
                if choice != name and choice not in overrides:
                    data.pop(choice, None)
        return data


class IssuerConfig(EnvFirstSettings):
    """Configuration for issuing tokens."""

    issuer: str = Field(
        ...,
        title="Token issuer",
        description="Issuer (``iss``) claim in issued tokens",
        examples=["https://example.com/"],
    )

    audience: list[str] = Field(
        [],
        title="Token audience",
        description="Audience (``aud``) claim in issued tokens",
        examples=[["https://example.com/api"]],
    )

    key_id: str | None = Field(
        None,
        title="Token key ID",
        description=(
            "Key ID (``kid``) header in issued tokens. If not set, issued"
            " tokens have no ``kid`` header."
        ),
    )

    lifetime: HumanTimedelta = Field(
        DEFAULT_LIFETIME,
        title="Token lifetime",
        description="How long issued tokens are valid",
        examples=["1d", "8h"],
    )

    key: SecretStr | None = Field(
        None,
        title="Ed25519 private key",
        description=(
            "PEM-encoded Ed25519 private key used to sign issued tokens."
            " Takes precedence over ``keyFile``."
        ),
        validation_alias=AliasChoices("STRIVIA_ISSUER_KEY", "key"),
    )

    key_file: Path | None = Field(
        None,
        title="Ed25519 private key file",
        description="Path to a PEM-encoded Ed25519 private key",
    )

    def load_keypair(self) -> Ed25519KeyPair:
        """Load the key pair used to sign tokens.

        Returns
        -------
        Ed25519KeyPair
            The signing key pair.

        Raises
        ------
        strivia.exceptions.InvalidKeyError
            Raised if the key is not a valid Ed25519 private key.
        strivia.exceptions.NotConfiguredError
            Raised if neither ``key`` nor ``key_file`` is set.
        """
        if self.key:
            pem = self.key.get_secret_value().encode()
            return Ed25519KeyPair.from_pem(pem)
        if self.key_file:
            return Ed25519KeyPair.from_pem(self.key_file.read_bytes())
        raise NotConfiguredError("No issuer signing key configured")


class VerifierConfig(EnvFirstSettings):
    """Configuration for verifying tokens."""

    issuer: str = Field(
        ...,
        title="Expected issuer",
        description="Tokens must have exactly this ``iss`` claim",
    )

    subject: str = Field(
        "",
        title="Expected subject",
        description="If set, tokens must have exactly this ``sub`` claim",
    )

    audience: list[str] = Field(
        ...,
        title="Expected audiences",
        description="Tokens must contain at least one of these audiences",
    )

    algorithm: str = Field(
        ALGORITHM,
        title="Signing algorithm",
        description="The only ``alg`` header value that will be accepted",
        examples=["EdDSA", "RS256"],
    )

    public_key_file: Path | None = Field(
        None,
        title="Public key file",
        description="Path to a PEM-encoded Ed25519 or RSA public key",
    )

    jwks_url: HttpUrl | None = Field(
        None,
        title="JWKS URL",
        description=(
            "URL of a JSON Web Key Set from which to retrieve the key named"
            " by the ``kid`` header of each token"
        ),
        validation_alias=AliasChoices("STRIVIA_VERIFIER_JWKS_URL", "jwksUrl"),
    )

    @model_validator(mode="after")
    def _validate_key_source(self) -> Self:
        if not self.public_key_file and not self.jwks_url:
            raise ValueError("One of publicKeyFile or jwksUrl must be set")
        return self

    def load_public_key(self) -> PublicKey:
        """Load the public key used to verify tokens.

        Raises
        ------
        strivia.exceptions.InvalidKeyError
            Raised if the key cannot be parsed.
        strivia.exceptions.NotConfiguredError
            Raised if no public key file is configured.
        """
        if not self.public_key_file:
            raise NotConfiguredError("No verifier public key configured")
        return load_public_key(self.public_key_file.read_bytes())

    def to_expected_claims(self) -> ExpectedClaims:
        """Return the claims every verified token must match."""
        return ExpectedClaims(
            issuer=self.issuer, subject=self.subject, audience=self.audience
        )


class Config(EnvFirstSettings):
    """Configuration for Strivia."""

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Logging level",
        description="Python logging level",
        validation_alias=AliasChoices("STRIVIA_LOG_LEVEL", "logLevel"),
    )

    profile: Profile = Field(
        Profile.development,
        title="Logging profile",
        description=(
            "Use `production` for structured JSON logs and `development`"
            " for human-readable logs"
        ),
        validation_alias=AliasChoices("STRIVIA_PROFILE", "profile"),
    )

    issuer: IssuerConfig | None = Field(
        None,
        title="Issuer configuration",
        description="Settings for issuing tokens, if tokens are issued",
    )

    verifier: VerifierConfig | None = Field(
        None,
        title="Verifier configuration",
        description="Settings for verifying tokens, if tokens are verified",
    )

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a Config object from a configuration file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        Config
            The corresponding `Config` object.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f) or {})

    def configure_logging(self) -> None:
        """Configure logging based on the Strivia configuration."""
        configure_logging(
            name="strivia", log_level=self.log_level, profile=self.profile
        )
