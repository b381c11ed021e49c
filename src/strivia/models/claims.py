"""Representation of JWT claims.

Claims are Pydantic models. Registered claim names from RFC 7519 section
4.1 are provided by `RegisteredClaims`; extension claim sets declare the
same fields plus their own, and everything is serialized at the same level
of the JSON object.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol, runtime_checkable

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    field_serializer,
    field_validator,
    model_serializer,
)

__all__ = [
    "Claims",
    "CustomClaims",
    "ExpectedClaims",
    "RegisteredClaims",
    "decode_numeric_date",
    "encode_numeric_date",
    "normalize_numeric_date",
]

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

_STRING_CLAIMS = frozenset({"iss", "sub", "jti", "issuer", "subject", "id"})
"""Claims omitted from the wire form when empty, by alias and by name."""

_DATE_CLAIMS = frozenset(
    {"exp", "nbf", "iat", "expires_at", "not_before", "issued_at"}
)
"""Claims omitted from the wire form when unset, by alias and by name."""

_AUDIENCE_CLAIMS = frozenset({"aud", "audience"})


def _ensure_utc(date: datetime) -> datetime:
    if date.tzinfo is None or date.tzinfo.utcoffset(date) is None:
        return date.replace(tzinfo=UTC)
    return date.astimezone(UTC)


def encode_numeric_date(date: datetime) -> int:
    """Convert a datetime to a JWT NumericDate.

    Sub-second precision is discarded. The whole number of seconds is
    computed from the day and second components of the offset from the
    epoch, so dates far in the future never pass through a float.

    Parameters
    ----------
    date
        The instant to encode. A naive datetime is interpreted as UTC.

    Returns
    -------
    int
        Whole seconds since the Unix epoch.
    """
    delta = _ensure_utc(date) - _EPOCH
    return delta.days * 86400 + delta.seconds


def decode_numeric_date(value: int | float) -> datetime:
    """Convert a JWT NumericDate to a datetime.

    Decimal values are accepted, but the result is always truncated to
    whole-second resolution.

    Parameters
    ----------
    value
        Seconds since the Unix epoch, as parsed from JSON.

    Returns
    -------
    datetime
        The corresponding instant in UTC with zero microseconds.

    Raises
    ------
    ValueError
        Raised if the value is not a JSON number or is out of range.
    """
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"NumericDate must be a number, not {value!r}")
    if isinstance(value, int):
        seconds, microseconds = value, 0
    else:
        if not math.isfinite(value):
            raise ValueError(f"NumericDate {value} is not finite")
        fraction, whole = math.modf(value)
        seconds, microseconds = int(whole), int(fraction * 1e6)
    try:
        date = _EPOCH + timedelta(seconds=seconds, microseconds=microseconds)
    except OverflowError as e:
        raise ValueError(f"NumericDate {value} is out of range") from e
    return date.replace(microsecond=0)


def normalize_numeric_date(v: Any) -> datetime | None:
    """Pydantic validator for NumericDate claims.

    Numbers (from the wire) are decoded with `decode_numeric_date`.
    Datetimes (from Python callers) are converted to UTC but keep their
    precision until they are serialized.

    Parameters
    ----------
    v
        Raw field value.

    Returns
    -------
    datetime or None
        The normalized value.
    """
    if v is None:
        return None
    if isinstance(v, datetime):
        return _ensure_utc(v)
    return decode_numeric_date(v)


@runtime_checkable
class Claims(Protocol):
    """Capabilities required of any claims set checked by the validator."""

    def get_expiration_time(self) -> datetime | None: ...

    def get_not_before(self) -> datetime | None: ...

    def get_issued_at(self) -> datetime | None: ...

    def get_issuer(self) -> str: ...

    def get_subject(self) -> str: ...

    def get_audience(self) -> list[str]: ...

    def get_id(self) -> str: ...


class RegisteredClaims(BaseModel):
    """The registered claim names of a JWT claims set.

    See `RFC 7519 section 4.1
    <https://datatracker.ietf.org/doc/html/rfc7519#section-4.1>`__. Empty
    strings, unset dates and an empty audience are all omitted from the
    serialized form, and none of the claims is required to be present.
    """

    model_config = ConfigDict(populate_by_name=True)

    issuer: str = Field("", alias="iss", title="Issuer")

    subject: str = Field("", alias="sub", title="Subject")

    audience: list[str] = Field(
        [],
        alias="aud",
        title="Audience",
        description=(
            "Serialized as a bare string if there is exactly one audience"
            " and as a list otherwise"
        ),
    )

    expires_at: datetime | None = Field(
        None, alias="exp", title="Expiration time"
    )

    not_before: datetime | None = Field(None, alias="nbf", title="Not before")

    issued_at: datetime | None = Field(None, alias="iat", title="Issued at")

    id: str = Field("", alias="jti", title="JWT ID")

    @field_validator("audience", mode="before")
    @classmethod
    def _validate_audience(cls, v: Any) -> Any:
        if v is None:
            return []
        elif isinstance(v, str):
            return [v]
        else:
            return v

    _normalize_dates = field_validator(
        "expires_at", "not_before", "issued_at", mode="before"
    )(normalize_numeric_date)

    @field_serializer(
        "expires_at", "not_before", "issued_at", when_used="json"
    )
    def _serialize_date(self, date: datetime | None) -> int | None:
        return encode_numeric_date(date) if date is not None else None

    @model_serializer(mode="wrap")
    def _serialize(
        self, handler: SerializerFunctionWrapHandler
    ) -> dict[str, Any]:
        result = {}
        for key, value in handler(self).items():
            if key in _STRING_CLAIMS and not value:
                continue
            if key in _DATE_CLAIMS and value is None:
                continue
            if key in _AUDIENCE_CLAIMS:
                if not value:
                    continue
                if len(value) == 1:
                    value = value[0]
            result[key] = value
        return result

    def get_expiration_time(self) -> datetime | None:
        return self.expires_at

    def get_not_before(self) -> datetime | None:
        return self.not_before

    def get_issued_at(self) -> datetime | None:
        return self.issued_at

    def get_issuer(self) -> str:
        return self.issuer

    def get_subject(self) -> str:
        return self.subject

    def get_audience(self) -> list[str]:
        return self.audience

    def get_id(self) -> str:
        return self.id


class ExpectedClaims(BaseModel):
    """Claim values a verifier requires.

    An empty ``subject`` accepts any subject. An empty ``issuer`` is
    compared like any other value, and an empty ``audience`` never matches.
    """

    issuer: str = Field("", title="Expected issuer")

    subject: str = Field(
        "",
        title="Expected subject",
        description="If empty, any non-empty subject is accepted",
    )

    audience: list[str] = Field(
        [],
        title="Expected audiences",
        description="The token must contain at least one of these audiences",
    )


class CustomClaims(RegisteredClaims):
    """Registered claims plus arbitrary additional claims.

    Used when the extension claims are not known in advance, such as for
    claims given on the command line or when displaying a decoded token.
    Unknown claims are kept as-is and serialized next to the registered
    ones.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")
