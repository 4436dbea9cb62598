"""
Data models for HTTP signature signing and verification.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol, Union

from .errors import TimestampParseError

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


class Signer(Protocol):
    """
    Signing capability supplied by the embedding application.

    Attributes:
        id: Key identifier placed in the keyId parameter
    """
    id: str

    async def sign(self, data: bytes) -> bytes: ...


class Verifier(Protocol):
    """Verification capability for a single key."""

    async def verify(self, data: bytes, signature: bytes) -> bool: ...


VerifierResolver = Callable[[str], Awaitable[Verifier]]


@dataclass(frozen=True, order=True)
class UnixTimestamp:
    """Whole seconds since the Unix epoch (UTC)."""
    seconds_since_epoch: int

    @classmethod
    def from_datetime(cls, value: datetime) -> UnixTimestamp:
        # Naive datetimes are taken to be UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return cls(math.floor(value.timestamp()))

    @classmethod
    def from_string(cls, value: str) -> UnixTimestamp:
        """
        Parse a decimal integer literal.

        Raises:
            TimestampParseError: If the literal is not a decimal integer
        """
        literal = value.strip()
        if not _INTEGER_RE.fullmatch(literal):
            raise TimestampParseError(f"Invalid timestamp: {value!r}")
        return cls(int(literal))

    @classmethod
    def from_value(cls, value: Union[UnixTimestamp, datetime, str, int]) -> UnixTimestamp:
        if isinstance(value, UnixTimestamp):
            return value
        if isinstance(value, datetime):
            return cls.from_datetime(value)
        if isinstance(value, str):
            return cls.from_string(value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Cannot build a timestamp from {type(value).__name__}")
        return cls(value)

    @classmethod
    def now(cls) -> UnixTimestamp:
        return cls.from_datetime(datetime.now(timezone.utc))

    def to_number(self) -> int:
        return self.seconds_since_epoch

    def to_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.seconds_since_epoch, tz=timezone.utc)

    def __int__(self) -> int:
        return self.seconds_since_epoch

    def __str__(self) -> str:
        return str(self.seconds_since_epoch)


@dataclass(frozen=True)
class SignatureParameters:
    """
    Parameters carried by an Authorization: Signature header.

    Attributes:
        key_id: Identifier of the signing key
        header_names: Covered header names, in signing order
        created: Signature creation time (Unix epoch), if present
        expires: Signature expiry time (Unix epoch), if present
        signature: Raw signature bytes
    """
    key_id: str
    header_names: tuple[str, ...]
    signature: bytes
    created: int | None = None
    expires: int | None = None


@dataclass(frozen=True)
class VerifiedAuthorization:
    """
    Result of a successful signature verification.

    Attributes:
        key_id: Identifier of the key that produced the signature
        signed_parameters: Covered header names, in signing order
        signature: Raw signature bytes
        created: Signature creation time, if signed
        expires: Signature expiry time, if signed
    """
    key_id: str
    signed_parameters: tuple[str, ...]
    signature: bytes
    created: UnixTimestamp | None = None
    expires: UnixTimestamp | None = None


@dataclass
class VerificationResult:
    """
    Outcome of checking a request's signature.

    Attributes:
        verified: Whether the signature was valid
        authorization: Verified signature details if verified
        error: Error message if verification failed
    """
    verified: bool
    authorization: VerifiedAuthorization | None = None
    error: str | None = None

    @property
    def key_id(self) -> str | None:
        return self.authorization.key_id if self.authorization else None


@dataclass
class AuthState:
    """
    Signature state attached to requests by the middleware.

    Attributes:
        signed: Whether the request carried a Signature authorization
        result: Verification result if signed
    """
    signed: bool
    result: VerificationResult | None = None
