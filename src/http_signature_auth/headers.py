"""
Authorization: Signature header serialization and parsing.
"""

import re
from dataclasses import dataclass
from typing import Mapping, Sequence, Union

import httpx

from .encoding import base64url_to_bytes
from .errors import MalformedAuthorization
from .models import SignatureParameters
from .signature_string import CREATED, EXPIRES, build_signature_string

SCHEME = "Signature"

# Parameters that must appear in every Signature authorization
REQUIRED_PARAMS = ("keyId", "headers", "signature")

# name="value" followed by a comma or the end of input
_PARAM_RE = re.compile(r'\s*([A-Za-z][A-Za-z0-9_-]*)\s*=\s*"([^"]*)"\s*(?:,|$)')
_SCHEME_RE = re.compile(r"Signature\s+", re.IGNORECASE)
_DIGITS_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class ParsedAuthorization:
    """
    A parsed Authorization header and the signing string rebuilt from the request.

    Attributes:
        params: Parameters decoded from the header
        signing_string: Canonical string the signature must cover
    """
    params: SignatureParameters
    signing_string: str


def serialize_authorization_header(
    key_id: str,
    header_names: Sequence[str],
    signature: str,
    *,
    created: int | None = None,
    expires: int | None = None,
) -> str:
    """
    Serialize signature parameters as an Authorization header value.

    Parameters are emitted in a fixed order. ``created`` and ``expires`` are
    emitted only when supplied and covered by their pseudo-header.

    Args:
        key_id: Identifier of the signing key
        header_names: Covered header names, in signing order
        signature: base64url-encoded signature
        created: Creation time, Unix epoch seconds
        expires: Expiry time, Unix epoch seconds

    Examples:
        >>> serialize_authorization_header("key-1", ["(created)"], "c2ln", created=1)
        'Signature keyId="key-1",created="1",headers="(created)",signature="c2ln"'
    """
    covered = {name.lower() for name in header_names}
    params = [("keyId", key_id)]
    if created is not None and CREATED in covered:
        params.append(("created", str(int(created))))
    if expires is not None and EXPIRES in covered:
        params.append(("expires", str(int(expires))))
    params.append(("headers", " ".join(header_names)))
    params.append(("signature", signature))

    for name, value in params:
        if '"' in value:
            raise ValueError(f"Parameter {name} cannot contain a double quote")

    return f"{SCHEME} " + ",".join(f'{name}="{value}"' for name, value in params)


def split_authorization_params(header_value: str) -> dict[str, str]:
    """
    Split a Signature authorization value into its quoted parameters.

    Raises:
        MalformedAuthorization: If the scheme is wrong or the quoting is broken
    """
    scheme = _SCHEME_RE.match(header_value)
    if not scheme:
        raise MalformedAuthorization(
            f"Authorization header must use the {SCHEME} scheme"
        )

    params: dict[str, str] = {}
    pos = scheme.end()
    rest = header_value.rstrip()
    while pos < len(rest):
        match = _PARAM_RE.match(rest, pos)
        if not match or match.end() == pos:
            raise MalformedAuthorization(
                f"Malformed Signature parameter at offset {pos}"
            )
        name, value = match.group(1), match.group(2)
        if name in params:
            raise MalformedAuthorization(f"Duplicate Signature parameter: {name}")
        params[name] = value
        pos = match.end()

    # A trailing comma leaves nothing to close the list
    if rest.endswith(","):
        raise MalformedAuthorization("Trailing comma in Signature parameters")

    return params


def parse_authorization_header(
    header_value: str,
    method: str,
    url: Union[str, httpx.URL],
    headers: Mapping[str, str],
) -> ParsedAuthorization:
    """
    Parse an Authorization header and rebuild the signing string it covers.

    The signing string is reconstructed from the request itself, never taken
    from the sender.

    Args:
        header_value: The Authorization header value
        method: Request method
        url: Full request URL
        headers: Request headers

    Returns:
        ParsedAuthorization with decoded parameters and signing string

    Raises:
        MalformedAuthorization: If the header does not parse
        MissingHeader: If a covered header is absent from the request
        MissingValue: If a covered pseudo-header has no value
    """
    raw = split_authorization_params(header_value)

    missing = [name for name in REQUIRED_PARAMS if name not in raw]
    if missing:
        raise MalformedAuthorization(
            f"Missing Signature parameters: {', '.join(missing)}"
        )

    header_names = tuple(raw["headers"].split())
    if not header_names:
        raise MalformedAuthorization("Signature headers parameter is empty")

    created = _parse_int(raw, "created")
    expires = _parse_int(raw, "expires")

    signing_string = build_signature_string(
        method,
        url,
        headers,
        header_names,
        key_id=raw["keyId"],
        created=created,
        expires=expires,
    )

    try:
        signature = base64url_to_bytes(raw["signature"])
    except ValueError as e:
        raise MalformedAuthorization("Signature parameter is not base64url") from e

    params = SignatureParameters(
        key_id=raw["keyId"],
        header_names=header_names,
        signature=signature,
        created=created,
        expires=expires,
    )
    return ParsedAuthorization(params=params, signing_string=signing_string)


def has_signature_authorization(headers: Mapping[str, str]) -> bool:
    """Check whether headers carry an Authorization header using the Signature scheme."""
    normalized = {k.lower(): v for k, v in headers.items()}
    value = normalized.get("authorization")
    return bool(value) and _SCHEME_RE.match(value) is not None


def _parse_int(raw: Mapping[str, str], name: str) -> int | None:
    value = raw.get(name)
    if value is None:
        return None
    if not _DIGITS_RE.fullmatch(value):
        raise MalformedAuthorization(f"Signature parameter {name} is not an integer")
    return int(value)
