"""
Canonical signing-string construction.
"""

from typing import Mapping, Sequence, Union

import httpx

from .errors import MissingHeader, MissingValue

REQUEST_TARGET = "(request-target)"
CREATED = "(created)"
EXPIRES = "(expires)"
KEY_ID = "(key-id)"

PSEUDO_HEADERS = frozenset({REQUEST_TARGET, CREATED, EXPIRES, KEY_ID})


def request_target(method: str, url: Union[str, httpx.URL]) -> str:
    """
    Render the (request-target) value: lowercase method, path and query.

    Examples:
        >>> request_target("GET", "https://example.com/inbox?page=2")
        'get /inbox?page=2'
    """
    path = httpx.URL(url).raw_path.decode("ascii") or "/"
    return f"{method.lower()} {path}"


def build_signature_string(
    method: str,
    url: Union[str, httpx.URL],
    headers: Mapping[str, str],
    header_names: Sequence[str],
    *,
    key_id: str | None = None,
    created: int | None = None,
    expires: int | None = None,
) -> str:
    """
    Build the string to sign for a request.

    Each covered name produces one ``name: value`` line, in the given order;
    lines are joined with ``\\n`` and there is no trailing newline.

    Args:
        method: HTTP method
        url: Full request URL
        headers: Request headers (looked up case-insensitively)
        header_names: Covered header and pseudo-header names
        key_id: Value for (key-id)
        created: Value for (created), Unix epoch seconds
        expires: Value for (expires), Unix epoch seconds

    Returns:
        The canonical signing string

    Raises:
        ValueError: If header_names is empty
        MissingHeader: If a covered header is absent from the request
        MissingValue: If a covered pseudo-header has no value
    """
    if not header_names:
        raise ValueError("At least one header must be covered by the signature")

    lookup = headers if isinstance(headers, httpx.Headers) else httpx.Headers(headers)

    lines = []
    for name in header_names:
        lowered = name.lower()
        if lowered == REQUEST_TARGET:
            value = request_target(method, url)
        elif lowered == CREATED:
            value = _required(CREATED, created)
        elif lowered == EXPIRES:
            value = _required(EXPIRES, expires)
        elif lowered == KEY_ID:
            if key_id is None:
                raise MissingValue(KEY_ID)
            value = key_id
        else:
            value = lookup.get(lowered)
            if value is None:
                raise MissingHeader(lowered)
        lines.append(f"{lowered}: {value}")

    return "\n".join(lines)


def _required(name: str, seconds: int | None) -> str:
    if seconds is None:
        raise MissingValue(name)
    return str(int(seconds))
