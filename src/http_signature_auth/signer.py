"""
Request signing: builds the Authorization: Signature header for outgoing requests.
"""

import logging
from datetime import datetime
from email.utils import format_datetime
from typing import AsyncGenerator, Mapping, Sequence, Union

import httpx

from .encoding import bytes_to_base64url
from .headers import serialize_authorization_header
from .models import Signer, UnixTimestamp
from .signature_string import CREATED, build_signature_string

logger = logging.getLogger(__name__)

# Default signature lifetime in seconds
DEFAULT_EXPIRES_IN = 30

TimestampInput = Union[datetime, UnixTimestamp, int]
RequestBody = Union[str, bytes, None]


async def build_authorization_header_value(
    *,
    signer: Signer,
    url: Union[str, httpx.URL],
    method: str,
    headers: Mapping[str, str],
    include_headers: Sequence[str],
    created: TimestampInput,
    expires: TimestampInput | None = None,
) -> str:
    """
    Sign a request description and return the Authorization header value.

    Args:
        signer: Signing capability; its id becomes the keyId
        url: Full request URL
        method: HTTP method
        headers: Request headers available for signing
        include_headers: Header and pseudo-header names to cover, in order
        created: Signature creation time
        expires: Signature expiry time

    Returns:
        Authorization header value using the Signature scheme

    Raises:
        MissingHeader: If a covered header is absent (before the signer runs)
        MissingValue: If a covered pseudo-header has no value
    """
    created_at = UnixTimestamp.from_value(created).to_number()
    expires_at = UnixTimestamp.from_value(expires).to_number() if expires is not None else None

    signing_string = build_signature_string(
        method,
        url,
        headers,
        include_headers,
        key_id=signer.id,
        created=created_at,
        expires=expires_at,
    )
    logger.debug("Signing %s %s covering: %s", method, url, " ".join(include_headers))

    signature = await signer.sign(signing_string.encode("utf-8"))

    return serialize_authorization_header(
        signer.id,
        include_headers,
        bytes_to_base64url(signature),
        created=created_at,
        expires=expires_at,
    )


async def sign_request(
    url: Union[str, httpx.URL],
    *,
    signer: Signer,
    include_headers: Sequence[str],
    method: str | None = None,
    body: RequestBody = None,
    headers: Mapping[str, str] | None = None,
    created: TimestampInput | None = None,
    expires: TimestampInput | None = None,
) -> httpx.Request:
    """
    Build a signed request.

    Defaults: method GET, created now, expires now + 30 seconds. A host header
    is added from the URL when ``host`` is covered but not supplied. A date
    header is added when ``(created)`` is covered, no date was supplied and
    ``created`` was given explicitly.

    Args:
        url: Full request URL
        signer: Signing capability
        include_headers: Header and pseudo-header names to cover, in order
        method: HTTP method (default GET)
        body: Optional request body
        headers: Optional request headers (not modified)
        created: Signature creation time
        expires: Signature expiry time

    Returns:
        httpx.Request carrying the authorization header

    Example:
        >>> request = await sign_request(
        ...     "https://example.com/inbox",
        ...     signer=signer,
        ...     include_headers=["(request-target)", "(created)", "(key-id)"],
        ... )
        >>> async with httpx.AsyncClient() as client:
        ...     response = await client.send(request)
    """
    now = UnixTimestamp.now()
    created_at = UnixTimestamp.from_value(created) if created is not None else now
    if expires is not None:
        expires_at = UnixTimestamp.from_value(expires)
    else:
        expires_at = UnixTimestamp(now.to_number() + DEFAULT_EXPIRES_IN)

    target = httpx.URL(url)
    method = (method or "GET").upper()
    covered = {name.lower() for name in include_headers}

    # Copy so the caller's mapping is left untouched
    merged = httpx.Headers(headers or {})
    if "host" in covered and "host" not in merged:
        merged["host"] = target.netloc.decode("ascii")
    if CREATED in covered and "date" not in merged and created is not None:
        merged["date"] = format_datetime(created_at.to_datetime(), usegmt=True)

    authorization = await build_authorization_header_value(
        signer=signer,
        url=target,
        method=method,
        headers=merged,
        include_headers=include_headers,
        created=created_at,
        expires=expires_at,
    )

    # Set last so caller-supplied headers cannot shadow it
    merged["authorization"] = authorization

    return httpx.Request(method, target, headers=merged, content=body)


class HttpSignatureAuth(httpx.Auth):
    """
    httpx authentication flow that signs every outgoing request.

    The signer is asynchronous, so this auth only works with httpx.AsyncClient.

    Args:
        signer: Signing capability
        include_headers: Header and pseudo-header names to cover, in order
        expires_in: Signature lifetime in seconds. Default: 30

    Example:
        >>> auth = HttpSignatureAuth(signer, ["(request-target)", "host", "(created)"])
        >>> async with httpx.AsyncClient(auth=auth) as client:
        ...     response = await client.get("https://example.com/inbox")
    """

    def __init__(
        self,
        signer: Signer,
        include_headers: Sequence[str],
        expires_in: int = DEFAULT_EXPIRES_IN,
    ):
        self.signer = signer
        self.include_headers = list(include_headers)
        self.expires_in = expires_in

    def sync_auth_flow(self, request: httpx.Request):
        raise RuntimeError("HttpSignatureAuth requires httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        now = UnixTimestamp.now()
        request.headers["authorization"] = await build_authorization_header_value(
            signer=self.signer,
            url=request.url,
            method=request.method,
            headers=request.headers,
            include_headers=self.include_headers,
            created=now,
            expires=UnixTimestamp(now.to_number() + self.expires_in),
        )
        yield request
