"""
Verification of Authorization: Signature headers on incoming requests.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Sequence

import httpx

from .encoding import quote_path
from .errors import (
    HttpSignatureError,
    MalformedAuthorization,
    SignatureExpired,
    SignatureVerificationFailed,
)
from .headers import parse_authorization_header
from .models import (
    SignatureParameters,
    UnixTimestamp,
    VerificationResult,
    VerifiedAuthorization,
    VerifierResolver,
)

logger = logging.getLogger(__name__)


def _request_url(request: Any) -> str:
    """
    Full URL of the request with its path exactly as sent on the wire.

    Starlette's `request.url` is rebuilt from the decoded `scope["path"]`,
    which turns `%2F` into `/`. The ASGI `raw_path` keeps the original bytes.
    """
    scope = getattr(request, "scope", None)
    if not isinstance(scope, dict):
        return str(request.url)

    raw_path = scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = scope.get("path", "/")
        root_path = scope.get("root_path", "")
        if not path.startswith(root_path):
            path = root_path + path
        path = quote_path(path)
    query = scope.get("query_string", b"").decode("latin-1")

    url = request.url
    target = f"{path}?{query}" if query else path
    return f"{url.scheme}://{url.netloc}{target}"


def _request_parts(request: Any) -> tuple[str, str, httpx.Headers]:
    """Read method, URL and case-insensitive headers from an httpx or Starlette request."""
    headers = request.headers
    if not isinstance(headers, httpx.Headers):
        headers = httpx.Headers(list(headers.items()))
    return request.method, _request_url(request), headers


def _check_required_headers(
    params: SignatureParameters,
    required_headers: Sequence[str],
) -> None:
    covered = {name.lower() for name in params.header_names}
    missing = [name for name in required_headers if name.lower() not in covered]
    if missing:
        raise MalformedAuthorization(
            f"Signature must cover: {' '.join(missing)}"
        )


def _check_validity_window(
    params: SignatureParameters,
    clock_skew: int,
    now: datetime | None,
) -> None:
    current = (UnixTimestamp.from_datetime(now) if now else UnixTimestamp.now()).to_number()
    if params.expires is not None and params.expires + clock_skew < current:
        raise SignatureExpired("Signature has expired")
    if params.created is not None and params.created - clock_skew > current:
        raise SignatureExpired("Signature was created in the future")


async def verify_authorization(
    request: Any,
    *,
    get_verifier: VerifierResolver,
    required_headers: Sequence[str] | None = None,
    clock_skew: int | None = None,
    now: datetime | None = None,
) -> VerifiedAuthorization:
    """
    Verify the Authorization: Signature header of an incoming request.

    The signing string is rebuilt from the request as received, then checked
    with the verifier resolved for the claimed keyId.

    Args:
        request: Request exposing ``method``, ``url`` and ``headers``
            (httpx.Request, starlette.requests.Request, ...)
        get_verifier: Coroutine resolving a keyId to a Verifier
        required_headers: Names the signature must cover
        clock_skew: If set, reject expired or future-dated signatures,
            allowing this many seconds of skew
        now: Current time for the validity window check (default: now)

    Returns:
        VerifiedAuthorization describing the verified signature

    Raises:
        MalformedAuthorization: If the header is missing or does not parse
        MissingHeader: If a covered header is absent from the request
        MissingValue: If a covered pseudo-header has no value
        SignatureVerificationFailed: If the verifier rejects the signature
        SignatureExpired: If the signature is outside its validity window
    """
    method, url, headers = _request_parts(request)

    authorization = headers.get("authorization")
    if authorization is None:
        raise MalformedAuthorization("Missing Authorization header")

    parsed = parse_authorization_header(authorization, method, url, headers)
    params = parsed.params

    if required_headers:
        _check_required_headers(params, required_headers)

    verifier = await get_verifier(params.key_id)
    logger.debug("Verifying signature from %s covering: %s", params.key_id, " ".join(params.header_names))
    verified = await verifier.verify(parsed.signing_string.encode("utf-8"), params.signature)
    if verified is not True:
        raise SignatureVerificationFailed("Unable to verify HTTP signature")

    if clock_skew is not None:
        _check_validity_window(params, clock_skew, now)

    return VerifiedAuthorization(
        key_id=params.key_id,
        signed_parameters=params.header_names,
        signature=params.signature,
        created=UnixTimestamp(params.created) if params.created is not None else None,
        expires=UnixTimestamp(params.expires) if params.expires is not None else None,
    )


async def check_authorization(
    request: Any,
    *,
    get_verifier: VerifierResolver,
    required_headers: Sequence[str] | None = None,
    clock_skew: int | None = None,
    now: datetime | None = None,
) -> VerificationResult:
    """
    Verify a request and report the outcome as a VerificationResult.

    Signature problems become ``verified=False`` with an error message.
    Exceptions raised by the verifier capability itself propagate.
    """
    try:
        authorization = await verify_authorization(
            request,
            get_verifier=get_verifier,
            required_headers=required_headers,
            clock_skew=clock_skew,
            now=now,
        )
    except HttpSignatureError as e:
        return VerificationResult(verified=False, error=str(e))

    return VerificationResult(verified=True, authorization=authorization)


def check_authorization_sync(
    request: Any,
    *,
    get_verifier: VerifierResolver,
    required_headers: Sequence[str] | None = None,
    clock_skew: int | None = None,
    now: datetime | None = None,
) -> VerificationResult:
    """
    Synchronous variant of check_authorization for WSGI hosts.

    Each call runs on a fresh event loop that is closed on return, so it must
    not be called from a running event loop. `get_verifier` must not hold
    loop-bound resources across calls: a shared `httpx.AsyncClient` fails
    with "Event loop is closed" on the second request. Open the client inside
    the resolver instead.
    """
    return asyncio.run(
        check_authorization(
            request,
            get_verifier=get_verifier,
            required_headers=required_headers,
            clock_skew=clock_skew,
            now=now,
        )
    )
