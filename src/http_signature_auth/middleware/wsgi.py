"""
WSGI middleware for HTTP signature verification (Flask).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable, Sequence
from urllib.parse import urlsplit

import httpx

from ..encoding import quote_path
from ..headers import has_signature_authorization
from ..models import AuthState, VerificationResult, VerifierResolver
from ..verifier import check_authorization_sync

logger = logging.getLogger(__name__)

DECISION_HEADER = "X-Signature-Decision"
ENVIRON_KEY = "http_signature_auth.state"


def _extract_headers(environ: dict[str, Any]) -> dict[str, str]:
    """Extract HTTP headers from WSGI environ."""
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            # HTTP_X_CUSTOM_HEADER -> x-custom-header
            header_name = key[5:].replace("_", "-").lower()
            headers[header_name] = value
        elif key == "CONTENT_TYPE":
            headers["content-type"] = value
        elif key == "CONTENT_LENGTH":
            headers["content-length"] = value
    return headers


def _request_uri(environ: dict[str, Any]) -> str:
    """Path and query as the client sent them, percent-encoding intact."""
    raw = environ.get("REQUEST_URI") or environ.get("RAW_URI")
    if raw:
        if not raw.startswith("/"):
            # Absolute-form request target
            parts = urlsplit(raw)
            raw = parts.path or "/"
            if parts.query:
                raw = f"{raw}?{parts.query}"
        return raw

    # PATH_INFO and SCRIPT_NAME hold the decoded bytes as latin-1 text
    script_name = environ.get("SCRIPT_NAME", "")
    path_info = environ.get("PATH_INFO", "")
    path = quote_path((script_name + path_info).encode("latin-1")) or "/"
    query = environ.get("QUERY_STRING", "")
    if query:
        path = f"{path}?{query}"
    return path


def _build_url(environ: dict[str, Any]) -> str:
    """Build full URL from WSGI environ."""
    scheme = environ.get("wsgi.url_scheme", "http")
    host = environ.get("HTTP_HOST") or environ.get("SERVER_NAME", "localhost")
    return f"{scheme}://{host}{_request_uri(environ)}"


class HttpSignatureWSGIMiddleware:
    """
    WSGI middleware for Authorization: Signature verification.

    Attaches verification state to `environ["http_signature_auth.state"]` with:
    - signed: bool - whether request had a Signature authorization
    - result: VerificationResult | None - verification result if signed

    Verification runs the async verifier on a fresh event loop per request,
    so the WSGI server must not already be running one in the worker thread.
    A `get_verifier` that reuses one `httpx.AsyncClient` across requests fails
    with "Event loop is closed"; create the client per call instead.

    The `(request-target)` path is taken from `REQUEST_URI` or `RAW_URI` when
    the server provides one. Otherwise it is re-encoded from
    `SCRIPT_NAME + PATH_INFO`, which cannot tell `%2F` from `/`.

    Args:
        app: WSGI application
        get_verifier: Coroutine resolving a keyId to a Verifier
        require_verified: If True, return 401 for unsigned or failed verification.
            If False (default), operate in observe mode - attach state but allow all.
        required_headers: Names every accepted signature must cover
        clock_skew: If set, reject expired or future-dated signatures

    Example (Flask):
        >>> from flask import Flask, request
        >>> from http_signature_auth import resolve_did_key_verifier
        >>> from http_signature_auth.middleware.wsgi import HttpSignatureWSGIMiddleware
        >>>
        >>> app = Flask(__name__)
        >>> app.wsgi_app = HttpSignatureWSGIMiddleware(app.wsgi_app, resolve_did_key_verifier)
        >>>
        >>> @app.route("/inbox")
        >>> def inbox():
        ...     state = request.environ.get("http_signature_auth.state")
        ...     if state and state.signed and state.result.verified:
        ...         return {"key_id": state.result.key_id}
        ...     return {"error": "Not verified"}, 401
    """

    def __init__(
        self,
        app: Callable[..., Iterable[bytes]],
        get_verifier: VerifierResolver,
        require_verified: bool = False,
        required_headers: Sequence[str] | None = None,
        clock_skew: int | None = None,
    ):
        self.app = app
        self.get_verifier = get_verifier
        self.require_verified = require_verified
        self.required_headers = required_headers
        self.clock_skew = clock_skew

    def __call__(
        self,
        environ: dict[str, Any],
        start_response: Callable[..., Any],
    ) -> Iterable[bytes]:
        headers = _extract_headers(environ)
        signed = has_signature_authorization(headers)

        if not signed:
            environ[ENVIRON_KEY] = AuthState(signed=False, result=None)

            if self.require_verified:
                return self._error_response(
                    start_response,
                    "Missing Signature authorization",
                )

            return self.app(environ, start_response)

        request = httpx.Request(
            environ.get("REQUEST_METHOD", "GET"),
            _build_url(environ),
            headers=headers,
        )
        try:
            result = check_authorization_sync(
                request,
                get_verifier=self.get_verifier,
                required_headers=self.required_headers,
                clock_skew=self.clock_skew,
            )
        except Exception as e:
            result = VerificationResult(
                verified=False,
                error=f"Verification failed: {e}",
            )

        if not result.verified:
            logger.warning("Rejected signature on %s %s: %s", request.method, request.url.path, result.error)

        environ[ENVIRON_KEY] = AuthState(signed=True, result=result)

        if self.require_verified and not result.verified:
            return self._error_response(
                start_response,
                result.error or "Signature verification failed",
            )

        def custom_start_response(
            status: str,
            response_headers: list[tuple[str, str]],
            exc_info: Any = None,
        ) -> Any:
            decision = "allow" if result.verified else "observe"
            response_headers.append((DECISION_HEADER, decision))
            return start_response(status, response_headers, exc_info)

        return self.app(environ, custom_start_response)

    def _error_response(
        self,
        start_response: Callable[..., Any],
        error: str,
    ) -> Iterable[bytes]:
        """Return 401 error response."""
        body = json.dumps({"error": error}).encode("utf-8")
        start_response(
            "401 Unauthorized",
            [
                ("Content-Type", "application/json"),
                ("Content-Length", str(len(body))),
                (DECISION_HEADER, "deny"),
            ],
        )
        return [body]
