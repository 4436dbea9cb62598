"""
ASGI middleware for HTTP signature verification (FastAPI/Starlette).
"""

import logging
from typing import Any, Callable, Sequence

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..headers import has_signature_authorization
from ..models import AuthState, VerificationResult, VerifierResolver
from ..verifier import check_authorization

logger = logging.getLogger(__name__)

DECISION_HEADER = "X-Signature-Decision"


class HttpSignatureASGIMiddleware(BaseHTTPMiddleware):
    """
    ASGI middleware for Authorization: Signature verification.

    Attaches verification state to `request.state.http_signature` with:
    - signed: bool - whether request had a Signature authorization
    - result: VerificationResult | None - verification result if signed

    Args:
        app: ASGI application
        get_verifier: Coroutine resolving a keyId to a Verifier
        require_verified: If True, return 401 for unsigned or failed verification.
            If False (default), operate in observe mode - attach state but allow all.
        required_headers: Names every accepted signature must cover
        clock_skew: If set, reject expired or future-dated signatures

    Example (FastAPI):
        >>> from fastapi import FastAPI, Request
        >>> from http_signature_auth import HttpSignatureASGIMiddleware, resolve_did_key_verifier
        >>>
        >>> app = FastAPI()
        >>> app.add_middleware(HttpSignatureASGIMiddleware, get_verifier=resolve_did_key_verifier)
        >>>
        >>> @app.get("/inbox")
        >>> async def inbox(request: Request):
        ...     state = request.state.http_signature
        ...     if state.signed and state.result.verified:
        ...         return {"key_id": state.result.key_id}
        ...     return {"error": "Not verified"}
    """

    def __init__(
        self,
        app: Any,
        get_verifier: VerifierResolver,
        require_verified: bool = False,
        required_headers: Sequence[str] | None = None,
        clock_skew: int | None = None,
    ):
        super().__init__(app)
        self.get_verifier = get_verifier
        self.require_verified = require_verified
        self.required_headers = required_headers
        self.clock_skew = clock_skew

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        signed = has_signature_authorization(request.headers)

        if not signed:
            request.state.http_signature = AuthState(signed=False, result=None)

            if self.require_verified:
                return JSONResponse(
                    status_code=401,
                    content={"error": "Missing Signature authorization"},
                    headers={DECISION_HEADER: "deny"},
                )

            return await call_next(request)

        try:
            result = await check_authorization(
                request,
                get_verifier=self.get_verifier,
                required_headers=self.required_headers,
                clock_skew=self.clock_skew,
            )
        except Exception as e:
            # Verifier resolution or the verifier itself failed
            result = VerificationResult(
                verified=False,
                error=f"Verification failed: {e}",
            )

        if not result.verified:
            logger.warning("Rejected signature on %s %s: %s", request.method, request.url.path, result.error)

        request.state.http_signature = AuthState(signed=True, result=result)

        if self.require_verified and not result.verified:
            return JSONResponse(
                status_code=401,
                content={
                    "error": result.error or "Signature verification failed",
                },
                headers={DECISION_HEADER: "deny"},
            )

        response = await call_next(request)
        response.headers[DECISION_HEADER] = "allow" if result.verified else "observe"
        return response
