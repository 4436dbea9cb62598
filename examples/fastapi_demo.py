"""
FastAPI demo with HTTP signature verification.

Usage:
    # Install dependencies
    pip install -e ".[fastapi]"

    # Run the server
    uvicorn examples.fastapi_demo:app --port 8009 --reload

    # Or directly
    python examples/fastapi_demo.py

Test with the signing client:
    # Public endpoint (no signature required)
    curl http://localhost:8009/public

    # Protected endpoint, signed with a fresh did:key
    python examples/client_demo.py http://localhost:8009/protected

Environment variables:
    HTTPSIG_REQUIRE_VERIFIED - Set to "true" to enforce verification (default: observe mode)
"""

import os
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from http_signature_auth import HttpSignatureASGIMiddleware, resolve_did_key_verifier

# Configuration from environment
REQUIRE_VERIFIED = os.getenv("HTTPSIG_REQUIRE_VERIFIED", "false").lower() == "true"

app = FastAPI(
    title="HTTP Signature Demo API",
    description="Demo API with Authorization: Signature verification",
    version="0.1.0",
)

# did:key identifiers carry their own public key, so no key service is needed
app.add_middleware(
    HttpSignatureASGIMiddleware,
    get_verifier=resolve_did_key_verifier,
    require_verified=REQUIRE_VERIFIED,
    required_headers=["(request-target)", "(created)"],
    clock_skew=300,
)


@app.get("/")
async def root():
    """API info endpoint."""
    return {
        "service": "HTTP Signature Demo API",
        "require_verified": REQUIRE_VERIFIED,
        "endpoints": {
            "/public": "No signature required",
            "/protected": "Signature verification checked (401 in require mode)",
        },
    }


@app.get("/public")
async def public():
    """Public endpoint - no signature required."""
    return {"message": "This is public content", "access": "unrestricted"}


@app.get("/protected")
async def protected(request: Request):
    """
    Protected endpoint - reports signature verification.

    In observe mode (require_verified=False):
        Returns 200 with verification status.

    In require mode (require_verified=True):
        Returns 401 if not verified (handled by middleware before reaching this handler).
    """
    state = getattr(request.state, "http_signature", None)

    if not state:
        return JSONResponse(
            status_code=500,
            content={"error": "Middleware not configured"},
        )

    if not state.signed:
        return {"signed": False, "message": "No signature provided"}

    result = state.result
    if not result.verified:
        return {"signed": True, "verified": False, "error": result.error}

    authorization = result.authorization
    return {
        "signed": True,
        "verified": True,
        "key_id": authorization.key_id,
        "signed_parameters": list(authorization.signed_parameters),
        "created": authorization.created.to_number() if authorization.created else None,
        "expires": authorization.expires.to_number() if authorization.expires else None,
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8009)
