"""
Flask demo with HTTP signature verification.

Usage:
    # Install dependencies
    pip install -e ".[flask]"

    # Run the server
    flask --app examples.flask_demo run --port 8010

    # Or directly
    python examples/flask_demo.py

Test with the signing client:
    # Public endpoint (no signature required)
    curl http://localhost:8010/public

    # Protected endpoint, signed with a fresh did:key
    python examples/client_demo.py http://localhost:8010/protected

Environment variables:
    HTTPSIG_REQUIRE_VERIFIED - Set to "true" to enforce verification (default: observe mode)
"""

import os
from flask import Flask, g, request, jsonify

from http_signature_auth import resolve_did_key_verifier
from http_signature_auth.middleware import HttpSignatureWSGIMiddleware

# Configuration from environment
REQUIRE_VERIFIED = os.getenv("HTTPSIG_REQUIRE_VERIFIED", "false").lower() == "true"

app = Flask(__name__)

# Wrap with signature verification middleware
app.wsgi_app = HttpSignatureWSGIMiddleware(
    app.wsgi_app,
    get_verifier=resolve_did_key_verifier,
    require_verified=REQUIRE_VERIFIED,
    clock_skew=300,
)


@app.before_request
def extract_signature_state():
    """Extract signature state from environ and attach to Flask g object."""
    g.http_signature = request.environ.get("http_signature_auth.state")


@app.route("/")
def root():
    """API info endpoint."""
    return jsonify({
        "service": "HTTP Signature Flask Demo API",
        "require_verified": REQUIRE_VERIFIED,
        "endpoints": {
            "/public": "No signature required",
            "/protected": "Signature verification checked (401 in require mode)",
        },
    })


@app.route("/public")
def public():
    """Public endpoint - no signature required."""
    return jsonify({"message": "This is public content", "access": "unrestricted"})


@app.route("/protected")
def protected():
    """Protected endpoint - reports signature verification."""
    state = g.http_signature

    if not state:
        return jsonify({"error": "Middleware not configured"}), 500

    response_data = {
        "signed": state.signed,
        "verified": state.result.verified if state.result else False,
    }

    if state.signed and state.result:
        if state.result.verified:
            response_data["message"] = "Access granted - signature verified"
            response_data["key_id"] = state.result.key_id
        else:
            response_data["message"] = "Signature present but verification failed"
            response_data["error"] = state.result.error
    else:
        response_data["message"] = "No signature provided"
        response_data["hint"] = "Use examples/client_demo.py to sign your request"

    return jsonify(response_data)


@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8010, debug=True)
