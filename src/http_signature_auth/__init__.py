"""
HTTP Signature authorization for Python

Sign outgoing requests with an `Authorization: Signature` header and verify
that header on incoming requests.
"""

from .errors import (
    HttpSignatureError,
    MissingHeader,
    MissingValue,
    MalformedAuthorization,
    SignatureVerificationFailed,
    SignatureExpired,
    TimestampParseError,
)
from .models import (
    Signer,
    Verifier,
    UnixTimestamp,
    SignatureParameters,
    VerifiedAuthorization,
    VerificationResult,
    AuthState,
)
from .signature_string import build_signature_string, PSEUDO_HEADERS
from .headers import (
    serialize_authorization_header,
    parse_authorization_header,
    has_signature_authorization,
)
from .signer import (
    sign_request,
    build_authorization_header_value,
    HttpSignatureAuth,
    DEFAULT_EXPIRES_IN,
)
from .verifier import verify_authorization, check_authorization, check_authorization_sync
from .did import did_key_from_public_key, did_key_verification_method_id, public_key_from_did_key
from .ed25519 import Ed25519Signer, Ed25519Verifier, resolve_did_key_verifier
from .middleware.wsgi import HttpSignatureWSGIMiddleware

__version__ = "0.1.0"

__all__ = [
    "HttpSignatureError",
    "MissingHeader",
    "MissingValue",
    "MalformedAuthorization",
    "SignatureVerificationFailed",
    "SignatureExpired",
    "TimestampParseError",
    "Signer",
    "Verifier",
    "UnixTimestamp",
    "SignatureParameters",
    "VerifiedAuthorization",
    "VerificationResult",
    "AuthState",
    "build_signature_string",
    "PSEUDO_HEADERS",
    "serialize_authorization_header",
    "parse_authorization_header",
    "has_signature_authorization",
    "sign_request",
    "build_authorization_header_value",
    "HttpSignatureAuth",
    "DEFAULT_EXPIRES_IN",
    "verify_authorization",
    "check_authorization",
    "check_authorization_sync",
    "did_key_from_public_key",
    "did_key_verification_method_id",
    "public_key_from_did_key",
    "Ed25519Signer",
    "Ed25519Verifier",
    "resolve_did_key_verifier",
    "HttpSignatureWSGIMiddleware",
]

# ASGI middleware - optional, requires starlette
try:
    from .middleware.asgi import HttpSignatureASGIMiddleware
    __all__.append("HttpSignatureASGIMiddleware")
except ImportError:
    pass
