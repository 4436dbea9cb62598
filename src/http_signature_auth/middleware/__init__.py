"""
HTTP signature verification middleware for ASGI and WSGI frameworks.

Re-exports middleware classes for convenient imports:
    from http_signature_auth.middleware import HttpSignatureASGIMiddleware
    from http_signature_auth.middleware import HttpSignatureWSGIMiddleware
"""

from .wsgi import HttpSignatureWSGIMiddleware

__all__: list[str] = ["HttpSignatureWSGIMiddleware"]

# ASGI middleware (FastAPI, Starlette)
try:
    from .asgi import HttpSignatureASGIMiddleware
    __all__.append("HttpSignatureASGIMiddleware")
except ImportError:
    pass
