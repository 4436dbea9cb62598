"""
Exception classes for HTTP signature signing and verification.
"""


class HttpSignatureError(Exception):
    """Base class for errors raised while signing or verifying a request."""


class MissingHeader(HttpSignatureError):
    """A covered header has no value in the request."""

    def __init__(self, header: str):
        super().__init__(f"Missing header covered by signature: {header}")
        self.header = header


class MissingValue(HttpSignatureError):
    """A covered pseudo-header has no value to render (e.g. no expires)."""

    def __init__(self, name: str):
        super().__init__(f"No value supplied for {name}")
        self.name = name


class MalformedAuthorization(HttpSignatureError):
    """The Authorization header is not a well-formed Signature value."""


class SignatureVerificationFailed(HttpSignatureError):
    """The verifier rejected the signature."""


class SignatureExpired(HttpSignatureError):
    """The signature lies outside its validity window."""


class TimestampParseError(HttpSignatureError, ValueError):
    """A timestamp literal is not a decimal integer."""
