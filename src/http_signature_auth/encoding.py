"""
base64url and URL path helpers for signature transport encoding.
"""

import base64
import re
from urllib.parse import quote

_BASE64URL_RE = re.compile(r"[A-Za-z0-9_-]*={0,2}")

# Characters a server leaves alone when it decodes a request path
PATH_SAFE = "/;%:@&=+$,!~*'()"


def bytes_to_base64url(data: bytes) -> str:
    """Encode bytes as unpadded base64url text."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64url_to_bytes(text: str) -> bytes:
    """
    Decode base64url text, with or without padding.

    Raises:
        ValueError: If the text is not valid base64url
    """
    if not _BASE64URL_RE.fullmatch(text):
        raise ValueError("Invalid base64url value")
    padded = text + "=" * (-len(text) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


def quote_path(path: str | bytes) -> str:
    """Percent-encode a decoded request path back into its wire form."""
    return quote(path, safe=PATH_SAFE)
