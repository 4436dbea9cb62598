"""
Signing client demo.

Signs a GET request with a freshly generated Ed25519 did:key and sends it.

Usage:
    python examples/client_demo.py http://localhost:8009/protected
"""

import asyncio
import logging
import sys

import httpx
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from http_signature_auth import Ed25519Signer, HttpSignatureAuth

INCLUDE_HEADERS = ["(request-target)", "host", "(created)", "(expires)", "(key-id)"]


async def main(url: str) -> None:
    signer = Ed25519Signer(Ed25519PrivateKey.generate())
    print(f"Signing as {signer.id}")

    auth = HttpSignatureAuth(signer, INCLUDE_HEADERS)
    async with httpx.AsyncClient(auth=auth) as client:
        response = await client.get(url)

    print(f"{response.status_code} {response.headers.get('X-Signature-Decision', '-')}")
    print(response.text)


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8009/protected"))
