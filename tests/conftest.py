"""Shared signer and verifier test doubles."""

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from http_signature_auth import Ed25519Signer

FIXED_SIGNATURE = bytes(range(64))


class FixedSigner:
    """Signer returning a fixed signature and recording what it was asked to sign."""

    def __init__(self, key_id: str, signature: bytes = FIXED_SIGNATURE):
        self.id = key_id
        self.signature = signature
        self.calls: list[bytes] = []

    async def sign(self, data: bytes) -> bytes:
        self.calls.append(data)
        return self.signature


class FailingSigner:
    """Signer whose backing key is unavailable."""

    id = "did:example:123#key-1"

    async def sign(self, data: bytes) -> bytes:
        raise RuntimeError("signing key unavailable")


class StaticVerifier:
    """Verifier returning a fixed answer and recording its inputs."""

    def __init__(self, answer: bool):
        self.answer = answer
        self.calls: list[tuple[bytes, bytes]] = []

    async def verify(self, data: bytes, signature: bytes) -> bool:
        self.calls.append((data, signature))
        return self.answer


@pytest.fixture
def fixed_signer():
    return FixedSigner("did:example:123#key-1")


@pytest.fixture
def failing_signer():
    return FailingSigner()


@pytest.fixture
def accepting_verifier():
    return StaticVerifier(True)


@pytest.fixture
def rejecting_verifier():
    return StaticVerifier(False)


@pytest.fixture
def ed25519_signer():
    return Ed25519Signer(Ed25519PrivateKey.generate())
