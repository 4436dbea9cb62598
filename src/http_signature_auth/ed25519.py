"""
Ed25519 signer and verifier capabilities backed by the cryptography package.
"""

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .did import (
    did_key_from_public_key,
    did_key_verification_method_id,
    public_key_from_did_key,
)


def _raw_public_key(public_key: Ed25519PublicKey) -> bytes:
    return public_key.public_bytes(Encoding.Raw, PublicFormat.Raw)


class Ed25519Signer:
    """
    Signer for an Ed25519 private key.

    Args:
        private_key: The signing key
        key_id: keyId to advertise. Default: the did:key verification
            method id of the key's public half
    """

    def __init__(self, private_key: Ed25519PrivateKey, key_id: str | None = None):
        self._private_key = private_key
        if key_id is None:
            did = did_key_from_public_key(_raw_public_key(private_key.public_key()))
            key_id = did_key_verification_method_id(did)
        self.id = key_id

    async def sign(self, data: bytes) -> bytes:
        return self._private_key.sign(data)


class Ed25519Verifier:
    """Verifier for an Ed25519 public key."""

    def __init__(self, public_key: Ed25519PublicKey):
        self._public_key = public_key

    @classmethod
    def from_did_key(cls, key_id: str) -> "Ed25519Verifier":
        return cls(Ed25519PublicKey.from_public_bytes(public_key_from_did_key(key_id)))

    async def verify(self, data: bytes, signature: bytes) -> bool:
        try:
            self._public_key.verify(signature, data)
        except InvalidSignature:
            return False
        return True


async def resolve_did_key_verifier(key_id: str) -> Ed25519Verifier:
    """
    Resolve a did:key keyId to a verifier without any network lookup.

    Usable directly as ``get_verifier`` for verify_authorization.

    Raises:
        ValueError: If key_id is not an Ed25519 did:key
    """
    return Ed25519Verifier.from_did_key(key_id)
