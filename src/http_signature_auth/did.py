"""
did:key identifiers for Ed25519 public keys.
"""

import base58

DID_KEY_PREFIX = "did:key:"

# Multibase prefix for base58btc
_MULTIBASE_BASE58BTC = "z"

# Multicodec prefix for Ed25519 public keys (0xed 0x01)
_MULTICODEC_ED25519_PUB = b"\xed\x01"


def did_key_from_public_key(public_key: bytes) -> str:
    """
    Format a raw 32-byte Ed25519 public key as a did:key DID.

    Examples:
        >>> did_key_from_public_key(bytes(32)).startswith("did:key:z6Mk")
        True
    """
    if len(public_key) != 32:
        raise ValueError(f"Expected 32-byte Ed25519 public key, got {len(public_key)} bytes")
    encoded = base58.b58encode(_MULTICODEC_ED25519_PUB + public_key).decode("ascii")
    return f"{DID_KEY_PREFIX}{_MULTIBASE_BASE58BTC}{encoded}"


def did_key_verification_method_id(did: str) -> str:
    """
    Return the verification method id for a did:key DID.

    did:key:z6Mk... becomes did:key:z6Mk...#z6Mk...
    """
    did = controller_of(did)
    if not did.startswith(DID_KEY_PREFIX):
        raise ValueError(f"Expected a did:key DID, got {did!r}")
    return f"{did}#{did[len(DID_KEY_PREFIX):]}"


def controller_of(key_id: str) -> str:
    """Strip the fragment from a key id, leaving the controlling DID."""
    return key_id.split("#", 1)[0]


def public_key_from_did_key(key_id: str) -> bytes:
    """
    Extract the raw Ed25519 public key from a did:key identifier.

    Handles both ``did:key:z6Mk...`` and ``did:key:z6Mk...#z6Mk...``.

    Raises:
        ValueError: If the identifier is not an Ed25519 did:key
    """
    did = controller_of(key_id)
    prefix = DID_KEY_PREFIX + _MULTIBASE_BASE58BTC
    if not did.startswith(prefix):
        raise ValueError(f"Expected did:key:z..., got {key_id!r}")

    decoded = base58.b58decode(did[len(prefix):])
    if not decoded.startswith(_MULTICODEC_ED25519_PUB):
        raise ValueError(f"Expected Ed25519 multicodec prefix (0xed01), got {decoded[:2].hex()}")

    public_key = decoded[len(_MULTICODEC_ED25519_PUB):]
    if len(public_key) != 32:
        raise ValueError(f"Expected 32-byte Ed25519 public key, got {len(public_key)} bytes")
    return public_key
