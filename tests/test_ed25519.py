"""Tests for did:key identifiers and Ed25519 capabilities."""

import base58
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from http_signature_auth import (
    Ed25519Signer,
    Ed25519Verifier,
    did_key_from_public_key,
    did_key_verification_method_id,
    public_key_from_did_key,
    resolve_did_key_verifier,
)
from http_signature_auth.did import controller_of


def _raw(private_key):
    return private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


class TestDidKey:
    """Tests for did:key formatting and parsing."""

    def test_format(self):
        """did:key DIDs use the z base58btc prefix and Ed25519 multicodec."""
        public_key = bytes(range(32))
        did = did_key_from_public_key(public_key)
        assert did.startswith("did:key:z6Mk")
        assert base58.b58decode(did[len("did:key:z"):]) == b"\xed\x01" + public_key

    def test_extract_from_did_and_method_id(self):
        """The public key is recovered with or without a fragment."""
        public_key = bytes(range(32))
        did = did_key_from_public_key(public_key)
        assert public_key_from_did_key(did) == public_key
        assert public_key_from_did_key(did_key_verification_method_id(did)) == public_key

    def test_verification_method_id(self):
        """The fragment repeats the method-specific id."""
        assert did_key_verification_method_id("did:key:z6MkABC") == "did:key:z6MkABC#z6MkABC"

    def test_verification_method_id_rejects_other_methods(self):
        """Only did:key DIDs have a derivable method id."""
        with pytest.raises(ValueError):
            did_key_verification_method_id("did:web:example.com")

    def test_controller_of(self):
        """The controller is the key id without its fragment."""
        assert controller_of("did:key:z6MkABC#z6MkABC") == "did:key:z6MkABC"

    def test_wrong_length(self):
        """Only 32-byte keys can be formatted."""
        with pytest.raises(ValueError):
            did_key_from_public_key(b"short")

    def test_not_did_key(self):
        """Other DID methods are rejected."""
        with pytest.raises(ValueError, match="did:key"):
            public_key_from_did_key("did:example:123#key-1")

    def test_wrong_multicodec(self):
        """Non-Ed25519 multicodec prefixes are rejected."""
        did = "did:key:z" + base58.b58encode(b"\xe7\x01" + bytes(33)).decode()
        with pytest.raises(ValueError, match="multicodec"):
            public_key_from_did_key(did)


class TestEd25519Capabilities:
    """Tests for Ed25519Signer and Ed25519Verifier."""

    def test_default_key_id(self):
        """The signer advertises its did:key verification method id."""
        private_key = Ed25519PrivateKey.generate()
        signer = Ed25519Signer(private_key)
        did = did_key_from_public_key(_raw(private_key))
        assert signer.id == f"{did}#{did[len('did:key:'):]}"

    def test_explicit_key_id(self):
        """An explicit key id is used as given."""
        signer = Ed25519Signer(Ed25519PrivateKey.generate(), key_id="https://example.com/actor#main-key")
        assert signer.id == "https://example.com/actor#main-key"

    @pytest.mark.asyncio
    async def test_sign_and_verify(self):
        """Signatures verify with the matching public key only."""
        private_key = Ed25519PrivateKey.generate()
        signer = Ed25519Signer(private_key)
        signature = await signer.sign(b"payload")

        verifier = Ed25519Verifier(private_key.public_key())
        assert await verifier.verify(b"payload", signature) is True
        assert await verifier.verify(b"payloaD", signature) is False

        other = Ed25519Verifier(Ed25519PrivateKey.generate().public_key())
        assert await other.verify(b"payload", signature) is False

    @pytest.mark.asyncio
    async def test_resolve_did_key_verifier(self, ed25519_signer):
        """A did:key key id resolves to a working verifier."""
        signature = await ed25519_signer.sign(b"payload")
        verifier = await resolve_did_key_verifier(ed25519_signer.id)
        assert await verifier.verify(b"payload", signature) is True
