"""Tests for request signing."""

import base64
import time
from datetime import datetime, timezone

import httpx
import pytest
import respx

from http_signature_auth import (
    HttpSignatureAuth,
    MissingHeader,
    build_authorization_header_value,
    sign_request,
    verify_authorization,
    resolve_did_key_verifier,
)
from http_signature_auth.headers import split_authorization_params

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)
CREATED_SECONDS = 1704067200


class TestSignRequest:
    """Tests for sign_request."""

    @pytest.mark.asyncio
    async def test_authorization_header_is_deterministic(self, fixed_signer):
        """A fixed signer and created time produce an exact header."""
        request = await sign_request(
            "https://example.com/inbox",
            signer=fixed_signer,
            include_headers=["(request-target)", "(created)", "(key-id)"],
            created=CREATED,
        )

        expected_signature = base64.urlsafe_b64encode(fixed_signer.signature).rstrip(b"=").decode()
        assert request.headers["authorization"] == (
            'Signature keyId="did:example:123#key-1",'
            f'created="{CREATED_SECONDS}",'
            'headers="(request-target) (created) (key-id)",'
            f'signature="{expected_signature}"'
        )
        assert fixed_signer.calls == [
            b"(request-target): get /inbox\n"
            b"(created): 1704067200\n"
            b"(key-id): did:example:123#key-1"
        ]

    @pytest.mark.asyncio
    async def test_defaults(self, fixed_signer):
        """Method defaults to GET and the window to 30 seconds from now."""
        before = int(time.time())
        request = await sign_request(
            "https://example.com/inbox",
            signer=fixed_signer,
            include_headers=["(created)", "(expires)"],
        )
        after = int(time.time())

        assert request.method == "GET"
        params = split_authorization_params(request.headers["authorization"])
        created = int(params["created"])
        expires = int(params["expires"])
        assert expires - created == 30
        assert before <= created <= after

    @pytest.mark.asyncio
    async def test_host_injected_from_url(self, fixed_signer):
        """host is taken from the URL when covered but not supplied."""
        await sign_request(
            "https://example.com:8443/inbox",
            signer=fixed_signer,
            include_headers=["host"],
        )
        assert fixed_signer.calls == [b"host: example.com:8443"]

    @pytest.mark.asyncio
    async def test_default_port_dropped_from_host(self, fixed_signer):
        """The scheme's default port does not appear in the injected host."""
        await sign_request(
            "https://example.com:443/inbox",
            signer=fixed_signer,
            include_headers=["host"],
        )
        assert fixed_signer.calls == [b"host: example.com"]

    @pytest.mark.asyncio
    async def test_supplied_host_wins(self, fixed_signer):
        """A supplied host header is not replaced."""
        await sign_request(
            "https://example.com/inbox",
            signer=fixed_signer,
            include_headers=["host"],
            headers={"Host": "proxy.internal"},
        )
        assert fixed_signer.calls == [b"host: proxy.internal"]

    @pytest.mark.asyncio
    async def test_date_injected_for_explicit_created(self, fixed_signer):
        """An explicit created with (created) covered adds a date header."""
        request = await sign_request(
            "https://example.com/inbox",
            signer=fixed_signer,
            include_headers=["(created)", "date"],
            created=CREATED,
        )
        assert request.headers["date"] == "Mon, 01 Jan 2024 00:00:00 GMT"
        assert fixed_signer.calls[0].endswith(b"date: Mon, 01 Jan 2024 00:00:00 GMT")

    @pytest.mark.asyncio
    async def test_no_date_for_default_created(self, fixed_signer):
        """The implicit created never adds a date header."""
        request = await sign_request(
            "https://example.com/inbox",
            signer=fixed_signer,
            include_headers=["(created)"],
        )
        assert "date" not in request.headers

    @pytest.mark.asyncio
    async def test_no_date_without_created_covered(self, fixed_signer):
        """date is only added when (created) is covered."""
        request = await sign_request(
            "https://example.com/inbox",
            signer=fixed_signer,
            include_headers=["(request-target)"],
            created=CREATED,
        )
        assert "date" not in request.headers

    @pytest.mark.asyncio
    async def test_caller_headers_not_mutated(self, fixed_signer):
        """The caller's header mapping is left untouched."""
        headers = {"content-type": "application/json"}
        await sign_request(
            "https://example.com/inbox",
            signer=fixed_signer,
            include_headers=["host", "(created)", "content-type"],
            headers=headers,
            created=CREATED,
        )
        assert headers == {"content-type": "application/json"}

    @pytest.mark.asyncio
    async def test_authorization_not_shadowed(self, fixed_signer):
        """A caller-supplied Authorization header is replaced."""
        request = await sign_request(
            "https://example.com/inbox",
            signer=fixed_signer,
            include_headers=["(request-target)"],
            headers={"Authorization": "Bearer stale"},
        )
        assert request.headers.get_list("authorization") == [request.headers["authorization"]]
        assert request.headers["authorization"].startswith("Signature ")

    @pytest.mark.asyncio
    async def test_method_and_body(self, fixed_signer):
        """Method and body are carried onto the request."""
        request = await sign_request(
            "https://example.com/inbox",
            signer=fixed_signer,
            include_headers=["(request-target)"],
            method="post",
            body=b'{"type": "Follow"}',
        )
        assert request.method == "POST"
        assert request.content == b'{"type": "Follow"}'
        assert fixed_signer.calls == [b"(request-target): post /inbox"]

    @pytest.mark.asyncio
    async def test_missing_header_fails_before_signing(self, fixed_signer):
        """A covered header that cannot be found stops signing early."""
        with pytest.raises(MissingHeader):
            await sign_request(
                "https://example.com/inbox",
                signer=fixed_signer,
                include_headers=["(request-target)", "digest"],
            )
        assert fixed_signer.calls == []

    @pytest.mark.asyncio
    async def test_signer_failure_propagates(self, failing_signer):
        """Signer exceptions reach the caller unchanged."""
        with pytest.raises(RuntimeError, match="signing key unavailable"):
            await sign_request(
                "https://example.com/inbox",
                signer=failing_signer,
                include_headers=["(request-target)"],
            )


class TestBuildAuthorizationHeaderValue:
    """Tests for build_authorization_header_value."""

    @pytest.mark.asyncio
    async def test_expires_included_when_covered(self, fixed_signer):
        """expires appears in the header and signing string when covered."""
        value = await build_authorization_header_value(
            signer=fixed_signer,
            url="https://example.com/inbox",
            method="GET",
            headers={},
            include_headers=["(created)", "(expires)"],
            created=CREATED_SECONDS,
            expires=CREATED_SECONDS + 60,
        )
        params = split_authorization_params(value)
        assert params["created"] == str(CREATED_SECONDS)
        assert params["expires"] == str(CREATED_SECONDS + 60)
        assert fixed_signer.calls == [b"(created): 1704067200\n(expires): 1704067260"]


class TestHttpSignatureAuth:
    """Tests for the httpx auth flow."""

    @pytest.mark.asyncio
    async def test_async_client_requests_are_signed(self, ed25519_signer):
        """Requests sent through AsyncClient carry a verifiable signature."""
        auth = HttpSignatureAuth(
            ed25519_signer,
            ["(request-target)", "host", "(created)", "(expires)", "(key-id)"],
        )
        with respx.mock(assert_all_called=False) as mock:
            route = mock.get("https://example.com/inbox").respond(json={"items": []})
            async with httpx.AsyncClient(auth=auth) as client:
                response = await client.get("https://example.com/inbox")

        assert response.status_code == 200
        sent = route.calls.last.request
        result = await verify_authorization(sent, get_verifier=resolve_did_key_verifier)
        assert result.key_id == ed25519_signer.id
        assert result.expires.to_number() - result.created.to_number() == 30

    def test_sync_client_rejected(self, fixed_signer):
        """Synchronous clients cannot drive the async signer."""
        auth = HttpSignatureAuth(fixed_signer, ["(request-target)"])
        with respx.mock(assert_all_called=False) as mock:
            mock.get("https://example.com/inbox").respond(json={})
            with httpx.Client(auth=auth) as client:
                with pytest.raises(RuntimeError):
                    client.get("https://example.com/inbox")
