"""Tests for the reference holder client."""

import json

import httpx
import pytest
from jwt.utils import base64url_decode

from app.main import app
from app.middleware.rate_limit import limiter
from app.services.holder import generate_holder_key, prove_ownership, public_jwk, sign_proof
from app.services.nonce_registry import NonceRegistry


@pytest.fixture
def asgi_client():
    """An httpx client wired straight into the app, with a fresh registry.

    ASGITransport does not run the lifespan, so the registry is installed
    on app.state directly.
    """
    app.state.nonce_registry = NonceRegistry()
    limiter.enabled = False
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://verifier")
    yield client
    limiter.enabled = True


class TestSignProof:
    """Tests for artifact construction."""

    def test_structure(self):
        """Test that the artifact embeds the public key and the nonce."""
        key = generate_holder_key()
        header_segment, payload_segment, signature_segment = sign_proof(key, "abc123").split(".")

        header = json.loads(base64url_decode(header_segment))
        assert header == {"alg": "ES256", "typ": "JWT", "jwk": public_jwk(key.public_key())}
        assert json.loads(base64url_decode(payload_segment)) == {"nonce": "abc123"}
        assert len(base64url_decode(signature_segment)) == 64

    def test_private_key_not_embedded(self):
        """Test that no private key material ends up in the header."""
        key = generate_holder_key()
        header = json.loads(base64url_decode(sign_proof(key, "abc123").split(".")[0]))

        assert "d" not in header["jwk"]


class TestProveOwnership:
    """Tests for the full holder round trip."""

    @pytest.mark.asyncio
    async def test_prove_ownership(self, asgi_client):
        """Test that an honest holder is accepted and the nonce is spent."""
        async with asgi_client:
            response = await prove_ownership("http://verifier", client=asgi_client)

        assert response.status_code == 200
        assert response.json() == {"status": "success"}
        assert app.state.nonce_registry.outstanding() == 0

    @pytest.mark.asyncio
    async def test_prove_ownership_with_given_key(self, asgi_client):
        """Test that the same key can prove itself repeatedly with fresh nonces."""
        key = generate_holder_key()
        async with asgi_client:
            first = await prove_ownership("http://verifier", key, client=asgi_client)
            second = await prove_ownership("http://verifier", key, client=asgi_client)

        assert first.status_code == 200
        assert second.status_code == 200

    @pytest.mark.asyncio
    async def test_nonce_fetch_failure(self):
        """Test that a failing nonce endpoint raises instead of signing."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"detail": "unavailable"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://x")
        async with client:
            with pytest.raises(httpx.HTTPStatusError):
                await prove_ownership("http://x", client=client)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [["abc123"], "abc123", {"nonce": 42}, {}])
    async def test_nonce_response_not_usable(self, body):
        """Test that a nonce response without a string nonce field is a ValueError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://x")
        async with client:
            with pytest.raises(ValueError, match="nonce field missing"):
                await prove_ownership("http://x", client=client)
