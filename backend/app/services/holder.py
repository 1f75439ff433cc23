"""
Reference holder: builds and submits proof-of-possession artifacts.

The private key never leaves this process. Only the compact JWS, which carries
the public key in its protected header, is sent to the verifier.
"""

import httpx
import jwt
import structlog
from cryptography.hazmat.primitives.asymmetric import ec

from app.services.jose import jwk_from_public_key

logger = structlog.get_logger()

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0


def generate_holder_key() -> ec.EllipticCurvePrivateKey:
    """Generate a fresh P-256 key pair for a holder."""
    return ec.generate_private_key(ec.SECP256R1())


def public_jwk(public_key: ec.EllipticCurvePublicKey) -> dict[str, str]:
    return jwk_from_public_key(public_key)


def sign_proof(
    private_key: ec.EllipticCurvePrivateKey,
    nonce: str,
    *,
    public_key: ec.EllipticCurvePublicKey | None = None,
    typ: str = "JWT",
) -> str:
    """
    Sign ``{"nonce": nonce}`` as an ES256 compact JWS with the public key embedded.

    ``public_key`` only changes which key the header *claims*; it defaults to
    the signer's own and exists for building negative test cases.
    """
    embedded = public_key if public_key is not None else private_key.public_key()
    return jwt.encode(
        {"nonce": nonce},
        private_key,
        algorithm="ES256",
        headers={"typ": typ, "jwk": public_jwk(embedded)},
    )


async def fetch_nonce(client: httpx.AsyncClient) -> str:
    response = await client.get(f"{API_PREFIX}/nonce")
    response.raise_for_status()
    body = response.json()
    nonce = body.get("nonce") if isinstance(body, dict) else None
    if not isinstance(nonce, str):
        raise ValueError("nonce field missing")
    return nonce


async def prove_ownership(
    base_url: str,
    private_key: ec.EllipticCurvePrivateKey | None = None,
    client: httpx.AsyncClient | None = None,
) -> httpx.Response:
    """
    Run one full challenge/response round against a verifier.

    Fetches a nonce, signs it and submits the artifact. Returns the verifier's
    response; a 400 means the proof was rejected. Transport and nonce fetch
    errors propagate as httpx exceptions.

    Args:
        base_url: Verifier root URL, e.g. http://127.0.0.1:8000
        private_key: Key to prove; a fresh one is generated when omitted
        client: Optional preconfigured client (used for in-process transports)
    """
    if private_key is None:
        private_key = generate_holder_key()

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(base_url=base_url, timeout=DEFAULT_TIMEOUT_SECONDS)

    try:
        nonce = await fetch_nonce(client)
        token = sign_proof(private_key, nonce)
        response = await client.post(
            f"{API_PREFIX}/verify",
            content=token,
            headers={"Content-Type": "text/plain"},
        )
    finally:
        if owns_client:
            await client.aclose()

    logger.info("proof_submitted", status_code=response.status_code)
    return response
