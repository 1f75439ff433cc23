"""
Proof-of-possession verification.

A holder proves control of a private key by signing a nonce we issued and
embedding the matching public key in the protected JWS header. The embedded
key is trusted only provisionally: whoever can produce a valid signature
under it is treated as its owner. Nothing here ties the key to a longer-lived
identity.

Verification is a fixed pipeline. Each stage either passes the artifact on or
raises a ProofError; the nonce registry is touched only by the last stage,
after the signature has already been checked.
"""

import json
from dataclasses import dataclass
from typing import Any

import jwt
import structlog
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.api_jws import PyJWS

from app.services.errors import (
    MalformedArtifact,
    MissingOrMalformedChallenge,
    SignatureInvalid,
    UnknownOrReplayedChallenge,
    UnsupportedAlgorithm,
)
from app.services.jose import CompactJws, jwk_thumbprint, parse_compact, public_key_from_jwk
from app.services.nonce_registry import NonceRegistry

logger = structlog.get_logger()

# Adding an entry here needs a cross-algorithm confusion review first
ALLOWED_ALGORITHMS = frozenset({"ES256"})
ALLOWED_TOKEN_TYPES = frozenset({"JWT"})

_jws = PyJWS()


@dataclass(frozen=True)
class VerifiedProof:
    nonce: str
    jwk: dict[str, Any]
    thumbprint: str


def check_algorithm(header: dict[str, Any]) -> str:
    """
    Gate the declared algorithm before any key or signature work.

    Returns the algorithm name. Also rejects a non-JWT ``typ`` and any
    ``crit`` extension, since none are understood here.
    """
    alg = header.get("alg")
    if not isinstance(alg, str) or alg not in ALLOWED_ALGORITHMS:
        raise UnsupportedAlgorithm()

    typ = header.get("typ")
    if typ is not None and (not isinstance(typ, str) or typ.upper() not in ALLOWED_TOKEN_TYPES):
        raise MalformedArtifact("Unsupported token type")

    if "crit" in header:
        raise MalformedArtifact("Critical header extensions are not supported")

    return alg


def parse_public_key(header: dict[str, Any]) -> ec.EllipticCurvePublicKey:
    """Extract the self-described public key from the protected header."""
    if "jwk" not in header:
        raise MalformedArtifact("JWK missing in header")
    return public_key_from_jwk(header["jwk"])


def verify_signature(public_key: ec.EllipticCurvePublicKey, jws: CompactJws) -> bytes:
    """
    Check the ES256 signature over the exact signing input.

    Returns the raw payload bytes, which are only meaningful after this check.
    """
    try:
        decoded = _jws.decode_complete(
            jws.token, key=public_key, algorithms=sorted(ALLOWED_ALGORITHMS)
        )
    except jwt.InvalidSignatureError as e:
        raise SignatureInvalid() from e
    except jwt.InvalidTokenError as e:
        raise MalformedArtifact("Could not decode artifact") from e
    return decoded["payload"]


def extract_challenge(payload: bytes) -> str:
    """Read the ``nonce`` claim from a payload whose signature already verified."""
    try:
        claims = json.loads(payload.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        raise MissingOrMalformedChallenge("Payload is not a JSON object") from e

    if not isinstance(claims, dict):
        raise MissingOrMalformedChallenge("Payload is not a JSON object")

    nonce = claims.get("nonce")
    if not isinstance(nonce, str) or not nonce:
        raise MissingOrMalformedChallenge()
    return nonce


class ProofVerifier:
    """
    Verifies signed proof artifacts against one NonceRegistry.

    The registry is passed in rather than looked up, so the verifier shares
    exactly the lifetime and state of whoever issued the nonces.
    """

    def __init__(self, registry: NonceRegistry):
        self.registry = registry

    def verify(self, token: str) -> VerifiedProof:
        """
        Run the full pipeline on a compact JWS.

        Returns the consumed nonce and the proven key on success.
        Raises a ProofError subclass naming the first failed check.
        """
        jws = parse_compact(token)
        check_algorithm(jws.header)
        public_key = parse_public_key(jws.header)
        payload = verify_signature(public_key, jws)
        nonce = extract_challenge(payload)

        if not self.registry.consume(nonce):
            raise UnknownOrReplayedChallenge()

        jwk = jws.header["jwk"]
        proof = VerifiedProof(nonce=nonce, jwk=jwk, thumbprint=jwk_thumbprint(jwk))
        logger.debug("proof_verified", thumbprint=proof.thumbprint)
        return proof
