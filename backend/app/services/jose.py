"""
Compact JWS and EC JWK helpers shared by the verifier and the holder client.

PyJWT does the JOSE work (segment decoding, JWK import, ES256). This module
adds the stricter checks a proof of possession needs on top of it: exactly
three base64url segments, UTF-8 headers, public P-256 keys only, and RFC 7638
thumbprints for logging.
"""

import hashlib
import json
import re
from dataclasses import dataclass
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.utils import base64url_decode, base64url_encode

from app.services.errors import MalformedArtifact, MalformedKey

# Three segments from the base64url alphabet, no padding or whitespace
_COMPACT_RE = re.compile(r"[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*")

P256_COORDINATE_BYTES = 32


@dataclass(frozen=True)
class CompactJws:
    """A structurally valid, unverified compact JWS. Never mutated after parsing."""

    token: str
    header: dict[str, Any]


def parse_compact(token: str) -> CompactJws:
    """
    Check the compact serialization and decode the protected header.

    The payload is not returned: it must not be trusted until the signature
    over it has been checked.
    """
    if not _COMPACT_RE.fullmatch(token):
        raise MalformedArtifact("JWT must have 3 base64url parts")

    try:
        header = jwt.get_unverified_header(token)
    except (jwt.InvalidTokenError, RecursionError) as e:
        raise MalformedArtifact("Could not decode artifact") from e

    # json.loads sniffs UTF-16/32 on bytes; JOSE headers are UTF-8 only
    try:
        json.loads(base64url_decode(token.split(".", 1)[0]).decode("utf-8"))
    except ValueError as e:
        raise MalformedArtifact("Header is not UTF-8 JSON") from e

    return CompactJws(token=token, header=header)


def public_key_from_jwk(jwk: Any) -> ec.EllipticCurvePublicKey:
    """
    Build a P-256 public key from an EC JWK.

    Only public JWKs are accepted: a JWK carrying the private ``d`` member
    is rejected rather than silently stripped.
    """
    if not isinstance(jwk, dict):
        raise MalformedKey("JWK is not a JSON object")
    if jwk.get("kty") != "EC":
        raise MalformedKey("JWK kty must be EC")
    if jwk.get("crv") != "P-256":
        raise MalformedKey("JWK crv must be P-256")
    if "d" in jwk:
        raise MalformedKey("JWK must not contain private key material")

    try:
        key = jwt.PyJWK(jwk, algorithm="ES256").key
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        # ValueError also covers points that are not on the curve
        raise MalformedKey("JWK is not a valid P-256 public key") from e

    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise MalformedKey("JWK is not a P-256 public key")
    return key


def _encode_coordinate(value: int) -> str:
    return base64url_encode(value.to_bytes(P256_COORDINATE_BYTES, "big")).decode("ascii")


def jwk_from_public_key(public_key: ec.EllipticCurvePublicKey) -> dict[str, str]:
    """Export a P-256 public key as an EC JWK with fixed-width coordinates."""
    if not isinstance(public_key.curve, ec.SECP256R1):
        raise ValueError("Only P-256 keys are supported")
    numbers = public_key.public_numbers()
    return {
        "kty": "EC",
        "crv": "P-256",
        "x": _encode_coordinate(numbers.x),
        "y": _encode_coordinate(numbers.y),
    }


def jwk_thumbprint(jwk: dict) -> str:
    """RFC 7638 SHA-256 thumbprint of an EC JWK, base64url encoded."""
    canonical = json.dumps(
        {"crv": jwk["crv"], "kty": jwk["kty"], "x": jwk["x"], "y": jwk["y"]},
        separators=(",", ":"),
        sort_keys=True,
    )
    return base64url_encode(hashlib.sha256(canonical.encode("utf-8")).digest()).decode("ascii")
