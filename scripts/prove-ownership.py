#!/usr/bin/env python3
"""
Prove possession of a P-256 key to a running verifier.

Flow:
1. GET  /api/v1/nonce
2. Sign {"nonce": ...} as an ES256 JWS with the public key in the header
3. POST /api/v1/verify

Usage:
    ./scripts/prove-ownership.py http://127.0.0.1:8000
    ./scripts/prove-ownership.py http://127.0.0.1:8000 --key holder.pem

Exits 0 when the proof is accepted, 1 when rejected, 2 on transport errors.
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

import httpx
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from app.services.holder import generate_holder_key, prove_ownership


def log(msg: str) -> None:
    """Print timestamped log message."""
    print(f"[{datetime.now().strftime('%H:%M:%S')}] {msg}", flush=True)


def load_private_key(path: Path) -> ec.EllipticCurvePrivateKey:
    key = serialization.load_pem_private_key(path.read_bytes(), password=None)
    if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(
        key.curve, ec.SECP256R1
    ):
        raise SystemExit(f"{path}: expected an unencrypted P-256 private key")
    return key


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Prove possession of a P-256 key.")
    parser.add_argument("base_url", help="Verifier root URL")
    parser.add_argument("--key", type=Path, help="PEM private key (default: fresh key)")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    private_key = load_private_key(args.key) if args.key else generate_holder_key()

    try:
        response = await prove_ownership(args.base_url.rstrip("/"), private_key)
    except httpx.HTTPError as e:
        log(f"Request failed: {e}")
        return 2

    log(f"Verification response: {response.status_code} {response.text}")
    return 0 if response.is_success else 1


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
