from fastapi import Request

from app.services.nonce_registry import NonceRegistry
from app.services.proof_verifier import ProofVerifier


def get_nonce_registry(request: Request) -> NonceRegistry:
    """Dependency returning the registry created in the app lifespan."""
    return request.app.state.nonce_registry


def get_proof_verifier(request: Request) -> ProofVerifier:
    return ProofVerifier(get_nonce_registry(request))
