import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.middleware.rate_limit import limiter
from app.services.holder import generate_holder_key
from app.services.nonce_registry import NonceRegistry
from app.services.proof_verifier import ProofVerifier


@pytest.fixture
def registry():
    """A fresh, empty nonce registry."""
    return NonceRegistry()


@pytest.fixture
def verifier(registry):
    """A verifier bound to the test registry."""
    return ProofVerifier(registry)


@pytest.fixture
def holder_key():
    """A P-256 key pair for the honest holder."""
    return generate_holder_key()


@pytest.fixture
def client():
    """Create a test client with a fresh registry and disabled rate limiting.

    Entering the TestClient runs the app lifespan, which creates a new
    NonceRegistry on app.state for every test.
    """
    limiter.enabled = False

    with TestClient(app) as test_client:
        yield test_client

    limiter.enabled = True
