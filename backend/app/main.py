from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.dependencies import get_nonce_registry
from app.logging_config import setup_logging
from app.middleware.logging import CORRELATION_HEADER, LoggingMiddleware
from app.middleware.rate_limit import limiter
from app.routers import nonces, proofs
from app.services.nonce_registry import NonceRegistry

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the nonce registry for the lifetime of the process.

    Outstanding nonces are not persisted; a restart invalidates all of them.
    """
    setup_logging()
    app.state.nonce_registry = NonceRegistry()
    logger.info("verifier_started")
    yield
    app.state.nonce_registry.clear()
    logger.info("verifier_stopped")


app = FastAPI(
    title="Proof of Possession Verifier",
    description="Challenge/response verification of self-described ES256 keys",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_HEADER],
)

# Request logging (outermost, sees every response)
app.add_middleware(LoggingMiddleware)

# Routers
app.include_router(nonces.router, prefix="/api/v1", tags=["nonces"])
app.include_router(proofs.router, prefix="/api/v1", tags=["proofs"])


@app.get("/health")
async def health_check(registry: NonceRegistry = Depends(get_nonce_registry)):
    return {"status": "healthy", "outstanding_nonces": registry.outstanding()}
