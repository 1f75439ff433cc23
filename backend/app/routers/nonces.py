import structlog
from fastapi import APIRouter, Depends, Request

from app.config import settings
from app.dependencies import get_nonce_registry
from app.middleware.rate_limit import limiter
from app.schemas.nonce import NonceResponse
from app.services.nonce_registry import NonceRegistry

router = APIRouter()
logger = structlog.get_logger()


@router.get("/nonce", response_model=NonceResponse)
@limiter.limit(settings.rate_limit_nonces)
async def issue_nonce(
    request: Request,
    registry: NonceRegistry = Depends(get_nonce_registry),
):
    """
    Issue a one-time challenge.

    The holder signs it and submits the result to /verify. Each nonce can be
    used for exactly one successful proof.
    """
    nonce = registry.issue()

    logger.info("nonce_issued", nonce=nonce)

    return NonceResponse(nonce=nonce)
