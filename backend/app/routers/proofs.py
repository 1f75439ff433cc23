import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from app.config import settings
from app.dependencies import get_proof_verifier
from app.middleware.rate_limit import limiter
from app.schemas.proof import VerificationErrorResponse, VerificationResponse
from app.services.errors import MalformedArtifact, ProofError
from app.services.proof_verifier import ProofVerifier

router = APIRouter()
logger = structlog.get_logger()


async def read_artifact(request: Request) -> str:
    """Read the raw compact JWS from the request body, never buffering past the cap."""
    limit = settings.max_artifact_bytes
    too_large = MalformedArtifact(f"Artifact exceeds {limit} bytes")

    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit() and int(content_length) > limit:
        raise too_large

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise too_large

    try:
        return body.decode("ascii").strip()
    except UnicodeDecodeError as e:
        raise MalformedArtifact("Artifact must be ASCII") from e


@router.post(
    "/verify",
    response_model=VerificationResponse,
    responses={400: {"model": VerificationErrorResponse}},
)
@limiter.limit(settings.rate_limit_verifications)
async def verify_proof(
    request: Request,
    verifier: ProofVerifier = Depends(get_proof_verifier),
):
    """
    Verify a proof of possession.

    The body is a compact JWS whose protected header embeds the holder's
    public key (``jwk``) and whose payload carries a nonce from /nonce.
    Rejected proofs cannot be retried: fetch a new nonce and sign again.
    """
    try:
        token = await read_artifact(request)
        proof = verifier.verify(token)
    except ProofError as e:
        logger.warning("proof_rejected", reason=e.code, stage=e.stage.value)
        if e.__cause__ is not None:
            logger.debug("proof_rejected_cause", reason=e.code, cause=str(e.__cause__))
        raise HTTPException(status_code=400, detail={"error": e.code, "message": str(e)})

    logger.info("proof_accepted", thumbprint=proof.thumbprint)

    return VerificationResponse()
