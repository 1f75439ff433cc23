from app.schemas.nonce import NonceResponse
from app.schemas.proof import (
    VerificationError,
    VerificationErrorResponse,
    VerificationResponse,
)

__all__ = [
    "NonceResponse",
    "VerificationError",
    "VerificationErrorResponse",
    "VerificationResponse",
]
