from pydantic import BaseModel, Field


class NonceResponse(BaseModel):
    nonce: str = Field(..., description="Opaque one-time challenge to sign")
