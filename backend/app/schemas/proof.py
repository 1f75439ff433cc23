from typing import Literal

from pydantic import BaseModel


class VerificationResponse(BaseModel):
    status: Literal["success"] = "success"


class VerificationError(BaseModel):
    error: str
    message: str


class VerificationErrorResponse(BaseModel):
    detail: VerificationError
