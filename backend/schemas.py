from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class VerifyRecaptchaReq(BaseModel):
    '''Request schema for verifying a reCAPTCHA token'''
    # Left untyped so non-string fields are rejected by the gate, not by validation
    token: Any = None
    action: Any = None

class VerifyRecaptchaRes(BaseModel):
    '''Response schema for an accepted reCAPTCHA token'''
    success: bool = True

class VerificationResult(BaseModel):
    '''Body returned by the siteverify endpoint'''
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    score: Optional[float] = None
    action: Optional[str] = None
    error_codes: List[str] = Field(default_factory=list, alias="error-codes")
    challenge_ts: Optional[str] = None
    hostname: Optional[str] = None

class ErrorDetail(BaseModel):
    status: str
    message: str

class ErrorRes(BaseModel):
    '''Error body returned for a rejected request'''
    error: ErrorDetail
