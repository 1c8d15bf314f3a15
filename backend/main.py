import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import get_settings
from errors import ErrorKind, GateError
from recaptcha import verify_recaptcha
from schemas import ErrorRes, VerifyRecaptchaReq, VerifyRecaptchaRes


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI()

# Allowed frontend origins (add others if needed)
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GateError)
async def gate_error_handler(request: Request, exc: GateError):
    '''Surface a gate rejection as its kind and message.'''
    logger.info("%s %s rejected: %s %s", request.method, request.url.path, exc.kind.value, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    '''Report a malformed request body as INVALID_ARGUMENT instead of a bare 422.'''
    return await gate_error_handler(
        request, GateError(ErrorKind.INVALID_ARGUMENT, "Request body must be a JSON object.")
    )


@app.get("/health")
async def health():
    '''Health check endpoint.'''
    return {"status": "ok"}


@app.post(
    "/api/v1/recaptcha/verify",
    response_model=VerifyRecaptchaRes,
    responses={400: {"model": ErrorRes}, 403: {"model": ErrorRes}, 503: {"model": ErrorRes}},
)
def recaptcha_verify(req: Optional[VerifyRecaptchaReq] = None):
    '''Verify a reCAPTCHA token. Expects JSON body with {"token": "...", "action": "..."}'''
    # A missing body is the same as an empty one
    req = req or VerifyRecaptchaReq()
    result = verify_recaptcha(req.token, req.action, settings=get_settings())
    return VerifyRecaptchaRes(**result)
