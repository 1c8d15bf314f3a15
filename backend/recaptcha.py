"""reCAPTCHA token verification.

Forwards the client's token to Google's siteverify endpoint and applies
the score threshold and action match to the result.
"""
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from config import Settings, get_settings
from errors import ErrorKind, GateError
from schemas import VerificationResult

logger = logging.getLogger(__name__)

SITEVERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"
SCORE_THRESHOLD = 0.5
REQUEST_TIMEOUT = 10


def _siteverify(secret: str, token: str, session=None) -> VerificationResult:
    http = session or requests
    try:
        resp = http.post(
            SITEVERIFY_URL,
            data={"secret": secret, "response": token},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning("siteverify request failed: %s", e)
        raise GateError(ErrorKind.UNAVAILABLE, "Failed to verify reCAPTCHA token.") from e

    if not resp.ok:
        logger.warning("siteverify returned HTTP %s", resp.status_code)
        raise GateError(ErrorKind.UNAVAILABLE, "Failed to verify reCAPTCHA token.")

    try:
        return VerificationResult.model_validate(resp.json())
    except (ValueError, ValidationError) as e:
        logger.warning("siteverify returned an unreadable body: %s", e)
        raise GateError(ErrorKind.UNAVAILABLE, "Failed to verify reCAPTCHA token.") from e


def verify_recaptcha(
    token: Any,
    action: Any = None,
    settings: Optional[Settings] = None,
    session: Optional[requests.Session] = None,
) -> Dict[str, bool]:
    """Return ``{"success": True}`` for an acceptable token, else raise GateError.

    When RECAPTCHA_DISABLED is "true" every request passes without a
    remote call. Otherwise a missing secret is FAILED_PRECONDITION, a
    missing or non-string token (or a non-string action) INVALID_ARGUMENT,
    a failed call UNAVAILABLE, and a failed, low-score or mismatched
    result PERMISSION_DENIED.
    """
    settings = settings or get_settings()
    if settings.recaptcha_disabled:
        return {"success": True}
    if not settings.recaptcha_secret:
        raise GateError(ErrorKind.FAILED_PRECONDITION, "reCAPTCHA secret is not configured.")

    if not token or not isinstance(token, str):
        raise GateError(ErrorKind.INVALID_ARGUMENT, "reCAPTCHA token is required.")
    if action is not None and not isinstance(action, str):
        raise GateError(ErrorKind.INVALID_ARGUMENT, "reCAPTCHA action must be a string.")

    result = _siteverify(settings.recaptcha_secret, token, session=session)

    if not result.success:
        logger.warning("reCAPTCHA verification failed: %s", result.error_codes)
        raise GateError(ErrorKind.PERMISSION_DENIED, "reCAPTCHA verification failed.")

    if result.score is not None and result.score < SCORE_THRESHOLD:
        logger.warning("reCAPTCHA score %.2f below threshold", result.score)
        raise GateError(ErrorKind.PERMISSION_DENIED, "Suspicious activity detected. Please try again.")

    if action and result.action and result.action != action:
        logger.warning("reCAPTCHA action mismatch: expected %s, got %s", action, result.action)
        raise GateError(ErrorKind.PERMISSION_DENIED, "reCAPTCHA action mismatch.")

    return {"success": True}
