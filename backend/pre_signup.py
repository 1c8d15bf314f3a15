import logging

from domain_gate import restrict_signup_by_domain

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def handler(event, context):
    # event.request.userAttributes.email is available for Hosted UI sign-up
    email = (event.get("request", {}).get("userAttributes", {}).get("email") or "").strip()

    # Raising aborts the sign-up; Cognito returns the message to the client
    restrict_signup_by_domain(email)

    logger.info("Sign-up permitted for %s", email.rsplit("@", 1)[-1].lower())
    return event
