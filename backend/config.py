import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass(frozen=True)
class Settings:
    '''Process-wide configuration read from the environment.'''
    recaptcha_secret: Optional[str]
    recaptcha_disabled: bool
    aws_region: str
    table_name: str
    dynamodb_endpoint_url: Optional[str]


def get_settings() -> Settings:
    # Only the literal string "true" disables verification
    return Settings(
        recaptcha_secret=os.getenv("RECAPTCHA_SECRET_KEY") or None,
        recaptcha_disabled=os.getenv("RECAPTCHA_DISABLED") == "true",
        aws_region=os.getenv("AWS_REGION") or "eu-west-1",
        table_name=os.getenv("DYNAMODB_TABLE_NAME", "signup_gates"),
        dynamodb_endpoint_url=os.getenv("DYNAMODB_ENDPOINT_URL"),  # optional local endpoint
    )
