from enum import Enum
from typing import Any, Dict


class ErrorKind(str, Enum):
    '''Failure kinds shared by both gates.'''
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    UNAVAILABLE = "UNAVAILABLE"


# Same mapping callable functions use for their error codes
_HTTP_STATUS = {
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.FAILED_PRECONDITION: 400,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.UNAVAILABLE: 503,
}


class GateError(Exception):
    """A typed rejection raised by the domain or verification gate.

    ``str(err)`` is just the message, since Cognito shows the exception
    text from a trigger verbatim to the user.
    """

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        return {"error": {"status": self.kind.value, "message": self.message}}

    def __repr__(self) -> str:
        return f"GateError({self.kind.value}, {self.message!r})"
