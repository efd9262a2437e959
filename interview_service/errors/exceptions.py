from fastapi import HTTPException
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_401_UNAUTHORIZED, HTTP_404_NOT_FOUND, HTTP_500_INTERNAL_SERVER_ERROR, HTTP_409_CONFLICT

class BadRequest(HTTPException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=HTTP_400_BAD_REQUEST, detail=detail)

class NotFound(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=HTTP_404_NOT_FOUND, detail=detail)

class InternalServerError(HTTPException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=HTTP_401_UNAUTHORIZED, detail=detail)

class Conflict(HTTPException):
    def __init__(self, detail: str):
        super().__init__(
            status_code=HTTP_409_CONFLICT,
            detail=detail
        )
class ValidationError(BadRequest):
    def __init__(self, detail: str = "Invalid input"):
        super().__init__(detail=detail)
class ConfigurationError(InternalServerError):
    """Required provider settings are absent. Never retried."""
    def __init__(self, missing: list = None):
        self.missing = missing or []
        detail = "Azure OpenAI configuration is missing"
        if self.missing:
            detail = f"{detail}: {', '.join(self.missing)}"
        super().__init__(detail=detail)
class ProviderError(InternalServerError):
    """The language-model provider failed to produce a complete response."""
    def __init__(self, detail: str = "Failed to generate response", mode: str = None):
        self.mode = mode
        super().__init__(detail=detail)
class PersistenceError(InternalServerError):
    def __init__(self, detail: str = "Transcript store is unavailable"):
        super().__init__(detail=detail)
class SessionNotFound(NotFound):
    # Foreign sessions are reported exactly like missing ones.
    def __init__(self, identifier: str = None):
        super().__init__(detail="Interview session not found")
        self.identifier = identifier
class SessionAlreadyCompleted(Conflict):
    def __init__(self, identifier: str = None):
        detail = f"Session '{identifier}' already completed." if identifier else "Session already completed."
        super().__init__(detail=detail)
class SessionStateError(Conflict):
    def __init__(self, detail: str = "Invalid session state transition"):
        super().__init__(detail=detail)
