from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR
from sqlalchemy.exc import IntegrityError
from loguru import logger

def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Malformed request bodies are rejected with 400 before any side effect runs.
    """
    logger.debug(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )

def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred."},
    )
def database_integrity_handler(request: Request, exc: IntegrityError):
    """
    Handle SQLAlchemy integrity constraint violations.

    Foreign-key and uniqueness violations on the interview tables mean the
    client referenced a session that does not exist or replayed a write.

    Args:
        request: FastAPI request instance
        exc: IntegrityError from SQLAlchemy

    Returns:
        JSONResponse with 400 status and user-friendly error message
    """
    error_msg = str(exc.orig).lower()
    logger.warning(f"Integrity error on {request.url.path}: {error_msg}")

    if "foreign key" in error_msg:
        message = "Referenced interview session does not exist"
    else:
        message = "Data constraint violation"

    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={
            "error": "Database error",
            "message": message,
            "hint": "Please check your data and try again"
        }
    )
