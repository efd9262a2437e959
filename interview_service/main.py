"""
Mock Interview Service application entry point.

Run with: uvicorn interview_service.main:app --reload
"""
import os
import sys
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError
# Logger
from loguru import logger
# Rate Limiter
from interview_service.core.route_limiters import limiter
# CORS Middleware
from interview_service.core.cors_middleware import add_cors_middleware
# Routers
from interview_service.routes.health import router as health_router
from interview_service.routes.interview_sessions import router as interview_sessions_router
from interview_service.routes.interview_chat import router as interview_chat_router
from interview_service.routes.self_play import router as self_play_router
# Database
from interview_service.database import create_tables, dispose_engine
from interview_service.services.interview_session.self_play_registry import self_play_registry
# Error Handling
from interview_service.errors.handlers import (
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
    database_integrity_handler,
)

# Load environment variables
load_dotenv()


def configure_logging():
    logger.remove()
    logger.add(sys.stderr, level=os.getenv("LOG_LEVEL", "INFO").upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    # Startup
    configure_logging()
    try:
        await create_tables()
        logger.info("Application startup completed successfully")
    except Exception as e:
        logger.error(f"Error during application startup: {e}")
        raise

    yield

    # Shutdown
    await self_play_registry.stop_all()
    await dispose_engine()
    logger.info("Application shutdown")

# Initialize FastAPI app
app = FastAPI(
    title="Mock Interview Service API",
    description="AI interviewer, self-play and feedback API for mock interviews",
    version="0.1.0",
    lifespan=lifespan
)
# Add CORS middleware
add_cors_middleware(app)

# Centralized error handlers
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(IntegrityError, database_integrity_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Add rate limiter to the app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Include routers
app.include_router(health_router)
app.include_router(interview_sessions_router)
app.include_router(interview_chat_router)
app.include_router(self_play_router)
