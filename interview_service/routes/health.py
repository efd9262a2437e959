"""
Health check endpoint for the application.

Description:
This module defines a FastAPI route for checking the health status of the application.
It also reports whether the language-model provider is configured, without making
a provider call.

Arguments:
- request: An instance of Request, required for rate limiting.

Returns:
- A JSON response such as {"status": "ok", "providerConfigured": true}.

Dependencies:
- fastapi: For defining routes.
- interview_service.core.route_limiters: For rate limiting functionality.
- interview_service.core.ai_client_manager: For the provider configuration check.
- loguru: For logging information about the health check endpoint.

"""
from fastapi import APIRouter, Request
from interview_service.core.route_limiters import limiter
from interview_service.core.ai_client_manager import provider_configured
from interview_service.schemas.health_response import HealthResponse
from loguru import logger

router = APIRouter(
    prefix="/api",
    tags=["health"],
    responses={404: {"description": "Not found"}}
)

@router.get("/health", response_model=HealthResponse)
@limiter.limit("10/minute")  # Custom limit for this endpoint
async def health(request: Request):
    """
    Request parameter is required for rate limiting.
    """
    configured = provider_configured()
    logger.info(f"Health check endpoint called (provider configured: {configured})")
    return HealthResponse(status="ok", providerConfigured=configured)
