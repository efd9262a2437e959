"""Current User Dependencies

Authentication itself happens upstream. The gateway in front of this service
verifies the caller and forwards the user id in a trusted header (AUTH_USER_HEADER,
default "X-User-Id"). These FastAPI dependencies read it.

Dependencies:
- fastapi: For request access and dependency injection.
- dotenv: For environment variable loading.
- interview_service.errors.exceptions: For Unauthorized.
"""

import os
from typing import Optional
from dotenv import load_dotenv
from fastapi import Depends, Request
from interview_service.errors.exceptions import Unauthorized

load_dotenv()

AUTH_USER_HEADER = os.getenv("AUTH_USER_HEADER", "X-User-Id")


def get_current_user_id(request: Request) -> Optional[str]:
    """Return the authenticated user id, or None for anonymous callers.

    Example:
        @router.post("/chat")
        async def chat(user_id: Optional[str] = Depends(get_current_user_id)):
    """
    value = request.headers.get(AUTH_USER_HEADER)
    if value is None or not value.strip():
        return None
    return value.strip()


def require_user_id(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    """Like get_current_user_id, but rejects anonymous callers with 401."""
    if user_id is None:
        raise Unauthorized("Authentication required")
    return user_id
