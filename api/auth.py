"""
Caller identity for the budget API.

Sign-in happens upstream; the auth provider's user identifier arrives in
the X-User-Id header (name configurable via TIMEBUDGET_USER_HEADER). Every
row the API touches is scoped to that identifier.

Usage:
    from api.auth import require_user

    @router.get("/thing")
    async def thing(user_id: str = Depends(require_user)):
        ...
"""

import logging

from fastapi import HTTPException, Request

from timebudget import config

logger = logging.getLogger(__name__)


async def require_user(request: Request) -> str:
    """
    Dependency returning the caller's user id.

    Raises HTTPException 401 when the header is missing or blank.
    """
    user_id = (request.headers.get(config.USER_HEADER) or "").strip()
    if not user_id:
        logger.warning("Auth failed: no %s header for %s", config.USER_HEADER, request.url.path)
        raise HTTPException(
            status_code=401,
            detail=f"Authentication required. Provide the {config.USER_HEADER} header.",
        )
    return user_id
