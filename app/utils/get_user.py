from fastapi import Header, HTTPException, Request, status

from app.core.security import decode_access_token
import logging

logger = logging.getLogger("auth.guard")


async def get_current_user(
    request: Request,
    authorization: str | None = Header(None),
) -> dict:
    """Claims of the Supabase session calling the API."""
    if not authorization or not authorization.startswith("Bearer "):
        logger.warning("Missing bearer token", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
        )

    token = authorization.split("Bearer ", 1)[1].strip()
    return decode_access_token(token)
