"""Request-scoped dependencies shared by the routers."""

import logging

import jwt
from fastapi import Header, HTTPException, status

from ..config import get_settings

LOGGER = logging.getLogger("uvicorn.error")


def _extract_token(authorization: str) -> str:
    if not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token format")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token missing")
    return token


async def require_current_user_id(authorization: str = Header(default="")) -> str:
    """Verify the bearer token and return the caller's user id."""

    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")
    token = _extract_token(authorization)

    settings = get_settings()
    if not settings.jwt_secret:
        LOGGER.error("JWT_SECRET is not configured; rejecting authenticated request")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token") from None

    user_id = str(payload.get("userId") or payload.get("sub") or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token missing user id")
    return user_id


__all__ = ["require_current_user_id"]
