"""
Authentication utilities for JWT validation
"""
from typing import Optional

from fastapi import HTTPException, Header
from jose import JWTError, jwt

from sparkpath_mentor.config import get_settings
from sparkpath_mentor.errors import Unauthorized


def verify_token(token: Optional[str]) -> dict:
    """
    Validate a bearer token and extract the identity.

    Args:
        token: Raw JWT (without the "Bearer " prefix)

    Returns:
        dict: {"userId": ..., "email": ...}

    Raises:
        Unauthorized: missing, malformed, expired, or identity-less token
    """
    if not token:
        raise Unauthorized("Access token required")
    # Same secret the auth service signs tokens with
    settings = get_settings()
    if not settings.jwt_secret:
        raise Unauthorized("JWT_SECRET is not configured")

    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise Unauthorized(f"Invalid token: {e}") from e

    user_id = claims.get("userId") or claims.get("sub")
    if not user_id:
        raise Unauthorized("Token carries no user id")

    return {"userId": user_id, "email": claims.get("email")}


async def get_current_user(authorization: Optional[str] = Header(None)):
    """
    FastAPI dependency: validate the Authorization header.

    Raises:
        HTTPException: 401 if the header is missing or the token is invalid
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    token = authorization.replace("Bearer ", "", 1)

    try:
        return verify_token(token)
    except Unauthorized as e:
        raise HTTPException(status_code=401, detail="Could not validate credentials") from e
