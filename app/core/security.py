# app/core/security.py

from jose import jwt, JWTError
from fastapi import HTTPException, status

from app.core.config import (
    SUPABASE_JWT_SECRET,
    JWT_ALGORITHM,
    JWT_AUDIENCE,
)


# =====================================================
# DECODE + VALIDATE SUPABASE ACCESS TOKEN
# =====================================================
def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        )

    return payload
