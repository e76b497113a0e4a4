"""
Authentication dependencies.

Tokens are issued by the external auth provider: HS256 JWTs whose `sub` is
the profile id. The role is always read from the profile row, never trusted
from the token.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from ..core.config import settings
from ..db import get_db
from ..schemas.records import UserRecord
from ..services.profiles import ProfileStore


def create_access_token(user_id: str, role: str = "user", expires_minutes: int = 60) -> str:
    """Mint a token in the provider's format (local tooling and tests)."""
    payload = {
        "sub": user_id,
        "role": role,
        "exp": datetime.utcnow() + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def get_token_claims(request: Request) -> Optional[Dict[str, Any]]:
    """
    Decode the bearer token, if any.

    Returns:
        Claims dict, or None when no Authorization header is present

    Raises:
        HTTPException: 401 if the header is malformed or the token invalid
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    if not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header"
        )

    token = auth_header[7:]  # Remove "Bearer " prefix
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[UserRecord]:
    """Current user, or None for anonymous viewers."""
    claims = get_token_claims(request)
    if claims is None:
        return None
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    user = ProfileStore(db).get(str(user_id))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    request.state.user_id = user.id
    return user


def get_current_user(user: Optional[UserRecord] = Depends(get_optional_user)) -> UserRecord:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    return user
