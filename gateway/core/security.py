from datetime import datetime, timedelta, timezone
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from gateway.core.config import settings
from gateway.core.exceptions import NotAuthenticated
from gateway.schemas.user import UserProfile


def token_expiry(issued_at: datetime = None) -> datetime:
    """Instant at which a token issued at `issued_at` (default now) expires"""
    issued_at = issued_at or datetime.now(timezone.utc)
    return issued_at + settings.jwt_expires_delta


def create_access_token(user: UserProfile, expires_delta: timedelta = None) -> str:
    """Sign a gateway token embedding the user profile"""
    issued_at = datetime.now(timezone.utc)

    if expires_delta:
        expire = issued_at + expires_delta
    else:
        expire = token_expiry(issued_at)

    to_encode = {
        "sub": user.id,
        "user": user.model_dump(),
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> UserProfile:
    """Verify a gateway token and return the embedded profile"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise NotAuthenticated("Token expired")
    except JWTError:
        raise NotAuthenticated("Invalid token")

    try:
        return UserProfile.model_validate(payload.get("user"))
    except ValidationError:
        raise NotAuthenticated("Token verification failed")
