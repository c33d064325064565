"""
Authentication

bcrypt password hashing, python-jose JWT bearer tokens, and the
`get_current_user` dependency that every correction endpoint depends on.
A missing or unusable token raises AuthenticationError (401 Unauthorized).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
import bcrypt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config.settings import settings
from core import models, database
from utils.logging import get_logger
from utils.exceptions import AuthenticationError

logger = get_logger(__name__)

# Missing tokens are reported as Unauthorized by get_current_user
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)


# =============================================================================
# Password Hashing
# =============================================================================

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """bcrypt check; malformed stored hashes count as a mismatch."""
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError as e:
        logger.error(f"Password verification failed: {e}")
        return False


def get_password_hash(password: str) -> str:
    """bcrypt hash with a fresh salt."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


# =============================================================================
# JWT Token Management
# =============================================================================

def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Signed JWT for `data`; expiry defaults to ACCESS_TOKEN_EXPIRE_MINUTES."""
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Verified payload, or None for bad signature, expiry or format."""
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None


# =============================================================================
# User Authentication Dependencies
# =============================================================================

async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(database.get_db)
) -> models.User:
    """
    FastAPI dependency to get the current authenticated user.

    Extracts and validates the JWT token from the Authorization header,
    then fetches the corresponding user from the database.

    Raises:
        AuthenticationError: if the token is missing, invalid, or the user
            no longer exists

    Usage:
        @router.post("/corrections")
        async def record(user: User = Depends(get_current_user)):
            ...
    """
    if not token:
        raise AuthenticationError("Missing authorization header")

    payload = decode_access_token(token)
    if payload is None:
        logger.warning("JWT decode failed")
        raise AuthenticationError("Could not validate credentials")

    email = payload.get("sub")
    if email is None:
        logger.warning("Token missing 'sub' claim")
        raise AuthenticationError("Could not validate credentials")

    result = await db.execute(
        select(models.User).filter(models.User.email == email)
    )
    user = result.scalars().first()

    if user is None:
        logger.warning(f"User not found for email: {email}")
        raise AuthenticationError("Could not validate credentials")

    return user
