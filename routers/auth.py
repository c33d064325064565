"""
Authentication Router

Provides endpoints for user registration and login.

Endpoints:
    POST /register - Create new user account
    POST /login - Authenticate and get JWT token
    GET /users/me - Get current user
"""

from fastapi import APIRouter, HTTPException, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import timedelta

from core import models, schemas, database
import auth as auth_utils
from utils.logging import get_logger
from utils.rate_limit import limit_auth

logger = get_logger(__name__)

router = APIRouter(tags=["Authentication & Users"])


# =============================================================================
# Registration
# =============================================================================

@router.post(
    "/register",
    response_model=schemas.UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    responses={
        201: {"description": "User created successfully"},
        400: {"description": "Email already registered"},
    }
)
@limit_auth
async def register(
    request: Request,
    user: schemas.UserCreate,
    db: AsyncSession = Depends(database.get_db)
):
    """
    Register a new user account.

    The password is hashed before storage.

    Raises:
        HTTPException: 400 if email already registered
    """
    result = await db.execute(
        select(models.User).filter(models.User.email == user.email)
    )
    if result.scalars().first():
        logger.warning(f"Registration attempt with existing email: {user.email}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    db_user = models.User(
        email=user.email,
        password_hash=auth_utils.get_password_hash(user.password),
    )

    db.add(db_user)
    await db.commit()
    await db.refresh(db_user)

    logger.info(f"New user registered: {user.email}")
    return db_user


# =============================================================================
# Login
# =============================================================================

@router.post(
    "/login",
    response_model=schemas.Token,
    summary="Login for access token",
    responses={
        200: {"description": "Login successful"},
        401: {"description": "Invalid credentials"},
    }
)
@limit_auth
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(database.get_db)
):
    """
    Authenticate user and return JWT access token.

    Accepts email as username and password. Returns a bearer token
    that must be included in the Authorization header for protected endpoints.

    Example:
        ```
        POST /login
        Content-Type: application/x-www-form-urlencoded

        username=user@example.com&password=mypassword
        ```
    """
    result = await db.execute(
        select(models.User).filter(models.User.email == form_data.username)
    )
    user = result.scalars().first()

    if not user or not auth_utils.verify_password(form_data.password, user.password_hash):
        logger.warning(f"Failed login attempt for: {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = auth_utils.create_access_token(
        data={"sub": user.email},
        expires_delta=timedelta(minutes=auth_utils.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    logger.info(f"User logged in: {user.email}")
    return {"access_token": access_token, "token_type": "bearer"}


@router.get(
    "/users/me",
    response_model=schemas.UserResponse,
    summary="Get current user",
)
async def read_users_me(
    current_user: models.User = Depends(auth_utils.get_current_user)
):
    """Get the current authenticated user."""
    return current_user
