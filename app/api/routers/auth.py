"""
Authentication endpoints for registration, login and session probing.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.schemas.auth import (
    AuthResponse,
    BootstrapStatusResponse,
    LogoutResponse,
    SessionResponse,
    Token,
    UserLogin,
    UserRegister,
    UserResponse,
)
from app.core.security import (
    User,
    authenticate_user,
    create_access_token,
    create_user,
    get_current_user,
    get_optional_user,
)
from app.core.subscriptions import active_subscriptions
from app.db.session import get_db

router = APIRouter(prefix="/auth", tags=["authentication"])
logger = logging.getLogger(__name__)


def _requires_admin_setup(db: Session) -> bool:
    """Return True when no users exist yet."""
    existing_users = db.query(func.count(User.id)).scalar() or 0
    return existing_users == 0


def _auth_response(user: User) -> AuthResponse:
    access_token = create_access_token(data={"sub": user.email})
    return AuthResponse(
        success=True,
        token=Token(access_token=access_token),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse)
async def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """
    Register a new user and sign them in.

    The first account on a fresh deployment becomes the admin.
    """
    try:
        role = "admin" if _requires_admin_setup(db) else "user"
        user = create_user(
            db=db,
            email=user_data.email,
            password=user_data.password,
            full_name=user_data.full_name,
            role=role,
        )
        logger.info(f"Registered user {user.email} (role={role})")
        return _auth_response(user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Registration failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Registration failed: {str(e)}")


@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Login with email and password.

    Returns:
    - JWT access token
    - User information
    """
    try:
        if _requires_admin_setup(db):
            raise HTTPException(
                status_code=400,
                detail="No users exist yet. Please create the first account to continue.",
            )

        user = authenticate_user(db, credentials.email, credentials.password)
        if not user:
            raise HTTPException(status_code=401, detail="Incorrect email or password")

        return _auth_response(user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Login failed: {str(e)}")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return UserResponse.model_validate(current_user)


@router.get("/session", response_model=SessionResponse)
async def get_session(
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """
    Describe the caller's session without failing for anonymous callers.

    Dashboards use this to decide between the login screen and the app.
    """
    if current_user is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(
        authenticated=True,
        user=UserResponse.model_validate(current_user),
        is_premium=bool(active_subscriptions(db, current_user.id)),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its token after this call."""
    logger.info(f"User {current_user.email} logged out")
    return LogoutResponse(success=True, message="Logged out")


@router.get("/bootstrap-status", response_model=BootstrapStatusResponse)
async def get_bootstrap_status(db: Session = Depends(get_db)):
    """Return whether the deployment still needs an initial admin account."""
    return BootstrapStatusResponse(requires_admin_setup=_requires_admin_setup(db))
