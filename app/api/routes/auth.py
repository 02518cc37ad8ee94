"""
Account routes: client signup and password login.
Both are written to the activity log.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session

from app.core.logging import get_logger
from app.core.security import create_access_token
from app.db.session import get_session
from app.models.activity import ActivityType
from app.schemas.token import Token
from app.schemas.user import UserCreate, UserResponse
from app.services.activity_service import ActivityService, client_ip
from app.services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_in: UserCreate,
    request: Request,
    session: Annotated[Session, Depends(get_session)],
) -> UserResponse:
    """
    Sign up as a client so quotations can be viewed and acted on from the dashboard.

    Raises:
        HTTPException: 409 if an account with the email already exists
    """
    if UserService.get_by_email(session, email=user_in.email):
        logger.warning(f"Signup attempt with existing email: {user_in.email}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists. Please login instead.",
        )

    user = UserService.create(session, user_create=user_in)
    ActivityService(session).record(
        ActivityType.USER_SIGNUP,
        f"New client signed up: {user.full_name or user.email} ({user.email})",
        metadata={"role": user.role.value},
        user_id=str(user.id),
        user_email=user.email,
        ip_address=client_ip(request.headers),
        user_agent=request.headers.get("user-agent") or "unknown",
    )
    logger.info(f"Client signed up: {user.email} (ID: {user.id})")

    return UserResponse.model_validate(user)


@router.post("/login", response_model=Token)
def login(
    request: Request,
    session: Annotated[Session, Depends(get_session)],
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> Token:
    """
    OAuth2 password login for admins and clients.
    The token carries the user id and role.

    Raises:
        HTTPException: 401 on wrong credentials, 403 for a deactivated account
    """
    user = UserService.authenticate(session, email=form_data.username, password=form_data.password)
    if not user:
        logger.warning(f"Failed login attempt for email: {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    if not user.is_active:
        logger.warning(f"Login attempt on deactivated account {user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated. Please contact support.",
        )

    ActivityService(session).record(
        ActivityType.USER_LOGIN,
        f"User {user.full_name or user.email} ({user.email}) logged in",
        metadata={"role": user.role.value, "loginMethod": "password"},
        user_id=str(user.id),
        user_email=user.email,
        ip_address=client_ip(request.headers),
        user_agent=request.headers.get("user-agent") or "unknown",
    )
    access_token = create_access_token(subject=user.id, role=user.role.value)
    logger.info(f"User logged in: {user.email} (ID: {user.id})")

    return Token(access_token=access_token)
