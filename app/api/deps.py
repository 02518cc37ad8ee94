"""
API dependencies for FastAPI dependency injection.
Authentication from bearer tokens and a reusable role gate.
"""

from typing import Annotated, Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlmodel import Session

from app.core.config import settings
from app.core.logging import get_logger
from app.core.security import decode_access_token
from app.db.session import get_session
from app.models.user import User, UserRole
from app.schemas.token import TokenPayload
from app.services.user_service import UserService

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False
)


def _user_from_token(session: Session, token: str) -> User:
    """
    Resolve a bearer token to an active user.

    Raises:
        HTTPException: 401 for a bad token or unknown user, 403 for an inactive user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
        user_id: str | None = payload.get("sub")
        if user_id is None:
            logger.warning("Token missing subject claim")
            raise credentials_exception
        token_data = TokenPayload(sub=int(user_id), role=payload.get("role"))
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise credentials_exception
    except ValueError:
        logger.warning("Invalid user ID in token")
        raise credentials_exception

    user = UserService.get_by_id(session, user_id=token_data.sub)  # type: ignore[arg-type]
    if user is None:
        logger.warning(f"User {token_data.sub} not found")
        raise credentials_exception
    if not user.is_active:
        logger.warning(f"Inactive user {user.id} attempted access")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    return user


def get_current_user(
    session: Annotated[Session, Depends(get_session)],
    token: Annotated[str, Depends(oauth2_scheme)],
) -> User:
    """Dependency returning the authenticated user; 401 without a valid token."""
    return _user_from_token(session, token)


def get_optional_user(
    session: Annotated[Session, Depends(get_session)],
    token: Annotated[Optional[str], Depends(optional_oauth2_scheme)],
) -> Optional[User]:
    """
    Dependency for routes that are public but behave differently when signed in.
    A missing or unusable token means anonymous access.
    """
    if not token:
        return None
    try:
        return _user_from_token(session, token)
    except HTTPException:
        return None


def require_roles(*roles: UserRole) -> Callable[..., User]:
    """
    Build a dependency that admits only users holding one of ``roles``.

    The check runs before the route body, so rejected callers never reach
    the database work of the route.

    Args:
        roles: Roles allowed through

    Returns:
        FastAPI dependency returning the authorised user
    """

    def role_gate(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if not UserService.has_role(current_user, *roles):
            logger.warning(
                f"User {current_user.id} with role {current_user.role} denied; requires {[r.value for r in roles]}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return role_gate


get_current_admin_user = require_roles(UserRole.ADMIN)
get_current_client_user = require_roles(UserRole.CLIENT)
