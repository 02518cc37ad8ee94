"""
User routes: own profile and the admin user export.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlmodel import Session

from app.api.deps import get_current_admin_user, get_current_user
from app.db.session import get_session
from app.models.user import User
from app.schemas.user import UserResponse
from app.services.csv_export import USER_COLUMNS, convert_to_csv, csv_attachment
from app.services.user_service import UserService

router = APIRouter(tags=["users"])


@router.get("/users/me", response_model=UserResponse)
def get_current_user_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    """Get the signed-in user's profile."""
    return UserResponse.model_validate(current_user)


@router.get("/admin/users", response_model=list[UserResponse])
def list_users(
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> list[UserResponse]:
    return [UserResponse.model_validate(user) for user in UserService.list_all(session)]


@router.get("/admin/users/export")
def export_users(
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> Response:
    """Download all users as CSV."""
    records = [
        UserResponse.model_validate(user).model_dump(mode="json")
        for user in UserService.list_all(session)
    ]
    content = convert_to_csv(records, USER_COLUMNS)
    if content is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No users to export")
    return csv_attachment(content, "users")
