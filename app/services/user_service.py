"""
User service layer implementing business logic for user operations.
"""

from typing import List, Optional

from sqlmodel import Session, col, select

from app.core.security import get_password_hash, verify_password
from app.models.user import User, UserRole
from app.schemas.user import UserCreate


class UserService:
    """Service class for user-related operations."""

    @staticmethod
    def get_by_email(session: Session, email: str) -> Optional[User]:
        """
        Retrieve a user by email address (case-insensitive).

        Args:
            session: Database session
            email: Email address to search for

        Returns:
            User if found, None otherwise
        """
        statement = select(User).where(User.email == email.lower())
        return session.exec(statement).first()

    @staticmethod
    def get_by_id(session: Session, user_id: int) -> Optional[User]:
        return session.get(User, user_id)

    @staticmethod
    def list_all(session: Session) -> List[User]:
        return list(session.exec(select(User).order_by(col(User.created_at).desc())).all())

    @staticmethod
    def create(session: Session, user_create: UserCreate, role: UserRole = UserRole.CLIENT) -> User:
        """
        Create a new user with hashed password.

        Args:
            session: Database session
            user_create: User creation data
            role: User role (defaults to CLIENT)

        Returns:
            Created user instance
        """
        db_user = User(
            email=user_create.email.lower(),
            hashed_password=get_password_hash(user_create.password),
            full_name=user_create.full_name,
            role=role,
        )
        session.add(db_user)
        session.commit()
        session.refresh(db_user)
        return db_user

    @staticmethod
    def authenticate(session: Session, email: str, password: str) -> Optional[User]:
        """
        Check an email and password pair.

        Whether the account is still active is left to the caller, so it can
        tell a deactivated account apart from wrong credentials.

        Returns:
            User if the password matches, None otherwise
        """
        user = UserService.get_by_email(session, email)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    @staticmethod
    def has_role(user: User, *roles: UserRole) -> bool:
        return user.role in roles
