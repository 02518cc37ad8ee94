"""
Activity log model.
Records client views and actions as well as admin changes.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from sqlmodel import JSON, Column, Field, SQLModel


class ActivityType(str, Enum):
    USER_SIGNUP = "user_signup"
    USER_LOGIN = "user_login"
    ADMIN_ACTION = "admin_action"
    QUOTATION_VIEWED = "quotation_viewed"
    QUOTATION_ACTION = "quotation_action"


class Activity(SQLModel, table=True):
    __tablename__ = "activities"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    type: str = Field(index=True)
    description: str
    user_id: Optional[str] = Field(default=None, index=True)
    user_email: Optional[str] = None
    admin_id: Optional[str] = None
    admin_email: Optional[str] = None
    # Indexed copy of metadata["quotationId"] for view counts and filtering
    quotation_id: Optional[str] = Field(default=None, index=True)
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSON))
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
