"""
Activity log service.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from app.core.logging import get_logger
from app.models.activity import Activity, ActivityType

logger = get_logger(__name__)


def client_ip(headers: Any) -> str:
    """First x-forwarded-for hop, else x-real-ip, else "unknown"."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return headers.get("x-real-ip") or "unknown"


def _as_utc(value: datetime) -> datetime:
    """Naive UTC datetime for comparing against stored timestamps; naive input is taken as UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


class ActivityService:
    """Service for writing and querying activity records."""

    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        activity_type: ActivityType,
        description: str,
        metadata: Optional[Dict[str, Any]] = None,
        commit: bool = True,
        **fields: Any,
    ) -> Activity:
        """
        Add an activity record.

        Args:
            activity_type: Kind of activity
            description: Human readable summary
            metadata: Free-form details; ``quotationId`` is also indexed
            commit: Commit immediately, or leave it to the caller
            **fields: user_id, user_email, admin_id, admin_email, ip_address, user_agent

        Returns:
            The new activity
        """
        activity = Activity(
            type=activity_type.value,
            description=description,
            details=metadata,
            quotation_id=(metadata or {}).get("quotationId"),
            **fields,
        )
        self.session.add(activity)
        if commit:
            self.session.commit()
            self.session.refresh(activity)
        logger.debug(f"Recorded {activity_type.value} activity: {description}")
        return activity

    def list_activities(
        self,
        activity_type: Optional[str] = None,
        quotation_id: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        user_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        hide_views: bool = True,
    ) -> Tuple[List[Activity], int]:
        """
        Page through activities, newest first.

        Args:
            activity_type: Only this type
            quotation_id: Only activities about this quotation
            search: Case-insensitive match on description, user email or user id
            page: 1-based page number
            limit: Page size
            user_id: Only activities of this user
            start_date: Created at or after (inclusive)
            end_date: Created at or before (inclusive)
            hide_views: Leave out view records unless ``activity_type`` asks for them

        Returns:
            (activities on the page, total matching count)
        """
        conditions = []
        if activity_type == ActivityType.QUOTATION_VIEWED.value or not hide_views:
            if activity_type:
                conditions.append(Activity.type == activity_type)
        else:
            conditions.append(Activity.type != ActivityType.QUOTATION_VIEWED.value)
            if activity_type:
                conditions.append(Activity.type == activity_type)

        if quotation_id:
            conditions.append(Activity.quotation_id == quotation_id)
        if user_id:
            conditions.append(Activity.user_id == user_id)
        if start_date:
            conditions.append(col(Activity.created_at) >= _as_utc(start_date))
        if end_date:
            conditions.append(col(Activity.created_at) <= _as_utc(end_date))

        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    col(Activity.description).ilike(pattern),
                    col(Activity.user_email).ilike(pattern),
                    col(Activity.user_id).ilike(pattern),
                )
            )

        total = self.session.exec(select(func.count()).select_from(Activity).where(*conditions)).one()

        statement = (
            select(Activity)
            .where(*conditions)
            .order_by(col(Activity.created_at).desc(), col(Activity.id).desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(self.session.exec(statement).all()), total

    def all_activities(self) -> List[Activity]:
        statement = select(Activity).order_by(col(Activity.created_at).desc(), col(Activity.id).desc())
        return list(self.session.exec(statement).all())

    def view_counts(self, quotation_ids: Iterable[str]) -> Dict[str, int]:
        """Number of view records per quotation id."""
        ids = list(quotation_ids)
        if not ids:
            return {}
        statement = (
            select(Activity.quotation_id, func.count())
            .where(Activity.type == ActivityType.QUOTATION_VIEWED.value)
            .where(col(Activity.quotation_id).in_(ids))
            .group_by(Activity.quotation_id)
        )
        return {quotation_id: count for quotation_id, count in self.session.exec(statement).all()}

    @staticmethod
    def total_pages(total: int, limit: int) -> int:
        return math.ceil(total / limit) if limit else 0
