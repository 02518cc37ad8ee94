"""
Admin activity log routes.
"""

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlmodel import Session

from app.api.deps import get_current_admin_user
from app.db.session import get_session
from app.models.user import User
from app.schemas.activity import ActivityListResponse, ActivityRead
from app.services.activity_service import ActivityService
from app.services.csv_export import ACTIVITY_COLUMNS, convert_to_csv, csv_attachment

router = APIRouter(prefix="/admin/activities", tags=["activities"])


@router.get("", response_model=ActivityListResponse)
def list_activities(
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
    type: Optional[str] = None,
    quotation_id: Annotated[Optional[str], Query(alias="quotationId")] = None,
    user_id: Annotated[Optional[str], Query(alias="userId")] = None,
    start_date: Annotated[Optional[datetime], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[datetime], Query(alias="endDate")] = None,
    search: Optional[str] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 20,
) -> ActivityListResponse:
    """
    Page through the activity log, newest first.
    Quotation views are only listed when ``type=quotation_viewed``.
    ``startDate`` and ``endDate`` bound the creation time inclusively.
    """
    service = ActivityService(session)
    activities, total = service.list_activities(
        activity_type=type,
        quotation_id=quotation_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        limit=limit,
    )
    return ActivityListResponse(
        activities=[ActivityRead.model_validate(a) for a in activities],
        total=total,
        page=page,
        limit=limit,
        total_pages=ActivityService.total_pages(total, limit),
    )


@router.get("/export")
def export_activities(
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> Response:
    records = [
        ActivityRead.model_validate(a).model_dump(mode="json", by_alias=True)
        for a in ActivityService(session).all_activities()
    ]
    content = convert_to_csv(records, ACTIVITY_COLUMNS)
    if content is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No activities to export")
    return csv_attachment(content, "activities")
