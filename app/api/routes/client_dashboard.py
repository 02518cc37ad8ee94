"""
Signed-in client dashboard routes.
The client's own quotations, direct actions without an emailed code,
quotation statistics and the client's own activity log.
"""

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlmodel import Session

from app.api.deps import get_current_client_user, require_roles
from app.core.exceptions import AccessDenied, NotFound, ValidationFailed
from app.db.session import get_session
from app.models.user import User, UserRole
from app.schemas.activity import ActivityListResponse, ActivityRead
from app.schemas.quotation import (
    ClientQuotationList,
    ClientUserActionRequest,
    ClientUserActionResult,
    QuotationRead,
    QuotationStats,
)
from app.services.activity_service import ActivityService, client_ip
from app.services.quotation_service import QuotationService

router = APIRouter(prefix="/client", tags=["client-dashboard"])


@router.get("/user/quotations", response_model=ClientQuotationList)
def list_my_quotations(
    session: Annotated[Session, Depends(get_session)],
    user: Annotated[User, Depends(get_current_client_user)],
) -> ClientQuotationList:
    """Quotations addressed to the signed-in client, newest first."""
    quotations = QuotationService(session).list_for_client(user)
    return ClientQuotationList(quotations=[QuotationRead.model_validate(q) for q in quotations])


@router.post("/user/quotation/{quotation_id}/action", response_model=ClientUserActionResult)
def take_quotation_action(
    quotation_id: str,
    body: ClientUserActionRequest,
    request: Request,
    session: Annotated[Session, Depends(get_session)],
    user: Annotated[User, Depends(get_current_client_user)],
) -> ClientUserActionResult:
    """
    Accept, reject or ask for a revision of one of the client's quotations.

    The bearer token already proves who the client is, so no emailed code
    is involved.
    """
    try:
        quotation = QuotationService(session).client_action(
            quotation_id,
            user,
            body.action,
            body.reason,
            ip_address=client_ip(request.headers),
            user_agent=request.headers.get("user-agent") or "unknown",
        )
    except ValidationFailed as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AccessDenied as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    return ClientUserActionResult(status=quotation.status)


@router.get("/quotations/stats", response_model=QuotationStats)
def quotation_stats(
    session: Annotated[Session, Depends(get_session)],
    user: Annotated[User, Depends(require_roles(UserRole.CLIENT, UserRole.ADMIN))],
) -> QuotationStats:
    return QuotationStats(**QuotationService(session).stats(user))


@router.get("/activities", response_model=ActivityListResponse)
def list_my_activities(
    session: Annotated[Session, Depends(get_session)],
    user: Annotated[User, Depends(get_current_client_user)],
    type: Optional[str] = None,
    start_date: Annotated[Optional[datetime], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[datetime], Query(alias="endDate")] = None,
    search: Optional[str] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 20,
) -> ActivityListResponse:
    """The signed-in client's own activity, newest first."""
    activities, total = ActivityService(session).list_activities(
        activity_type=type,
        user_id=str(user.id),
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        limit=limit,
        hide_views=False,
    )
    return ActivityListResponse(
        activities=[ActivityRead.model_validate(a) for a in activities],
        total=total,
        page=page,
        limit=limit,
        total_pages=ActivityService.total_pages(total, limit),
    )
