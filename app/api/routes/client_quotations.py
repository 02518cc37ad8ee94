"""
Client quotation routes.
Public reads of shared quotations and the OTP-confirmed accept / reject /
revision flow.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session

from app.api.deps import get_optional_user
from app.core.exceptions import NotFound, NotificationFailed, ValidationFailed
from app.core.logging import get_logger
from app.db.session import get_session
from app.models.user import User
from app.schemas.quotation import (
    ClientActionRequest,
    ClientActionResult,
    ClientQuotationResponse,
    OtpVerifyRequest,
    QuotationRead,
)
from app.schemas.standard_content import StandardContentRead
from app.services.activity_service import client_ip
from app.services.content_resolver import resolve_quotation
from app.services.quotation_service import QuotationService
from app.services.standard_content_service import StandardContentService

logger = get_logger(__name__)

router = APIRouter(prefix="/client/quotation", tags=["client-quotations"])


@router.get("/{quotation_id}", response_model=ClientQuotationResponse)
def get_client_quotation(
    quotation_id: str,
    session: Annotated[Session, Depends(get_session)],
    user: Annotated[Optional[User], Depends(get_optional_user)],
) -> ClientQuotationResponse:
    """
    Read a quotation as the client sees it.

    Returns the raw quotation, the standard content it falls back on, and
    the effective display values computed from both.
    """
    try:
        quotation = QuotationService(session).get_for_viewer(quotation_id, user)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    standard = StandardContentService.get(session)
    return ClientQuotationResponse(
        quotation=QuotationRead.model_validate(quotation),
        standard_content=StandardContentRead.model_validate(standard) if standard else None,
        effective=resolve_quotation(quotation, standard),
    )


@router.post("/{quotation_id}/action")
def request_quotation_action(
    quotation_id: str,
    body: ClientActionRequest,
    session: Annotated[Session, Depends(get_session)],
) -> dict:
    """
    Ask to accept, reject or request a revision of a sent quotation.
    A one-time code is emailed to the client to confirm.
    """
    try:
        QuotationService(session).request_action(quotation_id, body)
    except ValidationFailed as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except NotificationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return {"message": "OTP sent successfully"}


@router.put("/{quotation_id}/action", response_model=ClientActionResult)
def confirm_quotation_action(
    quotation_id: str,
    body: OtpVerifyRequest,
    request: Request,
    session: Annotated[Session, Depends(get_session)],
) -> ClientActionResult:
    """Redeem the emailed code and apply the pending action."""
    try:
        action, message = QuotationService(session).confirm_action(
            quotation_id,
            body.otp,
            ip_address=client_ip(request.headers),
            user_agent=request.headers.get("user-agent") or "unknown",
        )
    except ValidationFailed as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ClientActionResult(message=message, action=action)
