"""
Admin quotation management routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlmodel import Session

from app.api.deps import get_current_admin_user
from app.core.exceptions import NotFound, ValidationFailed
from app.core.logging import get_logger
from app.db.session import get_session
from app.models.user import User
from app.schemas.quotation import (
    QuotationCreate,
    QuotationListResponse,
    QuotationMutationResponse,
    QuotationRead,
    QuotationUpdate,
    QuotationWithViews,
)
from app.services.csv_export import QUOTATION_COLUMNS, convert_to_csv, csv_attachment
from app.services.quotation_service import QuotationService

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/quotations", tags=["admin-quotations"])


def _with_views(service: QuotationService) -> list[QuotationWithViews]:
    return [
        QuotationWithViews.model_validate(quotation).model_copy(update={"view_count": views})
        for quotation, views in service.list_with_view_counts()
    ]


@router.get("", response_model=QuotationListResponse)
def list_quotations(
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> QuotationListResponse:
    """All quotations, newest first, with their view counts."""
    return QuotationListResponse(quotations=_with_views(QuotationService(session)))


@router.post("", response_model=QuotationMutationResponse)
def create_quotation(
    payload: QuotationCreate,
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> QuotationMutationResponse:
    try:
        quotation = QuotationService(session).create(payload, admin)
    except ValidationFailed as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return QuotationMutationResponse(
        quotation=QuotationRead.model_validate(quotation),
        message="Quotation created successfully",
    )


@router.get("/export")
def export_quotations(
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> Response:
    """Download all quotations as CSV."""
    records = [q.model_dump(mode="json", by_alias=True) for q in _with_views(QuotationService(session))]
    content = convert_to_csv(records, QUOTATION_COLUMNS)
    if content is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No quotations to export")
    return csv_attachment(content, "quotations")


@router.get("/{quotation_id}", response_model=QuotationRead)
def get_quotation(
    quotation_id: str,
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> QuotationRead:
    try:
        quotation = QuotationService(session).get(quotation_id)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return QuotationRead.model_validate(quotation)


@router.put("/{quotation_id}", response_model=QuotationMutationResponse)
def update_quotation(
    quotation_id: str,
    payload: QuotationUpdate,
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> QuotationMutationResponse:
    """
    Update the fields present in the body.

    Raises:
        HTTPException: 404 for an unknown quotation or associated user, 400 for an invalid status
    """
    try:
        quotation = QuotationService(session).update(quotation_id, payload, admin)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationFailed as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return QuotationMutationResponse(
        quotation=QuotationRead.model_validate(quotation),
        message="Quotation updated successfully",
    )


@router.delete("/{quotation_id}")
def delete_quotation(
    quotation_id: str,
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> dict:
    try:
        QuotationService(session).delete(quotation_id, admin)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"success": True, "message": "Quotation deleted successfully"}
