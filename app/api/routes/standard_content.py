"""
Admin routes for the standard content document.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from app.api.deps import get_current_admin_user
from app.core.exceptions import PersistenceFailure, ValidationFailed
from app.core.logging import get_logger
from app.db.session import get_session
from app.models.user import User
from app.schemas.standard_content import (
    StandardContentGetResponse,
    StandardContentRead,
    StandardContentSaveResponse,
    StandardContentWrite,
)
from app.services.standard_content_service import StandardContentService

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/standard-content", tags=["standard-content"])


@router.get("", response_model=StandardContentGetResponse)
def get_standard_content(
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> StandardContentGetResponse:
    """
    Read the standard content.

    The response carries the server time so clients never treat it as cached.
    ``standardContent`` is null until an admin saves it for the first time.
    """
    try:
        content = StandardContentService.get(session)
    except PersistenceFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return StandardContentGetResponse(
        standard_content=StandardContentRead.model_validate(content) if content else None,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.post("", response_model=StandardContentSaveResponse)
def save_standard_content(
    payload: StandardContentWrite,
    session: Annotated[Session, Depends(get_session)],
    admin: Annotated[User, Depends(get_current_admin_user)],
) -> StandardContentSaveResponse:
    """
    Create or fully replace the standard content.

    Raises:
        HTTPException: 400 naming the missing group, 500 if the write fails
    """
    try:
        content = StandardContentService.save(session, payload)
    except ValidationFailed as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceFailure as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    logger.info(f"Standard content saved by admin {admin.id}")
    return StandardContentSaveResponse(
        message="Standard content updated successfully",
        standard_content=StandardContentRead.model_validate(content),
    )
