"""
Legacy quotation routes.

``/quotation/{id}`` and ``/quotation/{id}/action`` predate the client API
and are kept working by forwarding them there untouched. View tracking
still lives at its original address.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from sqlmodel import Session

from app.core.exceptions import NotFound, UpstreamFetchFailed
from app.core.logging import get_logger
from app.db.session import get_session
from app.schemas.quotation import ViewTrackRequest
from app.services.activity_service import client_ip
from app.services.legacy_proxy import canonical_target, forward_request, origin_of
from app.services.quotation_service import QuotationService

logger = get_logger(__name__)

router = APIRouter(prefix="/quotation", tags=["legacy"])


async def _forward(request: Request, quotation_id: str) -> Response:
    method = request.method.upper()
    target = canonical_target(
        origin_of(str(request.url)), quotation_id, method, request.url.query
    )
    body = await request.body() if method != "GET" else None

    try:
        upstream = await run_in_threadpool(
            forward_request, method, target, request.headers, body
        )
    except UpstreamFetchFailed as e:
        logger.error(f"Legacy route for quotation {quotation_id} could not reach {e.target_url}: {e.cause}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Upstream request failed")

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers=upstream.headers,
    )


@router.api_route("/{quotation_id}", methods=["GET", "POST", "PUT"], include_in_schema=False)
async def legacy_quotation(quotation_id: str, request: Request) -> Response:
    return await _forward(request, quotation_id)


@router.api_route("/{quotation_id}/action", methods=["POST", "PUT"], include_in_schema=False)
async def legacy_quotation_action(quotation_id: str, request: Request) -> Response:
    return await _forward(request, quotation_id)


@router.post("/{quotation_id}/view")
def track_quotation_view(
    quotation_id: str,
    body: ViewTrackRequest,
    request: Request,
    session: Annotated[Session, Depends(get_session)],
) -> dict:
    """Record that a quotation was opened from its public link."""
    try:
        QuotationService(session).record_view(
            quotation_id,
            is_authenticated=body.is_authenticated,
            user_email=body.user_email,
            user_name=body.user_name,
            ip_address=client_ip(request.headers),
            user_agent=request.headers.get("user-agent") or "unknown",
        )
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"success": True}
