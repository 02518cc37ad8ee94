"""Pydantic schemas for request/response validation."""

from app.schemas.activity import ActivityListResponse, ActivityRead
from app.schemas.quotation import (
    ClientActionRequest,
    ClientQuotationResponse,
    EffectiveQuotation,
    QuotationCreate,
    QuotationRead,
    QuotationUpdate,
)
from app.schemas.standard_content import CompanyDetails, StandardContentRead, StandardContentWrite
from app.schemas.token import Token, TokenPayload
from app.schemas.user import UserCreate, UserResponse

__all__ = [
    "ActivityListResponse",
    "ActivityRead",
    "ClientActionRequest",
    "ClientQuotationResponse",
    "CompanyDetails",
    "EffectiveQuotation",
    "QuotationCreate",
    "QuotationRead",
    "QuotationUpdate",
    "StandardContentRead",
    "StandardContentWrite",
    "Token",
    "TokenPayload",
    "UserCreate",
    "UserResponse",
]
