"""
Quotation schemas for admin and client endpoints.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from app.models.quotation import Currency, TemplateType
from app.schemas.base import CamelModel
from app.schemas.standard_content import CompanyDetails, StandardContentRead


class QuotationFields(CamelModel):
    """
    Editable quotation fields shared by create and update bodies.

    Enum fields are stored as their plain values. Aware datetimes are
    converted to UTC because the database keeps no offset.
    """

    model_config = ConfigDict(use_enum_values=True)

    template_type: Optional[TemplateType] = None
    currency: Optional[Currency] = None
    features: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_company: Optional[str] = None
    client_address: Optional[str] = None
    country: Optional[str] = None
    associated_user_id: Optional[int] = None
    project_description: Optional[str] = None
    project_deadline: Optional[str] = None
    payment_terms: Optional[str] = None
    quotation_no: Optional[str] = None
    quotation_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    quotation_validity: Optional[Annotated[int, Field(ge=1, le=365)]] = None
    company_details: Optional[CompanyDetails] = None
    process_steps: Optional[List[Dict[str, Any]]] = None
    process_video: Optional[str] = None
    testimonials: Optional[List[Dict[str, Any]]] = None
    previous_work: Optional[List[Dict[str, Any]]] = None
    cover_image: Optional[str] = None
    cover_title: Optional[str] = None
    quantity_pricing: Optional[List[Dict[str, Any]]] = None
    project_timeline: Optional[List[Dict[str, Any]]] = None
    payment_milestones: Optional[List[Dict[str, Any]]] = None

    @field_validator("quotation_date", "expiration_date")
    @classmethod
    def normalize_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc)
        return v


class QuotationCreate(QuotationFields):
    title: Optional[str] = None
    terms: Optional[List[str]] = None


class QuotationUpdate(QuotationFields):
    title: Optional[str] = None
    terms: Optional[List[str]] = None
    status: Optional[str] = None
    is_revision: bool = False


class QuotationRead(CamelModel):
    id: str
    title: str
    status: str
    template_type: str
    currency: str
    features: List[str] = []
    benefits: List[str] = []
    terms: List[str] = []
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_company: Optional[str] = None
    client_address: Optional[str] = None
    country: Optional[str] = None
    associated_user_id: Optional[int] = None
    project_description: Optional[str] = None
    project_deadline: Optional[str] = None
    payment_terms: Optional[str] = None
    quotation_no: Optional[str] = None
    quotation_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    quotation_validity: Optional[int] = None
    company_details: Optional[CompanyDetails] = None
    process_steps: List[Dict[str, Any]] = []
    process_video: Optional[str] = None
    testimonials: List[Dict[str, Any]] = []
    previous_work: List[Dict[str, Any]] = []
    cover_image: Optional[str] = None
    cover_title: Optional[str] = None
    quantity_pricing: List[Dict[str, Any]] = []
    project_timeline: List[Dict[str, Any]] = []
    payment_milestones: List[Dict[str, Any]] = []
    status_timeline: List[Dict[str, Any]] = []
    actions: List[Dict[str, Any]] = []
    created_at: datetime
    updated_at: datetime


class QuotationWithViews(QuotationRead):
    view_count: int = 0


class QuotationListResponse(CamelModel):
    quotations: List[QuotationWithViews]


class QuotationMutationResponse(CamelModel):
    success: bool = True
    quotation: QuotationRead
    message: str


class EffectiveCompanyDetails(CamelModel):
    name: str = ""
    logo: str = ""
    email: str = ""
    phone: str = ""
    website: str = ""
    tagline: str = ""
    features_description: str = ""
    benefits_description: str = ""
    pricing_description: str = ""
    terms_description: str = ""
    cta_description: str = ""


class EffectiveQuotation(CamelModel):
    """Display values after applying quotation -> standard content -> fallback."""

    company_details: EffectiveCompanyDetails
    company_name: str
    contact_link: Optional[str] = None
    terms: List[str] = []
    validity_days: Optional[int] = None
    process_steps: List[Dict[str, Any]] = []
    process_video: Optional[str] = None
    testimonials: List[Dict[str, Any]] = []
    previous_work: List[Dict[str, Any]] = []
    status_color: str


class ClientQuotationResponse(CamelModel):
    quotation: QuotationRead
    standard_content: Optional[StandardContentRead] = None
    effective: EffectiveQuotation


class ClientActionRequest(CamelModel):
    """Client contact details and the requested action."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    action: Optional[str] = None
    reason: Optional[str] = None


class OtpVerifyRequest(CamelModel):
    otp: Optional[str] = None


class ClientActionResult(CamelModel):
    success: bool = True
    message: str
    action: str


class ViewTrackRequest(CamelModel):
    is_authenticated: bool = False
    user_email: Optional[str] = None
    user_name: Optional[str] = None


class ClientQuotationList(CamelModel):
    quotations: List[QuotationRead]


class ClientUserActionRequest(CamelModel):
    """Action taken by a signed-in client; no code confirmation needed."""

    action: Optional[str] = None
    reason: Optional[str] = None


class ClientUserActionResult(CamelModel):
    success: bool = True
    status: str


class QuotationStats(CamelModel):
    total: int
    sent: int
    accepted: int
    draft: int
    acceptance_rate: int
