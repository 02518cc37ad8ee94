"""
Quotation model.
Nested sections (pricing, timeline, testimonials, ...) live in JSON columns.
JSON columns are not mutation-tracked: always assign a new list or dict.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlmodel import JSON, Column, Field, SQLModel


class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    REVISION = "revision"


class QuotationAction(str, Enum):
    """Actions a client can take on a sent quotation."""

    ACCEPT = "accept"
    REJECT = "reject"
    REVISION = "revision"


class TemplateType(str, Enum):
    LANDING = "landing"
    DASHBOARD = "dashboard"


class Currency(str, Enum):
    USD = "USD"
    INR = "INR"


# Statuses anyone holding the link may view
PUBLIC_STATUSES = {
    QuotationStatus.SENT.value,
    QuotationStatus.REVISION.value,
    QuotationStatus.ACCEPTED.value,
    QuotationStatus.REJECTED.value,
}


class Quotation(SQLModel, table=True):
    """A per-client proposal whose display fields may override standard content."""

    __tablename__ = "quotations"  # type: ignore

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    title: str
    status: str = Field(default=QuotationStatus.DRAFT.value, index=True)
    template_type: str = Field(default=TemplateType.LANDING.value)
    currency: str = Field(default=Currency.USD.value)

    features: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    benefits: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    terms: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Client information
    client_name: Optional[str] = None
    client_email: Optional[str] = Field(default=None, index=True)
    client_phone: Optional[str] = None
    client_company: Optional[str] = None
    client_address: Optional[str] = None
    country: Optional[str] = None
    associated_user_id: Optional[int] = Field(default=None, foreign_key="users.id")

    # Project information
    project_description: Optional[str] = None
    project_deadline: Optional[str] = None
    payment_terms: Optional[str] = None
    quotation_no: Optional[str] = None
    quotation_date: Optional[datetime] = Field(default_factory=lambda: datetime.now(timezone.utc))
    expiration_date: Optional[datetime] = None
    quotation_validity: Optional[int] = Field(default=None, ge=1, le=365)

    # Per-quotation overrides of standard content
    company_details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    process_steps: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    process_video: Optional[str] = None
    testimonials: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    previous_work: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    cover_image: Optional[str] = None
    cover_title: Optional[str] = None

    quantity_pricing: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    project_timeline: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    payment_milestones: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    # History
    status_timeline: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    actions: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
