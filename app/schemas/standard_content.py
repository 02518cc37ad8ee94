"""
Standard content schemas.
The write schema is permissive so that missing groups can be reported
with a 400 naming the group instead of a generic 422.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from app.schemas.base import CamelModel


class CompanyDetails(CamelModel):
    """Company contact details plus the descriptive copy used on quotation pages."""

    name: Optional[str] = None
    logo: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    tagline: Optional[str] = None
    features_description: Optional[str] = None
    benefits_description: Optional[str] = None
    pricing_description: Optional[str] = None
    terms_description: Optional[str] = None
    cta_description: Optional[str] = None


class StandardContentWrite(CamelModel):
    """Body of the standard content upsert. Every omitted field is reset."""

    company_details: Optional[CompanyDetails] = None
    default_features: Optional[List[str]] = None
    default_benefits: Optional[List[str]] = None
    default_terms: Optional[Union[str, List[str]]] = None
    process_steps: Optional[List[Dict[str, Any]]] = None
    process_video: Optional[str] = None
    testimonials: Optional[List[Dict[str, Any]]] = None
    previous_work: Optional[List[Dict[str, Any]]] = None


class StandardContentRead(CamelModel):
    id: int
    company_details: CompanyDetails
    default_features: List[str] = []
    default_benefits: List[str] = []
    default_terms: Union[str, List[str]] = ""
    process_steps: List[Dict[str, Any]] = []
    process_video: Optional[str] = None
    testimonials: List[Dict[str, Any]] = []
    previous_work: List[Dict[str, Any]] = []
    created_at: datetime
    updated_at: datetime


class StandardContentGetResponse(CamelModel):
    success: bool = True
    standard_content: Optional[StandardContentRead] = None
    timestamp: str


class StandardContentSaveResponse(CamelModel):
    success: bool = True
    message: str
    standard_content: StandardContentRead
