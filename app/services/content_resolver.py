"""
Effective display values for a quotation.

Each logical field is resolved independently in the order
quotation value -> standard content value -> fallback constant.
A value counts as absent when it is None, an empty string or an empty list.
Nothing in this module mutates its inputs; the standard content document
is always passed in by the caller.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional
from urllib.parse import quote

from app.models.quotation import Quotation
from app.models.standard_content import StandardContent
from app.schemas.quotation import EffectiveCompanyDetails, EffectiveQuotation

DEFAULT_COMPANY_NAME = "Company"

# Fields a quotation may override
OVERRIDABLE_COMPANY_FIELDS = ("name", "logo", "email", "phone", "website")

# Descriptive copy that only ever comes from standard content
STANDARD_ONLY_COMPANY_FIELDS = (
    "tagline",
    "features_description",
    "benefits_description",
    "pricing_description",
    "terms_description",
    "cta_description",
)

STATUS_COLORS = {
    "draft": "default",
    "sent": "blue",
    "accepted": "green",
    "rejected": "red",
    "revision": "orange",
}

SECONDS_PER_DAY = 24 * 60 * 60


def _first_present(*values: Any) -> Any:
    for value in values:
        if value not in (None, "", [], {}):
            return value
    return None


def _company_value(details: Optional[Mapping[str, Any]], field: str) -> Any:
    if not details:
        return None
    return details.get(field)


def _standard_details(standard: Optional[StandardContent]) -> Optional[Mapping[str, Any]]:
    return standard.company_details if standard is not None else None


def effective_phone(quotation: Quotation, standard: Optional[StandardContent]) -> str:
    """Company phone shown on the quotation, or "" when neither side has one."""
    return _first_present(
        _company_value(quotation.company_details, "phone"),
        _company_value(_standard_details(standard), "phone"),
    ) or ""


def effective_company_name(quotation: Quotation, standard: Optional[StandardContent]) -> str:
    return _first_present(
        _company_value(quotation.company_details, "name"),
        _company_value(_standard_details(standard), "name"),
    ) or DEFAULT_COMPANY_NAME


def effective_company_details(
    quotation: Quotation, standard: Optional[StandardContent]
) -> EffectiveCompanyDetails:
    """
    Merge company details field by field.

    Contact fields prefer the quotation; descriptive fields come from
    standard content only. Missing values become empty strings.
    """
    own = quotation.company_details
    defaults = _standard_details(standard)

    merged = {
        field: _first_present(_company_value(own, field), _company_value(defaults, field)) or ""
        for field in OVERRIDABLE_COMPANY_FIELDS
    }
    for field in STANDARD_ONLY_COMPANY_FIELDS:
        merged[field] = _company_value(defaults, field) or ""

    return EffectiveCompanyDetails(**merged)


def standard_terms_list(standard: Optional[StandardContent]) -> List[str]:
    """Default terms as a list; a string is split on newlines with blank lines dropped."""
    if standard is None or not standard.default_terms:
        return []
    terms = standard.default_terms
    if isinstance(terms, str):
        return [line for line in terms.split("\n") if line.strip()]
    return list(terms)


def effective_terms(quotation: Quotation, standard: Optional[StandardContent]) -> List[str]:
    """Quotation terms followed by the standard terms. No de-duplication."""
    own_terms = list(quotation.terms) if isinstance(quotation.terms, list) else []
    return own_terms + standard_terms_list(standard)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def effective_validity_days(quotation: Quotation) -> Optional[int]:
    """
    Validity period in days.

    Uses the explicit field when set, otherwise the whole days between the
    quotation date and the expiration date rounded up. None when neither
    is available.
    """
    if quotation.quotation_validity:
        return quotation.quotation_validity

    if quotation.quotation_date and quotation.expiration_date:
        delta = _as_utc(quotation.expiration_date) - _as_utc(quotation.quotation_date)
        return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)

    return None


def effective_list(quotation: Quotation, standard: Optional[StandardContent], field: str) -> List[Any]:
    """Quotation list when non-empty, else the standard content list, else []."""
    own = getattr(quotation, field, None)
    if own:
        return list(own)
    if standard is not None and getattr(standard, field, None):
        return list(getattr(standard, field))
    return []


def effective_process_video(quotation: Quotation, standard: Optional[StandardContent]) -> Optional[str]:
    return _first_present(
        quotation.process_video,
        standard.process_video if standard is not None else None,
    )


def status_color(status: Optional[str]) -> str:
    return STATUS_COLORS.get((status or "").lower(), "default")


def contact_link(phone: str, company_name: str, quotation_title: str) -> Optional[str]:
    """WhatsApp chat link for the company phone, or None when there is no phone."""
    if not phone:
        return None
    digits = re.sub(r"[^0-9]", "", phone)
    message = f"Hi {company_name}, I have a question about the quotation: {quotation_title}"
    return f"https://wa.me/{digits}?text={quote(message)}"


def resolve_quotation(quotation: Quotation, standard: Optional[StandardContent]) -> EffectiveQuotation:
    """Compute every effective display value for one quotation."""
    details = effective_company_details(quotation, standard)
    company_name = effective_company_name(quotation, standard)
    phone = effective_phone(quotation, standard)

    return EffectiveQuotation(
        company_details=details,
        company_name=company_name,
        contact_link=contact_link(phone, company_name, quotation.title),
        terms=effective_terms(quotation, standard),
        validity_days=effective_validity_days(quotation),
        process_steps=effective_list(quotation, standard, "process_steps"),
        process_video=effective_process_video(quotation, standard),
        testimonials=effective_list(quotation, standard, "testimonials"),
        previous_work=effective_list(quotation, standard, "previous_work"),
        status_color=status_color(quotation.status),
    )
