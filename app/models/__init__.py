"""Database models. Importing this package registers every table."""

from app.models.activity import Activity, ActivityType
from app.models.otp import OTP
from app.models.quotation import Quotation, QuotationAction, QuotationStatus
from app.models.standard_content import StandardContent
from app.models.user import User, UserRole

__all__ = [
    "Activity",
    "ActivityType",
    "OTP",
    "Quotation",
    "QuotationAction",
    "QuotationStatus",
    "StandardContent",
    "User",
    "UserRole",
]
