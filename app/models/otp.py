"""
One-time codes confirming client actions on quotations.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

OTP_TYPE_QUOTATION_ACTION = "quotation_action"


class OTP(SQLModel, table=True):
    """
    Pending verification code.

    Attributes:
        email: Lower-cased address the code was sent to
        code: Six-digit code
        expires: Expiry instant (UTC)
        type: What the code confirms
        quotation_data: JSON text of the pending action
        used: Set once the code has been redeemed
    """

    __tablename__ = "otps"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    code: str = Field(index=True, max_length=6)
    expires: datetime
    type: str = Field(default=OTP_TYPE_QUOTATION_ACTION)
    quotation_data: Optional[str] = None
    used: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
