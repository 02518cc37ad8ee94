"""
Activity log schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class ActivityRead(CamelModel):
    id: int
    type: str
    description: str
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    admin_id: Optional[str] = None
    admin_email: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias="details", serialization_alias="metadata"
    )
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class ActivityListResponse(CamelModel):
    activities: List[ActivityRead]
    total: int
    page: int
    limit: int
    total_pages: int
