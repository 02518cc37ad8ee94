"""
Standard content model.
A single row holds the company-wide defaults shown when a quotation
does not carry its own value.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from sqlmodel import JSON, Column, Field, SQLModel


class StandardContent(SQLModel, table=True):
    """Company details, default terms, process steps, testimonials and portfolio."""

    __tablename__ = "standard_content"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    company_details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    default_features: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    default_benefits: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    # Either one newline-delimited string or a list of terms
    default_terms: Union[str, List[str]] = Field(default="", sa_column=Column(JSON))
    process_steps: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    process_video: Optional[str] = None
    testimonials: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    previous_work: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
