"""
Standard content service.
Reads and replaces the single standard content row.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.exceptions import PersistenceFailure, ValidationFailed
from app.core.logging import get_logger
from app.models.standard_content import StandardContent
from app.schemas.standard_content import StandardContentWrite

logger = get_logger(__name__)

REQUIRED_COMPANY_FIELDS = ("name", "email", "phone", "website")


class StandardContentService:
    """Service class for the standard content singleton."""

    @staticmethod
    def get(session: Session) -> Optional[StandardContent]:
        """
        Load the standard content document.

        Args:
            session: Database session

        Returns:
            The document, or None if no admin has saved one yet

        Raises:
            PersistenceFailure: If the read fails
        """
        try:
            return session.exec(select(StandardContent).order_by(StandardContent.id)).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read standard content: {e}")
            raise PersistenceFailure("Failed to fetch standard content") from e

    @staticmethod
    def validate(payload: StandardContentWrite) -> None:
        """
        Check the required groups of a write.

        Raises:
            ValidationFailed: Naming the first missing group
        """
        details = payload.company_details
        if details is None or not all(getattr(details, field) for field in REQUIRED_COMPANY_FIELDS):
            raise ValidationFailed("Company details are required")

        terms = payload.default_terms
        if not terms or (isinstance(terms, str) and not terms.strip()):
            raise ValidationFailed("Default terms are required")

    @staticmethod
    def save(session: Session, payload: StandardContentWrite) -> StandardContent:
        """
        Create or fully replace the standard content document.

        Every field is overwritten; omitted lists become empty and an omitted
        process video is cleared.

        Args:
            session: Database session
            payload: Validated request body

        Returns:
            The stored document

        Raises:
            ValidationFailed: If a required group is missing
            PersistenceFailure: If the write fails
        """
        StandardContentService.validate(payload)

        values = {
            "company_details": payload.company_details.model_dump(exclude_none=True),  # type: ignore[union-attr]
            "default_features": payload.default_features or [],
            "default_benefits": payload.default_benefits or [],
            "default_terms": payload.default_terms,
            "process_steps": payload.process_steps or [],
            "process_video": payload.process_video,
            "testimonials": payload.testimonials or [],
            "previous_work": payload.previous_work or [],
        }

        try:
            content = StandardContentService.get(session)
            if content is None:
                content = StandardContent(**values)
                logger.info("Creating standard content")
            else:
                for field, value in values.items():
                    setattr(content, field, value)
                content.updated_at = datetime.now(timezone.utc)
                logger.info(f"Replacing standard content {content.id}")

            session.add(content)
            session.commit()
            session.refresh(content)
            return content
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to save standard content: {e}")
            raise PersistenceFailure("Failed to update standard content") from e
