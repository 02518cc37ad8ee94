"""
Quotation service.
Admin management, client visibility rules, the OTP-confirmed client
action flow and the signed-in client dashboard.
"""

import json
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic.alias_generators import to_camel
from sqlalchemy import delete, func, or_
from sqlmodel import Session, col, select

from app.core.config import settings
from app.core.exceptions import AccessDenied, NotFound, NotificationFailed, ValidationFailed
from app.core.logging import get_logger
from app.core.security import generate_otp_code
from app.models.activity import ActivityType
from app.models.otp import OTP, OTP_TYPE_QUOTATION_ACTION
from app.models.quotation import PUBLIC_STATUSES, Quotation, QuotationAction, QuotationStatus
from app.models.user import User, UserRole
from app.schemas.quotation import ClientActionRequest, QuotationCreate, QuotationUpdate
from app.services.activity_service import ActivityService
from app.services.status_timeline import (
    ADMIN_REVISION_SENT,
    ADMIN_REVISION_UPDATED,
    describe_status,
    initial_status_timeline,
    update_status_timeline,
)
from app.workers.queue import enqueue_task
from app.workers.tasks import send_otp_email_task, send_quotation_email_task

logger = get_logger(__name__)

OTP_PATTERN = re.compile(r"^\d{6}$")

ACTION_TO_STATUS = {
    QuotationAction.ACCEPT.value: QuotationStatus.ACCEPTED.value,
    QuotationAction.REJECT.value: QuotationStatus.REJECTED.value,
    QuotationAction.REVISION.value: QuotationStatus.REVISION.value,
}

STATUS_TO_ACTION = {status: action for action, status in ACTION_TO_STATUS.items()}

ACTION_EMAILS = {
    QuotationAction.ACCEPT.value: "accepted",
    QuotationAction.REJECT.value: "rejected",
    QuotationAction.REVISION.value: "revision_requested",
}

ACTION_MESSAGES = {
    QuotationAction.ACCEPT.value: "Quotation accepted successfully",
    QuotationAction.REJECT.value: "Quotation rejected successfully",
    QuotationAction.REVISION.value: (
        "Revision Requested Successfully. Actions Disabled till Revision Received from admin."
    ),
}

# Fields handled separately from the plain attribute copy in create/update
_SPECIAL_FIELDS = {"status", "is_revision", "company_details", "title", "terms"}

# Columns an update may change but never clear
_NON_NULLABLE_FIELDS = (
    "template_type",
    "currency",
    "features",
    "benefits",
    "process_steps",
    "testimonials",
    "previous_work",
    "quantity_pricing",
    "project_timeline",
    "payment_milestones",
)

# Statuses a signed-in client may act on
CLIENT_ACTIONABLE_STATUSES = {QuotationStatus.SENT.value, QuotationStatus.REVISION.value}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _action_entry(action: str, reason: Optional[str], verified: bool = True) -> Dict[str, Any]:
    return {
        "action": action,
        "reason": reason,
        "timestamp": _utcnow().isoformat(),
        "verified": verified,
    }


class QuotationService:
    """
    Service for quotation documents.
    Coordinates quotations, OTPs, activities and the email queue.
    """

    def __init__(self, session: Session):
        self.session = session
        self.activities = ActivityService(session)

    # ----- Admin -----

    def get(self, quotation_id: str) -> Quotation:
        quotation = self.session.get(Quotation, quotation_id)
        if quotation is None:
            raise NotFound("Quotation not found")
        return quotation

    def list_with_view_counts(self) -> List[Tuple[Quotation, int]]:
        """All quotations newest first, each paired with its number of views."""
        statement = select(Quotation).order_by(col(Quotation.created_at).desc())
        quotations = list(self.session.exec(statement).all())
        counts = self.activities.view_counts(q.id for q in quotations)
        return [(q, counts.get(q.id, 0)) for q in quotations]

    def _check_associated_user(self, user_id: Optional[int]) -> None:
        if user_id is not None and self.session.get(User, user_id) is None:
            raise NotFound("Associated user not found")

    def create(self, payload: QuotationCreate, admin: User) -> Quotation:
        """
        Create a draft quotation.

        Raises:
            ValidationFailed: If title or terms are missing
            NotFound: If the associated user does not exist
        """
        if not payload.title or not payload.terms:
            raise ValidationFailed("Missing required fields: title and terms are required")

        self._check_associated_user(payload.associated_user_id)

        values = payload.model_dump(exclude_none=True, exclude=_SPECIAL_FIELDS)
        quotation = Quotation(
            title=payload.title,
            terms=list(payload.terms),
            status=QuotationStatus.DRAFT.value,
            company_details=(
                payload.company_details.model_dump(exclude_none=True) if payload.company_details else None
            ),
            status_timeline=initial_status_timeline(),
            **values,
        )
        self.session.add(quotation)
        self.activities.record(
            ActivityType.ADMIN_ACTION,
            f"Admin created quotation: {quotation.title}",
            metadata={"quotationId": quotation.id, "action": "create_quotation"},
            admin_id=str(admin.id),
            admin_email=admin.email,
            commit=False,
        )
        self.session.commit()
        self.session.refresh(quotation)
        logger.info(f"Quotation {quotation.id} created by admin {admin.id}")
        return quotation

    def update(self, quotation_id: str, payload: QuotationUpdate, admin: User) -> Quotation:
        """
        Apply an admin edit.

        Only fields present in the body change. Editing a quotation that is
        waiting on a revision, without choosing a status, puts it back to
        draft. Moving to ``sent`` emails the client.
        """
        quotation = self.get(quotation_id)
        provided = payload.model_dump(exclude_unset=True)
        is_revision = payload.is_revision
        original_status = quotation.status
        actions = list(quotation.actions or [])
        admin_reason = ADMIN_REVISION_SENT if is_revision else None

        if payload.status is not None and payload.status not in {s.value for s in QuotationStatus}:
            raise ValidationFailed("Invalid status")
        for field in _NON_NULLABLE_FIELDS:
            if field in provided and provided[field] is None:
                raise ValidationFailed(f"{to_camel(field)} cannot be null")
        if "associated_user_id" in provided:
            self._check_associated_user(payload.associated_user_id)

        if "title" in provided and payload.title:
            quotation.title = payload.title
        if "terms" in provided and payload.terms is not None:
            quotation.terms = list(payload.terms)
        if "company_details" in provided:
            quotation.company_details = (
                payload.company_details.model_dump(exclude_none=True) if payload.company_details else None
            )
        for field, value in provided.items():
            if field not in _SPECIAL_FIELDS:
                setattr(quotation, field, value)

        status = payload.status if "status" in provided else None
        if original_status == QuotationStatus.REVISION.value and status is None:
            quotation.status = QuotationStatus.DRAFT.value
            actions.append(
                _action_entry(
                    QuotationAction.REVISION.value,
                    ADMIN_REVISION_SENT if is_revision else ADMIN_REVISION_UPDATED,
                )
            )

        if status is not None:
            quotation.status = status
            if status != original_status and status in STATUS_TO_ACTION:
                actions.append(_action_entry(STATUS_TO_ACTION[status], admin_reason))
                quotation.status_timeline = update_status_timeline(
                    quotation.status_timeline, status, describe_status(status, None, admin_reason)
                )
            elif status != original_status and status == QuotationStatus.SENT.value:
                quotation.status_timeline = update_status_timeline(
                    quotation.status_timeline, status, describe_status(status, None, admin_reason)
                )
                if is_revision:
                    actions.append(_action_entry(QuotationAction.REVISION.value, ADMIN_REVISION_SENT))

        quotation.actions = actions
        quotation.updated_at = _utcnow()

        self.session.add(quotation)
        self.activities.record(
            ActivityType.ADMIN_ACTION,
            (
                f"Admin sent revised quotation to client: {quotation.title}"
                if is_revision
                else f"Admin updated quotation: {quotation.title}"
            ),
            metadata={
                "quotationId": quotation.id,
                "action": "send_revision" if is_revision else "update_quotation",
                "isRevision": is_revision,
            },
            admin_id=str(admin.id),
            admin_email=admin.email,
            commit=False,
        )
        self.session.commit()
        self.session.refresh(quotation)

        sent_now = status == QuotationStatus.SENT.value and original_status != QuotationStatus.SENT.value
        if sent_now and quotation.client_email and quotation.client_name:
            self._notify_client("revision_sent" if is_revision else "sent", quotation)

        return quotation

    def delete(self, quotation_id: str, admin: User) -> None:
        quotation = self.get(quotation_id)
        title = quotation.title
        self.session.delete(quotation)
        self.activities.record(
            ActivityType.ADMIN_ACTION,
            f"Admin deleted quotation: {title}",
            metadata={"quotationId": quotation_id, "action": "delete_quotation"},
            admin_id=str(admin.id),
            admin_email=admin.email,
            commit=False,
        )
        self.session.commit()
        logger.info(f"Quotation {quotation_id} deleted by admin {admin.id}")

    # ----- Client -----

    @staticmethod
    def is_owner(quotation: Quotation, user: User) -> bool:
        """A client owns a quotation addressed to their email or associated with their account."""
        return (quotation.client_email or "").lower() == user.email.lower() or (
            quotation.associated_user_id is not None and quotation.associated_user_id == user.id
        )

    @staticmethod
    def _validate_action(action: Optional[str], reason: Optional[str]) -> None:
        if action not in ACTION_TO_STATUS:
            raise ValidationFailed("Invalid action")
        if action in (QuotationAction.REJECT.value, QuotationAction.REVISION.value) and not reason:
            raise ValidationFailed("Reason required for reject/revision")

    def _apply_client_action(self, quotation: Quotation, action: str, reason: Optional[str]) -> None:
        """Record a verified action and move the quotation to the matching status."""
        quotation.actions = [*(quotation.actions or []), _action_entry(action, reason)]

        new_status = ACTION_TO_STATUS.get(action, quotation.status)
        if new_status != quotation.status:
            quotation.status = new_status
            quotation.status_timeline = update_status_timeline(
                quotation.status_timeline, new_status, describe_status(new_status, action, reason)
            )
        quotation.updated_at = _utcnow()

    def get_for_viewer(self, quotation_id: str, user: Optional[User]) -> Quotation:
        """
        Load a quotation the caller may see.

        Admins see everything. Anyone may see a sent, revised, accepted or
        rejected quotation. Drafts are never shown to non-admins, owners
        included.

        Raises:
            NotFound: If the quotation does not exist or is not visible
        """
        quotation = self.get(quotation_id)

        is_admin = user is not None and user.role == UserRole.ADMIN
        is_owner = user is not None and self.is_owner(quotation, user)

        if not is_admin and not is_owner and quotation.status not in PUBLIC_STATUSES:
            raise NotFound("Quotation not available")
        if is_owner and not is_admin and quotation.status == QuotationStatus.DRAFT.value:
            raise NotFound("Quotation not available")

        return quotation

    def request_action(self, quotation_id: str, body: ClientActionRequest) -> OTP:
        """
        Start a client action by emailing a one-time code.

        Raises:
            ValidationFailed: On missing fields, unknown action, missing reason
                or a quotation that is not awaiting a decision
            NotFound: If the quotation does not exist
            NotificationFailed: If the OTP email could not be queued
        """
        if not body.name or not body.email or not body.phone or not body.action:
            raise ValidationFailed("Missing required fields")
        self._validate_action(body.action, body.reason)

        quotation = self.get(quotation_id)
        if quotation.status != QuotationStatus.SENT.value:
            raise ValidationFailed("Quotation not available for actions")

        email = body.email.lower()
        self.session.execute(
            delete(OTP).where(OTP.email == email).where(OTP.type == OTP_TYPE_QUOTATION_ACTION)
        )

        pending = {
            "quotationId": quotation_id,
            "name": body.name,
            "email": email,
            "phone": body.phone,
            "action": body.action,
            "reason": body.reason,
        }
        otp = OTP(
            email=email,
            code=generate_otp_code(),
            expires=_utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
            type=OTP_TYPE_QUOTATION_ACTION,
            quotation_data=json.dumps(pending),
        )
        self.session.add(otp)
        self.session.commit()
        self.session.refresh(otp)
        logger.info(f"OTP issued for {body.action} on quotation {quotation_id}")

        try:
            enqueue_task(send_otp_email_task, email, otp.code, body.name)
        except Exception as e:
            logger.error(f"Failed to queue OTP email for quotation {quotation_id}: {e}")
            raise NotificationFailed("Failed to send OTP email") from e

        return otp

    def _find_valid_otp(self, code: str) -> Optional[OTP]:
        statement = (
            select(OTP)
            .where(OTP.code == code)
            .where(OTP.type == OTP_TYPE_QUOTATION_ACTION)
            .where(OTP.used == False)  # noqa: E712
            .order_by(col(OTP.id).desc())
        )
        now = _utcnow()
        for candidate in self.session.exec(statement).all():
            if _as_utc(candidate.expires) > now:
                return candidate
        return None

    def confirm_action(
        self,
        quotation_id: str,
        code: Optional[str],
        ip_address: str = "unknown",
        user_agent: str = "unknown",
    ) -> Tuple[str, str]:
        """
        Apply a pending client action once its code is presented.

        Returns:
            (action, success message)

        Raises:
            ValidationFailed: On a malformed, unknown, expired or foreign code
            NotFound: If the quotation does not exist
        """
        if not code or not OTP_PATTERN.match(code):
            raise ValidationFailed("Valid OTP required")

        otp = self._find_valid_otp(code)
        if otp is None or not otp.quotation_data:
            raise ValidationFailed("Invalid or expired OTP")

        pending = json.loads(otp.quotation_data)
        if pending.get("quotationId") != quotation_id:
            raise ValidationFailed("OTP not for this quotation")

        quotation = self.get(quotation_id)
        action = pending["action"]
        reason = pending.get("reason")

        quotation.client_name = pending["name"]
        quotation.client_email = pending["email"]
        quotation.client_phone = pending["phone"]
        self._apply_client_action(quotation, action, reason)

        otp.used = True
        self.session.add(quotation)
        self.session.add(otp)
        self.activities.record(
            ActivityType.QUOTATION_ACTION,
            f"Client {pending['name']} ({pending['email']}) {action}ed quotation: {quotation.title}",
            metadata={
                "quotationId": quotation.id,
                "action": action,
                "reason": reason,
                "isAuthenticated": False,
                "clientName": pending["name"],
                "clientPhone": pending["phone"],
            },
            user_email=pending["email"],
            ip_address=ip_address,
            user_agent=user_agent,
            commit=False,
        )
        self.session.commit()
        self.session.refresh(quotation)

        self._notify_client(ACTION_EMAILS[action], quotation, reason=reason)

        logger.info(f"Quotation {quotation_id} {action} confirmed by {pending['email']}")
        return action, ACTION_MESSAGES[action]

    # ----- Signed-in client dashboard -----

    def _owned_by(self, user: User) -> Any:
        return or_(
            func.lower(col(Quotation.client_email)) == user.email.lower(),
            col(Quotation.associated_user_id) == user.id,
        )

    def list_for_client(self, user: User) -> List[Quotation]:
        """The client's own quotations, newest first. Drafts are left out."""
        statement = (
            select(Quotation)
            .where(self._owned_by(user))
            .where(Quotation.status != QuotationStatus.DRAFT.value)
            .order_by(col(Quotation.created_at).desc())
        )
        return list(self.session.exec(statement).all())

    def stats(self, user: User) -> Dict[str, int]:
        """
        Quotation counts per status and the acceptance rate.

        Admins count every quotation; clients count the quotations they can
        see on their dashboard.
        """
        statement = select(Quotation.status, func.count()).group_by(Quotation.status)
        if user.role != UserRole.ADMIN:
            statement = statement.where(self._owned_by(user)).where(
                Quotation.status != QuotationStatus.DRAFT.value
            )
        counts = {status: count for status, count in self.session.exec(statement).all()}

        sent = counts.get(QuotationStatus.SENT.value, 0)
        accepted = counts.get(QuotationStatus.ACCEPTED.value, 0)
        return {
            "total": sum(counts.values()),
            "sent": sent,
            "accepted": accepted,
            "draft": counts.get(QuotationStatus.DRAFT.value, 0),
            "acceptance_rate": math.floor(accepted * 100 / sent + 0.5) if sent else 0,
        }

    def client_action(
        self,
        quotation_id: str,
        user: User,
        action: Optional[str],
        reason: Optional[str],
        ip_address: str = "unknown",
        user_agent: str = "unknown",
    ) -> Quotation:
        """
        Apply an action from a signed-in client without a one-time code.

        Raises:
            ValidationFailed: On an unknown action, a missing reason or a
                quotation that is neither sent nor under revision
            NotFound: If the quotation does not exist
            AccessDenied: If the client does not own the quotation
        """
        self._validate_action(action, reason)
        quotation = self.get(quotation_id)
        if not self.is_owner(quotation, user):
            raise AccessDenied("Not authorized for this quotation")
        if quotation.status not in CLIENT_ACTIONABLE_STATUSES:
            raise ValidationFailed("Quotation not available for actions")

        client_name = user.full_name or user.email
        if not quotation.client_name:
            quotation.client_name = client_name
        if not quotation.client_email:
            quotation.client_email = user.email

        self._apply_client_action(quotation, action, reason)  # type: ignore[arg-type]
        self.session.add(quotation)
        self.activities.record(
            ActivityType.QUOTATION_ACTION,
            f"Client {client_name} ({user.email}) {action}ed quotation: {quotation.title}",
            metadata={
                "quotationId": quotation.id,
                "action": action,
                "reason": reason,
                "isAuthenticated": True,
            },
            user_id=str(user.id),
            user_email=user.email,
            ip_address=ip_address,
            user_agent=user_agent,
            commit=False,
        )
        self.session.commit()
        self.session.refresh(quotation)

        self._notify_client(ACTION_EMAILS[action], quotation, reason=reason)  # type: ignore[index]

        logger.info(f"Quotation {quotation_id} {action} by client {user.id}")
        return quotation

    def record_view(
        self,
        quotation_id: str,
        is_authenticated: bool,
        user_email: Optional[str],
        user_name: Optional[str],
        ip_address: str,
        user_agent: str,
    ) -> None:
        quotation = self.get(quotation_id)
        if is_authenticated:
            description = f"User {user_name or user_email or 'Unknown'} viewed quotation: {quotation.title}"
        else:
            description = f"Anonymous user viewed quotation: {quotation.title}"

        self.activities.record(
            ActivityType.QUOTATION_VIEWED,
            description,
            metadata={
                "quotationId": quotation.id,
                "quotationTitle": quotation.title,
                "isAuthenticated": is_authenticated,
                "viewSource": "public_url",
            },
            user_id=user_email if is_authenticated else None,
            user_email=user_email or None,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def _notify_client(self, email_action: str, quotation: Quotation, reason: Optional[str] = None) -> None:
        """Queue a client email. Failures are logged and do not fail the request."""
        try:
            enqueue_task(
                send_quotation_email_task,
                email_action,
                quotation.client_email,
                quotation.client_name or "",
                quotation.id,
                quotation.title,
                reason,
            )
        except Exception as e:
            logger.error(f"Failed to queue {email_action} email for quotation {quotation.id}: {e}")
