"""
Background email tasks run by RQ workers.
"""

import smtplib
from email.message import EmailMessage
from typing import Any, Optional

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

QUOTATION_EMAIL_SUBJECTS = {
    "sent": "New quotation: {title}",
    "revision_sent": "Revised quotation: {title}",
    "accepted": "Quotation accepted: {title}",
    "rejected": "Quotation rejected: {title}",
    "revision_requested": "Revision requested: {title}",
}

QUOTATION_EMAIL_BODIES = {
    "sent": "Hi {client_name},\n\nA new quotation \"{title}\" is ready for your review:\n{link}\n",
    "revision_sent": "Hi {client_name},\n\nWe have revised the quotation \"{title}\". Please review it here:\n{link}\n",
    "accepted": "Hi {client_name},\n\nThank you for accepting the quotation \"{title}\". We will be in touch shortly.\n",
    "rejected": "Hi {client_name},\n\nWe have recorded that you declined the quotation \"{title}\".{reason_line}\n",
    "revision_requested": (
        "Hi {client_name},\n\nYour revision request for \"{title}\" has been received.{reason_line}\n"
        "Actions stay disabled until the revised quotation is sent.\n"
    ),
}


def _deliver(to: str, subject: str, body: str) -> None:
    """Send through SMTP when configured, otherwise only log the message."""
    if not settings.SMTP_HOST:
        logger.info(f"SMTP not configured; email to {to} not delivered: {subject}")
        return

    message = EmailMessage()
    message["From"] = settings.EMAIL_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
        if settings.SMTP_USE_TLS:
            smtp.starttls()
        if settings.SMTP_USER and settings.SMTP_PASSWORD:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        smtp.send_message(message)


def send_otp_email_task(to: str, code: str, name: Optional[str] = None) -> dict[str, Any]:
    """
    Send the one-time code that confirms a quotation action.

    Args:
        to: Recipient email address
        code: Six-digit code
        name: Optional recipient name

    Returns:
        Task result dictionary
    """
    greeting = f"Hi {name}," if name else "Hello,"
    body = (
        f"{greeting}\n\nYour verification code is {code}.\n"
        f"It expires in {settings.OTP_EXPIRE_MINUTES} minutes.\n"
    )
    _deliver(to, f"Your verification code for {settings.PROJECT_NAME}", body)
    logger.info(f"OTP email sent to {to}")
    return {"to": to, "status": "sent"}


def send_quotation_email_task(
    action: str,
    to: str,
    client_name: str,
    quotation_id: str,
    title: str,
    reason: Optional[str] = None,
) -> dict[str, Any]:
    """
    Notify a client about a quotation event.

    Args:
        action: sent, revision_sent, accepted, rejected or revision_requested
        to: Client email address
        client_name: Client name used in the greeting
        quotation_id: Quotation the email refers to
        title: Quotation title
        reason: Optional reason given by the client

    Returns:
        Task result dictionary
    """
    if action not in QUOTATION_EMAIL_SUBJECTS:
        logger.error(f"Unknown quotation email action: {action}")
        return {"to": to, "status": "skipped", "action": action}

    context = {
        "client_name": client_name,
        "title": title,
        "link": f"{settings.PUBLIC_BASE_URL}/quotation/{quotation_id}",
        "reason_line": f"\nReason: {reason}" if reason else "",
    }
    subject = QUOTATION_EMAIL_SUBJECTS[action].format(**context)
    body = QUOTATION_EMAIL_BODIES[action].format(**context)

    _deliver(to, subject, body)
    logger.info(f"Quotation {action} email sent to {to} for quotation {quotation_id}")
    return {"to": to, "status": "sent", "action": action}
