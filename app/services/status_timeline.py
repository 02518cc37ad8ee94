"""
Quotation status timeline helpers.
Timeline entries are plain dicts: {"status", "date" (ISO-8601), "description"}.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

ADMIN_REVISION_SENT = "Admin sent revised quotation to client"
ADMIN_REVISION_UPDATED = "Admin updated quotation based on revision request"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _sort_key(entry: Dict[str, Any]) -> datetime:
    value = datetime.fromisoformat(entry["date"])
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def describe_status(status: str, action: Optional[str] = None, reason: Optional[str] = None) -> str:
    """Timeline description for a status change."""
    suffix = f" - {reason}" if reason else ""
    if status == "draft":
        return "Quotation created and saved as draft"
    if status == "sent":
        return "Quotation sent to client for review"
    if status == "accepted":
        return f"Quotation accepted by client{suffix}" if action == "accept" else "Quotation accepted"
    if status == "rejected":
        return f"Quotation rejected by client{suffix}" if action == "reject" else "Quotation rejected"
    if status == "revision":
        if action == "revision":
            if reason in (ADMIN_REVISION_SENT, ADMIN_REVISION_UPDATED):
                return "Revision received from admin"
            return f"Revision requested by client{suffix}"
        return "Quotation sent for revision"
    return f"Status changed to {status}"


def update_status_timeline(
    timeline: Optional[List[Dict[str, Any]]], status: str, description: str
) -> List[Dict[str, Any]]:
    """
    Return a new timeline with ``status`` stamped now.

    An existing entry for the same status is replaced in place of appending.
    The result is sorted by date.
    """
    entries = [dict(entry) for entry in (timeline or []) if entry.get("status") != status]
    entries.append({"status": status, "date": _now_iso(), "description": description})
    return sorted(entries, key=_sort_key)


def initial_status_timeline(status: str = "draft") -> List[Dict[str, Any]]:
    return [{"status": status, "date": _now_iso(), "description": describe_status(status)}]
