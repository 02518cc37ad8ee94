"""
CSV export for admin list views.

Every field is wrapped in double quotes with inner quotes doubled, rows are
joined by newlines and there is no trailing newline. Column sets for
quotations, users and activities are defined here; any other record type
can be exported by passing its own columns.
"""

import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Sequence

from fastapi.responses import Response

from app.core.logging import get_logger

logger = get_logger(__name__)

Record = Mapping[str, Any]


@dataclass(frozen=True)
class ExportColumn:
    """
    One output column.

    Attributes:
        key: Record key the raw value is read from
        title: Header text
        render: Optional (value, record) -> text conversion
    """

    key: str
    title: str
    render: Optional[Callable[[Any, Record], Any]] = None


def _coerce(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str, separators=(",", ":"))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def convert_to_csv(data: Sequence[Record], columns: Sequence[ExportColumn]) -> Optional[str]:
    """
    Convert records to CSV text.

    Args:
        data: Records to export
        columns: Ordered column descriptors

    Returns:
        CSV text, or None when there is nothing to export
    """
    if not data:
        logger.warning("No data to export")
        return None

    lines = [",".join(_quote(column.title) for column in columns)]
    for record in data:
        fields = []
        for column in columns:
            value = record.get(column.key)
            if column.render is not None:
                value = column.render(value, record)
            fields.append(_quote(_coerce(value)))
        lines.append(",".join(fields))

    return "\n".join(lines)


def export_filename(entity: str, today: Optional[date] = None) -> str:
    """File name of the form ``{entity}_{YYYY-MM-DD}.csv``."""
    today = today or datetime.now(timezone.utc).date()
    return f"{entity}_{today.isoformat()}.csv"


def _total_amount(_: Any, record: Record) -> str:
    total = sum(float(line.get("total") or 0) for line in record.get("quantityPricing") or [])
    return f"{total:.2f}"


QUOTATION_COLUMNS: List[ExportColumn] = [
    ExportColumn("quotationNo", "Quotation Number"),
    ExportColumn("title", "Title"),
    ExportColumn("clientName", "Client Name"),
    ExportColumn("clientEmail", "Client Email"),
    ExportColumn("status", "Status"),
    ExportColumn("currency", "Currency"),
    ExportColumn("quantityPricing", "Total Amount", render=_total_amount),
    ExportColumn("viewCount", "Views"),
    ExportColumn("createdAt", "Created Date"),
    ExportColumn("expirationDate", "Valid Until"),
]

USER_COLUMNS: List[ExportColumn] = [
    ExportColumn("full_name", "Name"),
    ExportColumn("email", "Email"),
    ExportColumn("role", "Role"),
    ExportColumn("is_active", "Active"),
    ExportColumn("created_at", "Created Date"),
]

ACTIVITY_COLUMNS: List[ExportColumn] = [
    ExportColumn("type", "Activity Type"),
    ExportColumn("description", "Description"),
    ExportColumn("userEmail", "User Email"),
    ExportColumn("ipAddress", "IP Address"),
    ExportColumn("userAgent", "User Agent"),
    ExportColumn("createdAt", "Date"),
]


def csv_attachment(content: str, entity: str) -> Response:
    """Wrap CSV text in a download response named after ``entity``."""
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(entity)}"'},
    )
