"""
Supabase access for notification deliveries.

Status writes are conditional on the row still being pending, so a regular
batch send and an admin resend of the same row cannot both record an outcome.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models.notification import DeliveryContext, NotificationDelivery
from models.types import DeliveryID, DeliveryStatus, MessageChannel, NotificationID
from shared.db import get_supabase_client
from shared.utils import parse_datetime

DELIVERIES_TABLE = "notification_deliveries"

# Delivery row plus the notification data message templates need
DELIVERY_SELECT = (
    "*, notification:notifications(id, type, city:cities(name), "
    "meeting:council_meetings(date_time, administrative_body:administrative_bodies(name)), "
    "subjects:notification_subjects(subject:subjects(name)))"
)


def _context_from_row(notification: Optional[Dict[str, Any]]) -> Optional[DeliveryContext]:
    if not notification:
        return None

    city = notification.get("city") or {}
    meeting = notification.get("meeting") or {}
    admin_body = meeting.get("administrative_body") or {}
    subject_names = [
        entry["subject"]["name"]
        for entry in notification.get("subjects") or []
        if entry.get("subject") and entry["subject"].get("name")
    ]

    return DeliveryContext(
        notification_id=notification["id"],
        type=notification["type"],
        city_name=city.get("name", ""),
        meeting_date=parse_datetime(meeting.get("date_time")),
        administrative_body_name=admin_body.get("name"),
        subject_names=subject_names,
    )


def delivery_from_row(row: Dict[str, Any]) -> NotificationDelivery:
    """Build a NotificationDelivery from a row selected with DELIVERY_SELECT."""
    return NotificationDelivery(
        id=row["id"],
        notification_id=row["notification_id"],
        medium=row["medium"],
        status=row.get("status", "pending"),
        email=row.get("email"),
        title=row.get("title"),
        body=row.get("body"),
        phone=row.get("phone"),
        sent_at=parse_datetime(row.get("sent_at")),
        message_sent_via=row.get("message_sent_via"),
        context=_context_from_row(row.get("notification")),
    )


def get_pending_deliveries(
    notification_ids: List[NotificationID],
) -> List[NotificationDelivery]:
    """Get all pending deliveries for the given notifications."""
    if not notification_ids:
        return []

    supabase = get_supabase_client()
    response = (
        supabase.table(DELIVERIES_TABLE)
        .select(DELIVERY_SELECT)
        .in_("notification_id", notification_ids)
        .eq("status", "pending")
        .execute()
    )

    return [delivery_from_row(row) for row in response.data or []]


def get_delivery(delivery_id: DeliveryID) -> Optional[NotificationDelivery]:
    """Get a single delivery with its notification context, or None if missing."""
    supabase = get_supabase_client()
    response = (
        supabase.table(DELIVERIES_TABLE)
        .select(DELIVERY_SELECT)
        .eq("id", delivery_id)
        .limit(1)
        .execute()
    )

    if not response.data:
        return None
    return delivery_from_row(response.data[0])


def update_delivery_status(
    delivery_id: DeliveryID,
    status: DeliveryStatus,
    sent_via: Optional[MessageChannel] = None,
) -> bool:
    """
    Record the outcome of a send attempt.

    Only transitions rows that are still pending.

    Returns:
        True if the row was updated, False if it was no longer pending
    """
    update: Dict[str, Any] = {"status": status}
    if status == "sent":
        update["sent_at"] = datetime.now(timezone.utc).isoformat()
    if sent_via:
        update["message_sent_via"] = sent_via

    supabase = get_supabase_client()
    response = (
        supabase.table(DELIVERIES_TABLE)
        .update(update)
        .eq("id", delivery_id)
        .eq("status", "pending")
        .execute()
    )
    return bool(response.data)


def reset_delivery_to_pending(delivery_id: DeliveryID) -> bool:
    """
    Put a delivery back to pending, clearing sent_at and message_sent_via.

    Unconditional: used only by the admin resend override.

    Returns:
        True if the row exists and was reset
    """
    supabase = get_supabase_client()
    response = (
        supabase.table(DELIVERIES_TABLE)
        .update({"status": "pending", "sent_at": None, "message_sent_via": None})
        .eq("id", delivery_id)
        .execute()
    )
    return bool(response.data)
