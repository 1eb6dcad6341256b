"""
Notification content: email title/body, SMS text and WhatsApp template values.

Bodies are rendered once when notifications are created and stored on the
delivery rows; delivery only re-reads them.
"""

from datetime import datetime
from html import escape
from typing import Dict, List, Optional

from config.notification_settings import (
    DEFAULT_ADMIN_BODY_NAME,
    FRONTEND_BASE_URL,
    TEMPLATE_SUBJECT_LIMIT,
)
from models.notification import DeliveryContext
from models.types import NotificationID, NotificationType

# Genitive month names, as used in Greek dates ("5 Μαρτίου 2025")
GREEK_MONTHS = [
    "Ιανουαρίου",
    "Φεβρουαρίου",
    "Μαρτίου",
    "Απριλίου",
    "Μαΐου",
    "Ιουνίου",
    "Ιουλίου",
    "Αυγούστου",
    "Σεπτεμβρίου",
    "Οκτωβρίου",
    "Νοεμβρίου",
    "Δεκεμβρίου",
]


def format_long_date(value: Optional[datetime]) -> str:
    """Format a date as '5 Μαρτίου 2025'."""
    if value is None:
        return ""
    return f"{value.day} {GREEK_MONTHS[value.month - 1]} {value.year}"


def format_short_date(value: Optional[datetime]) -> str:
    """Format a date as '5/3/2025'."""
    if value is None:
        return ""
    return f"{value.day}/{value.month}/{value.year}"


def notification_url(notification_id: NotificationID) -> str:
    return f"{FRONTEND_BASE_URL}/el/notifications/{notification_id}"


def summarize_subjects(subject_names: List[str], limit: int = TEMPLATE_SUBJECT_LIMIT) -> str:
    """Join up to `limit` subject names with commas."""
    return ", ".join(subject_names[:limit])


def build_whatsapp_template_params(context: DeliveryContext) -> Dict[str, str]:
    """
    Build the parameter set for the pre-approved WhatsApp templates.

    Args:
        context: Notification data joined onto the delivery

    Returns:
        Template parameters keyed by template variable name
    """
    return {
        "date": format_long_date(context.meeting_date),
        "cityName": context.city_name,
        "subjectsSummary": summarize_subjects(context.subject_names),
        "adminBody": context.administrative_body_name or DEFAULT_ADMIN_BODY_NAME,
        "notificationId": context.notification_id,
    }


def generate_email_content(
    notification_id: NotificationID,
    notification_type: NotificationType,
    city_name: str,
    meeting_date: Optional[datetime],
    administrative_body_name: Optional[str],
    subjects: List[Dict[str, str]],
) -> Dict[str, str]:
    """
    Build the email title and HTML body for a notification.

    Args:
        subjects: Dicts with 'name' and optional 'description'

    Returns:
        Dictionary with 'title' and 'body'
    """
    admin_body = administrative_body_name or DEFAULT_ADMIN_BODY_NAME
    title = f"{city_name}: {admin_body} - {format_short_date(meeting_date)}"

    intro = (
        "Θέματα που σας αφορούν στην επερχόμενη συνεδρίαση"
        if notification_type == "beforeMeeting"
        else "Θέματα που σας αφορούν συζητήθηκαν στη συνεδρίαση"
    )

    items = "".join(
        f"<li><strong>{escape(subject.get('name', ''))}</strong>"
        + (
            f"<p>{escape(subject['description'])}</p>"
            if subject.get("description")
            else ""
        )
        + "</li>"
        for subject in subjects
    )

    body = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{escape(title)}</title></head>
<body>
    <h1>{escape(city_name)}: {escape(admin_body)}</h1>
    <p>{intro} ({format_long_date(meeting_date)}):</p>
    <ul>{items}</ul>
    <p><a href="{notification_url(notification_id)}">Δείτε περισσότερα</a></p>
</body>
</html>
"""
    return {"title": title, "body": body}


def generate_sms_content(
    notification_id: NotificationID,
    city_name: str,
    meeting_date: Optional[datetime],
    administrative_body_name: Optional[str],
    subject_names: List[str],
) -> str:
    """Build the plain-text SMS body used when WhatsApp delivery fails."""
    admin_body = administrative_body_name or DEFAULT_ADMIN_BODY_NAME.lower()
    subjects_text = summarize_subjects(subject_names)
    if len(subject_names) > TEMPLATE_SUBJECT_LIMIT:
        subjects_text += " και άλλα"

    return (
        f"{city_name} - {admin_body} στις {format_short_date(meeting_date)}: "
        f"{len(subject_names)} νέα θέματα για εσάς. {subjects_text}. "
        f"Δείτε περισσότερα: {notification_url(notification_id)}"
    )
