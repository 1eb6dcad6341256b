"""
Admin alerts posted to a Discord webhook.

Alerts are informational: a missing webhook or a failed post is printed and
never interrupts notification creation or delivery.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

import requests

from config import notification_settings as settings
from models.types import CityID, MeetingID, NotificationType

CREATED_COLOR = 0x3498DB
SENT_COLOR = 0x2ECC71


def _post_alert(title: str, fields: List[Dict[str, Any]], color: int) -> bool:
    """Post one embed to the admin webhook. Returns True if Discord accepted it."""
    if not settings.ADMIN_ALERT_WEBHOOK_URL:
        print("Admin alert webhook not configured, skipping admin alert")
        return False

    payload = {
        "embeds": [
            {
                "title": title,
                "color": color,
                "fields": fields,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ]
    }

    try:
        response = requests.post(
            settings.ADMIN_ALERT_WEBHOOK_URL,
            json=payload,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        print(f"  ⚠️  Error sending admin alert: {e}")
        return False

    if not response.ok:
        print(f"  ⚠️  Failed to send admin alert: {response.status_code}")
        return False
    return True


def send_notifications_created_alert(
    city_id: CityID,
    meeting_id: MeetingID,
    notification_type: NotificationType,
    stats: Dict[str, Any],
    auto_send: bool = False,
) -> bool:
    return _post_alert(
        "Notifications created",
        [
            {"name": "Meeting", "value": f"{city_id}/{meeting_id}", "inline": True},
            {"name": "Type", "value": notification_type, "inline": True},
            {"name": "Notifications", "value": str(stats["notifications_created"]), "inline": True},
            {"name": "Subjects", "value": str(stats["subjects_total"]), "inline": True},
            {"name": "Auto-send", "value": "yes" if auto_send else "no", "inline": True},
        ],
        CREATED_COLOR,
    )


def send_notifications_sent_alert(notification_count: int, stats: Dict[str, int]) -> bool:
    return _post_alert(
        "Notifications sent",
        [
            {"name": "Notifications", "value": str(notification_count), "inline": True},
            {"name": "Emails sent", "value": str(stats.get("emails_sent", 0)), "inline": True},
            {"name": "Messages sent", "value": str(stats.get("messages_sent", 0)), "inline": True},
            {"name": "Failed", "value": str(stats.get("failed", 0)), "inline": True},
        ],
        SENT_COLOR,
    )
