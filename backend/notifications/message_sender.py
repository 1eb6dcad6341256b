"""
WhatsApp and SMS sending via the Bird messaging API.

WhatsApp messages must use pre-approved templates filled with parameters;
SMS carries the delivery's stored plain-text body.
"""

from typing import Any, Dict, Optional

import requests

from config import notification_settings as settings
from models.types import NotificationType

# Bird answers 202 Accepted for queued messages; these statuses mean rejected
FAILED_MESSAGE_STATUSES = {"failed", "rejected"}

_session = requests.Session()


def format_phone_number(phone_number: str) -> str:
    """Ensure a phone number is in + prefixed international form."""
    phone_number = phone_number.strip()
    return phone_number if phone_number.startswith("+") else f"+{phone_number}"


def is_configured(*channel_ids: Optional[str]) -> bool:
    """True if Bird credentials and every given channel ID are set."""
    return bool(
        settings.BIRD_API_KEY and settings.BIRD_WORKSPACE_ID and all(channel_ids)
    )


def _channel_url(channel_id: str) -> str:
    return (
        f"{settings.BIRD_API_BASE_URL}/workspaces/{settings.BIRD_WORKSPACE_ID}"
        f"/channels/{channel_id}/messages"
    )


def _post_message(url: str, payload: Dict[str, Any], label: str) -> Dict[str, Any]:
    """
    POST a message payload to Bird and interpret the answer.

    Returns:
        Dictionary with 'success' (bool) and 'error' (str if failed)
    """
    try:
        response = _session.post(
            url,
            json=payload,
            headers={"Authorization": f"AccessKey {settings.BIRD_API_KEY}"},
            timeout=(
                settings.BIRD_CONNECT_TIMEOUT_SECONDS,
                settings.BIRD_READ_TIMEOUT_SECONDS,
            ),
        )
    except requests.RequestException as e:
        print(f"  ✗ {label} request failed: {e}")
        return {"success": False, "error": str(e)}

    if not response.ok:
        print(f"  ✗ {label} API error: {response.status_code} {response.text[:200]}")
        return {"success": False, "error": f"API returned {response.status_code}"}

    try:
        result = response.json()
    except ValueError:
        result = {}

    status = result.get("status") if isinstance(result, dict) else None
    if status in FAILED_MESSAGE_STATUSES:
        return {
            "success": False,
            "error": result.get("detail") or result.get("title") or f"Bird status: {status}",
        }

    return {"success": True, "message_id": result.get("id") if isinstance(result, dict) else None}


def send_whatsapp_message(
    phone_number: str,
    notification_type: NotificationType,
    template_params: Dict[str, str],
) -> Dict[str, Any]:
    """
    Send a templated WhatsApp message.

    Args:
        phone_number: Recipient phone number
        notification_type: Selects the pre-approved template
        template_params: Template parameters keyed by template variable name

    Returns:
        Dictionary with 'success' (bool) and 'error' (str if failed)
    """
    channel_id = settings.BIRD_WHATSAPP_CHANNEL_ID
    if not is_configured(channel_id):
        return {"success": False, "error": "Bird WhatsApp not configured"}

    template_project_id = settings.BIRD_WHATSAPP_TEMPLATES.get(notification_type)
    if not template_project_id:
        return {
            "success": False,
            "error": f"WhatsApp template not configured for {notification_type}",
        }

    payload = {
        "receiver": {"contacts": [{"identifierValue": format_phone_number(phone_number)}]},
        "template": {
            "projectId": template_project_id,
            "version": "latest",
            "locale": settings.BIRD_TEMPLATE_LOCALE,
            "parameters": [
                {"type": "string", "key": key, "value": value}
                for key, value in template_params.items()
            ],
        },
    }

    return _post_message(_channel_url(channel_id), payload, "WhatsApp message")


def send_sms_message(phone_number: str, body: str) -> Dict[str, Any]:
    """
    Send a plain-text SMS.

    Returns:
        Dictionary with 'success' (bool) and 'error' (str if failed)
    """
    channel_id = settings.BIRD_SMS_CHANNEL_ID
    if not is_configured(channel_id):
        return {"success": False, "error": "Bird SMS not configured"}

    payload = {
        "receiver": {"contacts": [{"identifierValue": format_phone_number(phone_number)}]},
        "body": {"type": "text", "text": {"text": body}},
    }

    return _post_message(_channel_url(channel_id), payload, "SMS")
