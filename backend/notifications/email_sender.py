"""
Email sending via Resend API for notification system.

Delivery rows already carry the rendered title and HTML body; this module only
hands them to Resend, adding a plain-text alternative.
"""

import os
from typing import Any, Dict, Optional

import resend
from html2text import HTML2Text

from config.notification_settings import NOTIFICATION_FROM_EMAIL

# Initialize Resend with API key from environment
resend.api_key = os.getenv("RESEND_API_KEY")


def html_to_text(html: str) -> str:
    """Render an HTML body as readable plain text for non-HTML mail clients."""
    converter = HTML2Text()
    converter.body_width = 0
    converter.ignore_images = True
    return converter.handle(html).strip()


def send_email(
    to: str,
    subject: str,
    html: str,
    from_email: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Send a single notification email.

    Args:
        to: Recipient email address
        subject: Email subject line
        html: Rendered HTML body
        from_email: Sender, defaults to NOTIFICATION_FROM_EMAIL

    Returns:
        Dictionary with 'success' (bool), 'email_id' (str if success), 'error' (str if failed)
    """
    if not resend.api_key:
        return {"success": False, "error": "RESEND_API_KEY not configured"}

    try:
        response = resend.Emails.send(
            {
                "from": from_email or NOTIFICATION_FROM_EMAIL,
                "to": to,
                "subject": subject,
                "html": html,
                "text": html_to_text(html),
            }
        )

        return {"success": True, "email_id": response.get("id")}

    except Exception as e:
        return {"success": False, "error": str(e)}
