"""
Notification system for council meeting subjects.

This module handles:
- Matching subjects to citizens by topic interest or proximity
- Previewing the reach of a notification run
- Creating notifications and their pending deliveries
- Sending deliveries by email, or WhatsApp with SMS fallback
- Admin-forced resends of single deliveries
"""

from .matching import calculate_notification_impact, match_users_to_subjects
from .deliver import release_notifications, send_delivery
from .resend_delivery import handle_resend_delivery_request, resend_delivery

__all__ = [
    'match_users_to_subjects',
    'calculate_notification_impact',
    'send_delivery',
    'release_notifications',
    'resend_delivery',
    'handle_resend_delivery_request',
]
