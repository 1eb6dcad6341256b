"""
Admin override: force a single delivery through the send pipeline again.

This is the only path that re-sends a delivery already marked 'sent'. The row
is first reset to pending as its own write, then sent with the regular
delivery logic, so a crash in between leaves it pending and safe to retry.
Every override is written to an audit report because the recipient may get
the same notification twice.
"""

from typing import Any, Dict, Optional, Tuple

from models.notification import AdminUser
from models.types import DeliveryID
from notifications.deliver import send_delivery
from notifications.delivery_store import get_delivery, reset_delivery_to_pending
from notifications.error_logger import log_admin_override, log_notification_error
from notifications.errors import (
    DeliveryNotFoundError,
    DeliveryValidationError,
    NotificationError,
    UnauthorizedError,
)
from shared.db import get_supabase_client


def get_operator(email: Optional[str]) -> Optional[AdminUser]:
    """
    Look up an operator by email in the users table.

    Returns:
        AdminUser carrying the stored is_super_admin flag, or None if no user
        has that email
    """
    if not email or not email.strip():
        return None

    supabase = get_supabase_client()
    response = (
        supabase.table("users")
        .select("id, email, is_super_admin")
        .eq("email", email.strip())
        .limit(1)
        .execute()
    )
    if not response.data:
        return None

    row = response.data[0]
    return AdminUser(
        id=row["id"],
        email=row["email"],
        is_super_admin=bool(row.get("is_super_admin")),
    )


def resend_delivery(
    delivery_id: Optional[DeliveryID], current_user: Optional[AdminUser]
) -> Dict[str, Any]:
    """
    Reset a delivery to pending and send it again.

    Args:
        delivery_id: Delivery to resend
        current_user: Operator requesting the resend; must be a super admin

    Returns:
        Dictionary with 'success', 'medium', 'sentVia' and 'error'

    Raises:
        UnauthorizedError: Operator is not a super admin (nothing is touched)
        DeliveryValidationError: No delivery ID, or the delivery lacks a
            recipient or content (the delivery is marked failed)
        DeliveryNotFoundError: No delivery with that ID (nothing is touched)
    """
    if current_user is None or not current_user.is_super_admin:
        raise UnauthorizedError("Unauthorized")

    if not delivery_id:
        raise DeliveryValidationError("deliveryId is required")

    delivery = get_delivery(delivery_id)
    if delivery is None:
        raise DeliveryNotFoundError("Delivery not found")

    audit_file = log_admin_override(
        current_user.email,
        delivery_id,
        context={
            "operator_id": current_user.id,
            "notification_id": delivery.notification_id,
            "medium": delivery.medium,
            "previous_status": delivery.status,
            "previous_sent_at": delivery.sent_at,
            "previous_message_sent_via": delivery.message_sent_via,
        },
    )
    print(f"Admin {current_user.email} resending delivery {delivery_id} (audit: {audit_file})")

    if not reset_delivery_to_pending(delivery_id):
        raise DeliveryNotFoundError("Delivery not found")
    print(f"  Reset delivery {delivery_id} to pending status")

    pending = delivery.model_copy(
        update={"status": "pending", "sent_at": None, "message_sent_via": None}
    )
    result = send_delivery(pending)

    if result.validation_failed:
        raise DeliveryValidationError(result.error or "Missing required fields")

    return {
        "success": result.success,
        "medium": delivery.medium,
        "sentVia": result.sent_via,
        "error": result.error,
    }


def handle_resend_delivery_request(
    current_user: Optional[AdminUser], body: Any
) -> Tuple[Dict[str, Any], int]:
    """
    Serve an admin 'resend delivery' request.

    Args:
        current_user: Authenticated operator, or None
        body: Parsed JSON request body with 'deliveryId'

    Returns:
        (response payload, HTTP status code)
    """
    delivery_id = None

    try:
        if current_user is None or not current_user.is_super_admin:
            raise UnauthorizedError("Unauthorized")

        # Any JSON value can arrive here; only an object can name a delivery
        if isinstance(body, dict):
            delivery_id = body.get("deliveryId")

        outcome = resend_delivery(delivery_id, current_user)
    except NotificationError as e:
        return {"error": str(e)}, e.status_code
    except Exception as e:
        error_file = log_notification_error(
            error_type="resend",
            error_message=str(e),
            context={"delivery_id": delivery_id},
        )
        print(f"  ✗ Error resending delivery {delivery_id}. Details logged to: {error_file}")
        return {"error": "Internal server error"}, 500

    if not outcome["success"]:
        return {"error": "Failed to send delivery"}, 500

    return {
        "success": True,
        "medium": outcome["medium"],
        "sentVia": outcome["sentVia"],
    }, 200
