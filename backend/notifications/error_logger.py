"""
Report files for the notification system.

Delivery failures and admin overrides are written to timestamped files so a
batch run can be audited after the console output is gone.
"""

import os
import uuid
from datetime import datetime
from typing import Any


def _get_log_dir() -> str:
    """Directory for report files (NOTIFICATION_LOG_DIR or ./logs beside this module)."""
    log_dir = os.getenv("NOTIFICATION_LOG_DIR") or os.path.join(
        os.path.dirname(__file__), "logs"
    )
    os.makedirs(log_dir, exist_ok=True)
    return log_dir


def _write_report(
    prefix: str, title: str, fields: dict[str, Any], context: dict[str, Any] | None
) -> str:
    # Several deliveries can fail within the same second
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = os.path.join(
        _get_log_dir(), f"{prefix}_{timestamp}_{uuid.uuid4().hex[:8]}.txt"
    )

    with open(filename, "w", encoding="utf-8") as f:
        f.write(f"{title} - {datetime.now()}\n")
        f.write("=" * 60 + "\n\n")
        for key, value in fields.items():
            f.write(f"{key}: {value}\n")
        f.write("\n")

        if context:
            f.write("Context:\n")
            f.write("-" * 60 + "\n")
            for key, value in context.items():
                f.write(f"{key}: {value}\n")

    return filename


def log_notification_error(
    error_type: str, error_message: str, context: dict[str, Any] | None = None
) -> str:
    """
    Log a notification error to a timestamped file.

    Args:
        error_type: Type of error (e.g., 'matching', 'creation', 'sending')
        error_message: The error message
        context: Optional dictionary with additional context (delivery_id, notification_id, etc.)

    Returns:
        Path to the log file created
    """
    return _write_report(
        "notification_error",
        "Notification Error Report",
        {"Error Type": error_type, "Error Message": error_message},
        context,
    )


def log_admin_override(
    operator_email: str, delivery_id: str, context: dict[str, Any] | None = None
) -> str:
    """
    Record an admin-forced resend of a delivery.

    Resending can notify a recipient twice, so every override leaves a file
    behind naming the operator and the delivery.

    Returns:
        Path to the audit file created
    """
    return _write_report(
        "admin_override",
        "Admin Delivery Override",
        {"Operator": operator_email, "Delivery ID": delivery_id},
        context,
    )
