"""
Delivery of created notifications over email and messaging channels.

Each delivery row is sent independently: email through Resend, messages as a
WhatsApp template first and a plain SMS only after WhatsApp has failed.
Provider errors and timeouts become a 'failed' status on the row; they never
abort the rest of a batch.
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Dict, List, Optional

from config.notification_settings import (
    DELIVERY_MAX_WORKERS,
    DELIVERY_RATE_LIMIT_SECONDS,
    PROVIDER_TIMEOUT_SECONDS,
)
from models.notification import DeliveryResult, NotificationDelivery
from models.types import MessageChannel, NotificationID
from notifications.content import build_whatsapp_template_params
from notifications.delivery_store import get_pending_deliveries, update_delivery_status
from notifications.email_sender import send_email
from notifications.error_logger import log_notification_error
from notifications.message_sender import (
    is_configured,
    send_sms_message,
    send_whatsapp_message,
)


def call_with_timeout(
    func: Callable[..., Dict[str, Any]],
    *args: Any,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Run a provider call with an upper bound on its duration.

    A call that raises or does not return in time is reported as a failed
    provider result. The abandoned call is left to finish in the background.

    Returns:
        The provider's result dict, or {'success': False, 'error': ...}
    """
    limit = PROVIDER_TIMEOUT_SECONDS if timeout is None else timeout
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(func, *args)
    try:
        return future.result(timeout=limit)
    except FuturesTimeoutError:
        return {"success": False, "error": f"Provider call timed out after {limit}s"}
    except Exception as e:
        return {"success": False, "error": str(e)}
    finally:
        executor.shutdown(wait=False)


def _finish(
    delivery: NotificationDelivery,
    success: bool,
    sent_via: Optional[MessageChannel] = None,
    error: Optional[str] = None,
    validation_failed: bool = False,
) -> DeliveryResult:
    """Persist the outcome of a send attempt and build the result."""
    status = "sent" if success else "failed"
    recorded = update_delivery_status(delivery.id, status, sent_via)
    if not recorded:
        print(
            f"  ⚠️  Delivery {delivery.id} was no longer pending, '{status}' not recorded"
        )

    return DeliveryResult(
        success=success,
        sent_via=sent_via,
        error=error,
        validation_failed=validation_failed,
        recorded=recorded,
    )


def _report_send_failure(delivery: NotificationDelivery, error_message: str) -> None:
    error_file = log_notification_error(
        error_type="sending",
        error_message=error_message,
        context={
            "delivery_id": delivery.id,
            "notification_id": delivery.notification_id,
            "medium": delivery.medium,
        },
    )
    print(f"    Error details logged to: {error_file}")


def _send_email_delivery(delivery: NotificationDelivery) -> DeliveryResult:
    """Send email delivery via Resend."""
    if not delivery.email or not delivery.title or not delivery.body:
        print(f"  ✗ Missing email, title, or body for delivery {delivery.id}")
        return _finish(
            delivery,
            False,
            error="Missing email, title, or body",
            validation_failed=True,
        )

    result = call_with_timeout(send_email, delivery.email, delivery.title, delivery.body)

    if result["success"]:
        print(f"  ✓ Email sent for delivery {delivery.id}")
        return _finish(delivery, True)

    error_msg = result.get("error", "Unknown error")
    print(f"  ✗ Failed to send email for delivery {delivery.id}: {error_msg}")
    _report_send_failure(delivery, error_msg)
    return _finish(delivery, False, error=error_msg)


def _send_message_delivery(delivery: NotificationDelivery) -> DeliveryResult:
    """Send message delivery via Bird (WhatsApp with SMS fallback)."""
    if not delivery.phone:
        print(f"  ✗ Missing phone for delivery {delivery.id}")
        return _finish(
            delivery, False, error="Missing phone number", validation_failed=True
        )

    if not is_configured():
        print("  ⚠️  Bird API not configured, skipping message delivery")
        return _finish(delivery, False, error="Bird API not configured")

    if delivery.context is not None:
        whatsapp_result = call_with_timeout(
            send_whatsapp_message,
            delivery.phone,
            delivery.context.type,
            build_whatsapp_template_params(delivery.context),
        )
    else:
        whatsapp_result = {
            "success": False,
            "error": "No notification data for WhatsApp template",
        }

    if whatsapp_result["success"]:
        print(f"  ✓ WhatsApp message sent for delivery {delivery.id}")
        return _finish(delivery, True, sent_via="whatsapp")

    # SMS only after WhatsApp failure is known
    print(
        f"  ⚠️  WhatsApp failed for delivery {delivery.id} "
        f"({whatsapp_result.get('error')}), falling back to SMS"
    )
    sms_result = call_with_timeout(send_sms_message, delivery.phone, delivery.body or "")

    if sms_result["success"]:
        print(f"  ✓ SMS sent for delivery {delivery.id}")
        return _finish(delivery, True, sent_via="sms")

    error_msg = (
        f"WhatsApp: {whatsapp_result.get('error', 'Unknown error')}; "
        f"SMS: {sms_result.get('error', 'Unknown error')}"
    )
    print(f"  ✗ Failed to send message for delivery {delivery.id} via WhatsApp and SMS")
    _report_send_failure(delivery, error_msg)
    return _finish(delivery, False, error=error_msg)


def send_delivery(delivery: NotificationDelivery) -> DeliveryResult:
    """
    Send one pending delivery and record its outcome.

    Deliveries that are not pending are left untouched; a sent delivery is
    only sent again through the admin resend override, which resets it first.

    Args:
        delivery: Delivery row with its notification context

    Returns:
        DeliveryResult describing the attempt
    """
    if delivery.status != "pending":
        print(f"  ⊘ Delivery {delivery.id} is already {delivery.status}, skipping")
        return DeliveryResult(
            success=delivery.status == "sent",
            sent_via=delivery.message_sent_via,
            skipped=True,
        )

    try:
        if delivery.medium == "email":
            return _send_email_delivery(delivery)
        return _send_message_delivery(delivery)
    except Exception as e:
        error_file = log_notification_error(
            error_type="sending",
            error_message=str(e),
            context={"delivery_id": delivery.id, "medium": delivery.medium},
        )
        print(f"  ✗ Error sending delivery {delivery.id}. Details logged to: {error_file}")
        return _finish(delivery, False, error=str(e))


def release_notifications(
    notification_ids: List[NotificationID],
    max_workers: int = DELIVERY_MAX_WORKERS,
    rate_limit_seconds: float = DELIVERY_RATE_LIMIT_SECONDS,
) -> Dict[str, int]:
    """
    Release notifications by sending all of their pending deliveries.

    Deliveries are independent and are sent on a bounded worker pool. A failure
    in one delivery is recorded on that row and counted; it never stops the
    others.

    Args:
        notification_ids: Notifications whose pending deliveries to send
        max_workers: Upper bound on concurrent deliveries
        rate_limit_seconds: Pause each worker takes after a delivery

    Returns:
        Dictionary with stats: emails_sent, messages_sent, failed, skipped
    """
    stats = {"emails_sent": 0, "messages_sent": 0, "failed": 0, "skipped": 0}

    deliveries = get_pending_deliveries(notification_ids)
    print(
        f"Releasing {len(deliveries)} pending deliveries "
        f"for {len(notification_ids)} notifications"
    )
    if not deliveries:
        return stats

    def process(delivery: NotificationDelivery) -> DeliveryResult:
        try:
            return send_delivery(delivery)
        except Exception as e:
            # Status write itself failed; row stays pending and can be retried
            error_file = log_notification_error(
                error_type="sending",
                error_message=str(e),
                context={"delivery_id": delivery.id, "stage": "status update"},
            )
            print(f"  ✗ Delivery {delivery.id} left pending. Details logged to: {error_file}")
            return DeliveryResult(success=False, error=str(e), recorded=False)
        finally:
            if rate_limit_seconds > 0:
                time.sleep(rate_limit_seconds)

    workers = max(1, min(max_workers, len(deliveries)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_delivery = {
            executor.submit(process, delivery): delivery for delivery in deliveries
        }
        for future in as_completed(future_to_delivery):
            delivery = future_to_delivery[future]
            result = future.result()

            if result.skipped:
                stats["skipped"] += 1
            elif not result.success:
                stats["failed"] += 1
            elif delivery.medium == "email":
                stats["emails_sent"] += 1
            else:
                stats["messages_sent"] += 1

    print(
        f"Release complete: {stats['emails_sent']} emails, "
        f"{stats['messages_sent']} messages, {stats['failed']} failed"
    )
    return stats
