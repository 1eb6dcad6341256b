"""
CLI script for creating and sending meeting notifications.

Usage:
    # Preview how many users a run would reach (no writes)
    uv run python -m notifications.process_notification_queue preview \
        --city-id athens --meeting-id mar15_2025 --importances importances.json

    # Create notifications (stored subject importance unless --importances given)
    uv run python -m notifications.process_notification_queue create \
        --city-id athens --meeting-id mar15_2025 --type beforeMeeting

    # Send all pending deliveries of some notifications
    uv run python -m notifications.process_notification_queue release \
        --notification-id n1 --notification-id n2

    # Force a single delivery to be sent again (even if already sent)
    uv run python -m notifications.process_notification_queue resend \
        --delivery-id d1 --operator-email admin@example.org --yes

The importances file maps subject IDs to
{"topicImportance": ..., "proximityImportance": ...}.
"""

import argparse
import json
from typing import Any, Dict, Optional

from models.types import CityID, DeliveryID, MeetingID, NotificationID
from notifications.admin_alerts import (
    send_notifications_created_alert,
    send_notifications_sent_alert,
)
from notifications.creator import (
    create_notifications_for_meeting,
    preview_notification_impact,
)
from notifications.deliver import release_notifications
from notifications.errors import NotificationError
from notifications.matching import parse_importance_overrides
from notifications.resend_delivery import get_operator, resend_delivery
from shared.utils import print_release_summary


def _load_importances(path: Optional[str]) -> Optional[Dict[str, Any]]:
    if not path:
        return None
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def run_preview(args: argparse.Namespace) -> None:
    overrides = parse_importance_overrides(_load_importances(args.importances))
    impact = preview_notification_impact(
        CityID(args.city_id), MeetingID(args.meeting_id), overrides
    )

    print(f"Users to notify: {impact.total_users}")
    for subject_id, count in sorted(
        impact.subject_impact.items(), key=lambda item: item[1], reverse=True
    ):
        print(f"  {subject_id}: {count}")


def run_create(args: argparse.Namespace) -> None:
    raw = _load_importances(args.importances)
    overrides = parse_importance_overrides(raw) if raw is not None else None
    city_id, meeting_id = CityID(args.city_id), MeetingID(args.meeting_id)

    stats = create_notifications_for_meeting(city_id, meeting_id, args.type, overrides)

    if stats["notifications_created"] > 0:
        send_notifications_created_alert(
            city_id, meeting_id, args.type, stats, auto_send=args.send_immediately
        )

    if args.send_immediately and stats["notification_ids"]:
        print("Sending notifications immediately...")
        release_stats = release_notifications(stats["notification_ids"])
        print_release_summary(release_stats)
        send_notifications_sent_alert(stats["notifications_created"], release_stats)


def run_release(args: argparse.Namespace) -> None:
    stats = release_notifications(
        [NotificationID(notification_id) for notification_id in args.notification_id]
    )
    print_release_summary(stats)
    send_notifications_sent_alert(len(args.notification_id), stats)


def run_resend(args: argparse.Namespace) -> None:
    if not args.yes:
        print(
            "Resending may notify the recipient twice. "
            "Re-run with --yes to confirm."
        )
        return

    operator = get_operator(args.operator_email)
    if operator is None:
        print(f"✗ Resend failed (401): no user with email {args.operator_email}")
        return

    try:
        outcome = resend_delivery(DeliveryID(args.delivery_id), operator)
    except NotificationError as e:
        print(f"✗ Resend failed ({e.status_code}): {e}")
        return

    if outcome["success"]:
        via = f" via {outcome['sentVia']}" if outcome["sentVia"] else ""
        print(f"✓ Delivery {args.delivery_id} resent ({outcome['medium']}{via})")
    else:
        print(f"✗ Delivery {args.delivery_id} failed: {outcome['error']}")


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Create and send council meeting notifications"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    preview = subparsers.add_parser("preview", help="Dry-run impact of a notification run")
    preview.add_argument("--city-id", required=True)
    preview.add_argument("--meeting-id", required=True)
    preview.add_argument(
        "--importances", required=True, help="JSON file with per-subject importance"
    )
    preview.set_defaults(handler=run_preview)

    create = subparsers.add_parser("create", help="Create notifications for a meeting")
    create.add_argument("--city-id", required=True)
    create.add_argument("--meeting-id", required=True)
    create.add_argument(
        "--type", required=True, choices=["beforeMeeting", "afterMeeting"]
    )
    create.add_argument(
        "--importances", help="JSON file with per-subject importance overrides"
    )
    create.add_argument(
        "--send-immediately",
        action="store_true",
        help="Release the created notifications right away",
    )
    create.set_defaults(handler=run_create)

    release = subparsers.add_parser("release", help="Send pending deliveries")
    release.add_argument(
        "--notification-id", action="append", required=True, help="Repeatable"
    )
    release.set_defaults(handler=run_release)

    resend = subparsers.add_parser("resend", help="Force-resend one delivery")
    resend.add_argument("--delivery-id", required=True)
    resend.add_argument("--operator-email", required=True)
    resend.add_argument(
        "--yes", action="store_true", help="Confirm the resend (may duplicate a notification)"
    )
    resend.set_defaults(handler=run_resend)

    args = parser.parse_args()
    args.handler(args)


if __name__ == "__main__":
    main()
