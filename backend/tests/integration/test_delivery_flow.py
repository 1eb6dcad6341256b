"""
Integration tests for releasing and resending deliveries.

Runs the real delivery pipeline and delivery store; only the Supabase client
and the provider transports (Resend module, Bird HTTP session) are mocked.
"""

import os
import tempfile
import threading
import unittest
from unittest.mock import patch

from models.notification import AdminUser
from notifications.deliver import release_notifications
from notifications.resend_delivery import handle_resend_delivery_request
from tests.fixtures.mock_helpers import (
    create_mock_requests_response,
    create_mock_response,
    create_mock_supabase,
)
from tests.fixtures.user_factory import create_test_delivery_row

BIRD_SETTINGS = {
    "BIRD_API_KEY": "bird_key",
    "BIRD_WORKSPACE_ID": "ws1",
    "BIRD_WHATSAPP_CHANNEL_ID": "wa1",
    "BIRD_SMS_CHANNEL_ID": "sms1",
    "BIRD_WHATSAPP_TEMPLATES": {"beforeMeeting": "tpl_before", "afterMeeting": "tpl_after"},
}

ADMIN = AdminUser(id="admin1", email="admin@example.org", is_super_admin=True)


def _updates(mock_supabase):
    return [c.args[0] for c in mock_supabase.update.call_args_list]


@patch("builtins.print")
@patch.multiple("config.notification_settings", **BIRD_SETTINGS)
@patch("notifications.message_sender._session.post")
@patch("notifications.email_sender.resend")
@patch("notifications.delivery_store.get_supabase_client")
class TestDeliveryFlow(unittest.TestCase):
    """Release and resend through every layer below the providers."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.env = patch.dict(os.environ, {"NOTIFICATION_LOG_DIR": self.tmp.name})
        self.env.start()

    def tearDown(self):
        self.env.stop()
        self.tmp.cleanup()

    def test_release_mixed_batch(self, mock_get_supabase, mock_resend, mock_post, mock_print):
        rows = [
            create_test_delivery_row(delivery_id="email_ok", medium="email"),
            create_test_delivery_row(delivery_id="email_bad", medium="email", email=None),
            create_test_delivery_row(delivery_id="msg_ok", medium="message"),
        ]
        lock = threading.Lock()
        executed = []

        def execute():
            with lock:
                executed.append(1)
                first = len(executed) == 1
            # First query loads pending rows; later ones are status writes
            return create_mock_response(rows if first else [{"id": "row"}])

        mock_supabase = create_mock_supabase()
        mock_supabase.execute.side_effect = execute
        mock_get_supabase.return_value = mock_supabase
        mock_resend.api_key = "re_test"
        mock_resend.Emails.send.return_value = {"id": "email_1"}
        mock_post.return_value = create_mock_requests_response(202, {"id": "msg_1"})

        stats = release_notifications(["notif_123"], max_workers=2, rate_limit_seconds=0)

        self.assertEqual(
            stats, {"emails_sent": 1, "messages_sent": 1, "failed": 1, "skipped": 0}
        )
        statuses = sorted(update["status"] for update in _updates(mock_supabase))
        self.assertEqual(statuses, ["failed", "sent", "sent"])
        self.assertEqual(mock_resend.Emails.send.call_count, 1)
        # WhatsApp succeeded, so no SMS was sent
        self.assertEqual(mock_post.call_count, 1)
        self.assertIn("/channels/wa1/", mock_post.call_args.args[0])

    def test_resend_sent_message_falls_back_to_sms(
        self, mock_get_supabase, mock_resend, mock_post, mock_print
    ):
        sent_row = create_test_delivery_row(
            delivery_id="d1",
            medium="message",
            status="sent",
            sent_at="2025-03-14T09:00:00+00:00",
            message_sent_via="whatsapp",
        )
        mock_supabase = create_mock_supabase()
        mock_supabase.execute.side_effect = [
            create_mock_response([sent_row]),  # get_delivery
            create_mock_response([{"id": "d1"}]),  # reset to pending
            create_mock_response([{"id": "d1"}]),  # final status
        ]
        mock_get_supabase.return_value = mock_supabase
        mock_post.side_effect = [
            create_mock_requests_response(422, text="template paused"),
            create_mock_requests_response(202, {"id": "sms_1"}),
        ]

        payload, status = handle_resend_delivery_request(ADMIN, {"deliveryId": "d1"})

        self.assertEqual(status, 200)
        self.assertEqual(payload, {"success": True, "medium": "message", "sentVia": "sms"})

        reset, final = _updates(mock_supabase)
        self.assertEqual(reset, {"status": "pending", "sent_at": None, "message_sent_via": None})
        self.assertEqual(final["status"], "sent")
        self.assertEqual(final["message_sent_via"], "sms")

        urls = [c.args[0] for c in mock_post.call_args_list]
        self.assertIn("/channels/wa1/", urls[0])
        self.assertIn("/channels/sms1/", urls[1])

        audit_files = [
            name for name in os.listdir(self.tmp.name) if name.startswith("admin_override_")
        ]
        self.assertEqual(len(audit_files), 1)

    def test_resend_missing_delivery(
        self, mock_get_supabase, mock_resend, mock_post, mock_print
    ):
        mock_get_supabase.return_value = create_mock_supabase([])

        payload, status = handle_resend_delivery_request(ADMIN, {"deliveryId": "nope"})

        self.assertEqual(status, 404)
        mock_post.assert_not_called()
        self.assertEqual(os.listdir(self.tmp.name), [])


if __name__ == "__main__":
    unittest.main()
