"""
Unit tests for notifications/message_sender.py

Tests Bird WhatsApp template and SMS requests, and how provider answers
are interpreted.
"""

import unittest
from unittest.mock import patch

import requests

from config import notification_settings as settings
from notifications.message_sender import (
    format_phone_number,
    is_configured,
    send_sms_message,
    send_whatsapp_message,
)
from tests.fixtures.mock_helpers import create_mock_requests_response

BIRD_SETTINGS = {
    "BIRD_API_BASE_URL": "https://api.bird.test",
    "BIRD_API_KEY": "bird_key",
    "BIRD_WORKSPACE_ID": "ws1",
    "BIRD_WHATSAPP_CHANNEL_ID": "wa1",
    "BIRD_SMS_CHANNEL_ID": "sms1",
    "BIRD_WHATSAPP_TEMPLATES": {"beforeMeeting": "tpl_before", "afterMeeting": "tpl_after"},
}

TEMPLATE_PARAMS = {
    "date": "15 Μαρτίου 2025",
    "cityName": "Αθήνα",
    "subjectsSummary": "Ποδηλατόδρομος",
    "adminBody": "Δημοτικό Συμβούλιο",
    "notificationId": "notif_123",
}


class TestHelpers(unittest.TestCase):
    """Tests for phone formatting and configuration checks."""

    def test_format_phone_adds_plus(self):
        self.assertEqual(format_phone_number("306900000000"), "+306900000000")

    def test_format_phone_keeps_plus(self):
        self.assertEqual(format_phone_number(" +306900000000 "), "+306900000000")

    @patch.multiple("config.notification_settings", **BIRD_SETTINGS)
    def test_is_configured(self):
        self.assertTrue(is_configured())
        self.assertTrue(is_configured("wa1"))
        self.assertFalse(is_configured(None))

    @patch.multiple("config.notification_settings", BIRD_API_KEY=None)
    def test_not_configured_without_key(self):
        self.assertFalse(is_configured())


@patch("builtins.print")
@patch.multiple("config.notification_settings", **BIRD_SETTINGS)
@patch("notifications.message_sender._session.post")
class TestSendWhatsappMessage(unittest.TestCase):
    """Tests for send_whatsapp_message() function."""

    def test_sends_template_with_parameters(self, mock_post, mock_print):
        mock_post.return_value = create_mock_requests_response(
            202, {"id": "msg_1", "status": "accepted"}
        )

        result = send_whatsapp_message("306900000000", "beforeMeeting", TEMPLATE_PARAMS)

        self.assertTrue(result["success"])
        url = mock_post.call_args.args[0]
        self.assertEqual(url, "https://api.bird.test/workspaces/ws1/channels/wa1/messages")

        kwargs = mock_post.call_args.kwargs
        self.assertEqual(kwargs["headers"]["Authorization"], "AccessKey bird_key")
        self.assertIn("timeout", kwargs)

        payload = kwargs["json"]
        self.assertEqual(
            payload["receiver"]["contacts"][0]["identifierValue"], "+306900000000"
        )
        self.assertEqual(payload["template"]["projectId"], "tpl_before")
        self.assertEqual(payload["template"]["locale"], "el")
        params = {p["key"]: p["value"] for p in payload["template"]["parameters"]}
        self.assertEqual(params, TEMPLATE_PARAMS)

    def test_template_by_notification_type(self, mock_post, mock_print):
        mock_post.return_value = create_mock_requests_response(202, {"id": "msg_1"})

        send_whatsapp_message("+306900000000", "afterMeeting", TEMPLATE_PARAMS)

        payload = mock_post.call_args.kwargs["json"]
        self.assertEqual(payload["template"]["projectId"], "tpl_after")

    def test_missing_template(self, mock_post, mock_print):
        with patch.dict(
            "config.notification_settings.BIRD_WHATSAPP_TEMPLATES", {"beforeMeeting": None}
        ):
            result = send_whatsapp_message("+306900000000", "beforeMeeting", TEMPLATE_PARAMS)

        self.assertFalse(result["success"])
        mock_post.assert_not_called()

    def test_http_error(self, mock_post, mock_print):
        mock_post.return_value = create_mock_requests_response(422, text="invalid template")

        result = send_whatsapp_message("+306900000000", "beforeMeeting", TEMPLATE_PARAMS)

        self.assertFalse(result["success"])
        self.assertIn("422", result["error"])

    def test_rejected_status(self, mock_post, mock_print):
        """A 2xx answer carrying a failed status is still a failure."""
        mock_post.return_value = create_mock_requests_response(
            202, {"status": "rejected", "detail": "User not on WhatsApp"}
        )

        result = send_whatsapp_message("+306900000000", "beforeMeeting", TEMPLATE_PARAMS)

        self.assertFalse(result["success"])
        self.assertEqual(result["error"], "User not on WhatsApp")

    def test_network_error(self, mock_post, mock_print):
        mock_post.side_effect = requests.ConnectionError("connection reset")

        result = send_whatsapp_message("+306900000000", "beforeMeeting", TEMPLATE_PARAMS)

        self.assertFalse(result["success"])
        self.assertIn("connection reset", result["error"])

    def test_request_timeout_within_provider_bound(self, mock_post, mock_print):
        mock_post.return_value = create_mock_requests_response(202, {"id": "msg_1"})

        send_whatsapp_message("+306900000000", "beforeMeeting", TEMPLATE_PARAMS)

        connect_timeout, read_timeout = mock_post.call_args.kwargs["timeout"]
        self.assertLess(connect_timeout + read_timeout, settings.PROVIDER_TIMEOUT_SECONDS)

    def test_accepted_without_json_body(self, mock_post, mock_print):
        mock_post.return_value = create_mock_requests_response(202)

        result = send_whatsapp_message("+306900000000", "beforeMeeting", TEMPLATE_PARAMS)

        self.assertTrue(result["success"])


@patch("builtins.print")
@patch.multiple("config.notification_settings", **BIRD_SETTINGS)
@patch("notifications.message_sender._session.post")
class TestSendSmsMessage(unittest.TestCase):
    """Tests for send_sms_message() function."""

    def test_sends_text_body(self, mock_post, mock_print):
        mock_post.return_value = create_mock_requests_response(202, {"id": "msg_2"})

        result = send_sms_message("+306900000000", "Αθήνα - 2 νέα θέματα")

        self.assertTrue(result["success"])
        self.assertEqual(
            mock_post.call_args.args[0],
            "https://api.bird.test/workspaces/ws1/channels/sms1/messages",
        )
        payload = mock_post.call_args.kwargs["json"]
        self.assertEqual(payload["body"]["text"]["text"], "Αθήνα - 2 νέα θέματα")

    def test_sms_channel_not_configured(self, mock_post, mock_print):
        with patch("config.notification_settings.BIRD_SMS_CHANNEL_ID", None):
            result = send_sms_message("+306900000000", "body")

        self.assertFalse(result["success"])
        mock_post.assert_not_called()


if __name__ == "__main__":
    unittest.main()
