"""Unit tests for Pydantic models."""

import unittest

from pydantic import ValidationError

from models import (
    DeliveryResult,
    NotificationDelivery,
    NotificationImpact,
    Subject,
    SubjectImportance,
    SubjectMatch,
    UserPreference,
)


class TestSubjectModels(unittest.TestCase):
    """Tests for subject and preference models."""

    def test_subject_strips_ids(self):
        subject = Subject(id="s1", topic_id=" t1 ", location_id=" loc1\n")

        self.assertEqual(subject.topic_id, "t1")
        self.assertEqual(subject.location_id, "loc1")

    def test_subject_is_frozen(self):
        subject = Subject(id="s1")

        with self.assertRaises(ValidationError):
            subject.name = "changed"

    def test_importance_defaults_disabled(self):
        importance = SubjectImportance()

        self.assertEqual(importance.topic_importance, "doNotNotify")
        self.assertEqual(importance.proximity_importance, "none")
        self.assertTrue(importance.is_disabled)

    def test_importance_enabled_by_proximity_only(self):
        importance = SubjectImportance(proximity_importance="near")

        self.assertFalse(importance.is_disabled)

    def test_invalid_importance(self):
        with self.assertRaises(ValidationError):
            SubjectImportance(topic_importance="urgent")

        with self.assertRaises(ValidationError):
            SubjectImportance(proximity_importance="far")

    def test_user_preference_defaults(self):
        preference = UserPreference(user_id="u1")

        self.assertEqual(preference.location_ids, [])
        self.assertEqual(preference.interest_ids, [])


class TestNotificationModels(unittest.TestCase):
    """Tests for match, impact and delivery models."""

    def test_subject_match_hashable(self):
        """Equal matches collapse in a set."""
        matches = {
            SubjectMatch(subject_id="s1", reason="topic"),
            SubjectMatch(subject_id="s1", reason="topic"),
            SubjectMatch(subject_id="s1", reason="proximity"),
        }

        self.assertEqual(len(matches), 2)

    def test_invalid_match_reason(self):
        with self.assertRaises(ValidationError):
            SubjectMatch(subject_id="s1", reason="random")

    def test_impact_defaults(self):
        impact = NotificationImpact()

        self.assertEqual(impact.total_users, 0)
        self.assertEqual(impact.subject_impact, {})

    def test_delivery_defaults_pending(self):
        delivery = NotificationDelivery(id="d1", notification_id="n1", medium="email")

        self.assertEqual(delivery.status, "pending")
        self.assertIsNone(delivery.sent_at)
        self.assertIsNone(delivery.context)

    def test_invalid_medium(self):
        with self.assertRaises(ValidationError):
            NotificationDelivery(id="d1", notification_id="n1", medium="fax")

    def test_invalid_status(self):
        with self.assertRaises(ValidationError):
            NotificationDelivery(
                id="d1", notification_id="n1", medium="email", status="queued"
            )

    def test_result_defaults(self):
        result = DeliveryResult(success=True)

        self.assertIsNone(result.sent_via)
        self.assertFalse(result.validation_failed)
        self.assertFalse(result.skipped)
        self.assertTrue(result.recorded)


if __name__ == "__main__":
    unittest.main()
