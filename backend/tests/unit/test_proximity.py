"""
Unit tests for notifications/proximity.py

Tests the PostGIS RPC call and normalization of its answer.
"""

import unittest
from unittest.mock import patch

from notifications.proximity import calculate_proximity_matches
from tests.fixtures.mock_helpers import create_mock_response, create_mock_supabase


class TestCalculateProximityMatches(unittest.TestCase):
    """Tests for calculate_proximity_matches() function."""

    @patch("notifications.proximity.get_supabase_client")
    def test_calls_rpc_with_distance(self, mock_get_supabase):
        mock_supabase = create_mock_supabase()
        mock_supabase.execute.return_value = create_mock_response(True)
        mock_get_supabase.return_value = mock_supabase

        result = calculate_proximity_matches([" loc1 ", "loc2"], "loc9", 250)

        self.assertTrue(result)
        mock_supabase.rpc.assert_called_once_with(
            "locations_within_distance",
            {
                "user_location_ids": ["loc1", "loc2"],
                "subject_location_id": "loc9",
                "distance_meters": 250,
            },
        )

    @patch("notifications.proximity.get_supabase_client")
    def test_false_answer(self, mock_get_supabase):
        mock_supabase = create_mock_supabase()
        mock_supabase.execute.return_value = create_mock_response(False)
        mock_get_supabase.return_value = mock_supabase

        self.assertFalse(calculate_proximity_matches(["loc1"], "loc9", 1000))

    @patch("notifications.proximity.get_supabase_client")
    def test_single_row_result(self, mock_get_supabase):
        """Row-shaped answers are read from their first column."""
        mock_supabase = create_mock_supabase([{"locations_within_distance": True}])
        mock_get_supabase.return_value = mock_supabase

        self.assertTrue(calculate_proximity_matches(["loc1"], "loc9", 250))

    @patch("notifications.proximity.get_supabase_client")
    def test_empty_result_set(self, mock_get_supabase):
        mock_get_supabase.return_value = create_mock_supabase([])

        self.assertFalse(calculate_proximity_matches(["loc1"], "loc9", 250))

    @patch("notifications.proximity.get_supabase_client")
    def test_no_locations_skips_query(self, mock_get_supabase):
        self.assertFalse(calculate_proximity_matches([], "loc9", 250))
        self.assertFalse(calculate_proximity_matches(["loc1"], "", 250))
        mock_get_supabase.assert_not_called()

    @patch("notifications.proximity.get_supabase_client")
    def test_rpc_errors_propagate(self, mock_get_supabase):
        mock_supabase = create_mock_supabase()
        mock_supabase.execute.side_effect = RuntimeError("PostGIS unavailable")
        mock_get_supabase.return_value = mock_supabase

        with self.assertRaises(RuntimeError):
            calculate_proximity_matches(["loc1"], "loc9", 250)


if __name__ == "__main__":
    unittest.main()
