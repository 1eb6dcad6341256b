"""
Geographic proximity checks between user locations and subject locations.

The distance query itself runs in PostGIS behind a Supabase RPC; this module
only wraps the call and normalizes its answer to a boolean.
"""

from typing import Callable, Sequence

from shared.db import get_supabase_client

# (user_location_ids, subject_location_id, distance_meters) -> within distance?
ProximityCheck = Callable[[Sequence[str], str, int], bool]


def calculate_proximity_matches(
    user_location_ids: Sequence[str], subject_location_id: str, distance_meters: int
) -> bool:
    """
    Check whether any user location lies within a distance of the subject location.

    Args:
        user_location_ids: Location IDs the user subscribed to
        subject_location_id: Location ID attached to the subject
        distance_meters: Maximum distance in meters

    Returns:
        True if at least one user location is within distance_meters
    """
    if not user_location_ids or not subject_location_id:
        return False

    supabase = get_supabase_client()
    response = supabase.rpc(
        "locations_within_distance",
        {
            "user_location_ids": [str(loc).strip() for loc in user_location_ids],
            "subject_location_id": str(subject_location_id).strip(),
            "distance_meters": distance_meters,
        },
    ).execute()

    data = response.data
    # The RPC returns either a bare boolean or a single-row result set
    if isinstance(data, list):
        if not data:
            return False
        first = data[0]
        if isinstance(first, dict):
            return bool(next(iter(first.values()), False))
        return bool(first)
    return bool(data)
