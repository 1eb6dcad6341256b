"""
Creation of notifications and their pending deliveries for a meeting.

Matches the meeting's subjects against every user with preferences in the
city, then writes one notification per matched user with an email delivery
and, when the user has a phone number, a message delivery.
"""

from typing import Any, Dict, List, Optional

from models.notification import (
    Notification,
    NotificationImpact,
    NotificationSubjectEntry,
)
from models.subject import Subject, SubjectImportance, UserPreference
from models.types import CityID, MeetingID, NotificationType, SubjectID, UserID
from notifications.content import generate_email_content, generate_sms_content
from notifications.delivery_store import DELIVERIES_TABLE
from notifications.matching import (
    calculate_notification_impact,
    match_users_to_subjects,
)
from shared.db import get_supabase_client
from shared.utils import parse_datetime

MEETING_SELECT = (
    "id, city_id, date_time, city:cities(name, name_municipality), "
    "administrative_body:administrative_bodies(name), "
    "subjects(id, name, description, topic_id, location_id, "
    "topic_importance, proximity_importance)"
)
PREFERENCE_SELECT = "user_id, location_ids, interest_ids, user:users(email, phone)"


def _is_duplicate_error(error: Exception) -> bool:
    error_str = str(error).lower()
    return "duplicate" in error_str or "unique" in error_str


def fetch_meeting(city_id: CityID, meeting_id: MeetingID) -> Optional[Dict[str, Any]]:
    """Fetch a meeting with its city, administrative body and subjects."""
    supabase = get_supabase_client()
    response = (
        supabase.table("council_meetings")
        .select(MEETING_SELECT)
        .eq("city_id", city_id)
        .eq("id", meeting_id)
        .limit(1)
        .execute()
    )
    return response.data[0] if response.data else None


def fetch_city_preferences(city_id: CityID) -> List[Dict[str, Any]]:
    """Fetch every notification preference record for a city."""
    supabase = get_supabase_client()
    response = (
        supabase.table("notification_preferences")
        .select(PREFERENCE_SELECT)
        .eq("city_id", city_id)
        .execute()
    )
    return response.data or []


def subjects_from_meeting(meeting: Dict[str, Any]) -> List[Subject]:
    return [
        Subject(
            id=row["id"],
            name=row.get("name") or "",
            topic_id=row.get("topic_id"),
            location_id=row.get("location_id"),
        )
        for row in meeting.get("subjects") or []
    ]


def stored_importances(meeting: Dict[str, Any]) -> Dict[SubjectID, SubjectImportance]:
    """Importance saved on each subject; topic importance defaults to 'normal'."""
    return {
        SubjectID(str(row["id"]).strip()): SubjectImportance(
            topic_importance=row.get("topic_importance") or "normal",
            proximity_importance=row.get("proximity_importance") or "none",
        )
        for row in meeting.get("subjects") or []
    }


def preferences_from_rows(rows: List[Dict[str, Any]]) -> List[UserPreference]:
    return [
        UserPreference(
            user_id=row["user_id"],
            location_ids=row.get("location_ids") or [],
            interest_ids=row.get("interest_ids") or [],
        )
        for row in rows
    ]


def preview_notification_impact(
    city_id: CityID,
    meeting_id: MeetingID,
    importance_overrides: Dict[SubjectID, SubjectImportance],
) -> NotificationImpact:
    """
    Report how many users a notification run would reach, without writing anything.

    Raises:
        ValueError: If the meeting does not exist
    """
    meeting = fetch_meeting(city_id, meeting_id)
    if not meeting:
        raise ValueError(f"Meeting {meeting_id} not found")

    return calculate_notification_impact(
        subjects_from_meeting(meeting),
        importance_overrides,
        preferences_from_rows(fetch_city_preferences(city_id)),
    )


def create_notifications_for_meeting(
    city_id: CityID,
    meeting_id: MeetingID,
    notification_type: NotificationType,
    importance_overrides: Optional[Dict[SubjectID, SubjectImportance]] = None,
) -> Dict[str, Any]:
    """
    Create notifications and pending deliveries for one meeting.

    Args:
        city_id: City of the meeting
        meeting_id: Meeting whose subjects are notified
        notification_type: 'beforeMeeting' or 'afterMeeting'
        importance_overrides: Per-subject importance chosen by an admin; when
            None, each subject's stored importance is used

    Returns:
        Dictionary with notifications_created, subjects_total, notification_ids
        and the created Notification models

    Raises:
        ValueError: If the meeting does not exist
    """
    print(f"Creating {notification_type} notifications for meeting {meeting_id} in city {city_id}")

    meeting = fetch_meeting(city_id, meeting_id)
    if not meeting:
        raise ValueError(f"Meeting {meeting_id} not found")

    empty_stats: Dict[str, Any] = {
        "notifications_created": 0,
        "subjects_total": 0,
        "notification_ids": [],
        "notifications": [],
    }

    preference_rows = fetch_city_preferences(city_id)
    if not preference_rows:
        print("No users with notification preferences for this city")
        return empty_stats

    # First record per user carries the contact details
    users_by_id: Dict[UserID, Dict[str, Any]] = {}
    for row in preference_rows:
        users_by_id.setdefault(UserID(str(row["user_id"]).strip()), row.get("user") or {})

    subjects = subjects_from_meeting(meeting)
    importances = (
        importance_overrides
        if importance_overrides is not None
        else stored_importances(meeting)
    )

    user_matches = match_users_to_subjects(
        subjects, importances, preferences_from_rows(preference_rows)
    )
    users_to_notify = {
        user_id: matches for user_id, matches in user_matches.items() if matches
    }
    if not users_to_notify:
        print("No users matched any subjects")
        return empty_stats

    print(f"Creating notifications for {len(users_to_notify)} users")

    subject_order = {subject.id: index for index, subject in enumerate(subjects)}
    subject_rows = {
        str(row["id"]).strip(): row for row in meeting.get("subjects") or []
    }
    city = meeting.get("city") or {}
    city_name = city.get("name_municipality") or city.get("name", "")
    admin_body_name = (meeting.get("administrative_body") or {}).get("name")
    meeting_date = parse_datetime(meeting.get("date_time"))

    supabase = get_supabase_client()
    notifications: List[Notification] = []
    subjects_total = 0

    for user_id, matches in users_to_notify.items():
        ordered = sorted(matches, key=lambda match: subject_order[match.subject_id])

        try:
            response = (
                supabase.table("notifications")
                .insert(
                    {
                        "user_id": user_id,
                        "city_id": city_id,
                        "meeting_id": meeting_id,
                        "type": notification_type,
                    }
                )
                .execute()
            )
        except Exception as e:
            if _is_duplicate_error(e):
                print(f"  ⊘ Notification already exists for user {user_id}, skipping")
                continue
            raise

        notification_id = response.data[0]["id"]
        entries = [
            NotificationSubjectEntry(subject_id=match.subject_id, reason=match.reason)
            for match in ordered
        ]
        notification = Notification(
            id=notification_id,
            user_id=user_id,
            city_id=city_id,
            meeting_id=meeting_id,
            type=notification_type,
            subjects=entries,
        )
        notifications.append(notification)
        subjects_total += len(entries)

        supabase.table("notification_subjects").insert(
            [
                {"notification_id": notification.id, **entry.model_dump()}
                for entry in notification.subjects
            ]
        ).execute()

        matched_subjects = [subject_rows[match.subject_id] for match in ordered]
        email_content = generate_email_content(
            notification_id,
            notification_type,
            city_name,
            meeting_date,
            admin_body_name,
            [
                {"name": row.get("name") or "", "description": row.get("description") or ""}
                for row in matched_subjects
            ],
        )

        user = users_by_id.get(user_id, {})
        deliveries = [
            {
                "notification_id": notification_id,
                "medium": "email",
                "status": "pending",
                "email": user.get("email"),
                "title": email_content["title"],
                "body": email_content["body"],
            }
        ]
        if user.get("phone"):
            deliveries.append(
                {
                    "notification_id": notification_id,
                    "medium": "message",
                    "status": "pending",
                    "phone": user["phone"],
                    "body": generate_sms_content(
                        notification_id,
                        city_name,
                        meeting_date,
                        admin_body_name,
                        [row.get("name") or "" for row in matched_subjects],
                    ),
                }
            )
        supabase.table(DELIVERIES_TABLE).insert(deliveries).execute()

    print(
        f"✓ Created {len(notifications)} notifications "
        f"with {subjects_total} total subject matches"
    )

    return {
        "notifications_created": len(notifications),
        "subjects_total": subjects_total,
        "notification_ids": [notification.id for notification in notifications],
        "notifications": notifications,
    }
