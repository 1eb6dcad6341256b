"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
different ID types (e.g., passing UserID where SubjectID expected).

Uses Literal aliases for the small closed vocabularies stored as strings in
the database.
"""

from typing import Literal, NewType, TypeAlias

# ID types using NewType for type safety
SubjectID = NewType("SubjectID", str)
TopicID = NewType("TopicID", str)
LocationID = NewType("LocationID", str)
UserID = NewType("UserID", str)
CityID = NewType("CityID", str)
MeetingID = NewType("MeetingID", str)
NotificationID = NewType("NotificationID", str)
DeliveryID = NewType("DeliveryID", str)

# Importance tiers chosen per subject for a notification run
TopicImportance: TypeAlias = Literal["doNotNotify", "normal", "high"]
ProximityImportance: TypeAlias = Literal["none", "near", "wide"]

MatchReason: TypeAlias = Literal["proximity", "topic", "generalInterest"]
NotificationType: TypeAlias = Literal["beforeMeeting", "afterMeeting"]

DeliveryMedium: TypeAlias = Literal["email", "message"]
DeliveryStatus: TypeAlias = Literal["pending", "sent", "failed"]
MessageChannel: TypeAlias = Literal["whatsapp", "sms"]
