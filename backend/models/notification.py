"""Pydantic models for notification system."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.types import (
    CityID,
    DeliveryID,
    DeliveryMedium,
    DeliveryStatus,
    MatchReason,
    MeetingID,
    MessageChannel,
    NotificationID,
    NotificationType,
    SubjectID,
    UserID,
)


class SubjectMatch(BaseModel):
    """Represents a subject a user was matched to, and why."""

    model_config = ConfigDict(frozen=True)

    subject_id: SubjectID
    reason: MatchReason


class NotificationImpact(BaseModel):
    """Dry-run reach of a notification run, shown to admins before sending."""

    total_users: int = 0
    subject_impact: dict[SubjectID, int] = Field(default_factory=dict)


class NotificationSubjectEntry(BaseModel):
    """One (subject, reason) line of a created notification."""

    subject_id: SubjectID
    reason: MatchReason


class Notification(BaseModel):
    """Notification created once per user per meeting run."""

    id: NotificationID
    user_id: UserID
    city_id: CityID
    meeting_id: MeetingID
    type: NotificationType
    subjects: list[NotificationSubjectEntry] = Field(default_factory=list)


class DeliveryContext(BaseModel):
    """Notification data joined onto a delivery, used to fill message templates."""

    notification_id: NotificationID
    type: NotificationType
    city_name: str = ""
    meeting_date: datetime | None = None
    administrative_body_name: str | None = None
    subject_names: list[str] = Field(default_factory=list)


class NotificationDelivery(BaseModel):
    """One channel-specific attempt to deliver a notification."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: DeliveryID
    notification_id: NotificationID
    medium: DeliveryMedium
    status: DeliveryStatus = "pending"
    email: str | None = None
    title: str | None = None
    body: str | None = None
    phone: str | None = None
    sent_at: datetime | None = None
    message_sent_via: MessageChannel | None = None
    context: DeliveryContext | None = None


class DeliveryResult(BaseModel):
    """Outcome of a single send attempt."""

    success: bool
    sent_via: MessageChannel | None = None
    error: str | None = None
    # Missing recipient or content; detected before any provider call
    validation_failed: bool = False
    # Delivery was not pending, nothing was attempted
    skipped: bool = False
    # False when another sender recorded an outcome for the row first
    recorded: bool = True


class AdminUser(BaseModel):
    """Operator invoking an admin-only operation."""

    id: UserID
    email: str
    is_super_admin: bool = False
