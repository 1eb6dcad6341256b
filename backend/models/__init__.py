"""Pydantic models for data validation and type checking."""

from models.notification import (
    AdminUser,
    DeliveryContext,
    DeliveryResult,
    Notification,
    NotificationDelivery,
    NotificationImpact,
    NotificationSubjectEntry,
    SubjectMatch,
)
from models.subject import Subject, SubjectImportance, UserPreference

__all__ = [
    "Subject",
    "SubjectImportance",
    "UserPreference",
    "SubjectMatch",
    "NotificationImpact",
    "Notification",
    "NotificationSubjectEntry",
    "DeliveryContext",
    "NotificationDelivery",
    "DeliveryResult",
    "AdminUser",
]
