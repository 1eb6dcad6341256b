"""Exceptions raised by admin-facing notification operations.

Batch delivery never raises these; failures there are persisted as delivery
status. They surface only on single, operator-triggered calls.
"""


class NotificationError(Exception):
    """Base class for notification errors surfaced to a caller."""

    status_code = 500


class UnauthorizedError(NotificationError):
    """Caller lacks the privilege required for the operation."""

    status_code = 401


class DeliveryValidationError(NotificationError):
    """Request or delivery is missing required fields."""

    status_code = 400


class DeliveryNotFoundError(NotificationError):
    """No delivery exists with the requested id."""

    status_code = 404
