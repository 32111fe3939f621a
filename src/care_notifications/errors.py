"""Failure taxonomy for the notification core.

These are raised by adapters and caught at each public operation
boundary, where they become None/False/empty return values.
"""


class NotificationError(Exception):
    """Base class for notification core failures."""


class CapabilityUnavailable(NotificationError):
    """No physical device, sandboxed dev client, or no project id."""


class PermissionDenied(NotificationError):
    """The user declined notification permission."""


class PushServiceMisconfigured(NotificationError):
    """Remote push credentials are missing on this build."""


class NetworkFailure(NotificationError):
    """The backend was unreachable or answered with an error."""


class PersistenceFailure(NotificationError):
    """Reading or writing the key-value store failed."""
