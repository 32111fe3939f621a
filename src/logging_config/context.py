"""Notification Logging Context.

Context variables binding the signed-in user, the notification being
processed and an operation id to every log entry emitted inside a
`NotificationContext` block.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


_operation_id_var: ContextVar[str] = ContextVar("operation_id", default="")
_user_id_var: ContextVar[str] = ContextVar("user_id", default="")
_notification_id_var: ContextVar[str] = ContextVar("notification_id", default="")
_extra_context_var: ContextVar[dict] = ContextVar("extra_context", default={})


def generate_operation_id() -> str:
    """Generate a unique operation ID using UUID4."""
    return str(uuid.uuid4())


def get_operation_id() -> str:
    return _operation_id_var.get()


def get_user_id() -> str:
    return _user_id_var.get()


def get_notification_id() -> str:
    return _notification_id_var.get()


def get_context_dict() -> dict[str, Any]:
    """Get all context variables as a dictionary for log binding."""
    ctx = {}
    op_id = _operation_id_var.get()
    if op_id:
        ctx["operation_id"] = op_id
    user_id = _user_id_var.get()
    if user_id:
        ctx["user_id"] = user_id
    notification_id = _notification_id_var.get()
    if notification_id:
        ctx["notification_id"] = notification_id
    extra = _extra_context_var.get()
    if extra:
        ctx.update(extra)
    return ctx


@dataclass
class NotificationContext:
    """Context manager for notification-scoped logging context.

    Binds operation_id, user_id and notification_id to all log entries
    within the block. Previous values are restored on exit, so contexts
    nest.

    Example:
        with NotificationContext(user_id="user_1", notification_id="n-9"):
            logger.info("recording notification")
    """

    operation_id: str = ""
    user_id: str = ""
    notification_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    _tokens: list = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not self.operation_id:
            self.operation_id = generate_operation_id()

    def __enter__(self) -> "NotificationContext":
        self._tokens = [
            (_operation_id_var, _operation_id_var.set(self.operation_id)),
            (_user_id_var, _user_id_var.set(self.user_id)),
            (_notification_id_var, _notification_id_var.set(self.notification_id)),
            (_extra_context_var, _extra_context_var.set(self.extra.copy())),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since context was created."""
        delta = datetime.now(timezone.utc) - self.started_at
        return delta.total_seconds() * 1000

    def bind(self, **kwargs: Any) -> None:
        """Add extra key-value pairs to the context."""
        current = _extra_context_var.get()
        _extra_context_var.set({**current, **kwargs})
        self.extra.update(kwargs)
