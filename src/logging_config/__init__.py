"""Structured logging for the notification core.

Provides JSON or console log output, a notification-scoped logging
context, and timing helpers for network and storage calls.
"""

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import NotificationContext, generate_operation_id
from src.logging_config.performance import PerformanceTimer, log_performance
from src.logging_config.setup import configure_logging, get_logger

__all__ = [
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "NotificationContext",
    "PerformanceTimer",
    "configure_logging",
    "generate_operation_id",
    "get_logger",
    "log_performance",
]
