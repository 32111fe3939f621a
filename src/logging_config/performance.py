"""Performance Logging.

Decorator and context manager for timing network and storage calls
and flagging slow ones.
"""

import asyncio
import functools
import logging
import time
from typing import Any, Callable, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG

logger = logging.getLogger(__name__)


def _report(_logger: logging.Logger, name: str, duration_ms: float, threshold_ms: float) -> None:
    extra = {"duration_ms": round(duration_ms, 2)}
    if duration_ms >= threshold_ms:
        _logger.warning(f"Slow operation: {name} took {duration_ms:.1f}ms", extra=extra)
    else:
        _logger.debug(f"{name} completed in {duration_ms:.1f}ms", extra=extra)


def log_performance(
    threshold_ms: Optional[float] = None,
    logger_name: Optional[str] = None,
) -> Callable:
    """Decorator that logs function execution time.

    Logs all calls at DEBUG level and slow calls (above threshold) at
    WARNING. Exceptions are logged at ERROR and re-raised.

    Example:
        @log_performance(threshold_ms=500)
        async def post_token(self, token):
            ...
    """
    if threshold_ms is None:
        threshold_ms = DEFAULT_LOGGING_CONFIG.slow_threshold_ms

    def decorator(func: Callable) -> Callable:
        _logger = logging.getLogger(logger_name or func.__module__)
        func_name = func.__qualname__

        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                except Exception as exc:
                    duration_ms = (time.perf_counter() - start) * 1000
                    _logger.error(
                        f"{func_name} failed after {duration_ms:.1f}ms: {type(exc).__name__}",
                        extra={"duration_ms": round(duration_ms, 2)},
                    )
                    raise
                finally:
                    _report(_logger, func_name, (time.perf_counter() - start) * 1000, threshold_ms)
            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start) * 1000
                _logger.error(
                    f"{func_name} failed after {duration_ms:.1f}ms: {type(exc).__name__}",
                    extra={"duration_ms": round(duration_ms, 2)},
                )
                raise
            finally:
                _report(_logger, func_name, (time.perf_counter() - start) * 1000, threshold_ms)
        return sync_wrapper

    return decorator


class PerformanceTimer:
    """Context manager for timing code blocks.

    Example:
        with PerformanceTimer("history.persist") as timer:
            await storage.set_item(key, raw)
    """

    def __init__(self, operation_name: str, threshold_ms: Optional[float] = None):
        self.operation_name = operation_name
        self.threshold_ms = threshold_ms or DEFAULT_LOGGING_CONFIG.slow_threshold_ms
        self.start_time: float = 0
        self.duration_ms: float = 0

    def __enter__(self) -> "PerformanceTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is not None:
            logger.error(
                f"{self.operation_name} failed after {self.duration_ms:.1f}ms: {exc_type.__name__}",
                extra={"duration_ms": round(self.duration_ms, 2)},
            )
        else:
            _report(logger, self.operation_name, self.duration_ms, self.threshold_ms)
