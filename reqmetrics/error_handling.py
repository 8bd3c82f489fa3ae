"""
Error reporting for the instrumentation core.

Every recovered failure (a metric that could not update, a push tick that
could not fetch or deliver) is routed through an ErrorHandler owned by the
Instrumentation instance. The handler logs with the configured tag, keeps a
bounded history for introspection, and tracks simple counts per category.
"""

import logging
import threading
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Categorization of errors for better tracking and handling."""

    CONFIGURATION = "configuration"   # unknown kind, missing labels, duplicate name
    CONTRACT = "contract"             # collector/update function mismatch at exec time
    TRANSPORT = "transport"           # local fetch or remote push failure
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels for prioritization."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorInfo:
    """Captured details of one handled error."""

    exception: BaseException
    category: ErrorCategory
    severity: ErrorSeverity

    component: str = ""
    function_name: str = ""
    message: str = ""

    traceback_str: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    thread_id: str = ""

    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "exception_type": type(self.exception).__name__,
            "exception_message": str(self.exception),
            "category": self.category.value,
            "severity": self.severity.value,
            "component": self.component,
            "function_name": self.function_name,
            "message": self.message,
            "traceback": self.traceback_str,
            "timestamp": self.timestamp.isoformat(),
            "thread_id": self.thread_id,
            "context": self.context,
        }


class ErrorHandler:
    """Tagged error sink with a bounded in-memory history."""

    def __init__(self, logger: logging.Logger | None = None, tag: str = "reqmetrics", max_errors: int = 1000):
        """
        Args:
            logger: Logging sink; defaults to the module logger
            tag: Prefix attached to every log line
            max_errors: Maximum number of errors to keep in memory
        """
        self.logger = logger or logging.getLogger(__name__)
        self.tag = tag
        self.errors: list[ErrorInfo] = []
        self.max_errors = max_errors
        self._lock = threading.Lock()

        self.error_counts: dict[str, int] = {}
        self.category_counts: dict[ErrorCategory, int] = {}

    def handle_error(
        self,
        exception: BaseException,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        component: str = "",
        function_name: str = "",
        message: str = "",
        context: dict[str, Any] | None = None,
        should_log: bool = True,
    ) -> ErrorInfo:
        """Record an error, log it at a level derived from severity, and return its info."""
        error_info = ErrorInfo(
            exception=exception,
            category=category,
            severity=severity,
            component=component,
            function_name=function_name,
            message=message or str(exception),
            traceback_str="".join(traceback.format_exception(exception)),
            thread_id=str(threading.current_thread().ident),
            context=context or {},
        )

        with self._lock:
            self.errors.append(error_info)
            if len(self.errors) > self.max_errors:
                self.errors.pop(0)

            exc_type = type(exception).__name__
            self.error_counts[exc_type] = self.error_counts.get(exc_type, 0) + 1
            self.category_counts[category] = self.category_counts.get(category, 0) + 1

        if should_log:
            self._log_error(error_info)
        return error_info

    def _log_error(self, error_info: ErrorInfo) -> None:
        log_msg = (
            f"[{self.tag}] [{error_info.category.value.upper()}] "
            f"{error_info.component}.{error_info.function_name}: "
            f"{error_info.message}"
        )
        if error_info.context:
            log_msg += f" | Context: {error_info.context}"

        if error_info.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(log_msg, exc_info=error_info.exception)
        elif error_info.severity == ErrorSeverity.HIGH:
            self.logger.error(log_msg, exc_info=error_info.exception)
        elif error_info.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(log_msg)
        else:
            self.logger.info(log_msg)

    def get_recent_errors(self, count: int = 50) -> list[ErrorInfo]:
        with self._lock:
            return self.errors[-count:] if self.errors else []

    def get_error_summary(self) -> dict[str, Any]:
        with self._lock:
            return {
                "total_errors": len(self.errors),
                "by_type": dict(self.error_counts),
                "by_category": {cat.value: count for cat, count in self.category_counts.items()},
            }

    def clear_errors(self) -> None:
        """Clear all stored errors (useful for testing)."""
        with self._lock:
            self.errors.clear()
            self.error_counts.clear()
            self.category_counts.clear()


__all__ = [
    "ErrorCategory",
    "ErrorSeverity",
    "ErrorInfo",
    "ErrorHandler",
]
