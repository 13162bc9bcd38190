import os
import logging
import json
import time
from typing import Dict, Any, Optional
from contextvars import ContextVar
from blogapi.core.config import settings

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
correlation_context_var: ContextVar[Dict[str, Any] | None] = ContextVar(
    "correlation_context", default=None
)

# attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


def set_request_id(request_id: str) -> None:
    """
    Set the request ID in the current context
    """
    request_id_var.set(request_id)
    add_correlation_id("request_id", request_id)


def get_request_id() -> str | None:
    return request_id_var.get()


def add_correlation_id(key: str, value: Any) -> None:
    """
    Add a key-value pair to the correlation context
    """
    ctx = dict(get_correlation_context())
    ctx[key] = value
    correlation_context_var.set(ctx)


def get_correlation_context() -> Dict[str, Any]:
    return correlation_context_var.get() or {}


def reset_correlation_context() -> None:
    correlation_context_var.set({})


class LogContext:
    """
    Logger wrapper that merges the correlation context into every record
    """

    def __init__(self, logger_name: str | None = None):
        self.logger = (
            logging.getLogger(logger_name) if logger_name else logging.getLogger()
        )

    def info(self, message: str, extra: Dict[str, Any] | None = None) -> None:
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Dict[str, Any] | None = None) -> None:
        self._log(logging.WARNING, message, extra)

    def error(
        self, message: str, extra: Dict[str, Any] | None = None, exc_info: bool = False
    ) -> None:
        self._log(logging.ERROR, message, extra, exc_info)

    def debug(self, message: str, extra: Dict[str, Any] | None = None) -> None:
        self._log(logging.DEBUG, message, extra)

    def exception(self, message: str, extra: Dict[str, Any] | None = None) -> None:
        """
        Log an error message with the current stack trace
        """
        self._log(logging.ERROR, message, extra, exc_info=True)

    def _log(
        self,
        level: int,
        message: str,
        extra: Dict[str, Any] | None = None,
        exc_info: bool = False,
    ) -> None:
        log_extra = {**get_correlation_context(), **(extra or {})}
        # "message" and friends are reserved by LogRecord
        log_extra = {
            (f"ctx_{key}" if key in _RESERVED_ATTRS else key): value
            for key, value in log_extra.items()
        }
        self.logger.log(level, message, extra=log_extra, exc_info=exc_info)


class CustomFormatter(logging.Formatter):
    """
    JSON formatter for structured logs
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, settings.LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
            "service": settings.PROJECT_NAME,
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            log_entry[key] = value

        if record.exc_info and isinstance(record.exc_info, tuple):
            exc_type, exc_value, *_ = record.exc_info
            if exc_type and exc_value:
                log_entry["error"] = {
                    "type": exc_type.__name__,
                    "message": str(exc_value),
                }

        return json.dumps(log_entry, default=str)


class PerformanceLogger:
    """
    Context manager timing a block and logging its duration
    """

    def __init__(self, logger: LogContext, operation_name: str):
        self.logger = logger
        self.operation_name = operation_name
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
        extra = {"duration_ms": duration_ms, "operation": self.operation_name}

        if exc_type:
            self.logger.error(
                f"Operation {self.operation_name} failed after {duration_ms:.2f}ms",
                extra=extra,
                exc_info=True,
            )
        else:
            self.logger.debug(
                f"Operation {self.operation_name} completed in {duration_ms:.2f}ms",
                extra=extra,
            )


def setup_logging() -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL)
    root_logger.handlers = []

    formatter = CustomFormatter()

    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(settings.LOG_FILE)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING)
    root_logger.addHandler(console_handler)

    reset_correlation_context()
