from __future__ import annotations

import logging
import logging.config
from contextvars import ContextVar
from typing import Any, Mapping, Optional, Union

from pythonjsonlogger import jsonlogger


CONTEXT_FIELDS = ("request_id", "business_key", "business_id")

QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

SENSITIVE_KEY_PARTS = ("authorization", "token", "secret", "password")
REDACTED = "***redacted***"

_request_context: ContextVar[Mapping[str, Optional[str]]] = ContextVar("wave_request_context", default={})


class RequestContextFilter(logging.Filter):
    """Stamps request id and resolved business onto every record.

    Values passed through ``extra`` win over the ambient context.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = _request_context.get()
        for field in CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, context.get(field))
        return True


def configure_logging(level: Union[int, str] = logging.INFO, *, service_name: Optional[str] = None) -> None:
    """Configure JSON logging on stdout for the service and its libraries."""
    formatter: dict[str, Any] = {
        "()": jsonlogger.JsonFormatter,
        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
        "rename_fields": {"asctime": "timestamp", "levelname": "level"},
    }
    if service_name:
        formatter["static_fields"] = {"service": service_name}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_context": {"()": RequestContextFilter}},
            "formatters": {"json": formatter},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "json",
                    "filters": ["request_context"],
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            "root": {"handlers": ["stdout"], "level": level},
        }
    )


def current_request_context() -> dict[str, Optional[str]]:
    context = _request_context.get()
    return {field: context.get(field) for field in CONTEXT_FIELDS}


def set_request_context(**values: Optional[str]) -> None:
    """Merge non-null ``values`` into the context of the current request."""
    unknown = set(values) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"Unknown request context fields: {', '.join(sorted(unknown))}")
    updates = {key: value for key, value in values.items() if value is not None}
    if updates:
        _request_context.set({**_request_context.get(), **updates})


def clear_request_context() -> None:
    _request_context.set({})


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def sanitize_payload(payload: Any) -> Any:
    """Copy of ``payload`` with credential-like keys redacted at any depth.

    GraphQL variables are logged through this; ids, amounts and names stay.
    """
    if isinstance(payload, Mapping):
        return {
            key: (REDACTED if value is not None else None) if _is_sensitive(key) else sanitize_payload(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple)):
        return [sanitize_payload(item) for item in payload]
    return payload


def log_wave_call_started(*, operation: str, variables: Any) -> None:
    logger = logging.getLogger("wave_gateway.wave.call")
    logger.info(
        "wave_call_started",
        extra={
            "event": "wave_call_started",
            "operation": operation,
            "variables": sanitize_payload(variables),
        },
    )


def log_wave_call_finished(
    *,
    operation: str,
    wave_status_code: Optional[int],
    latency_ms: Optional[float],
    result: str,
    error_message: Optional[str] = None,
    wave_error_details: Any = None,
) -> None:
    logger = logging.getLogger("wave_gateway.wave.call")
    level = logging.INFO if result == "success" else logging.ERROR
    logger.log(
        level,
        "wave_call_finished",
        extra={
            "event": "wave_call_finished",
            "operation": operation,
            "wave_status_code": wave_status_code,
            "latency_ms": None if latency_ms is None else round(latency_ms, 2),
            "result": result,
            "error_message": error_message,
            "wave_error_details": wave_error_details,
        },
    )
