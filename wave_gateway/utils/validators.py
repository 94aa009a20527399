from __future__ import annotations

import calendar
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, TypeVar

from fastapi import HTTPException, Request, status
from pydantic import BaseModel, ValidationError


ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_DUE_DAYS = 7

ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


async def read_json_body(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON body",
        ) from exc
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a JSON object",
        )
    return payload


def first_error_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request payload"
    error = errors[0]
    cause = (error.get("ctx") or {}).get("error")
    if cause is not None:
        return str(cause)
    location = ".".join(str(part) for part in error.get("loc", ()))
    if location:
        return f"{location}: {error['msg']}"
    return str(error["msg"])


def validate_body(model: type[ModelT], payload: dict[str, Any]) -> ModelT:
    """Validate ``payload`` against ``model``, reporting only the first failure."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=first_error_message(exc),
        ) from exc


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


def require_positive_number(value: Any, message: str) -> float:
    if not is_number(value) or value <= 0:
        raise ValueError(message)
    return value


def require_non_negative_number(value: Any, message: str) -> float:
    if not is_number(value) or value < 0:
        raise ValueError(message)
    return value


def require_integer(value: Any, message: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(message)
    return value


def require_text(value: Any, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(message)
    return value.strip()


def optional_text(value: Any, message: str) -> Optional[str]:
    """Trim an optional string; blank strings count as absent."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(message)
    trimmed = value.strip()
    return trimmed or None


def optional_bool(value: Any, message: str) -> Optional[bool]:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValueError(message)
    return value


def parse_iso_date(value: Any, field_name: str) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, date):
        return value
    text = value.strip() if isinstance(value, str) else ""
    if ISO_DATE_RE.fullmatch(text):
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise ValueError(f"{field_name} must be a date in YYYY-MM-DD format")


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def resolve_invoice_dates(
    invoice_date: Optional[date],
    due_date: Optional[date],
    *,
    today: Optional[date] = None,
) -> tuple[date, date]:
    resolved_invoice_date = invoice_date or today or today_utc()
    resolved_due_date = due_date or resolved_invoice_date + timedelta(days=DEFAULT_DUE_DAYS)
    return resolved_invoice_date, resolved_due_date


def month_period(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
