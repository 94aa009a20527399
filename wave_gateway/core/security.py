from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from wave_gateway.core.config import Settings, get_settings


logger = logging.getLogger("wave_gateway.security")

INTERNAL_SECRET_HEADER = "x-internal-secret"


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    if not value:
        return "[redacted]"
    trimmed = value.strip()
    if len(trimmed) <= visible:
        return "*" * len(trimmed)
    return f"{trimmed[:visible]}***"


def secrets_match(provided: Optional[str], expected: str) -> bool:
    if provided is None:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_internal_secret(
    internal_secret: Optional[str] = Header(default=None, alias=INTERNAL_SECRET_HEADER),
    settings: Settings = Depends(get_settings),
) -> None:
    expected = settings.internal_api_secret
    if not expected:
        logger.error("internal_secret_not_configured", extra={"entry": "INTERNAL_API_SECRET"})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
    if not secrets_match(internal_secret, expected):
        logger.warning(
            "internal_secret_rejected",
            extra={"provided": mask_secret(internal_secret) if internal_secret else None},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
