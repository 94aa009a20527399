from __future__ import annotations

from typing import Optional

import httpx

from wave_gateway.core.config import Settings, get_settings


def get_async_client(
    settings: Settings | None = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    settings = settings or get_settings()
    timeout = httpx.Timeout(settings.http_timeout_seconds)
    return httpx.AsyncClient(timeout=timeout, transport=transport)


def describe_response(response: httpx.Response) -> str:
    body = response.text
    return f"{response.status_code} {response.reason_phrase} - {body or 'No response body'}"
