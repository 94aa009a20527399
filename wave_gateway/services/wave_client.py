from __future__ import annotations

from time import perf_counter
from typing import Any, Mapping, Optional

import httpx

from wave_gateway.core import logging as logging_utils
from wave_gateway.core.config import Settings, get_settings
from wave_gateway.core.http import describe_response, get_async_client


class WaveError(RuntimeError):
    pass


class MissingCredential(WaveError):
    def __init__(self, name: str = "WAVE_ACCESS_TOKEN"):
        self.name = name
        super().__init__(f"{name} is not set")


class WaveTransportError(WaveError):
    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        body: Optional[str] = None,
    ):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(message)


class WaveTimeoutError(WaveError):
    pass


class WaveGraphQLError(WaveError):
    def __init__(self, messages: list[str]):
        self.messages = messages or ["Unknown error"]
        super().__init__(f"Wave GraphQL error: {self.messages[0]}")


class WaveProtocolError(WaveError):
    pass


class WaveClient:
    """Single-shot client for Wave's public GraphQL endpoint."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport

    async def execute(
        self,
        query: str,
        variables: Optional[Mapping[str, Any]] = None,
        *,
        operation: str,
    ) -> dict[str, Any]:
        token = self.settings.wave_access_token
        if not token:
            raise MissingCredential("WAVE_ACCESS_TOKEN")

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        body = {"query": query, "variables": dict(variables or {})}
        logging_utils.log_wave_call_started(operation=operation, variables=body["variables"])

        start = perf_counter()
        async with get_async_client(self.settings, transport=self.transport) as client:
            try:
                response = await client.post(self.settings.wave_graphql_url, json=body, headers=headers)
            except httpx.TimeoutException as exc:
                latency_ms = (perf_counter() - start) * 1000
                self._log_failure(operation, None, latency_ms, "timeout", str(exc))
                raise WaveTimeoutError(
                    f"Wave GraphQL request timed out after {self.settings.http_timeout_seconds}s"
                ) from exc
            except httpx.HTTPError as exc:
                latency_ms = (perf_counter() - start) * 1000
                self._log_failure(operation, None, latency_ms, "transport_error", str(exc))
                raise WaveTransportError(f"Wave GraphQL request failed: {exc}") from exc
        latency_ms = (perf_counter() - start) * 1000

        if not response.is_success:
            self._log_failure(
                operation,
                response.status_code,
                latency_ms,
                "http_error",
                response.reason_phrase,
                response.text,
            )
            raise WaveTransportError(
                f"Wave GraphQL request failed: {describe_response(response)}",
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            self._log_failure(
                operation, response.status_code, latency_ms, "invalid_json", str(exc), response.text
            )
            raise WaveTransportError(
                "Wave GraphQL response is not valid JSON",
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
            ) from exc

        if not isinstance(payload, dict):
            self._log_failure(operation, response.status_code, latency_ms, "protocol_error", "non-object body")
            raise WaveProtocolError("Wave GraphQL response missing data")

        errors = payload.get("errors")
        if errors:
            messages = _error_messages(errors)
            self._log_failure(
                operation, response.status_code, latency_ms, "graphql_error", messages[0], errors
            )
            raise WaveGraphQLError(messages)

        data = payload.get("data")
        if data is None:
            self._log_failure(operation, response.status_code, latency_ms, "protocol_error", "missing data")
            raise WaveProtocolError("Wave GraphQL response missing data")

        logging_utils.log_wave_call_finished(
            operation=operation,
            wave_status_code=response.status_code,
            latency_ms=latency_ms,
            result="success",
        )
        return data

    def _log_failure(
        self,
        operation: str,
        status_code: Optional[int],
        latency_ms: float,
        result: str,
        message: Optional[str],
        details: Any = None,
    ) -> None:
        logging_utils.log_wave_call_finished(
            operation=operation,
            wave_status_code=status_code,
            latency_ms=latency_ms,
            result=result,
            error_message=message,
            wave_error_details=details,
        )


def _error_messages(errors: Any) -> list[str]:
    if not isinstance(errors, list):
        return [str(errors)]
    messages: list[str] = []
    for error in errors:
        if isinstance(error, dict) and error.get("message"):
            messages.append(str(error["message"]))
        else:
            messages.append("Unknown error")
    return messages
