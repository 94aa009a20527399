from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from fastapi import Depends, HTTPException, Request, status

from wave_gateway.core import logging as logging_utils
from wave_gateway.core.config import Settings, get_settings
from wave_gateway.schemas.wave import BusinessRequest
from wave_gateway.services.business_config import (
    BusinessConfig,
    BusinessEntry,
    MissingConfiguration,
    UnknownBusinessKey,
    resolve_business,
)
from wave_gateway.services.wave_client import WaveClient, WaveError, WaveGraphQLError, WaveTimeoutError
from wave_gateway.services.wave_mappers import normalize_input_errors
from wave_gateway.utils.validators import read_json_body, validate_body


logger = logging.getLogger("wave_gateway.api")

BodyT = TypeVar("BodyT", bound=BusinessRequest)


def get_wave_client(settings: Settings = Depends(get_settings)) -> WaveClient:
    return WaveClient(settings)


def json_body(model: type[BodyT]) -> Callable[[Request], Awaitable[BodyT]]:
    """Build a dependency that parses the raw JSON body and validates it against ``model``."""

    async def dependency(request: Request) -> BodyT:
        payload = await read_json_body(request)
        return validate_body(model, payload)

    return dependency


def resolve_context(
    settings: Settings,
    body: BusinessRequest,
    *entries: BusinessEntry,
) -> BusinessConfig:
    try:
        config = resolve_business(settings, body.business_key, *entries)
    except UnknownBusinessKey as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or missing businessKey",
        ) from exc
    except MissingConfiguration as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Server configuration error", "details": str(exc)},
        ) from exc

    logging_utils.set_request_context(
        business_key=config.key.value,
        business_id=config.business_id,
    )
    return config


def _failure_details(exc: WaveError) -> str:
    if isinstance(exc, WaveGraphQLError):
        return "; ".join(exc.messages)
    return str(exc)


async def call_wave(
    client: WaveClient,
    query: str,
    variables: Optional[Mapping[str, Any]],
    *,
    operation: str,
    failure_message: str,
) -> dict[str, Any]:
    """Run one Wave operation, turning transport-level failures into HTTP errors."""
    try:
        return await client.execute(query, variables, operation=operation)
    except WaveTimeoutError as exc:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail={"error": failure_message, "details": _failure_details(exc)},
        ) from exc
    except WaveError as exc:
        logger.error(
            "wave_operation_failed",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": failure_message, "details": _failure_details(exc)},
        ) from exc


def business_connection(
    data: Mapping[str, Any],
    connection: str,
    *,
    failure_message: str,
    allow_empty: bool = False,
) -> dict[str, Any]:
    """Return ``business.<connection>`` from a Wave query result.

    With ``allow_empty`` a null connection on an existing business reads as
    an empty page; a missing business is always an error.
    """
    business = data.get("business")
    payload = business.get(connection) if isinstance(business, dict) else None
    if payload is None and allow_empty and isinstance(business, dict):
        return {}
    if not isinstance(payload, dict):
        logger.error("wave_business_payload_missing", extra={"connection": connection})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": failure_message, "details": f"Wave returned no {connection} payload"},
        )
    return payload


def mutation_entity(
    data: Mapping[str, Any],
    mutation: str,
    entity: str,
    *,
    status_code: int,
) -> dict[str, Any]:
    """Return the entity of a successful Wave mutation payload.

    A missing payload, ``didSucceed: false``, any ``inputErrors`` or a missing
    entity raise an :class:`HTTPException` with ``status_code`` that carries the
    full upstream error list.
    """
    result = data.get(mutation)
    if not isinstance(result, dict):
        logger.error("wave_mutation_missing_result", extra={"mutation": mutation})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": f"Wave {mutation} returned no result"},
        )

    input_errors = normalize_input_errors(result.get("inputErrors"))
    node = result.get(entity)
    if not result.get("didSucceed") or input_errors or not isinstance(node, dict):
        logger.error(
            "wave_mutation_rejected",
            extra={
                "mutation": mutation,
                "did_succeed": result.get("didSucceed"),
                "input_errors": input_errors,
            },
        )
        detail: dict[str, Any] = {"error": f"Wave {mutation} failed", "inputErrors": input_errors}
        if not input_errors:
            detail["details"] = f"Wave {mutation} did not return a {entity}"
        raise HTTPException(status_code=status_code, detail=detail)
    return node
