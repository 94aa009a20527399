from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, status

from wave_gateway.api.common import call_wave, get_wave_client, json_body, mutation_entity, resolve_context
from wave_gateway.core.config import Settings, get_settings
from wave_gateway.schemas.wave import CreateTransactionRequest, TransactionRecord, TransactionResponse
from wave_gateway.services.business_config import BusinessEntry
from wave_gateway.services.wave_client import WaveClient
from wave_gateway.services.wave_queries import MONEY_TRANSACTION_CREATE_MUTATION
from wave_gateway.utils.validators import today_utc


router = APIRouter(prefix="/wave/transactions", tags=["transactions"])
logger = logging.getLogger("wave_gateway.api.transactions")

DEFAULT_DESCRIPTION = "API Transaction"


@router.post(
    "/create",
    response_model=TransactionResponse,
    summary="Create Money Transaction",
    description=(
        "Posts a two-leg money transaction. Account ids default to the business's configured "
        "anchor and line-item accounts."
    ),
)
async def create_transaction(
    body: CreateTransactionRequest = Depends(json_body(CreateTransactionRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> TransactionResponse:
    entries = []
    if body.anchor_account_id is None:
        entries.append(BusinessEntry.ANCHOR_ACCOUNT)
    if body.line_item_account_id is None:
        entries.append(BusinessEntry.LINE_ITEM_ACCOUNT)
    config = resolve_context(settings, body, *entries)

    anchor_account_id = body.anchor_account_id or config.anchor_account_id
    line_item_account_id = body.line_item_account_id or config.line_item_account_id
    transaction_date = (body.transaction_date or today_utc()).isoformat()
    description = body.description or DEFAULT_DESCRIPTION

    transaction_input: dict[str, Any] = {
        "businessId": config.business_id,
        "date": transaction_date,
        "description": description,
        "anchor": {
            "accountId": anchor_account_id,
            "amount": body.amount,
            "direction": body.direction.value,
        },
        "lineItems": [
            {
                "accountId": line_item_account_id,
                "amount": body.amount,
                "balance": body.balance_direction.value,
            }
        ],
    }
    if body.external_id:
        transaction_input["externalId"] = body.external_id

    data = await call_wave(
        client,
        MONEY_TRANSACTION_CREATE_MUTATION,
        {"input": transaction_input},
        operation="MoneyTransactionCreate",
        failure_message="Unexpected error while creating money transaction in Wave",
    )
    transaction = mutation_entity(
        data, "moneyTransactionCreate", "transaction", status_code=status.HTTP_400_BAD_REQUEST
    )
    logger.info(
        "money_transaction_created",
        extra={"transaction_id": transaction["id"], "direction": body.direction.value},
    )
    return TransactionResponse(
        business_key=config.key,
        business_id=config.business_id,
        transaction=TransactionRecord(
            id=transaction["id"],
            external_id=body.external_id,
            date=transaction_date,
            description=description,
            amount=body.amount,
            direction=body.direction,
            balance_direction=body.balance_direction,
            anchor_account_id=anchor_account_id,
            line_item_account_id=line_item_account_id,
        ),
    )
