from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from wave_gateway.api.common import (
    business_connection,
    call_wave,
    get_wave_client,
    json_body,
    mutation_entity,
    resolve_context,
)
from wave_gateway.core.config import Settings, get_settings
from wave_gateway.schemas.wave import (
    AddPaymentRequest,
    AddPaymentResponse,
    ApproveInvoiceRequest,
    CreateInvoiceRequest,
    InvoiceResponse,
    ListInvoicesRequest,
    ListInvoicesResponse,
    PaymentRecord,
)
from wave_gateway.services.business_config import BusinessConfig, BusinessEntry
from wave_gateway.services.wave_client import WaveClient, WaveError
from wave_gateway.services.wave_mappers import edge_nodes, map_invoice, map_page_info
from wave_gateway.services.wave_queries import (
    APPROVE_INVOICE_MUTATION,
    CREATE_INVOICE_MUTATION,
    INVOICE_BY_ID_QUERY,
    INVOICE_BY_NUMBER_QUERY,
    LIST_INVOICES_QUERY,
    MONEY_TRANSACTION_CREATE_MUTATION,
)
from wave_gateway.utils.validators import resolve_invoice_dates, today_utc


router = APIRouter(prefix="/wave/invoices", tags=["invoices"])
logger = logging.getLogger("wave_gateway.api.invoices")

DEFAULT_CURRENCY = "USD"
REFETCH_FAILED = "Payment created but failed to refetch updated invoice"


def build_invoice_input(
    body: CreateInvoiceRequest,
    config: BusinessConfig,
    *,
    today: Optional[date] = None,
) -> dict[str, Any]:
    """Build Wave's ``InvoiceCreateInput`` with date, currency and product defaults applied."""
    invoice_date, due_date = resolve_invoice_dates(body.invoice_date, body.due_date, today=today)
    items = [
        {
            "productId": item.product_id or config.generic_product_id,
            "description": item.description,
            "quantity": item.quantity,
            "unitPrice": item.unit_price,
        }
        for item in body.items
    ]
    payload: dict[str, Any] = {
        "businessId": config.business_id,
        "customerId": body.customer_id,
        "currency": body.currency_code or DEFAULT_CURRENCY,
        "invoiceDate": invoice_date.isoformat(),
        "dueDate": due_date.isoformat(),
        "items": items,
    }
    if body.notes:
        payload["memo"] = body.notes
    return payload


def payment_external_id(invoice_id: str, payment_date: date, amount: float) -> str:
    return f"invoice:{invoice_id}:{payment_date.isoformat()}:{amount:.2f}"


@router.post(
    "/create",
    response_model=InvoiceResponse,
    summary="Create Invoice",
    description="Creates a draft invoice for an existing customer.",
)
async def create_invoice(
    body: CreateInvoiceRequest = Depends(json_body(CreateInvoiceRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> InvoiceResponse:
    entries = [BusinessEntry.GENERIC_PRODUCT] if any(item.product_id is None for item in body.items) else []
    config = resolve_context(settings, body, *entries)
    invoice_input = build_invoice_input(body, config)

    data = await call_wave(
        client,
        CREATE_INVOICE_MUTATION,
        {"input": invoice_input},
        operation="CreateInvoice",
        failure_message="Unexpected error while creating invoice in Wave",
    )
    node = mutation_entity(data, "invoiceCreate", "invoice", status_code=status.HTTP_400_BAD_REQUEST)
    logger.info(
        "invoice_created",
        extra={"invoice_id": node.get("id"), "items": len(invoice_input["items"])},
    )
    return InvoiceResponse(
        business_key=config.key,
        business_id=config.business_id,
        invoice=map_invoice(node),
    )


@router.post(
    "/approve",
    response_model=InvoiceResponse,
    summary="Approve Invoice",
)
async def approve_invoice(
    body: ApproveInvoiceRequest = Depends(json_body(ApproveInvoiceRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> InvoiceResponse:
    config = resolve_context(settings, body)
    data = await call_wave(
        client,
        APPROVE_INVOICE_MUTATION,
        {"input": {"invoiceId": body.invoice_id}},
        operation="InvoiceApprove",
        failure_message="Unexpected error while approving invoice in Wave",
    )
    node = mutation_entity(
        data, "invoiceApprove", "invoice", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return InvoiceResponse(
        business_key=config.key,
        business_id=config.business_id,
        invoice=map_invoice(node),
    )


async def _lookup_invoice(
    client: WaveClient,
    config: BusinessConfig,
    body: AddPaymentRequest,
) -> Optional[dict[str, Any]]:
    failure_message = "Unexpected error while looking up invoice in Wave"
    if body.invoice_id:
        data = await call_wave(
            client,
            INVOICE_BY_ID_QUERY,
            {"businessId": config.business_id, "invoiceId": body.invoice_id},
            operation="InvoiceById",
            failure_message=failure_message,
        )
        business = data.get("business") or {}
        node = business.get("invoice")
        return node if isinstance(node, dict) else None

    data = await call_wave(
        client,
        INVOICE_BY_NUMBER_QUERY,
        {"businessId": config.business_id, "invoiceNumber": body.invoice_number},
        operation="InvoiceByNumber",
        failure_message=failure_message,
    )
    business = data.get("business") or {}
    nodes = edge_nodes(business.get("invoices"))
    return nodes[0] if nodes else None


async def _refetch_invoice(
    client: WaveClient,
    config: BusinessConfig,
    invoice_id: str,
    transaction_id: str,
) -> dict[str, Any]:
    try:
        data = await client.execute(
            INVOICE_BY_ID_QUERY,
            {"businessId": config.business_id, "invoiceId": invoice_id},
            operation="InvoiceById",
        )
    except WaveError as exc:
        node, reason = None, str(exc)
    else:
        business = data.get("business") or {}
        node, reason = business.get("invoice"), "Wave returned no invoice"

    if not isinstance(node, dict):
        logger.error(
            "payment_refetch_failed",
            extra={"invoice_id": invoice_id, "transaction_id": transaction_id, "reason": reason},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": REFETCH_FAILED,
                "details": f"Transaction {transaction_id} was recorded in Wave; {reason}",
            },
        )
    return node


@router.post(
    "/add-payment",
    response_model=AddPaymentResponse,
    summary="Add Invoice Payment",
    description=(
        "Records a payment against an invoice as a money transaction that deposits into the "
        "anchor account and credits the sales account, then returns the refreshed invoice."
    ),
)
async def add_payment(
    body: AddPaymentRequest = Depends(json_body(AddPaymentRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> AddPaymentResponse:
    config = resolve_context(settings, body, BusinessEntry.ANCHOR_ACCOUNT, BusinessEntry.SALES_ACCOUNT)

    invoice_node = await _lookup_invoice(client, config, body)
    if invoice_node is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")

    invoice_id = invoice_node["id"]
    payment_date = body.payment_date or today_utc()
    external_id = body.external_id or payment_external_id(invoice_id, payment_date, body.amount)
    reference = invoice_node.get("invoiceNumber") or invoice_id
    description = f"Payment for invoice {reference} ({body.payment_method.value})"

    transaction_input = {
        "businessId": config.business_id,
        "externalId": external_id,
        "date": payment_date.isoformat(),
        "description": description,
        "anchor": {
            "accountId": config.anchor_account_id,
            "amount": body.amount,
            "direction": "DEPOSIT",
        },
        "lineItems": [
            {
                "accountId": config.sales_account_id,
                "amount": body.amount,
                "balance": "INCREASE",
            }
        ],
    }
    data = await call_wave(
        client,
        MONEY_TRANSACTION_CREATE_MUTATION,
        {"input": transaction_input},
        operation="MoneyTransactionCreate",
        failure_message="Failed to register payment in Wave",
    )
    transaction = mutation_entity(
        data, "moneyTransactionCreate", "transaction", status_code=status.HTTP_400_BAD_REQUEST
    )
    transaction_id = transaction["id"]
    logger.info(
        "invoice_payment_recorded",
        extra={"invoice_id": invoice_id, "transaction_id": transaction_id, "external_id": external_id},
    )

    refreshed = map_invoice(await _refetch_invoice(client, config, invoice_id, transaction_id))
    return AddPaymentResponse(
        business_key=config.key,
        business_id=config.business_id,
        payment=PaymentRecord(
            id=transaction_id,
            amount=body.amount,
            currency=refreshed.currency or DEFAULT_CURRENCY,
            date=payment_date.isoformat(),
            description=description,
            external_id=external_id,
            method=body.payment_method,
        ),
        invoice=refreshed,
    )


@router.post(
    "/list",
    response_model=ListInvoicesResponse,
    summary="List Invoices",
)
async def list_invoices(
    body: ListInvoicesRequest = Depends(json_body(ListInvoicesRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> ListInvoicesResponse:
    config = resolve_context(settings, body)
    failure_message = "Failed to fetch invoices from Wave"
    data = await call_wave(
        client,
        LIST_INVOICES_QUERY,
        {
            "businessId": config.business_id,
            "page": body.page,
            "pageSize": body.page_size,
            "status": body.status.value if body.status else None,
        },
        operation="ListInvoices",
        failure_message=failure_message,
    )
    connection = business_connection(data, "invoices", failure_message=failure_message, allow_empty=True)
    page_info = map_page_info(connection, default_page=body.page)
    return ListInvoicesResponse(
        business_key=config.key,
        business_id=config.business_id,
        page=page_info.current_page,
        page_size=body.page_size,
        total_count=page_info.total_count,
        total_pages=page_info.total_pages,
        invoices=[map_invoice(node) for node in edge_nodes(connection)],
    )
