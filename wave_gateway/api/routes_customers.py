from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from fastapi import APIRouter, Depends, status

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
    CustomerSummary,
    EnsureCustomerRequest,
    EnsureCustomerResponse,
    ListCustomersRequest,
    ListCustomersResponse,
    PageInfo,
)
from wave_gateway.services.wave_client import WaveClient
from wave_gateway.services.wave_mappers import edge_nodes, map_customer, map_page_info, matches_search
from wave_gateway.services.wave_queries import CUSTOMER_CREATE_MUTATION, LIST_CUSTOMERS_QUERY


router = APIRouter(prefix="/wave/customers", tags=["customers"])
logger = logging.getLogger("wave_gateway.api.customers")

ENSURE_LOOKUP_PAGE_SIZE = 200


def find_existing_customer(
    customers: Iterable[CustomerSummary],
    *,
    name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
) -> Optional[CustomerSummary]:
    """First customer with the same email, a name containing ``name`` or a phone containing ``phone``."""
    wanted_email = (email or "").lower()
    wanted_name = (name or "").lower()
    wanted_phone = (phone or "").lower()
    for customer in customers:
        if wanted_email and (customer.email or "").lower() == wanted_email:
            return customer
        if wanted_name and wanted_name in (customer.name or "").lower():
            return customer
        if wanted_phone and wanted_phone in (customer.phone or "").lower():
            return customer
    return None


@router.post(
    "/list",
    response_model=ListCustomersResponse,
    summary="List Customers",
)
async def list_customers(
    body: ListCustomersRequest = Depends(json_body(ListCustomersRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> ListCustomersResponse:
    config = resolve_context(settings, body)
    failure_message = "Failed to list customers from Wave"
    data = await call_wave(
        client,
        LIST_CUSTOMERS_QUERY,
        {"businessId": config.business_id, "page": body.page, "pageSize": body.page_size},
        operation="ListCustomers",
        failure_message=failure_message,
    )
    connection = business_connection(data, "customers", failure_message=failure_message)
    customers = [
        map_customer(node)
        for node in edge_nodes(connection)
        if matches_search(body.search, node.get("name"), node.get("email"), node.get("phone"))
    ]
    page_info = map_page_info(connection, default_page=body.page)
    if body.search:
        page_info = PageInfo(
            current_page=page_info.current_page,
            total_pages=page_info.total_pages,
            total_count=len(customers),
        )
    return ListCustomersResponse(
        business_key=config.key,
        business_id=config.business_id,
        page_info=page_info,
        customers=customers,
    )


@router.post(
    "/ensure",
    response_model=EnsureCustomerResponse,
    summary="Find Or Create Customer",
    description=(
        "Returns the first customer matching the email exactly, or whose name or phone contains "
        "the given value; creates the customer when nothing matches."
    ),
)
async def ensure_customer(
    body: EnsureCustomerRequest = Depends(json_body(EnsureCustomerRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> EnsureCustomerResponse:
    config = resolve_context(settings, body)
    failure_message = "Unexpected error in customers endpoint"
    data = await call_wave(
        client,
        LIST_CUSTOMERS_QUERY,
        {"businessId": config.business_id, "page": 1, "pageSize": ENSURE_LOOKUP_PAGE_SIZE},
        operation="ListCustomers",
        failure_message=failure_message,
    )
    connection = business_connection(data, "customers", failure_message="Failed to list customers from Wave")
    existing = find_existing_customer(
        (map_customer(node) for node in edge_nodes(connection)),
        name=body.name,
        email=body.email,
        phone=body.phone,
    )
    if existing is not None:
        logger.info("customer_matched", extra={"customer_id": existing.id})
        return EnsureCustomerResponse(
            business_key=config.key,
            business_id=config.business_id,
            created=False,
            customer=existing,
        )

    customer_input: dict[str, Any] = {
        "businessId": config.business_id,
        "name": body.name or body.email,
    }
    if body.email:
        customer_input["email"] = body.email
    if body.phone:
        customer_input["phone"] = body.phone

    created = await call_wave(
        client,
        CUSTOMER_CREATE_MUTATION,
        {"input": customer_input},
        operation="CustomerCreate",
        failure_message=failure_message,
    )
    node = mutation_entity(
        created, "customerCreate", "customer", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    logger.info("customer_created", extra={"customer_id": node.get("id")})
    return EnsureCustomerResponse(
        business_key=config.key,
        business_id=config.business_id,
        created=True,
        customer=map_customer(node),
    )
