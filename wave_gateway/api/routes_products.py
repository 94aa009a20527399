from __future__ import annotations

import logging
from typing import Any

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
    CreateProductRequest,
    ListProductsRequest,
    ListProductsResponse,
    PageInfo,
    ProductResponse,
    UpdateProductRequest,
)
from wave_gateway.services.wave_client import WaveClient
from wave_gateway.services.wave_mappers import edge_nodes, map_page_info, map_product, matches_search
from wave_gateway.services.wave_queries import (
    LIST_PRODUCTS_QUERY,
    PRODUCT_CREATE_MUTATION,
    PRODUCT_UPDATE_MUTATION,
)


router = APIRouter(prefix="/wave/products", tags=["products"])
logger = logging.getLogger("wave_gateway.api.products")


@router.post(
    "/list",
    response_model=ListProductsResponse,
    summary="List Products",
    description="Lists one page of the product catalog, optionally filtered by name or description.",
)
async def list_products(
    body: ListProductsRequest = Depends(json_body(ListProductsRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> ListProductsResponse:
    config = resolve_context(settings, body)
    failure_message = "Failed to list products from Wave"
    data = await call_wave(
        client,
        LIST_PRODUCTS_QUERY,
        {"businessId": config.business_id, "page": body.page, "pageSize": body.page_size},
        operation="ListProducts",
        failure_message=failure_message,
    )
    connection = business_connection(data, "products", failure_message=failure_message)
    products = [
        map_product(node)
        for node in edge_nodes(connection)
        if matches_search(body.search, node.get("name"), node.get("description"))
    ]
    page_info = map_page_info(connection, default_page=body.page)
    if body.search:
        page_info = PageInfo(
            current_page=page_info.current_page,
            total_pages=page_info.total_pages,
            total_count=len(products),
        )
    return ListProductsResponse(
        business_key=config.key,
        business_id=config.business_id,
        page_info=page_info,
        products=products,
    )


@router.post(
    "/create",
    response_model=ProductResponse,
    summary="Create Product",
)
async def create_product(
    body: CreateProductRequest = Depends(json_body(CreateProductRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> ProductResponse:
    config = resolve_context(settings, body)
    product_input: dict[str, Any] = {
        "businessId": config.business_id,
        "name": body.name,
        "isSold": body.is_sold,
        "isBought": body.is_bought,
    }
    if body.description is not None:
        product_input["description"] = body.description
    if body.unit_price is not None:
        product_input["unitPrice"] = body.unit_price

    data = await call_wave(
        client,
        PRODUCT_CREATE_MUTATION,
        {"input": product_input},
        operation="ProductCreate",
        failure_message="Unexpected error in products endpoint",
    )
    node = mutation_entity(
        data, "productCreate", "product", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    logger.info("product_created", extra={"product_id": node.get("id")})
    return ProductResponse(
        business_key=config.key,
        business_id=config.business_id,
        product=map_product(node),
    )


@router.post(
    "/update",
    response_model=ProductResponse,
    summary="Update Product",
    description="Patches the provided fields of an existing product; omitted fields are left unchanged.",
)
async def update_product(
    body: UpdateProductRequest = Depends(json_body(UpdateProductRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> ProductResponse:
    config = resolve_context(settings, body)
    product_input: dict[str, Any] = {"id": body.product_id}
    if body.name is not None:
        product_input["name"] = body.name
    if body.description is not None:
        product_input["description"] = body.description
    if body.unit_price is not None:
        product_input["unitPrice"] = body.unit_price
    if body.is_sold is not None:
        product_input["isSold"] = body.is_sold
    if body.is_bought is not None:
        product_input["isBought"] = body.is_bought

    data = await call_wave(
        client,
        PRODUCT_UPDATE_MUTATION,
        {"input": product_input},
        operation="ProductUpdate",
        failure_message="Unexpected error in products endpoint",
    )
    node = mutation_entity(
        data, "productUpdate", "product", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    logger.info("product_updated", extra={"product_id": node.get("id"), "fields": sorted(product_input)})
    return ProductResponse(
        business_key=config.key,
        business_id=config.business_id,
        product=map_product(node),
    )
