from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from wave_gateway.api.common import business_connection, call_wave, get_wave_client, json_body, resolve_context
from wave_gateway.core.config import Settings, get_settings
from wave_gateway.schemas.wave import MonthlySummaryRequest, MonthlySummaryResponse, SummaryPeriod
from wave_gateway.services.business_config import BusinessConfig
from wave_gateway.services.wave_client import WaveClient
from wave_gateway.services.wave_mappers import edge_nodes, map_page_info, summarize_invoices
from wave_gateway.services.wave_queries import MONTHLY_INVOICES_QUERY
from wave_gateway.utils.validators import month_period


router = APIRouter(prefix="/wave/summary", tags=["reports"])
logger = logging.getLogger("wave_gateway.api.reports")

SUMMARY_PAGE_SIZE = 200
MAX_SUMMARY_PAGES = 50
FAILURE_MESSAGE = "Failed to fetch monthly invoices from Wave"


async def fetch_month_invoices(
    client: WaveClient,
    config: BusinessConfig,
    *,
    start_date: str,
    end_date: str,
) -> list[dict[str, Any]]:
    """Collect every invoice dated within the period, one page at a time."""
    nodes: list[dict[str, Any]] = []
    page = 1
    while True:
        data = await call_wave(
            client,
            MONTHLY_INVOICES_QUERY,
            {
                "businessId": config.business_id,
                "page": page,
                "pageSize": SUMMARY_PAGE_SIZE,
                "startDate": start_date,
                "endDate": end_date,
            },
            operation="MonthlyInvoices",
            failure_message=FAILURE_MESSAGE,
        )
        connection = business_connection(data, "invoices", failure_message=FAILURE_MESSAGE)
        page_nodes = edge_nodes(connection)
        nodes.extend(page_nodes)

        total_pages = map_page_info(connection, default_page=page).total_pages
        if not page_nodes or page >= total_pages:
            return nodes
        if page >= MAX_SUMMARY_PAGES:
            logger.error(
                "monthly_summary_page_limit",
                extra={"pages": page, "total_pages": total_pages, "start_date": start_date},
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={
                    "error": FAILURE_MESSAGE,
                    "details": f"More than {MAX_SUMMARY_PAGES * SUMMARY_PAGE_SIZE} invoices in period",
                },
            )
        page += 1


@router.post(
    "/month",
    response_model=MonthlySummaryResponse,
    summary="Monthly Invoice Summary",
    description="Totals and status counts for every invoice dated within a calendar month.",
)
async def monthly_summary(
    body: MonthlySummaryRequest = Depends(json_body(MonthlySummaryRequest)),
    settings: Settings = Depends(get_settings),
    client: WaveClient = Depends(get_wave_client),
) -> MonthlySummaryResponse:
    config = resolve_context(settings, body)
    start, end = month_period(body.year, body.month)
    nodes = await fetch_month_invoices(
        client,
        config,
        start_date=start.isoformat(),
        end_date=end.isoformat(),
    )
    rollup = summarize_invoices(nodes)
    logger.info(
        "monthly_summary_computed",
        extra={"year": body.year, "month": body.month, "invoices": rollup.invoice_count},
    )
    return MonthlySummaryResponse(
        business_key=config.key,
        business_id=config.business_id,
        year=body.year,
        month=body.month,
        period=SummaryPeriod(start_date=start.isoformat(), end_date=end.isoformat()),
        totals=rollup.totals(),
        counts=rollup.status_counts(),
        currency=rollup.currency,
    )
