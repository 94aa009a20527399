"""Shared fixtures: a configured app and a scripted Wave GraphQL endpoint."""

from __future__ import annotations

import json
import re
from decimal import Decimal
from typing import Any, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from wave_gateway.api.common import get_wave_client
from wave_gateway.core.config import Settings, get_settings
from wave_gateway.main import create_app
from wave_gateway.services.wave_client import WaveClient


SECRET = "test-internal-secret"
WAVE_URL = "https://wave.test/graphql/public"

OPERATION_RE = re.compile(r"\b(?:query|mutation)\s+(\w+)")


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "INTERNAL_API_SECRET": SECRET,
        "WAVE_ACCESS_TOKEN": "wave-token",
        "WAVE_GRAPHQL_URL": WAVE_URL,
        "wave_business_id_manna": "biz-manna",
        "wave_anchor_account_id_manna": "anchor-manna",
        "wave_sales_account_id_manna": "sales-manna",
        "wave_generic_product_id_manna": "product-generic-manna",
        "wave_line_item_account_id_manna": "line-manna",
        "wave_business_id_bako": "biz-bako",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def money(value: Optional[str], currency: str = "USD") -> Optional[dict[str, Any]]:
    if value is None:
        return None
    return {"value": value, "currency": {"code": currency}}


def invoice_node(
    invoice_id: str = "inv-1",
    *,
    number: Optional[str] = "1001",
    status: str = "DRAFT",
    total: Optional[str] = "100.00",
    amount_due: Optional[str] = "100.00",
    currency: str = "USD",
) -> dict[str, Any]:
    paid = None
    if total is not None and amount_due is not None:
        paid = str(Decimal(total) - Decimal(amount_due))
    return {
        "id": invoice_id,
        "invoiceNumber": number,
        "status": status,
        "createdAt": "2024-01-28T10:00:00Z",
        "invoiceDate": "2024-01-28",
        "dueDate": "2024-02-04",
        "viewUrl": f"https://wave.test/invoices/{invoice_id}",
        "pdfUrl": None,
        "total": money(total, currency),
        "amountDue": money(amount_due, currency),
        "amountPaid": money(paid, currency),
        "customer": {"id": "cust-1", "name": "Acme Bakery", "email": "billing@acme.test"},
    }


def connection(nodes: list[dict[str, Any]], *, page: int = 1, total_pages: int = 1) -> dict[str, Any]:
    return {
        "pageInfo": {"currentPage": page, "totalPages": total_pages, "totalCount": len(nodes)},
        "edges": [{"node": node} for node in nodes],
    }


class FakeWave:
    """Scripted Wave endpoint keyed by GraphQL operation name.

    Each operation replays its queued responses in order; the last one is
    reused once the queue is down to a single entry.
    """

    def __init__(self) -> None:
        self.responses: dict[str, list[Any]] = {}
        self.calls: list[dict[str, Any]] = []

    def respond(
        self,
        operation: str,
        data: Any = None,
        *,
        errors: Optional[list[dict[str, Any]]] = None,
        status_code: int = 200,
    ) -> None:
        payload: dict[str, Any] = {"data": data}
        if errors is not None:
            payload["errors"] = errors
        self.responses.setdefault(operation, []).append((status_code, payload))

    def respond_text(self, operation: str, text: str, *, status_code: int = 200) -> None:
        self.responses.setdefault(operation, []).append((status_code, text))

    def fail(self, operation: str, exc: Exception) -> None:
        self.responses.setdefault(operation, []).append(exc)

    def operations(self) -> list[str]:
        return [call["operation"] for call in self.calls]

    def variables(self, operation: str) -> list[dict[str, Any]]:
        return [call["variables"] for call in self.calls if call["operation"] == operation]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        match = OPERATION_RE.search(body["query"])
        operation = match.group(1) if match else "anonymous"
        self.calls.append(
            {
                "operation": operation,
                "variables": body.get("variables"),
                "headers": dict(request.headers),
                "url": str(request.url),
            }
        )
        queue = self.responses.get(operation)
        if not queue:
            return httpx.Response(200, json={"errors": [{"message": f"unscripted operation {operation}"}]})
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        status_code, payload = outcome
        if isinstance(payload, str):
            return httpx.Response(status_code, text=payload)
        return httpx.Response(status_code, json=payload)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_wave() -> FakeWave:
    return FakeWave()


@pytest.fixture
def app(settings: Settings, fake_wave: FakeWave):
    application = create_app()
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_wave_client] = lambda: WaveClient(
        settings, transport=httpx.MockTransport(fake_wave.handler)
    )
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"x-internal-secret": SECRET}
