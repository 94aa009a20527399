"""Flatten Wave GraphQL nodes into the gateway's response models."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from wave_gateway.schemas.wave import (
    CustomerSummary,
    InvoiceSummary,
    PageInfo,
    ProductSummary,
    SummaryCounts,
    SummaryTotals,
)


ZERO = Decimal("0")

COUNTED_STATUSES = ("DRAFT", "APPROVED", "SENT", "PAID", "OVERDUE")


def to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def money_value(money: Any) -> Optional[Decimal]:
    if not isinstance(money, dict):
        return None
    return to_decimal(money.get("value"))


def money_currency(money: Any) -> Optional[str]:
    if not isinstance(money, dict):
        return None
    currency = money.get("currency")
    if not isinstance(currency, dict):
        return None
    return currency.get("code")


def decimal_to_float(value: Optional[Decimal]) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def edge_nodes(connection: Any) -> list[dict[str, Any]]:
    if not isinstance(connection, dict):
        return []
    edges = connection.get("edges") or []
    nodes: list[dict[str, Any]] = []
    for edge in edges:
        if isinstance(edge, dict) and isinstance(edge.get("node"), dict):
            nodes.append(edge["node"])
    return nodes


def map_page_info(connection: Any, *, default_page: int = 1) -> PageInfo:
    page_info = connection.get("pageInfo") if isinstance(connection, dict) else None
    page_info = page_info if isinstance(page_info, dict) else {}
    return PageInfo(
        current_page=page_info.get("currentPage") or default_page,
        total_pages=page_info.get("totalPages") or 0,
        total_count=page_info.get("totalCount") or 0,
    )


def map_invoice(node: dict[str, Any]) -> InvoiceSummary:
    customer = node.get("customer") or {}
    total = node.get("total")
    return InvoiceSummary(
        id=node["id"],
        invoice_number=node.get("invoiceNumber"),
        status=node.get("status"),
        invoice_date=node.get("invoiceDate"),
        due_date=node.get("dueDate"),
        created_at=node.get("createdAt"),
        total=decimal_to_float(money_value(total)),
        amount_due=decimal_to_float(money_value(node.get("amountDue"))),
        amount_paid=decimal_to_float(money_value(node.get("amountPaid"))),
        currency=money_currency(total) or money_currency(node.get("amountDue")),
        customer_id=customer.get("id"),
        customer_name=customer.get("name"),
        customer_email=customer.get("email"),
        view_url=node.get("viewUrl"),
        pdf_url=node.get("pdfUrl"),
    )


def map_product(node: dict[str, Any]) -> ProductSummary:
    return ProductSummary(
        id=node["id"],
        name=node.get("name"),
        description=node.get("description"),
        unit_price=decimal_to_float(to_decimal(node.get("unitPrice"))),
        is_sold=node.get("isSold"),
        is_bought=node.get("isBought"),
        is_archived=node.get("isArchived"),
    )


def map_customer(node: dict[str, Any]) -> CustomerSummary:
    return CustomerSummary(
        id=node["id"],
        name=node.get("name"),
        email=node.get("email"),
        phone=node.get("phone"),
    )


def normalize_input_errors(errors: Any) -> list[dict[str, Any]]:
    """Return Wave ``inputErrors`` as ``{message, path, code}`` dicts, keeping every entry."""
    if not isinstance(errors, list):
        return []
    normalized: list[dict[str, Any]] = []
    for error in errors:
        if isinstance(error, dict):
            normalized.append(
                {
                    "message": error.get("message") or "Unknown error",
                    "path": error.get("path"),
                    "code": error.get("code"),
                }
            )
        else:
            normalized.append({"message": str(error), "path": None, "code": None})
    return normalized


def matches_search(search: Optional[str], *values: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(needle in (value or "").lower() for value in values)


@dataclass
class InvoiceRollup:
    total_invoiced: Decimal = ZERO
    total_paid: Decimal = ZERO
    total_outstanding: Decimal = ZERO
    counts: dict[str, int] = field(default_factory=lambda: {status: 0 for status in COUNTED_STATUSES})
    other_count: int = 0
    invoice_count: int = 0
    currency: Optional[str] = None

    def totals(self) -> SummaryTotals:
        return SummaryTotals(
            total_invoiced=float(self.total_invoiced),
            total_paid=float(self.total_paid),
            total_outstanding=float(self.total_outstanding),
        )

    def status_counts(self) -> SummaryCounts:
        return SummaryCounts(
            total_invoices=self.invoice_count,
            draft_count=self.counts["DRAFT"],
            approved_count=self.counts["APPROVED"],
            sent_count=self.counts["SENT"],
            paid_count=self.counts["PAID"],
            overdue_count=self.counts["OVERDUE"],
            other_count=self.other_count,
        )


def summarize_invoices(nodes: Iterable[dict[str, Any]]) -> InvoiceRollup:
    """Sum invoice money and count statuses.

    Paid amounts are ``total - amountDue`` per invoice; missing money values
    count as zero. The currency is the first one reported by any invoice total.
    """
    rollup = InvoiceRollup()
    for node in nodes:
        total = money_value(node.get("total")) or ZERO
        amount_due = money_value(node.get("amountDue")) or ZERO

        rollup.invoice_count += 1
        rollup.total_invoiced += total
        rollup.total_paid += total - amount_due
        rollup.total_outstanding += amount_due

        if rollup.currency is None:
            rollup.currency = money_currency(node.get("total"))

        status = node.get("status")
        if status in rollup.counts:
            rollup.counts[status] += 1
        else:
            rollup.other_count += 1
    return rollup
