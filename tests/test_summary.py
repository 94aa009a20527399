from __future__ import annotations

from decimal import Decimal

from conftest import connection, invoice_node
from wave_gateway.services.wave_mappers import summarize_invoices


MONTH = [
    invoice_node("inv-1", status="DRAFT", total="100.10", amount_due="100.10"),
    invoice_node("inv-2", status="PAID", total="250.00", amount_due="0.00"),
    invoice_node("inv-3", status="SENT", total="80.20", amount_due="30.05"),
    invoice_node("inv-4", status="OVERDUE", total="45.00", amount_due="45.00"),
    invoice_node("inv-5", status="PARTIAL", total="19.99", amount_due="9.99"),
    invoice_node("inv-6", status="APPROVED", total=None, amount_due=None),
]


def test_summarize_invoices_matches_hand_computation():
    rollup = summarize_invoices(MONTH)

    assert rollup.total_invoiced == Decimal("495.29")
    assert rollup.total_paid == Decimal("310.15")
    assert rollup.total_outstanding == Decimal("185.14")
    assert rollup.invoice_count == 6
    assert rollup.counts == {"DRAFT": 1, "APPROVED": 1, "SENT": 1, "PAID": 1, "OVERDUE": 1}
    assert rollup.other_count == 1
    assert rollup.currency == "USD"


def test_summarize_no_invoices():
    rollup = summarize_invoices([])

    assert rollup.total_invoiced == Decimal("0")
    assert rollup.invoice_count == 0
    assert rollup.currency is None


def test_currency_comes_from_first_invoice_with_a_total():
    rollup = summarize_invoices(
        [
            invoice_node("a", total=None, amount_due=None),
            invoice_node("b", total="10", amount_due="0", currency="CAD"),
            invoice_node("c", total="5", amount_due="0", currency="USD"),
        ]
    )

    assert rollup.currency == "CAD"


def test_monthly_summary_reads_every_page(client, auth_headers, fake_wave):
    fake_wave.respond(
        "MonthlyInvoices",
        {"business": {"id": "biz-manna", "invoices": connection(MONTH[:4], page=1, total_pages=2)}},
    )
    fake_wave.respond(
        "MonthlyInvoices",
        {"business": {"id": "biz-manna", "invoices": connection(MONTH[4:], page=2, total_pages=2)}},
    )

    response = client.post(
        "/api/wave/summary/month",
        json={"businessKey": "manna", "year": 2024, "month": 2},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert fake_wave.variables("MonthlyInvoices") == [
        {"businessId": "biz-manna", "page": 1, "pageSize": 200, "startDate": "2024-02-01", "endDate": "2024-02-29"},
        {"businessId": "biz-manna", "page": 2, "pageSize": 200, "startDate": "2024-02-01", "endDate": "2024-02-29"},
    ]
    assert response.json() == {
        "businessKey": "manna",
        "businessId": "biz-manna",
        "year": 2024,
        "month": 2,
        "period": {"startDate": "2024-02-01", "endDate": "2024-02-29"},
        "totals": {"totalInvoiced": 495.29, "totalPaid": 310.15, "totalOutstanding": 185.14},
        "counts": {
            "totalInvoices": 6,
            "draftCount": 1,
            "approvedCount": 1,
            "sentCount": 1,
            "paidCount": 1,
            "overdueCount": 1,
            "otherCount": 1,
        },
        "currency": "USD",
    }


def test_monthly_summary_empty_month(client, auth_headers, fake_wave):
    fake_wave.respond("MonthlyInvoices", {"business": {"id": "biz-manna", "invoices": connection([], total_pages=0)}})

    response = client.post(
        "/api/wave/summary/month",
        json={"businessKey": "manna", "year": 2023, "month": 12},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["period"] == {"startDate": "2023-12-01", "endDate": "2023-12-31"}
    assert body["totals"] == {"totalInvoiced": 0.0, "totalPaid": 0.0, "totalOutstanding": 0.0}
    assert body["currency"] is None
    assert len(fake_wave.calls) == 1


def test_monthly_summary_missing_invoices_payload(client, auth_headers, fake_wave):
    fake_wave.respond("MonthlyInvoices", {"business": {"id": "biz-manna", "invoices": None}})

    response = client.post(
        "/api/wave/summary/month",
        json={"businessKey": "manna", "year": 2024, "month": 1},
        headers=auth_headers,
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to fetch monthly invoices from Wave"


def test_monthly_summary_rejects_bad_month(client, auth_headers, fake_wave):
    response = client.post(
        "/api/wave/summary/month",
        json={"businessKey": "manna", "year": 2024, "month": 13},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid month. Must be between 1 and 12"}
    assert fake_wave.calls == []
