from __future__ import annotations

import copy
from datetime import date

import pytest
from fastapi import HTTPException

from wave_gateway.schemas.wave import (
    AddPaymentRequest,
    BalanceDirection,
    CreateInvoiceRequest,
    CreateProductRequest,
    CreateTransactionRequest,
    EnsureCustomerRequest,
    InvoiceStatus,
    ListInvoicesRequest,
    ListProductsRequest,
    MonthlySummaryRequest,
    PaymentMethod,
    TransactionDirection,
    UpdateProductRequest,
)
from wave_gateway.utils import validators
from wave_gateway.utils.validators import month_period, resolve_invoice_dates, validate_body


def _invoice_body(**overrides):
    body = {
        "businessKey": "manna",
        "customerId": "cust-1",
        "items": [
            {"description": "Sourdough", "unitPrice": 12.5, "quantity": 2},
            {"description": "Croissant", "unitPrice": 3},
        ],
    }
    body.update(overrides)
    return body


def _rejection(model, payload) -> str:
    with pytest.raises(HTTPException) as exc_info:
        validate_body(model, payload)
    assert exc_info.value.status_code == 400
    return exc_info.value.detail


def test_valid_invoice_body_is_typed():
    body = validate_body(CreateInvoiceRequest, _invoice_body(invoiceDate="2024-03-01", currencyCode="cad"))

    assert body.customer_id == "cust-1"
    assert body.invoice_date == date(2024, 3, 1)
    assert body.currency_code == "CAD"
    assert [item.quantity for item in body.items] == [2, 1]
    assert [item.unit_price for item in body.items] == [12.5, 3]


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"businessKey": "acme"}, "Invalid or missing businessKey"),
        ({"businessKey": None}, "Invalid or missing businessKey"),
        ({"customerId": "  "}, "customerId is required"),
        ({"items": []}, "Invoice must have at least one item"),
        ({"items": "bread"}, "Invoice must have at least one item"),
        ({"items": [{"description": "", "unitPrice": 1}]}, "items[0].description is required"),
        (
            {"items": [{"description": "a", "unitPrice": 1}, {"description": "b", "unitPrice": 0}]},
            "items[1].unitPrice must be greater than zero",
        ),
        (
            {"items": [{"description": "a", "unitPrice": True}]},
            "items[0].unitPrice must be greater than zero",
        ),
        (
            {"items": [{"description": "a", "unitPrice": 1, "quantity": -1}]},
            "items[0].quantity must be greater than zero",
        ),
        ({"invoiceDate": "28/01/2024"}, "invoiceDate must be a date in YYYY-MM-DD format"),
        ({"currencyCode": "dollars"}, "currencyCode must be a 3-letter currency code"),
        (
            {"invoiceDate": "2024-02-10", "dueDate": "2024-02-01"},
            "dueDate cannot be before invoiceDate",
        ),
    ],
)
def test_invoice_rejections(overrides, message):
    assert _rejection(CreateInvoiceRequest, _invoice_body(**overrides)) == message


def test_only_first_failure_is_reported():
    payload = {"businessKey": "nope", "customerId": "", "items": []}

    assert _rejection(CreateInvoiceRequest, payload) == "Invalid or missing businessKey"


def test_validation_is_idempotent_and_does_not_mutate_input():
    rejected = _invoice_body(items=[{"description": "a", "unitPrice": -5}])
    accepted = _invoice_body()
    rejected_before = copy.deepcopy(rejected)
    accepted_before = copy.deepcopy(accepted)

    assert _rejection(CreateInvoiceRequest, rejected) == _rejection(CreateInvoiceRequest, rejected)
    assert validate_body(CreateInvoiceRequest, accepted) == validate_body(CreateInvoiceRequest, accepted)
    assert rejected == rejected_before
    assert accepted == accepted_before


def test_non_finite_numbers_are_rejected():
    payload = _invoice_body(items=[{"description": "a", "unitPrice": float("inf")}])

    assert _rejection(CreateInvoiceRequest, payload) == "items[0].unitPrice must be greater than zero"


def test_integers_beyond_float_range_are_rejected():
    huge = 10**400

    assert validators.is_number(huge) is False
    assert _rejection(CreateTransactionRequest, {"businessKey": "manna", "amount": huge}) == (
        "amount must be a positive number"
    )
    assert _rejection(
        CreateInvoiceRequest,
        _invoice_body(items=[{"description": "a", "unitPrice": huge}]),
    ) == "items[0].unitPrice must be greater than zero"
    assert _rejection(CreateProductRequest, {"businessKey": "manna", "name": "Rye", "unitPrice": huge}) == (
        "unitPrice must be a non-negative number"
    )


@pytest.mark.parametrize("value", ["20240128", "2024-W05-1", "2024-1-05", "2024-02-30", "２０２４-01-28"])
def test_dates_must_be_calendar_dates_in_dashed_form(value):
    assert _rejection(CreateInvoiceRequest, _invoice_body(invoiceDate=value)) == (
        "invoiceDate must be a date in YYYY-MM-DD format"
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, None), ("paid", InvoiceStatus.PAID), (" Overdue ", InvoiceStatus.OVERDUE), ("", None)],
)
def test_invoice_status_filter(value, expected):
    body = validate_body(ListInvoicesRequest, {"businessKey": "manna", "status": value})

    assert body.status is expected


@pytest.mark.parametrize("value", ["bogus", 3, "PAID,SENT"])
def test_invoice_status_filter_rejects_unknown_values(value):
    assert _rejection(ListInvoicesRequest, {"businessKey": "manna", "status": value}).startswith(
        "status must be one of DRAFT, OVERDUE"
    )


def test_invoice_dates_default_to_today_and_one_week(monkeypatch):
    monkeypatch.setattr(validators, "today_utc", lambda: date(2024, 1, 28))

    assert resolve_invoice_dates(None, None) == (date(2024, 1, 28), date(2024, 2, 4))


@pytest.mark.parametrize(
    ("invoice_date", "due_date"),
    [
        (date(2024, 1, 28), date(2024, 2, 4)),
        (date(2023, 12, 30), date(2024, 1, 6)),
        (date(2024, 2, 25), date(2024, 3, 3)),
        (date(2023, 2, 25), date(2023, 3, 4)),
    ],
)
def test_due_date_crosses_month_and_year_boundaries(invoice_date, due_date):
    assert resolve_invoice_dates(invoice_date, None) == (invoice_date, due_date)


def test_explicit_due_date_is_kept():
    assert resolve_invoice_dates(date(2024, 1, 1), date(2024, 1, 31)) == (date(2024, 1, 1), date(2024, 1, 31))


def test_month_period_handles_leap_years():
    assert month_period(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_period(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))
    assert month_period(2024, 12) == (date(2024, 12, 1), date(2024, 12, 31))


def test_payment_defaults_and_reference_rule():
    body = validate_body(AddPaymentRequest, {"businessKey": "manna", "invoiceNumber": " 1001 ", "amount": 25})

    assert body.invoice_number == "1001"
    assert body.payment_method is PaymentMethod.BANK_TRANSFER
    assert body.payment_date is None
    assert (
        _rejection(AddPaymentRequest, {"businessKey": "manna", "amount": 25})
        == "Either invoiceId or invoiceNumber must be provided"
    )
    assert (
        _rejection(AddPaymentRequest, {"businessKey": "manna", "invoiceId": "inv-1", "amount": 0})
        == "Payment amount must be greater than zero"
    )
    assert _rejection(
        AddPaymentRequest,
        {"businessKey": "manna", "invoiceId": "inv-1", "amount": 5, "paymentMethod": "BARTER"},
    ).startswith("paymentMethod must be one of")


def test_product_prices_may_be_zero_but_not_negative():
    body = validate_body(CreateProductRequest, {"businessKey": "bako", "name": "Gift card", "unitPrice": 0})

    assert body.unit_price == 0
    assert body.is_sold is True
    assert body.is_bought is False
    assert (
        _rejection(CreateProductRequest, {"businessKey": "bako", "name": "Gift card", "unitPrice": -1})
        == "unitPrice must be a non-negative number"
    )
    assert _rejection(CreateProductRequest, {"businessKey": "bako", "name": " "}) == "Product name is required"


def test_product_update_needs_a_field():
    assert (
        _rejection(UpdateProductRequest, {"businessKey": "bako", "productId": "p-1"})
        == "At least one updatable field must be provided"
    )
    assert _rejection(UpdateProductRequest, {"businessKey": "bako", "name": "x"}) == "productId is required"

    body = validate_body(UpdateProductRequest, {"businessKey": "bako", "productId": "p-1", "isSold": False})
    assert body.is_sold is False


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"page": 0}, "page must be an integer greater than or equal to 1"),
        ({"page": 1.5}, "page must be an integer greater than or equal to 1"),
        ({"pageSize": 0}, "pageSize must be an integer between 1 and 100"),
        ({"pageSize": 101}, "pageSize must be an integer between 1 and 100"),
        ({"search": 7}, "search must be a string"),
    ],
)
def test_paging_rules(payload, message):
    assert _rejection(ListProductsRequest, {"businessKey": "manna", **payload}) == message


def test_paging_defaults():
    body = validate_body(ListProductsRequest, {"businessKey": "manna", "search": "  "})

    assert (body.page, body.page_size, body.search) == (1, 50, None)


def test_customer_identity_rule():
    assert (
        _rejection(EnsureCustomerRequest, {"businessKey": "manna", "phone": "555-0100"})
        == "Either name or email must be provided"
    )


def test_transaction_defaults_and_enums():
    body = validate_body(CreateTransactionRequest, {"businessKey": "manna", "amount": 10, "date": "2024-05-01"})

    assert body.direction is TransactionDirection.DEPOSIT
    assert body.balance_direction is BalanceDirection.INCREASE
    assert body.transaction_date == date(2024, 5, 1)
    assert (
        _rejection(CreateTransactionRequest, {"businessKey": "manna", "amount": 10, "direction": "deposit"})
        == "direction must be DEPOSIT or WITHDRAWAL"
    )
    assert (
        _rejection(CreateTransactionRequest, {"businessKey": "manna", "amount": 10, "balanceDirection": "UP"})
        == "balanceDirection must be INCREASE or DECREASE"
    )
    assert _rejection(CreateTransactionRequest, {"businessKey": "manna", "amount": "10"}) == (
        "amount must be a positive number"
    )


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({}, "year and month are required"),
        ({"year": 2024}, "year and month are required"),
        ({"year": "2024", "month": 1}, "year and month are required"),
        ({"year": 2024, "month": 13}, "Invalid month. Must be between 1 and 12"),
        ({"year": 2024, "month": 0}, "Invalid month. Must be between 1 and 12"),
    ],
)
def test_summary_period_rules(payload, message):
    assert _rejection(MonthlySummaryRequest, {"businessKey": "socialion", **payload}) == message
