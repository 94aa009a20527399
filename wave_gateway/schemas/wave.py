from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from wave_gateway.services.business_config import BusinessKey
from wave_gateway.utils.validators import (
    optional_bool,
    optional_text,
    parse_iso_date,
    require_integer,
    require_non_negative_number,
    require_positive_number,
    require_text,
)


MAX_PAGE_SIZE = 100


class WaveModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "BANK_TRANSFER"
    CASH = "CASH"
    CHEQUE = "CHEQUE"
    CREDIT_CARD = "CREDIT_CARD"
    PAYPAL = "PAYPAL"
    OTHER = "OTHER"


class TransactionDirection(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


class BalanceDirection(str, Enum):
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    OVERDUE = "OVERDUE"
    OVERPAID = "OVERPAID"
    PAID = "PAID"
    PARTIAL = "PARTIAL"
    SAVED = "SAVED"
    SENT = "SENT"
    UNPAID = "UNPAID"
    VIEWED = "VIEWED"


def _parse_choice(enum_cls: type[Enum], value: Any, default: Enum, message: str) -> Enum:
    if value is None:
        return default
    for member in enum_cls:
        if member.value == value:
            return member
    raise ValueError(message)


# Requests


class BusinessRequest(WaveModel):
    business_key: BusinessKey = Field(default=None, validate_default=True)

    @field_validator("business_key", mode="before")
    @classmethod
    def validate_business_key(cls, value: Any) -> BusinessKey:
        key = BusinessKey.parse(value)
        if key is None:
            raise ValueError("Invalid or missing businessKey")
        return key


class PagedRequest(BusinessRequest):
    page: int = 1
    page_size: int = 50

    @field_validator("page", mode="before")
    @classmethod
    def validate_page(cls, value: Any) -> int:
        if value is None:
            return 1
        page = require_integer(value, "page must be an integer greater than or equal to 1")
        if page < 1:
            raise ValueError("page must be an integer greater than or equal to 1")
        return page

    @field_validator("page_size", mode="before")
    @classmethod
    def validate_page_size(cls, value: Any) -> int:
        message = f"pageSize must be an integer between 1 and {MAX_PAGE_SIZE}"
        if value is None:
            return 50
        page_size = require_integer(value, message)
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValueError(message)
        return page_size


class InvoiceItemInput(WaveModel):
    description: str
    unit_price: float
    quantity: float = 1
    product_id: Optional[str] = None


class CreateInvoiceRequest(BusinessRequest):
    customer_id: str = Field(default=None, validate_default=True)
    items: list[InvoiceItemInput] = Field(default=None, validate_default=True)
    invoice_date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    currency_code: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("customer_id", mode="before")
    @classmethod
    def validate_customer_id(cls, value: Any) -> str:
        return require_text(value, "customerId is required")

    @field_validator("items", mode="before")
    @classmethod
    def validate_items(cls, value: Any) -> list[InvoiceItemInput]:
        if not isinstance(value, list) or not value:
            raise ValueError("Invoice must have at least one item")
        items: list[InvoiceItemInput] = []
        for index, raw in enumerate(value):
            if not isinstance(raw, dict):
                raise ValueError(f"items[{index}] must be an object")
            description = require_text(
                raw.get("description"), f"items[{index}].description is required"
            )
            unit_price = require_positive_number(
                raw.get("unitPrice"), f"items[{index}].unitPrice must be greater than zero"
            )
            quantity = raw.get("quantity")
            if quantity is None:
                quantity = 1
            else:
                quantity = require_positive_number(
                    quantity, f"items[{index}].quantity must be greater than zero"
                )
            product_id = optional_text(raw.get("productId"), f"items[{index}].productId must be a string")
            items.append(
                InvoiceItemInput(
                    description=description,
                    unit_price=unit_price,
                    quantity=quantity,
                    product_id=product_id,
                )
            )
        return items

    @field_validator("invoice_date", mode="before")
    @classmethod
    def validate_invoice_date(cls, value: Any) -> Optional[dt.date]:
        return parse_iso_date(value, "invoiceDate")

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, value: Any) -> Optional[dt.date]:
        return parse_iso_date(value, "dueDate")

    @field_validator("currency_code", mode="before")
    @classmethod
    def validate_currency_code(cls, value: Any) -> Optional[str]:
        code = optional_text(value, "currencyCode must be a 3-letter currency code")
        if code is None:
            return None
        if len(code) != 3 or not code.isalpha():
            raise ValueError("currencyCode must be a 3-letter currency code")
        return code.upper()

    @field_validator("notes", mode="before")
    @classmethod
    def validate_notes(cls, value: Any) -> Optional[str]:
        return optional_text(value, "notes must be a string")

    @model_validator(mode="after")
    def validate_date_order(self) -> "CreateInvoiceRequest":
        if self.invoice_date and self.due_date and self.due_date < self.invoice_date:
            raise ValueError("dueDate cannot be before invoiceDate")
        return self


class ApproveInvoiceRequest(BusinessRequest):
    invoice_id: str = Field(default=None, validate_default=True)

    @field_validator("invoice_id", mode="before")
    @classmethod
    def validate_invoice_id(cls, value: Any) -> str:
        return require_text(value, "invoiceId is required")


class AddPaymentRequest(BusinessRequest):
    invoice_id: Optional[str] = None
    invoice_number: Optional[str] = None
    amount: float = Field(default=None, validate_default=True)
    payment_date: Optional[dt.date] = None
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    external_id: Optional[str] = None

    @field_validator("invoice_id", "invoice_number", "external_id", mode="before")
    @classmethod
    def validate_identifiers(cls, value: Any, info: Any) -> Optional[str]:
        return optional_text(value, f"{to_camel(info.field_name)} must be a string")

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, value: Any) -> float:
        return require_positive_number(value, "Payment amount must be greater than zero")

    @field_validator("payment_date", mode="before")
    @classmethod
    def validate_payment_date(cls, value: Any) -> Optional[dt.date]:
        return parse_iso_date(value, "paymentDate")

    @field_validator("payment_method", mode="before")
    @classmethod
    def validate_payment_method(cls, value: Any) -> PaymentMethod:
        choices = ", ".join(member.value for member in PaymentMethod)
        return _parse_choice(
            PaymentMethod, value, PaymentMethod.BANK_TRANSFER, f"paymentMethod must be one of {choices}"
        )

    @model_validator(mode="after")
    def validate_invoice_reference(self) -> "AddPaymentRequest":
        if not self.invoice_id and not self.invoice_number:
            raise ValueError("Either invoiceId or invoiceNumber must be provided")
        return self


class ListInvoicesRequest(PagedRequest):
    status: Optional[InvoiceStatus] = None

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, value: Any) -> Optional[InvoiceStatus]:
        message = "status must be one of " + ", ".join(member.value for member in InvoiceStatus)
        status = optional_text(value, message)
        if status is None:
            return None
        return _parse_choice(InvoiceStatus, status.upper(), None, message)


class SearchRequest(PagedRequest):
    search: Optional[str] = None

    @field_validator("search", mode="before")
    @classmethod
    def validate_search(cls, value: Any) -> Optional[str]:
        return optional_text(value, "search must be a string")


class ListProductsRequest(SearchRequest):
    pass


class ListCustomersRequest(SearchRequest):
    pass


class CreateProductRequest(BusinessRequest):
    name: str = Field(default=None, validate_default=True)
    description: Optional[str] = None
    unit_price: Optional[float] = None
    is_sold: bool = True
    is_bought: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, value: Any) -> str:
        return require_text(value, "Product name is required")

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, value: Any) -> Optional[str]:
        return optional_text(value, "description must be a string")

    @field_validator("unit_price", mode="before")
    @classmethod
    def validate_unit_price(cls, value: Any) -> Optional[float]:
        if value is None:
            return None
        return require_non_negative_number(value, "unitPrice must be a non-negative number")

    @field_validator("is_sold", mode="before")
    @classmethod
    def validate_is_sold(cls, value: Any) -> bool:
        flag = optional_bool(value, "isSold must be a boolean")
        return True if flag is None else flag

    @field_validator("is_bought", mode="before")
    @classmethod
    def validate_is_bought(cls, value: Any) -> bool:
        flag = optional_bool(value, "isBought must be a boolean")
        return False if flag is None else flag


class UpdateProductRequest(BusinessRequest):
    product_id: str = Field(default=None, validate_default=True)
    name: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[float] = None
    is_sold: Optional[bool] = None
    is_bought: Optional[bool] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def validate_product_id(cls, value: Any) -> str:
        return require_text(value, "productId is required")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, value: Any) -> Optional[str]:
        return optional_text(value, "name must be a string")

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("description must be a string")
        return value

    @field_validator("unit_price", mode="before")
    @classmethod
    def validate_unit_price(cls, value: Any) -> Optional[float]:
        if value is None:
            return None
        return require_non_negative_number(value, "unitPrice must be a non-negative number")

    @field_validator("is_sold", "is_bought", mode="before")
    @classmethod
    def validate_flags(cls, value: Any, info: Any) -> Optional[bool]:
        return optional_bool(value, f"{to_camel(info.field_name)} must be a boolean")

    @model_validator(mode="after")
    def ensure_any_value(self) -> "UpdateProductRequest":
        if (
            self.name is None
            and self.description is None
            and self.unit_price is None
            and self.is_sold is None
            and self.is_bought is None
        ):
            raise ValueError("At least one updatable field must be provided")
        return self


class EnsureCustomerRequest(BusinessRequest):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def validate_contact_fields(cls, value: Any, info: Any) -> Optional[str]:
        return optional_text(value, f"{info.field_name} must be a string")

    @model_validator(mode="after")
    def ensure_identity(self) -> "EnsureCustomerRequest":
        if not self.name and not self.email:
            raise ValueError("Either name or email must be provided")
        return self


class CreateTransactionRequest(BusinessRequest):
    amount: float = Field(default=None, validate_default=True)
    direction: TransactionDirection = TransactionDirection.DEPOSIT
    balance_direction: BalanceDirection = BalanceDirection.INCREASE
    description: Optional[str] = None
    transaction_date: Optional[dt.date] = Field(default=None, alias="date")
    external_id: Optional[str] = None
    anchor_account_id: Optional[str] = None
    line_item_account_id: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, value: Any) -> float:
        return require_positive_number(value, "amount must be a positive number")

    @field_validator("direction", mode="before")
    @classmethod
    def validate_direction(cls, value: Any) -> TransactionDirection:
        return _parse_choice(
            TransactionDirection,
            value,
            TransactionDirection.DEPOSIT,
            "direction must be DEPOSIT or WITHDRAWAL",
        )

    @field_validator("balance_direction", mode="before")
    @classmethod
    def validate_balance_direction(cls, value: Any) -> BalanceDirection:
        return _parse_choice(
            BalanceDirection,
            value,
            BalanceDirection.INCREASE,
            "balanceDirection must be INCREASE or DECREASE",
        )

    @field_validator("description", "external_id", "anchor_account_id", "line_item_account_id", mode="before")
    @classmethod
    def validate_text_fields(cls, value: Any, info: Any) -> Optional[str]:
        return optional_text(value, f"{to_camel(info.field_name)} must be a string")

    @field_validator("transaction_date", mode="before")
    @classmethod
    def validate_transaction_date(cls, value: Any) -> Optional[dt.date]:
        return parse_iso_date(value, "date")


class MonthlySummaryRequest(BusinessRequest):
    year: int = Field(default=None, validate_default=True)
    month: int = Field(default=None, validate_default=True)

    @field_validator("year", mode="before")
    @classmethod
    def validate_year(cls, value: Any) -> int:
        year = require_integer(value, "year and month are required")
        if year < 1 or year > 9999:
            raise ValueError("Invalid year. Must be between 1 and 9999")
        return year

    @field_validator("month", mode="before")
    @classmethod
    def validate_month(cls, value: Any) -> int:
        month = require_integer(value, "year and month are required")
        if month < 1 or month > 12:
            raise ValueError("Invalid month. Must be between 1 and 12")
        return month


# Responses


class HealthResponse(WaveModel):
    ok: bool
    service: str
    version: str


class PageInfo(WaveModel):
    current_page: int
    total_pages: int
    total_count: int


class InvoiceSummary(WaveModel):
    id: str
    invoice_number: Optional[str] = None
    status: Optional[str] = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    created_at: Optional[str] = None
    total: Optional[float] = None
    amount_due: Optional[float] = None
    amount_paid: Optional[float] = None
    currency: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    view_url: Optional[str] = None
    pdf_url: Optional[str] = None


class ProductSummary(WaveModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[float] = None
    is_sold: Optional[bool] = None
    is_bought: Optional[bool] = None
    is_archived: Optional[bool] = None


class CustomerSummary(WaveModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class BusinessResponse(WaveModel):
    business_key: BusinessKey
    business_id: str


class InvoiceResponse(BusinessResponse):
    invoice: InvoiceSummary


class PaymentRecord(WaveModel):
    id: str
    amount: float
    currency: Optional[str] = None
    date: str
    description: Optional[str] = None
    external_id: Optional[str] = None
    method: PaymentMethod


class AddPaymentResponse(BusinessResponse):
    payment: PaymentRecord
    invoice: InvoiceSummary


class ListInvoicesResponse(BusinessResponse):
    page: int
    page_size: int
    total_count: int
    total_pages: int
    invoices: list[InvoiceSummary]


class ListProductsResponse(BusinessResponse):
    page_info: PageInfo
    products: list[ProductSummary]


class ProductResponse(BusinessResponse):
    product: ProductSummary


class ListCustomersResponse(BusinessResponse):
    page_info: PageInfo
    customers: list[CustomerSummary]


class EnsureCustomerResponse(BusinessResponse):
    created: bool
    customer: CustomerSummary


class TransactionRecord(WaveModel):
    id: str
    external_id: Optional[str] = None
    date: str
    description: str
    amount: float
    direction: TransactionDirection
    balance_direction: BalanceDirection
    anchor_account_id: str
    line_item_account_id: str


class TransactionResponse(BusinessResponse):
    transaction: TransactionRecord


class SummaryPeriod(WaveModel):
    start_date: str
    end_date: str


class SummaryTotals(WaveModel):
    total_invoiced: float
    total_paid: float
    total_outstanding: float


class SummaryCounts(WaveModel):
    total_invoices: int
    draft_count: int
    approved_count: int
    sent_count: int
    paid_count: int
    overdue_count: int
    other_count: int


class MonthlySummaryResponse(BusinessResponse):
    year: int
    month: int
    period: SummaryPeriod
    totals: SummaryTotals
    counts: SummaryCounts
    currency: Optional[str] = None
