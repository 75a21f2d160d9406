"""Enumerations and fixed rates shared across bizdesk modules.

Centralises domain constants so that the data access layer (DAL), business
logic layer (BLL), and the CLI rely on a single source of truth for status
codes, sheet names, and pricing rates.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum


# Central schema version expected by all layers when validating workbooks.
EXPECTED_SCHEMA_VERSION = "1.0.0"

# Flat rates applied to every cart and invoice.
TAX_RATE = Decimal("0.10")
DISCOUNT_RATE = Decimal("0.05")

WALK_IN_CUSTOMER_ID = "0"
WALK_IN_CUSTOMER_NAME = "Walk-in Customer"

ALL_CATEGORIES = "All"
CATEGORIES = ("Electronics", "Stationery", "Beverage", "Services", "Furniture")


class CustomerType(str, Enum):
    """Enumerate the kinds of customer records."""

    BUSINESS = "Business"
    INDIVIDUAL = "Individual"


class CustomerStatus(str, Enum):
    """Enumerate customer activity states."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class InvoiceStatus(str, Enum):
    """Enumerate the lifecycle states of an invoice."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    OVERDUE = "OVERDUE"
    PAID = "PAID"


class PaymentStatus(str, Enum):
    """Enumerate the states a recorded payment can be in."""

    PAID = "PAID"
    PARTIAL = "PARTIAL"
    VOID = "VOID"


class GrnState(str, Enum):
    """Enumerate the states of a goods received note draft."""

    AUTHORING = "AUTHORING"
    CONFIRMED = "CONFIRMED"


class SheetName(str, Enum):
    """Enumerate the workbook sheet names managed by the DAL."""

    CUSTOMERS = "Customers"
    SUPPLIERS = "Suppliers"
    ITEMS = "Items"
    INVOICES = "Invoices"
    INVOICE_LINES = "InvoiceLines"
    PAYMENTS = "Payments"


__all__ = [
    "EXPECTED_SCHEMA_VERSION",
    "TAX_RATE",
    "DISCOUNT_RATE",
    "WALK_IN_CUSTOMER_ID",
    "WALK_IN_CUSTOMER_NAME",
    "ALL_CATEGORIES",
    "CATEGORIES",
    "CustomerType",
    "CustomerStatus",
    "InvoiceStatus",
    "PaymentStatus",
    "GrnState",
    "SheetName",
]
