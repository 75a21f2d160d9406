"""Search, filter and sort helpers for list views.

All helpers are pure: they take already loaded rows and return new lists.
Text matching is case-insensitive unless noted otherwise.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Iterable, List, Sequence

from .constants import ALL_CATEGORIES
from .data_manager import CustomerRow, InvoiceRow, ItemRow, PaymentRow, SupplierRow


ITEM_TEXT_SORT_KEYS = ("name", "sku")
ITEM_NUMERIC_SORT_KEYS = ("price", "stock_qty")
INVOICE_SORT_KEYS = ("date", "invoice_number")
SORT_DIRECTIONS = ("asc", "desc")


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def _check_direction(direction: str) -> bool:
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unsupported sort direction: {direction}")
    return direction == "desc"


def filter_items(
    items: Iterable[ItemRow],
    *,
    category: str = ALL_CATEGORIES,
    search: str = "",
    sort_key: str = "name",
    direction: str = "asc",
) -> List[ItemRow]:
    """Filter items by category and name/SKU text, then sort them.

    ``name`` and ``sku`` sort case-insensitively; ``price`` and ``stock_qty``
    sort numerically.

    Raises:
        ValueError: For an unknown sort key or direction.
    """

    reverse = _check_direction(direction)
    if sort_key in ITEM_TEXT_SORT_KEYS:
        key = lambda item: (getattr(item, sort_key) or "").lower()  # noqa: E731
    elif sort_key in ITEM_NUMERIC_SORT_KEYS:
        key = lambda item: getattr(item, sort_key)  # noqa: E731
    else:
        raise ValueError(f"Unsupported item sort key: {sort_key}")

    matches = [
        item
        for item in items
        if (category == ALL_CATEGORIES or item.category == category)
        and (_contains(item.name, search) or _contains(item.sku, search))
    ]
    return sorted(matches, key=key, reverse=reverse)


def filter_customers(
    customers: Iterable[CustomerRow],
    *,
    search: str = "",
    sort_key: str = "name",
    direction: str = "asc",
) -> List[CustomerRow]:
    """Filter customers by display or company name and sort on any field.

    Every field sorts by its lower-cased text form, blanks first.
    """

    reverse = _check_direction(direction)
    if sort_key not in {f.name for f in fields(CustomerRow)}:
        raise ValueError(f"Unsupported customer sort key: {sort_key}")

    matches = [
        customer
        for customer in customers
        if _contains(customer.name, search) or _contains(customer.company_name, search)
    ]
    return sorted(
        matches,
        key=lambda customer: str(getattr(customer, sort_key) or "").lower(),
        reverse=reverse,
    )


def filter_invoices(
    invoices: Iterable[InvoiceRow],
    *,
    search: str = "",
    sort_key: str = "date",
    direction: str = "desc",
) -> List[InvoiceRow]:
    """Filter invoices by number or customer name and sort by date or number."""

    reverse = _check_direction(direction)
    if sort_key not in INVOICE_SORT_KEYS:
        raise ValueError(f"Unsupported invoice sort key: {sort_key}")

    matches = [
        invoice
        for invoice in invoices
        if _contains(invoice.invoice_number, search) or _contains(invoice.customer_name, search)
    ]
    # ISO dates order correctly as text
    return sorted(matches, key=lambda invoice: getattr(invoice, sort_key), reverse=reverse)


def filter_suppliers(suppliers: Iterable[SupplierRow], *, search: str = "") -> List[SupplierRow]:
    return [
        supplier
        for supplier in suppliers
        if _contains(supplier.name, search) or _contains(supplier.contact_person, search)
    ]


def filter_payments(payments: Iterable[PaymentRow], *, search: str = "") -> List[PaymentRow]:
    """Match payments by customer name, payment number or a linked invoice.

    Payment and invoice numbers are matched case-sensitively.
    """

    return [
        payment
        for payment in payments
        if _contains(payment.customer_name, search)
        or search in payment.payment_number
        or any(search in number for number in payment.invoice_numbers)
    ]


def invoices_for_customer(invoices: Sequence[InvoiceRow], customer_id: str) -> List[InvoiceRow]:
    return [invoice for invoice in invoices if invoice.customer_id == customer_id]
