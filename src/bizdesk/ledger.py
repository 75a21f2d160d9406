"""Payment views and customer balance reconciliation.

Customer ``receivables`` and ``unused_credits`` are stored fields that are
not rewritten when invoices or payments change. The helpers here derive the
same figures from the invoice and payment ledger so the two can be compared.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List

from .constants import InvoiceStatus, PaymentStatus
from .data_manager import CustomerRow, InvoiceRow, PaymentRow


@dataclass(frozen=True)
class CustomerBalance:
    """Stored versus ledger-derived balances of one customer."""

    customer_id: str
    name: str
    stored_receivables: Decimal
    derived_receivables: Decimal
    stored_unused_credits: Decimal
    derived_unused_credits: Decimal

    @property
    def is_reconciled(self) -> bool:
        return (
            self.stored_receivables == self.derived_receivables
            and self.stored_unused_credits == self.derived_unused_credits
        )


def applied_amount(payment: PaymentRow) -> Decimal:
    """Portion of a payment that was applied to invoices."""

    return payment.amount - payment.unused_amount


def payment_allocations(payment: PaymentRow) -> Dict[str, Decimal]:
    """Split a payment evenly over its linked invoice numbers.

    This is a display convention only; payments carry no per-invoice
    allocation. A payment without linked invoices yields an empty mapping.
    """

    if not payment.invoice_numbers:
        return {}
    share = payment.amount / len(payment.invoice_numbers)
    return {number: share for number in payment.invoice_numbers}


def derive_customer_balances(
    customers: Iterable[CustomerRow],
    invoices: Iterable[InvoiceRow],
    payments: Iterable[PaymentRow],
) -> List[CustomerBalance]:
    """Compute ledger-derived receivables and credits for every customer.

    Receivables are the summed ``balance_due`` of the customer's unpaid
    invoices (matched by ``customer_id``). Unused credits are the summed
    ``unused_amount`` of the customer's non-void payments; payments only carry
    the customer's display name, so they are matched by ``name``.
    """

    receivables: Dict[str, Decimal] = {}
    for invoice in invoices:
        if invoice.status == InvoiceStatus.PAID.value:
            continue
        receivables[invoice.customer_id] = receivables.get(invoice.customer_id, Decimal("0")) + invoice.balance_due

    credits: Dict[str, Decimal] = {}
    for payment in payments:
        if payment.status == PaymentStatus.VOID.value:
            continue
        credits[payment.customer_name] = credits.get(payment.customer_name, Decimal("0")) + payment.unused_amount

    return [
        CustomerBalance(
            customer_id=customer.customer_id,
            name=customer.name,
            stored_receivables=customer.receivables,
            derived_receivables=receivables.get(customer.customer_id, Decimal("0")),
            stored_unused_credits=customer.unused_credits,
            derived_unused_credits=credits.get(customer.name, Decimal("0")),
        )
        for customer in customers
    ]


def find_mismatches(balances: Iterable[CustomerBalance]) -> List[CustomerBalance]:
    return [balance for balance in balances if not balance.is_reconciled]
