"""Receivables aging and dashboard counters.

Outstanding balances are bucketed by how many days they are past due:
current (not yet due), 1-15, 16-30, 31-45 and above 45 days.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, Iterable, Union

from . import log
from .constants import InvoiceStatus
from .data_manager import InvoiceRow


SECONDS_PER_DAY = 24 * 60 * 60

AsOf = Union[date, datetime]


@dataclass(frozen=True)
class ReceivablesSummary:
    """Outstanding balances split into aging buckets."""

    current: Decimal
    overdue_1_15: Decimal
    overdue_16_30: Decimal
    overdue_31_45: Decimal
    overdue_above_45: Decimal
    total: Decimal

    def buckets(self) -> Dict[str, Decimal]:
        return {
            "current": self.current,
            "1-15": self.overdue_1_15,
            "16-30": self.overdue_16_30,
            "31-45": self.overdue_31_45,
            ">45": self.overdue_above_45,
        }

    def shares(self) -> Dict[str, Decimal]:
        """Return each bucket as a fraction of the total (0 when nothing is owed)."""

        denominator = self.total or Decimal("1")
        return {name: amount / denominator for name, amount in self.buckets().items()}


def days_past_due(due_date: date, as_of: AsOf) -> int:
    """Return ``ceil((as_of - due_date) / 1 day)``.

    A plain ``date`` yields whole days. A ``datetime`` is measured against
    midnight of ``due_date`` in the same timezone, so any part of a day past
    the due date counts as a full day.
    """

    if isinstance(as_of, datetime):
        due_moment = datetime.combine(due_date, time.min, tzinfo=as_of.tzinfo)
        return math.ceil((as_of - due_moment).total_seconds() / SECONDS_PER_DAY)
    return (as_of - due_date).days


def bucket_for(diff_days: int) -> str:
    """Name the aging bucket a balance ``diff_days`` past due belongs to."""

    if diff_days <= 0:
        return "current"
    if diff_days <= 15:
        return "1-15"
    if diff_days <= 30:
        return "16-30"
    if diff_days <= 45:
        return "31-45"
    return ">45"


def resolve_due_date(invoice: InvoiceRow) -> date:
    """Parse the invoice due date, falling back to the issue date when blank.

    Raises:
        ValueError: If neither date is present or the text is not ISO formatted.
    """

    raw = invoice.due_date or invoice.date
    if not raw:
        raise ValueError(f"Invoice '{invoice.invoice_number}' has no due date")
    return date.fromisoformat(raw)


def summarize_receivables(invoices: Iterable[InvoiceRow], *, as_of: AsOf) -> ReceivablesSummary:
    """Bucket the balance due of every unpaid invoice by age.

    Args:
        invoices (Iterable[InvoiceRow]): Invoices to consider; PAID ones are
            ignored regardless of their stored balance.
        as_of (date | datetime): The "today" the aging is measured from.

    Returns:
        ReceivablesSummary: Bucket totals whose sum equals ``total``.

    Raises:
        ValueError: If an unpaid invoice carries an unparseable due date.
    """

    totals = {name: Decimal("0") for name in ("current", "1-15", "16-30", "31-45", ">45")}
    for invoice in invoices:
        if invoice.status == InvoiceStatus.PAID.value:
            continue
        try:
            due = resolve_due_date(invoice)
        except ValueError:
            log.error("Cannot age invoice '%s': due date '%s'", invoice.invoice_number, invoice.due_date)
            raise
        bucket = bucket_for(days_past_due(due, as_of))
        totals[bucket] += invoice.balance_due

    summary = ReceivablesSummary(
        current=totals["current"],
        overdue_1_15=totals["1-15"],
        overdue_16_30=totals["16-30"],
        overdue_31_45=totals["31-45"],
        overdue_above_45=totals[">45"],
        total=sum(totals.values(), Decimal("0")),
    )
    log.debug("Receivables as of %s: %s", as_of, summary)
    return summary


def invoice_status_counts(invoices: Iterable[InvoiceRow]) -> Dict[str, int]:
    """Count invoices overall and per status for the dashboard cards."""

    counts = {"total": 0}
    counts.update({status.value: 0 for status in InvoiceStatus})
    for invoice in invoices:
        counts["total"] += 1
        counts[invoice.status] = counts.get(invoice.status, 0) + 1
    return counts
