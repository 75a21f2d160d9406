"""Point-of-sale cart and invoice totals.

Every total shown for a cart and every total persisted on an invoice goes
through :func:`calculate_totals`, so the figures a cashier sees are the ones
that end up in the workbook.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from . import log
from .constants import DISCOUNT_RATE, TAX_RATE, InvoiceStatus
from .data_manager import InvoiceLineRow, ItemRow


@dataclass(frozen=True)
class InvoiceTotals:
    """Derived monetary figures for a set of invoice lines."""

    sub_total: Decimal
    total_tax: Decimal
    total_discount: Decimal
    grand_total: Decimal


def line_amount(quantity: int, rate: Decimal) -> Decimal:
    """Return the extended amount of a line."""

    return Decimal(quantity) * rate


def calculate_totals(lines: Iterable[InvoiceLineRow]) -> InvoiceTotals:
    """Compute subtotal, flat tax, flat discount and grand total.

    Tax and discount are flat percentages of the subtotal
    (:data:`~bizdesk.constants.TAX_RATE` and
    :data:`~bizdesk.constants.DISCOUNT_RATE`); the per-line percent fields do
    not participate. No rounding is applied.

    Args:
        lines (Iterable[InvoiceLineRow]): Cart or invoice lines.

    Returns:
        InvoiceTotals: Figures satisfying
            ``grand_total == sub_total + total_tax - total_discount``.
    """

    sub_total = sum((line.amount for line in lines), Decimal("0"))
    total_tax = sub_total * TAX_RATE
    total_discount = sub_total * DISCOUNT_RATE
    return InvoiceTotals(
        sub_total=sub_total,
        total_tax=total_tax,
        total_discount=total_discount,
        grand_total=sub_total + total_tax - total_discount,
    )


def balance_due_for(status: InvoiceStatus, grand_total: Decimal) -> Decimal:
    """Return the balance an invoice carries when saved with ``status``."""

    if status == InvoiceStatus.PAID:
        return Decimal("0")
    return grand_total


class Cart:
    """Mutable list of invoice lines being assembled at the point of sale.

    Lines are kept as immutable :class:`InvoiceLineRow` values and replaced on
    every change, so ``amount`` is always ``quantity * rate``.
    """

    def __init__(self, lines: Optional[Sequence[InvoiceLineRow]] = None) -> None:
        self._lines: List[InvoiceLineRow] = list(lines or ())

    @property
    def lines(self) -> List[InvoiceLineRow]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def find(self, item_id: str) -> Optional[InvoiceLineRow]:
        for line in self._lines:
            if line.item_id == item_id:
                return line
        return None

    def add_item(self, item: ItemRow) -> InvoiceLineRow:
        """Add one unit of ``item``, merging into an existing line if present."""

        existing = self.find(item.item_id)
        if existing is not None:
            quantity = existing.quantity + 1
            updated = replace(existing, quantity=quantity, amount=line_amount(quantity, existing.rate))
            self._replace(updated)
            log.debug("Cart line '%s' incremented to %d", item.item_id, quantity)
            return updated

        line = InvoiceLineRow(
            item_id=item.item_id,
            name=item.name,
            quantity=1,
            rate=item.price,
            discount_percent=Decimal("0"),
            tax_percent=Decimal("0"),
            amount=item.price,
        )
        self._lines.append(line)
        log.debug("Cart line '%s' added at rate %s", item.item_id, item.price)
        return line

    def update_quantity(self, item_id: str, delta: int) -> Optional[InvoiceLineRow]:
        """Shift a line's quantity by ``delta``, never going below 1.

        Returns the updated line, or ``None`` when ``item_id`` is not in the
        cart. Removing a line is a separate action; see :meth:`remove`.
        """

        existing = self.find(item_id)
        if existing is None:
            return None
        quantity = max(1, existing.quantity + delta)
        updated = replace(existing, quantity=quantity, amount=line_amount(quantity, existing.rate))
        self._replace(updated)
        return updated

    def remove(self, item_id: str) -> None:
        self._lines = [line for line in self._lines if line.item_id != item_id]

    def clear(self) -> None:
        self._lines = []

    def totals(self) -> InvoiceTotals:
        return calculate_totals(self._lines)

    def _replace(self, updated: InvoiceLineRow) -> None:
        self._lines = [updated if line.item_id == updated.item_id else line for line in self._lines]
