"""Goods received note (GRN) drafts.

A GRN collects the lines of a delivery while it is being authored and, once
confirmed, is applied to the item master in a single batch: stock goes up by
the received quantity, the cost basis is replaced by the incoming unit cost,
and the supplier is switched to the delivering supplier when one is named.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from . import log
from .constants import GrnState
from .data_manager import ItemRow
from .errors import BusinessRuleViolation


@dataclass(frozen=True)
class GrnLine:
    """One received item on a GRN."""

    item_id: str
    quantity: int
    unit_cost: Decimal
    discount: Decimal
    total: Decimal
    name: str = ""
    sku: str = ""


def line_total(quantity: int, unit_cost: Decimal, discount: Decimal) -> Decimal:
    """Return ``max(0, quantity * unit_cost - discount)``."""

    return max(Decimal("0"), Decimal(quantity) * unit_cost - discount)


@dataclass
class GrnDraft:
    """A goods received note being authored.

    The draft starts in ``AUTHORING`` and moves to ``CONFIRMED`` exactly once.
    Confirmation hands the lines back to the caller and empties the draft.
    """

    received_on: str
    supplier: str = ""
    lines: List[GrnLine] = field(default_factory=list)
    state: GrnState = GrnState.AUTHORING

    @property
    def grand_total(self) -> Decimal:
        return sum((line.total for line in self.lines), Decimal("0"))

    @property
    def is_confirmed(self) -> bool:
        return self.state == GrnState.CONFIRMED

    def add_line(
        self,
        item_id: str,
        quantity: int,
        unit_cost: Decimal,
        discount: Decimal = Decimal("0"),
        *,
        name: str = "",
        sku: str = "",
    ) -> Optional[GrnLine]:
        """Append a received line, ignoring input without an item or quantity.

        Returns:
            GrnLine | None: The appended line, or ``None`` when ``item_id`` is
                empty or ``quantity`` is not positive.

        Raises:
            BusinessRuleViolation: If the draft was already confirmed.
        """

        self._require_authoring()
        if not item_id or quantity <= 0:
            log.warning("Ignoring GRN line for item '%s' with quantity %s", item_id, quantity)
            return None

        line = GrnLine(
            item_id=item_id,
            quantity=quantity,
            unit_cost=unit_cost,
            discount=discount,
            total=line_total(quantity, unit_cost, discount),
            name=name,
            sku=sku,
        )
        self.lines.append(line)
        return line

    def remove_line(self, index: int) -> GrnLine:
        """Remove and return the line at ``index``.

        Raises:
            IndexError: If ``index`` is out of range.
            BusinessRuleViolation: If the draft was already confirmed.
        """

        self._require_authoring()
        return self.lines.pop(index)

    def confirm(self) -> List[GrnLine]:
        """Close the draft and return the lines to apply.

        An empty draft is rejected: nothing is returned and the draft stays in
        ``AUTHORING``.
        """

        self._require_authoring()
        if not self.lines:
            log.warning("Refusing to confirm a GRN without lines")
            return []
        confirmed = list(self.lines)
        self.lines = []
        self.state = GrnState.CONFIRMED
        return confirmed

    def _require_authoring(self) -> None:
        if self.is_confirmed:
            raise BusinessRuleViolation("GRN draft is already confirmed")


def apply_lines(
    items: Mapping[str, ItemRow],
    lines: Sequence[GrnLine],
    *,
    supplier: str = "",
) -> List[ItemRow]:
    """Compute the item master after receiving ``lines``.

    Several lines for the same item accumulate their quantities; the last line
    decides the cost. Lines whose item is unknown are skipped.

    Args:
        items (Mapping[str, ItemRow]): Current items keyed by ``item_id``.
        lines (Sequence[GrnLine]): Confirmed GRN lines.
        supplier (str): Delivering supplier; blank keeps each item's supplier.

    Returns:
        list[ItemRow]: The updated items, one per touched item, in the order
            they first appear on the GRN.
    """

    working: Dict[str, ItemRow] = {}
    for line in lines:
        current = working.get(line.item_id) or items.get(line.item_id)
        if current is None:
            log.warning("Skipping GRN line for unknown item '%s'", line.item_id)
            continue
        working[line.item_id] = replace(
            current,
            stock_qty=current.stock_qty + line.quantity,
            cost=line.unit_cost,
            supplier=supplier or current.supplier,
        )
    return list(working.values())
