"""Unit tests for goods received note drafts and their application."""

from __future__ import annotations

from decimal import Decimal

import pytest

from bizdesk import grn
from bizdesk.constants import GrnState
from bizdesk.data_manager import ItemRow
from bizdesk.errors import BusinessRuleViolation


@pytest.fixture
def items() -> dict[str, ItemRow]:
    laptop = ItemRow("item_1", "HW-LPT-001", "Laptop", stock_qty=25, cost=Decimal("120000"),
                     price=Decimal("155000"), supplier="Global Electronics Ltd")
    coffee = ItemRow("item_5", "FD-COF-001", "Coffee", stock_qty=40, cost=Decimal("3500"),
                     price=Decimal("5800"), supplier="Fresh Harvest Co")
    return {item.item_id: item for item in (laptop, coffee)}


def test_line_total_never_negative():
    assert grn.line_total(2, Decimal("10"), Decimal("5")) == Decimal("15")
    assert grn.line_total(1, Decimal("10"), Decimal("50")) == Decimal("0")


def test_add_line_ignores_missing_item_or_quantity():
    draft = grn.GrnDraft(received_on="2025-03-01")

    assert draft.add_line("", 5, Decimal("10")) is None
    assert draft.add_line("item_1", 0, Decimal("10")) is None
    assert draft.add_line("item_1", -2, Decimal("10")) is None
    assert draft.lines == []


def test_add_line_and_grand_total():
    draft = grn.GrnDraft(received_on="2025-03-01")
    draft.add_line("item_1", 5, Decimal("100"), Decimal("20"), name="Laptop", sku="HW-LPT-001")
    draft.add_line("item_5", 2, Decimal("3000"))

    assert [line.total for line in draft.lines] == [Decimal("480"), Decimal("6000")]
    assert draft.grand_total == Decimal("6480")
    assert draft.lines[0].sku == "HW-LPT-001"


def test_remove_line_is_positional():
    draft = grn.GrnDraft(received_on="2025-03-01")
    draft.add_line("item_1", 1, Decimal("1"))
    draft.add_line("item_5", 1, Decimal("1"))

    removed = draft.remove_line(0)

    assert removed.item_id == "item_1"
    assert [line.item_id for line in draft.lines] == ["item_5"]
    with pytest.raises(IndexError):
        draft.remove_line(3)


def test_confirm_without_lines_is_rejected():
    """An empty draft stays open and yields nothing to apply."""

    draft = grn.GrnDraft(received_on="2025-03-01")

    assert draft.confirm() == []
    assert draft.state is GrnState.AUTHORING


def test_confirm_hands_back_lines_and_closes_draft():
    draft = grn.GrnDraft(received_on="2025-03-01")
    draft.add_line("item_1", 5, Decimal("100"))

    confirmed = draft.confirm()

    assert [line.item_id for line in confirmed] == ["item_1"]
    assert draft.lines == []
    assert draft.is_confirmed


def test_confirmed_draft_rejects_further_changes():
    draft = grn.GrnDraft(received_on="2025-03-01")
    draft.add_line("item_1", 5, Decimal("100"))
    draft.confirm()

    with pytest.raises(BusinessRuleViolation):
        draft.add_line("item_1", 1, Decimal("1"))
    with pytest.raises(BusinessRuleViolation):
        draft.confirm()


# ---------------------------------------------------------------------------
# Applying lines to the item master
# ---------------------------------------------------------------------------


def test_apply_lines_adds_stock_and_overwrites_cost(items):
    line = grn.GrnLine("item_1", 5, Decimal("100"), Decimal("0"), Decimal("500"))

    updated = grn.apply_lines(items, [line], supplier="Office Depot Wholesale")

    assert len(updated) == 1
    assert updated[0].stock_qty == 30
    assert updated[0].cost == Decimal("100")
    assert updated[0].supplier == "Office Depot Wholesale"
    assert updated[0].price == Decimal("155000")
    # input mapping is left untouched
    assert items["item_1"].stock_qty == 25


def test_apply_lines_without_supplier_keeps_item_supplier(items):
    line = grn.GrnLine("item_5", 10, Decimal("3600"), Decimal("0"), Decimal("36000"))

    updated = grn.apply_lines(items, [line])

    assert updated[0].supplier == "Fresh Harvest Co"


def test_apply_lines_accumulates_repeated_items(items):
    """Two lines for one item add both quantities; the later cost wins."""

    lines = [
        grn.GrnLine("item_1", 5, Decimal("100"), Decimal("0"), Decimal("500")),
        grn.GrnLine("item_5", 1, Decimal("3400"), Decimal("0"), Decimal("3400")),
        grn.GrnLine("item_1", 2, Decimal("110"), Decimal("0"), Decimal("220")),
    ]

    updated = grn.apply_lines(items, lines)

    assert [item.item_id for item in updated] == ["item_1", "item_5"]
    assert updated[0].stock_qty == 32
    assert updated[0].cost == Decimal("110")


def test_apply_lines_skips_unknown_items(items):
    lines = [
        grn.GrnLine("item_404", 5, Decimal("1"), Decimal("0"), Decimal("5")),
        grn.GrnLine("item_5", 1, Decimal("3400"), Decimal("0"), Decimal("3400")),
    ]

    updated = grn.apply_lines(items, lines)

    assert [item.item_id for item in updated] == ["item_5"]
