"""Integration tests exercising the CLI, BLL and DAL against real workbooks."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from bizdesk import cli, core_logic, data_manager, setup_excel
from bizdesk.constants import InvoiceStatus
from bizdesk.totals import Cart


def _reload(config_path: Path) -> core_logic.RuntimeContext:
    return core_logic.load_runtime_context(config_path)


# ---------------------------------------------------------------------------
# Stock intake
# ---------------------------------------------------------------------------


def test_grn_receives_stock_and_survives_reload(sample_context, sample_config_file):
    """Receiving 5 laptops at 100 lifts stock from 25 to 30 and resets cost."""

    selected = core_logic.get_item(sample_context, "item_1")
    draft = core_logic.start_grn(received_on="2025-03-01")
    core_logic.add_grn_line(sample_context, draft, "item_1", 5, unit_cost=Decimal("100"))

    updated = core_logic.apply_grn(sample_context, draft)
    selected = core_logic.refresh_selection(selected, updated)
    core_logic.persist_context(sample_context)

    assert selected.stock_qty == 30
    reloaded = core_logic.get_item(_reload(sample_config_file), "item_1")
    assert reloaded.stock_qty == 30
    assert reloaded.cost == Decimal("100")
    assert reloaded.supplier == "Global Electronics Ltd"
    assert reloaded.price == Decimal("155000")


def test_grn_without_lines_leaves_items_untouched(sample_context):
    before = core_logic.list_items(sample_context)
    draft = core_logic.start_grn(received_on="2025-03-01")

    assert core_logic.apply_grn(sample_context, draft) == []
    assert core_logic.list_items(sample_context) == before


def test_grn_with_named_supplier_switches_item_supplier(sample_context):
    draft = core_logic.start_grn(received_on="2025-03-01", supplier="Office Depot Wholesale")
    core_logic.add_grn_line(sample_context, draft, "item_2", 10)
    core_logic.add_grn_line(sample_context, draft, "item_3", 5, discount=Decimal("250"))

    assert draft.grand_total == Decimal("15000") + Decimal("4000")
    core_logic.apply_grn(sample_context, draft)

    mouse = core_logic.get_item(sample_context, "item_2")
    paper = core_logic.get_item(sample_context, "item_3")
    assert (mouse.stock_qty, mouse.cost, mouse.supplier) == (160, Decimal("1500"), "Office Depot Wholesale")
    assert (paper.stock_qty, paper.supplier) == (505, "Office Depot Wholesale")


# ---------------------------------------------------------------------------
# Point of sale
# ---------------------------------------------------------------------------


def test_invoice_totals_match_cart_and_survive_reload(runtime_context, config_file):
    """A 1000 cart shows and stores 1000 / 100 / 50 / 1050."""

    item = core_logic.save_item(
        runtime_context,
        core_logic.SaveItemCommand(name="Desk", sku="FUR-DSK-001", price=Decimal("1000"), stock_qty=4),
    )
    cart = Cart()
    core_logic.add_to_cart(runtime_context, cart, item.item_id)
    shown = cart.totals()

    invoice = core_logic.save_invoice(
        runtime_context,
        core_logic.SaveInvoiceCommand(lines=cart.lines, status=InvoiceStatus.PAID, invoice_date="2025-03-01"),
    )
    core_logic.persist_context(runtime_context)

    stored = core_logic.get_invoice(_reload(config_file), invoice.invoice_id)
    assert (shown.sub_total, shown.total_tax, shown.total_discount, shown.grand_total) == (
        Decimal("1000"), Decimal("100"), Decimal("50"), Decimal("1050"),
    )
    assert (stored.sub_total, stored.total_tax, stored.total_discount, stored.grand_total) == (
        shown.sub_total, shown.total_tax, shown.total_discount, shown.grand_total,
    )
    assert stored.balance_due == Decimal("0")
    assert stored.invoice_number == "INV-2025-001"
    assert stored.customer_name == "Walk-in Customer"


def test_cart_decrement_clamps_at_one(sample_context):
    cart = Cart()
    core_logic.add_to_cart(sample_context, cart, "item_2")

    line = cart.update_quantity("item_2", -1)

    assert line.quantity == 1
    assert line.amount == Decimal("3500")


def test_held_invoice_edited_then_paid_keeps_number(sample_context):
    cart = Cart()
    core_logic.add_to_cart(sample_context, cart, "item_5")
    held = core_logic.save_invoice(
        sample_context,
        core_logic.SaveInvoiceCommand(
            lines=cart.lines, status=InvoiceStatus.DRAFT, customer_id="cust_3", invoice_date="2025-03-05"
        ),
    )

    cart = core_logic.load_cart(held)
    cart.update_quantity("item_5", 2)
    paid = core_logic.save_invoice(
        sample_context,
        core_logic.SaveInvoiceCommand(
            lines=cart.lines,
            status=InvoiceStatus.PAID,
            customer_id="cust_3",
            invoice_date=held.date,
            invoice_id=held.invoice_id,
        ),
    )

    assert held.invoice_number == paid.invoice_number == "INV-2025-006"
    assert held.balance_due == Decimal("6090")
    stored = core_logic.get_invoice(sample_context, held.invoice_id)
    assert stored.status == "PAID"
    assert stored.balance_due == Decimal("0")
    assert [line.quantity for line in stored.lines] == [3]
    assert len(core_logic.list_invoices(sample_context)) == 6


# ---------------------------------------------------------------------------
# Receivables and reconciliation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("as_of", "bucket"),
    [
        (date(2025, 3, 20), "current"),
        (date(2025, 4, 4), "1-15"),
        (date(2025, 4, 19), "16-30"),
        (date(2025, 5, 4), "31-45"),
        (date(2025, 5, 5), ">45"),
    ],
)
def test_partially_paid_invoice_ages_from_due_date(sample_context, as_of, bucket):
    """INV-2025-005 owes 15000 from 2025-03-20 onwards."""

    summary = core_logic.calculate_receivables(sample_context, as_of=as_of)
    partial = next(
        invoice for invoice in core_logic.list_invoices(sample_context) if invoice.invoice_number == "INV-2025-005"
    )

    assert partial.balance_due == Decimal("15000")
    assert summary.buckets()[bucket] >= Decimal("15000")
    assert sum(summary.buckets().values()) == summary.total == Decimal("132343.75")


def test_reconcile_reports_without_rewriting_customers(sample_context):
    before = core_logic.list_customers(sample_context)

    balances = core_logic.reconcile_customer_balances(sample_context)

    assert core_logic.list_customers(sample_context) == before
    techflow = next(balance for balance in balances if balance.customer_id == "cust_1")
    assert (techflow.stored_receivables, techflow.derived_receivables) == (Decimal("150000"), Decimal("15000"))


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def test_cli_grn_persists_changes(sample_config_file, capsys):
    exit_code = cli.main(["--config", str(sample_config_file), "grn", "--line", "item_1:5:100"])

    assert exit_code == 0
    assert "stock=30" in capsys.readouterr().out
    assert core_logic.get_item(_reload(sample_config_file), "item_1").stock_qty == 30


def test_cli_grn_with_only_invalid_lines_is_rejected(sample_config_file):
    exit_code = cli.main(["--config", str(sample_config_file), "grn", "--line", "item_1:0"])

    assert exit_code == 2
    assert core_logic.get_item(_reload(sample_config_file), "item_1").stock_qty == 25


def test_cli_delete_unknown_item_exits_with_two(sample_config_file):
    assert cli.main(["--config", str(sample_config_file), "delete-item", "--item-id", "item_404"]) == 2


def test_cli_add_customer_then_list(config_file, capsys):
    assert cli.main(["--config", str(config_file), "add-customer", "--name", "Nimal Perera"]) == 0
    assert cli.main(["--config", str(config_file), "customers", "--search", "nimal"]) == 0

    output = capsys.readouterr().out
    assert output.count("Nimal Perera") == 2
    [customer] = core_logic.list_customers(_reload(config_file))
    assert customer.currency == "LKR"


def test_cli_update_customer_keeps_balances_and_contact(sample_config_file):
    """Editing one field leaves the stored balances and contact details intact."""

    exit_code = cli.main(
        ["--config", str(sample_config_file), "add-customer", "--customer-id", "cust_1", "--remarks", "Key account"]
    )

    assert exit_code == 0
    customer = core_logic.get_customer(_reload(sample_config_file), "cust_1")
    assert customer.name == "TechFlow Solutions"
    assert customer.receivables == Decimal("150000")
    assert customer.unused_credits == Decimal("5000")
    assert customer.email == "david@techflow.com"
    assert customer.remarks == "Key account"
    assert len(core_logic.list_customers(_reload(sample_config_file))) == 4


def test_cli_update_unknown_customer_exits_with_two(sample_config_file):
    exit_code = cli.main(["--config", str(sample_config_file), "add-customer", "--customer-id", "cust_404"])

    assert exit_code == 2
    assert len(core_logic.list_customers(_reload(sample_config_file))) == 4


def test_cli_update_item_keeps_stock_cost_and_price(sample_config_file):
    exit_code = cli.main(
        ["--config", str(sample_config_file), "add-item", "--item-id", "item_1", "--name", "Laptop Pro"]
    )

    assert exit_code == 0
    item = core_logic.get_item(_reload(sample_config_file), "item_1")
    assert item.name == "Laptop Pro"
    assert (item.stock_qty, item.cost, item.price) == (25, Decimal("120000"), Decimal("155000"))
    assert item.supplier == "Global Electronics Ltd"


def test_cli_update_item_stock_only_when_given(sample_config_file):
    assert cli.main(["--config", str(sample_config_file), "add-item", "--item-id", "item_2", "--stock-qty", "140"]) == 0

    item = core_logic.get_item(_reload(sample_config_file), "item_2")
    assert (item.stock_qty, item.price) == (140, Decimal("3500"))


def test_cli_new_item_without_sku_is_rejected(sample_config_file):
    assert cli.main(["--config", str(sample_config_file), "add-item", "--name", "Desk"]) == 2
    assert len(core_logic.list_items(_reload(sample_config_file))) == 5


def test_cli_update_supplier_keeps_other_fields(sample_config_file):
    exit_code = cli.main(
        ["--config", str(sample_config_file), "add-supplier", "--supplier-id", "supp_3", "--phone", "+1 888-7777"]
    )

    assert exit_code == 0
    supplier = core_logic.get_supplier(_reload(sample_config_file), "supp_3")
    assert (supplier.name, supplier.contact_person, supplier.phone) == (
        "Fresh Harvest Co", "Tom Baker", "+1 888-7777",
    )


def test_cli_finds_config_in_parent_directory(sample_config_file, monkeypatch, capsys):
    nested = sample_config_file.parent / "reports" / "march"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    assert cli.main(["receivables", "--as-of", "2025-03-01"]) == 0
    assert "total" in capsys.readouterr().out


def test_cli_invoice_for_walk_in(sample_config_file, capsys):
    exit_code = cli.main(
        ["--config", str(sample_config_file), "invoice", "--item", "item_2:2", "--status", "PAID",
         "--date", "2025-03-02"]
    )

    assert exit_code == 0
    assert "INV-2025-006" in capsys.readouterr().out
    stored = core_logic.find_invoice_by_number(_reload(sample_config_file), "INV-2025-006")
    assert stored.grand_total == Decimal("7350")
    assert stored.customer_id == "0"


def test_cli_schema_mismatch_is_reported(config_factory):
    bundle = config_factory(schema_version="0.1.0")

    assert cli.main(["--config", str(bundle.config_path), "items"]) == 1


# ---------------------------------------------------------------------------
# Workbook setup script
# ---------------------------------------------------------------------------


def test_setup_script_creates_sample_workbook(tmp_path):
    config_path = tmp_path / "config.ini"
    config_path.write_text(
        "[System]\nDataFile = data/book.xlsx\nBusinessName = Shop\nSchemaVersion = 1.0.0\n\n"
        "[Defaults]\nCurrency = LKR\nPaymentTerms = Net 30\n"
    )

    assert setup_excel.main(["--config", str(config_path), "--sample-data"]) == 0
    snapshot = data_manager.load_all(data_manager.open_workbook(tmp_path / "data" / "book.xlsx"))
    assert (len(snapshot.customers), len(snapshot.items), len(snapshot.payments)) == (4, 5, 7)

    assert setup_excel.main(["--config", str(config_path)]) == 1
    assert setup_excel.main(["--config", str(config_path), "--force"]) == 0
    assert data_manager.load_all(data_manager.open_workbook(tmp_path / "data" / "book.xlsx")).items == []
