"""Command-line entry points for the bizdesk back office.

All orchestration in this module is limited to argparse wiring, translating
command-line arguments into the command objects consumed by the business
layer, and printing results. Keeping the CLI thin means tests, scripts or any
other front-end can reuse the same parser configuration.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Tuple

from . import core_logic, ledger, log, queries
from .constants import ALL_CATEGORIES, CATEGORIES, CustomerStatus, CustomerType, InvoiceStatus
from .totals import Cart


GrnLineArg = Tuple[str, int, Optional[Decimal], Decimal]
CartItemArg = Tuple[str, int]


@dataclass(frozen=True)
class CommandSpec:
    """Describe how a CLI sub-command is configured and executed."""

    name: str
    help_text: str
    register: Callable[[argparse._SubParsersAction[argparse.ArgumentParser]], argparse.ArgumentParser]
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int]


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="bizdesk-cli",
        description="Command-line tools for the bizdesk workbook.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to config.ini (searched upward from the working directory by default).",
    )
    return parser


def configure_subcommands(
    parser: argparse.ArgumentParser,
) -> Mapping[str, CommandSpec]:
    """Wire all CLI sub-commands onto the supplied parser."""
    subparsers = parser.add_subparsers(dest="command", required=True, title="commands")
    write_specs = register_write_commands(subparsers)
    read_specs = register_read_commands(subparsers)
    return build_command_table([*write_specs.values(), *read_specs.values()])


def register_write_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare mutating CLI commands such as item saves and stock intake."""
    specs = {
        "add-customer": register_add_customer_command(subparsers),
        "add-supplier": register_add_supplier_command(subparsers),
        "delete-supplier": register_delete_supplier_command(subparsers),
        "add-item": register_add_item_command(subparsers),
        "delete-item": register_delete_item_command(subparsers),
        "grn": register_grn_command(subparsers),
        "invoice": register_invoice_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_read_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare read-only CLI commands such as listings and reports."""
    specs = {
        "receivables": register_receivables_command(subparsers),
        "items": register_items_command(subparsers),
        "customers": register_customers_command(subparsers),
        "suppliers": register_suppliers_command(subparsers),
        "invoices": register_invoices_command(subparsers),
        "payments": register_payments_command(subparsers),
        "reconcile": register_reconcile_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def _decimal_arg(text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid amount: {text!r}") from exc


def _grn_line_arg(text: str) -> GrnLineArg:
    """Parse ``ITEM_ID:QTY[:UNIT_COST[:DISCOUNT]]``."""
    parts = text.split(":")
    if not 2 <= len(parts) <= 4:
        raise argparse.ArgumentTypeError(f"expected ITEM_ID:QTY[:UNIT_COST[:DISCOUNT]], got {text!r}")
    try:
        quantity = int(parts[1])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid quantity: {parts[1]!r}") from exc
    unit_cost = _decimal_arg(parts[2]) if len(parts) > 2 and parts[2] else None
    discount = _decimal_arg(parts[3]) if len(parts) > 3 and parts[3] else Decimal("0")
    return parts[0], quantity, unit_cost, discount


def _cart_item_arg(text: str) -> CartItemArg:
    """Parse ``ITEM_ID[:QTY]``; the quantity defaults to 1."""
    item_id, _, raw_quantity = text.partition(":")
    try:
        quantity = int(raw_quantity) if raw_quantity else 1
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid quantity: {raw_quantity!r}") from exc
    if not item_id or quantity < 1:
        raise argparse.ArgumentTypeError(f"expected ITEM_ID[:QTY] with QTY >= 1, got {text!r}")
    return item_id, quantity


def _add_direction_argument(parser: argparse.ArgumentParser, default: str) -> None:
    parser.add_argument("--direction", choices=list(queries.SORT_DIRECTIONS), default=default)


def register_add_customer_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add-customer``."""
    name = "add-customer"
    help_text = "Create or update a customer."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--name", default=None, help="Display name; required for new customers.")
        parser.add_argument(
            "--customer-id",
            default=None,
            help="Existing customer to update; options left out keep their stored values.",
        )
        parser.add_argument(
            "--type",
            dest="customer_type",
            choices=[member.value for member in CustomerType],
            default=None,
            help=f"Defaults to {CustomerType.BUSINESS.value} for new customers.",
        )
        parser.add_argument("--salutation", default=None)
        parser.add_argument("--first-name", default=None)
        parser.add_argument("--last-name", default=None)
        parser.add_argument("--company-name", default=None)
        parser.add_argument("--email", default=None)
        parser.add_argument("--phone", default=None)
        parser.add_argument("--mobile", default=None)
        parser.add_argument("--website", default=None)
        parser.add_argument("--currency", default=None)
        parser.add_argument("--payment-terms", default=None)
        parser.add_argument("--remarks", default=None)
        status = parser.add_mutually_exclusive_group()
        status.add_argument(
            "--active",
            dest="status",
            action="store_const",
            const=CustomerStatus.ACTIVE.value,
            help="Mark the customer as active.",
        )
        status.add_argument(
            "--inactive",
            dest="status",
            action="store_const",
            const=CustomerStatus.INACTIVE.value,
            help="Mark the customer as inactive.",
        )
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_add_customer)


def register_add_supplier_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add-supplier``."""
    name = "add-supplier"
    help_text = "Create or update a supplier."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--name", default=None, help="Supplier name; required for new suppliers.")
        parser.add_argument(
            "--supplier-id",
            default=None,
            help="Existing supplier to update; options left out keep their stored values.",
        )
        parser.add_argument("--contact-person", default=None)
        parser.add_argument("--address", default=None)
        parser.add_argument("--phone", default=None)
        parser.add_argument("--mobile", default=None)
        parser.add_argument("--email", default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_add_supplier)


def register_delete_supplier_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``delete-supplier``."""
    name = "delete-supplier"
    help_text = "Remove a supplier."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--supplier-id", required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_delete_supplier)


def register_add_item_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add-item``."""
    name = "add-item"
    help_text = "Create or update an item in the item master."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--name", default=None, help="Item name; required for new items.")
        parser.add_argument("--sku", default=None, help="Stock keeping unit; required for new items.")
        parser.add_argument(
            "--item-id",
            default=None,
            help="Existing item to update; options left out keep their stored values.",
        )
        parser.add_argument("--description", default=None)
        parser.add_argument("--category", choices=list(CATEGORIES), default=None)
        parser.add_argument("--stock-qty", type=int, default=None)
        parser.add_argument("--unit", default=None)
        parser.add_argument("--cost", type=_decimal_arg, default=None)
        parser.add_argument("--price", type=_decimal_arg, default=None)
        parser.add_argument("--supplier", default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_add_item)


def register_delete_item_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``delete-item``."""
    name = "delete-item"
    help_text = "Remove an item from the item master."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--item-id", required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_delete_item)


def register_grn_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``grn``."""
    name = "grn"
    help_text = "Receive stock with a goods received note."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument(
            "--line",
            dest="lines",
            action="append",
            type=_grn_line_arg,
            default=[],
            metavar="ITEM_ID:QTY[:UNIT_COST[:DISCOUNT]]",
            help="Received line; repeat for several items.",
        )
        parser.add_argument(
            "--supplier",
            default="",
            help=(
                "Supplier recorded on every received item. When omitted the first "
                "line's item supplier is used for the whole GRN."
            ),
        )
        parser.add_argument("--date", dest="received_on", default=None, help="Receipt date (YYYY-MM-DD).")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_grn)


def register_invoice_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``invoice``."""
    name = "invoice"
    help_text = "Save a sale as an invoice."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument(
            "--item",
            dest="items",
            action="append",
            type=_cart_item_arg,
            default=[],
            metavar="ITEM_ID[:QTY]",
            help="Item to sell; repeat for several items.",
        )
        parser.add_argument("--customer-id", default=None, help="Defaults to the walk-in customer.")
        parser.add_argument(
            "--status",
            choices=[member.value for member in InvoiceStatus],
            default=InvoiceStatus.DRAFT.value,
            help="DRAFT holds the sale; PAID completes it.",
        )
        parser.add_argument("--date", dest="invoice_date", default=None)
        parser.add_argument("--due-date", default=None)
        parser.add_argument("--invoice-id", default=None, help="Existing invoice to overwrite.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_invoice)


def register_receivables_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``receivables``."""
    name = "receivables"
    help_text = "Display the receivables aging summary."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="Aging date (YYYY-MM-DD).")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_receivables_report)


def register_items_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``items``."""
    name = "items"
    help_text = "List items."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--category", choices=[ALL_CATEGORIES, *CATEGORIES], default=ALL_CATEGORIES)
        parser.add_argument("--search", default="")
        parser.add_argument(
            "--sort",
            dest="sort_key",
            choices=[*queries.ITEM_TEXT_SORT_KEYS, *queries.ITEM_NUMERIC_SORT_KEYS],
            default="name",
        )
        _add_direction_argument(parser, "asc")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_items_report)


def register_customers_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``customers``."""
    name = "customers"
    help_text = "List customers."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--search", default="")
        parser.add_argument("--sort", dest="sort_key", default="name")
        _add_direction_argument(parser, "asc")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_customers_report)


def register_suppliers_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``suppliers``."""
    name = "suppliers"
    help_text = "List suppliers."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--search", default="")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_suppliers_report)


def register_invoices_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``invoices``."""
    name = "invoices"
    help_text = "List invoices and the per-status counts."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--search", default="")
        parser.add_argument("--customer-id", default=None, help="Only this customer's invoices.")
        parser.add_argument("--sort", dest="sort_key", choices=list(queries.INVOICE_SORT_KEYS), default="date")
        _add_direction_argument(parser, "desc")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_invoices_report)


def register_payments_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``payments``."""
    name = "payments"
    help_text = "List payments received."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--search", default="")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_payments_report)


def register_reconcile_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``reconcile``."""
    name = "reconcile"
    help_text = "Compare stored customer balances with the invoice and payment ledger."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--all", dest="show_all", action="store_true", help="Include reconciled customers.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_reconcile_report)


def load_runtime_context(config_path: Optional[Path] = None) -> core_logic.RuntimeContext:
    """Resolve the runtime context for CLI operations."""
    target = Path(config_path) if config_path is not None else None
    return core_logic.load_runtime_context(target)


def dispatch_command(
    context: core_logic.RuntimeContext,
    args: argparse.Namespace,
    command_table: Mapping[str, CommandSpec],
) -> int:
    """Dispatch the parsed arguments to the configured executor."""
    if not hasattr(args, "command") or args.command is None:
        raise KeyError("No command specified")
    spec = command_table.get(args.command)
    if spec is None:
        raise KeyError(f"Unknown command: {args.command}")
    return spec.execute(context, args)


def build_command_table(
    specs: Iterable[CommandSpec],
) -> MutableMapping[str, CommandSpec]:
    """Build an index of command specifications keyed by command name."""
    table: Dict[str, CommandSpec] = {}
    for spec in specs:
        if spec.name in table:
            raise ValueError(f"Duplicate command name: {spec.name}")
        table[spec.name] = spec
    return table


def _given(**values: object) -> Dict[str, object]:
    """Keep only the options that were passed on the command line."""
    return {key: value for key, value in values.items() if value is not None}


def translate_add_customer(
    args: argparse.Namespace,
    base: Optional[core_logic.SaveCustomerCommand] = None,
) -> core_logic.SaveCustomerCommand:
    """Translate CLI args into a customer save command.

    ``base`` is the stored customer when editing; options that were not
    given keep its values.
    """
    command = base if base is not None else core_logic.SaveCustomerCommand(name="")
    return replace(
        command,
        **_given(
            name=args.name,
            customer_type=CustomerType(args.customer_type) if args.customer_type else None,
            salutation=args.salutation,
            first_name=args.first_name,
            last_name=args.last_name,
            company_name=args.company_name,
            email=args.email,
            phone=args.phone,
            mobile=args.mobile,
            website=args.website,
            currency=args.currency,
            status=CustomerStatus(args.status) if args.status else None,
            payment_terms=args.payment_terms,
            remarks=args.remarks,
        ),
    )


def translate_add_supplier(
    args: argparse.Namespace,
    base: Optional[core_logic.SaveSupplierCommand] = None,
) -> core_logic.SaveSupplierCommand:
    """Translate CLI args into a supplier save command."""
    command = base if base is not None else core_logic.SaveSupplierCommand(name="")
    return replace(
        command,
        **_given(
            name=args.name,
            contact_person=args.contact_person,
            address=args.address,
            phone=args.phone,
            mobile=args.mobile,
            email=args.email,
        ),
    )


def translate_add_item(
    args: argparse.Namespace,
    base: Optional[core_logic.SaveItemCommand] = None,
) -> core_logic.SaveItemCommand:
    """Translate CLI args into an item save command.

    Editing starts from ``base`` so stock, cost and price only change when
    the matching option is given.
    """
    command = base if base is not None else core_logic.SaveItemCommand(name="", sku="")
    return replace(
        command,
        **_given(
            name=args.name,
            sku=args.sku,
            description=args.description,
            category=args.category,
            stock_qty=args.stock_qty,
            unit=args.unit,
            cost=args.cost,
            price=args.price,
            supplier=args.supplier,
        ),
    )


def translate_invoice(context: core_logic.RuntimeContext, args: argparse.Namespace) -> core_logic.SaveInvoiceCommand:
    """Fill a cart from the ``--item`` arguments and wrap it in a save command.

    Raises:
        MissingReferenceError: If an item id is unknown.
    """
    cart = Cart()
    for item_id, quantity in args.items:
        core_logic.add_to_cart(context, cart, item_id)
        if quantity > 1:
            cart.update_quantity(item_id, quantity - 1)
    return core_logic.SaveInvoiceCommand(
        lines=cart.lines,
        status=InvoiceStatus(args.status),
        customer_id=args.customer_id,
        invoice_date=args.invoice_date,
        due_date=args.due_date,
        invoice_id=args.invoice_id,
    )


def run_add_customer(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the customer save workflow in the BLL.

    Raises:
        MissingReferenceError: If ``--customer-id`` names an unknown customer.
    """
    base = core_logic.edit_customer(context, args.customer_id) if args.customer_id else None
    record = core_logic.save_customer(context, translate_add_customer(args, base))
    if record is None:
        return 2
    print(f"Saved customer {record.customer_id}: {record.name}")
    return 0


def run_add_supplier(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the supplier save workflow in the BLL."""
    base = core_logic.edit_supplier(context, args.supplier_id) if args.supplier_id else None
    record = core_logic.save_supplier(context, translate_add_supplier(args, base))
    if record is None:
        return 2
    print(f"Saved supplier {record.supplier_id}: {record.name}")
    return 0


def run_delete_supplier(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    core_logic.delete_supplier(context, args.supplier_id)
    print(f"Deleted supplier {args.supplier_id}")
    return 0


def run_add_item(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the item save workflow in the BLL."""
    base = core_logic.edit_item(context, args.item_id) if args.item_id else None
    record = core_logic.save_item(context, translate_add_item(args, base))
    if record is None:
        return 2
    print(f"Saved item {record.item_id}: {record.sku} {record.name}")
    return 0


def run_delete_item(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    core_logic.delete_item(context, args.item_id)
    print(f"Deleted item {args.item_id}")
    return 0


def run_grn(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Author a GRN from the ``--line`` arguments and apply it.

    Returns 2 when no line survives validation, in which case nothing is
    received.
    """
    draft = core_logic.start_grn(received_on=args.received_on, supplier=args.supplier)
    lines: List[GrnLineArg] = args.lines
    for item_id, quantity, unit_cost, discount in lines:
        core_logic.add_grn_line(context, draft, item_id, quantity, unit_cost=unit_cost, discount=discount)
    grand_total = draft.grand_total
    updated = core_logic.apply_grn(context, draft)
    if not updated:
        return 2
    for item in updated:
        print(f"{item.item_id}\t{item.sku}\tstock={item.stock_qty}\tcost={item.cost}\tsupplier={item.supplier or ''}")
    print(f"GRN total: {grand_total}")
    return 0


def run_invoice(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the invoice save workflow in the BLL."""
    invoice = core_logic.save_invoice(context, translate_invoice(context, args))
    print(f"Saved {invoice.status} invoice {invoice.invoice_number} for {invoice.customer_name}")
    print(f"  Sub total: {invoice.sub_total}")
    print(f"  Tax:       {invoice.total_tax}")
    print(f"  Discount:  {invoice.total_discount}")
    print(f"  Total:     {invoice.grand_total}")
    print(f"  Balance:   {invoice.balance_due}")
    return 0


def run_receivables_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print the aging buckets with their share of the total."""
    summary = core_logic.calculate_receivables(context, as_of=args.as_of)
    shares = summary.shares()
    for bucket, amount in summary.buckets().items():
        print(f"{bucket:>8}  {amount:>14}  {shares[bucket] * 100:6.2f}%")
    print(f"{'total':>8}  {summary.total:>14}")
    return 0


def run_items_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    items = queries.filter_items(
        core_logic.list_items(context),
        category=args.category,
        search=args.search,
        sort_key=args.sort_key,
        direction=args.direction,
    )
    for item in items:
        print(f"{item.item_id}\t{item.sku}\t{item.name}\t{item.category}\tstock={item.stock_qty}\tprice={item.price}")
    return 0


def run_customers_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    customers = queries.filter_customers(
        core_logic.list_customers(context),
        search=args.search,
        sort_key=args.sort_key,
        direction=args.direction,
    )
    for customer in customers:
        print(
            f"{customer.customer_id}\t{customer.name}\t{customer.customer_type}\t"
            f"receivables={customer.receivables}\tcredits={customer.unused_credits}"
        )
    return 0


def run_suppliers_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    for supplier in queries.filter_suppliers(core_logic.list_suppliers(context), search=args.search):
        print(f"{supplier.supplier_id}\t{supplier.name}\t{supplier.contact_person}\t{supplier.phone}")
    return 0


def run_invoices_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print the filtered invoice list followed by the status counters."""
    if args.customer_id:
        source = core_logic.invoices_for_customer(context, args.customer_id)
    else:
        source = core_logic.list_invoices(context)
    invoices = queries.filter_invoices(source, search=args.search, sort_key=args.sort_key, direction=args.direction)
    for invoice in invoices:
        print(
            f"{invoice.invoice_number}\t{invoice.date}\t{invoice.customer_name}\t{invoice.status}\t"
            f"total={invoice.grand_total}\tbalance={invoice.balance_due}"
        )
    counts = core_logic.invoice_status_counts(context)
    print(", ".join(f"{status}: {count}" for status, count in counts.items()))
    return 0


def run_payments_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print payments with their applied amount and per-invoice split."""
    for payment in queries.filter_payments(core_logic.list_payments(context), search=args.search):
        allocations = ledger.payment_allocations(payment)
        linked = ", ".join(f"{number}={share}" for number, share in allocations.items()) or "-"
        print(
            f"{payment.payment_number}\t{payment.date}\t{payment.customer_name}\t{payment.mode}\t"
            f"amount={payment.amount}\tapplied={ledger.applied_amount(payment)}\tinvoices={linked}"
        )
    return 0


def run_reconcile_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print stored versus derived balances, mismatches only unless ``--all``."""
    balances = core_logic.reconcile_customer_balances(context)
    shown = balances if args.show_all else ledger.find_mismatches(balances)
    for balance in shown:
        marker = "ok" if balance.is_reconciled else "MISMATCH"
        print(
            f"{balance.customer_id}\t{balance.name}\t{marker}\t"
            f"receivables {balance.stored_receivables} vs {balance.derived_receivables}\t"
            f"credits {balance.stored_unused_credits} vs {balance.derived_unused_credits}"
        )
    if not shown:
        print("All customer balances match the ledger.")
    return 0


def handle_cli_error(error: Exception) -> int:
    """Convert raised exceptions into user-friendly exit codes."""
    if isinstance(error, core_logic.BusinessRuleViolation):
        log.error("%s", error)
        return 2
    if isinstance(error, FileNotFoundError):
        log.error("%s", error)
        return 3
    log.error("%s", error)
    return 1


def persist_workbook(context: core_logic.RuntimeContext) -> None:
    """Persist workbook changes after successful execution."""
    try:
        core_logic.persist_context(context)
    except PermissionError as error:
        raise RuntimeError(str(error)) from error


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point that orchestrates parsing and execution."""
    parser = build_parser()
    command_table = configure_subcommands(parser)
    args = parser.parse_args(argv)
    try:
        context = load_runtime_context(getattr(args, "config", None))
        core_logic.ensure_schema_version(context)
        exit_code = dispatch_command(context, args, command_table)
        if exit_code == 0:
            persist_workbook(context)
        return exit_code
    except Exception as error:  # pragma: no cover - centralised error handler tested separately
        return handle_cli_error(error)
