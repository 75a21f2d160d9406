"""Business logic layer for bizdesk.

This module owns the entity store: every mutation of customers, suppliers,
items and invoices passes through one of the command functions below, which
validate the request, write through the Data Access Layer (DAL) and
invalidate the affected caches. Pure calculations (totals, aging, GRN
application, reconciliation) live in their own modules and are orchestrated
from here.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openpyxl.workbook import Workbook

from . import data_manager, grn, ledger, log, receivables
from .constants import (
    EXPECTED_SCHEMA_VERSION,
    WALK_IN_CUSTOMER_ID,
    WALK_IN_CUSTOMER_NAME,
    CustomerStatus,
    CustomerType,
    InvoiceStatus,
)
from .errors import BusinessRuleViolation, MissingReferenceError
from .totals import Cart, balance_due_for, calculate_totals


__all__ = [
    "BusinessRuleViolation",
    "MissingReferenceError",
    "RuntimeContext",
]


@dataclass(frozen=True)
class RuntimeContext:
    """Container for configuration and workbook references used by the BLL."""

    settings: data_manager.ConfigSettings
    workbook: Workbook
    _cache: Dict[str, Dict[str, Any]] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True)
class SaveCustomerCommand:
    """User intent for creating or editing a customer.

    ``customer_id`` selects the record to edit; leave it ``None`` to create.
    Blank ``currency`` and ``payment_terms`` fall back to the configured
    defaults. Balances left as ``None`` keep the stored values on edit and
    start at zero on create.
    """

    name: str
    customer_type: CustomerType = CustomerType.BUSINESS
    customer_id: Optional[str] = None
    salutation: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    email: str = ""
    phone: str = ""
    mobile: str = ""
    website: Optional[str] = None
    currency: Optional[str] = None
    status: CustomerStatus = CustomerStatus.ACTIVE
    payment_terms: Optional[str] = None
    receivables: Optional[Decimal] = None
    unused_credits: Optional[Decimal] = None
    remarks: Optional[str] = None


@dataclass(frozen=True)
class SaveItemCommand:
    """User intent for creating or editing an item."""

    name: str
    sku: str
    item_id: Optional[str] = None
    description: str = ""
    category: str = "Beverage"
    stock_qty: int = 0
    unit: str = "Unit"
    cost: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    supplier: Optional[str] = None


@dataclass(frozen=True)
class SaveSupplierCommand:
    """User intent for creating or editing a supplier."""

    name: str
    supplier_id: Optional[str] = None
    contact_person: str = ""
    address: str = ""
    phone: str = ""
    mobile: str = ""
    email: str = ""


@dataclass(frozen=True)
class SaveInvoiceCommand:
    """User intent for saving a cart as an invoice.

    ``status`` is ``DRAFT`` when the sale is held and ``PAID`` once payment
    completes. ``invoice_id`` selects an existing invoice to overwrite.
    """

    lines: Sequence[data_manager.InvoiceLineRow]
    status: InvoiceStatus
    customer_id: Optional[str] = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    invoice_id: Optional[str] = None


def _resolve_timestamp(candidate: Optional[datetime]) -> datetime:
    """Return ``candidate`` or the current UTC datetime."""

    return candidate if candidate is not None else datetime.now(UTC)


def _today() -> date:
    return _resolve_timestamp(None).date()


# Cache bucket name -> (DAL iterator name, primary key attribute)
_CACHE_SOURCES: Dict[str, tuple[str, str]] = {
    "customers": ("iter_customers", "customer_id"),
    "suppliers": ("iter_suppliers", "supplier_id"),
    "items": ("iter_items", "item_id"),
    "invoices": ("iter_invoices", "invoice_id"),
    "payments": ("iter_payments", "payment_id"),
}


def _get_cache_bucket(context: RuntimeContext, name: str) -> Dict[str, Any]:
    """Return a mutable cache bucket dedicated to the supplied name.

    The business logic layer maintains in-memory caches keyed by entity set.
    Buckets are simple dictionaries that store precomputed query results so
    repeated reads do not rescan the workbook.

    Args:
        context (RuntimeContext): Runtime state carrying the shared cache
            dictionary.
        name (str): Logical bucket name to fetch or create.

    Returns:
        dict[str, Any]: Mutable mapping used to cache one entity set.
    """

    bucket = context._cache.get(name)
    if bucket is None:
        log.debug("Initializing cache bucket '%s'", name)
        bucket = {}
        context._cache[name] = bucket
    return bucket


def _invalidate_cache(context: RuntimeContext, *names: str) -> None:
    """Evict one or more cache buckets after mutating workbook state.

    Missing buckets are ignored so callers can request targeted invalidation
    without checking first.
    """

    if not names:
        return

    log.debug("Invalidating cache buckets: %s", ", ".join(names))

    for name in names:
        context._cache.pop(name, None)


def _ensure_cache(context: RuntimeContext, name: str) -> Dict[str, Any]:
    """Populate the ``name`` cache bucket on demand.

    The bucket holds ``all`` rows in sheet order and a ``by_id`` lookup. The
    DAL iterator is resolved at call time so it can be swapped out in tests.

    Args:
        context (RuntimeContext): Runtime state used to access the workbook and
            shared caches.
        name (str): One of the keys of ``_CACHE_SOURCES``.

    Returns:
        dict[str, Any]: Bucket containing ``all`` rows and ``by_id``.
    """

    bucket = _get_cache_bucket(context, name)
    if "all" not in bucket:
        iterator_name, key_attr = _CACHE_SOURCES[name]
        rows = list(getattr(data_manager, iterator_name)(context.workbook))
        bucket["all"] = rows
        bucket["by_id"] = {getattr(row, key_attr): row for row in rows}
        log.debug("Populated %s cache with %d entries", name, len(rows))
    return bucket


def _lookup(context: RuntimeContext, name: str, label: str, key: str) -> Any:
    try:
        return _ensure_cache(context, name)["by_id"][key]
    except KeyError as exc:
        log.warning("%s lookup failed for id '%s'", label.capitalize(), key)
        raise MissingReferenceError(f"Unknown {label} id: {key}") from exc


def load_runtime_context(config_path: Optional[Path] = None) -> RuntimeContext:
    """Load configuration settings and a live workbook for the BLL.

    The helper resolves ``config.ini``, parses settings, and opens the Excel
    workbook that stores all entities. The resulting :class:`RuntimeContext`
    bundles the immutable settings with a mutable workbook handle and an empty
    cache store.

    Args:
        config_path (Path | None): Optional override path for the configuration
            file. When omitted the data layer performs its upward search from
            the current working directory.

    Returns:
        RuntimeContext: Fully populated context ready for command functions.

    Raises:
        FileNotFoundError: If the configuration file or workbook cannot be
            located.
        KeyError: When mandatory configuration options are missing.
    """
    located_config = data_manager.find_config_file(config_path)
    resolved_config = Path(located_config).expanduser().resolve()
    parser = data_manager.read_config(resolved_config)
    settings = data_manager.parse_settings(parser, base_path=resolved_config.parent)
    workbook = data_manager.open_workbook(settings.data_file)
    log.info("Loaded runtime context for workbook '%s'", settings.data_file)
    return RuntimeContext(settings=settings, workbook=workbook)


def ensure_schema_version(context: RuntimeContext) -> None:
    """Validate workbook compatibility before mutating state.

    Raises:
        RuntimeError: If the schema version declared in the configuration does
            not match ``EXPECTED_SCHEMA_VERSION``.
    """
    if context.settings.schema_version != EXPECTED_SCHEMA_VERSION:
        log.error(
            "Workbook schema mismatch: expected %s, found %s",
            EXPECTED_SCHEMA_VERSION,
            context.settings.schema_version,
        )
        raise RuntimeError(
            "Workbook schema mismatch: expected %s, found %s"
            % (EXPECTED_SCHEMA_VERSION, context.settings.schema_version)
        )

    log.debug("Schema version '%s' validated", context.settings.schema_version)


def persist_context(context: RuntimeContext) -> None:
    """Persist any in-memory workbook changes to the configured data file."""
    data_manager.save_workbook(
        context.workbook,
        destination=context.settings.data_file,
    )
    log.info("Persisted workbook '%s'", context.settings.data_file)


def refresh_context(context: RuntimeContext) -> RuntimeContext:
    """Reload the workbook to discard unsaved modifications.

    Returns:
        RuntimeContext: Fresh context containing a newly opened workbook and
            an empty cache.

    Raises:
        FileNotFoundError: If the backing workbook cannot be reloaded.
    """
    workbook = data_manager.refresh_workbook(context.settings.data_file)
    log.info("Reloaded workbook '%s'", context.settings.data_file)
    return RuntimeContext(settings=context.settings, workbook=workbook)


def list_customers(context: RuntimeContext) -> List[data_manager.CustomerRow]:
    """Return a copy of the cached customer list in sheet order."""
    return list(_ensure_cache(context, "customers")["all"])


def list_suppliers(context: RuntimeContext) -> List[data_manager.SupplierRow]:
    return list(_ensure_cache(context, "suppliers")["all"])


def list_items(context: RuntimeContext) -> List[data_manager.ItemRow]:
    return list(_ensure_cache(context, "items")["all"])


def list_invoices(context: RuntimeContext) -> List[data_manager.InvoiceRow]:
    return list(_ensure_cache(context, "invoices")["all"])


def list_payments(context: RuntimeContext) -> List[data_manager.PaymentRow]:
    return list(_ensure_cache(context, "payments")["all"])


def get_customer(context: RuntimeContext, customer_id: str) -> data_manager.CustomerRow:
    """Resolve a customer by identifier.

    Raises:
        MissingReferenceError: If ``customer_id`` is absent from the workbook.
    """
    return _lookup(context, "customers", "customer", customer_id)


def get_supplier(context: RuntimeContext, supplier_id: str) -> data_manager.SupplierRow:
    """Resolve a supplier by identifier.

    Raises:
        MissingReferenceError: If ``supplier_id`` is absent from the workbook.
    """
    return _lookup(context, "suppliers", "supplier", supplier_id)


def get_item(context: RuntimeContext, item_id: str) -> data_manager.ItemRow:
    """Resolve an item by identifier.

    Raises:
        MissingReferenceError: If ``item_id`` is absent from the workbook.
    """
    return _lookup(context, "items", "item", item_id)


def get_invoice(context: RuntimeContext, invoice_id: str) -> data_manager.InvoiceRow:
    """Resolve an invoice by identifier.

    Raises:
        MissingReferenceError: If ``invoice_id`` is absent from the workbook.
    """
    return _lookup(context, "invoices", "invoice", invoice_id)


def find_invoice_by_number(context: RuntimeContext, invoice_number: str) -> Optional[data_manager.InvoiceRow]:
    for invoice in _ensure_cache(context, "invoices")["all"]:
        if invoice.invoice_number == invoice_number:
            return invoice
    return None


def generate_id(*, prefix: str, when: Optional[datetime] = None) -> str:
    """Generate a sortable record identifier using UTC timestamps.

    Args:
        prefix (str): Designator prepended to the identifier, one per entity.
        when (datetime | None): Timestamp used for deterministically producing
            the identifier. When ``None`` the current UTC time is used.

    Returns:
        str: Identifier formed as ``{prefix}{YYYYMMDDHHMMSSffffff}``.
    """
    when = when or _resolve_timestamp(None)
    return f"{prefix}{when.strftime('%Y%m%d%H%M%S%f')}"


def next_invoice_number(invoices: Iterable[data_manager.InvoiceRow], year: int) -> str:
    """Return the next ``INV-<year>-<nnn>`` number after the highest in use."""

    prefix = f"INV-{year}-"
    highest = 0
    for invoice in invoices:
        suffix = invoice.invoice_number[len(prefix):]
        if invoice.invoice_number.startswith(prefix) and suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:03d}"


def save_customer(context: RuntimeContext, command: SaveCustomerCommand) -> Optional[data_manager.CustomerRow]:
    """Create or update a customer.

    A blank display name rejects the save: nothing is written and ``None`` is
    returned. When ``command.customer_id`` names an existing customer that
    row is overwritten, otherwise a new row is appended. The stored
    ``receivables`` and ``unused_credits`` survive an edit unless the command
    sets them explicitly.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        command (SaveCustomerCommand): Customer form contents.

    Returns:
        data_manager.CustomerRow | None: The stored record, or ``None`` when
            the save was rejected.
    """
    if not command.name.strip():
        log.warning("Ignoring customer save without a display name")
        return None

    existing = _ensure_cache(context, "customers")["by_id"].get(command.customer_id)
    stored_receivables = existing.receivables if existing is not None else Decimal("0")
    stored_credits = existing.unused_credits if existing is not None else Decimal("0")
    record = data_manager.CustomerRow(
        customer_id=command.customer_id or generate_id(prefix="C"),
        name=command.name,
        customer_type=CustomerType(command.customer_type).value,
        salutation=command.salutation,
        first_name=command.first_name,
        last_name=command.last_name,
        company_name=command.company_name,
        email=command.email,
        phone=command.phone,
        mobile=command.mobile,
        website=command.website,
        currency=command.currency or context.settings.default_currency,
        status=CustomerStatus(command.status).value,
        payment_terms=command.payment_terms or context.settings.default_payment_terms,
        receivables=stored_receivables if command.receivables is None else command.receivables,
        unused_credits=stored_credits if command.unused_credits is None else command.unused_credits,
        remarks=command.remarks,
    )
    if existing is not None:
        data_manager.update_customer(context.workbook, record)
        log.info("Updated customer '%s' (%s)", record.customer_id, record.name)
    else:
        data_manager.append_customer(context.workbook, record)
        log.info("Added customer '%s' (%s)", record.customer_id, record.name)
    _invalidate_cache(context, "customers")
    return record


def edit_customer(context: RuntimeContext, customer_id: str) -> SaveCustomerCommand:
    """Prefill an edit form with every stored field of a customer.

    Raises:
        MissingReferenceError: If ``customer_id`` is unknown.
    """
    source = get_customer(context, customer_id)
    return SaveCustomerCommand(
        name=source.name,
        customer_id=source.customer_id,
        customer_type=CustomerType(source.customer_type),
        salutation=source.salutation,
        first_name=source.first_name,
        last_name=source.last_name,
        company_name=source.company_name,
        email=source.email,
        phone=source.phone,
        mobile=source.mobile,
        website=source.website,
        currency=source.currency,
        status=CustomerStatus(source.status),
        payment_terms=source.payment_terms,
        receivables=source.receivables,
        unused_credits=source.unused_credits,
        remarks=source.remarks,
    )


def clone_customer(context: RuntimeContext, customer_id: str) -> SaveCustomerCommand:
    """Prefill a new-customer form from an existing customer.

    The returned command has no id, so saving it creates a new record.

    Raises:
        MissingReferenceError: If ``customer_id`` is unknown.
    """
    source = edit_customer(context, customer_id)
    return replace(source, name=f"{source.name} (Copy)", customer_id=None)


def save_supplier(context: RuntimeContext, command: SaveSupplierCommand) -> Optional[data_manager.SupplierRow]:
    """Create or update a supplier; a blank name rejects the save."""
    if not command.name.strip():
        log.warning("Ignoring supplier save without a name")
        return None

    existing = _ensure_cache(context, "suppliers")["by_id"].get(command.supplier_id)
    record = data_manager.SupplierRow(
        supplier_id=command.supplier_id or generate_id(prefix="S"),
        name=command.name,
        contact_person=command.contact_person,
        address=command.address,
        phone=command.phone,
        mobile=command.mobile,
        email=command.email,
    )
    if existing is not None:
        data_manager.update_supplier(context.workbook, record)
        log.info("Updated supplier '%s' (%s)", record.supplier_id, record.name)
    else:
        data_manager.append_supplier(context.workbook, record)
        log.info("Added supplier '%s' (%s)", record.supplier_id, record.name)
    _invalidate_cache(context, "suppliers")
    return record


def edit_supplier(context: RuntimeContext, supplier_id: str) -> SaveSupplierCommand:
    """Prefill an edit form with the stored supplier.

    Raises:
        MissingReferenceError: If ``supplier_id`` is unknown.
    """
    source = get_supplier(context, supplier_id)
    return SaveSupplierCommand(
        name=source.name,
        supplier_id=source.supplier_id,
        contact_person=source.contact_person,
        address=source.address,
        phone=source.phone,
        mobile=source.mobile,
        email=source.email,
    )


def delete_supplier(context: RuntimeContext, supplier_id: str) -> None:
    """Remove a supplier.

    Items keep the supplier name they were last received from.

    Raises:
        MissingReferenceError: If ``supplier_id`` is unknown.
    """
    supplier = get_supplier(context, supplier_id)
    data_manager.delete_supplier(context.workbook, supplier_id)
    _invalidate_cache(context, "suppliers")
    log.info("Deleted supplier '%s' (%s)", supplier_id, supplier.name)


def save_item(context: RuntimeContext, command: SaveItemCommand) -> Optional[data_manager.ItemRow]:
    """Create or update an item.

    Both ``name`` and ``sku`` are required; a save missing either is ignored
    and ``None`` is returned. When ``command.item_id`` names an existing item
    the whole row is overwritten, including ``stock_qty``, so edits should
    start from :func:`edit_item`.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        command (SaveItemCommand): Item form contents.

    Returns:
        data_manager.ItemRow | None: The stored record, or ``None`` when the
            save was rejected.
    """
    if not command.name.strip() or not command.sku.strip():
        log.warning("Ignoring item save without name or SKU")
        return None

    existing = _ensure_cache(context, "items")["by_id"].get(command.item_id)
    record = data_manager.ItemRow(
        item_id=command.item_id or generate_id(prefix="I"),
        sku=command.sku,
        name=command.name,
        description=command.description,
        category=command.category,
        stock_qty=int(command.stock_qty),
        unit=command.unit,
        cost=Decimal(command.cost),
        price=Decimal(command.price),
        supplier=command.supplier,
    )
    if existing is not None:
        data_manager.update_item(
            context.workbook,
            record.item_id,
            field_values=data_manager.as_field_values(
                data_manager.ITEMS_SHEET, data_manager.serialize_item(record)
            ),
        )
        log.info("Updated item '%s' (%s)", record.item_id, record.sku)
    else:
        data_manager.append_item(context.workbook, record)
        log.info("Added item '%s' (%s)", record.item_id, record.sku)
    _invalidate_cache(context, "items")
    return record


def edit_item(context: RuntimeContext, item_id: str) -> SaveItemCommand:
    """Prefill an edit form with every stored field of an item.

    Raises:
        MissingReferenceError: If ``item_id`` is unknown.
    """
    source = get_item(context, item_id)
    return SaveItemCommand(
        name=source.name,
        sku=source.sku,
        item_id=source.item_id,
        description=source.description,
        category=source.category,
        stock_qty=source.stock_qty,
        unit=source.unit,
        cost=source.cost,
        price=source.price,
        supplier=source.supplier,
    )


def clone_item(context: RuntimeContext, item_id: str) -> SaveItemCommand:
    """Prefill a new-item form from an existing item.

    Raises:
        MissingReferenceError: If ``item_id`` is unknown.
    """
    source = edit_item(context, item_id)
    return replace(source, name=f"{source.name} (Copy)", sku=f"{source.sku}-COPY", item_id=None)


def delete_item(context: RuntimeContext, item_id: str) -> None:
    """Remove an item from the item master.

    Raises:
        MissingReferenceError: If ``item_id`` is unknown.
    """
    item = get_item(context, item_id)
    data_manager.delete_item(context.workbook, item_id)
    _invalidate_cache(context, "items")
    log.info("Deleted item '%s' (%s)", item_id, item.sku)


def start_grn(*, received_on: Optional[str] = None, supplier: str = "") -> grn.GrnDraft:
    """Open an empty GRN dated ``received_on`` (today when omitted)."""
    return grn.GrnDraft(received_on=received_on or _today().isoformat(), supplier=supplier)


def add_grn_line(
    context: RuntimeContext,
    draft: grn.GrnDraft,
    item_id: str,
    quantity: int,
    *,
    unit_cost: Optional[Decimal] = None,
    discount: Decimal = Decimal("0"),
) -> Optional[grn.GrnLine]:
    """Add a received item to ``draft``, filling details from the item master.

    The unit cost defaults to the item's current cost, and an empty GRN
    supplier is taken from the item. Input without an item, with a
    non-positive quantity, or naming an unknown item is ignored and ``None``
    is returned.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        draft (grn.GrnDraft): GRN being authored.
        item_id (str): Received item.
        quantity (int): Received quantity.
        unit_cost (Decimal | None): Incoming unit cost override.
        discount (Decimal): Flat discount on the line.

    Returns:
        grn.GrnLine | None: The appended line, or ``None`` when ignored.

    Raises:
        BusinessRuleViolation: If ``draft`` is already confirmed.
    """
    if not item_id or quantity <= 0:
        return draft.add_line(item_id, quantity, unit_cost or Decimal("0"), discount)

    item = _ensure_cache(context, "items")["by_id"].get(item_id)
    if item is None:
        log.warning("Ignoring GRN line for unknown item '%s'", item_id)
        return None

    if not draft.supplier and item.supplier:
        draft.supplier = item.supplier
    return draft.add_line(
        item.item_id,
        quantity,
        item.cost if unit_cost is None else unit_cost,
        discount,
        name=item.name,
        sku=item.sku,
    )


def apply_grn(context: RuntimeContext, draft: grn.GrnDraft) -> List[data_manager.ItemRow]:
    """Confirm ``draft`` and receive its lines into the item master.

    Each touched item gets its stock increased by the received quantity, its
    cost replaced by the incoming unit cost, and its supplier switched to the
    GRN supplier when one is set. All updates are computed before any row is
    written. An empty draft is rejected and nothing changes.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        draft (grn.GrnDraft): GRN in the ``AUTHORING`` state.

    Returns:
        list[data_manager.ItemRow]: Items as stored after the intake; empty
            when the draft was rejected.

    Raises:
        BusinessRuleViolation: If ``draft`` is already confirmed.
    """
    lines = draft.confirm()
    if not lines:
        return []

    by_id = _ensure_cache(context, "items")["by_id"]
    updated = grn.apply_lines(by_id, lines, supplier=draft.supplier)
    for item in updated:
        data_manager.update_item(
            context.workbook,
            item.item_id,
            field_values={"StockQty": item.stock_qty, "Cost": item.cost, "Supplier": item.supplier},
        )
    _invalidate_cache(context, "items")
    log.info(
        "Applied GRN dated %s from '%s': %d lines, %d items, total %s",
        draft.received_on,
        draft.supplier,
        len(lines),
        len(updated),
        sum((line.total for line in lines), Decimal("0")),
    )
    return updated


def refresh_selection(
    selected: Optional[data_manager.ItemRow],
    updated: Iterable[data_manager.ItemRow],
) -> Optional[data_manager.ItemRow]:
    """Swap a selected item for its updated copy, if an update touched it."""
    if selected is None:
        return None
    for item in updated:
        if item.item_id == selected.item_id:
            return item
    return selected


def add_to_cart(context: RuntimeContext, cart: Cart, item_id: str) -> data_manager.InvoiceLineRow:
    """Add one unit of a catalogue item to ``cart``.

    Raises:
        MissingReferenceError: If ``item_id`` is unknown.
    """
    return cart.add_item(get_item(context, item_id))


def load_cart(invoice: data_manager.InvoiceRow) -> Cart:
    """Reopen an invoice's lines for editing."""
    return Cart(invoice.lines)


def save_invoice(context: RuntimeContext, command: SaveInvoiceCommand) -> data_manager.InvoiceRow:
    """Build an invoice from a cart and store it.

    Totals always come from :func:`~bizdesk.totals.calculate_totals`. The
    balance due is zero for ``PAID`` and the grand total otherwise. Without a
    customer the sale is booked to the walk-in customer. A missing due date
    defaults to the invoice date. New invoices are numbered sequentially per
    year; editing keeps the existing number.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        command (SaveInvoiceCommand): Cart contents and invoice metadata.

    Returns:
        data_manager.InvoiceRow: The stored invoice.

    Raises:
        MissingReferenceError: If ``command.customer_id`` is unknown.
    """
    status = InvoiceStatus(command.status)
    invoices = _ensure_cache(context, "invoices")
    existing = invoices["by_id"].get(command.invoice_id) if command.invoice_id else None

    if command.customer_id:
        customer = get_customer(context, command.customer_id)
        customer_id, customer_name = customer.customer_id, customer.name
    else:
        customer_id, customer_name = WALK_IN_CUSTOMER_ID, WALK_IN_CUSTOMER_NAME

    invoice_date = command.invoice_date or _today().isoformat()
    totals = calculate_totals(command.lines)
    if existing is not None:
        invoice_id, invoice_number = existing.invoice_id, existing.invoice_number
    else:
        invoice_id = command.invoice_id or generate_id(prefix="V")
        invoice_number = next_invoice_number(invoices["all"], date.fromisoformat(invoice_date).year)

    invoice = data_manager.InvoiceRow(
        invoice_id=invoice_id,
        invoice_number=invoice_number,
        customer_id=customer_id,
        customer_name=customer_name,
        date=invoice_date,
        due_date=command.due_date or invoice_date,
        status=status.value,
        sub_total=totals.sub_total,
        total_tax=totals.total_tax,
        total_discount=totals.total_discount,
        grand_total=totals.grand_total,
        balance_due=balance_due_for(status, totals.grand_total),
        lines=tuple(command.lines),
    )
    if existing is not None:
        data_manager.update_invoice(context.workbook, invoice)
    else:
        data_manager.append_invoice(context.workbook, invoice)
    _invalidate_cache(context, "invoices")
    log.info(
        "Saved %s invoice '%s' for '%s' (grand total=%s, balance due=%s)",
        invoice.status,
        invoice.invoice_number,
        invoice.customer_name,
        invoice.grand_total,
        invoice.balance_due,
    )
    return invoice


def calculate_receivables(context: RuntimeContext, *, as_of: Optional[receivables.AsOf] = None) -> receivables.ReceivablesSummary:
    """Age the outstanding invoice balances as of ``as_of`` (today by default)."""
    return receivables.summarize_receivables(list_invoices(context), as_of=as_of or _today())


def invoice_status_counts(context: RuntimeContext) -> Dict[str, int]:
    return receivables.invoice_status_counts(list_invoices(context))


def invoices_for_customer(context: RuntimeContext, customer_id: str) -> List[data_manager.InvoiceRow]:
    return [invoice for invoice in list_invoices(context) if invoice.customer_id == customer_id]


def reconcile_customer_balances(context: RuntimeContext) -> List[ledger.CustomerBalance]:
    """Compare each customer's stored balances with the ledger-derived ones.

    Stored ``receivables`` and ``unused_credits`` are left untouched; the
    result only reports both views side by side.
    """
    balances = ledger.derive_customer_balances(
        list_customers(context),
        list_invoices(context),
        list_payments(context),
    )
    mismatches = ledger.find_mismatches(balances)
    if mismatches:
        log.warning("%d of %d customers differ from the ledger", len(mismatches), len(balances))
    return balances
