"""Data access layer for bizdesk.

This module provides low-level helpers that read from and write to the
master workbook. Business logic belongs elsewhere.

The public API is designed around three responsibilities:

1. Configuration handling: finding and parsing ``config.ini``.
2. Workbook lifecycle: opening, validating, and persisting the Excel file.
3. Sheet operations: loading structured records and appending, updating or
   deleting individual rows.
"""


from __future__ import annotations

import configparser
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from openpyxl.workbook import Workbook
import openpyxl

from . import log
from .constants import CustomerStatus, CustomerType, SheetName


CONFIG_FILE_NAME = "config.ini"
CUSTOMERS_SHEET = SheetName.CUSTOMERS.value
SUPPLIERS_SHEET = SheetName.SUPPLIERS.value
ITEMS_SHEET = SheetName.ITEMS.value
INVOICES_SHEET = SheetName.INVOICES.value
INVOICE_LINES_SHEET = SheetName.INVOICE_LINES.value
PAYMENTS_SHEET = SheetName.PAYMENTS.value

INVOICE_NUMBER_SEPARATOR = ","

# Column order of every sheet. Serializers emit values in exactly this order.
SHEET_COLUMNS: Mapping[str, Sequence[str]] = {
    CUSTOMERS_SHEET: [
        "CustomerID",
        "Name",
        "Type",
        "Salutation",
        "FirstName",
        "LastName",
        "CompanyName",
        "Email",
        "Phone",
        "Mobile",
        "Website",
        "Currency",
        "Status",
        "PaymentTerms",
        "Receivables",
        "UnusedCredits",
        "Remarks",
    ],
    SUPPLIERS_SHEET: [
        "SupplierID",
        "Name",
        "ContactPerson",
        "Address",
        "Phone",
        "Mobile",
        "Email",
    ],
    ITEMS_SHEET: [
        "ItemID",
        "SKU",
        "Name",
        "Description",
        "Category",
        "StockQty",
        "Unit",
        "Cost",
        "Price",
        "Supplier",
    ],
    INVOICES_SHEET: [
        "InvoiceID",
        "InvoiceNumber",
        "CustomerID",
        "CustomerName",
        "Date",
        "DueDate",
        "Status",
        "SubTotal",
        "TotalTax",
        "TotalDiscount",
        "GrandTotal",
        "BalanceDue",
    ],
    INVOICE_LINES_SHEET: [
        "InvoiceID",
        "ItemID",
        "Name",
        "Quantity",
        "Rate",
        "DiscountPercent",
        "TaxPercent",
        "Amount",
    ],
    PAYMENTS_SHEET: [
        "PaymentID",
        "Date",
        "PaymentNumber",
        "ReferenceNumber",
        "CustomerName",
        "InvoiceNumbers",
        "Mode",
        "Amount",
        "UnusedAmount",
        "Status",
    ],
}


@dataclass(frozen=True)
class ConfigSettings:
    """Typed representation of the ``config.ini`` settings we care about."""

    data_file: Path
    business_name: str
    schema_version: str
    default_currency: str
    default_payment_terms: str


@dataclass(frozen=True)
class CustomerRow:
    """In-memory view of a row from the ``Customers`` sheet."""

    customer_id: str
    name: str
    customer_type: str = CustomerType.BUSINESS.value
    salutation: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    email: str = ""
    phone: str = ""
    mobile: str = ""
    website: Optional[str] = None
    currency: str = "LKR"
    status: str = CustomerStatus.ACTIVE.value
    payment_terms: str = "Due on Receipt"
    receivables: Decimal = Decimal("0")
    unused_credits: Decimal = Decimal("0")
    remarks: Optional[str] = None


@dataclass(frozen=True)
class SupplierRow:
    """In-memory view of a row from the ``Suppliers`` sheet."""

    supplier_id: str
    name: str
    contact_person: str = ""
    address: str = ""
    phone: str = ""
    mobile: str = ""
    email: str = ""


@dataclass(frozen=True)
class ItemRow:
    """In-memory view of a row from the ``Items`` sheet."""

    item_id: str
    sku: str
    name: str
    description: str = ""
    category: str = ""
    stock_qty: int = 0
    unit: str = "Unit"
    cost: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    supplier: Optional[str] = None


@dataclass(frozen=True)
class InvoiceLineRow:
    """One line of an invoice, stored on the ``InvoiceLines`` sheet."""

    item_id: str
    name: str
    quantity: int
    rate: Decimal
    discount_percent: Decimal = Decimal("0")
    tax_percent: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")


@dataclass(frozen=True)
class InvoiceRow:
    """In-memory view of an ``Invoices`` row joined with its line items."""

    invoice_id: str
    invoice_number: str
    customer_id: str
    customer_name: str
    date: str
    due_date: str
    status: str
    sub_total: Decimal
    total_tax: Decimal
    total_discount: Decimal
    grand_total: Decimal
    balance_due: Decimal
    lines: Tuple[InvoiceLineRow, ...] = ()


@dataclass(frozen=True)
class PaymentRow:
    """In-memory view of a row from the ``Payments`` sheet."""

    payment_id: str
    date: str
    payment_number: str
    reference_number: str
    customer_name: str
    invoice_numbers: Tuple[str, ...]
    mode: str
    amount: Decimal
    unused_amount: Decimal
    status: str


@dataclass(frozen=True)
class StoreSnapshot:
    """Every entity collection loaded from a workbook in one pass."""

    customers: List[CustomerRow]
    suppliers: List[SupplierRow]
    items: List[ItemRow]
    invoices: List[InvoiceRow]
    payments: List[PaymentRow]


def find_config_file(explicit_path: Optional[Path] = None) -> Path:
    """Locate the configuration file that controls how the data layer behaves.

    If the caller provides ``explicit_path`` the value is returned immediately
    without any verification. When no explicit path is given the function
    walks up from the current working directory toward the filesystem root
    looking for a file named ``CONFIG_FILE_NAME``. The first match that exists
    on disk is considered authoritative.

    Args:
        explicit_path (Path | None): Optional path to use instead of performing
            the upward search.

    Returns:
        Path: The path provided by the caller or the discovered configuration
            file.

    Raises:
        FileNotFoundError: If the search exhausts all parent directories without
            finding ``CONFIG_FILE_NAME``.
    """

    if explicit_path:
        return explicit_path

    current = Path.cwd()
    for p in (current, *current.parents):
        candidate = p / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

    raise FileNotFoundError(
        f"Configuration file not found: {CONFIG_FILE_NAME}")


def read_config(config_path: Path) -> configparser.ConfigParser:
    """Load ``config.ini`` and return a populated ``ConfigParser`` instance.

    Args:
        config_path (Path): Path to the configuration file, relative or
            absolute.

    Returns:
        configparser.ConfigParser: Initialized parser containing the raw
            configuration data.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist after expansion and
            resolution.
    """

    config_path = config_path.expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path)
    return parser


def parse_settings(parser: configparser.ConfigParser, *, base_path: Optional[Path] = None) -> ConfigSettings:
    """Convert a ``ConfigParser`` into strongly typed :class:`ConfigSettings`.

    Relative ``DataFile`` entries are expanded against ``base_path`` when
    provided, or against the current working directory as a fallback. The
    ``[Defaults]`` section feeds the values new customers receive when the
    caller leaves currency or payment terms blank.

    Args:
        parser (configparser.ConfigParser): Parsed configuration data.
        base_path (Path | None): Directory to use as the anchor for relative
            ``DataFile`` entries.

    Returns:
        ConfigSettings: Immutable settings container.

    Raises:
        KeyError: If one of the required sections or options is missing from the
            configuration.
    """

    try:
        data_file_raw = parser.get("System", "DataFile")
        business_name = parser.get("System", "BusinessName")
        schema_version = parser.get("System", "SchemaVersion")
        default_currency = parser.get("Defaults", "Currency")
        default_payment_terms = parser.get("Defaults", "PaymentTerms")
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise KeyError(f"Missing required configuration entry: {exc}") from exc

    data_file_path = Path(data_file_raw)
    if not data_file_path.is_absolute():
        if base_path is None:
            base_path = Path.cwd()
        data_file_path = (base_path / data_file_path).resolve()

    return ConfigSettings(
        data_file=data_file_path,
        business_name=business_name,
        schema_version=schema_version,
        default_currency=default_currency,
        default_payment_terms=default_payment_terms,
    )


def open_workbook(data_file: Path) -> Workbook:
    """Open the master Excel workbook and return a live ``openpyxl`` workbook.

    Raises:
        FileNotFoundError: If ``data_file`` does not exist after expansion and
            resolution.
    """

    data_file = Path(data_file).expanduser().resolve()
    if not data_file.exists():
        raise FileNotFoundError(f"Workbook not found: {data_file}")

    wb = openpyxl.load_workbook(data_file)
    return wb


def save_workbook(workbook: Workbook, destination: Path) -> None:
    """Persist the workbook to disk, creating parent folders on demand."""

    dest = Path(destination).expanduser().resolve()
    dest.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(dest)


def refresh_workbook(data_file: Path) -> Workbook:
    """Reload the workbook from disk, discarding any unsaved in-memory changes."""

    return open_workbook(data_file)


def _iter_sheet_rows(workbook: Workbook, sheet_name: str) -> Iterable[Sequence[object]]:
    """Yield raw value tuples for every non-empty data row of a sheet."""

    sheet = workbook[sheet_name]
    for raw in sheet.iter_rows(min_row=2, values_only=True):
        # skip fully empty rows
        if any(cell is not None for cell in raw):
            yield raw


def iter_customers(workbook: Workbook) -> Iterable[CustomerRow]:
    """Iterate over customer records stored on the ``Customers`` worksheet."""

    for raw in _iter_sheet_rows(workbook, CUSTOMERS_SHEET):
        yield deserialize_customer(raw)


def iter_suppliers(workbook: Workbook) -> Iterable[SupplierRow]:
    """Iterate over supplier records stored on the ``Suppliers`` worksheet."""

    for raw in _iter_sheet_rows(workbook, SUPPLIERS_SHEET):
        yield deserialize_supplier(raw)


def iter_items(workbook: Workbook) -> Iterable[ItemRow]:
    """Iterate over item master records stored on the ``Items`` worksheet."""

    for raw in _iter_sheet_rows(workbook, ITEMS_SHEET):
        yield deserialize_item(raw)


def iter_invoice_lines(workbook: Workbook) -> Iterable[Tuple[str, InvoiceLineRow]]:
    """Yield ``(invoice_id, line)`` pairs from the ``InvoiceLines`` sheet."""

    for raw in _iter_sheet_rows(workbook, INVOICE_LINES_SHEET):
        yield str(raw[0]), deserialize_invoice_line(raw)


def iter_invoices(workbook: Workbook) -> Iterable[InvoiceRow]:
    """Stream invoices joined with their line items.

    Line items live on their own sheet keyed by ``InvoiceID``. They are grouped
    up front so every :class:`InvoiceRow` carries its lines in sheet order.

    Args:
        workbook (Workbook): Workbook containing both invoice sheets.

    Yields:
        InvoiceRow: Invoice header with its ``lines`` tuple populated.
    """

    grouped: Dict[str, List[InvoiceLineRow]] = {}
    for invoice_id, line in iter_invoice_lines(workbook):
        grouped.setdefault(invoice_id, []).append(line)

    for raw in _iter_sheet_rows(workbook, INVOICES_SHEET):
        invoice_id = str(raw[0])
        yield deserialize_invoice(raw, lines=grouped.get(invoice_id, ()))


def iter_payments(workbook: Workbook) -> Iterable[PaymentRow]:
    """Iterate over payment records stored on the ``Payments`` worksheet."""

    for raw in _iter_sheet_rows(workbook, PAYMENTS_SHEET):
        yield deserialize_payment(raw)


def load_all(workbook: Workbook) -> StoreSnapshot:
    """Load every entity collection from the workbook."""

    snapshot = StoreSnapshot(
        customers=list(iter_customers(workbook)),
        suppliers=list(iter_suppliers(workbook)),
        items=list(iter_items(workbook)),
        invoices=list(iter_invoices(workbook)),
        payments=list(iter_payments(workbook)),
    )
    log.debug(
        "Loaded snapshot: %d customers, %d suppliers, %d items, %d invoices, %d payments",
        len(snapshot.customers),
        len(snapshot.suppliers),
        len(snapshot.items),
        len(snapshot.invoices),
        len(snapshot.payments),
    )
    return snapshot


def append_customer(workbook: Workbook, record: CustomerRow) -> None:
    """Append a customer record to the ``Customers`` worksheet."""

    workbook[CUSTOMERS_SHEET].append(serialize_customer(record))


def append_supplier(workbook: Workbook, record: SupplierRow) -> None:
    """Append a supplier record to the ``Suppliers`` worksheet."""

    workbook[SUPPLIERS_SHEET].append(serialize_supplier(record))


def append_item(workbook: Workbook, record: ItemRow) -> None:
    """Append an item record to the ``Items`` worksheet."""

    workbook[ITEMS_SHEET].append(serialize_item(record))


def append_invoice(workbook: Workbook, record: InvoiceRow) -> None:
    """Append an invoice header and all of its lines.

    The header goes to ``Invoices`` and each line to ``InvoiceLines`` tagged
    with the invoice identifier so :func:`iter_invoices` can join them again.

    Args:
        workbook (Workbook): Workbook containing both invoice sheets.
        record (InvoiceRow): Invoice to persist.
    """

    workbook[INVOICES_SHEET].append(serialize_invoice(record))
    lines_sheet = workbook[INVOICE_LINES_SHEET]
    for line in record.lines:
        lines_sheet.append(serialize_invoice_line(record.invoice_id, line))


def append_payment(workbook: Workbook, record: PaymentRow) -> None:
    """Append a payment record to the ``Payments`` worksheet."""

    workbook[PAYMENTS_SHEET].append(serialize_payment(record))


def _header_map(workbook: Workbook, sheet_name: str) -> Dict[str, int]:
    """Map header titles to 1-based column indices for ``sheet_name``."""

    header_cells = list(workbook[sheet_name][1])
    return {cell.value: idx + 1 for idx, cell in enumerate(header_cells)}


def locate_row(workbook: Workbook, sheet_name: str, key_column: str, key_value: str) -> Optional[int]:
    """Find a row by matching a key value within the specified worksheet.

    Cell values are compared as text because Excel may store numeric-looking
    identifiers as numbers.

    Args:
        workbook (Workbook): Workbook providing access to ``sheet_name``.
        sheet_name (str): Name of the worksheet to search.
        key_column (str): Header title identifying the column that stores the
            lookup key.
        key_value (str): Value to match within the key column.

    Returns:
        int | None: 1-based Excel row index when a match is found, otherwise
            ``None``.

    Raises:
        KeyError: If ``key_column`` is not present in the worksheet header.
    """

    header_map = _header_map(workbook, sheet_name)
    if key_column not in header_map:
        raise KeyError(f"Unknown column: {key_column}")

    key_col_index = header_map[key_column]
    sheet = workbook[sheet_name]
    for row_idx, row in enumerate(sheet.iter_rows(min_row=2, values_only=True), start=2):
        cell_value = row[key_col_index - 1]
        if cell_value is not None and str(cell_value) == key_value:
            return row_idx

    return None


def update_record(
    workbook: Workbook,
    sheet_name: str,
    key_column: str,
    key_value: str,
    *,
    field_values: Mapping[str, Any],
) -> None:
    """Update selected columns of the row identified by ``key_value``.

    Only the specified fields are modified, leaving other columns untouched.

    Args:
        workbook (Workbook): Workbook containing ``sheet_name``.
        sheet_name (str): Worksheet holding the record.
        key_column (str): Header of the primary key column.
        key_value (str): Identifier used to locate the target row.
        field_values (Mapping[str, Any]): Mapping of column names to replacement
            values.

    Raises:
        KeyError: If the record or any referenced column cannot be found.
    """

    row_index = locate_row(workbook, sheet_name, key_column, key_value)
    if row_index is None:
        raise KeyError(f"Record not found in {sheet_name}: {key_value}")

    sheet = workbook[sheet_name]
    header_map = _header_map(workbook, sheet_name)
    for field, value in field_values.items():
        if field not in header_map:
            raise KeyError(f"Unknown {sheet_name} field: {field}")
        sheet.cell(row=row_index, column=header_map[field], value=value)


def delete_record(workbook: Workbook, sheet_name: str, key_column: str, key_value: str) -> None:
    """Remove the row identified by ``key_value`` from ``sheet_name``.

    Raises:
        KeyError: If no row carries ``key_value`` in ``key_column``.
    """

    row_index = locate_row(workbook, sheet_name, key_column, key_value)
    if row_index is None:
        raise KeyError(f"Record not found in {sheet_name}: {key_value}")
    workbook[sheet_name].delete_rows(row_index)


def as_field_values(sheet_name: str, values: Sequence[object]) -> Dict[str, object]:
    """Pair serialized values with the column headers of ``sheet_name``."""

    return dict(zip(SHEET_COLUMNS[sheet_name], values))


def update_customer(workbook: Workbook, record: CustomerRow) -> None:
    """Overwrite every column of an existing customer row."""

    update_record(
        workbook,
        CUSTOMERS_SHEET,
        "CustomerID",
        record.customer_id,
        field_values=as_field_values(CUSTOMERS_SHEET, serialize_customer(record)),
    )


def update_supplier(workbook: Workbook, record: SupplierRow) -> None:
    """Overwrite every column of an existing supplier row."""

    update_record(
        workbook,
        SUPPLIERS_SHEET,
        "SupplierID",
        record.supplier_id,
        field_values=as_field_values(SUPPLIERS_SHEET, serialize_supplier(record)),
    )


def update_item(workbook: Workbook, item_id: str, *, field_values: Mapping[str, Any]) -> None:
    """Update selected columns for an existing item.

    Stock intake only touches ``StockQty``, ``Cost`` and ``Supplier`` so the
    item keeps the partial-update signature.

    Raises:
        KeyError: If the item or any referenced column is missing.
    """

    update_record(workbook, ITEMS_SHEET, "ItemID", item_id, field_values=field_values)


def update_invoice(workbook: Workbook, record: InvoiceRow) -> None:
    """Overwrite an invoice header and replace all of its lines."""

    update_record(
        workbook,
        INVOICES_SHEET,
        "InvoiceID",
        record.invoice_id,
        field_values=as_field_values(INVOICES_SHEET, serialize_invoice(record)),
    )
    replace_invoice_lines(workbook, record.invoice_id, record.lines)


def replace_invoice_lines(workbook: Workbook, invoice_id: str, lines: Iterable[InvoiceLineRow]) -> None:
    """Drop every stored line of ``invoice_id`` and append ``lines`` instead."""

    sheet = workbook[INVOICE_LINES_SHEET]
    stale_rows = [
        row_idx
        for row_idx, row in enumerate(sheet.iter_rows(min_row=2, values_only=True), start=2)
        if row[0] is not None and str(row[0]) == invoice_id
    ]
    # delete bottom-up so earlier indices stay valid
    for row_idx in reversed(stale_rows):
        sheet.delete_rows(row_idx)
    for line in lines:
        sheet.append(serialize_invoice_line(invoice_id, line))


def delete_item(workbook: Workbook, item_id: str) -> None:
    """Remove an item from the ``Items`` worksheet."""

    delete_record(workbook, ITEMS_SHEET, "ItemID", item_id)


def delete_supplier(workbook: Workbook, supplier_id: str) -> None:
    """Remove a supplier from the ``Suppliers`` worksheet."""

    delete_record(workbook, SUPPLIERS_SHEET, "SupplierID", supplier_id)


def serialize_customer(record: CustomerRow) -> list[object]:
    """Convert a customer dataclass into the worksheet column ordering."""

    return [
        record.customer_id,
        record.name,
        record.customer_type,
        record.salutation,
        record.first_name,
        record.last_name,
        record.company_name,
        record.email,
        record.phone,
        record.mobile,
        record.website,
        record.currency,
        record.status,
        record.payment_terms,
        record.receivables,
        record.unused_credits,
        record.remarks,
    ]


def serialize_supplier(record: SupplierRow) -> list[object]:
    """Convert a supplier dataclass into the worksheet column ordering."""

    return [
        record.supplier_id,
        record.name,
        record.contact_person,
        record.address,
        record.phone,
        record.mobile,
        record.email,
    ]


def serialize_item(record: ItemRow) -> list[object]:
    """Convert an item dataclass into the worksheet column ordering."""

    return [
        record.item_id,
        record.sku,
        record.name,
        record.description,
        record.category,
        record.stock_qty,
        record.unit,
        record.cost,
        record.price,
        record.supplier,
    ]


def serialize_invoice(record: InvoiceRow) -> list[object]:
    """Convert an invoice header into the ``Invoices`` column ordering.

    Lines are not part of the header row; see :func:`serialize_invoice_line`.
    """

    return [
        record.invoice_id,
        record.invoice_number,
        record.customer_id,
        record.customer_name,
        record.date,
        record.due_date,
        record.status,
        record.sub_total,
        record.total_tax,
        record.total_discount,
        record.grand_total,
        record.balance_due,
    ]


def serialize_invoice_line(invoice_id: str, line: InvoiceLineRow) -> list[object]:
    """Convert an invoice line into the ``InvoiceLines`` column ordering."""

    return [
        invoice_id,
        line.item_id,
        line.name,
        line.quantity,
        line.rate,
        line.discount_percent,
        line.tax_percent,
        line.amount,
    ]


def serialize_payment(record: PaymentRow) -> list[object]:
    """Convert a payment dataclass into the worksheet column ordering.

    Linked invoice numbers are flattened into one comma separated cell.
    """

    return [
        record.payment_id,
        record.date,
        record.payment_number,
        record.reference_number,
        record.customer_name,
        INVOICE_NUMBER_SEPARATOR.join(record.invoice_numbers),
        record.mode,
        record.amount,
        record.unused_amount,
        record.status,
    ]


def _decimal(raw: object) -> Decimal:
    return Decimal(str(raw)) if raw is not None and raw != "" else Decimal("0")


def _integer(raw: object) -> int:
    return int(Decimal(str(raw))) if raw is not None and raw != "" else 0


def _text(raw: object) -> str:
    return str(raw) if raw is not None else ""


def _optional_text(raw: object) -> Optional[str]:
    return str(raw) if raw is not None and raw != "" else None


def _iso_date(raw: object) -> str:
    """Normalize a date cell to ``YYYY-MM-DD``; Excel may hand back datetimes."""

    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    return _text(raw)


def deserialize_customer(raw_row: Sequence[object]) -> CustomerRow:
    """Convert a raw worksheet row into a strongly typed customer record."""

    (
        customer_id,
        name,
        customer_type,
        salutation,
        first_name,
        last_name,
        company_name,
        email,
        phone,
        mobile,
        website,
        currency,
        status,
        payment_terms,
        receivables,
        unused_credits,
        remarks,
    ) = raw_row

    return CustomerRow(
        customer_id=str(customer_id),
        name=_text(name),
        customer_type=_text(customer_type) or CustomerType.BUSINESS.value,
        salutation=_optional_text(salutation),
        first_name=_optional_text(first_name),
        last_name=_optional_text(last_name),
        company_name=_optional_text(company_name),
        email=_text(email),
        phone=_text(phone),
        mobile=_text(mobile),
        website=_optional_text(website),
        currency=_text(currency),
        status=_text(status) or CustomerStatus.ACTIVE.value,
        payment_terms=_text(payment_terms),
        receivables=_decimal(receivables),
        unused_credits=_decimal(unused_credits),
        remarks=_optional_text(remarks),
    )


def deserialize_supplier(raw_row: Sequence[object]) -> SupplierRow:
    """Convert a raw worksheet row into a strongly typed supplier record."""

    supplier_id, name, contact_person, address, phone, mobile, email = raw_row
    return SupplierRow(
        supplier_id=str(supplier_id),
        name=_text(name),
        contact_person=_text(contact_person),
        address=_text(address),
        phone=_text(phone),
        mobile=_text(mobile),
        email=_text(email),
    )


def deserialize_item(raw_row: Sequence[object]) -> ItemRow:
    """Convert a raw worksheet row into a strongly typed item record.

    Numeric cells are normalized into ``int`` (stock) and
    :class:`~decimal.Decimal` (money). Identifier and SKU fields are coerced to
    ``str`` so Excel's number guessing cannot leak into comparisons.
    """

    item_id, sku, name, description, category, stock_qty, unit, cost, price, supplier = raw_row
    return ItemRow(
        item_id=str(item_id),
        sku=_text(sku),
        name=_text(name),
        description=_text(description),
        category=_text(category),
        stock_qty=_integer(stock_qty),
        unit=_text(unit),
        cost=_decimal(cost),
        price=_decimal(price),
        supplier=_optional_text(supplier),
    )


def deserialize_invoice_line(raw_row: Sequence[object]) -> InvoiceLineRow:
    """Convert a raw ``InvoiceLines`` row (including its ``InvoiceID``) to a line."""

    _, item_id, name, quantity, rate, discount_percent, tax_percent, amount = raw_row
    return InvoiceLineRow(
        item_id=_text(item_id),
        name=_text(name),
        quantity=_integer(quantity),
        rate=_decimal(rate),
        discount_percent=_decimal(discount_percent),
        tax_percent=_decimal(tax_percent),
        amount=_decimal(amount),
    )


def deserialize_invoice(raw_row: Sequence[object], *, lines: Iterable[InvoiceLineRow] = ()) -> InvoiceRow:
    """Convert a raw ``Invoices`` row into an :class:`InvoiceRow`.

    Args:
        raw_row (Sequence[object]): Raw cell values from the header row.
        lines (Iterable[InvoiceLineRow]): Already deserialized lines that
            belong to this invoice.

    Returns:
        InvoiceRow: Invoice with decimal totals and ISO date strings.
    """

    (
        invoice_id,
        invoice_number,
        customer_id,
        customer_name,
        invoice_date,
        due_date,
        status,
        sub_total,
        total_tax,
        total_discount,
        grand_total,
        balance_due,
    ) = raw_row

    return InvoiceRow(
        invoice_id=str(invoice_id),
        invoice_number=_text(invoice_number),
        customer_id=_text(customer_id),
        customer_name=_text(customer_name),
        date=_iso_date(invoice_date),
        due_date=_iso_date(due_date),
        status=_text(status),
        sub_total=_decimal(sub_total),
        total_tax=_decimal(total_tax),
        total_discount=_decimal(total_discount),
        grand_total=_decimal(grand_total),
        balance_due=_decimal(balance_due),
        lines=tuple(lines),
    )


def deserialize_payment(raw_row: Sequence[object]) -> PaymentRow:
    """Convert a raw worksheet row into a strongly typed payment record."""

    (
        payment_id,
        payment_date,
        payment_number,
        reference_number,
        customer_name,
        invoice_numbers,
        mode,
        amount,
        unused_amount,
        status,
    ) = raw_row

    linked = tuple(
        number.strip()
        for number in _text(invoice_numbers).split(INVOICE_NUMBER_SEPARATOR)
        if number.strip()
    )
    return PaymentRow(
        payment_id=str(payment_id),
        date=_iso_date(payment_date),
        payment_number=_text(payment_number),
        reference_number=_text(reference_number),
        customer_name=_text(customer_name),
        invoice_numbers=linked,
        mode=_text(mode),
        amount=_decimal(amount),
        unused_amount=_decimal(unused_amount),
        status=_text(status),
    )
