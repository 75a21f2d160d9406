"""Sample dataset loaded into a fresh workbook on request.

The records mirror a small trading business: a handful of customers and
suppliers, five stock items, five invoices in different states and a few
payments, including advances that are not linked to any invoice.
"""

from __future__ import annotations

from decimal import Decimal

from .constants import CustomerType, InvoiceStatus, PaymentStatus
from .data_manager import (
    CustomerRow,
    InvoiceLineRow,
    InvoiceRow,
    ItemRow,
    PaymentRow,
    StoreSnapshot,
    SupplierRow,
)


SAMPLE_CUSTOMERS = [
    CustomerRow(
        customer_id="cust_1",
        name="TechFlow Solutions",
        customer_type=CustomerType.BUSINESS.value,
        salutation="Mr.",
        first_name="David",
        last_name="Miller",
        company_name="TechFlow Solutions",
        email="david@techflow.com",
        phone="+1 555-0101",
        mobile="+1 555-0102",
        currency="LKR",
        payment_terms="Net 30",
        receivables=Decimal("150000"),
        unused_credits=Decimal("5000"),
    ),
    CustomerRow(
        customer_id="cust_2",
        name="GreenLeaf Organics",
        customer_type=CustomerType.BUSINESS.value,
        salutation="Ms.",
        first_name="Sarah",
        last_name="Connor",
        company_name="GreenLeaf Organics",
        email="sarah@greenleaf.com",
        phone="+1 555-0201",
        currency="USD",
        payment_terms="Due on Receipt",
        receivables=Decimal("45000"),
    ),
    CustomerRow(
        customer_id="cust_3",
        name="Alex Johnson",
        customer_type=CustomerType.INDIVIDUAL.value,
        salutation="Mr.",
        first_name="Alex",
        last_name="Johnson",
        email="alex.j@email.com",
        phone="+1 555-0301",
        mobile="+1 555-0302",
        currency="LKR",
        payment_terms="Due on Receipt",
    ),
    CustomerRow(
        customer_id="cust_4",
        name="Apex Construction",
        customer_type=CustomerType.BUSINESS.value,
        salutation="Mr.",
        first_name="Robert",
        last_name="Stone",
        company_name="Apex Construction Ltd",
        email="accounts@apexconst.com",
        phone="+1 555-0401",
        currency="LKR",
        payment_terms="Net 15",
        receivables=Decimal("250000"),
        unused_credits=Decimal("12000"),
    ),
]

SAMPLE_SUPPLIERS = [
    SupplierRow(
        supplier_id="supp_1",
        name="Global Electronics Ltd",
        contact_person="James Wu",
        address="45 Tech Park, Silicon Valley",
        phone="+1 888-0001",
        mobile="+1 888-0002",
        email="sales@globalelectronics.com",
    ),
    SupplierRow(
        supplier_id="supp_2",
        name="Office Depot Wholesale",
        contact_person="Linda Martinez",
        address="100 Main St, Business City",
        phone="+1 888-1111",
        email="support@officedepot.com",
    ),
    SupplierRow(
        supplier_id="supp_3",
        name="Fresh Harvest Co",
        contact_person="Tom Baker",
        address="22 Farm Road, Countryside",
        phone="+1 888-2222",
        mobile="+1 888-2223",
        email="orders@freshharvest.com",
    ),
]

SAMPLE_ITEMS = [
    ItemRow("item_1", "HW-LPT-001", 'ProBook Laptop 15"', "High performance laptop for professionals",
            "Electronics", 25, "Unit", Decimal("120000"), Decimal("155000"), "Global Electronics Ltd"),
    ItemRow("item_2", "HW-MSE-002", "Wireless Mouse", "Ergonomic wireless optical mouse",
            "Electronics", 150, "Unit", Decimal("1500"), Decimal("3500"), "Global Electronics Ltd"),
    ItemRow("item_3", "OFF-PPR-001", "A4 Paper Ream", "500 sheets, 80gsm white paper",
            "Stationery", 500, "Pack", Decimal("850"), Decimal("1250"), "Office Depot Wholesale"),
    ItemRow("item_4", "SVC-WEB-001", "Web Design Basic", "5 Page Static Website Design",
            "Services", 999, "Hour", Decimal("0"), Decimal("50000"), None),
    ItemRow("item_5", "FD-COF-001", "Premium Coffee Beans", "1kg bag of Arabica beans",
            "Beverage", 40, "Kg", Decimal("3500"), Decimal("5800"), "Fresh Harvest Co"),
]


def _line(item_id: str, name: str, quantity: int, rate: str, amount: str, discount_percent: str = "0") -> InvoiceLineRow:
    return InvoiceLineRow(
        item_id=item_id,
        name=name,
        quantity=quantity,
        rate=Decimal(rate),
        discount_percent=Decimal(discount_percent),
        tax_percent=Decimal("0"),
        amount=Decimal(amount),
    )


# Stored totals are kept as recorded, including the partially paid INV-2025-005.
SAMPLE_INVOICES = [
    InvoiceRow(
        invoice_id="inv_1",
        invoice_number="INV-2025-001",
        customer_id="cust_1",
        customer_name="TechFlow Solutions",
        date="2025-01-15",
        due_date="2025-02-15",
        status=InvoiceStatus.PAID.value,
        sub_total=Decimal("317000"),
        total_tax=Decimal("31700"),
        total_discount=Decimal("0"),
        grand_total=Decimal("348700"),
        balance_due=Decimal("0"),
        lines=(
            _line("item_1", 'ProBook Laptop 15"', 2, "155000", "310000"),
            _line("item_2", "Wireless Mouse", 2, "3500", "7000"),
        ),
    ),
    InvoiceRow(
        invoice_id="inv_2",
        invoice_number="INV-2025-002",
        customer_id="cust_2",
        customer_name="GreenLeaf Organics",
        date="2025-02-01",
        due_date="2025-02-01",
        status=InvoiceStatus.OVERDUE.value,
        sub_total=Decimal("50000"),
        total_tax=Decimal("5000"),
        total_discount=Decimal("0"),
        grand_total=Decimal("55000"),
        balance_due=Decimal("55000"),
        lines=(_line("item_4", "Web Design Basic", 1, "50000", "50000"),),
    ),
    InvoiceRow(
        invoice_id="inv_3",
        invoice_number="INV-2025-003",
        customer_id="cust_4",
        customer_name="Apex Construction",
        date="2025-02-10",
        due_date="2025-02-25",
        status=InvoiceStatus.PENDING.value,
        sub_total=Decimal("59375"),
        total_tax=Decimal("5937.5"),
        total_discount=Decimal("2968.75"),
        grand_total=Decimal("62343.75"),
        balance_due=Decimal("62343.75"),
        lines=(_line("item_3", "A4 Paper Ream", 50, "1250", "59375", discount_percent="5"),),
    ),
    InvoiceRow(
        invoice_id="inv_4",
        invoice_number="INV-2025-004",
        customer_id="cust_3",
        customer_name="Alex Johnson",
        date="2025-02-12",
        due_date="2025-02-12",
        status=InvoiceStatus.PAID.value,
        sub_total=Decimal("11600"),
        total_tax=Decimal("1160"),
        total_discount=Decimal("0"),
        grand_total=Decimal("12760"),
        balance_due=Decimal("0"),
        lines=(_line("item_5", "Premium Coffee Beans", 2, "5800", "11600"),),
    ),
    InvoiceRow(
        invoice_id="inv_5",
        invoice_number="INV-2025-005",
        customer_id="cust_1",
        customer_name="TechFlow Solutions",
        date="2025-02-20",
        due_date="2025-03-20",
        status=InvoiceStatus.PENDING.value,
        sub_total=Decimal("31500"),
        total_tax=Decimal("3150"),
        total_discount=Decimal("3150"),
        grand_total=Decimal("31500"),
        balance_due=Decimal("15000"),
        lines=(_line("item_2", "Wireless Mouse", 10, "3500", "31500", discount_percent="10"),),
    ),
]


def _payment(payment_id, paid_on, number, reference, customer, invoices, mode, amount, unused) -> PaymentRow:
    return PaymentRow(
        payment_id=payment_id,
        date=paid_on,
        payment_number=number,
        reference_number=reference,
        customer_name=customer,
        invoice_numbers=tuple(invoices),
        mode=mode,
        amount=Decimal(amount),
        unused_amount=Decimal(unused),
        status=PaymentStatus.PAID.value,
    )


SAMPLE_PAYMENTS = [
    _payment("pay_1", "2025-01-20", "PAY-001", "TRX-998877", "TechFlow Solutions",
             ["INV-2025-001"], "Bank Transfer", "348700.00", "0.00"),
    _payment("pay_2", "2025-02-12", "PAY-002", "CASH", "Alex Johnson",
             ["INV-2025-004"], "Cash", "12760.00", "0.00"),
    _payment("pay_3", "2025-02-22", "PAY-003", "CHQ-45561", "TechFlow Solutions",
             ["INV-2025-005"], "Cheque", "16500.00", "0.00"),
    _payment("pay_4", "2025-02-15", "PAY-004", "TRX-112233", "Apex Construction",
             [], "Bank Transfer", "50000.00", "50000.00"),
    _payment("pay_5", "2025-02-18", "PAY-005", "CASH", "Local Customer",
             [], "Cash", "2500.00", "0.00"),
    _payment("pay_6", "2025-02-25", "PAY-006", "TRX-445566", "TechFlow Solutions",
             ["INV-2025-001"], "Bank Transfer", "10000.00", "10000.00"),
    _payment("pay_7", "2025-02-26", "PAY-007", "CARD-1234", "Walk-in Customer",
             [], "Credit Card", "15400.00", "0.00"),
]


def sample_snapshot() -> StoreSnapshot:
    """Return a fresh copy of the sample dataset."""

    return StoreSnapshot(
        customers=list(SAMPLE_CUSTOMERS),
        suppliers=list(SAMPLE_SUPPLIERS),
        items=list(SAMPLE_ITEMS),
        invoices=list(SAMPLE_INVOICES),
        payments=list(SAMPLE_PAYMENTS),
    )
