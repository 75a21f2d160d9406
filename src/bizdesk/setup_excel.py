"""Utility for initializing the bizdesk master workbook.

The module doubles as a script (``bizdesk-init``) and as a library used by
tests or other tooling. Shared helpers keep the workbook bootstrap logic
consistent regardless of the execution path.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Mapping, Optional, Sequence
import sys

import openpyxl
from openpyxl.styles import Font

from . import data_manager, log, seed


CONFIG_FILE = data_manager.CONFIG_FILE_NAME


def create_master_workbook(
    destination: Path,
    *,
    sheet_columns: Mapping[str, Sequence[str]] = data_manager.SHEET_COLUMNS,
    snapshot: Optional[data_manager.StoreSnapshot] = None,
    overwrite: bool = False,
) -> Path:
    """Create the bizdesk master workbook at ``destination``.

    Every sheet gets a bold header row. When ``snapshot`` is given its records
    are written below the headers. When ``overwrite`` is ``False`` (the
    default) this function raises ``FileExistsError`` if the target already
    exists.
    """

    destination = Path(destination).expanduser().resolve()
    if destination.exists() and not overwrite:
        raise FileExistsError(
            f"Refusing to overwrite existing master workbook: {destination}"
        )

    destination.parent.mkdir(parents=True, exist_ok=True)

    workbook = openpyxl.Workbook()

    # Remove the default sheet openpyxl generates so we can create ours.
    if workbook.active and workbook.active.title == "Sheet":
        workbook.remove(workbook.active)

    bold_font = Font(bold=True)

    for sheet_name, columns in sheet_columns.items():
        worksheet = workbook.create_sheet(title=sheet_name)
        for column_index, column_name in enumerate(columns, start=1):
            cell = worksheet.cell(row=1, column=column_index)
            cell.value = column_name
            cell.font = bold_font

    if snapshot is not None:
        populate_workbook(workbook, snapshot)

    workbook.save(destination)
    log.info("Created master workbook '%s'", destination)
    return destination


def populate_workbook(workbook: openpyxl.Workbook, snapshot: data_manager.StoreSnapshot) -> None:
    """Append every record of ``snapshot`` to its sheet."""

    for customer in snapshot.customers:
        data_manager.append_customer(workbook, customer)
    for supplier in snapshot.suppliers:
        data_manager.append_supplier(workbook, supplier)
    for item in snapshot.items:
        data_manager.append_item(workbook, item)
    for invoice in snapshot.invoices:
        data_manager.append_invoice(workbook, invoice)
    for payment in snapshot.payments:
        data_manager.append_payment(workbook, payment)


def run_from_config(config_path: Path, *, overwrite: bool = False, with_sample_data: bool = False) -> Path:
    """Create the workbook named by ``config.ini``."""

    resolved = Path(config_path).expanduser().resolve()
    parser = data_manager.read_config(resolved)
    settings = data_manager.parse_settings(parser, base_path=resolved.parent)
    return create_master_workbook(
        settings.data_file,
        snapshot=seed.sample_snapshot() if with_sample_data else None,
        overwrite=overwrite,
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the setup script."""

    parser = argparse.ArgumentParser(description="Initialize the bizdesk data file")
    parser.add_argument(
        "--config",
        default=CONFIG_FILE,
        help="Path to configuration file (default: config.ini)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the target workbook if it already exists.",
    )
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Load the sample customers, items, invoices and payments.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the setup script."""

    args = parse_args(argv)
    config_path = Path(args.config).expanduser().resolve()

    print("--- bizdesk Setup Script ---")
    print(f"Using configuration: {config_path}")

    try:
        output_path = run_from_config(
            config_path,
            overwrite=args.force,
            with_sample_data=args.sample_data,
        )
    except FileNotFoundError as exc:
        print(f"\n[ERROR] {exc}")
        return 1
    except KeyError as exc:
        print(f"\n[ERROR] {exc}")
        return 1
    except FileExistsError as exc:
        print(f"\n[ERROR] {exc}")
        print("Run with --force to overwrite the existing file if appropriate.")
        return 1
    except (PermissionError, OSError) as exc:
        print(f"\n[ERROR] Unable to write workbook: {exc}")
        return 1

    print(f"\n[SUCCESS] Created master workbook at '{output_path}'.")
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via manual runs
    sys.exit(main())
