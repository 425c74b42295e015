"""Command-line interface for Small Business Ledger."""

import argparse
import json
import re
import sqlite3
import sys
from datetime import date
from pathlib import Path
from typing import Any

from small_business_ledger import __version__
from small_business_ledger.config import get_settings
from small_business_ledger.domain.invoices import (
    PaymentDetails,
    get_status_description,
    get_valid_events,
    get_valid_transitions,
    is_deletable,
    is_editable,
    is_terminal_status,
    prepare_event_change,
    prepare_status_change,
)
from small_business_ledger.domain.ledger import Category, LedgerEntry, calculate_vat
from small_business_ledger.domain.value_objects import (
    InvoiceEvent,
    InvoiceStatus,
    PaymentMethod,
    TransactionStatus,
    TransactionType,
)
from small_business_ledger.domain.vat_periods import (
    get_tax_year_dates,
    get_tax_year_for_date,
    validate_tax_year,
)
from small_business_ledger.exceptions import (
    InvalidStatusError,
    SmallBusinessLedgerError,
)
from small_business_ledger.i18n import Localization
from small_business_ledger.logging_config import LogContext, configure_logging, get_logger
from small_business_ledger.repositories.sqlite import (
    SQLiteCategoryRepository,
    SQLiteDatabase,
    SQLiteLedgerRepository,
)
from small_business_ledger.services.vat_summary import VatSummaryServiceImpl

logger = get_logger(__name__)

MIN_REPORT_YEAR = 2000
MAX_REPORT_YEAR = 2100

_MONTH_ARG = re.compile(r"^(\d{4})-(\d{1,2})$")
_QUARTER_ARG = re.compile(r"^(\d{4})-Q(\d)$", re.IGNORECASE)


def get_default_db_path() -> Path:
    return get_settings().sqlite_path


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.database) if args.database else get_default_db_path()


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _fail(error: SmallBusinessLedgerError) -> int:
    _emit(error.to_dict())
    return 1


def _fail_argument(message: str) -> int:
    _emit({"error": "INVALID_ARGUMENT", "message": message, "context": {}})
    return 1


def _open_database(args: argparse.Namespace) -> SQLiteDatabase | None:
    db_path = _db_path(args)
    if not db_path.exists():
        _emit(
            {
                "error": "DATABASE_NOT_FOUND",
                "message": f"Database not found: {db_path}. Run 'sbl init' first",
                "context": {"database": str(db_path)},
            }
        )
        return None
    return SQLiteDatabase(str(db_path))


def _localization() -> Localization:
    return Localization(currency_symbol=get_settings().currency_symbol)


def _check_year(year: int) -> int:
    if not MIN_REPORT_YEAR <= year <= MAX_REPORT_YEAR:
        raise ValueError(
            f"Invalid year. Must be between {MIN_REPORT_YEAR} and {MAX_REPORT_YEAR}"
        )
    return year


def parse_month_arg(value: str) -> tuple[int, int]:
    """Split ``YYYY-MM`` into (year, month); the month range is checked later."""
    match = _MONTH_ARG.match(value)
    if match is None:
        raise ValueError("Invalid month format. Use YYYY-MM (e.g., 2025-06)")
    return _check_year(int(match.group(1))), int(match.group(2))


def parse_quarter_arg(value: str) -> tuple[int, int]:
    """Split ``YYYY-Qn`` into (year, quarter); the quarter range is checked later."""
    match = _QUARTER_ARG.match(value)
    if match is None:
        raise ValueError("Invalid quarter format. Use YYYY-Qn (e.g., 2025-Q2)")
    return _check_year(int(match.group(1))), int(match.group(2))


# =============================================================================
# Database commands
# =============================================================================


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    db_path = _db_path(args)

    if db_path.exists() and not args.force:
        _emit(
            {
                "error": "DATABASE_EXISTS",
                "message": f"Database already exists at {db_path}. "
                "Use --force to reinitialize (deletes existing data)",
                "context": {"database": str(db_path)},
            }
        )
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = SQLiteDatabase(str(db_path))
    db.initialize()
    db.close()

    _emit({"database": str(db_path), "initialized": True})
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    settings = get_settings()
    _emit({"name": settings.app_name, "version": __version__})
    return 0


def cmd_add_category(args: argparse.Namespace) -> int:
    """Add a chart-of-accounts category."""
    db = _open_database(args)
    if db is None:
        return 1

    category = Category(
        id=args.id, code=args.code, name=args.name, name_tr=args.name_tr
    )
    try:
        SQLiteCategoryRepository(db).add(category)
    except sqlite3.IntegrityError as e:
        return _fail_argument(f"Category could not be added: {e}")
    finally:
        db.close()

    _emit(
        {
            "id": category.id,
            "code": category.code,
            "name": category.name,
            "name_tr": category.name_tr,
        }
    )
    return 0


def cmd_add_transaction(args: argparse.Namespace) -> int:
    """Record an income, expense or transfer row."""
    db = _open_database(args)
    if db is None:
        return 1

    try:
        transaction_date = date.fromisoformat(args.date)
    except ValueError:
        db.close()
        return _fail_argument("Invalid transaction date format (YYYY-MM-DD required)")

    vat_amount = args.vat_amount
    if vat_amount is None:
        vat_amount = calculate_vat(args.amount, args.vat_rate)

    entry = LedgerEntry(
        user_id=args.user_id,
        type=TransactionType(args.type),
        status=TransactionStatus(args.status),
        transaction_date=transaction_date,
        amount=args.amount,
        vat_rate=args.vat_rate,
        vat_amount=vat_amount,
        category_id=args.category_id,
        description=args.description,
    )
    try:
        SQLiteLedgerRepository(db).add(entry)
    finally:
        db.close()

    _emit(
        {
            "id": str(entry.id),
            "user_id": entry.user_id,
            "type": entry.type.value,
            "status": entry.status.value,
            "transaction_date": entry.transaction_date.isoformat(),
            "amount": entry.amount,
            "vat_rate": entry.vat_rate,
            "vat_amount": entry.vat_amount,
            "total_amount": entry.total_amount,
            "category_id": entry.category_id,
            "description": entry.description,
        }
    )
    return 0


# =============================================================================
# VAT commands
# =============================================================================


def cmd_vat_summary(args: argparse.Namespace) -> int:
    """Generate a VAT summary for a date range, tax year, month or quarter."""
    if args.start or args.end:
        if not (args.start and args.end):
            return _fail_argument("--start and --end must be given together")
    elif not (args.tax_year or args.month or args.quarter):
        return _fail_argument(
            "One of --start/--end, --tax-year, --month or --quarter is required"
        )

    db = _open_database(args)
    if db is None:
        return 1

    settings = get_settings()
    service = VatSummaryServiceImpl(
        SQLiteLedgerRepository(db),
        SQLiteCategoryRepository(db),
        localization=_localization(),
    )
    monthly = (
        settings.include_monthly_breakdown if args.monthly is None else args.monthly
    )
    categories = (
        settings.include_category_breakdown
        if args.categories is None
        else args.categories
    )

    try:
        with LogContext(user_id=args.user_id, command="vat-summary"):
            if args.tax_year:
                _check_year(validate_tax_year(args.tax_year))
                report = service.generate_vat_summary_for_tax_year(
                    args.user_id,
                    args.tax_year,
                    include_monthly_breakdown=monthly,
                    include_category_breakdown=categories,
                )
            elif args.month:
                year, month = parse_month_arg(args.month)
                report = service.generate_vat_summary_for_month(
                    args.user_id,
                    year,
                    month,
                    include_monthly_breakdown=args.monthly,
                    include_category_breakdown=categories,
                )
            elif args.quarter:
                year, quarter = parse_quarter_arg(args.quarter)
                report = service.generate_vat_summary_for_quarter(
                    args.user_id,
                    year,
                    quarter,
                    include_monthly_breakdown=monthly,
                    include_category_breakdown=categories,
                )
            else:
                report = service.generate_vat_summary_report(
                    args.user_id,
                    args.start,
                    args.end,
                    include_monthly_breakdown=monthly,
                    include_category_breakdown=categories,
                )
    except SmallBusinessLedgerError as e:
        return _fail(e)
    except ValueError as e:
        return _fail_argument(str(e))
    finally:
        db.close()

    _emit(report)
    return 0


def cmd_tax_year(args: argparse.Namespace) -> int:
    """Show the UK tax year containing a date."""
    try:
        day = date.fromisoformat(args.date)
    except ValueError:
        return _fail_argument("Invalid date format (YYYY-MM-DD required)")

    try:
        _check_year(day.year)
    except ValueError as e:
        return _fail_argument(str(e))

    period = get_tax_year_dates(get_tax_year_for_date(day))
    _emit({"date": args.date, **period.to_dict()})
    return 0


# =============================================================================
# Invoice commands
# =============================================================================


def _payment_details(args: argparse.Namespace) -> PaymentDetails | None:
    values = {
        "payment_date": args.payment_date,
        "payment_method": args.payment_method,
        "payment_reference": args.payment_reference,
        "payment_amount": args.payment_amount,
        "notes": args.notes,
    }
    if all(value is None for value in values.values()):
        return None
    return PaymentDetails(**values)


def cmd_invoice_transition(args: argparse.Namespace) -> int:
    """Prepare a direct status change."""
    result = prepare_status_change(
        args.current,
        args.target,
        _payment_details(args),
        expected_updated_at=args.expected_updated_at,
    )
    _emit(result.to_dict())
    return 0 if result.success else 1


def cmd_invoice_event(args: argparse.Namespace) -> int:
    """Prepare the status change a named event stands for."""
    result = prepare_event_change(
        args.current,
        args.event,
        _payment_details(args),
        expected_updated_at=args.expected_updated_at,
    )
    _emit(result.to_dict())
    return 0 if result.success else 1


def cmd_invoice_status(args: argparse.Namespace) -> int:
    """Describe a status and what can follow it."""
    try:
        status = InvoiceStatus(args.status)
    except ValueError:
        return _fail(
            InvalidStatusError(
                f"Invalid status: {args.status}. Must be one of: "
                + ", ".join(s.value for s in InvoiceStatus),
                context={"status": args.status},
            )
        )

    localization = _localization()
    lang = args.lang or get_settings().default_language
    _emit(
        {
            "status": status.value,
            "description": get_status_description(status, lang, localization),
            "is_terminal": is_terminal_status(status),
            "is_editable": is_editable(status),
            "is_deletable": is_deletable(status),
            "valid_transitions": [s.value for s in get_valid_transitions(status)],
            "valid_events": [e.value for e in get_valid_events(status)],
        }
    )
    return 0


def _add_payment_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--payment-date", help="Payment date (ISO 8601)")
    parser.add_argument(
        "--payment-method", help=f"One of: {', '.join(m.value for m in PaymentMethod)}"
    )
    parser.add_argument("--payment-reference", help="Bank or receipt reference")
    parser.add_argument(
        "--payment-amount", type=int, help="Amount received in pence"
    )
    parser.add_argument("--notes", help="Free-text payment notes")
    parser.add_argument(
        "--expected-updated-at",
        help="updated_at value read with the invoice, echoed for compare-and-swap",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="sbl",
        description="Small Business Ledger - invoice lifecycle and UK VAT summaries",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new database")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force reinitialization (deletes existing data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    # add-category command
    category_parser = subparsers.add_parser("add-category", help="Add a category")
    category_parser.add_argument("--id", type=int, required=True)
    category_parser.add_argument("--code", required=True)
    category_parser.add_argument("--name", required=True)
    category_parser.add_argument("--name-tr", default=None, help="Turkish name")
    category_parser.set_defaults(func=cmd_add_category)

    # add-transaction command
    txn_parser = subparsers.add_parser(
        "add-transaction", help="Record an income or expense transaction"
    )
    txn_parser.add_argument("--user-id", type=int, required=True)
    txn_parser.add_argument(
        "--type", required=True, choices=[t.value for t in TransactionType]
    )
    txn_parser.add_argument("--date", required=True, help="Date (YYYY-MM-DD)")
    txn_parser.add_argument(
        "--amount", type=int, required=True, help="Net amount in pence"
    )
    txn_parser.add_argument(
        "--vat-rate", type=int, default=0, help="VAT rate in basis points (2000 = 20%%)"
    )
    txn_parser.add_argument(
        "--vat-amount",
        type=int,
        default=None,
        help="VAT in pence (default: derived from amount and rate)",
    )
    txn_parser.add_argument(
        "--status",
        default=TransactionStatus.CLEARED.value,
        choices=[s.value for s in TransactionStatus],
    )
    txn_parser.add_argument("--category-id", type=int, default=None)
    txn_parser.add_argument("--description", default="")
    txn_parser.set_defaults(func=cmd_add_transaction)

    # vat-summary command
    vat_parser = subparsers.add_parser("vat-summary", help="Generate a VAT summary")
    vat_parser.add_argument("--user-id", type=int, required=True)
    period_group = vat_parser.add_mutually_exclusive_group()
    period_group.add_argument("--tax-year", help="UK tax year (YYYY-YY)")
    period_group.add_argument("--month", help="Calendar month (YYYY-MM)")
    period_group.add_argument("--quarter", help="Calendar quarter (YYYY-Qn)")
    period_group.add_argument("--start", help="Start date (YYYY-MM-DD)")
    vat_parser.add_argument("--end", help="End date (YYYY-MM-DD), used with --start")
    vat_parser.add_argument(
        "--monthly",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include the monthly breakdown",
    )
    vat_parser.add_argument(
        "--categories",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include the category breakdown",
    )
    vat_parser.set_defaults(func=cmd_vat_summary)

    # tax-year command
    tax_year_parser = subparsers.add_parser(
        "tax-year", help="Show the UK tax year containing a date"
    )
    tax_year_parser.add_argument("date", help="Date (YYYY-MM-DD)")
    tax_year_parser.set_defaults(func=cmd_tax_year)

    # invoice command group
    invoice_parser = subparsers.add_parser("invoice", help="Invoice status changes")
    invoice_subparsers = invoice_parser.add_subparsers(
        dest="invoice_command", help="Invoice commands"
    )

    transition_parser = invoice_subparsers.add_parser(
        "transition", help="Change status directly"
    )
    transition_parser.add_argument("current", help="Current status")
    transition_parser.add_argument("target", help="Target status")
    _add_payment_arguments(transition_parser)
    transition_parser.set_defaults(func=cmd_invoice_transition)

    event_parser = invoice_subparsers.add_parser(
        "event", help="Trigger a status change by event"
    )
    event_parser.add_argument("current", help="Current status")
    event_parser.add_argument(
        "event", help=f"One of: {', '.join(e.value for e in InvoiceEvent)}"
    )
    _add_payment_arguments(event_parser)
    event_parser.set_defaults(func=cmd_invoice_event)

    status_parser = invoice_subparsers.add_parser(
        "status", help="Describe a status and its valid next steps"
    )
    status_parser.add_argument("status", help="Invoice status")
    status_parser.add_argument(
        "--lang", choices=["en", "tr"], default=None, help="Description language"
    )
    status_parser.set_defaults(func=cmd_invoice_status)

    args = parser.parse_args(argv)

    configure_logging()

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "invoice" and (
        not hasattr(args, "invoice_command") or args.invoice_command is None
    ):
        invoice_parser.print_help()
        return 0

    logger.debug("cli_command_started", command=args.command)
    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
