"""Tests for the sbl command-line interface."""

import json
from datetime import date

import pytest

from small_business_ledger.cli import main, parse_month_arg, parse_quarter_arg
from small_business_ledger.domain.ledger import Category, LedgerEntry
from small_business_ledger.domain.value_objects import TransactionType
from small_business_ledger.repositories.sqlite import (
    SQLiteCategoryRepository,
    SQLiteDatabase,
    SQLiteLedgerRepository,
)


def _json_out(capsys):
    return json.loads(capsys.readouterr().out)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "ledger.db"
    db = SQLiteDatabase(str(path))
    db.initialize()
    SQLiteCategoryRepository(db).add(
        Category(id=10, code="4000", name="Sales", name_tr="Satışlar")
    )
    repo = SQLiteLedgerRepository(db)
    for entry_type, rate, amount, vat, day in [
        (TransactionType.INCOME, 2000, 10000, 2000, date(2025, 5, 10)),
        (TransactionType.INCOME, 500, 5000, 250, date(2025, 6, 2)),
        (TransactionType.EXPENSE, 2000, 8000, 1600, date(2025, 5, 20)),
        (TransactionType.EXPENSE, 500, 2000, 100, date(2025, 6, 15)),
    ]:
        repo.add(
            LedgerEntry(
                user_id=1,
                type=entry_type,
                transaction_date=day,
                amount=amount,
                vat_rate=rate,
                vat_amount=vat,
                category_id=10 if entry_type == TransactionType.INCOME else None,
            )
        )
    db.close()
    return path


class TestInit:
    def test_creates_database(self, tmp_path, capsys):
        path = tmp_path / "nested" / "new.db"

        result = main(["--database", str(path), "init"])

        assert result == 0
        assert path.exists()
        assert _json_out(capsys) == {"database": str(path), "initialized": True}

    def test_refuses_to_overwrite(self, db_path, capsys):
        result = main(["--database", str(db_path), "init"])

        assert result == 1
        assert _json_out(capsys)["error"] == "DATABASE_EXISTS"

    def test_force_reinitializes(self, db_path, capsys):
        result = main(["--database", str(db_path), "init", "--force"])

        assert result == 0
        capsys.readouterr()
        main(["--database", str(db_path), "vat-summary", "--user-id", "1",
              "--quarter", "2025-Q2"])
        assert _json_out(capsys)["transaction_counts"]["total"] == 0

    def test_default_path_from_settings(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "from_env.db"
        monkeypatch.setenv("SBL_SQLITE_PATH", str(path))

        assert main(["init"]) == 0
        assert path.exists()


class TestMissingDatabase:
    def test_vat_summary_needs_database(self, tmp_path, capsys):
        result = main(
            ["--database", str(tmp_path / "none.db"), "vat-summary", "--user-id", "1",
             "--tax-year", "2025-26"]
        )

        assert result == 1
        assert _json_out(capsys)["error"] == "DATABASE_NOT_FOUND"


class TestAddCommands:
    def test_add_category(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "add-category", "--id", "20", "--code",
             "7500", "--name", "Office Costs", "--name-tr", "Ofis Giderleri"]
        )

        assert result == 0
        assert _json_out(capsys)["name_tr"] == "Ofis Giderleri"

    def test_duplicate_category(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "add-category", "--id", "11", "--code",
             "4000", "--name", "Sales again"]
        )

        assert result == 1
        assert _json_out(capsys)["error"] == "INVALID_ARGUMENT"

    def test_add_transaction_derives_vat(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "add-transaction", "--user-id", "2",
             "--type", "income", "--date", "2025-05-01", "--amount", "999",
             "--vat-rate", "2000"]
        )

        assert result == 0
        output = _json_out(capsys)
        assert output["vat_amount"] == 200
        assert output["total_amount"] == 1199
        assert output["status"] == "cleared"

    def test_add_transaction_explicit_vat(self, db_path, capsys):
        main(
            ["--database", str(db_path), "add-transaction", "--user-id", "2",
             "--type", "expense", "--date", "2025-05-01", "--amount", "1000",
             "--vat-rate", "2000", "--vat-amount", "199"]
        )
        assert _json_out(capsys)["vat_amount"] == 199

    def test_add_transaction_bad_date(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "add-transaction", "--user-id", "2",
             "--type", "income", "--date", "01/05/2025", "--amount", "100"]
        )

        assert result == 1
        assert _json_out(capsys)["error"] == "INVALID_ARGUMENT"


class TestVatSummary:
    def test_quarter(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--quarter", "2025-Q2"]
        )

        assert result == 0
        report = _json_out(capsys)
        assert report["period"]["start_date"] == "2025-04-01"
        assert report["period"]["end_date"] == "2025-06-30"
        assert report["net_position"]["net_vat"] == 550
        assert report["net_position"]["is_refund_due"] is False
        assert len(report["monthly_breakdown"]) == 2
        assert "category_breakdown" not in report

    def test_range_with_categories(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--start", "2025-05-01", "--end", "2025-05-31", "--categories",
             "--no-monthly"]
        )

        assert result == 0
        report = _json_out(capsys)
        assert report["output_vat"]["totals"]["vat_amount"] == 2000
        assert report["category_breakdown"]["output"][0]["category_name_tr"] == (
            "Satışlar"
        )
        assert "monthly_breakdown" not in report

    def test_month_has_no_breakdown_by_default(self, db_path, capsys):
        main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--month", "2025-06"]
        )

        report = _json_out(capsys)
        assert report["net_position"]["net_vat"] == 150
        assert "monthly_breakdown" not in report

    def test_tax_year(self, db_path, capsys):
        main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--tax-year", "2025-26"]
        )
        assert _json_out(capsys)["period"]["tax_year"] == "2025-26"

    def test_invalid_quarter(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--quarter", "2025-Q5"]
        )

        assert result == 1
        assert _json_out(capsys) == {
            "error": "INVALID_QUARTER",
            "message": "Invalid quarter. Must be 1, 2, 3, or 4.",
            "context": {"quarter": 5},
        }

    def test_invalid_month(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--month", "2025-13"]
        )

        assert result == 1
        assert _json_out(capsys)["error"] == "INVALID_MONTH"

    def test_inverted_range(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--start", "2025-06-30", "--end", "2025-04-01"]
        )

        assert result == 1
        output = _json_out(capsys)
        assert output["error"] == "INVALID_DATE_RANGE"
        assert output["message"] == "Start date must be before or equal to end date"

    def test_invalid_tax_year(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--tax-year", "2025-27"]
        )

        assert result == 1
        assert _json_out(capsys)["error"] == "INVALID_TAX_YEAR"

    @pytest.mark.parametrize("tax_year", ["1999-00", "2101-02", "9999-00"])
    def test_tax_year_out_of_range(self, db_path, tax_year, capsys):
        result = main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--tax-year", tax_year]
        )

        assert result == 1
        assert _json_out(capsys)["message"] == (
            "Invalid year. Must be between 2000 and 2100"
        )

    def test_start_without_end(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--start", "2025-04-01"]
        )

        assert result == 1
        assert _json_out(capsys)["error"] == "INVALID_ARGUMENT"

    def test_period_required(self, db_path, capsys):
        result = main(["--database", str(db_path), "vat-summary", "--user-id", "1"])

        assert result == 1
        assert _json_out(capsys)["error"] == "INVALID_ARGUMENT"

    def test_year_out_of_range(self, db_path, capsys):
        result = main(
            ["--database", str(db_path), "vat-summary", "--user-id", "1",
             "--quarter", "1999-Q1"]
        )

        assert result == 1
        assert _json_out(capsys)["message"] == (
            "Invalid year. Must be between 2000 and 2100"
        )


class TestTaxYear:
    def test_boundary(self, capsys):
        assert main(["tax-year", "2025-04-05"]) == 0
        assert _json_out(capsys) == {
            "date": "2025-04-05",
            "start_date": "2024-04-06",
            "end_date": "2025-04-05",
            "tax_year": "2024-25",
        }

    def test_bad_date(self, capsys):
        assert main(["tax-year", "5 April"]) == 1
        assert _json_out(capsys)["error"] == "INVALID_ARGUMENT"

    @pytest.mark.parametrize("day", ["9999-12-31", "1999-04-06", "2101-01-01"])
    def test_year_out_of_range(self, day, capsys):
        assert main(["tax-year", day]) == 1
        output = _json_out(capsys)
        assert output["error"] == "INVALID_ARGUMENT"
        assert output["message"] == "Invalid year. Must be between 2000 and 2100"


class TestInvoiceCommands:
    def test_transition(self, capsys):
        result = main(["invoice", "transition", "draft", "pending"])

        assert result == 0
        output = _json_out(capsys)
        assert output["success"] is True
        assert output["new_status"] == "pending"
        assert "sent_at" in output["data"]

    def test_illegal_transition(self, capsys):
        result = main(["invoice", "transition", "draft", "paid"])

        assert result == 1
        output = _json_out(capsys)
        assert output["success"] is False
        assert output["error_code"] == "ILLEGAL_TRANSITION"

    def test_mark_paid_with_payment_details(self, capsys):
        result = main(
            ["invoice", "event", "pending", "mark_paid", "--payment-method", "card",
             "--payment-amount", "12000", "--payment-date", "2025-06-01",
             "--expected-updated-at", "2025-05-30T08:00:00.000Z"]
        )

        assert result == 0
        data = _json_out(capsys)["data"]
        assert data["payment_method"] == "card"
        assert data["payment_amount"] == 12000
        assert data["paid_at"] == "2025-06-01"
        assert data["expected_updated_at"] == "2025-05-30T08:00:00.000Z"

    def test_invalid_payment_method(self, capsys):
        result = main(
            ["invoice", "event", "overdue", "mark_paid", "--payment-method", "barter"]
        )

        assert result == 1
        output = _json_out(capsys)
        assert output["error_code"] == "INVALID_PAYMENT_DETAILS"
        assert "payment_method" in output["validation_errors"]

    def test_status(self, capsys):
        assert main(["invoice", "status", "pending", "--lang", "tr"]) == 0
        assert _json_out(capsys) == {
            "status": "pending",
            "description": "Beklemede - Ödeme bekleniyor",
            "is_terminal": False,
            "is_editable": False,
            "is_deletable": False,
            "valid_transitions": ["paid", "overdue", "cancelled"],
            "valid_events": ["mark_paid", "mark_overdue", "cancel"],
        }

    def test_status_uses_default_language(self, monkeypatch, capsys):
        monkeypatch.setenv("SBL_DEFAULT_LANGUAGE", "tr")
        main(["invoice", "status", "refunded"])

        output = _json_out(capsys)
        assert output["description"] == "İade Edildi - Ödeme iade edildi"
        assert output["is_terminal"] is True

    def test_unknown_status(self, capsys):
        assert main(["invoice", "status", "archived"]) == 1
        assert _json_out(capsys)["error"] == "INVALID_STATUS"

    def test_invoice_without_subcommand_prints_help(self, capsys):
        assert main(["invoice"]) == 0
        assert "transition" in capsys.readouterr().out


class TestArgumentParsing:
    def test_month_arg(self):
        assert parse_month_arg("2025-06") == (2025, 6)

    def test_quarter_arg_is_case_insensitive(self):
        assert parse_quarter_arg("2025-q3") == (2025, 3)

    @pytest.mark.parametrize("value", ["2025/06", "June 2025", "25-06"])
    def test_bad_month_arg(self, value):
        with pytest.raises(ValueError, match="YYYY-MM"):
            parse_month_arg(value)

    def test_version(self, capsys):
        assert main(["version"]) == 0
        assert _json_out(capsys)["version"] == "0.1.0"

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "vat-summary" in capsys.readouterr().out
