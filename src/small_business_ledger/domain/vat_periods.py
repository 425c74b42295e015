"""UK tax-year and VAT reporting period arithmetic.

The UK tax year runs from 6 April to 5 April of the following year and is
labelled ``YYYY-YY`` (``2025-26``). 5 April belongs to the earlier tax
year, 6 April starts the next one. Calendar quarters for VAT summaries are
Jan-Mar, Apr-Jun, Jul-Sep and Oct-Dec.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import MAXYEAR, date, datetime
from types import MappingProxyType
from typing import Any

from dateutil.relativedelta import relativedelta  # type: ignore[import-untyped]

from small_business_ledger.exceptions import (
    InvalidMonthError,
    InvalidQuarterError,
    InvalidTaxYearError,
)
from small_business_ledger.i18n import DEFAULT_LOCALIZATION, Language

TAX_YEAR_START_MONTH = 4
TAX_YEAR_START_DAY = 6

QUARTER_START_MONTHS = MappingProxyType({1: 1, 2: 4, 3: 7, 4: 10})

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TAX_YEAR_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True)
class VatPeriod:
    """Inclusive date range of a VAT summary."""

    start_date: date
    end_date: date

    @property
    def tax_year(self) -> str:
        return get_tax_year_for_date(self.start_date)

    def contains(self, value: date) -> bool:
        return self.start_date <= value <= self.end_date

    def to_dict(self) -> dict[str, str]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "tax_year": self.tax_year,
        }


@dataclass(frozen=True)
class DateRangeValidation:
    is_valid: bool
    error: str | None = None


def to_date(value: date | datetime | str) -> date:
    """Accept a date, datetime or ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def format_tax_year(start_year: int) -> str:
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def get_tax_year_for_date(value: date | datetime | str) -> str:
    """Return the ``YYYY-YY`` label of the UK tax year containing ``value``."""
    d = to_date(value)
    if (d.month, d.day) < (TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY):
        return format_tax_year(d.year - 1)
    return format_tax_year(d.year)


def validate_tax_year(tax_year: str) -> int:
    """Check a ``YYYY-YY`` label and return its starting year.

    Raises:
        InvalidTaxYearError: If the label is malformed or the two years are
            not consecutive (``2025-27``).
    """
    match = _TAX_YEAR_PATTERN.match(str(tax_year or ""))
    if match is None:
        raise InvalidTaxYearError(
            str(tax_year),
            "Invalid tax year format. Use YYYY-YY (e.g., 2025-26)",
        )
    start_year = int(match.group(1))
    expected = format_tax_year(start_year)
    if tax_year != expected:
        raise InvalidTaxYearError(
            tax_year, f"Invalid tax year. Expected {expected}"
        )
    return start_year


def get_tax_year_dates(tax_year: str) -> VatPeriod:
    """6 April of the labelled year through 5 April of the next.

    Raises:
        InvalidTaxYearError: If the label is malformed, or the year would end
            after the last representable date.
    """
    start_year = validate_tax_year(tax_year)
    if start_year >= MAXYEAR:
        raise InvalidTaxYearError(
            tax_year, f"Invalid tax year. Must end no later than {MAXYEAR}"
        )
    return VatPeriod(
        start_date=date(start_year, TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY),
        end_date=date(start_year + 1, TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY - 1),
    )


def validate_date_range(start_date: Any, end_date: Any) -> DateRangeValidation:
    """Validate a ``YYYY-MM-DD`` pair without raising."""
    if isinstance(start_date, date):
        start_date = to_date(start_date).isoformat()
    if isinstance(end_date, date):
        end_date = to_date(end_date).isoformat()

    if not isinstance(start_date, str) or not _DATE_PATTERN.match(start_date):
        return DateRangeValidation(
            False, "Invalid start date format (YYYY-MM-DD required)"
        )
    if not isinstance(end_date, str) or not _DATE_PATTERN.match(end_date):
        return DateRangeValidation(
            False, "Invalid end date format (YYYY-MM-DD required)"
        )

    try:
        start = date.fromisoformat(start_date)
    except ValueError:
        return DateRangeValidation(False, "Invalid start date")
    try:
        end = date.fromisoformat(end_date)
    except ValueError:
        return DateRangeValidation(False, "Invalid end date")

    if start > end:
        return DateRangeValidation(
            False, "Start date must be before or equal to end date"
        )
    return DateRangeValidation(True)


def get_month_period(year: int, month: int) -> VatPeriod:
    """First to last day of a calendar month, leap years included.

    Raises:
        InvalidMonthError: If ``month`` is not an integer from 1 to 12.
    """
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidMonthError(month)
    start = date(year, month, 1)
    return VatPeriod(start, start + relativedelta(months=1, days=-1))


def get_quarter_period(year: int, quarter: int) -> VatPeriod:
    """Calendar quarter 1-4 of ``year``.

    Raises:
        InvalidQuarterError: For any quarter other than 1, 2, 3 or 4.
    """
    start_month = None
    if not isinstance(quarter, bool):
        start_month = QUARTER_START_MONTHS.get(quarter)
    if start_month is None:
        raise InvalidQuarterError(quarter)
    start = date(year, start_month, 1)
    return VatPeriod(start, start + relativedelta(months=3, days=-1))


def get_month_name(month: int, lang: Language | str = Language.EN) -> str:
    return DEFAULT_LOCALIZATION.month_name(month, lang)
