"""VAT summary service: output/input VAT by rate, month and category.

A summary is informational and separate from the formal VAT return. Each
sub-aggregate performs one read through the LedgerQuery and then works in
memory on integer pence, so ``net_amount + vat_amount == gross_amount``
holds for every bucket whenever it holds for every row.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any

from small_business_ledger.domain.ledger import LedgerEntry
from small_business_ledger.domain.value_objects import TransactionType
from small_business_ledger.domain.vat_periods import (
    VatPeriod,
    get_month_period,
    get_quarter_period,
    get_tax_year_dates,
    to_date,
    validate_date_range,
)
from small_business_ledger.exceptions import InvalidDateRangeError
from small_business_ledger.i18n import (
    DEFAULT_LOCALIZATION,
    UNCATEGORIZED_CODE,
    Language,
    Localization,
)
from small_business_ledger.logging_config import get_logger
from small_business_ledger.repositories.interfaces import (
    DEFAULT_EXCLUDED_STATUSES,
    CategoryDirectory,
    LedgerQuery,
)
from small_business_ledger.services.interfaces import DateLike, VatSummaryService

logger = get_logger(__name__)


@dataclass
class VatBucket:
    """Running totals for one group of ledger rows."""

    transaction_count: int = 0
    net_amount: int = 0
    vat_amount: int = 0
    gross_amount: int = 0

    def add(self, entry: LedgerEntry) -> None:
        self.transaction_count += 1
        self.net_amount += entry.amount
        self.vat_amount += entry.vat_amount
        self.gross_amount += entry.total_amount or 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class VatSummaryServiceImpl(VatSummaryService):
    """Builds VAT summary reports from a read-only ledger snapshot."""

    def __init__(
        self,
        ledger_query: LedgerQuery,
        category_directory: CategoryDirectory | None = None,
        localization: Localization = DEFAULT_LOCALIZATION,
    ) -> None:
        self._ledger_query = ledger_query
        self._category_directory = category_directory
        self._localization = localization

    # ------------------------------------------------------------------
    # Sub-aggregates
    # ------------------------------------------------------------------

    def get_output_vat_by_rate(
        self, user_id: int, start_date: DateLike, end_date: DateLike
    ) -> list[dict[str, Any]]:
        """VAT collected on sales, grouped by rate, highest rate first."""
        return self._vat_by_rate(user_id, start_date, end_date, TransactionType.INCOME)

    def get_input_vat_by_rate(
        self, user_id: int, start_date: DateLike, end_date: DateLike
    ) -> list[dict[str, Any]]:
        """VAT paid on purchases, grouped by rate, highest rate first."""
        return self._vat_by_rate(
            user_id, start_date, end_date, TransactionType.EXPENSE
        )

    def get_vat_totals(
        self, user_id: int, start_date: DateLike, end_date: DateLike
    ) -> dict[str, dict[str, int]]:
        output = VatBucket()
        input_ = VatBucket()
        for entry in self._load(user_id, start_date, end_date):
            if entry.type == TransactionType.INCOME:
                output.add(entry)
            elif entry.type == TransactionType.EXPENSE:
                input_.add(entry)
        return {"output": output.to_dict(), "input": input_.to_dict()}

    def get_monthly_vat_summary(
        self, user_id: int, start_date: DateLike, end_date: DateLike
    ) -> list[dict[str, Any]]:
        """Output and input VAT per calendar month, oldest month first."""
        months: dict[tuple[int, int], dict[TransactionType, VatBucket]] = (
            defaultdict(lambda: defaultdict(VatBucket))
        )
        for entry in self._load(user_id, start_date, end_date):
            # any non-void row opens its month, even one carrying no VAT
            day = entry.transaction_date
            buckets = months[(day.year, day.month)]
            if entry.type in (TransactionType.INCOME, TransactionType.EXPENSE):
                buckets[entry.type].add(entry)

        summary: list[dict[str, Any]] = []
        for (year, month), buckets in sorted(months.items()):
            output = buckets[TransactionType.INCOME]
            input_ = buckets[TransactionType.EXPENSE]
            net_vat = output.vat_amount - input_.vat_amount
            summary.append(
                {
                    "year": year,
                    "month": month,
                    "month_name": self._localization.month_name(month, Language.EN),
                    "output_vat": output.vat_amount,
                    "input_vat": input_.vat_amount,
                    "net_vat": net_vat,
                    "is_refund_due": net_vat < 0,
                    "output_transaction_count": output.transaction_count,
                    "input_transaction_count": input_.transaction_count,
                    "total_transaction_count": output.transaction_count
                    + input_.transaction_count,
                }
            )
        return summary

    def get_vat_by_category(
        self,
        user_id: int,
        start_date: DateLike,
        end_date: DateLike,
        transaction_type: TransactionType | str,
    ) -> list[dict[str, Any]]:
        """VAT per category; rows without a known category are grouped together."""
        transaction_type = TransactionType(transaction_type)
        groups: dict[int | None, dict[str, Any]] = {}

        for entry in self._load(user_id, start_date, end_date, transaction_type):
            category = None
            if entry.category_id is not None and self._category_directory:
                category = self._category_directory.get(entry.category_id)
            key = category.id if category else None

            if key not in groups:
                if category:
                    labels = {
                        "category_id": category.id,
                        "category_code": category.code,
                        "category_name": category.name,
                        "category_name_tr": category.name_tr or category.name,
                    }
                else:
                    labels = {
                        "category_id": None,
                        "category_code": UNCATEGORIZED_CODE,
                        "category_name": self._localization.uncategorized_name(
                            Language.EN
                        ),
                        "category_name_tr": self._localization.uncategorized_name(
                            Language.TR
                        ),
                    }
                groups[key] = {"labels": labels, "bucket": VatBucket()}
            groups[key]["bucket"].add(entry)

        rows = [
            {**group["labels"], **group["bucket"].to_dict()}
            for group in groups.values()
        ]
        rows.sort(key=lambda row: (-row["vat_amount"], row["category_code"]))
        return rows

    def get_vat_rate_name(self, vat_rate: int, lang: Language | str = Language.EN) -> str:
        return self._localization.vat_rate_name(vat_rate, lang)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def generate_vat_summary_report(
        self,
        user_id: int,
        start_date: DateLike,
        end_date: DateLike,
        *,
        include_monthly_breakdown: bool = True,
        include_category_breakdown: bool = False,
    ) -> dict[str, Any]:
        """Assemble the full VAT summary for an inclusive date range.

        Raises:
            InvalidDateRangeError: If either date is malformed or the range
                is inverted.
        """
        period = self._period(start_date, end_date)
        start, end = period.start_date, period.end_date

        output_by_rate = self.get_output_vat_by_rate(user_id, start, end)
        input_by_rate = self.get_input_vat_by_rate(user_id, start, end)
        totals = self.get_vat_totals(user_id, start, end)

        output_vat = totals["output"]["vat_amount"]
        input_vat = totals["input"]["vat_amount"]
        net_vat = output_vat - input_vat
        is_refund_due = net_vat < 0

        report: dict[str, Any] = {
            "period": period.to_dict(),
            "output_vat": {
                "by_rate": [self._with_rate_name(row) for row in output_by_rate],
                "totals": totals["output"],
            },
            "input_vat": {
                "by_rate": [self._with_rate_name(row) for row in input_by_rate],
                "totals": totals["input"],
            },
            "net_position": {
                "output_vat": output_vat,
                "input_vat": input_vat,
                "net_vat": net_vat,
                "is_refund_due": is_refund_due,
                "description": self._localization.bilingual(
                    lambda lang: self._localization.net_position_description(
                        net_vat, lang
                    )
                ),
            },
            "transaction_counts": {
                "output": totals["output"]["transaction_count"],
                "input": totals["input"]["transaction_count"],
                "total": totals["output"]["transaction_count"]
                + totals["input"]["transaction_count"],
            },
        }

        if include_monthly_breakdown:
            report["monthly_breakdown"] = self.get_monthly_vat_summary(
                user_id, start, end
            )

        if include_category_breakdown:
            report["category_breakdown"] = {
                "output": self.get_vat_by_category(
                    user_id, start, end, TransactionType.INCOME
                ),
                "input": self.get_vat_by_category(
                    user_id, start, end, TransactionType.EXPENSE
                ),
            }

        logger.info(
            "vat_summary_generated",
            user_id=user_id,
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            tax_year=period.tax_year,
            net_vat=net_vat,
            is_refund_due=is_refund_due,
        )
        return report

    def generate_vat_summary_for_tax_year(
        self,
        user_id: int,
        tax_year: str,
        *,
        include_monthly_breakdown: bool = True,
        include_category_breakdown: bool = False,
    ) -> dict[str, Any]:
        period = get_tax_year_dates(tax_year)
        return self.generate_vat_summary_report(
            user_id,
            period.start_date,
            period.end_date,
            include_monthly_breakdown=include_monthly_breakdown,
            include_category_breakdown=include_category_breakdown,
        )

    def generate_vat_summary_for_month(
        self,
        user_id: int,
        year: int,
        month: int,
        *,
        include_monthly_breakdown: bool | None = None,
        include_category_breakdown: bool = False,
    ) -> dict[str, Any]:
        """Single-month summary; the monthly breakdown is off unless asked for."""
        period = get_month_period(year, month)
        return self.generate_vat_summary_report(
            user_id,
            period.start_date,
            period.end_date,
            include_monthly_breakdown=bool(include_monthly_breakdown),
            include_category_breakdown=include_category_breakdown,
        )

    def generate_vat_summary_for_quarter(
        self,
        user_id: int,
        year: int,
        quarter: int,
        *,
        include_monthly_breakdown: bool = True,
        include_category_breakdown: bool = False,
    ) -> dict[str, Any]:
        """Calendar-quarter summary.

        Raises:
            InvalidQuarterError: If ``quarter`` is not 1, 2, 3 or 4.
        """
        period = get_quarter_period(year, quarter)
        return self.generate_vat_summary_report(
            user_id,
            period.start_date,
            period.end_date,
            include_monthly_breakdown=include_monthly_breakdown,
            include_category_breakdown=include_category_breakdown,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _period(self, start_date: DateLike, end_date: DateLike) -> VatPeriod:
        validation = validate_date_range(start_date, end_date)
        if not validation.is_valid:
            logger.warning(
                "vat_summary_period_rejected",
                start_date=str(start_date),
                end_date=str(end_date),
                reason=validation.error,
            )
            raise InvalidDateRangeError(
                str(start_date), str(end_date), validation.error or "Invalid range"
            )
        return VatPeriod(to_date(start_date), to_date(end_date))

    def _load(
        self,
        user_id: int,
        start_date: DateLike,
        end_date: DateLike,
        transaction_type: TransactionType | None = None,
    ) -> list[LedgerEntry]:
        period = VatPeriod(to_date(start_date), to_date(end_date))
        rows = self._ledger_query.list_entries(
            user_id,
            period.start_date,
            period.end_date,
            transaction_type=transaction_type,
            exclude_statuses=DEFAULT_EXCLUDED_STATUSES,
        )
        # The query contract already applies these filters; rows from a
        # looser adapter must still never reach an aggregate.
        entries = [
            entry
            for entry in rows
            if not entry.is_void
            and entry.user_id == user_id
            and period.contains(entry.transaction_date)
            and (transaction_type is None or entry.type == transaction_type)
        ]
        logger.debug(
            "vat_entries_loaded",
            user_id=user_id,
            transaction_type=transaction_type.value if transaction_type else None,
            count=len(entries),
        )
        return entries

    def _vat_by_rate(
        self,
        user_id: int,
        start_date: DateLike,
        end_date: DateLike,
        transaction_type: TransactionType,
    ) -> list[dict[str, Any]]:
        buckets: dict[int, VatBucket] = defaultdict(VatBucket)
        for entry in self._load(user_id, start_date, end_date, transaction_type):
            buckets[entry.vat_rate or 0].add(entry)

        return [
            {
                "vat_rate": rate,
                "vat_rate_percent": rate / 100,
                **buckets[rate].to_dict(),
            }
            for rate in sorted(buckets, reverse=True)
        ]

    def _with_rate_name(self, row: dict[str, Any]) -> dict[str, Any]:
        rate = row["vat_rate"]
        return {
            **row,
            "rate_name": self._localization.bilingual(
                lambda lang: self._localization.vat_rate_name(rate, lang)
            ),
        }
