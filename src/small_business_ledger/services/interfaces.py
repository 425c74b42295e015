from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from small_business_ledger.domain.value_objects import TransactionType

DateLike = date | str


class VatSummaryService(ABC):
    @abstractmethod
    def get_output_vat_by_rate(
        self, user_id: int, start_date: DateLike, end_date: DateLike
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    def get_input_vat_by_rate(
        self, user_id: int, start_date: DateLike, end_date: DateLike
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    def get_vat_totals(
        self, user_id: int, start_date: DateLike, end_date: DateLike
    ) -> dict[str, dict[str, int]]:
        pass

    @abstractmethod
    def get_monthly_vat_summary(
        self, user_id: int, start_date: DateLike, end_date: DateLike
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    def get_vat_by_category(
        self,
        user_id: int,
        start_date: DateLike,
        end_date: DateLike,
        transaction_type: TransactionType | str,
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    def generate_vat_summary_report(
        self,
        user_id: int,
        start_date: DateLike,
        end_date: DateLike,
        *,
        include_monthly_breakdown: bool = True,
        include_category_breakdown: bool = False,
    ) -> dict[str, Any]:
        pass

    @abstractmethod
    def generate_vat_summary_for_tax_year(
        self,
        user_id: int,
        tax_year: str,
        *,
        include_monthly_breakdown: bool = True,
        include_category_breakdown: bool = False,
    ) -> dict[str, Any]:
        pass

    @abstractmethod
    def generate_vat_summary_for_month(
        self,
        user_id: int,
        year: int,
        month: int,
        *,
        include_monthly_breakdown: bool | None = None,
        include_category_breakdown: bool = False,
    ) -> dict[str, Any]:
        pass

    @abstractmethod
    def generate_vat_summary_for_quarter(
        self,
        user_id: int,
        year: int,
        quarter: int,
        *,
        include_monthly_breakdown: bool = True,
        include_category_breakdown: bool = False,
    ) -> dict[str, Any]:
        pass
