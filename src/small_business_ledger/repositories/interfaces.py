from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date

from small_business_ledger.domain.ledger import Category, LedgerEntry
from small_business_ledger.domain.value_objects import (
    TransactionStatus,
    TransactionType,
)

DEFAULT_EXCLUDED_STATUSES: tuple[TransactionStatus, ...] = (TransactionStatus.VOID,)


class LedgerQuery(ABC):
    """Read access to a user's ledger rows for reporting."""

    @abstractmethod
    def list_entries(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        *,
        transaction_type: TransactionType | None = None,
        exclude_statuses: Iterable[TransactionStatus] = DEFAULT_EXCLUDED_STATUSES,
    ) -> Iterable[LedgerEntry]:
        """Rows dated within [start_date, end_date], both bounds inclusive."""


class CategoryDirectory(ABC):
    @abstractmethod
    def get(self, category_id: int) -> Category | None:
        pass


class LedgerRepository(LedgerQuery):
    @abstractmethod
    def add(self, entry: LedgerEntry) -> None:
        pass


class CategoryRepository(CategoryDirectory):
    @abstractmethod
    def add(self, category: Category) -> None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Category]:
        pass
