"""Read-only ledger rows consumed by the VAT summary service."""

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID, uuid4

from small_business_ledger.domain.value_objects import (
    TransactionStatus,
    TransactionType,
)


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """A single income or expense line as stored by the bookkeeping ledger.

    Money fields are integer pence. ``total_amount`` equals
    ``amount + vat_amount``; the ledger enforces that when it writes the row.
    """

    user_id: int
    type: TransactionType
    transaction_date: date
    amount: int
    vat_amount: int = 0
    vat_rate: int = 0
    total_amount: int | None = None
    status: TransactionStatus = TransactionStatus.CLEARED
    category_id: int | None = None
    description: str = ""
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if not isinstance(self.type, TransactionType):
            object.__setattr__(self, "type", TransactionType(self.type))
        if not isinstance(self.status, TransactionStatus):
            object.__setattr__(self, "status", TransactionStatus(self.status))
        if isinstance(self.transaction_date, str):
            object.__setattr__(
                self, "transaction_date", date.fromisoformat(self.transaction_date)
            )
        if self.total_amount is None:
            object.__setattr__(self, "total_amount", self.amount + self.vat_amount)

    @property
    def is_void(self) -> bool:
        return self.status == TransactionStatus.VOID


@dataclass(frozen=True, slots=True)
class Category:
    """Chart-of-accounts category with its localized name."""

    id: int
    code: str
    name: str
    name_tr: str | None = None


def calculate_vat(amount: int, vat_rate: int) -> int:
    """VAT in pence on a net ``amount`` at ``vat_rate`` basis points, halves rounded up."""
    return (amount * vat_rate + 5000) // 10000
