from small_business_ledger.repositories.interfaces import (
    CategoryDirectory,
    CategoryRepository,
    LedgerQuery,
    LedgerRepository,
)
from small_business_ledger.repositories.sqlite import (
    SQLiteCategoryRepository,
    SQLiteDatabase,
    SQLiteLedgerRepository,
)

__all__ = [
    "CategoryDirectory",
    "CategoryRepository",
    "LedgerQuery",
    "LedgerRepository",
    "SQLiteCategoryRepository",
    "SQLiteDatabase",
    "SQLiteLedgerRepository",
]
