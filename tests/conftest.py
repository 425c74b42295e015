from datetime import date

import pytest

from small_business_ledger.config import get_settings
from small_business_ledger.domain.ledger import Category, LedgerEntry
from small_business_ledger.domain.value_objects import (
    TransactionStatus,
    TransactionType,
    VatRate,
)
from small_business_ledger.repositories.sqlite import (
    SQLiteCategoryRepository,
    SQLiteDatabase,
    SQLiteLedgerRepository,
)
from small_business_ledger.services.vat_summary import VatSummaryServiceImpl

USER_ID = 1


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    for var in (
        "SBL_SQLITE_PATH",
        "SBL_CURRENCY_SYMBOL",
        "SBL_DEFAULT_LANGUAGE",
        "SBL_ENVIRONMENT",
        "SBL_LOG_FORMAT",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db() -> SQLiteDatabase:
    database = SQLiteDatabase(":memory:")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def ledger_repo(db: SQLiteDatabase) -> SQLiteLedgerRepository:
    return SQLiteLedgerRepository(db)


@pytest.fixture
def category_repo(db: SQLiteDatabase) -> SQLiteCategoryRepository:
    return SQLiteCategoryRepository(db)


@pytest.fixture
def service(
    ledger_repo: SQLiteLedgerRepository, category_repo: SQLiteCategoryRepository
) -> VatSummaryServiceImpl:
    return VatSummaryServiceImpl(ledger_repo, category_repo)


@pytest.fixture
def sales_category(category_repo: SQLiteCategoryRepository) -> Category:
    category = Category(id=10, code="4000", name="Sales", name_tr="Satışlar")
    category_repo.add(category)
    return category


@pytest.fixture
def office_category(category_repo: SQLiteCategoryRepository) -> Category:
    category = Category(id=20, code="7500", name="Office Costs")
    category_repo.add(category)
    return category


@pytest.fixture
def worked_example(
    ledger_repo: SQLiteLedgerRepository,
    sales_category: Category,
    office_category: Category,
) -> list[LedgerEntry]:
    """Two sales and two purchases in May/June 2025: 2250 output, 1700 input."""
    entries = [
        LedgerEntry(
            user_id=USER_ID,
            type=TransactionType.INCOME,
            transaction_date=date(2025, 5, 10),
            amount=10000,
            vat_rate=VatRate.STANDARD,
            vat_amount=2000,
            category_id=sales_category.id,
        ),
        LedgerEntry(
            user_id=USER_ID,
            type=TransactionType.INCOME,
            transaction_date=date(2025, 6, 2),
            amount=5000,
            vat_rate=VatRate.REDUCED,
            vat_amount=250,
            category_id=sales_category.id,
        ),
        LedgerEntry(
            user_id=USER_ID,
            type=TransactionType.EXPENSE,
            transaction_date=date(2025, 5, 20),
            amount=8000,
            vat_rate=VatRate.STANDARD,
            vat_amount=1600,
            category_id=office_category.id,
        ),
        LedgerEntry(
            user_id=USER_ID,
            type=TransactionType.EXPENSE,
            transaction_date=date(2025, 6, 15),
            amount=2000,
            vat_rate=VatRate.REDUCED,
            vat_amount=100,
        ),
    ]
    for entry in entries:
        ledger_repo.add(entry)
    return entries


@pytest.fixture
def void_sale(ledger_repo: SQLiteLedgerRepository) -> LedgerEntry:
    entry = LedgerEntry(
        user_id=USER_ID,
        type=TransactionType.INCOME,
        transaction_date=date(2025, 5, 12),
        amount=50000,
        vat_rate=VatRate.STANDARD,
        vat_amount=10000,
        status=TransactionStatus.VOID,
    )
    ledger_repo.add(entry)
    return entry
