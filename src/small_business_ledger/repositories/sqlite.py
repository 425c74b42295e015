"""SQLite implementations of the ledger query and category directory."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from uuid import UUID

from small_business_ledger.domain.ledger import Category, LedgerEntry
from small_business_ledger.domain.value_objects import (
    TransactionStatus,
    TransactionType,
)
from small_business_ledger.repositories.interfaces import (
    DEFAULT_EXCLUDED_STATUSES,
    CategoryRepository,
    LedgerRepository,
)


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def initialize(self) -> None:
        """Create the categories and transactions tables."""
        conn = self.get_connection()
        conn.executescript(
            """
            -- Chart of accounts categories
            CREATE TABLE IF NOT EXISTS categories (
                id INTEGER PRIMARY KEY,
                code TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                name_tr TEXT
            );

            -- Ledger transactions, money in integer pence, VAT rate in basis points.
            -- category_id is not a foreign key: removed categories leave their
            -- transactions in place and they report as uncategorized.
            CREATE TABLE IF NOT EXISTS transactions (
                id TEXT PRIMARY KEY,
                user_id INTEGER NOT NULL,
                category_id INTEGER,
                type TEXT NOT NULL CHECK (type IN ('income', 'expense', 'transfer')),
                status TEXT NOT NULL DEFAULT 'cleared'
                    CHECK (status IN ('pending', 'cleared', 'reconciled', 'void')),
                transaction_date TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                amount INTEGER NOT NULL,
                vat_rate INTEGER NOT NULL DEFAULT 0,
                vat_amount INTEGER NOT NULL DEFAULT 0,
                total_amount INTEGER NOT NULL,
                CHECK (total_amount = amount + vat_amount)
            );
            CREATE INDEX IF NOT EXISTS idx_transactions_user_date
                ON transactions(user_id, transaction_date);
            """
        )
        conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class SQLiteLedgerRepository(LedgerRepository):
    """SQLite implementation of LedgerRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, entry: LedgerEntry) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO transactions (id, user_id, category_id, type, status,
                                      transaction_date, description, amount,
                                      vat_rate, vat_amount, total_amount)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(entry.id),
                entry.user_id,
                entry.category_id,
                entry.type.value,
                entry.status.value,
                entry.transaction_date.isoformat(),
                entry.description,
                entry.amount,
                int(entry.vat_rate),
                entry.vat_amount,
                entry.total_amount,
            ),
        )
        conn.commit()

    def list_entries(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        *,
        transaction_type: TransactionType | None = None,
        exclude_statuses: Iterable[TransactionStatus] = DEFAULT_EXCLUDED_STATUSES,
    ) -> Iterable[LedgerEntry]:
        sql = """
            SELECT * FROM transactions
            WHERE user_id = ?
              AND transaction_date >= ?
              AND transaction_date <= ?
        """
        params: list[object] = [user_id, start_date.isoformat(), end_date.isoformat()]

        if transaction_type is not None:
            sql += " AND type = ?"
            params.append(TransactionType(transaction_type).value)

        excluded = [TransactionStatus(s).value for s in exclude_statuses]
        if excluded:
            placeholders = ", ".join("?" for _ in excluded)
            sql += f" AND status NOT IN ({placeholders})"
            params.extend(excluded)

        sql += " ORDER BY transaction_date, id"

        conn = self._db.get_connection()
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def _row_to_entry(self, row: sqlite3.Row) -> LedgerEntry:
        return LedgerEntry(
            id=UUID(row["id"]),
            user_id=row["user_id"],
            category_id=row["category_id"],
            type=TransactionType(row["type"]),
            status=TransactionStatus(row["status"]),
            transaction_date=date.fromisoformat(row["transaction_date"]),
            description=row["description"],
            amount=row["amount"],
            vat_rate=row["vat_rate"],
            vat_amount=row["vat_amount"],
            total_amount=row["total_amount"],
        )


class SQLiteCategoryRepository(CategoryRepository):
    """SQLite implementation of CategoryRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, category: Category) -> None:
        conn = self._db.get_connection()
        conn.execute(
            "INSERT INTO categories (id, code, name, name_tr) VALUES (?, ?, ?, ?)",
            (category.id, category.code, category.name, category.name_tr),
        )
        conn.commit()

    def get(self, category_id: int) -> Category | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_category(row)

    def list_all(self) -> Iterable[Category]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM categories ORDER BY code").fetchall()
        return [self._row_to_category(row) for row in rows]

    def _row_to_category(self, row: sqlite3.Row) -> Category:
        return Category(
            id=row["id"],
            code=row["code"],
            name=row["name"],
            name_tr=row["name_tr"],
        )
