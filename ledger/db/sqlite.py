"""SQLite database operations for Finledger."""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from ledger.config import settings
from ledger.models import (
    Account,
    AccountCreate,
    AccountType,
    CategoryMapping,
    CategoryPatternCreate,
    OFXImport,
    OFXImportTransaction,
    Transaction,
    TransactionType,
)

# SQL schema
SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    balance TEXT NOT NULL DEFAULT '0.00',
    currency TEXT NOT NULL DEFAULT 'BRL',
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_accounts_user ON accounts(user_id);

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    account_id INTEGER NOT NULL REFERENCES accounts(id),
    fit_id TEXT,
    date TEXT NOT NULL,
    amount TEXT NOT NULL,
    type TEXT NOT NULL,
    description TEXT NOT NULL,
    category_id INTEGER,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);
CREATE INDEX IF NOT EXISTS idx_transactions_fit_id ON transactions(fit_id);
CREATE INDEX IF NOT EXISTS idx_transactions_account_fit_id ON transactions(account_id, user_id, fit_id);

CREATE TABLE IF NOT EXISTS category_mappings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    pattern TEXT NOT NULL,
    category_id INTEGER NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_category_mappings_user ON category_mappings(user_id);

CREATE TABLE IF NOT EXISTS ofx_imports (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    account_id INTEGER NOT NULL,
    file_name TEXT,
    file_hash TEXT,
    bank_id TEXT,
    bank_account_id TEXT,
    transaction_count INTEGER NOT NULL,
    duplicate_count INTEGER NOT NULL DEFAULT 0,
    start_date TEXT,
    end_date TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_ofx_imports_user ON ofx_imports(user_id);
"""

_TRANSACTION_COLUMNS = """
    id, user_id, account_id, fit_id, date, amount, type,
    description, category_id, created_at
"""


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or settings.db_path
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the database schema."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    # ==================== ACCOUNTS ====================

    def create_account(self, user_id: int, account: AccountCreate) -> Account:
        """Create an account for a user."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO accounts (user_id, name, type, balance, currency) VALUES (?, ?, ?, ?, ?)",
                (user_id, account.name, account.type.value, str(account.balance), account.currency),
            )
            conn.commit()
            return Account(id=cursor.lastrowid, user_id=user_id, **account.model_dump())

    def get_account(self, account_id: int, user_id: int) -> Account | None:
        """Get an account if it belongs to the user."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT id, user_id, name, type, balance, currency FROM accounts WHERE id = ? AND user_id = ?",
                (account_id, user_id),
            )
            row = cursor.fetchone()
            return self._row_to_account(row) if row else None

    def get_accounts(self, user_id: int) -> list[Account]:
        """Get all accounts of a user."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT id, user_id, name, type, balance, currency FROM accounts WHERE user_id = ? ORDER BY id",
                (user_id,),
            )
            return [self._row_to_account(row) for row in cursor.fetchall()]

    # ==================== TRANSACTIONS ====================

    def get_existing_fit_ids(self, account_id: int, user_id: int) -> set[str]:
        """Get every FITID already imported into an account."""
        with self._get_connection() as conn:
            return self._fetch_fit_ids(conn, account_id, user_id)

    def _fetch_fit_ids(self, conn: sqlite3.Connection, account_id: int, user_id: int) -> set[str]:
        cursor = conn.execute(
            "SELECT fit_id FROM transactions WHERE account_id = ? AND user_id = ? AND fit_id IS NOT NULL",
            (account_id, user_id),
        )
        return {row["fit_id"] for row in cursor.fetchall()}

    def import_ofx_transactions(
        self,
        user_id: int,
        account_id: int,
        transactions: list[OFXImportTransaction],
        import_record: OFXImport,
        update_balance: bool = False,
    ) -> tuple[int, int, int, Decimal | None]:
        """
        Insert reviewed OFX transactions and record the import.

        FITIDs are re-checked inside the write, so a stale preview cannot
        insert a duplicate. Everything is committed in one transaction.

        Returns:
            (import_id, added_count, skipped_count, new_balance)
        """
        with self._get_connection() as conn:
            try:
                existing = self._fetch_fit_ids(conn, account_id, user_id)
                added = 0
                skipped = 0
                delta = Decimal("0")

                for txn in transactions:
                    if txn.fit_id in existing:
                        skipped += 1
                        continue
                    conn.execute(
                        """
                        INSERT INTO transactions (user_id, account_id, fit_id, date,
                        amount, type, description, category_id) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            user_id,
                            account_id,
                            txn.fit_id,
                            txn.date,
                            str(txn.amount),
                            txn.type.value,
                            txn.description,
                            txn.category_id,
                        ),
                    )
                    existing.add(txn.fit_id)
                    added += 1
                    delta += txn.amount if txn.type == TransactionType.INCOME else -txn.amount

                new_balance = None
                if update_balance and added > 0:
                    row = conn.execute(
                        "SELECT balance FROM accounts WHERE id = ? AND user_id = ?",
                        (account_id, user_id),
                    ).fetchone()
                    if row is not None:
                        new_balance = Decimal(row["balance"]) + delta
                        conn.execute(
                            "UPDATE accounts SET balance = ? WHERE id = ?",
                            (str(new_balance), account_id),
                        )

                cursor = conn.execute(
                    """
                    INSERT INTO ofx_imports (user_id, account_id, file_name, file_hash, bank_id,
                    bank_account_id, transaction_count, duplicate_count, start_date, end_date,
                    created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        account_id,
                        import_record.file_name,
                        import_record.file_hash,
                        import_record.bank_id,
                        import_record.bank_account_id,
                        added,
                        import_record.duplicate_count + skipped,
                        import_record.start_date,
                        import_record.end_date,
                        import_record.created_at,
                    ),
                )
                conn.commit()
                return cursor.lastrowid, added, skipped, new_balance
            except sqlite3.Error:
                conn.rollback()
                raise

    def get_transactions(self, user_id: int, account_id: int | None = None, limit: int = 1000) -> list[Transaction]:
        """Get transactions with an optional account filter."""
        query = f"SELECT {_TRANSACTION_COLUMNS} FROM transactions WHERE user_id = ?"
        params: list = [user_id]

        if account_id is not None:
            query += " AND account_id = ?"
            params.append(account_id)

        query += " ORDER BY date DESC, id ASC LIMIT ?"
        params.append(limit)

        with self._get_connection() as conn:
            cursor = conn.execute(query, params)
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def get_transaction_count(self) -> int:
        """Get total number of transactions."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(*) as count FROM transactions")
            return cursor.fetchone()["count"]

    # ==================== CATEGORY MAPPINGS ====================

    def add_category_mapping(self, user_id: int, mapping: CategoryPatternCreate) -> CategoryMapping:
        """Add a description pattern for a user."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO category_mappings (user_id, pattern, category_id) VALUES (?, ?, ?)",
                (user_id, mapping.pattern, mapping.category_id),
            )
            conn.commit()
            return CategoryMapping(id=cursor.lastrowid, user_id=user_id, **mapping.model_dump())

    def get_category_mappings(self, user_id: int, active_only: bool = True) -> list[CategoryMapping]:
        """Get a user's category mappings in creation order."""
        query = "SELECT id, user_id, pattern, category_id, is_active FROM category_mappings WHERE user_id = ?"
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY id"

        with self._get_connection() as conn:
            cursor = conn.execute(query, (user_id,))
            return [
                CategoryMapping(
                    id=row["id"],
                    user_id=row["user_id"],
                    pattern=row["pattern"],
                    category_id=row["category_id"],
                    is_active=bool(row["is_active"]),
                )
                for row in cursor.fetchall()
            ]

    def delete_category_mapping(self, mapping_id: int, user_id: int) -> bool:
        """Delete a mapping. Returns True if a row was removed."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM category_mappings WHERE id = ? AND user_id = ?",
                (mapping_id, user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    # ==================== IMPORT HISTORY ====================

    def get_ofx_imports(self, user_id: int, account_id: int | None = None) -> list[OFXImport]:
        """Get import history, newest first."""
        query = """
            SELECT id, user_id, account_id, file_name, file_hash, bank_id, bank_account_id,
                   transaction_count, duplicate_count, start_date, end_date, created_at
            FROM ofx_imports WHERE user_id = ?
        """
        params: list = [user_id]

        if account_id is not None:
            query += " AND account_id = ?"
            params.append(account_id)

        query += " ORDER BY created_at DESC, id DESC"

        with self._get_connection() as conn:
            cursor = conn.execute(query, params)
            return [OFXImport(**dict(row)) for row in cursor.fetchall()]

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        """Convert a database row to an Account model."""
        return Account(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            type=AccountType(row["type"]),
            balance=Decimal(row["balance"]),
            currency=row["currency"],
        )

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        """Convert a database row to a Transaction model."""
        return Transaction(
            id=row["id"],
            user_id=row["user_id"],
            account_id=row["account_id"],
            fit_id=row["fit_id"],
            date=row["date"],
            amount=Decimal(row["amount"]),
            type=TransactionType(row["type"]),
            description=row["description"],
            category_id=row["category_id"],
            created_at=row["created_at"] or datetime.now().isoformat(),
        )


# Global database instance
db = Database()
