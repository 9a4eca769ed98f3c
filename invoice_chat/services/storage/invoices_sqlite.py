"""
SQLite-based invoice storage.

Invoices carry a unique dedupe_key column so that two concurrent
submissions of the same invoice cannot both be inserted; the losing
insert surfaces as DuplicateInvoiceError.
"""

import json
import sqlite3
import uuid
from datetime import datetime, UTC
from typing import Optional

from loguru import logger

from ...models.invoice import InvoiceExtraction, TokenUsage
from ..errors import DuplicateInvoiceError
from .invoice_store_base import InvoiceStoreBase, dedupe_key

INVOICE_COLUMNS = (
    "id, chat_id, message_id, customer_name, vendor_name, invoice_number, "
    "invoice_date, due_date, amount, created_at"
)
LINE_ITEM_COLUMNS = "id, invoice_id, description, quantity, unit_price, total"


class SQLiteInvoiceStore(InvoiceStoreBase):
    """SQLite-backed store for invoices, line items, token usage and chat messages."""

    def __init__(self, db_path: str = "invoices.db"):
        """
        Initialize store with database path.

        Args:
            db_path: Path to SQLite database file (default: invoices.db)
        """
        self.db_path = db_path
        self._init_database()

    def _init_database(self):
        """Create tables if they don't exist"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS invoice (
                id TEXT PRIMARY KEY,
                chat_id TEXT NOT NULL,
                message_id TEXT NOT NULL,
                customer_name TEXT,
                vendor_name TEXT,
                invoice_number TEXT,
                invoice_date TEXT,
                due_date TEXT,
                amount REAL,
                dedupe_key TEXT NOT NULL UNIQUE,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS invoice_line_item (
                id TEXT PRIMARY KEY,
                invoice_id TEXT NOT NULL REFERENCES invoice(id),
                description TEXT,
                quantity REAL,
                unit_price REAL,
                total REAL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS token_usage (
                id TEXT PRIMARY KEY,
                invoice_id TEXT NOT NULL,
                input_tokens INTEGER NOT NULL,
                output_tokens INTEGER NOT NULL,
                total_tokens INTEGER NOT NULL,
                estimated_cost REAL NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS message (
                id TEXT PRIMARY KEY,
                chat_id TEXT NOT NULL,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_line_item_invoice
            ON invoice_line_item(invoice_id)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_message_chat
            ON message(chat_id, created_at)
        """)

        conn.commit()
        conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def find_duplicate_invoice(
        self,
        vendor_name: str | None,
        invoice_number: str | None,
        amount: float | None,
    ) -> Optional[dict]:
        conn = self._get_connection()
        cursor = conn.cursor()

        # IS compares NULLs as equal
        cursor.execute(f"""
            SELECT {INVOICE_COLUMNS}
            FROM invoice
            WHERE vendor_name IS ? AND invoice_number IS ? AND amount IS ?
            LIMIT 1
        """, (vendor_name, invoice_number, amount))

        row = cursor.fetchone()
        conn.close()

        return dict(row) if row is not None else None

    def _find_by_dedupe_key(self, key: str) -> Optional[dict]:
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(f"SELECT {INVOICE_COLUMNS} FROM invoice WHERE dedupe_key = ?", (key,))
        row = cursor.fetchone()
        conn.close()
        return dict(row) if row is not None else None

    def save_invoice(self, chat_id: str, message_id: str, extraction: InvoiceExtraction) -> str:
        data = extraction.data
        invoice_id = str(uuid.uuid4())
        created_at = datetime.now(UTC).isoformat()
        key = dedupe_key(data.vendor_name, data.invoice_number, data.amount)

        conn = self._get_connection()
        try:
            # One transaction: the invoice and all its line items, or nothing
            with conn:
                conn.execute(f"""
                    INSERT INTO invoice ({INVOICE_COLUMNS}, dedupe_key)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    invoice_id, chat_id, message_id,
                    data.customer_name, data.vendor_name, data.invoice_number,
                    data.invoice_date, data.due_date, data.amount,
                    created_at, key,
                ))
                for item in data.line_items or []:
                    conn.execute(f"""
                        INSERT INTO invoice_line_item ({LINE_ITEM_COLUMNS})
                        VALUES (?, ?, ?, ?, ?, ?)
                    """, (
                        str(uuid.uuid4()), invoice_id,
                        item.description, item.quantity, item.unit_price, item.total,
                    ))
        except sqlite3.IntegrityError as e:
            existing = self._find_by_dedupe_key(key)
            if existing is None:
                raise
            logger.info("Duplicate invoice rejected by unique constraint", existing_id=existing["id"])
            raise DuplicateInvoiceError(existing) from e
        finally:
            conn.close()

        return invoice_id

    def get_invoices(self) -> list:
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(f"SELECT {INVOICE_COLUMNS} FROM invoice ORDER BY created_at")
        invoices = [dict(row) for row in cursor.fetchall()]

        cursor.execute(f"SELECT {LINE_ITEM_COLUMNS} FROM invoice_line_item")
        line_items = [dict(row) for row in cursor.fetchall()]
        conn.close()

        for invoice in invoices:
            invoice["line_items"] = [item for item in line_items if item["invoice_id"] == invoice["id"]]
        return invoices

    def get_invoice_by_id(self, invoice_id: str) -> Optional[dict]:
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(f"SELECT {INVOICE_COLUMNS} FROM invoice WHERE id = ?", (invoice_id,))
        row = cursor.fetchone()
        conn.close()
        return dict(row) if row is not None else None

    def get_invoice_line_items(self, invoice_id: str) -> list:
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT {LINE_ITEM_COLUMNS} FROM invoice_line_item WHERE invoice_id = ?",
            (invoice_id,),
        )
        rows = cursor.fetchall()
        conn.close()
        return [dict(row) for row in rows]

    def delete_invoice_by_id(self, invoice_id: str) -> bool:
        conn = self._get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM invoice_line_item WHERE invoice_id = ?", (invoice_id,))
                cursor = conn.execute("DELETE FROM invoice WHERE id = ?", (invoice_id,))
                rows_affected = cursor.rowcount
        finally:
            conn.close()
        return rows_affected > 0

    def save_token_usage(self, invoice_id: str, usage: TokenUsage) -> str:
        usage_id = str(uuid.uuid4())
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            INSERT INTO token_usage
                (id, invoice_id, input_tokens, output_tokens, total_tokens, estimated_cost, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            usage_id, invoice_id,
            usage.input_tokens, usage.output_tokens, usage.total_tokens, usage.estimated_cost,
            datetime.now(UTC).isoformat(),
        ))

        conn.commit()
        conn.close()
        return usage_id

    def get_average_token_usage(self) -> dict:
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            SELECT
                AVG(input_tokens) AS avg_input_tokens,
                AVG(output_tokens) AS avg_output_tokens,
                AVG(total_tokens) AS avg_total_tokens,
                AVG(estimated_cost) AS avg_cost,
                COUNT(id) AS total_invoices
            FROM token_usage
        """)

        row = cursor.fetchone()
        conn.close()
        return dict(row)

    def save_messages(self, messages: list[dict]) -> None:
        conn = self._get_connection()
        try:
            with conn:
                conn.executemany("""
                    INSERT INTO message (id, chat_id, role, content, created_at)
                    VALUES (?, ?, ?, ?, ?)
                """, [
                    (
                        m["id"], m["chat_id"], m["role"],
                        json.dumps(m["content"], default=str),
                        m.get("created_at") or datetime.now(UTC).isoformat(),
                    )
                    for m in messages
                ])
        finally:
            conn.close()

    def get_messages_by_chat_id(self, chat_id: str) -> list:
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            SELECT id, chat_id, role, content, created_at
            FROM message
            WHERE chat_id = ?
            ORDER BY created_at ASC
        """, (chat_id,))

        rows = cursor.fetchall()
        conn.close()

        return [
            {
                "id": row["id"],
                "chat_id": row["chat_id"],
                "role": row["role"],
                "content": json.loads(row["content"]),
                "created_at": row["created_at"],
            }
            for row in rows
        ]
