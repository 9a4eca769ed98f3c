"""
In-memory invoice storage (for tests and local demos).
In production, use SQLiteInvoiceStore.
"""
import uuid
from datetime import datetime, UTC
from typing import Dict, Optional

from ...models.invoice import InvoiceExtraction, TokenUsage
from ..errors import DuplicateInvoiceError
from .invoice_store_base import InvoiceStoreBase, dedupe_key


class InMemoryInvoiceStore(InvoiceStoreBase):
    def __init__(self):
        self._invoices: Dict[str, dict] = {}
        self._line_items: Dict[str, dict] = {}
        self._dedupe_keys: Dict[str, str] = {}
        self._token_usage: list[dict] = []
        self._messages: list[dict] = []

    def find_duplicate_invoice(self, vendor_name, invoice_number, amount) -> Optional[dict]:
        for invoice in self._invoices.values():
            if (
                invoice["vendor_name"] == vendor_name
                and invoice["invoice_number"] == invoice_number
                and invoice["amount"] == amount
            ):
                return dict(invoice)
        return None

    def save_invoice(self, chat_id: str, message_id: str, extraction: InvoiceExtraction) -> str:
        data = extraction.data
        key = dedupe_key(data.vendor_name, data.invoice_number, data.amount)
        if key in self._dedupe_keys:
            raise DuplicateInvoiceError(dict(self._invoices[self._dedupe_keys[key]]))

        invoice_id = str(uuid.uuid4())
        line_items = {}
        for item in data.line_items or []:
            item_id = str(uuid.uuid4())
            line_items[item_id] = {
                "id": item_id,
                "invoice_id": invoice_id,
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total": item.total,
            }

        self._invoices[invoice_id] = {
            "id": invoice_id,
            "chat_id": chat_id,
            "message_id": message_id,
            "customer_name": data.customer_name,
            "vendor_name": data.vendor_name,
            "invoice_number": data.invoice_number,
            "invoice_date": data.invoice_date,
            "due_date": data.due_date,
            "amount": data.amount,
            "created_at": datetime.now(UTC).isoformat(),
        }
        self._line_items.update(line_items)
        self._dedupe_keys[key] = invoice_id
        return invoice_id

    def get_invoices(self) -> list:
        return [
            {**invoice, "line_items": self.get_invoice_line_items(invoice["id"])}
            for invoice in self._invoices.values()
        ]

    def get_invoice_by_id(self, invoice_id: str) -> Optional[dict]:
        invoice = self._invoices.get(invoice_id)
        return dict(invoice) if invoice else None

    def get_invoice_line_items(self, invoice_id: str) -> list:
        return [dict(item) for item in self._line_items.values() if item["invoice_id"] == invoice_id]

    def delete_invoice_by_id(self, invoice_id: str) -> bool:
        invoice = self._invoices.pop(invoice_id, None)
        if invoice is None:
            return False
        self._line_items = {k: v for k, v in self._line_items.items() if v["invoice_id"] != invoice_id}
        self._dedupe_keys = {k: v for k, v in self._dedupe_keys.items() if v != invoice_id}
        return True

    def save_token_usage(self, invoice_id: str, usage: TokenUsage) -> str:
        usage_id = str(uuid.uuid4())
        self._token_usage.append({
            "id": usage_id,
            "invoice_id": invoice_id,
            **usage.model_dump(),
            "created_at": datetime.now(UTC).isoformat(),
        })
        return usage_id

    def get_average_token_usage(self) -> dict:
        count = len(self._token_usage)
        if count == 0:
            return {
                "avg_input_tokens": None,
                "avg_output_tokens": None,
                "avg_total_tokens": None,
                "avg_cost": None,
                "total_invoices": 0,
            }
        return {
            "avg_input_tokens": sum(u["input_tokens"] for u in self._token_usage) / count,
            "avg_output_tokens": sum(u["output_tokens"] for u in self._token_usage) / count,
            "avg_total_tokens": sum(u["total_tokens"] for u in self._token_usage) / count,
            "avg_cost": sum(u["estimated_cost"] for u in self._token_usage) / count,
            "total_invoices": count,
        }

    def save_messages(self, messages: list[dict]) -> None:
        for message in messages:
            self._messages.append({**message, "created_at": message.get("created_at") or datetime.now(UTC).isoformat()})

    def get_messages_by_chat_id(self, chat_id: str) -> list:
        messages = [m for m in self._messages if m["chat_id"] == chat_id]
        return sorted(messages, key=lambda m: m["created_at"])
