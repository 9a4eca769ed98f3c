"""
Abstract base class for invoice storage implementations.

Defines the interface the invoice pipeline and API depend on, so the
storage handle can be injected per request and swapped in tests.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional

from ...models.invoice import InvoiceExtraction, TokenUsage


def dedupe_key(vendor_name: str | None, invoice_number: str | None, amount: float | None) -> str:
    """
    Canonical key for the (vendor, number, amount) duplicate triple.

    Missing values take part in the key as null, so two invoices with no
    invoice number but the same vendor and amount collide.
    """
    return json.dumps([vendor_name, invoice_number, float(amount) if amount is not None else None])


class InvoiceStoreBase(ABC):
    """
    Abstract base class for invoice persistence.

    Invoice dictionaries use these keys:
        - id, chat_id, message_id
        - customer_name, vendor_name, invoice_number
        - invoice_date, due_date (text), amount (float or None)
        - created_at: ISO timestamp
    Line item dictionaries: id, invoice_id, description, quantity, unit_price, total.
    """

    @abstractmethod
    def find_duplicate_invoice(
        self,
        vendor_name: str | None,
        invoice_number: str | None,
        amount: float | None,
    ) -> Optional[dict]:
        """
        Find a stored invoice with exactly the same vendor, number and amount.

        Returns:
            The first matching invoice dictionary, or None
        """
        pass

    @abstractmethod
    def save_invoice(self, chat_id: str, message_id: str, extraction: InvoiceExtraction) -> str:
        """
        Atomically create an invoice and its line items.

        Returns:
            The generated invoice ID

        Raises:
            DuplicateInvoiceError: the (vendor, number, amount) triple already exists
        """
        pass

    @abstractmethod
    def get_invoices(self) -> list:
        """List all invoices, each with a "line_items" list"""
        pass

    @abstractmethod
    def get_invoice_by_id(self, invoice_id: str) -> Optional[dict]:
        pass

    @abstractmethod
    def get_invoice_line_items(self, invoice_id: str) -> list:
        pass

    @abstractmethod
    def delete_invoice_by_id(self, invoice_id: str) -> bool:
        """
        Delete an invoice together with its line items.

        Returns:
            True if the invoice existed
        """
        pass

    @abstractmethod
    def save_token_usage(self, invoice_id: str, usage: TokenUsage) -> str:
        pass

    @abstractmethod
    def get_average_token_usage(self) -> dict:
        """
        Aggregate token usage across all recorded invoices.

        Returns:
            Dictionary with avg_input_tokens, avg_output_tokens, avg_total_tokens,
            avg_cost (None when empty) and total_invoices
        """
        pass

    @abstractmethod
    def save_messages(self, messages: list[dict]) -> None:
        """Insert chat messages (id, chat_id, role, content, created_at)"""
        pass

    @abstractmethod
    def get_messages_by_chat_id(self, chat_id: str) -> list:
        """Messages of a chat ordered by creation time"""
        pass
