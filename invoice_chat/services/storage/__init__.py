from .invoice_store_base import InvoiceStoreBase, dedupe_key
from .invoices_memory import InMemoryInvoiceStore
from .invoices_sqlite import SQLiteInvoiceStore

__all__ = ["InvoiceStoreBase", "InMemoryInvoiceStore", "SQLiteInvoiceStore", "dedupe_key"]
