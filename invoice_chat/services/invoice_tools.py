from loguru import logger
from ..models.invoice import InvoiceRecord
from .llm_client import Tool
from .storage import InvoiceStoreBase

GET_ALL_INVOICES = "getAllInvoices"


def list_all_invoices(store: InvoiceStoreBase) -> list[dict]:
    """All stored invoices with nested line items, in API (camelCase) form"""
    return [
        InvoiceRecord.model_validate(invoice).model_dump(mode="json", by_alias=True)
        for invoice in store.get_invoices()
    ]


def create_get_all_invoices_tool(store: InvoiceStoreBase) -> Tool:
    async def execute(args: dict) -> list[dict]:
        invoices = list_all_invoices(store)
        logger.info("getAllInvoices tool invoked", invoice_count=len(invoices))
        return invoices

    return Tool(
        name=GET_ALL_INVOICES,
        description=(
            "Get all processed invoices. When this tool is invoked, you must ONLY return "
            "the tool result without any additional text before or after."
        ),
        execute=execute,
    )
