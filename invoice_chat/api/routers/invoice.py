from fastapi import APIRouter, Depends

from ...models.invoice import InvoiceListResponse, TokenStatsResponse
from ...services.invoice_tools import list_all_invoices
from ...services.storage import InvoiceStoreBase
from ...services.token_tracker import summarize_token_stats
from ..deps import get_invoice_store

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(store: InvoiceStoreBase = Depends(get_invoice_store)):
    """List all processed invoices with their line items"""
    return {"invoices": list_all_invoices(store)}


@router.get("/token-stats", response_model=TokenStatsResponse)
async def token_stats(store: InvoiceStoreBase = Depends(get_invoice_store)):
    """
    Average token usage and estimated cost of the validator call.

    Costs are returned as strings rounded to 4 decimals.
    """
    return summarize_token_stats(store.get_average_token_usage())
