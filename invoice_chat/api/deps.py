from functools import lru_cache

from fastapi import Depends, Header

from ..core.config import settings
from ..services.errors import AuthenticationError
from ..services.invoice_pipeline import InvoicePipeline
from ..services.llm_client import LLMClient
from ..services.storage import InvoiceStoreBase, SQLiteInvoiceStore


@lru_cache
def get_invoice_store() -> InvoiceStoreBase:
    """Process-wide storage handle; tests replace it via dependency_overrides"""
    return SQLiteInvoiceStore(settings.database_path)


@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient()


def get_current_user(authorization: str | None = Header(default=None)) -> str:
    """Resolve the session user from an "Authorization: Bearer <token>" header"""
    if not authorization:
        raise AuthenticationError("Missing session")
    scheme, _, token = authorization.partition(" ")
    user_id = settings.session_tokens().get(token.strip()) if scheme.lower() == "bearer" else None
    if not user_id:
        raise AuthenticationError("Invalid session")
    return user_id


def get_invoice_pipeline(
    store: InvoiceStoreBase = Depends(get_invoice_store),
    llm: LLMClient = Depends(get_llm_client),
) -> InvoicePipeline:
    return InvoicePipeline(store=store, llm=llm)
