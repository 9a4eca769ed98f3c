"""
Prompt construction for the streamed responder call.

The user-visible reply is chosen by a three-way branch on the processing
outcome (invalid, duplicate, new) and rendered from fixed templates. Only
a new invoice enables the getAllInvoices tool.
"""

from datetime import datetime

from ..models.invoice import InvoiceOutcome
from .llm_client import Tool
from .prompts import (
    DUPLICATE_INVOICE_TEMPLATE,
    INVALID_INVOICE_TEMPLATE,
    LINE_ITEM_TEMPLATE,
    NO_LINE_ITEMS,
    PROCESSED_INVOICE_TEMPLATE,
    RESPONDER_SYSTEM_PROMPT,
)


def format_value(value) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_date(value) -> str:
    """Render a stored ISO timestamp as M/D/YYYY"""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return f"{value.month}/{value.day}/{value.year}"


def render_line_items(outcome: InvoiceOutcome) -> str:
    items = outcome.extraction.data.line_items
    if not items:
        return NO_LINE_ITEMS
    return "\n\n".join(
        LINE_ITEM_TEMPLATE.format(
            description=format_value(item.description),
            quantity=format_value(item.quantity),
            unit_price=format_value(item.unit_price),
            total=format_value(item.total),
        )
        for item in items
    )


def build_responder_prompt(outcome: InvoiceOutcome) -> str:
    validation = outcome.extraction.validation
    data = outcome.extraction.data

    if not outcome.is_valid:
        return INVALID_INVOICE_TEMPLATE.format(
            document_type=format_value(validation.document_type),
            reason=validation.reason or "",
        )

    if outcome.is_duplicate:
        existing = outcome.existing_invoice or {}
        return DUPLICATE_INVOICE_TEMPLATE.format(
            vendor_name=format_value(data.vendor_name),
            invoice_number=format_value(data.invoice_number),
            amount=format_value(data.amount),
            processed_on=format_date(existing["created_at"]) if existing.get("created_at") else "N/A",
            existing_id=format_value(existing.get("id")),
        )

    return PROCESSED_INVOICE_TEMPLATE.format(
        vendor_name=format_value(data.vendor_name),
        customer_name=format_value(data.customer_name),
        invoice_number=format_value(data.invoice_number),
        invoice_date=format_value(data.invoice_date),
        due_date=format_value(data.due_date),
        amount=format_value(data.amount),
        line_items=render_line_items(outcome),
        invoice_id=outcome.invoice_id,
    )


def build_responder_messages(outcome: InvoiceOutcome) -> list[dict]:
    return [
        {"role": "system", "content": RESPONDER_SYSTEM_PROMPT},
        {"role": "user", "content": build_responder_prompt(outcome)},
    ]


def select_active_tools(outcome: InvoiceOutcome, tools: list[Tool]) -> list[Tool]:
    """Tools stay disabled unless a new invoice was just saved"""
    return list(tools) if outcome.is_new_invoice else []
