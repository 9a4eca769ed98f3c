"""
Invoice processing pipeline for chat attachments.

Control flow for one request:
    fetch attachment -> extract text -> validator call -> parse reply
    -> duplicate check -> persist (new invoices only)
    -> streamed responder call -> persist response messages

Everything up to persistence runs before the response starts, so any
failure there becomes a plain error response. Failures during streaming
become an error part inside the stream.
"""

from typing import AsyncIterator

import httpx
from loguru import logger

from ..core.config import settings
from ..models.chat import Attachment, ChatRequest
from ..models.invoice import InvoiceData, InvoiceOutcome
from .data_stream import encode_error, encode_event, smooth_words
from .errors import AttachmentFetchError, DuplicateInvoiceError, ResponseParseError
from .invoice_tools import create_get_all_invoices_tool
from .invoice_validator import validate_invoice_text
from .llm_client import CompletionResult, Finish, LLMClient
from .message_persister import persist_response_messages
from .responder import build_responder_messages, select_active_tools
from .response_parser import parse_validation_response
from .storage import InvoiceStoreBase
from .text_extractor import get_text_from_document
from .token_tracker import calculate_token_usage

LINE_ITEM_TOLERANCE = 0.01


def get_attachment(request: ChatRequest) -> Attachment:
    """The first attachment of the last message"""
    message = request.messages[-1]
    if not message.experimental_attachments:
        raise AttachmentFetchError("Last message has no attachment")
    return message.experimental_attachments[0]


def check_line_item_totals(data: InvoiceData) -> int:
    """
    Log line items whose total differs from quantity * unit price.

    Totals are stored as extracted; this only reports mismatches.

    Returns:
        Number of mismatching line items
    """
    mismatches = 0
    for item in data.line_items or []:
        if item.quantity is None or item.unit_price is None or item.total is None:
            continue
        expected = item.quantity * item.unit_price
        if abs(expected - item.total) > LINE_ITEM_TOLERANCE:
            mismatches += 1
            logger.warning(
                "Line item total does not match quantity x unit price",
                description=item.description,
                expected=expected,
                total=item.total,
            )
    return mismatches


class InvoicePipeline:
    def __init__(self, store: InvoiceStoreBase, llm: LLMClient):
        self.store = store
        self.llm = llm

    async def fetch_attachment(self, attachment: Attachment) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=settings.attachment_fetch_timeout) as client:
                r = await client.get(attachment.url)
        except httpx.HTTPError as e:
            raise AttachmentFetchError(f"Failed to fetch attachment: {str(e)}") from e

        if not r.is_success:
            raise AttachmentFetchError(f"Failed to fetch attachment: {r.reason_phrase or r.status_code}")

        logger.info("Fetched attachment", name=attachment.name, size_bytes=len(r.content))
        return r.content

    async def validate_document(self, request: ChatRequest, model: str) -> CompletionResult:
        """Fetch the attachment, extract its text and run the validator call"""
        attachment = get_attachment(request)
        file_bytes = await self.fetch_attachment(attachment)
        text = get_text_from_document(file_bytes, attachment.content_type or "application/pdf")
        return await validate_invoice_text(self.llm, model, text)

    def resolve_validation(self, request: ChatRequest, completion: CompletionResult) -> InvoiceOutcome:
        """
        Parse the validator reply, then deduplicate and persist valid invoices.

        Raises:
            ResponseParseError: the reply does not contain a usable JSON object
        """
        chat_id = request.id
        message_id = request.messages[-1].id

        try:
            extraction = parse_validation_response(completion.text)
        except ResponseParseError as e:
            logger.error("Could not parse validator reply for chat {}: {}", chat_id, e)
            logger.debug("Validator reply: {}", completion.text[:2000])
            raise

        outcome = InvoiceOutcome(extraction=extraction)
        if not outcome.is_valid:
            logger.info(
                "Document rejected as invoice",
                chat_id=chat_id,
                document_type=extraction.validation.document_type,
            )
            return outcome

        data = extraction.data
        check_line_item_totals(data)

        duplicate = self.store.find_duplicate_invoice(data.vendor_name, data.invoice_number, data.amount)
        if duplicate is None:
            try:
                outcome.invoice_id = self.store.save_invoice(chat_id, message_id, extraction)
            except DuplicateInvoiceError as e:
                duplicate = e.existing

        if duplicate is not None:
            outcome.is_duplicate = True
            outcome.existing_invoice = duplicate
            logger.info("Duplicate invoice detected", chat_id=chat_id, existing_id=duplicate["id"])
            return outcome

        logger.info(
            "Invoice saved",
            chat_id=chat_id,
            invoice_id=outcome.invoice_id,
            line_items=len(data.line_items or []),
        )
        self._record_token_usage(outcome.invoice_id, completion)
        return outcome

    def _record_token_usage(self, invoice_id: str, completion: CompletionResult) -> None:
        usage = calculate_token_usage(completion.input_tokens, completion.output_tokens)
        try:
            self.store.save_token_usage(invoice_id, usage)
        except Exception as e:
            logger.warning("Failed to save token usage for invoice {}: {}", invoice_id, e)

    async def stream_response(
        self, request: ChatRequest, outcome: InvoiceOutcome, model: str
    ) -> AsyncIterator[str]:
        """Run the responder call and yield data-stream lines"""
        tools = select_active_tools(outcome, [create_get_all_invoices_tool(self.store)])
        events = self.llm.stream_text(
            model=model,
            messages=build_responder_messages(outcome),
            tools=tools,
            max_steps=settings.llm_max_steps,
        )

        try:
            async for event in smooth_words(events):
                if isinstance(event, Finish):
                    # Persisted before the final line is sent
                    persist_response_messages(self.store, request.id, event.messages)
                yield encode_event(event)
        except Exception as e:
            logger.exception("Error while streaming invoice response: {}", e)
            yield encode_error()
