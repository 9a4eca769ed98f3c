"""
Integration tests against a real OpenAI-compatible endpoint.

These tests require:
- LLM_API_KEY in .env (and LLM_BASE_URL for non-OpenAI providers)

Run with: pytest --run-integration
"""

import asyncio

import pytest

from invoice_chat.core.config import settings
from invoice_chat.services.invoice_validator import validate_invoice_text
from invoice_chat.services.llm_client import LLMClient
from invoice_chat.services.response_parser import parse_validation_response

LLM_CONFIGURED = bool(settings.llm_api_key)
skip_if_no_llm = pytest.mark.skipif(
    not LLM_CONFIGURED,
    reason="LLM endpoint not configured (set LLM_API_KEY)",
)

INVOICE_TEXT = (
    "INVOICE Acme Supplies Pty Ltd Invoice Number: INV-2024-001 Invoice Date: 2024-01-01 "
    "Due Date: 2024-02-01 Bill To: Bob's Hardware Widget 2 50.00 100.00 "
    "Amount Due: $100.00 Please remit payment to BSB 123-456"
)

RECEIPT_TEXT = (
    "RECEIPT Corner Coffee Receipt #8812 Flat white 4.50 Total 4.50 "
    "Paid VISA ending 4242 Thank you for your payment"
)


@skip_if_no_llm
@pytest.mark.integration
def test_real_validator_accepts_invoice():
    result = asyncio.run(validate_invoice_text(LLMClient(), settings.llm_default_model, INVOICE_TEXT))
    extraction = parse_validation_response(result.text)

    assert extraction.validation.is_valid_invoice is True
    assert extraction.data.invoice_number == "INV-2024-001"
    assert extraction.data.amount == pytest.approx(100.0)
    assert result.input_tokens > 0


@skip_if_no_llm
@pytest.mark.integration
def test_real_validator_rejects_receipt():
    result = asyncio.run(validate_invoice_text(LLMClient(), settings.llm_default_model, RECEIPT_TEXT))
    extraction = parse_validation_response(result.text)

    assert extraction.validation.is_valid_invoice is False
