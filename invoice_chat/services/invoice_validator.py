from loguru import logger
from .llm_client import CompletionResult, LLMClient
from .prompts import VALIDATION_SYSTEM_PROMPT, VALIDATION_USER_PROMPT


def build_validation_messages(document_text: str) -> list[dict]:
    """Two-message prompt asking the model to classify and structure the document"""
    return [
        {"role": "system", "content": VALIDATION_SYSTEM_PROMPT},
        {"role": "user", "content": VALIDATION_USER_PROMPT.format(document_text=document_text)},
    ]


async def validate_invoice_text(llm: LLMClient, model: str, document_text: str) -> CompletionResult:
    """
    Run the non-streamed validator call.

    Empty document text is sent as-is; the model decides it is not an invoice.
    No retry: a failed call or unparseable reply ends the request.
    """
    messages = build_validation_messages(document_text)
    logger.info("Calling invoice validator", model=model, text_chars=len(document_text))
    result = await llm.generate_text(model=model, messages=messages)
    logger.info(
        "Invoice validator replied",
        reply_chars=len(result.text),
        input_tokens=result.input_tokens,
        output_tokens=result.output_tokens,
    )
    return result
