from datetime import datetime, UTC
from loguru import logger
from .storage import InvoiceStoreBase


def sanitize_response_messages(messages: list[dict]) -> list[dict]:
    """
    Clean streamed response messages before they are stored.

    Drops reasoning parts, empty text parts, tool calls without a result,
    tool results without a call, and messages left with no content.
    """
    call_ids = set()
    result_ids = set()
    for message in messages:
        for part in message.get("content") or []:
            if part.get("type") == "tool-call":
                call_ids.add(part.get("toolCallId"))
            elif part.get("type") == "tool-result":
                result_ids.add(part.get("toolCallId"))

    sanitized = []
    for message in messages:
        content = []
        for part in message.get("content") or []:
            kind = part.get("type")
            if kind == "text" and part.get("text", "").strip():
                content.append(part)
            elif kind == "tool-call" and part.get("toolCallId") in result_ids:
                content.append(part)
            elif kind == "tool-result" and part.get("toolCallId") in call_ids:
                content.append(part)
        if content:
            sanitized.append({**message, "content": content})
    return sanitized


def persist_response_messages(store: InvoiceStoreBase, chat_id: str, messages: list[dict]) -> int:
    """
    Save the assistant turns of a finished stream.

    Failures are logged and swallowed: the client already received the
    streamed reply.

    Returns:
        Number of messages written (0 on failure)
    """
    sanitized = sanitize_response_messages(messages)
    if not sanitized:
        return 0

    created_at = datetime.now(UTC).isoformat()
    rows = [
        {
            "id": message["id"],
            "chat_id": chat_id,
            "role": message["role"],
            "content": message["content"],
            "created_at": created_at,
        }
        for message in sanitized
    ]
    try:
        store.save_messages(rows)
    except Exception as e:
        logger.error("Failed to save response messages for chat {}: {}", chat_id, e)
        return 0

    logger.info("Saved response messages", chat_id=chat_id, count=len(rows))
    return len(rows)
