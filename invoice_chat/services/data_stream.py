"""
Encoding of responder events as an AI data stream.

Each event becomes one line "<code>:<json>\n":
    f  step start         0  text delta        g  reasoning delta
    9  tool call          a  tool result       e  step finish
    d  message finish     3  error
"""

import json
import re
from typing import AsyncIterator

from .llm_client import (
    Finish,
    ReasoningDelta,
    StepFinish,
    StepStart,
    StreamEvent,
    TextDelta,
    ToolCall,
    ToolResult,
)

DATA_STREAM_HEADERS = {"x-vercel-ai-data-stream": "v1"}
STREAM_ERROR_MESSAGE = "Oops, an error occurred while processing the invoice!"

WORD_PATTERN = re.compile(r"\S+\s+")


def _part(code: str, value) -> str:
    return f"{code}:{json.dumps(value, default=str, ensure_ascii=False)}\n"


def _usage(input_tokens: int, output_tokens: int) -> dict:
    return {"promptTokens": input_tokens, "completionTokens": output_tokens}


def encode_event(event: StreamEvent) -> str:
    if isinstance(event, TextDelta):
        return _part("0", event.text)
    if isinstance(event, ReasoningDelta):
        return _part("g", event.text)
    if isinstance(event, StepStart):
        return _part("f", {"messageId": event.message_id})
    if isinstance(event, ToolCall):
        return _part("9", {"toolCallId": event.tool_call_id, "toolName": event.tool_name, "args": event.args})
    if isinstance(event, ToolResult):
        return _part("a", {"toolCallId": event.tool_call_id, "result": event.result})
    if isinstance(event, StepFinish):
        return _part("e", {
            "finishReason": event.finish_reason,
            "usage": _usage(event.input_tokens, event.output_tokens),
            "isContinued": event.is_continued,
        })
    if isinstance(event, Finish):
        return _part("d", {
            "finishReason": event.finish_reason,
            "usage": _usage(event.input_tokens, event.output_tokens),
        })
    raise TypeError(f"Unknown stream event: {type(event).__name__}")


def encode_error(message: str = STREAM_ERROR_MESSAGE) -> str:
    return _part("3", message)


async def smooth_words(events: AsyncIterator[StreamEvent]) -> AsyncIterator[StreamEvent]:
    """Re-chunk text deltas so each emitted delta ends after one word and its trailing whitespace"""
    buffer = ""
    async for event in events:
        if isinstance(event, TextDelta):
            buffer += event.text
            while match := WORD_PATTERN.search(buffer):
                yield TextDelta(text=buffer[:match.end()])
                buffer = buffer[match.end():]
            continue
        if buffer:
            yield TextDelta(text=buffer)
            buffer = ""
        yield event
    if buffer:
        yield TextDelta(text=buffer)
