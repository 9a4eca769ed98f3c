import asyncio
import json

import pytest

from invoice_chat.services.data_stream import encode_error, encode_event, smooth_words
from invoice_chat.services.llm_client import (
    Finish,
    StepFinish,
    StepStart,
    TextDelta,
    ToolCall,
    ToolResult,
)


async def _events(*events):
    for event in events:
        yield event


async def _collect(stream):
    return [event async for event in stream]


def test_encode_text_delta():
    assert encode_event(TextDelta(text='say "hi"\n')) == '0:"say \\"hi\\"\\n"\n'


def test_encode_tool_call_and_result():
    call = encode_event(ToolCall(tool_call_id="c1", tool_name="getAllInvoices", args={}))
    result = encode_event(ToolResult(tool_call_id="c1", tool_name="getAllInvoices", result=[{"id": "inv-1"}]))

    assert call.startswith("9:")
    assert json.loads(call[2:]) == {"toolCallId": "c1", "toolName": "getAllInvoices", "args": {}}
    assert json.loads(result[2:]) == {"toolCallId": "c1", "result": [{"id": "inv-1"}]}


def test_encode_step_and_finish():
    assert json.loads(encode_event(StepStart(message_id="m1"))[2:]) == {"messageId": "m1"}

    step = json.loads(encode_event(StepFinish("tool-calls", 10, 2, is_continued=True))[2:])
    assert step == {"finishReason": "tool-calls", "usage": {"promptTokens": 10, "completionTokens": 2}, "isContinued": True}

    finish = encode_event(Finish(finish_reason="stop", messages=[], input_tokens=10, output_tokens=2))
    assert finish.startswith("d:")


def test_encode_error():
    assert encode_error() == '3:"Oops, an error occurred while processing the invoice!"\n'


def test_encode_unknown_event_raises():
    with pytest.raises(TypeError):
        encode_event(object())


def test_smooth_words_rechunks_text():
    events = asyncio.run(_collect(smooth_words(_events(
        TextDelta("Hel"), TextDelta("lo wor"), TextDelta("ld and "), TextDelta("more"),
    ))))

    assert [e.text for e in events] == ["Hello ", "world ", "and ", "more"]


def test_smooth_words_flushes_before_other_events():
    events = asyncio.run(_collect(smooth_words(_events(
        StepStart("m1"), TextDelta("partial"), ToolCall("c1", "getAllInvoices", {}),
    ))))

    assert isinstance(events[0], StepStart)
    assert events[1] == TextDelta("partial")
    assert isinstance(events[2], ToolCall)


def test_smooth_words_keeps_streaming_after_leading_whitespace():
    events = asyncio.run(_collect(smooth_words(_events(
        TextDelta("\n\nHello"), TextDelta(" world"), TextDelta(" this"), TextDelta(" is"), TextDelta(" streamed"),
    ))))

    assert [e.text for e in events] == ["\n\nHello ", "world ", "this ", "is ", "streamed"]
