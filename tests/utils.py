"""Shared test helpers: PDF builder, validator replies and a scripted LLM."""

import json

from invoice_chat.services.llm_client import (
    CompletionResult,
    Finish,
    StepFinish,
    StepStart,
    TextDelta,
    ToolCall,
    ToolResult,
)


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(pages: list[list[str]]) -> bytes:
    """Build a minimal PDF; each page is a list of text lines in Helvetica"""
    body: dict[int, bytes] = {}
    page_nums = []
    next_num = 4
    for lines in pages:
        page_num, content_num = next_num, next_num + 1
        next_num += 2
        ops = ["BT", "/F1 12 Tf", "72 720 Td"]
        for i, line in enumerate(lines):
            if i:
                ops.append("0 -16 Td")
            ops.append(f"({_escape(line)}) Tj")
        ops.append("ET")
        stream = "\n".join(ops).encode("latin-1")
        body[content_num] = b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"
        body[page_num] = (
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Contents {content_num} 0 R /Resources << /Font << /F1 3 0 R >> >> >>"
        ).encode()
        page_nums.append(page_num)

    kids = " ".join(f"{n} 0 R" for n in page_nums)
    body[1] = b"<< /Type /Catalog /Pages 2 0 R >>"
    body[2] = f"<< /Type /Pages /Kids [{kids}] /Count {len(page_nums)} >>".encode()
    body[3] = b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>"

    out = bytearray(b"%PDF-1.4\n")
    offsets = {}
    for num in sorted(body):
        offsets[num] = len(out)
        out += b"%d 0 obj\n" % num + body[num] + b"\nendobj\n"

    xref_pos = len(out)
    size = max(body) + 1
    out += b"xref\n0 %d\n0000000000 65535 f \n" % size
    for num in range(1, size):
        out += b"%010d 00000 n \n" % offsets[num]
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (size, xref_pos)
    return bytes(out)


SAMPLE_INVOICE_PDF_LINES = [
    "INVOICE",
    "Acme Supplies",
    "Invoice Number: INV-1",
    "Bill To: Bob",
    "Widget 2 x 50.00 = 100.00",
    "Amount Due: 100.00",
]


def valid_invoice_payload(**data_overrides) -> dict:
    data = {
        "customerName": "Bob",
        "vendorName": "Acme",
        "invoiceNumber": "INV-1",
        "invoiceDate": "2024-01-01",
        "dueDate": "2024-02-01",
        "amount": 100,
        "lineItems": [{"description": "Widget", "quantity": 2, "unitPrice": 50, "total": 100}],
    }
    data.update(data_overrides)
    return {
        "validation": {"isValidInvoice": True, "documentType": "invoice", "reason": "ok"},
        "data": data,
    }


def invalid_invoice_payload() -> dict:
    return {
        "validation": {
            "isValidInvoice": False,
            "documentType": "receipt",
            "reason": "The document confirms a completed payment.",
        },
        "data": {
            "customerName": None,
            "vendorName": "Coffee Shop",
            "invoiceNumber": None,
            "invoiceDate": None,
            "dueDate": None,
            "amount": 4.5,
            "lineItems": None,
        },
    }


def reply_with(payload: dict) -> str:
    """A validator reply with prose around the JSON payload"""
    return "Here is the analysis of the document:\n```json\n" + json.dumps(payload, indent=2) + "\n```"


class FakeLLM:
    """
    Scripted stand-in for LLMClient.

    generate_text returns a fixed reply. stream_text emits one text step and,
    when tools are active, calls the first tool once.
    """

    def __init__(self, reply: str = "", stream_reply: str = "Done.", fail_stream: bool = False):
        self.reply = reply
        self.stream_reply = stream_reply
        self.fail_stream = fail_stream
        self.generate_calls: list[dict] = []
        self.stream_calls: list[dict] = []

    async def generate_text(self, model, messages):
        self.generate_calls.append({"model": model, "messages": messages})
        return CompletionResult(text=self.reply, input_tokens=1200, output_tokens=300)

    async def stream_text(self, model, messages, tools=None, max_steps=1):
        tools = tools or []
        self.stream_calls.append({"model": model, "messages": messages, "tools": tools, "max_steps": max_steps})
        if self.fail_stream:
            raise RuntimeError("provider unavailable")

        content = [{"type": "text", "text": self.stream_reply}]
        response_messages = [{"id": "msg-1", "role": "assistant", "content": content}]

        yield StepStart(message_id="msg-1")
        yield TextDelta(text=self.stream_reply)
        if tools:
            tool = tools[0]
            yield ToolCall(tool_call_id="call-1", tool_name=tool.name, args={})
            result = await tool.execute({})
            yield ToolResult(tool_call_id="call-1", tool_name=tool.name, result=result)
            content.append({"type": "tool-call", "toolCallId": "call-1", "toolName": tool.name, "args": {}})
            response_messages.append({
                "id": "msg-2",
                "role": "tool",
                "content": [{"type": "tool-result", "toolCallId": "call-1", "toolName": tool.name, "result": result}],
            })
        yield StepFinish(finish_reason="stop", input_tokens=50, output_tokens=20)
        yield Finish(finish_reason="stop", messages=response_messages, input_tokens=50, output_tokens=20)
