from invoice_chat.services.message_persister import (
    persist_response_messages,
    sanitize_response_messages,
)


def test_reasoning_and_empty_text_are_removed():
    messages = [{
        "id": "m1",
        "role": "assistant",
        "content": [
            {"type": "reasoning", "text": "thinking about the invoice"},
            {"type": "text", "text": "   "},
            {"type": "text", "text": "Invoice saved."},
        ],
    }]

    assert sanitize_response_messages(messages) == [
        {"id": "m1", "role": "assistant", "content": [{"type": "text", "text": "Invoice saved."}]}
    ]


def test_unanswered_tool_calls_are_removed():
    messages = [
        {"id": "m1", "role": "assistant", "content": [
            {"type": "tool-call", "toolCallId": "c1", "toolName": "getAllInvoices", "args": {}},
            {"type": "tool-call", "toolCallId": "c2", "toolName": "getAllInvoices", "args": {}},
        ]},
        {"id": "m2", "role": "tool", "content": [
            {"type": "tool-result", "toolCallId": "c1", "toolName": "getAllInvoices", "result": []},
        ]},
    ]

    sanitized = sanitize_response_messages(messages)

    assert [p["toolCallId"] for p in sanitized[0]["content"]] == ["c1"]
    assert len(sanitized[1]["content"]) == 1


def test_messages_left_empty_are_dropped():
    messages = [{"id": "m1", "role": "assistant", "content": [{"type": "reasoning", "text": "hmm"}]}]
    assert sanitize_response_messages(messages) == []


def test_persist_writes_one_row_per_message(store):
    messages = [{"id": "m1", "role": "assistant", "content": [{"type": "text", "text": "Done."}]}]

    assert persist_response_messages(store, "chat-1", messages) == 1

    saved = store.get_messages_by_chat_id("chat-1")
    assert saved[0]["id"] == "m1"
    assert saved[0]["role"] == "assistant"
    assert saved[0]["created_at"]


def test_persist_failure_is_swallowed(store):
    def broken(rows):
        raise RuntimeError("database is locked")

    store.save_messages = broken
    messages = [{"id": "m1", "role": "assistant", "content": [{"type": "text", "text": "Done."}]}]

    assert persist_response_messages(store, "chat-1", messages) == 0
