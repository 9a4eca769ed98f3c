"""
Chat completion client for the validator and responder calls.

Wraps an OpenAI-compatible endpoint behind two operations:
- generate_text: one non-streamed completion, returned whole with token usage
- stream_text: a streamed completion that may call tools between steps,
  surfaced as an async sequence of StreamEvent objects
"""

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable

from loguru import logger
from openai import AsyncOpenAI

from ..core.config import settings


@dataclass
class CompletionResult:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class Tool:
    """A function the model may call during a streamed completion"""
    name: str
    description: str
    execute: Callable[[dict], Awaitable[Any]]
    parameters: dict = field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_openai(self) -> dict:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass
class StepStart:
    message_id: str


@dataclass
class TextDelta:
    text: str


@dataclass
class ReasoningDelta:
    text: str


@dataclass
class ToolCall:
    tool_call_id: str
    tool_name: str
    args: dict


@dataclass
class ToolResult:
    tool_call_id: str
    tool_name: str
    result: Any


@dataclass
class StepFinish:
    finish_reason: str
    input_tokens: int = 0
    output_tokens: int = 0
    is_continued: bool = False


@dataclass
class Finish:
    """Last event of a stream; carries the response messages for persistence"""
    finish_reason: str
    messages: list[dict]
    input_tokens: int = 0
    output_tokens: int = 0


StreamEvent = StepStart | TextDelta | ReasoningDelta | ToolCall | ToolResult | StepFinish | Finish


def get_openai_client() -> AsyncOpenAI:
    if not settings.llm_api_key:
        logger.warning("LLM_API_KEY not configured; completion calls will fail")
    return AsyncOpenAI(base_url=settings.llm_base_url, api_key=settings.llm_api_key or "")


class LLMClient:
    def __init__(self, client: AsyncOpenAI | None = None):
        self.client = client or get_openai_client()

    async def generate_text(self, model: str, messages: list[dict]) -> CompletionResult:
        response = await self.client.chat.completions.create(model=model, messages=messages)
        usage = response.usage
        return CompletionResult(
            text=response.choices[0].message.content or "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )

    async def stream_text(
        self,
        model: str,
        messages: list[dict],
        tools: list[Tool] | None = None,
        max_steps: int = 1,
    ) -> AsyncIterator[StreamEvent]:
        tools = tools or []
        tools_by_name = {tool.name: tool for tool in tools}
        conversation = list(messages)
        response_messages: list[dict] = []
        total_in = total_out = 0
        finish_reason = "stop"

        for step in range(max_steps):
            message_id = str(uuid.uuid4())
            yield StepStart(message_id=message_id)

            request: dict[str, Any] = {
                "model": model,
                "messages": list(conversation),
                "stream": True,
                "stream_options": {"include_usage": True},
            }
            if tools:
                request["tools"] = [tool.to_openai() for tool in tools]

            stream = await self.client.chat.completions.create(**request)

            text_parts: list[str] = []
            reasoning_parts: list[str] = []
            calls: dict[int, dict] = {}
            step_in = step_out = 0
            finish_reason = "stop"

            async for chunk in stream:
                if chunk.usage:
                    step_in = chunk.usage.prompt_tokens or 0
                    step_out = chunk.usage.completion_tokens or 0
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta
                reasoning = getattr(delta, "reasoning_content", None)
                if reasoning:
                    reasoning_parts.append(reasoning)
                    yield ReasoningDelta(text=reasoning)
                if delta.content:
                    text_parts.append(delta.content)
                    yield TextDelta(text=delta.content)
                for tc in delta.tool_calls or []:
                    entry = calls.setdefault(tc.index, {"id": "", "name": "", "arguments": ""})
                    if tc.id:
                        entry["id"] = tc.id
                    if tc.function:
                        entry["name"] += tc.function.name or ""
                        entry["arguments"] += tc.function.arguments or ""
                if choice.finish_reason:
                    finish_reason = choice.finish_reason

            total_in += step_in
            total_out += step_out

            content: list[dict] = []
            if reasoning_parts:
                content.append({"type": "reasoning", "text": "".join(reasoning_parts)})
            if text_parts:
                content.append({"type": "text", "text": "".join(text_parts)})
            for call in calls.values():
                content.append({
                    "type": "tool-call",
                    "toolCallId": call["id"],
                    "toolName": call["name"],
                    "args": _parse_args(call["arguments"]),
                })
            response_messages.append({"id": message_id, "role": "assistant", "content": content})

            assistant_turn: dict[str, Any] = {"role": "assistant", "content": "".join(text_parts) or None}
            if calls:
                assistant_turn["tool_calls"] = [
                    {
                        "id": call["id"],
                        "type": "function",
                        "function": {"name": call["name"], "arguments": call["arguments"] or "{}"},
                    }
                    for call in calls.values()
                ]
            conversation.append(assistant_turn)

            is_last_step = step == max_steps - 1
            if not calls or is_last_step:
                if calls:
                    logger.warning("Tool step limit reached", max_steps=max_steps)
                yield StepFinish(finish_reason, step_in, step_out, is_continued=False)
                break

            tool_results: list[dict] = []
            for call in calls.values():
                args = _parse_args(call["arguments"])
                yield ToolCall(tool_call_id=call["id"], tool_name=call["name"], args=args)
                tool = tools_by_name.get(call["name"])
                if tool is None:
                    logger.warning("Model requested unavailable tool", tool=call["name"])
                    result: Any = {"error": f"Tool {call['name']} is not available"}
                else:
                    result = await tool.execute(args)
                yield ToolResult(tool_call_id=call["id"], tool_name=call["name"], result=result)
                tool_results.append({
                    "type": "tool-result",
                    "toolCallId": call["id"],
                    "toolName": call["name"],
                    "result": result,
                })
                conversation.append({
                    "role": "tool",
                    "tool_call_id": call["id"],
                    "content": json.dumps(result, default=str),
                })
            response_messages.append({"id": str(uuid.uuid4()), "role": "tool", "content": tool_results})
            yield StepFinish(finish_reason, step_in, step_out, is_continued=True)

        yield Finish(
            finish_reason=finish_reason,
            messages=response_messages,
            input_tokens=total_in,
            output_tokens=total_out,
        )


def _parse_args(raw: str) -> dict:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Tool call arguments are not valid JSON")
        return {}
    return parsed if isinstance(parsed, dict) else {}
