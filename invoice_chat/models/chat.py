from typing import Any
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Attachment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    name: str | None = None
    content_type: str | None = None


class ChatMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    role: str
    content: Any = ""
    experimental_attachments: list[Attachment] | None = Field(default=None, alias="experimental_attachments")


class ChatRequest(BaseModel):
    """Request body for the invoice chat endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    messages: list[ChatMessage] = Field(min_length=1)
    selected_chat_model: str | None = Field(default=None, alias="selectedChatModel")
