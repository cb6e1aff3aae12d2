"""
Data Models

Pydantic models shared by the chat handler, the Slack adapter and the HTTP
API. JSON field names are camelCase; Python attributes are snake_case.
"""

from datetime import datetime
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Timeframe = Literal["today", "yesterday", "this_week"]
StatusKind = Literal["lunch", "update", "report"]
Theme = Literal["light", "dark"]

LUNCH_COMPLETE = "complete"
LUNCH_MISSING_START = "missing #lunchstart"
LUNCH_MISSING_END = "missing #lunchend"
LUNCH_MISSING_BOTH = "missing both tags"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Documents ────────────────────────────────────────────

class Document(CamelModel):
    """Client-side document metadata. Chunk text lives in the vector store."""

    id: str
    name: str
    mime_type: str = "text/plain"
    size_bytes: int = 0


class FileRef(CamelModel):
    id: str
    name: Optional[str] = None


class IngestRequest(CamelModel):
    file_id: str = ""
    content: str = ""
    name: Optional[str] = None
    mime_type: str = "text/plain"


class IngestResponse(CamelModel):
    success: bool
    message: str
    chunks: int = 0


# ── Slack status reports ─────────────────────────────────

class SlackMessage(CamelModel):
    """A channel message reduced to what the status reports need."""

    user_id: str
    user_name: str
    text: str
    ts: float


class PostedMessage(CamelModel):
    timestamp: str
    text: str


class LunchUser(CamelModel):
    id: str
    name: str
    status: str
    lunch_start: Optional[str] = None
    lunch_end: Optional[str] = None
    duration_seconds: Optional[float] = None


class PostUser(CamelModel):
    id: str
    name: str
    has_posted: bool
    messages: list[PostedMessage] = Field(default_factory=list)


class StatusReport(CamelModel):
    kind: StatusKind
    channel: str
    timeframe: Timeframe
    users: list[Union[LunchUser, PostUser]]
    total: int
    timestamp: str


# ── Chat ─────────────────────────────────────────────────

class ChatRequest(CamelModel):
    message: str = ""
    files: list[FileRef] = Field(default_factory=list)


class FunctionCall(CamelModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    result: Optional[dict[str, Any]] = None
    error_code: Optional[str] = None


class ChatResponse(CamelModel):
    content: Optional[str] = None
    function_call: Optional[FunctionCall] = None

    def to_payload(self) -> dict:
        """JSON body for the chat endpoint; `content` is always present."""
        payload = {"content": self.content}
        if self.function_call is not None:
            payload["functionCall"] = self.function_call.model_dump(by_alias=True, exclude_none=True)
        return payload


class PlainText(CamelModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(CamelModel):
    type: Literal["tool_result"] = "tool_result"
    kind: str
    data: dict[str, Any] = Field(default_factory=dict)


class ChatMessage(CamelModel):
    """
    One conversation turn as the client keeps it.

    The payload is a tagged variant: plain text, or a structured tool result
    (theme switch, status table) that the presentation layer renders.
    """

    id: str
    role: Literal["user", "assistant", "system"]
    content: Optional[str] = None
    timestamp: datetime
    payload: Optional[Union[PlainText, ToolResult]] = Field(default=None, discriminator="type")

    @classmethod
    def from_response(cls, message_id: str, response: ChatResponse, timestamp: datetime) -> "ChatMessage":
        """Build the assistant message for a chat response."""
        call = response.function_call
        if call is not None and call.result is not None:
            payload = ToolResult(kind=call.name, data=call.result)
        elif call is not None:
            payload = ToolResult(kind=call.name, data=call.arguments)
        else:
            payload = PlainText(text=response.content or "")
        return cls(
            id=message_id,
            role="assistant",
            content=response.content,
            timestamp=timestamp,
            payload=payload,
        )
