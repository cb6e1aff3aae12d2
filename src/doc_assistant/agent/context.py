"""
Chat Turn Context

Per-request state assembled before the model is called.
"""

from dataclasses import dataclass, field


@dataclass
class ChatTurn:
    """Everything the model call needs for one chat request."""

    message: str
    document_ids: list[str] = field(default_factory=list)
    context: str = ""
    prompt_kind: str = "basic"
    system_prompt: str = ""
