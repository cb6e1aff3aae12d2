"""
Agent Module

Chat turn orchestration.

This module provides:
- ChatHandler: validate, retrieve, prompt, complete, dispatch tools
- ChatTurn: per-request context
- Prompts: the basic / no match / context system prompts
- Tools: setTheme and the Slack status tool schemas
"""

from .context import ChatTurn
from .prompts import (
    PROMPT_BASIC,
    PROMPT_NO_MATCH,
    PROMPT_CONTEXT,
    build_system_prompt,
    select_prompt_kind,
)
from .tools import TOOLS, tool_schemas
from .core import ChatHandler

__all__ = [
    "ChatTurn",
    "ChatHandler",
    "PROMPT_BASIC",
    "PROMPT_NO_MATCH",
    "PROMPT_CONTEXT",
    "build_system_prompt",
    "select_prompt_kind",
    "TOOLS",
    "tool_schemas",
]
