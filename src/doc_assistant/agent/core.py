"""
Chat Handler

Runs one chat turn:

1. Validate the message
2. Retrieve context from each attached document (concurrently)
3. Select the system prompt (basic / no match / context)
4. Call the chat completion API with the tool schemas
5. Dispatch the requested tool, if any
6. Otherwise return the model's text
"""

import asyncio
import json
import time
from typing import Any, Optional

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from .context import ChatTurn
from .prompts import build_system_prompt, select_prompt_kind
from .tools import TOOLS, ChatTool, tool_schemas
from ..models import ChatResponse, FileRef, FunctionCall
from ..rag.retrieval import Retriever
from ..slack.adapter import SlackStatusAdapter
from ..utils.errors import AppError, InvalidRequest, ProcessingError
from ..utils.logger import get_logger, log_chat_response, log_tool_call

logger = get_logger(__name__)


class ChatHandler:
    """Retrieval-augmented chat with theme and Slack status tools."""

    def __init__(
        self,
        client: AsyncOpenAI,
        retriever: Retriever,
        slack: SlackStatusAdapter,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 500,
    ):
        self.client = client
        self.retriever = retriever
        self.slack = slack
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def handle(self, message: str, files: Optional[list[FileRef]] = None) -> ChatResponse:
        """
        Answer one chat message.

        Raises:
            InvalidRequest: if the message is empty
            ProcessingError: if the completion call fails
        """
        started = time.perf_counter()
        turn = await self.prepare(message, files or [])

        completion = await self.complete(turn)
        tool_calls = getattr(completion, "tool_calls", None) or []

        if tool_calls:
            response = await self.dispatch_tool(tool_calls[0], completion.content)
        else:
            response = ChatResponse(content=completion.content)

        log_chat_response(
            logger,
            user_message=turn.message,
            prompt_kind=turn.prompt_kind,
            document_count=len(turn.document_ids),
            context_length=len(turn.context),
            response=response.content,
            duration_ms=(time.perf_counter() - started) * 1000,
            tool_used=response.function_call.name if response.function_call else None,
        )
        return response

    async def prepare(self, message: str, files: list[FileRef]) -> ChatTurn:
        """Validate the request, assemble document context and pick the system prompt."""
        if not message or not message.strip():
            raise InvalidRequest("Message is required")

        turn = ChatTurn(message=message.strip(), document_ids=[f.id for f in files])

        if turn.document_ids:
            turn.context = await self.build_context(turn.message, files)

        turn.prompt_kind = select_prompt_kind(bool(turn.document_ids), turn.context)
        turn.system_prompt = build_system_prompt(turn.prompt_kind, turn.context)
        return turn

    async def build_context(self, message: str, files: list[FileRef]) -> str:
        """
        Retrieve relevant chunks from every document.

        Documents are queried concurrently and joined in list order. A
        document whose retrieval fails contributes nothing.
        """
        contributions = await asyncio.gather(
            *(self._retrieve_for(message, f) for f in files)
        )
        return "\n\n".join(c for c in contributions if c.strip())

    async def _retrieve_for(self, message: str, file: FileRef) -> str:
        label = file.name or file.id
        try:
            chunks = await self.retriever.retrieve(message, file.id)
        except Exception as e:
            logger.warning(f"Retrieval failed for document {label}: {e}")
            return ""

        logger.info(f"Found {len(chunks)} relevant chunks for document {label}")
        return "\n\n".join(chunks)

    async def complete(self, turn: ChatTurn) -> Any:
        """Call the chat completion API; returns the first choice's message."""
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": turn.system_prompt},
                    {"role": "user", "content": turn.message},
                ],
                tools=tool_schemas(),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.OpenAIError as e:
            logger.error(f"Chat completion failed: {e}")
            raise ProcessingError(str(e)) from e

        if not completion.choices:
            raise ProcessingError("the model returned no choices")
        return completion.choices[0].message

    async def dispatch_tool(self, tool_call: Any, content: Optional[str]) -> ChatResponse:
        """Run the tool the model asked for and shape the response for the client."""
        name = tool_call.function.name
        tool = TOOLS.get(name)
        if tool is None:
            raise ProcessingError(f"the model requested an unknown tool {name!r}")

        try:
            raw_args = json.loads(tool_call.function.arguments or "{}")
            if isinstance(raw_args, dict):
                # Optional arguments sent as null fall back to their defaults
                raw_args = {k: v for k, v in raw_args.items() if v is not None}
            args = tool.args_model.model_validate(raw_args)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ProcessingError(f"invalid arguments for {name}: {e}") from e

        arguments = args.model_dump(by_alias=True)

        if tool.status_kind is None:
            log_tool_call(logger, name, arguments)
            return ChatResponse(
                content=content or f"Switched to {args.theme} mode.",
                function_call=FunctionCall(name=name, arguments=arguments),
            )

        return await self._run_status_tool(tool, args, arguments)

    async def _run_status_tool(self, tool: ChatTool, args: Any, arguments: dict) -> ChatResponse:
        started = time.perf_counter()
        try:
            report = await self.slack.get_status_report(tool.status_kind, args.channel_name, args.timeframe)
        except AppError as e:
            log_tool_call(
                logger, tool.name, arguments,
                error=e.code.value,
                duration_ms=(time.perf_counter() - started) * 1000,
            )
            return ChatResponse(
                content=e.user_message,
                function_call=FunctionCall(name=tool.name, arguments=arguments, error_code=e.code.value),
            )

        result = report.model_dump(by_alias=True)
        log_tool_call(
            logger, tool.name, arguments,
            result=result,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return ChatResponse(
            content=None,
            function_call=FunctionCall(name=tool.name, arguments=arguments, result=result),
        )
