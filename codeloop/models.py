"""
Model capability adapters.

Each adapter takes the conversation history plus tool schemas, calls one
provider, and returns exactly one ModelReply. The orchestrator only depends
on the ModelClient protocol.
"""

import json
import logging
import os
from typing import Iterable, Protocol, Sequence

import anthropic
import openai
from anthropic import AsyncAnthropic
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_openai import ChatOpenAI

from .errors import ModelError
from .state import (
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_TOOL,
    ROLE_USER,
    Message,
    ModelReply,
    ToolCall,
    Usage,
)

logger = logging.getLogger(__name__)


class ModelClient(Protocol):
    model_name: str

    async def complete(self, history: Sequence[Message], tools: Sequence[dict]) -> ModelReply:
        ...


def _arguments_as_dict(arguments) -> dict:
    if isinstance(arguments, dict):
        return arguments
    if not arguments:
        return {}
    try:
        decoded = json.loads(arguments)
    except (json.JSONDecodeError, TypeError, ValueError):
        return {}
    return decoded if isinstance(decoded, dict) else {}


class AnthropicModel:
    """Anthropic Messages API with tool use."""

    def __init__(self, model_name: str, max_tokens: int = 4096, client=None):
        self.model_name = model_name
        self.max_tokens = max_tokens
        self.client = client or AsyncAnthropic(base_url=os.getenv("ANTHROPIC_BASE_URL"))

    async def complete(self, history: Sequence[Message], tools: Sequence[dict]) -> ModelReply:
        system, messages = self.convert_messages(history)
        logger.debug("Calling %s with %d message(s)", self.model_name, len(messages))
        kwargs = {
            "model": self.model_name,
            "messages": messages,
            "tools": list(tools),
            "max_tokens": self.max_tokens,
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise ModelError(f"Anthropic request failed: {exc}") from exc

        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=block.input))

        usage = None
        if getattr(response, "usage", None) is not None:
            usage = Usage(
                input_tokens=response.usage.input_tokens or 0,
                output_tokens=response.usage.output_tokens or 0,
            )

        return ModelReply(
            content="".join(text_parts) or None,
            tool_calls=tuple(tool_calls),
            usage=usage,
            raw=response,
        )

    @staticmethod
    def convert_messages(history: Iterable[Message]) -> tuple[str, list[dict]]:
        """Convert history to Anthropic format.

        Returns:
            (system, messages) where system joins all system messages and
            messages are user/assistant turns. Tool results become user turns
            holding tool_result blocks; consecutive same-role turns are merged.
        """
        system_parts: list[str] = []
        converted: list[dict] = []

        for msg in history:
            if msg.role == ROLE_SYSTEM:
                if msg.content:
                    system_parts.append(msg.content)
                continue

            if msg.role == ROLE_USER:
                converted.append({"role": "user", "content": msg.content or ""})
                continue

            if msg.role == ROLE_ASSISTANT:
                blocks = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls:
                    blocks.append({
                        "type": "tool_use",
                        "id": tc.id,
                        "name": tc.name,
                        "input": _arguments_as_dict(tc.arguments),
                    })
                if blocks:
                    converted.append({"role": "assistant", "content": blocks})
                continue

            if msg.role == ROLE_TOOL:
                converted.append({
                    "role": "user",
                    "content": [{
                        "type": "tool_result",
                        "tool_use_id": msg.tool_call_id,
                        "content": msg.content or "",
                    }],
                })

        # ── Merge consecutive same-role messages ────────────────────
        merged: list[dict] = []
        for msg in converted:
            if merged and merged[-1]["role"] == msg["role"]:
                prev = merged[-1]
                prev_content = prev["content"]
                msg_content = msg["content"]
                if isinstance(prev_content, str):
                    prev_content = [{"type": "text", "text": prev_content}]
                if isinstance(msg_content, str):
                    msg_content = [{"type": "text", "text": msg_content}]
                prev["content"] = prev_content + msg_content
            else:
                merged.append(msg)

        return "\n\n".join(system_parts), merged


class OpenAIModel:
    """OpenAI chat completions with function calling, via LangChain."""

    def __init__(self, model_name: str, max_tokens: int = 4096, chat=None):
        self.model_name = model_name
        self.max_tokens = max_tokens
        if chat is None:
            try:
                chat = ChatOpenAI(model=model_name, max_tokens=max_tokens)
            except openai.OpenAIError as exc:
                raise ModelError(f"Cannot create OpenAI client: {exc}") from exc
        self.chat = chat

    async def complete(self, history: Sequence[Message], tools: Sequence[dict]) -> ModelReply:
        logger.debug("Calling %s with %d message(s)", self.model_name, len(history))
        bound = self.chat.bind_tools([self.to_openai_tool(t) for t in tools])
        try:
            response = await bound.ainvoke(self.convert_messages(history))
        except openai.OpenAIError as exc:
            raise ModelError(f"OpenAI request failed: {exc}") from exc

        tool_calls = [
            ToolCall(id=tc.get("id") or "", name=tc["name"], arguments=tc.get("args"))
            for tc in (response.tool_calls or [])
        ]
        # Calls LangChain could not parse keep their raw argument string.
        for bad in getattr(response, "invalid_tool_calls", None) or []:
            tool_calls.append(ToolCall(
                id=bad.get("id") or "",
                name=bad.get("name") or "",
                arguments=bad.get("args") or "",
            ))

        usage = None
        meta = getattr(response, "usage_metadata", None)
        if meta:
            usage = Usage(
                input_tokens=meta.get("input_tokens", 0),
                output_tokens=meta.get("output_tokens", 0),
            )

        content = response.content if isinstance(response.content, str) else None
        return ModelReply(
            content=content or None,
            tool_calls=tuple(tool_calls),
            usage=usage,
            raw=response,
        )

    @staticmethod
    def to_openai_tool(schema: dict) -> dict:
        return {
            "type": "function",
            "function": {
                "name": schema["name"],
                "description": schema.get("description", ""),
                "parameters": schema["input_schema"],
            },
        }

    @staticmethod
    def convert_messages(history: Iterable[Message]) -> list:
        """Convert history to LangChain message objects."""
        converted = []
        for msg in history:
            if msg.role == ROLE_SYSTEM:
                converted.append(SystemMessage(content=msg.content or ""))
            elif msg.role == ROLE_USER:
                converted.append(HumanMessage(content=msg.content or ""))
            elif msg.role == ROLE_ASSISTANT:
                converted.append(AIMessage(
                    content=msg.content or "",
                    tool_calls=[
                        {"id": tc.id, "name": tc.name, "args": _arguments_as_dict(tc.arguments)}
                        for tc in msg.tool_calls
                    ],
                ))
            elif msg.role == ROLE_TOOL:
                converted.append(ToolMessage(content=msg.content or "", tool_call_id=msg.tool_call_id))
        return converted
