"""
Conversation orchestrator.

Owns the conversation history, sends it with the tool schemas to the model,
and either dispatches the tool calls in the reply (then calls the model
again) or returns the final assistant text to the caller.

    user text ──► history ──► model ──┬─► tool call ──► run tool ──► tool result ─┐
                                      │                                             │
                                      │        ◄────────────── model again ◄────────┘
                                      └─► assistant text ──► returned to the REPL
"""

import logging

from .config import Settings
from .errors import ProtocolError, ToolError
from .prompts import SYSTEM_PROMPT
from .state import ConversationHistory, Message, ModelReply
from .tools import (
    TOOL_SCHEMAS,
    ReadProject,
    ToolAction,
    WriteFiles,
    decode_tool_call,
    read_project,
    write_many,
)

logger = logging.getLogger(__name__)


class CodingAgent:
    """Tool-use loop over a single, append-only conversation."""

    def __init__(self, model, settings: Settings, system_prompt: str = SYSTEM_PROMPT):
        self.model = model
        self.settings = settings
        self.tools = TOOL_SCHEMAS
        self.history = ConversationHistory([Message.system(system_prompt)])

    async def send(self, user_text: str) -> str:
        """Run one human turn and return the assistant's final text.

        Tool calls are resolved without further user input; the caller only
        sees the text of the last reply.
        """
        self.history.append(Message.user(user_text))

        rounds = 0
        while True:
            reply = await self._invoke_model()

            if not reply.wants_tool:
                self.history.append(Message.assistant(reply.content))
                return reply.content or ""

            rounds += 1
            if rounds > self.settings.max_tool_rounds:
                raise ProtocolError(
                    f"Model kept requesting tools for {self.settings.max_tool_rounds} "
                    "rounds without answering"
                )

            # Decode every call before running any of them.
            actions = [
                decode_tool_call(tc.name, tc.arguments, call_id=tc.id)
                for tc in reply.tool_calls
            ]
            self.history.append(Message.assistant(reply.content, reply.tool_calls))

            for action in actions:
                result = await self._run_tool(action)
                self.history.append(Message.tool_result(action.call_id, result))

    # ─────────────────────────────────────────────────────────────────
    # Model invocation
    # ─────────────────────────────────────────────────────────────────

    async def _invoke_model(self) -> ModelReply:
        reply = await self.model.complete(self.history.messages, self.tools)
        if reply.usage is not None:
            logger.info(
                "Model %s usage: %d input / %d output tokens",
                getattr(self.model, "model_name", "?"),
                reply.usage.input_tokens,
                reply.usage.output_tokens,
            )
        return reply

    # ─────────────────────────────────────────────────────────────────
    # Tool dispatch
    # ─────────────────────────────────────────────────────────────────

    async def _run_tool(self, action: ToolAction) -> str:
        logger.info("Dispatching %s", type(action).__name__)
        try:
            return await self._dispatch(action)
        except ToolError as exc:
            if not self.settings.report_tool_errors:
                raise
            logger.warning("Tool %s failed, reporting to model: %s", type(action).__name__, exc)
            return f"Error: {exc}"

    async def _dispatch(self, action: ToolAction) -> str:
        root = self.settings.project_root
        if isinstance(action, ReadProject):
            return await read_project(root, self.settings.ignore_rules)
        if isinstance(action, WriteFiles):
            return await write_many(root, list(action.relative_paths), list(action.contents_array))
        raise ProtocolError(f"No handler for tool action {action!r}")
