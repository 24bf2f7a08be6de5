"""
Conversation state: messages, tool calls, model replies, and the
append-only history the orchestrator owns for one run.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"

ROLES = frozenset({ROLE_SYSTEM, ROLE_USER, ROLE_ASSISTANT, ROLE_TOOL})


@dataclass(frozen=True)
class ToolCall:
    """A model's request to run a tool. ``arguments`` is the raw payload."""

    id: str
    name: str
    arguments: Any = None


@dataclass(frozen=True)
class Message:
    role: str
    content: Optional[str] = None
    tool_calls: tuple[ToolCall, ...] = ()
    # Set on tool-result messages; matches ToolCall.id
    tool_call_id: Optional[str] = None

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")
        if self.role == ROLE_TOOL and not self.tool_call_id:
            raise ValueError("Tool-result messages need a tool_call_id")
        if self.tool_calls and self.role != ROLE_ASSISTANT:
            raise ValueError("Only assistant messages carry tool calls")
        object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(ROLE_SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(ROLE_USER, content)

    @classmethod
    def assistant(cls, content: Optional[str], tool_calls=()) -> "Message":
        return cls(ROLE_ASSISTANT, content, tuple(tool_calls))

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str) -> "Message":
        return cls(ROLE_TOOL, content, tool_call_id=tool_call_id)


@dataclass(frozen=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class ModelReply:
    """The single message a model invocation returns."""

    content: Optional[str] = None
    tool_calls: tuple[ToolCall, ...] = ()
    usage: Optional[Usage] = None
    raw: Any = field(default=None, repr=False, compare=False)

    @property
    def wants_tool(self) -> bool:
        return bool(self.tool_calls)


class ConversationHistory:
    """Ordered, append-only sequence of messages.

    Messages can only be appended, never removed or replaced.
    """

    def __init__(self, messages=()):
        self._messages: list[Message] = []
        for message in messages:
            self.append(message)

    def append(self, message: Message) -> Message:
        if not isinstance(message, Message):
            raise TypeError(f"Expected Message, got {type(message).__name__}")
        self._messages.append(message)
        return message

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, index):
        return self._messages[index]

    def __repr__(self):
        return f"ConversationHistory({len(self._messages)} messages)"
