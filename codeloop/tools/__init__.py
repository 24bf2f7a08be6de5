"""
Project tools exposed to the model.
Provides TOOL_REGISTRY (name → ToolSpec), TOOL_SCHEMAS (Anthropic format),
and decode_tool_call, which turns a raw model tool call into a typed action.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Union

from ..errors import ProtocolError
from .base import parse_arguments, validate_arguments
from .file_tools import write_files, write_many
from .path_filter import DEFAULT_IGNORE_PATTERNS, IgnoreRuleSet, is_ignored
from .tree_tools import read_project, read_tree


@dataclass(frozen=True)
class ToolSpec:
    """Name, description and parameter description of one tool."""

    name: str
    description: str
    # parameter name → {"type", "description", "required", optional "items"}
    parameters: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def input_schema(self) -> dict:
        properties = {}
        for pname, param in self.parameters.items():
            prop = {"type": param["type"], "description": param["description"]}
            if "items" in param:
                prop["items"] = dict(param["items"])
            properties[pname] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [p for p, param in self.parameters.items() if param.get("required")],
            "additionalProperties": False,
        }

    def to_schema(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema(),
        }


# ── Typed actions decoded from model tool calls ─────────────────────

@dataclass(frozen=True)
class ReadProject:
    call_id: str


@dataclass(frozen=True)
class WriteFiles:
    call_id: str
    relative_paths: tuple[str, ...]
    contents_array: tuple[str, ...]


ToolAction = Union[ReadProject, WriteFiles]


READ_PROJECT = ToolSpec(
    name="readProject",
    description=(
        "Read every source file in the project and return their contents "
        "concatenated into one text. Dependency folders, build output, "
        "lockfiles and images are skipped. Call this before writing files."
    ),
)

WRITE_FILES = ToolSpec(
    name="writeFiles",
    description=(
        "Create or overwrite several files at once. relativePaths[i] receives "
        "contentsArray[i] in full; both arrays must have the same length. "
        "Paths are relative to the project root and may not leave it. "
        "Parent directories are created automatically."
    ),
    parameters={
        "relativePaths": {
            "type": "array",
            "items": {"type": "string"},
            "description": "File paths relative to the project root.",
            "required": True,
        },
        "contentsArray": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Full new contents for each file, in the same order as relativePaths.",
            "required": True,
        },
    },
)

# name → ToolSpec
TOOL_REGISTRY: Mapping[str, ToolSpec] = MappingProxyType({
    READ_PROJECT.name: READ_PROJECT,
    WRITE_FILES.name: WRITE_FILES,
})

# Anthropic tool format: {name, description, input_schema}
TOOL_SCHEMAS: tuple[dict, ...] = tuple(spec.to_schema() for spec in TOOL_REGISTRY.values())


def decode_tool_call(name: str, arguments: Any, call_id: str = "") -> ToolAction:
    """Turn a raw tool call into a typed action.

    Raises:
        ProtocolError: unknown tool name, or arguments that do not fit the
            tool's declared parameters.
    """
    spec = TOOL_REGISTRY.get(name)
    if spec is None:
        raise ProtocolError(
            f"Model requested unknown tool '{name}'; "
            f"available: {', '.join(TOOL_REGISTRY)}"
        )

    args = parse_arguments(name, arguments)
    validate_arguments(name, args, spec.input_schema())

    if spec is READ_PROJECT:
        return ReadProject(call_id=call_id)
    return WriteFiles(
        call_id=call_id,
        relative_paths=tuple(args["relativePaths"]),
        contents_array=tuple(args["contentsArray"]),
    )


__all__ = [
    "TOOL_REGISTRY",
    "TOOL_SCHEMAS",
    "ToolSpec",
    "ToolAction",
    "ReadProject",
    "WriteFiles",
    "decode_tool_call",
    "DEFAULT_IGNORE_PATTERNS",
    "IgnoreRuleSet",
    "is_ignored",
    "read_tree",
    "read_project",
    "write_files",
    "write_many",
]
