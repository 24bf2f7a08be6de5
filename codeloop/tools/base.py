"""
Base tool utilities.
Provides project-root sandboxing (sanitize_path) and tool-argument decoding
and validation against a tool's JSON schema.
"""

import json
import os
from pathlib import Path
from typing import Any

from ..errors import ProtocolError, SandboxViolation


def sanitize_path(root: Path, path: str, index: int | None = None) -> Path:
    """Resolve ``path`` under ``root`` and ensure it stays within bounds.

    The check is a string-prefix comparison against the resolved root, so
    ``..`` segments and symlinks pointing outside the tree are both caught.
    The root itself is not a valid target.
    """
    if not isinstance(path, str) or not path.strip():
        raise SandboxViolation(path, index, reason="is empty")
    if "\x00" in path:
        raise SandboxViolation(path, index, reason="contains a NUL byte")
    if os.path.isabs(path):
        raise SandboxViolation(path, index, reason="is absolute; only relative paths are allowed")

    allowed_root = os.path.realpath(root)
    resolved = os.path.realpath(os.path.join(allowed_root, path))
    if resolved == allowed_root:
        raise SandboxViolation(path, index, reason="resolves to the project root itself")
    if not resolved.startswith(allowed_root + os.sep):
        raise SandboxViolation(path, index)
    return Path(resolved)


def parse_arguments(tool_name: str, raw: Any) -> dict:
    """Decode a tool-call argument payload into a dict.

    Providers hand arguments over either as a JSON string or already decoded.
    An empty payload means "no arguments".
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as exc:
            raise ProtocolError(
                f"Arguments for tool '{tool_name}' are not valid JSON: {exc}"
            ) from exc
    if not isinstance(raw, dict):
        raise ProtocolError(
            f"Arguments for tool '{tool_name}' must be an object, got {type(raw).__name__}"
        )
    return raw


def _matches_json_type(value: Any, expected: str) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "object":
        return isinstance(value, dict)
    if expected == "array":
        return isinstance(value, list)
    if expected == "null":
        return value is None
    # Unknown type: be conservative
    return False


def validate_arguments(tool_name: str, args: dict, schema: dict) -> None:
    """Check ``args`` against a simplified subset of JSON Schema.

    Validates required keys, property types, array item types, and rejects
    unknown keys when ``additionalProperties`` is false.

    Raises:
        ProtocolError: on the first mismatch.
    """
    properties = schema.get("properties") or {}
    required = schema.get("required") or []

    for name in required:
        if name not in args:
            raise ProtocolError(f"Tool '{tool_name}' is missing required argument '{name}'")

    if schema.get("additionalProperties", True) is False:
        unknown = sorted(k for k in args if k not in properties)
        if unknown:
            raise ProtocolError(
                f"Tool '{tool_name}' got unknown argument(s): {', '.join(unknown)}"
            )

    for key, value in args.items():
        prop = properties.get(key)
        if not isinstance(prop, dict) or "type" not in prop:
            continue
        expected = prop["type"]
        if not _matches_json_type(value, expected):
            raise ProtocolError(
                f"Argument '{key}' of tool '{tool_name}' has wrong type; expected {expected}"
            )
        item_type = (prop.get("items") or {}).get("type")
        if expected == "array" and item_type:
            for i, item in enumerate(value):
                if not _matches_json_type(item, item_type):
                    raise ProtocolError(
                        f"Argument '{key}[{i}]' of tool '{tool_name}' has wrong type; "
                        f"expected {item_type}"
                    )
