"""
Exception taxonomy for the coding agent.

Tools raise ToolError subclasses; the orchestrator raises ProtocolError when
the model breaks the tool contract. main.py maps all of them to exit codes.
"""


class AgentError(Exception):
    """Base class for every error the agent raises on purpose."""


class ConfigError(AgentError):
    """Invalid startup configuration (project root, ignore patterns, env)."""


class ToolError(AgentError):
    """A tool invocation failed."""


class TraversalError(ToolError):
    """A file under the project root could not be read."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot read '{self.path}': {reason}")


class SandboxViolation(ToolError, ValueError):
    """A write target resolves outside the project root."""

    def __init__(self, path, index=None, reason="resolves outside the project root"):
        self.path = path
        self.index = index
        where = f" (request #{index})" if index is not None else ""
        super().__init__(f"Path '{path}'{where} {reason}")


class BatchValidationError(ToolError, ValueError):
    """A write batch is malformed (length mismatch, non-string entries)."""


class ProtocolError(AgentError):
    """The model named an unknown tool or sent arguments that do not fit it."""


class ModelError(AgentError):
    """The model capability failed (network, auth, rate limit, bad reply)."""
