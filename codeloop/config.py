"""
Environment configuration and model factory.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError
from .tools.path_filter import IgnoreRuleSet

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4.1-mini",
}
TOOL_ERROR_MODES = ("raise", "report")


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, fixed at startup."""

    project_root: Path
    ignore_rules: IgnoreRuleSet = field(default_factory=IgnoreRuleSet.build)
    provider: str = "anthropic"
    model_name: str = DEFAULT_MODELS["anthropic"]
    max_tokens: int = 4096
    tool_errors: str = "raise"
    max_tool_rounds: int = 25

    @property
    def report_tool_errors(self) -> bool:
        return self.tool_errors == "report"


def resolve_project_root(path) -> Path:
    """Resolve the project root to an absolute directory path.

    Only stats the path; nothing under it is read.
    """
    if path is None or str(path).strip() == "":
        raise ConfigError("Project root is required")
    resolved = Path(path).expanduser().resolve()
    if not resolved.exists():
        raise ConfigError(f"Project root '{path}' does not exist")
    if not resolved.is_dir():
        raise ConfigError(f"Project root '{path}' is not a directory")
    return resolved


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def load_settings(
    project_root,
    ignore_patterns=(),
    *,
    provider=None,
    model_name=None,
    tool_errors=None,
) -> Settings:
    """Build Settings from explicit arguments, falling back to environment.

    Environment:
      LLM_PROVIDER=anthropic (default) | openai
      LLM_MODEL=<provider default>
      CODELOOP_MAX_TOKENS=4096
      CODELOOP_TOOL_ERRORS=raise (default) | report
      CODELOOP_MAX_TOOL_ROUNDS=25
    """
    root = resolve_project_root(project_root)

    provider = (provider or os.getenv("LLM_PROVIDER") or "anthropic").lower()
    if provider not in DEFAULT_MODELS:
        raise ConfigError(
            f"Unknown LLM provider {provider!r}; expected one of {', '.join(DEFAULT_MODELS)}"
        )
    model_name = model_name or os.getenv("LLM_MODEL") or DEFAULT_MODELS[provider]

    tool_errors = (tool_errors or os.getenv("CODELOOP_TOOL_ERRORS") or "raise").lower()
    if tool_errors not in TOOL_ERROR_MODES:
        raise ConfigError(
            f"CODELOOP_TOOL_ERRORS must be one of {', '.join(TOOL_ERROR_MODES)}, got {tool_errors!r}"
        )

    return Settings(
        project_root=root,
        ignore_rules=IgnoreRuleSet.build(ignore_patterns),
        provider=provider,
        model_name=model_name,
        max_tokens=_int_env("CODELOOP_MAX_TOKENS", 4096),
        tool_errors=tool_errors,
        max_tool_rounds=_int_env("CODELOOP_MAX_TOOL_ROUNDS", 25),
    )


def get_model(settings: Settings):
    """Create the model client for the configured provider.

    Supports:
      LLM_PROVIDER=anthropic (default) | openai
    """
    if settings.provider == "openai":
        from .models import OpenAIModel

        return OpenAIModel(model_name=settings.model_name, max_tokens=settings.max_tokens)

    from .models import AnthropicModel

    return AnthropicModel(model_name=settings.model_name, max_tokens=settings.max_tokens)
