"""
Shared fixtures: a small project tree on disk, settings pointing at it, and
a scripted model that replays canned replies.
"""

import os
import sys

import pytest

# Make the package importable without installing it
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, REPO_ROOT)

from codeloop.config import Settings, resolve_project_root  # noqa: E402
from codeloop.state import ModelReply, ToolCall  # noqa: E402
from codeloop.tools import IgnoreRuleSet  # noqa: E402


class ScriptedModel:
    """Model stand-in that returns queued replies and records each request."""

    model_name = "scripted-model"

    def __init__(self, replies=()):
        self.replies = list(replies)
        self.requests: list[tuple] = []
        self.tools_seen: list = []

    def queue(self, *replies):
        self.replies.extend(replies)

    async def complete(self, history, tools):
        self.requests.append(tuple(history))
        self.tools_seen.append(tools)
        if not self.replies:
            raise AssertionError("ScriptedModel ran out of replies")
        return self.replies.pop(0)


def text_reply(text):
    return ModelReply(content=text)


def tool_reply(name, arguments=None, call_id="call_1", content=None):
    return ModelReply(
        content=content,
        tool_calls=(ToolCall(id=call_id, name=name, arguments=arguments),),
    )


@pytest.fixture
def project(tmp_path):
    """A project root with source files plus content the defaults ignore."""
    root = tmp_path / "proj"
    (root / "src").mkdir(parents=True)
    (root / "a.ts").write_text("A")
    (root / "src" / "main.ts").write_text("MAIN")
    (root / "node_modules" / "x").mkdir(parents=True)
    (root / "node_modules" / "x.ts").write_text("X")
    (root / "node_modules" / "x" / "index.js").write_text("XI")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main")
    (root / "package-lock.json").write_text("{}")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    return resolve_project_root(root)


@pytest.fixture
def settings(project):
    return Settings(project_root=project, ignore_rules=IgnoreRuleSet.build())


@pytest.fixture
def model():
    return ScriptedModel()


@pytest.fixture
def agent(model, settings):
    from codeloop.agent import CodingAgent

    return CodingAgent(model, settings)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep provider settings from the developer's shell out of tests."""
    for name in (
        "LLM_PROVIDER",
        "LLM_MODEL",
        "CODELOOP_MAX_TOKENS",
        "CODELOOP_TOOL_ERRORS",
        "CODELOOP_MAX_TOOL_ROUNDS",
    ):
        monkeypatch.delenv(name, raising=False)


def snapshot_tree(path):
    """Map of relative path → bytes for every file under ``path``."""
    result = {}
    for dirpath, _dirnames, filenames in os.walk(path):
        for name in filenames:
            full = os.path.join(dirpath, name)
            with open(full, "rb") as f:
                result[os.path.relpath(full, path)] = f.read()
    return result
