"""
Tests for the command-line entry point and REPL.
"""

import builtins

import pytest

from codeloop import main as cli
from codeloop.agent import CodingAgent

from conftest import ScriptedModel, text_reply, tool_reply

REAL_CONFIGURE_LOGGING = cli.configure_logging


def scripted_input(lines):
    """input() replacement: yields lines, then raises EOFError."""
    pending = list(lines)

    def _input(prompt=""):
        if not pending:
            raise EOFError
        item = pending.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    return _input


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep main() from attaching handlers to pytest's captured streams."""
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)


@pytest.fixture
def use_model(monkeypatch):
    """Route get_model to a ScriptedModel and return it."""
    model = ScriptedModel()
    monkeypatch.setattr(cli, "get_model", lambda settings: model)
    return model


class TestArgumentParsing:
    """CLI flags."""

    def test_repeated_ignore(self):
        args = cli.build_parser().parse_args(["proj", "--ignore", "a", "--ignore", "b"])
        assert args.project_root == "proj"
        assert args.ignore == ["a", "b"]
        assert args.report_tool_errors is False

    def test_project_root_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestExitCodes:
    """Startup failures, protocol errors, interrupts."""

    def test_missing_root_exits_nonzero(self, tmp_path, capsys, use_model):
        code = cli.main([str(tmp_path / "missing")])
        assert code == cli.EXIT_CONFIG
        assert "does not exist" in capsys.readouterr().err
        assert use_model.requests == []

    def test_conversation_then_eof(self, project, monkeypatch, capsys, use_model):
        use_model.queue(text_reply("Hi there."))
        monkeypatch.setattr(builtins, "input", scripted_input(["hello"]))
        assert cli.main([str(project)]) == cli.EXIT_OK
        out = capsys.readouterr().out
        assert "Assistant: Hi there." in out

    def test_blank_lines_skipped(self, project, monkeypatch, use_model):
        use_model.queue(text_reply("ok"))
        monkeypatch.setattr(builtins, "input", scripted_input(["", "   ", "go"]))
        assert cli.main([str(project)]) == cli.EXIT_OK
        assert len(use_model.requests) == 1

    def test_protocol_error_exits_one(self, project, monkeypatch, capsys, use_model):
        use_model.queue(tool_reply("runShell", "{}"))
        monkeypatch.setattr(builtins, "input", scripted_input(["go"]))
        assert cli.main([str(project)]) == cli.EXIT_ERROR
        assert "ProtocolError" in capsys.readouterr().err

    def test_sandbox_violation_exits_one(self, project, monkeypatch, capsys, use_model):
        use_model.queue(tool_reply(
            "writeFiles", {"relativePaths": ["../../x"], "contentsArray": ["1"]},
        ))
        monkeypatch.setattr(builtins, "input", scripted_input(["go"]))
        assert cli.main([str(project)]) == cli.EXIT_ERROR
        assert "SandboxViolation" in capsys.readouterr().err

    def test_report_flag_keeps_running(self, project, monkeypatch, capsys, use_model):
        use_model.queue(
            tool_reply("writeFiles", {"relativePaths": ["../../x"], "contentsArray": ["1"]}),
            text_reply("That path is not allowed."),
        )
        monkeypatch.setattr(builtins, "input", scripted_input(["go"]))
        assert cli.main([str(project), "--report-tool-errors"]) == cli.EXIT_OK
        assert "That path is not allowed." in capsys.readouterr().out

    def test_keyboard_interrupt(self, project, monkeypatch, capsys, use_model):
        monkeypatch.setattr(builtins, "input", scripted_input([KeyboardInterrupt()]))
        assert cli.main([str(project)]) == cli.EXIT_INTERRUPTED
        assert "Interrupted" in capsys.readouterr().out


class TestRepl:
    """REPL loop with an injected reader."""

    @pytest.mark.asyncio
    async def test_prints_only_final_answer(self, settings, capsys):
        model = ScriptedModel([
            tool_reply("readProject", "{}", content="thinking out loud"),
            text_reply("Final answer."),
        ])
        agent = CodingAgent(model, settings)
        await cli.repl(agent, read_line=scripted_input(["explain"]))
        out = capsys.readouterr().out
        assert "Assistant: Final answer." in out
        assert "thinking out loud" not in out
        assert out.count("Assistant:") == 1


class TestConfigureLogging:
    """Single stderr handler on the root logger."""

    def test_installs_handler_once(self, monkeypatch):
        import logging

        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "_codeloop_configured", False, raising=False)
        level = root.level
        try:
            REAL_CONFIGURE_LOGGING("INFO")
            REAL_CONFIGURE_LOGGING("DEBUG")
            assert len(root.handlers) == 1
            assert root.level == logging.DEBUG
        finally:
            root.setLevel(level)
