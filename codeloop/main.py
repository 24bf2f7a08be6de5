"""
Command-line entry point for the project coding agent.

Usage:
    codeloop ~/my-project --ignore '\\.env$' --ignore '/fixtures/'
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from .agent import CodingAgent
from .config import DEFAULT_MODELS, get_model, load_settings
from .errors import AgentError, ConfigError

logger = logging.getLogger("codeloop")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def configure_logging(level: str = "WARNING") -> None:
    """Install a single stderr handler on the root logger."""
    root = logging.getLogger()
    if getattr(root, "_codeloop_configured", False):
        root.setLevel(level)
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    ))
    root.addHandler(handler)
    root.setLevel(level)
    root._codeloop_configured = True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codeloop",
        description="Chat with a model that can read and rewrite your project",
    )
    parser.add_argument(
        "project_root",
        help="Project directory the agent may read and write",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Extra regex of paths to leave out of readProject (repeatable)",
    )
    parser.add_argument(
        "--provider",
        choices=sorted(DEFAULT_MODELS),
        default=None,
        help="Model provider (default: $LLM_PROVIDER or anthropic)",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model name (default: $LLM_MODEL or the provider default)",
    )
    parser.add_argument(
        "--report-tool-errors",
        action="store_true",
        help="Send tool failures back to the model instead of exiting",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level on stderr (default: WARNING)",
    )
    return parser


async def repl(agent: CodingAgent, read_line=None) -> None:
    """Read user lines and print assistant replies until EOF."""
    read_line = read_line or input
    print(f"Working in {agent.settings.project_root}. Type your request; Ctrl-D to quit.")
    while True:
        try:
            # Stays on the loop thread; Ctrl-C must reach the prompt.
            user_text = read_line("You: ")
        except EOFError:
            print()
            return
        if not user_text.strip():
            continue
        answer = await agent.send(user_text)
        print(f"Assistant: {answer}")


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = load_settings(
            args.project_root,
            args.ignore,
            provider=args.provider,
            model_name=args.model,
            tool_errors="report" if args.report_tool_errors else None,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    logger.info("Using %s model %s", settings.provider, settings.model_name)

    try:
        agent = CodingAgent(get_model(settings), settings)
        asyncio.run(repl(agent))
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return EXIT_INTERRUPTED
    except AgentError as e:
        logger.debug("Run failed", exc_info=True)
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
