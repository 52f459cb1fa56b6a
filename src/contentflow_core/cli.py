"""Command line interface: ``contentflow run | demo | tools``.

Input and output go through a Console so the commands can be driven
without a terminal.
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Callable
from typing import Any, Protocol

from contentflow_core.application import ContentflowApplication
from contentflow_core.errors import ContentflowError
from contentflow_core.pipeline import PipelineResult

DEFAULT_LANGUAGE = "es"
DEMO_QUERY = "What are the latest developments in artificial intelligence and machine learning"
RULE = "━" * 52

AppFactory = Callable[[argparse.Namespace], ContentflowApplication]


class Console(Protocol):
    """Interactive input/output capability."""

    def ask(self, prompt: str) -> str: ...

    def write(self, text: str = "") -> None: ...

    def error(self, text: str) -> None: ...


class TerminalConsole:
    """Console on stdin/stdout/stderr."""

    def ask(self, prompt: str) -> str:
        try:
            return input(prompt)
        except EOFError:
            return ""

    def write(self, text: str = "") -> None:
        print(text)

    def error(self, text: str) -> None:
        print(text, file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level parser and subcommands."""
    parser = argparse.ArgumentParser(
        prog="contentflow",
        description="Research, draft and translate content with OAuth-protected MCP tools",
    )
    parser.add_argument("--config", default=None, help="Path to a contentflow.yaml file")

    # Also accepted after the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=argparse.SUPPRESS, help=argparse.SUPPRESS)

    sub = parser.add_subparsers(dest="cmd")

    p_run = sub.add_parser("run", parents=[common], help="Run the pipeline for a query (default)")
    p_run.add_argument("--query", default=None)
    p_run.add_argument("--lang", default=None, help="Target language code (default: es)")

    sub.add_parser(
        "demo", parents=[common], help="Run the pipeline on a canned query and summarize it"
    )

    p_tools = sub.add_parser(
        "tools", parents=[common], help="List the tools of the connected servers"
    )
    p_tools.add_argument("--server", default=None)

    return parser


def _default_app_factory(args: argparse.Namespace) -> ContentflowApplication:
    return ContentflowApplication(config_path=args.config)


async def _run(app: ContentflowApplication, args: argparse.Namespace, console: Console) -> int:
    query = args.query or console.ask("Enter your research query: ").strip()
    if not query:
        console.error("Error: a research query is required")
        return 1
    language = (
        args.lang
        or console.ask("Enter target language (e.g., es, fr, de) [default: es]: ").strip()
        or DEFAULT_LANGUAGE
    )

    result = await app.run(query, language)
    if result.success:
        console.write(json.dumps(result.data, indent=2, default=str))
        return 0
    console.error(f"Error at step {result.step.value}: {result.error}")
    return 1


async def _demo(app: ContentflowApplication, args: argparse.Namespace, console: Console) -> int:
    console.write("DEMO: 3-Step Content Generation Agent")
    console.write("Workflow: Research → Draft → Translate")
    console.write(RULE)
    console.write(f'Demo Query: "{DEMO_QUERY}"')
    console.write(f"Target Language: {DEFAULT_LANGUAGE}")
    console.write()

    result = await app.run(DEMO_QUERY, DEFAULT_LANGUAGE)
    for line in summarize(result):
        console.write(line)
    return 0 if result.success else 1


def summarize(result: PipelineResult) -> list[str]:
    """Human-readable step breakdown of a run."""
    lines = ["DEMO RESULTS SUMMARY:", RULE]
    if not result.success:
        lines.append("Overall Status: FAILED")
        lines.append(f"Failed at step: {result.step.value}")
        lines.append(f"Error: {result.error}")
        return lines

    lines.append("Overall Status: SUCCESS")
    lines.append("")
    lines.append("Step Breakdown:")
    lines.append("1. Research: COMPLETED")
    lines.append("2. Draft: COMPLETED")
    lines.append("3. Translate: COMPLETED")

    translation: Any = (result.data or {}).get("translation") or {}
    if translation.get("fallback_applied"):
        lines.append("   Note: Translation fallback was applied")
    if translation.get("fallback_used"):
        lines.append(f"   Note: Translated by fallback provider '{translation['fallback_used']}'")

    lines.append("")
    lines.append("Final Translated Content:")
    lines.append("─" * 29)
    texts = [
        block.get("text", "")
        for block in translation.get("content", [])
        if isinstance(block, dict) and block.get("type") == "text"
    ]
    if texts:
        lines.extend(texts)
    elif "translated_text" in translation:
        lines.append(str(translation["translated_text"]))
    else:
        lines.append(f"Translation result: {json.dumps(translation, indent=2, default=str)}")
    return lines


async def _tools(app: ContentflowApplication, args: argparse.Namespace, console: Console) -> int:
    tools = await app.list_tools(args.server)
    for server_name, schemas in tools.items():
        console.write(f"{server_name} ({len(schemas)} tools)")
        for schema in schemas:
            description = schema.description.splitlines()[0] if schema.description else ""
            console.write(f"  - {schema.name}: {description}".rstrip(": "))
    return 0


_COMMANDS = {"run": _run, "demo": _demo, "tools": _tools}


async def run_command(
    args: argparse.Namespace,
    console: Console,
    app_factory: AppFactory = _default_app_factory,
) -> int:
    """Execute a parsed command against a fresh application."""
    handler = _COMMANDS[args.cmd or "run"]
    if args.cmd is None:
        args.query = None
        args.lang = None

    app = app_factory(args)
    try:
        return await handler(app, args, console)
    except ContentflowError as e:
        console.error(f"Error: {e}")
        if e.suggestion:
            console.error(f"  {e.suggestion}")
        return 1
    finally:
        await app.shutdown()


def main(
    argv: list[str] | None = None,
    console: Console | None = None,
    app_factory: AppFactory = _default_app_factory,
) -> int:
    """Entry point for the ``contentflow`` console script."""
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run_command(args, console or TerminalConsole(), app_factory))
    except KeyboardInterrupt:
        return 130
