"""
CLI entry point for damage-control.

This module provides the Typer-based command-line interface.

Commands:
    check-command   Evaluate a shell command
    check-path      Evaluate a file path for a read or write tool
    hook            Evaluate a JSON tool call read from stdin
    validate        Load a patterns file and report unusable patterns

Architecture Note:
    The CLI is thin: it loads the config, delegates to the guard or the
    policy engine, and formats the verdict. Exit code 1 means blocked (or
    a config error); 0 means allowed.
"""

import json
import logging
import sys
import traceback
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from damage_control import __version__
from damage_control.config import ConfigLoader
from damage_control.errors import ConfigError, PolicyDeniedError
from damage_control.guard import Guard
from damage_control.policy.engine import PolicyEngine
from damage_control.schema import AccessMode, PolicyConfig, Verdict

app = typer.Typer(
    name="damage-control",
    help="Block dangerous shell commands and protect sensitive paths.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Candidate keys for the tool name and arguments in a hook payload
HOOK_TOOL_FIELDS = ("tool", "tool_name")
HOOK_ARGS_FIELDS = ("args", "tool_input", "input")


class PathMode(str, Enum):
    """Access intent for check-path."""

    READ = "read"
    WRITE = "write"


ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Patterns YAML file. Defaults to $DAMAGE_CONTROL_CONFIG, then the bundled patterns.",
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output results in JSON format."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", help="Enable debug logging on stderr."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]damage-control[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    damage-control - policy checks for agent shell and file tools.
    """
    pass


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def _load(config_path: Optional[Path], json_output: bool) -> tuple[ConfigLoader, PolicyConfig]:
    loader = ConfigLoader(config_path)
    try:
        return loader, loader.load()
    except ConfigError as e:
        if json_output:
            _output_json_error("config_error", str(e))
        else:
            console.print(f"[red]Error loading patterns: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def _output_json_error(error_type: str, message: str, include_traceback: bool = False) -> None:
    """Output an error in JSON format."""
    output: dict[str, Any] = {
        "error": True,
        "error_type": error_type,
        "message": message,
    }
    if include_traceback:
        output["traceback"] = traceback.format_exc()
    print(json.dumps(output, indent=2))


def _display_verdict(verdict: Verdict, subject: str) -> None:
    if verdict.blocked:
        console.print(f"[red]✗ BLOCKED[/red] {escape(subject)}")
        console.print(f"  [red]{escape(verdict.reason)}[/red]")
        if verdict.ask:
            console.print("  [yellow]Pattern is marked ask; blocked anyway.[/yellow]")
    else:
        console.print(f"[green]✓ allowed[/green] {escape(subject)}")


@app.command("check-command")
def check_command(
    command: Annotated[str, typer.Argument(help="Shell command to evaluate.")],
    config: ConfigOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Evaluate a shell command against all policy tiers.

    Example:
        $ damage-control check-command "rm -rf /tmp/build"
    """
    _setup_logging(verbose)
    _, policy = _load(config, json_output)

    verdict = PolicyEngine(policy).check_command(command)

    if json_output:
        print(json.dumps(verdict.model_dump(mode="json"), indent=2))
    else:
        _display_verdict(verdict, command)

    raise typer.Exit(code=1 if verdict.blocked else 0)


@app.command("check-path")
def check_path(
    path: Annotated[str, typer.Argument(help="File or directory path to evaluate.")],
    mode: Annotated[
        PathMode,
        typer.Option(
            "--mode",
            "-m",
            help="read checks zero-access paths only; write also checks read-only paths.",
        ),
    ] = PathMode.WRITE,
    config: ConfigOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Evaluate a file path for a read or write tool.

    Example:
        $ damage-control check-path ~/.ssh/id_rsa --mode read
    """
    _setup_logging(verbose)
    _, policy = _load(config, json_output)

    access = AccessMode.ZERO_ACCESS_ONLY if mode == PathMode.READ else AccessMode.FULL_CHECK
    verdict = PolicyEngine(policy).check_path(path, access)

    if json_output:
        print(json.dumps(verdict.model_dump(mode="json"), indent=2))
    else:
        _display_verdict(verdict, path)

    raise typer.Exit(code=1 if verdict.blocked else 0)


def _pick(payload: dict[str, Any], candidates: tuple[str, ...]) -> Any:
    for name in candidates:
        if name in payload:
            return payload[name]
    return None


@app.command()
def hook(
    config: ConfigOption = None,
    verbose: VerboseOption = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Include tracebacks in error output."),
    ] = False,
) -> None:
    """
    Evaluate a tool call given as JSON on stdin.

    The payload is {"tool": <name>, "args": {...}} (tool_name/tool_input are
    accepted too). A JSON verdict is printed on stdout.

    Example:
        $ echo '{"tool": "bash", "args": {"command": "rm -rf ~"}}' | damage-control hook
    """
    _setup_logging(verbose)

    try:
        payload = json.loads(sys.stdin.read())
    except json.JSONDecodeError as e:
        _output_json_error("invalid_input", f"Invalid JSON on stdin: {e}", debug)
        raise typer.Exit(code=1)

    if not isinstance(payload, dict):
        _output_json_error("invalid_input", "Expected a JSON object on stdin")
        raise typer.Exit(code=1)

    tool = _pick(payload, HOOK_TOOL_FIELDS)
    args = _pick(payload, HOOK_ARGS_FIELDS) or {}
    if not isinstance(tool, str) or not isinstance(args, dict):
        _output_json_error("invalid_input", "Payload needs a string tool and an object of args")
        raise typer.Exit(code=1)

    loader, _ = _load(config, json_output=True)
    guard = Guard.from_loader(loader)

    try:
        verdict = guard.enforce(tool, args)
    except PolicyDeniedError as e:
        output = {"blocked": True, "tool": tool, **e.to_dict()}
        print(json.dumps(output, indent=2, default=str))
        raise typer.Exit(code=1)

    print(json.dumps({"blocked": False, "tool": tool, "reason": verdict.reason}, indent=2))


@app.command()
def validate(
    config: ConfigOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Load a patterns file and report tier sizes and unusable patterns.

    Example:
        $ damage-control validate --config patterns.yaml
    """
    _setup_logging(verbose)
    loader, policy = _load(config, json_output)

    exists = loader.path.exists()
    invalid = loader.invalid_patterns
    ok = not invalid

    if json_output:
        output = {
            "ok": ok,
            "path": str(loader.path),
            "exists": exists,
            "counts": policy.summary(),
            "invalid_patterns": [bad.model_dump(mode="json") for bad in invalid],
        }
        print(json.dumps(output, indent=2))
        raise typer.Exit(code=0 if ok else 1)

    console.print(f"[bold]Patterns:[/bold] {escape(str(loader.path))}")
    if not exists:
        console.print("[yellow]File not found; every call will be allowed.[/yellow]")
    console.print()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Tier", style="cyan")
    table.add_column("Entries", justify="right")
    for tier, count in policy.summary().items():
        table.add_row(tier, str(count))
    console.print(table)

    if invalid:
        console.print()
        console.print(f"[red]{len(invalid)} invalid pattern(s), these never match:[/red]")
        for bad in invalid:
            console.print(
                f"  [red]• {bad.tier.value} #{bad.index} "
                f"{escape(bad.pattern)}: {escape(bad.error)}[/red]"
            )
    else:
        console.print("[green]All patterns compile.[/green]")

    raise typer.Exit(code=0 if ok else 1)


if __name__ == "__main__":
    app()
