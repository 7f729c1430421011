"""vibecheck CLI - scope contracts, compliance review, and project memory."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from vibecheck import __version__
from vibecheck.config import ConfigError, VibecheckConfig, load_config
from vibecheck.memory import init_memory, read_memory, save_feature_spec, update_memory
from vibecheck.pipeline.diff_review import ComplianceReport, run_diff_review
from vibecheck.pipeline.pre_check import PreCheckReport, run_pre_check

cli = typer.Typer(
    name="vibecheck",
    help="vibecheck - keep AI-assisted changes inside the requested scope",
    no_args_is_help=True,
)
console = Console()

memory_app = typer.Typer(
    name="memory",
    help="Project memory bank commands",
    no_args_is_help=True,
)
cli.add_typer(memory_app, name="memory")


class UpdateMode(str, Enum):
    """How `memory update` writes its content."""

    REPLACE = "replace"
    APPEND = "append"


def _version_option_callback(value: bool) -> None:
    """Handle eager --version option."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    handler = RichHandler(
        console=Console(stderr=True),
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
    )
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(logging.DEBUG)


@cli.callback()
def _cli_callback(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show vibecheck version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug output to stderr.",
    ),
) -> None:
    """CLI callback that runs on every invocation."""
    _ = version
    _configure_logging(verbose)


def _load_project_config(project_root: Path) -> VibecheckConfig:
    try:
        return load_config(project_root)
    except ConfigError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))} ({exc.reason_code})")
        raise typer.Exit(1) from exc


def _read_text_option(text: str | None, path: Path | None, name: str) -> str | None:
    """Resolve a ``--<name>`` / ``--<name>-file`` pair to text."""
    if text is not None and path is not None:
        console.print(f"[bold red]Error:[/bold red] use either --{name} or --{name}-file, not both")
        raise typer.Exit(1)
    if path is None:
        return text
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] cannot read {path}: {exc}")
        raise typer.Exit(1) from exc


def _emit_json(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _print_files(label: str, files: tuple[str, ...], style: str) -> None:
    if not files:
        return
    console.print(f"[{style}]{label}:[/{style}]")
    for file in files:
        console.print(f"  - {escape(file)}")


def _render_pre_check(report: PreCheckReport) -> None:
    contract = report.contract
    if report.passed:
        console.print(f"[green]✓ Pre-check passed (score {report.score}/100)[/green]")
    else:
        console.print(f"[red]✗ Pre-check failed (score {report.score}/100)[/red]")
    console.print(f"[cyan]Complexity:[/cyan] {contract.complexity_rating}")
    framework = contract.project_snapshot.get("framework")
    if framework:
        console.print(f"[cyan]Framework:[/cyan] {framework}")

    _print_files("Approved files", contract.approved_files, "green")
    _print_files("Forbidden files", contract.forbidden_files, "red")
    _print_files("Allowed new files", contract.allowed_new_files, "cyan")

    for flag in report.red_flags:
        color = "red" if flag.severity.value == "critical" else "yellow"
        console.print(f"[{color}]  ! {flag.type}: {escape(flag.message)}[/{color}]")
    for check in report.checks:
        if not check.passed:
            console.print(f"[yellow]  - {check.id}: {escape(check.message)}[/yellow]")

    if report.memory.known_routes:
        console.print(f"[cyan]Known routes:[/cyan] {escape(', '.join(report.memory.known_routes))}")
    console.print(f"[bold]Recommendation:[/bold] {escape(report.recommendation)}")


def _render_diff_review(report: ComplianceReport) -> None:
    if report.compliant:
        console.print(f"[green]✓ Compliant (score {report.score}/100)[/green]")
    else:
        console.print(f"[red]✗ Not compliant (score {report.score}/100)[/red]")
    console.print(escape(report.summary))

    _print_files("In scope", report.in_scope_changes, "green")
    for v in report.violations:
        color = "red" if v.severity.value == "critical" else "yellow"
        target = f" ({escape(v.file)})" if v.file else ""
        console.print(f"[{color}]  - {v.type}{target}: {escape(v.message)}[/{color}]")
    _print_files("Missing changes", report.missing_changes, "yellow")

    console.print("[bold]Recommended actions:[/bold]")
    for action in report.recommended_actions:
        console.print(f"  - {escape(action)}")

    write_back = report.write_back
    if write_back.status.value == "ok":
        console.print("[green]✓ Memory bank updated[/green]")
    elif write_back.status.value == "failed":
        console.print(f"[yellow]Memory bank update failed: {escape(write_back.error or '')}[/yellow]")


@cli.command("pre-check")
def pre_check(
    request: str = typer.Argument(..., help="The original request, verbatim"),
    project_root: Path = typer.Option(
        Path("."),
        "--project-root",
        help="Project root directory",
    ),
    files: list[str] = typer.Option(
        [],
        "--file",
        "-f",
        help="File the change will touch (repeatable)",
    ),
    changes: str | None = typer.Option(
        None,
        "--changes",
        help="Free-text description of the planned change",
    ),
    changes_file: Path | None = typer.Option(
        None,
        "--changes-file",
        help="Read the planned change description from a file",
    ),
    out: Path | None = typer.Option(
        None,
        "--out",
        help="Write the scope contract JSON to this path",
    ),
    scan_timeout: float | None = typer.Option(
        None,
        "--scan-timeout",
        min=0.1,
        help="Project scan deadline in seconds",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the full report as JSON",
    ),
) -> None:
    """Issue a scope contract for a proposed change."""
    plan = _read_text_option(changes, changes_file, "changes")
    config = _load_project_config(project_root)
    if scan_timeout is not None:
        config = replace(config, scan=replace(config.scan, deadline_seconds=scan_timeout))

    try:
        report = run_pre_check(
            request,
            project_root,
            proposed_files=files,
            proposed_changes=plan,
            config=config,
        )
        if out is not None:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(report.contract.to_json() + "\n", encoding="utf-8")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if as_json:
        _emit_json(report.to_dict())
    else:
        _render_pre_check(report)
        if out is not None:
            console.print(f"[cyan]Contract:[/cyan] {out}")

    if not report.passed:
        raise typer.Exit(2)


@cli.command("diff-review")
def diff_review(
    contract: str = typer.Option(
        ...,
        "--contract",
        help="Scope contract JSON file, or '-' to read it from stdin",
    ),
    changed: list[str] = typer.Option(
        [],
        "--changed",
        help="Modified file (repeatable)",
    ),
    added: list[str] = typer.Option(
        [],
        "--added",
        help="Created file (repeatable)",
    ),
    deleted: list[str] = typer.Option(
        [],
        "--deleted",
        help="Deleted file (repeatable)",
    ),
    summary: str = typer.Option(
        "",
        "--summary",
        help="Short description of what was implemented",
    ),
    project_root: Path | None = typer.Option(
        None,
        "--project-root",
        help="Project root; enables route checks and memory bank write-back",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the compliance report as JSON",
    ),
) -> None:
    """Review an implemented change against its scope contract."""
    if contract == "-":
        raw = sys.stdin.read()
    else:
        try:
            raw = Path(contract).read_text(encoding="utf-8")
        except OSError as exc:
            console.print(f"[bold red]Error:[/bold red] cannot read contract {contract}: {exc}")
            raise typer.Exit(1) from exc

    config = _load_project_config(project_root) if project_root is not None else VibecheckConfig()

    try:
        report = run_diff_review(
            raw,
            changed,
            added_files=added,
            deleted_files=deleted,
            summary=summary,
            project_root=project_root,
            config=config,
        )
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if as_json:
        _emit_json(report.to_dict())
    else:
        _render_diff_review(report)

    if not report.compliant:
        raise typer.Exit(2)


@memory_app.command(name="init")
def memory_init(
    project_root: Path = typer.Option(
        Path("."),
        "--project-root",
        help="Project root directory",
    ),
    name: str | None = typer.Option(None, "--name", help="Project name for the templates"),
    tech_stack: str | None = typer.Option(None, "--tech-stack", help="Tech stack summary"),
    description: str | None = typer.Option(None, "--description", help="One-paragraph project description"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Create the memory bank and the agent workflow rules."""
    config = _load_project_config(project_root)
    try:
        result = init_memory(
            project_root,
            project_name=name,
            tech_stack=tech_stack,
            description=description,
            config=config.memory,
        )
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    if as_json:
        _emit_json(result)
        return

    if result["initialized"]:
        console.print(f"[green]✓ {result['message']}[/green]")
        for created in result["createdFiles"]:
            console.print(f"  - {created}")
    else:
        console.print(f"[yellow]{escape(result['message'])}[/yellow]")
    console.print(f"[cyan]Path:[/cyan] {result['path']}")
    rules = result["claudeMd"]
    if rules["created"] or rules["updated"]:
        console.print(f"[cyan]Workflow rules:[/cyan] {rules['path']}")


@memory_app.command(name="read")
def memory_read(
    target: str = typer.Argument("all", help="Document name, features/<name>.md, or 'all'"),
    project_root: Path = typer.Option(
        Path("."),
        "--project-root",
        help="Project root directory",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Print one memory bank document, or all of them."""
    config = _load_project_config(project_root)
    result = read_memory(project_root, target, config.memory)

    if as_json:
        _emit_json(result)
    elif result["found"]:
        typer.echo(result["content"] or "")
    elif result["content"]:
        console.print(f"[bold red]Error:[/bold red] {escape(result['content'])}")
    else:
        console.print(f"[bold red]Error:[/bold red] {escape(result['file'])} not found")

    if not result["found"]:
        raise typer.Exit(1)


@memory_app.command(name="update")
def memory_update(
    target: str = typer.Argument(..., help="Document name or features/<name>.md"),
    content: str | None = typer.Option(None, "--content", help="New content"),
    content_file: Path | None = typer.Option(None, "--content-file", help="Read new content from a file"),
    mode: UpdateMode = typer.Option(UpdateMode.REPLACE, "--mode", help="replace or append"),
    project_root: Path = typer.Option(
        Path("."),
        "--project-root",
        help="Project root directory",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Replace or append to a memory bank document."""
    text = _read_text_option(content, content_file, "content")
    if text is None:
        console.print("[bold red]Error:[/bold red] --content or --content-file is required")
        raise typer.Exit(1)

    config = _load_project_config(project_root)
    try:
        result = update_memory(project_root, target, text, mode.value, config.memory)
    except (OSError, UnicodeError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    if as_json:
        _emit_json(result)
    elif result["updated"]:
        console.print(f"[green]✓ {escape(result['message'])}[/green]")
    else:
        console.print(f"[bold red]Error:[/bold red] {escape(result['message'])}")

    if not result["updated"]:
        raise typer.Exit(1)


@memory_app.command(name="spec")
def memory_spec(
    title: str = typer.Argument(..., help="Feature title; becomes the file name"),
    content: str | None = typer.Option(None, "--content", help="Spec markdown"),
    content_file: Path | None = typer.Option(None, "--content-file", help="Read spec markdown from a file"),
    project_root: Path = typer.Option(
        Path("."),
        "--project-root",
        help="Project root directory",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Save a feature spec under features/ in the memory bank."""
    text = _read_text_option(content, content_file, "content")
    if text is None:
        console.print("[bold red]Error:[/bold red] --content or --content-file is required")
        raise typer.Exit(1)

    config = _load_project_config(project_root)
    try:
        result = save_feature_spec(project_root, title, text, config.memory)
    except (OSError, UnicodeError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    if as_json:
        _emit_json(result)
    elif result["saved"]:
        console.print(f"[green]✓ {escape(result['message'])}[/green]")
    else:
        console.print(f"[bold red]Error:[/bold red] {escape(result['message'])}")

    if not result["saved"]:
        raise typer.Exit(1)


if __name__ == "__main__":
    cli()
