"""Rich-based terminal display layer for the CLI.

Provides formatted output for document summaries, generation results,
warnings and error panels.  Uses module-level :class:`~rich.console.Console`
singletons: ``_console`` for regular output and ``_err_console`` for
diagnostics, which go to stderr.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.shared.constants import SERVICE_NAME, VERSION
from src.shared.models.generation import GenerationResult
from src.typegen.services.asyncapi_parser import AsyncAPIDocument

# ---------------------------------------------------------------------------
# Module-level Console singletons
# ---------------------------------------------------------------------------

_console = Console()
_err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Display functions
# ---------------------------------------------------------------------------


def print_version() -> None:
    _console.print(f"{SERVICE_NAME} {VERSION}")


def print_document_summary(document: AsyncAPIDocument) -> None:
    """Print the parsed document identity and a table of its contents.

    Parameters
    ----------
    document:
        The extracted AsyncAPI document.
    """
    header = Text()
    header.append(document.title, style="bold white")
    header.append(f" v{document.version}", style="dim")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Section", style="cyan", min_width=12)
    table.add_column("Count", justify="right", min_width=6)
    table.add_row("Channels", str(len(document.channels)))
    table.add_row("Messages", str(_count_messages(document)))
    table.add_row("Schemas", str(len(document.schemas)))

    _console.print(
        Panel(
            header,
            title="[bold]AsyncAPI Document[/bold]",
            border_style="blue",
            expand=False,
        )
    )
    _console.print(table)


def print_generation_summary(output_path: str | Path, result: GenerationResult) -> None:
    """Print where the TypeScript file was written and how large it is."""
    text = Text()
    text.append("Generated: ", style="bold")
    text.append(f"{output_path}\n", style="green")
    text.append("Declarations: ", style="bold")
    text.append(f"{len(result.declarations)}\n")
    text.append("Size: ", style="bold")
    text.append(f"{result.size_bytes / 1024:.2f} KB")

    _console.print(
        Panel(
            text,
            title="[bold green]Success[/bold green]",
            border_style="green",
            expand=False,
        )
    )
    if result.warnings:
        print_warnings(result.warnings)


def print_validation_success(document: AsyncAPIDocument) -> None:
    """Print the identity of a document that passed validation."""
    text = Text()
    text.append("Title: ", style="bold")
    text.append(f"{document.title}\n")
    text.append("Version: ", style="bold")
    text.append(document.version)
    if document.description:
        text.append("\nDescription: ", style="bold")
        text.append(document.description)

    _console.print(
        Panel(
            text,
            title="[bold green]Valid AsyncAPI document[/bold green]",
            border_style="green",
            expand=False,
        )
    )


def print_warnings(warnings: list[str]) -> None:
    """Print non-fatal findings to stderr."""
    for warning in warnings:
        line = Text("Warning: ", style="yellow")
        line.append(warning)
        _err_console.print(line)


def print_error(error: str | Exception) -> None:
    """Print an error message in a red Rich panel on stderr.

    Parameters
    ----------
    error:
        Error message string or Exception instance.
    """
    error_text = getattr(error, "detail", None) or str(error)
    _err_console.print(
        Panel(
            Text(error_text, style="bold white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            expand=False,
        )
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _count_messages(document: AsyncAPIDocument) -> int:
    """Number of distinct message names across components and channels."""
    names = {message.name for message in document.messages}
    for channel in document.channels:
        names.update(message.name for message in channel.messages)
    return len(names)
