"""Console output for GlobWatch: the startup summary and command output."""

import click
from rich.console import Console
from rich.markup import escape

from globwatch.events import ALL_KINDS, ChangeKind

BANNER = (
    "  ,——._.,——,—.\n"
    " ( @ ) ( @ )  \\  [GlobWatch]\n"
    "  `—´   `—´\n"
)

KIND_ORDER = (ChangeKind.CREATED, ChangeKind.MODIFIED, ChangeKind.DELETED, ChangeKind.RENAMED)

_stderr_console = None


def error_console():
    global _stderr_console
    if _stderr_console is None:
        _stderr_console = Console(stderr=True, highlight=False)
    return _stderr_console


def echo_output(line):
    """Echo one line of the command's standard output."""
    click.echo(line)


def echo_error(line):
    """Echo one line of the command's standard error in red."""
    error_console().print(line, style="red", markup=False, soft_wrap=True)


def print_preamble(config, console=None):
    """
    Print a summary of what is being watched and what will run.

    Args:
        config (WatchConfig): The configuration in use.
        console (Console, optional): Target console; stdout by default.
    """
    console = console or Console(highlight=False)
    root = config.root
    workdir = config.working_directory or root

    console.print(escape(BANNER))
    console.print("- Watching:")
    for pattern in config.include:
        console.print(f"  - [bold green]{escape(pattern)}[/bold green]")

    if config.exclude_patterns:
        console.print("- Except:")
        for pattern in config.exclude_patterns:
            console.print(f"  - [bold red]{escape(pattern)}[/bold red]")

    console.print(f"- Inside: [bold]{escape(root)}[/bold]")

    if config.ignore_case:
        console.print("- Ignore Case")

    if config.kinds != ALL_KINDS:
        names = [k.value for k in KIND_ORDER if k in config.kinds]
        console.print(f"- For events of type: [bold]{', '.join(names).capitalize()}[/bold]")

    console.print(f"- Using command: [bold]{escape(config.command)}[/bold]")

    if workdir != root:
        console.print(f"- In working directory: [bold]{escape(workdir)}[/bold]")
    console.print()
