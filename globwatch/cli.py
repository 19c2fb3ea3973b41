import signal
import threading

import click
from rich.markup import escape

from globwatch import __version__
from globwatch import config
from globwatch import console
from globwatch import logger as globwatch_logger
from globwatch.dispatcher import CommandDispatcher
from globwatch.errors import (EXIT_CANCELLED, ConfigurationError, exit_code_for)

EPILOG = """
Placeholders %path, %pathBefore and %event are available inside your command argument.
The argument is split into words with shell quoting rules, so quotes and
backslashes are consumed; quote a placeholder to keep a path with spaces whole.

\b
Return values:
  0 - Execution aborted by user
  1 - Invalid arguments
  2 - Unexpected error

\b
Examples:
  globwatch "echo %path"
  globwatch "minify %path" -i "**/*.css|**/*.js" -e cm -ic
"""


def install_stop_handlers(stop_event):
    """
    Set stop_event on SIGINT and SIGTERM.

    Returns:
        dict: The previous handlers, for restore_handlers().
    """
    def request_stop(signum, frame):
        stop_event.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, request_stop)
    return previous


def restore_handlers(previous):
    for signum, handler in previous.items():
        signal.signal(signum, handler)


@click.command(epilog=EPILOG, context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("command", nargs=-1)
@click.option("--include", "-i", default=None,
              help="Glob pattern(s), separated by '|', for paths to watch. The default value is '**/*.*'.")
@click.option("--exclude", "-x", default=None,
              help="Glob pattern(s), separated by '|', for paths to exclude from watching.")
@click.option("--events", "-e", default=None,
              help="The events to watch: c - created, m - modified, d - deleted, r - renamed. The default value is 'cmdr'.")
@click.option("--dir", "-d", "directory", default=None,
              help="The base directory to watch. The default is the current directory.")
@click.option("--workdir", "-w", default=None,
              help="The working directory of the executed command. The default is the directory where the change occurred.")
@click.option("--ignorecase", "-ic", is_flag=True, default=False,
              help="Match the glob patterns case-insensitively.")
@click.option("--config", "-c", "config_path", default=None, help="Path to a configuration TOML or YAML file.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="globwatch")
@click.pass_context
def main(ctx, command, include, exclude, events, directory, workdir, ignorecase, config_path, debug):
    """
    GlobWatch: Watch the file system using glob patterns and run a command on changes.
    """
    try:
        settings = config.load_config(config_path)
        log_settings = settings.get("logging", {}) or {}
        level = "DEBUG" if debug else log_settings.get("level", "INFO")
        globwatch_logger.setup_logger(
            "globwatch",
            log_settings.get("log_dir"),
            "globwatch.log",
            level=globwatch_logger.level_from_name(level),
        )
        cfg = config.build_config(
            settings,
            command=" ".join(command) if command else None,
            include=include,
            exclude=exclude,
            events=events,
            dir=directory,
            workdir=workdir,
            ignore_case=ignorecase or None,
        )
        dispatcher = CommandDispatcher(cfg)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        if not command:
            click.echo(ctx.get_help())
        ctx.exit(exit_code_for(e))

    console.print_preamble(cfg)

    stop_event = threading.Event()
    previous = install_stop_handlers(stop_event)
    try:
        dispatcher.run(stop_event)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(exit_code_for(e))
    except Exception as e:
        console.error_console().print(f"[bold red]Unexpected error[/bold red]: {escape(str(e))}")
        ctx.exit(exit_code_for(e))
    finally:
        restore_handlers(previous)

    if stop_event.is_set():
        click.echo("Stopping by request...")
    ctx.exit(EXIT_CANCELLED)


if __name__ == "__main__":
    main()
