"""
Dispatcher module for GlobWatch.

Consumes the watcher's event stream and runs the configured command once
per event whose path matches the include/exclude patterns. Commands run one
at a time: the next event is not requested before the running process has
exited, so a slow command also slows down how often the tree is observed.
"""

import os
import shlex
import subprocess
import threading
from typing import List, Optional

from globwatch import console
from globwatch.config import WatchConfig
from globwatch.errors import ConfigurationError, ProcessSpawnError
from globwatch.events import ChangeEvent
from globwatch.logger import get_logger
from globwatch.matcher import PathMatcher
from globwatch.utils import spawn_stream_pump
from globwatch.watcher import ChangeWatcher

PLACEHOLDER_EVENT = "%event"
PLACEHOLDER_PATH_BEFORE = "%pathBefore"
PLACEHOLDER_PATH = "%path"

PUMP_JOIN_TIMEOUT = 5.0


class CommandTemplate:
    """
    A program name and one argument string with placeholders.

    Placeholders:
        %event       kind of the change (created, modified, deleted, renamed)
        %pathBefore  path before a rename, empty for other events
        %path        path of the changed file, relative to the watch root

    The argument string is split into words with shell quoting rules once,
    when the template is created. On POSIX quotes and backslashes are
    consumed by that split, so build_argv can differ from the text returned
    by resolve_argument: "cp 'a b' %path" runs cp with "a b" as one word.

    Raises:
        ConfigurationError: If the program is empty or the argument has
        unbalanced quotes.
    """

    def __init__(self, program: str, argument: str = ""):
        if not program:
            raise ConfigurationError("The command to run must not be empty")
        self.program = program
        self.argument = argument or ""
        try:
            self.tokens = shlex.split(self.argument, posix=os.name != "nt")
        except ValueError as e:
            raise ConfigurationError(f"Invalid command arguments '{self.argument}': {e}")

    @classmethod
    def parse(cls, command: Optional[str]) -> "CommandTemplate":
        """
        Split a command line into the program and the remaining argument string.

        Raises:
            ConfigurationError: If the command is empty or badly quoted.
        """
        tokens = (command or "").strip().split(None, 1)
        if not tokens:
            raise ConfigurationError("The command to run must not be empty")
        return cls(tokens[0], tokens[1] if len(tokens) > 1 else "")

    @staticmethod
    def substitute(text: str, event: ChangeEvent) -> str:
        # %pathBefore goes before %path, which is a prefix of it.
        return (
            text.replace(PLACEHOLDER_EVENT, event.kind.value)
            .replace(PLACEHOLDER_PATH_BEFORE, event.native_previous_path)
            .replace(PLACEHOLDER_PATH, event.native_path)
        )

    def resolve_argument(self, event: ChangeEvent) -> str:
        """Return the argument string with placeholders replaced."""
        return self.substitute(self.argument, event)

    def build_argv(self, event: ChangeEvent) -> List[str]:
        """
        Build the argument vector for the process.

        The argument template is tokenized before substitution, so a
        substituted path containing spaces stays a single argument.
        """
        return [self.program] + [self.substitute(t, event) for t in self.tokens]

    def __str__(self):
        return f"{self.program} {self.argument}".rstrip()


class CommandDispatcher:
    """
    Runs the configured command for every matching change event, serialized.

    Attributes:
        config: The WatchConfig in use.
        template: Parsed command template.
        matcher: PathMatcher applied to every delivered event.
        watcher: Source of events; anything with a watch(stop_event) generator.
        runs: Number of commands started.
        failures: Number of commands that could not be started.
    """

    def __init__(self, config: WatchConfig, watcher=None, matcher=None,
                 stdout_sink=None, stderr_sink=None):
        if config is None:
            raise ConfigurationError("A configuration is required")

        self.config = config
        self.template = CommandTemplate.parse(config.command)
        self.matcher = matcher or PathMatcher(
            config.include_patterns, config.exclude_patterns, config.ignore_case
        )
        self.watcher = watcher if watcher is not None else ChangeWatcher(config)
        self.stdout_sink = stdout_sink or console.echo_output
        self.stderr_sink = stderr_sink or console.echo_error
        self.runs = 0
        self.failures = 0
        self.logger = get_logger("dispatcher")

    def resolve_working_directory(self, event: ChangeEvent) -> str:
        """
        Pick the directory the command runs in.

        The configured working directory wins. Otherwise the directory of the
        changed path below the root is used, or the current directory if that
        directory no longer exists.
        """
        if self.config.working_directory:
            return self.config.working_directory

        changed = os.path.join(self.config.root, event.native_path)
        workdir = os.path.dirname(changed)
        if workdir and os.path.isdir(workdir):
            return workdir
        return os.getcwd()

    def execute(self, event: ChangeEvent) -> int:
        """
        Run the command for one event and wait for it to exit.

        Output is forwarded line by line while the process runs. A process
        that is already running is always waited for.

        Returns:
            int: The exit code of the process.

        Raises:
            ProcessSpawnError: If the process cannot be started.
        """
        argv = self.template.build_argv(event)
        workdir = self.resolve_working_directory(event)
        self.logger.info(f"Running: {' '.join(argv)} (in {workdir})")

        try:
            process = subprocess.Popen(
                argv,
                cwd=workdir,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise ProcessSpawnError(f"Cannot run '{self.template.program}': {e}")

        self.runs += 1
        pumps = [
            spawn_stream_pump(process.stdout, self.stdout_sink, name="globwatch-stdout"),
            spawn_stream_pump(process.stderr, self.stderr_sink, name="globwatch-stderr"),
        ]
        returncode = process.wait()
        for pump in pumps:
            pump.join(PUMP_JOIN_TIMEOUT)

        if returncode != 0:
            self.logger.warning(f"Command exited with code {returncode}: {' '.join(argv)}")
        else:
            self.logger.debug(f"Command finished: {' '.join(argv)}")
        return returncode

    def handle(self, event: ChangeEvent) -> Optional[int]:
        """
        Process one delivered event.

        Returns:
            int or None: The exit code, or None if the path did not match or
            the command could not be started.
        """
        if not self.matcher.test(event.path):
            self.logger.debug(f"Ignoring {event}")
            return None

        self.logger.info(f"Change detected: {event}")
        try:
            return self.execute(event)
        except ProcessSpawnError as e:
            self.failures += 1
            self.logger.error(str(e))
            return None

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Dispatch commands until stop_event is set.

        A stop request while a command runs takes effect once it has exited.

        Raises:
            WatchSetupError: If the root directory cannot be watched.
        """
        if stop_event is None:
            stop_event = threading.Event()

        self.logger.info(f"Watching {self.config.root} for '{self.template}'")
        events = self.watcher.watch(stop_event)
        try:
            for event in events:
                self.handle(event)
                if stop_event.is_set():
                    break
        finally:
            events.close()
        self.logger.info(f"Stopped after {self.runs} command runs, {self.failures} failures")
