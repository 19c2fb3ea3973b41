import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

import toml
import yaml

from globwatch.errors import ConfigurationError
from globwatch.events import ALL_KINDS, KIND_CODES, ChangeKind
from globwatch.matcher import DEFAULT_INCLUDE_PATTERNS

DEFAULT_CONFIG_FILENAME = "globwatch.toml"
DEFAULT_CONFIG_PATH = os.path.join(".", DEFAULT_CONFIG_FILENAME)
ENV_CONFIG_DIR_VAR = "GLOBWATCH_CONFIG_DIR"


@dataclass(frozen=True)
class WatchConfig:
    """
    Immutable settings consumed by the watcher and the dispatcher.

    Attributes:
        command: Program name followed by one argument string with placeholders.
        root_directory: Directory to watch; the current directory when unset.
        working_directory: Directory the command runs in; derived from the
            changed path when unset.
        include_patterns: Globs of paths to watch; '**/*.*' when empty.
        exclude_patterns: Globs of paths to ignore.
        watched_kinds: Event kinds to react to.
        ignore_case: Match patterns case-insensitively.
    """

    command: str
    root_directory: Optional[str] = None
    working_directory: Optional[str] = None
    include_patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    watched_kinds: FrozenSet[ChangeKind] = field(default=ALL_KINDS)
    ignore_case: bool = False

    @property
    def root(self) -> str:
        """Absolute path of the watch root."""
        return os.path.abspath(self.root_directory or os.getcwd())

    @property
    def include(self) -> Tuple[str, ...]:
        return self.include_patterns or DEFAULT_INCLUDE_PATTERNS

    @property
    def kinds(self) -> FrozenSet[ChangeKind]:
        return self.watched_kinds or ALL_KINDS


def sanitize(value):
    """
    Strip one pair of surrounding double quotes from a setting.

    Returns:
        str or None: The cleaned value, or None if it is blank.
    """
    if value is None:
        return None
    value = str(value)
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    if not value.strip():
        return None
    return value


def split_patterns(value) -> Tuple[str, ...]:
    """
    Turn a '|' separated string (or a list of strings) into a tuple of globs.
    """
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        items = []
        for item in value:
            items.extend(split_patterns(item))
        return tuple(items)
    value = sanitize(value)
    if value is None:
        return ()
    return tuple(p for p in value.split("|") if p)


def parse_event_kinds(code) -> FrozenSet[ChangeKind]:
    """
    Parse the compact event selector.

    Each letter enables one kind: c - created, m - modified, d - deleted,
    r - renamed. Unknown letters are ignored; when no letter is recognized
    all kinds are watched.
    """
    code = sanitize(code)
    if code is None:
        return ALL_KINDS
    kinds = frozenset(KIND_CODES[c] for c in code.lower() if c in KIND_CODES)
    return kinds or ALL_KINDS


def _read_file(config_path):
    with open(config_path, "r") as f:
        if config_path.endswith((".yaml", ".yml")):
            data = yaml.safe_load(f)
        else:
            data = toml.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")
    return data


def load_config(cli_config_path=None):
    """
    Load settings from a TOML or YAML file.

    Precedence:
      1. cli_config_path if provided.
      2. Environment variable GLOBWATCH_CONFIG_DIR (looking for globwatch.toml).
      3. ./globwatch.toml if it exists.

    Returns:
        dict: The settings, empty when no file is found.

    Raises:
        ConfigurationError: If an explicitly requested file is missing or unreadable.
    """
    if cli_config_path:
        config_path = cli_config_path
    elif os.environ.get(ENV_CONFIG_DIR_VAR):
        config_path = os.path.join(os.environ[ENV_CONFIG_DIR_VAR], DEFAULT_CONFIG_FILENAME)
    elif os.path.exists(DEFAULT_CONFIG_PATH):
        config_path = DEFAULT_CONFIG_PATH
    else:
        return {}

    if not os.path.exists(config_path):
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        return _read_file(config_path)
    except (OSError, toml.TomlDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error reading configuration file {config_path}: {e}")


def build_config(settings=None, **overrides) -> WatchConfig:
    """
    Build a validated WatchConfig from file settings and command line values.

    Values in overrides that are not None take precedence over the
    [watch] table of the settings.

    Raises:
        ConfigurationError: If the command is missing or a setting has the wrong type.
    """
    watch = (settings or {}).get("watch") or {}
    if not isinstance(watch, dict):
        raise ConfigurationError("The [watch] settings must be a table")
    watch = dict(watch)
    for key, value in overrides.items():
        if value is not None:
            watch[key] = value

    command = sanitize(watch.get("command"))
    if command is None:
        raise ConfigurationError("A command to run is required")

    ignore_case = watch.get("ignore_case", False)
    if not isinstance(ignore_case, bool):
        raise ConfigurationError("ignore_case must be true or false")

    return WatchConfig(
        command=command,
        root_directory=sanitize(watch.get("dir")),
        working_directory=sanitize(watch.get("workdir")),
        include_patterns=split_patterns(watch.get("include")),
        exclude_patterns=split_patterns(watch.get("exclude")),
        watched_kinds=parse_event_kinds(watch.get("events")),
        ignore_case=ignore_case,
    )
