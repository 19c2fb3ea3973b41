"""Normalized file-system change events."""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ChangeKind(Enum):
    """Kinds of file-system mutations GlobWatch reacts to."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


ALL_KINDS = frozenset(ChangeKind)

# Letters of the compact event selector, e.g. "cm" for created and modified.
KIND_CODES = {
    "c": ChangeKind.CREATED,
    "m": ChangeKind.MODIFIED,
    "d": ChangeKind.DELETED,
    "r": ChangeKind.RENAMED,
}


@dataclass(frozen=True)
class ChangeEvent:
    """
    One file-system mutation below the watch root.

    Attributes:
        kind: What happened to the path.
        path: Path relative to the watch root, '/' separated.
        previous_path: Path before the rename; only set for renames.
    """

    kind: ChangeKind
    path: str
    previous_path: Optional[str] = None

    def __post_init__(self):
        if not self.path:
            raise ValueError("ChangeEvent path must not be empty")
        if self.kind is ChangeKind.RENAMED:
            if not self.previous_path:
                raise ValueError("Renamed events need a previous path")
        elif self.previous_path is not None:
            raise ValueError(f"{self.kind.value} events cannot carry a previous path")

    @property
    def native_path(self) -> str:
        return to_native(self.path)

    @property
    def native_previous_path(self) -> str:
        return to_native(self.previous_path) if self.previous_path else ""

    def __str__(self):
        if self.kind is ChangeKind.RENAMED:
            return f"{self.kind.value}: {self.previous_path} -> {self.path}"
        return f"{self.kind.value}: {self.path}"


def to_canonical(path: str) -> str:
    """Convert a relative path to the '/' separated form used for matching."""
    return path.replace("\\", "/")


def to_native(path: str) -> str:
    return path.replace("/", os.sep)
