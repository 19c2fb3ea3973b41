"""
Glob matching of relative paths against include and exclude patterns.

Patterns are split on '/' and every segment is compiled with the standard
library fnmatch translation, so inside a segment:

  *       any run of characters
  ?       exactly one character
  [abc]   one character of a class, [!abc] negates it

Because matching happens segment by segment, '*' never crosses a directory
boundary. A segment that is exactly '**' matches zero or more whole
segments. Names starting with '.' are only matched by a segment that starts
with '.' as well, and '**' does not descend into them.
"""

import fnmatch
import re
from typing import Iterable, List, Optional, Sequence

from globwatch.errors import ConfigurationError
from globwatch.events import to_canonical

DEFAULT_INCLUDE_PATTERNS = ("**/*.*",)

GLOBSTAR = "**"


def _check_brackets(pattern: str, segment: str) -> None:
    """Reject segments with an unterminated character class."""
    i = 0
    n = len(segment)
    while i < n:
        if segment[i] == "[":
            j = i + 1
            if j < n and segment[j] == "!":
                j += 1
            # A ']' right after the opening bracket is a literal member.
            if j < n and segment[j] == "]":
                j += 1
            while j < n and segment[j] != "]":
                j += 1
            if j >= n:
                raise ConfigurationError(
                    f"Invalid glob pattern '{pattern}': unterminated character class"
                )
            i = j + 1
        else:
            i += 1


class GlobPattern:
    """A single compiled glob pattern."""

    def __init__(self, pattern: str, ignore_case: bool = False):
        if pattern is None or not pattern.strip():
            raise ConfigurationError("Glob patterns must not be empty")

        self.pattern = pattern
        flags = re.IGNORECASE if ignore_case else 0
        self._segments: List[Optional[tuple]] = []
        for segment in to_canonical(pattern.strip()).strip("/").split("/"):
            if segment in ("", "."):
                continue
            if segment == GLOBSTAR:
                # Collapse runs of '**' so matching stays linear in practice.
                if not self._segments or self._segments[-1] is not None:
                    self._segments.append(None)
                continue
            _check_brackets(pattern, segment)
            regex = re.compile(fnmatch.translate(segment), flags)
            self._segments.append((regex, segment.startswith(".")))

    def matches(self, parts: Sequence[str]) -> bool:
        return self._match(0, parts, 0)

    def _match(self, si: int, parts: Sequence[str], pi: int) -> bool:
        segments = self._segments
        while si < len(segments):
            segment = segments[si]
            if segment is None:
                # '**' as the last segment swallows everything that is left.
                if si == len(segments) - 1:
                    return all(not p.startswith(".") for p in parts[pi:])
                for skip in range(pi, len(parts)):
                    if self._match(si + 1, parts, skip):
                        return True
                    if parts[skip].startswith("."):
                        return False
                return False
            if pi >= len(parts):
                return False
            regex, allows_dot = segment
            part = parts[pi]
            if part.startswith(".") and not allows_dot:
                return False
            if not regex.match(part):
                return False
            si += 1
            pi += 1
        return pi == len(parts)

    def __repr__(self):
        return f"GlobPattern({self.pattern!r})"


class PathMatcher:
    """
    Tests relative paths against include and exclude glob patterns.

    A path matches when it matches at least one include pattern and no
    exclude pattern. With no include patterns, '**/*.*' is used. The
    matcher is read-only after construction and safe to share between
    threads.
    """

    def __init__(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        ignore_case: bool = False,
    ):
        include = list(include or [])
        if not include:
            include = list(DEFAULT_INCLUDE_PATTERNS)

        self.ignore_case = ignore_case
        self.include = tuple(GlobPattern(p, ignore_case) for p in include)
        self.exclude = tuple(GlobPattern(p, ignore_case) for p in (exclude or []))

    def test(self, relative_path: Optional[str]) -> bool:
        """
        Test a relative path against the patterns.

        Args:
            relative_path: Path relative to the watch root, with either separator.

        Returns:
            bool: True if the path is included and not excluded.
        """
        if not relative_path:
            return False

        path = to_canonical(relative_path)
        if path.startswith("./"):
            path = path[2:]
        parts = [p for p in path.split("/") if p]
        if not parts:
            return False

        if any(p.matches(parts) for p in self.exclude):
            return False
        return any(p.matches(parts) for p in self.include)
