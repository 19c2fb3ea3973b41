"""
GlobWatch: run commands when files matching glob patterns change.

Provides both a CLI and library API for watching a directory tree and
dispatching one command per matching file-system event.
"""

__version__ = "1.0.1"
