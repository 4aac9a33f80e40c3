# blastiface/errors.py
from __future__ import annotations

from typing import Optional, Sequence

__all__ = [
    "BlastInterfaceError",
    "InputResolutionError",
    "ToolNotFoundError",
    "ExternalProcessError",
    "ValidationError",
    "FilesystemError",
]


class BlastInterfaceError(Exception):
    """Base class for every failure raised inside blastiface."""


class InputResolutionError(BlastInterfaceError):
    """No usable sequence data could be obtained for a query or database."""


class ToolNotFoundError(BlastInterfaceError):
    """No executable could be located for the requested program."""


class ExternalProcessError(BlastInterfaceError):
    """An external program could not be spawned or exited non-zero."""

    def __init__(self, message: str, command: Sequence[str] = (), returncode: Optional[int] = None):
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode


class ValidationError(BlastInterfaceError, ValueError):
    """Unsupported tool name or malformed option value."""


class FilesystemError(BlastInterfaceError, OSError):
    """Scratch storage could not be created/written, or a deletion target is unsafe."""
