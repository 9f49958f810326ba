"""
Exceptions raised by luacsg.

Two failure classes cross the scripting boundary differently:

- ScriptError: the script was malformed (bad syntax, wrong argument
  shapes, a Lua runtime error).  Evaluation stops.
- ConstructionError: a native builder got geometrically degenerate input.
  Factories catch it, report it on the console and hand the script an
  empty handle, so evaluation continues.
"""

from typing import Optional


class CsgError(Exception):
    """Base exception for luacsg errors."""
    pass


class ScriptError(CsgError):
    """The script aborted; ``message`` is the Lua error text."""

    def __init__(self, message: str, script_name: Optional[str] = None):
        self.message = message
        self.script_name = script_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.script_name:
            return f"{self.script_name}: {self.message}"
        return self.message


class ConstructionError(CsgError, ValueError):
    """A node could not be built from the given parameters."""
    pass


class SandboxStateError(CsgError):
    """A sandbox operation was attempted in the wrong lifecycle state."""
    pass
