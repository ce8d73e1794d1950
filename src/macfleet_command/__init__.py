"""macfleet command library."""

from .exceptions import CommandError, CommandErrorCodes
from .memory import InMemoryCommandRunner
from .models import CommandResult
from .runner import CommandRunner, SubprocessCommandRunner

__all__ = [
    "CommandRunner",
    "SubprocessCommandRunner",
    "InMemoryCommandRunner",
    "CommandResult",
    "CommandError",
    "CommandErrorCodes",
]
