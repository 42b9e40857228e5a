"""
Standardized error handling and exit codes for the forkwatch CLI.
"""

from enum import IntEnum

from rich.console import Console

from forkwatch.core.errors import ConflictError, ForkwatchError, NotFoundError, ValidationError

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for forkwatch CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Unexpected failure, including filesystem errors."""

    USER_ERROR = 2
    """Bad input: unknown unit, malformed version, existing target."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Unit not found: Widget",
        ...     solution="forkwatch list  # to see available units",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


_SOLUTIONS: dict[type[ForkwatchError], str] = {
    NotFoundError: "forkwatch list  # to see units and their versions",
    ValidationError: "Use version keys like v1, v2 or v1_2",
    ConflictError: "forkwatch list  # to see which versions already exist",
}


def exit_code_for(error: ForkwatchError) -> ExitCode:
    if isinstance(error, (ValidationError, NotFoundError, ConflictError)):
        return ExitCode.USER_ERROR
    return ExitCode.GENERAL_ERROR


def print_forkwatch_error(error: ForkwatchError) -> ExitCode:
    """Print a typed error with a suggested next step; return its exit code."""
    solution = next(
        (hint for error_type, hint in _SOLUTIONS.items() if isinstance(error, error_type)),
        None,
    )
    print_error(error.message, reason=f"[{error.code}]", solution=solution)
    return exit_code_for(error)


__all__ = [
    "ExitCode",
    "exit_code_for",
    "print_error",
    "print_forkwatch_error",
]
