"""
CLI Error Reporting
===================

Maps exceptions raised while compiling or exporting a script to a message
on stderr and a process exit code.

| Exception                              | Exit code      |
|----------------------------------------|----------------|
| CompileError (already has location)    | BUILD_ERROR    |
| other SteviaError (export, cover)      | BUILD_ERROR    |
| bad parameter, unreadable input file   | INVALID_ARGS   |
| anything else                          | INTERNAL_ERROR |
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from stevia.errors import CompileError, SteviaError


class ExitCode(IntEnum):
    """Exit codes of the stevia command."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Script could not be compiled or exported
    INVALID_ARGS = 2     # Bad option value or unreadable input
    INTERNAL_ERROR = 3   # Bug in stevia itself


# Input problems the user can fix without touching the script
INPUT_ERRORS = (click.BadParameter, FileNotFoundError, PermissionError, UnicodeDecodeError)


def describe_error(error: Exception, error_type: str | None = None) -> tuple[ExitCode, str]:
    """
    Choose the exit code and stderr message for an exception.

    Args:
        error: The exception raised by a command
        error_type: Prefix for non-compile Stevia errors (e.g. "Export")

    Returns:
        (exit code, message) pair
    """
    if isinstance(error, CompileError):
        return ExitCode.BUILD_ERROR, str(error)

    if isinstance(error, SteviaError):
        label = f"{error_type} error" if error_type else "Error"
        return ExitCode.BUILD_ERROR, f"{label}: {error}"

    if isinstance(error, INPUT_ERRORS):
        return ExitCode.INVALID_ARGS, f"Error: {error}"

    return ExitCode.INTERNAL_ERROR, f"Internal error: {error}"


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None,
) -> NoReturn:
    """
    Report an exception raised by a stevia command and exit.

    Internal errors also print their traceback in verbose mode.

    Raises:
        SystemExit: Always
    """
    code, message = describe_error(error, error_type)
    click.echo(message, err=True)

    if code is ExitCode.INTERNAL_ERROR and verbose:
        traceback.print_exc()

    sys.exit(code)
