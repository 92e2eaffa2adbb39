"""
Stevia Error Hierarchy
======================

This module defines the exception hierarchy for the whole Stevia toolchain.
All exceptions inherit from SteviaError, allowing callers to catch every
toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
SteviaError (base)
├── CompileError (script compilation)
│   ├── MalformedLineError - question or constant line that cannot be parsed
│   ├── UnresolvedSymbolError - choice jumps to a bookmark that never exists
│   ├── DuplicateBookmarkError - bookmark declared twice (strict mode)
│   └── AddressOverflowError - address does not fit the 5-digit field
└── ExportError (e-book export)
    └── CoverImageError - cover image cannot be read or encoded

Error messages follow this format:
    filename:line: error: description
        source_line_text
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class SteviaError(Exception):
    """
    Base exception for all Stevia errors.

        try:
            compile_script(source)
        except SteviaError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in a script for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when the whole line is meant)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Compiler Exceptions
# =============================================================================

class CompileError(SteviaError):
    """
    Base exception for all compiler errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            story.ink:12: error: unresolved symbol 'ending'
                + [Go home] -> ending
            hint: did you mean 'endings'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None:
            parts.append(f"    {self.source_line}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class MalformedLineError(CompileError):
    """
    A question or constant line whose pattern could not be extracted.

    The classifier marks such lines as undefined; the assembler aborts
    the whole compilation as soon as it reaches one.
    """

    def __init__(
        self,
        line_number: int,
        reason: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.line_number = line_number
        self.reason = reason

        super().__init__(
            f"malformed line {line_number}: {reason}",
            location=location,
            source_line=source_line,
        )


class UnresolvedSymbolError(CompileError):
    """
    A choice refers to a bookmark that is never declared.

    Raised at the end of the patching pass. Similarly-named bookmarks
    are offered as a hint, which catches most typos.
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.name = name
        self.similar_symbols = similar_symbols or []

        hint = None
        if self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unresolved symbol '{name}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateBookmarkError(CompileError):
    """
    Bookmark declared more than once.

    Only raised when the compiler runs in strict mode; otherwise the
    first declaration wins and a warning is recorded.
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.name = name
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{name}' was first declared at {original_location}"

        super().__init__(
            f"duplicate bookmark '{name}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class AddressOverflowError(CompileError):
    """
    An address does not fit the fixed 5-digit decimal field.

    Compiled output addresses are written as exactly five ASCII digits,
    so scripts whose output grows past 99999 bytes cannot be addressed.
    """

    def __init__(self, value: int, location: Optional[SourceLocation] = None):
        self.value = value

        super().__init__(
            f"address {value} does not fit in a 5-digit field (0-99999)",
            location=location,
            hint="split the script so the compiled output stays under 100000 bytes",
        )


# =============================================================================
# Export Exceptions
# =============================================================================

class ExportError(SteviaError):
    """Base exception for e-book export errors."""
    pass


class CoverImageError(ExportError):
    """Cover image could not be opened or re-encoded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot use cover image '{path}': {reason}")
