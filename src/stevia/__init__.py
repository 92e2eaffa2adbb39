"""
Stevia - Branching-Dialogue Script Compiler
===========================================

This package compiles Stevia scripts, a line-oriented language for
interactive fiction, into the flat pipe-delimited format read by the
Stevia playback engine.

A script is made of paragraphs, choices that jump to named bookmarks,
string constants and comments:

    CONST HERO = "Ada"
    Hello {HERO}!
    + [Go left] -> left
    + [Go right] -> right
    === left
    A dark corridor.
    -> END
    === right
    A sunny garden.
    -> END

Main Components
---------------
- **compiler**: Line classifier and two-pass assembler
    Converts script source (.ink) to Stevia output (.stevia)

- **epub**: E-book export
    Renders a script as a paginated EPUB book

- **cli**: The ``stevia`` command

Quick Start
-----------
Compile a script:
    >>> from stevia import compile_script
    >>> compile_script("Hello world").output
    'P;Hello world'

Keep the compiler around to write files:
    >>> from stevia import Compiler
    >>> compiler = Compiler()
    >>> compiler.compile_file("story.ink")
    >>> compiler.write_output("story.stevia")

Or use the command-line tool:
    $ stevia compile story.ink
    $ stevia epub story.ink --title "My Story"
"""

__version__ = "0.1.0"
__author__ = "Stevia Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from stevia.compiler import (
    Compiler,
    CompiledScript,
    ScriptDocument,
    Line,
    LineKind,
    classify,
    compile_script,
    compile_file,
)
from stevia.errors import (
    SteviaError,
    SourceLocation,
    CompileError,
    MalformedLineError,
    UnresolvedSymbolError,
    DuplicateBookmarkError,
    AddressOverflowError,
    ExportError,
    CoverImageError,
)
from stevia.epub import EpubWriter, export_epub
from stevia.config import ExportConfig

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Compiler
    "Compiler",
    "CompiledScript",
    "ScriptDocument",
    "Line",
    "LineKind",
    "classify",
    "compile_script",
    "compile_file",
    # E-book export
    "EpubWriter",
    "export_epub",
    # Configuration
    "ExportConfig",
    # Exception hierarchy
    "SteviaError",
    "SourceLocation",
    "CompileError",
    "MalformedLineError",
    "UnresolvedSymbolError",
    "DuplicateBookmarkError",
    "AddressOverflowError",
    "ExportError",
    "CoverImageError",
]
