"""
Stevia Compiler - Main Interface
================================

This module provides the Compiler class, the primary interface for turning
Stevia script source into the pipe-delimited output consumed by the
playback engine. It coordinates the classifier, the pass 1 emitter and the
pass 2 patcher.

Example Usage
-------------
>>> from stevia.compiler import Compiler
>>>
>>> compiler = Compiler()
>>> script = compiler.compile_string('''
... Do you like it?
... + [Yes] -> like
... + [No] -> hate
... === like
... Thank you!
... -> END
... === hate
... Oh, I see
... -> END
... ''')
>>> script.output
'P;Do you like it?|Q;Yes;00039;No;00055|P;Thank you!|E;|P;Oh, I see|E;'
>>> compiler.write_output("story.stevia")

A compilation either succeeds completely or raises a CompileError; no
partial output is ever produced.
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional
import logging

from stevia.compiler.codegen import (
    ADDRESS_WIDTH,
    OUTPUT_ENCODING,
    Emitter,
    resolve,
)
from stevia.compiler.document import ScriptDocument
from stevia.errors import SteviaError

logger = logging.getLogger(__name__)


# =============================================================================
# Compiled Script
# =============================================================================

@dataclass(frozen=True)
class CompiledScript:
    """
    Result of a successful compilation.

    Attributes:
        output: The serialised output text
        document: The classified source lines
        symbols: Read-only bookmark name -> address table
        constants: Read-only constant name -> value table
        warnings: Non-fatal diagnostics (duplicate bookmarks, unknown
                  placeholders), in source order
    """
    output: str
    document: ScriptDocument
    symbols: Mapping[str, int]
    constants: Mapping[str, str]
    warnings: tuple[str, ...] = ()

    def tokens(self) -> list[str]:
        """Split the output into its P;/Q;/E; tokens."""
        return self.output.split("|") if self.output else []


def compile_document(document: ScriptDocument, strict: bool = False) -> CompiledScript:
    """
    Run both passes over an already classified document.

    Args:
        document: The Script Document
        strict: Treat duplicate bookmarks as errors

    Returns:
        The compiled script

    Raises:
        CompileError: If compilation fails
    """
    emission = Emitter(strict=strict).emit(document)
    patched = resolve(
        emission.buffer,
        emission.relocations,
        emission.symbols,
        emission.references,
    )

    return CompiledScript(
        output=patched.decode(OUTPUT_ENCODING),
        document=document,
        symbols=MappingProxyType(dict(emission.symbols)),
        constants=MappingProxyType(dict(emission.constants)),
        warnings=tuple(emission.warnings),
    )


# =============================================================================
# Compiler
# =============================================================================

class Compiler:
    """
    Main Stevia compiler class.

    Each call to compile_string() or compile_file() is an independent run
    starting from empty tables; the last successful result is kept so it
    can be written out.

    Attributes:
        strict: If True, duplicate bookmarks raise instead of warning
        encoding: Text encoding used to read source files
    """

    def __init__(self, strict: bool = False, encoding: str = "utf-8"):
        """
        Initialize the compiler.

        Args:
            strict: Raise DuplicateBookmarkError for repeated bookmarks
            encoding: Encoding used to read source files
        """
        self._strict = strict
        self._encoding = encoding
        self._result: Optional[CompiledScript] = None

    # =========================================================================
    # Compilation Methods
    # =========================================================================

    def compile_string(self, source: str, filename: str = "<input>") -> CompiledScript:
        """
        Compile script source from a string.

        Args:
            source: Script source code
            filename: Virtual filename for error messages

        Returns:
            The compiled script

        Raises:
            CompileError: If compilation fails
        """
        self._result = None

        document = ScriptDocument.from_text(source, filename)
        result = compile_document(document, strict=self._strict)

        logger.debug(
            f"Compiled {filename}: {len(result.output)} characters, "
            f"{len(result.symbols)} bookmarks"
        )

        self._result = result
        return result

    def compile_file(self, filepath: str | Path) -> CompiledScript:
        """
        Compile script source from a file.

        Args:
            filepath: Path to the script

        Returns:
            The compiled script

        Raises:
            CompileError: If compilation fails
            FileNotFoundError: If the file does not exist
        """
        source = Path(filepath).read_text(encoding=self._encoding)
        return self.compile_string(source, str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_result(self) -> CompiledScript:
        """
        Get the last compiled script.

        Raises:
            SteviaError: If nothing has been compiled successfully yet
        """
        if self._result is None:
            raise SteviaError("no script has been compiled")
        return self._result

    def get_output(self) -> str:
        return self.get_result().output

    def get_symbols(self) -> dict[str, int]:
        return dict(self.get_result().symbols)

    def get_document(self) -> ScriptDocument:
        return self.get_result().document

    def get_warnings(self) -> list[str]:
        return list(self.get_result().warnings)

    def get_symbol_listing(self) -> str:
        """
        Format the symbol table, one ``name address`` pair per line.

        Names are sorted; addresses use the same 5-digit form as the output.
        """
        lines = ["# Symbol table", "# Generated by stevia"]
        for name, address in sorted(self.get_result().symbols.items()):
            lines.append(f"{name} {address:0{ADDRESS_WIDTH}d}")
        return "\n".join(lines) + "\n"

    def write_output(self, filepath: str | Path) -> None:
        """
        Write the compiled output file.

        The output is a single line with no trailing newline, always UTF-8
        so that addresses stay valid byte offsets.
        """
        Path(filepath).write_bytes(self.get_output().encode(OUTPUT_ENCODING))
        logger.debug(f"Wrote {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """Write the symbol table file."""
        Path(filepath).write_text(self.get_symbol_listing(), encoding=self._encoding)
        logger.debug(f"Wrote symbols to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_script(source: str, filename: str = "<input>", strict: bool = False) -> CompiledScript:
    """
    Convenience function to compile script source.

    Args:
        source: Script source code
        filename: Virtual filename for errors
        strict: Treat duplicate bookmarks as errors

    Returns:
        The compiled script

    Raises:
        CompileError: If compilation fails
    """
    return Compiler(strict=strict).compile_string(source, filename)


def compile_file(filepath: str | Path, strict: bool = False) -> CompiledScript:
    """Convenience function to compile a script file."""
    return Compiler(strict=strict).compile_file(filepath)
