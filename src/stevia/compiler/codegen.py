"""
Stevia Code Generator
=====================

This module serialises a Script Document into the Stevia output format.
It implements a two-pass process:

Pass 1 (Emission)
-----------------
- Walk the document once, left to right
- Emit P;/Q;/E; tokens into the output buffer, joined by '|'
- Record bookmark addresses in the symbol table
- Upsert constants and substitute {NAME} placeholders
- Write "00000" for every jump to a bookmark not seen yet and remember
  where it was written in the relocation table

Pass 2 (Patching)
-----------------
- For every relocated symbol, look up its final address
- Overwrite each recorded 5-byte placeholder in place
- Fail on any symbol that was never declared

Output Format
-------------
A single line of text; tokens are separated by a single '|' with no
leading or trailing separator.

| Token                          | Meaning                              |
|--------------------------------|--------------------------------------|
| P;<text>                       | Paragraph, constants substituted     |
| Q;<choice>;<addr5>[;...]       | Choice group, one or more options    |
| E;                             | End of a branch                      |

Addresses are byte offsets into the UTF-8 encoded output, written as
exactly five zero-padded decimal digits. A bookmark's address is the
offset of the first byte of the token that follows it.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Union
import logging
import re

from stevia.errors import (
    CompileError,
    MalformedLineError,
    UnresolvedSymbolError,
    DuplicateBookmarkError,
    AddressOverflowError,
    SourceLocation,
)
from stevia.compiler.classifier import Line, LineKind
from stevia.compiler.document import ScriptDocument, QuestionGroup, group_lines

logger = logging.getLogger(__name__)


# =============================================================================
# Format Constants
# =============================================================================

SEPARATOR = b"|"
FIELD_SEPARATOR = b";"
PARAGRAPH_PREFIX = b"P"
QUESTION_PREFIX = b"Q"
END_TOKEN = b"E;"

ADDRESS_WIDTH = 5
MAX_ADDRESS = 10 ** ADDRESS_WIDTH - 1
PLACEHOLDER = b"0" * ADDRESS_WIDTH

OUTPUT_ENCODING = "utf-8"

# {NAME} placeholder inside paragraph or choice text
PLACEHOLDER_PATTERN = re.compile(r"\{([^{}\s]+)\}")


def format_address(value: int, location: Optional[SourceLocation] = None) -> bytes:
    """
    Format an address as a fixed-width 5-digit field.

    Args:
        value: Byte offset into the output
        location: Source location to report on failure

    Returns:
        Exactly five ASCII digits

    Raises:
        AddressOverflowError: If the value is negative or above 99999
    """
    if not 0 <= value <= MAX_ADDRESS:
        raise AddressOverflowError(value, location)
    return f"{value:0{ADDRESS_WIDTH}d}".encode("ascii")


def substitute_constants(
    text: str,
    constants: Mapping[str, str],
    undefined: Optional[list[str]] = None,
) -> str:
    """
    Replace every {NAME} placeholder with its constant value.

    Unknown names are left literally in place. When an ``undefined`` list
    is given, their names are appended to it.
    """
    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name in constants:
            return constants[name]
        if undefined is not None:
            undefined.append(name)
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, text)


# =============================================================================
# Symbol Table Entry
# =============================================================================

@dataclass
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Bookmark name
        address: Offset of the content that follows the bookmark
        location: Where the bookmark was declared
    """
    name: str
    address: int
    location: SourceLocation


# =============================================================================
# Emission Result
# =============================================================================

@dataclass(frozen=True)
class EmissionResult:
    """
    Intermediate representation handed from pass 1 to pass 2.

    Attributes:
        buffer: Output bytes with "00000" still in every relocated field
        symbols: Bookmark name -> address
        constants: Constant name -> value (last definition)
        relocations: Symbol name -> offsets of its placeholders, in order
        references: Symbol name -> location of its first forward reference
        warnings: Non-fatal diagnostics, in source order
    """
    buffer: bytes
    symbols: dict[str, int]
    constants: dict[str, str]
    relocations: dict[str, list[int]]
    references: dict[str, SourceLocation] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def output(self) -> str:
        """Decoded buffer, placeholders included."""
        return self.buffer.decode(OUTPUT_ENCODING)


# =============================================================================
# Pass 1: Emission
# =============================================================================

class Emitter:
    """
    Runs pass 1 over a Script Document.

    The emitter owns the output buffer and every table for the duration of
    one run; nothing is shared between runs.

    Usage:
        result = Emitter().emit(document)
        output = resolve(result.buffer, result.relocations, result.symbols)
    """

    def __init__(self, strict: bool = False):
        """
        Initialize the emitter.

        Args:
            strict: If True, a duplicate bookmark raises DuplicateBookmarkError
                    instead of being reported as a warning.
        """
        self._strict = strict
        self._filename = "<input>"
        self._buffer = bytearray()
        self._symbols: dict[str, Symbol] = {}
        self._constants: dict[str, str] = {}
        self._relocations: dict[str, list[int]] = {}
        self._references: dict[str, SourceLocation] = {}
        self._warnings: list[str] = []

    def emit(self, document: ScriptDocument) -> EmissionResult:
        """
        Serialise the document, leaving forward references unpatched.

        Args:
            document: The classified script

        Returns:
            The buffer plus the tables pass 2 needs

        Raises:
            MalformedLineError: On the first undefined line
            DuplicateBookmarkError: On a repeated bookmark in strict mode
            AddressOverflowError: If a known address exceeds 5 digits
        """
        self._filename = document.filename
        self._buffer.clear()
        self._symbols.clear()
        self._constants.clear()
        self._relocations.clear()
        self._references.clear()
        self._warnings.clear()

        for item in group_lines(document):
            if isinstance(item, QuestionGroup):
                self._emit_question_group(item)
            else:
                self._emit_line(item)

        logger.debug(
            f"Pass 1 emitted {len(self._buffer)} bytes, "
            f"{len(self._symbols)} bookmarks, "
            f"{sum(len(v) for v in self._relocations.values())} relocations"
        )

        return EmissionResult(
            buffer=bytes(self._buffer),
            symbols={name: sym.address for name, sym in self._symbols.items()},
            constants=dict(self._constants),
            relocations={name: list(offsets) for name, offsets in self._relocations.items()},
            references=dict(self._references),
            warnings=list(self._warnings),
        )

    # =========================================================================
    # Line Handlers
    # =========================================================================

    def _emit_line(self, line: Line) -> None:
        kind = line.kind

        if kind is LineKind.TEXT:
            text = self._substitute(line.payload, line)
            self._append_token(
                PARAGRAPH_PREFIX + FIELD_SEPARATOR + text.encode(OUTPUT_ENCODING)
            )

        elif kind is LineKind.QUESTION:
            self._emit_question_group(QuestionGroup((line,)))

        elif kind is LineKind.BOOKMARK:
            self._define_bookmark(line)

        elif kind is LineKind.CONSTANT:
            self._constants[line.payload.name] = line.payload.value

        elif kind is LineKind.END:
            self._append_token(END_TOKEN)

        elif kind is LineKind.UNDEFINED:
            raise MalformedLineError(
                line.source_line,
                line.reason or "line cannot be parsed",
                location=self._location(line),
                source_line=line.text,
            )

        # COMMENT: nothing to do

    def _emit_question_group(self, group: QuestionGroup) -> None:
        """
        Emit one Q; token for a whole run of questions.

        Field offsets are computed against the position the token will
        start at, which includes the separator written before it.
        """
        start = self._next_token_offset()
        token = bytearray(QUESTION_PREFIX)

        for line in group.members:
            if line.kind is LineKind.CONSTANT:
                self._constants[line.payload.name] = line.payload.value
                continue
            if line.kind is not LineKind.QUESTION:
                continue

            choice = self._substitute(line.payload.choice_text, line)
            target = line.payload.target_symbol

            token += FIELD_SEPARATOR + choice.encode(OUTPUT_ENCODING) + FIELD_SEPARATOR
            field_offset = start + len(token)

            if target in self._symbols:
                token += format_address(self._symbols[target].address, self._location(line))
            else:
                token += PLACEHOLDER
                self._relocations.setdefault(target, []).append(field_offset)
                self._references.setdefault(target, self._location(line))

        self._append_token(bytes(token))

    def _define_bookmark(self, line: Line) -> None:
        """Record a bookmark at the offset of the next token."""
        name = line.payload.name
        location = self._location(line)

        if name in self._symbols:
            existing = self._symbols[name]
            if self._strict:
                raise DuplicateBookmarkError(
                    name,
                    location=location,
                    original_location=existing.location,
                    source_line=line.text,
                )
            message = (
                f"{location}: duplicate bookmark '{name}' ignored, "
                f"first declared at {existing.location}"
            )
            self._warnings.append(message)
            return

        self._symbols[name] = Symbol(name, self._next_token_offset(), location)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _next_token_offset(self) -> int:
        """Offset at which the next emitted token will begin."""
        if self._buffer:
            return len(self._buffer) + len(SEPARATOR)
        return 0

    def _append_token(self, token: bytes) -> None:
        if self._buffer:
            self._buffer += SEPARATOR
        self._buffer += token

    def _substitute(self, text: str, line: Line) -> str:
        undefined: list[str] = []
        result = substitute_constants(text, self._constants, undefined)
        for name in undefined:
            message = f"{self._location(line)}: undefined constant '{name}' left as is"
            self._warnings.append(message)
        return result

    def _location(self, line: Line) -> SourceLocation:
        return SourceLocation(self._filename, line.source_line)


# =============================================================================
# Pass 2: Patching
# =============================================================================

def resolve(
    buffer: Union[bytes, bytearray],
    relocations: Mapping[str, list[int]],
    symbols: Mapping[str, int],
    references: Optional[Mapping[str, SourceLocation]] = None,
) -> bytes:
    """
    Patch every placeholder with its bookmark's final address.

    The input buffer is not modified; a patched copy of the same length
    is returned.

    Args:
        buffer: Output of pass 1
        relocations: Symbol name -> offsets of its 5-byte placeholders
        symbols: Bookmark name -> address
        references: Optional symbol name -> location for error reports

    Returns:
        The patched output bytes

    Raises:
        UnresolvedSymbolError: If a relocated symbol has no bookmark
        AddressOverflowError: If an address exceeds 5 digits
        CompileError: If a relocation does not point at a placeholder
    """
    patched = bytearray(buffer)
    references = references or {}

    for name, offsets in relocations.items():
        if name not in symbols:
            raise UnresolvedSymbolError(
                name,
                location=references.get(name),
                similar_symbols=find_similar_symbols(name, symbols),
            )

        address = format_address(symbols[name], references.get(name))
        for offset in offsets:
            if patched[offset:offset + ADDRESS_WIDTH] != PLACEHOLDER:
                raise CompileError(
                    f"relocation for '{name}' at offset {offset} "
                    f"does not address a placeholder"
                )
            patched[offset:offset + ADDRESS_WIDTH] = address

        logger.debug(f"Patched {len(offsets)} references to '{name}' with {address.decode()}")

    return bytes(patched)


def find_similar_symbols(name: str, symbols: Mapping[str, int]) -> list[str]:
    """
    Find bookmark names close to ``name`` for error hints.

    A name is similar when it differs only in case, or in length by at most
    one with an edit distance of at most two.
    """
    name_lower = name.lower()
    similar = []

    for sym in symbols:
        sym_lower = sym.lower()
        if (
            sym_lower == name_lower or
            abs(len(sym) - len(name)) <= 1 and
            _edit_distance(name_lower, sym_lower) <= 2
        ):
            similar.append(sym)

    return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current = [i + 1]
        for j, c2 in enumerate(s2):
            current.append(min(
                previous[j + 1] + 1,
                current[j] + 1,
                previous[j] + (c1 != c2),
            ))
        previous = current

    return previous[-1]
