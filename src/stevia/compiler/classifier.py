"""
Stevia Script Line Classifier
=============================

This module turns raw script lines into typed Line records. Each physical
line is classified on its own, without looking at its neighbours, so the
classifier is a pure function of the text and the line number.

Line Kinds
----------
Rules are tried in this order on the whitespace-trimmed line; the first
match wins:

| Kind      | Form                          | Payload                      |
|-----------|-------------------------------|------------------------------|
| (none)    | empty after trim              | line is dropped              |
| COMMENT   | // anything                   | -                            |
| BOOKMARK  | === name                      | BookmarkPayload(name)        |
| QUESTION  | + [choice text] -> target     | QuestionPayload(text, target)|
| CONSTANT  | CONST NAME = "value"          | ConstantPayload(name, value) |
| END       | -> END                        | -                            |
| TEXT      | anything else                 | the trimmed line             |

Question and constant lines that do not match their full pattern are
classified UNDEFINED and carry a reason; the assembler refuses them.

Example
-------
>>> from stevia.compiler.classifier import classify
>>> line = classify("+ [Yes, I like it!] -> like", 4)
>>> line.kind, line.payload.choice_text, line.payload.target_symbol
(<LineKind.QUESTION: 2>, 'Yes, I like it!', 'like')
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union
import re


# =============================================================================
# Line Kind Enumeration
# =============================================================================

class LineKind(Enum):
    """Closed set of classifications a script line can receive."""

    TEXT = auto()        # Paragraph text, placeholders left unexpanded
    QUESTION = auto()    # One choice of a choice group
    BOOKMARK = auto()    # Named jump target (zero-width)
    CONSTANT = auto()    # Named string constant (zero-width)
    COMMENT = auto()     # Author comment (zero-width)
    END = auto()         # End of a branch
    UNDEFINED = auto()   # Malformed question or constant


# =============================================================================
# Payloads
# =============================================================================

@dataclass(frozen=True)
class QuestionPayload:
    """Choice text shown to the reader and the bookmark it jumps to."""
    choice_text: str
    target_symbol: str


@dataclass(frozen=True)
class BookmarkPayload:
    name: str


@dataclass(frozen=True)
class ConstantPayload:
    """Constant name and its value with quotes and padding removed."""
    name: str
    value: str


Payload = Union[str, QuestionPayload, BookmarkPayload, ConstantPayload, None]


@dataclass(frozen=True)
class Line:
    """
    One classified source line.

    Attributes:
        kind: The LineKind classification
        payload: Kind-specific data (str for TEXT, dataclasses for
                 QUESTION/BOOKMARK/CONSTANT, None otherwise)
        source_line: Line number in the source (1-indexed)
        text: The trimmed source text, kept for diagnostics
        reason: Why an UNDEFINED line failed classification
    """
    kind: LineKind
    payload: Payload
    source_line: int
    text: str = ""
    reason: Optional[str] = None

    @property
    def is_zero_width(self) -> bool:
        """True for lines that never advance the output offset."""
        return self.kind in (LineKind.COMMENT, LineKind.CONSTANT)


# =============================================================================
# Patterns
# =============================================================================

COMMENT_PREFIX = "//"
QUESTION_PREFIX = "+"
CONSTANT_PREFIX = "CONST"
END_MARKER = "-> END"

# Three '=' with any whitespace between them
BOOKMARK_PATTERN = re.compile(r"^=\s*=\s*=")

# Text inside the first pair of brackets
CHOICE_PATTERN = re.compile(r"\[(.*?)\]")

# Everything after the arrow
TARGET_PATTERN = re.compile(r"->(.*)$")

# CONST NAME = "value"
CONSTANT_PATTERN = re.compile(r'^CONST\s+([^\s=]+)\s*=\s*"(.*)"$')


# =============================================================================
# Classification
# =============================================================================

def classify(raw_line: str, line_number: int) -> Optional[Line]:
    """
    Classify one raw source line.

    Args:
        raw_line: The line as read from the source, untrimmed
        line_number: Its 1-based position in the source

    Returns:
        The classified Line, or None for blank lines
    """
    text = raw_line.strip()

    if not text:
        return None

    if text.startswith(COMMENT_PREFIX):
        return Line(LineKind.COMMENT, None, line_number, text)

    if BOOKMARK_PATTERN.match(text):
        name = text.strip("= ")
        return Line(LineKind.BOOKMARK, BookmarkPayload(name), line_number, text)

    if text.startswith(QUESTION_PREFIX):
        return _classify_question(text, line_number)

    if text.startswith(CONSTANT_PREFIX):
        return _classify_constant(text, line_number)

    if text == END_MARKER:
        return Line(LineKind.END, None, line_number, text)

    return Line(LineKind.TEXT, text, line_number, text)


def _classify_question(text: str, line_number: int) -> Line:
    choice = CHOICE_PATTERN.search(text)
    if choice is None:
        return _undefined(text, line_number, "question is missing '[choice text]'")

    target = TARGET_PATTERN.search(text, choice.end())
    if target is None:
        return _undefined(text, line_number, "question is missing '-> target'")

    target_symbol = target.group(1).strip()
    if not target_symbol:
        return _undefined(text, line_number, "question has an empty jump target")

    payload = QuestionPayload(choice.group(1), target_symbol)
    return Line(LineKind.QUESTION, payload, line_number, text)


def _classify_constant(text: str, line_number: int) -> Line:
    match = CONSTANT_PATTERN.match(text)
    if match is None:
        return _undefined(
            text, line_number, 'constant must have the form CONST NAME = "value"'
        )

    payload = ConstantPayload(match.group(1).strip(), match.group(2).strip())
    return Line(LineKind.CONSTANT, payload, line_number, text)


def _undefined(text: str, line_number: int, reason: str) -> Line:
    return Line(LineKind.UNDEFINED, None, line_number, text, reason)
