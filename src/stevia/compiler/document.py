"""
Stevia Script Document
======================

This module builds the Script Document: the ordered, immutable sequence of
classified lines produced by running the classifier over every physical
line of a source text. Blank lines contribute nothing.

It also provides the grouping step used by the assembler. Consecutive
question lines are gathered into a single QuestionGroup so that the
assembler emits one choice token per group instead of tracking an
"inside a question" flag while it walks the lines.

Example
-------
>>> from stevia.compiler.document import ScriptDocument
>>> doc = ScriptDocument.from_text("Hello\\n\\n-> END")
>>> [line.kind.name for line in doc]
['TEXT', 'END']
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Union
import logging

from stevia.compiler.classifier import Line, LineKind, classify

logger = logging.getLogger(__name__)


# =============================================================================
# Script Document
# =============================================================================

@dataclass(frozen=True)
class ScriptDocument:
    """
    Ordered sequence of classified lines, in source order.

    Attributes:
        lines: The classified lines (blank lines are not represented)
        filename: Name of the source, used in diagnostics
    """
    lines: tuple[Line, ...]
    filename: str = "<input>"

    @classmethod
    def from_text(cls, source: str, filename: str = "<input>") -> "ScriptDocument":
        """
        Classify every physical line of a source text.

        Args:
            source: The complete script text
            filename: Virtual filename for error messages

        Returns:
            The built document
        """
        lines = []
        # only "\n" breaks a line; a trailing "\r" is removed by classify()
        for line_number, raw_line in enumerate(source.split("\n"), start=1):
            line = classify(raw_line, line_number)
            if line is not None:
                lines.append(line)

        logger.debug(f"Classified {len(lines)} lines from {filename}")
        return cls(tuple(lines), filename)

    def __iter__(self) -> Iterator[Line]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index: int) -> Line:
        return self.lines[index]

    def of_kind(self, kind: LineKind) -> list[Line]:
        """Return the lines of one kind, in source order."""
        return [line for line in self.lines if line.kind is kind]

    def bookmark_names(self) -> list[str]:
        """Return every declared bookmark name, duplicates included."""
        return [line.payload.name for line in self.of_kind(LineKind.BOOKMARK)]


def parse_source(source: str, filename: str = "<input>") -> ScriptDocument:
    """Convenience wrapper around ScriptDocument.from_text()."""
    return ScriptDocument.from_text(source, filename)


# =============================================================================
# Question Grouping
# =============================================================================

@dataclass(frozen=True)
class QuestionGroup:
    """
    A run of consecutive question lines emitted as one choice token.

    Comment and constant lines sitting between two questions are kept in
    the group (in order) because they are zero-width and must not split
    the run. Constants still take effect for the choices that follow them.

    Attributes:
        members: The grouped lines; always starts and ends with a question
    """
    members: tuple[Line, ...]

    @property
    def questions(self) -> list[Line]:
        return [line for line in self.members if line.kind is LineKind.QUESTION]

    @property
    def source_line(self) -> int:
        return self.members[0].source_line


def group_lines(lines: Iterable[Line]) -> Iterator[Union[Line, QuestionGroup]]:
    """
    Yield lines in order, merging runs of question lines into groups.

    Zero-width lines found after a question are held back until the next
    non-zero-width line shows whether the run continues. If it does they
    join the group, otherwise they are yielded on their own after it.

    Args:
        lines: Classified lines in source order

    Yields:
        Line objects and QuestionGroup aggregates
    """
    group: list[Line] = []
    pending: list[Line] = []

    for line in lines:
        if line.kind is LineKind.QUESTION:
            if group:
                group.extend(pending)
            else:
                yield from pending
            pending = []
            group.append(line)
        elif group and line.is_zero_width:
            pending.append(line)
        else:
            if group:
                yield QuestionGroup(tuple(group))
                group = []
            yield from pending
            pending = []
            yield line

    if group:
        yield QuestionGroup(tuple(group))
    yield from pending
