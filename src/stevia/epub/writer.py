"""
Stevia E-book Writer
====================

Re-renders a classified Script Document as a paginated EPUB e-book.
Only the document is consumed; the compiled output is not involved.

Pagination
----------
- Page 0 holds everything before the first bookmark (dropped if empty)
- Every bookmark starts a new page; the bookmark name maps to that page
- A question becomes a link to the page of its target bookmark

Example Usage
-------------
>>> from stevia.compiler import ScriptDocument
>>> from stevia.epub import EpubWriter
>>> writer = EpubWriter("My story", "Me")
>>> writer.process_lines(ScriptDocument.from_text(source))
>>> writer.write("story.epub")
"""

from html import escape
from pathlib import Path
from typing import Optional
import logging
import uuid

from stevia.compiler.classifier import LineKind
from stevia.compiler.codegen import find_similar_symbols, substitute_constants
from stevia.compiler.document import ScriptDocument
from stevia.epub.book import Chapter, CoverImage, build_epub, load_cover
from stevia.errors import MalformedLineError, SourceLocation, UnresolvedSymbolError

logger = logging.getLogger(__name__)


def chapter_filename(page: int) -> str:
    return f"chapter_{page}.xhtml"


class EpubWriter:
    """
    Builds an EPUB book from a Script Document.

    Attributes:
        title: Book title
        author: Book author
        cover_path: Optional path of a cover image
        page_content: Rendered XHTML body of each page
        page_titles: Display title of each page
        bookmark_table: Bookmark name -> page number
        constants: Constant name -> value, as seen so far
    """

    def __init__(
        self,
        title: str,
        author: str,
        cover_path: Optional[str | Path] = None,
        identifier: Optional[str] = None,
    ):
        """
        Initialize the writer.

        Args:
            title: Book title
            author: Book author
            cover_path: Optional cover image (any format Pillow reads)
            identifier: Book identifier; a random urn:uuid when omitted
        """
        self.title = title
        self.author = author
        self.cover_path = Path(cover_path) if cover_path is not None else None
        self.identifier = identifier or f"urn:uuid:{uuid.uuid4()}"
        self.page_content: list[str] = []
        self.page_titles: list[str] = []
        self.bookmark_table: dict[str, int] = {}
        self.constants: dict[str, str] = {}

    def process_bookmark_table(self, document: ScriptDocument) -> None:
        """Map each bookmark name to the page it starts (first one wins)."""
        self.bookmark_table.clear()

        for page, name in enumerate(document.bookmark_names(), start=1):
            self.bookmark_table.setdefault(name, page)

    def process_lines(self, document: ScriptDocument) -> None:
        """
        Render the document into pages.

        Raises:
            MalformedLineError: On an undefined line
            UnresolvedSymbolError: On a question whose target never exists
        """
        self.process_bookmark_table(document)
        self.constants.clear()
        self.page_content = [""]
        self.page_titles = ["Start"]
        current_page = 0

        for line in document:
            kind = line.kind
            location = SourceLocation(document.filename, line.source_line)

            if kind is LineKind.UNDEFINED:
                raise MalformedLineError(
                    line.source_line,
                    line.reason or "line cannot be parsed",
                    location=location,
                    source_line=line.text,
                )

            elif kind is LineKind.TEXT:
                text = substitute_constants(line.payload, self.constants)
                self.page_content[current_page] += f"<p>{escape(text, quote=False)}</p>"

            elif kind is LineKind.QUESTION:
                target = line.payload.target_symbol
                if target not in self.bookmark_table:
                    raise UnresolvedSymbolError(
                        target,
                        location=location,
                        source_line=line.text,
                        similar_symbols=find_similar_symbols(target, self.bookmark_table),
                    )
                choice = substitute_constants(line.payload.choice_text, self.constants)
                href = chapter_filename(self.bookmark_table[target])
                self.page_content[current_page] += (
                    f'<p><a href="{href}">{escape(choice, quote=False)}</a></p>'
                )

            elif kind is LineKind.BOOKMARK:
                self.page_content.append("")
                self.page_titles.append(line.payload.name)
                current_page += 1

            elif kind is LineKind.CONSTANT:
                self.constants[line.payload.name] = line.payload.value

            # COMMENT, END: nothing to render

        logger.debug(f"Rendered {len(self.page_content)} pages for '{self.title}'")

    def chapters(self) -> list[Chapter]:
        """Rendered pages in reading order; an empty page 0 is left out."""
        chapters = []
        for page, (title, content) in enumerate(zip(self.page_titles, self.page_content)):
            if page == 0 and not content:
                continue
            chapters.append(Chapter(chapter_filename(page), title, content))
        return chapters

    def generate(self) -> bytes:
        """
        Build the EPUB file.

        Raises:
            CoverImageError: If the cover image cannot be used
        """
        cover: Optional[CoverImage] = None
        if self.cover_path is not None:
            cover = load_cover(self.cover_path)

        return build_epub(
            self.title,
            self.author,
            self.identifier,
            self.chapters(),
            cover,
        )

    def write(self, filepath: str | Path) -> int:
        """
        Build the EPUB file and write it.

        Returns:
            Number of bytes written
        """
        data = self.generate()
        Path(filepath).write_bytes(data)
        logger.debug(f"Wrote {len(data)} bytes to {filepath}")
        return len(data)


def export_epub(
    document: ScriptDocument,
    filepath: str | Path,
    title: str,
    author: str,
    cover_path: Optional[str | Path] = None,
) -> int:
    """
    Convenience function to export a document as an e-book.

    Returns:
        Number of bytes written
    """
    writer = EpubWriter(title, author, cover_path)
    writer.process_lines(document)
    return writer.write(filepath)
