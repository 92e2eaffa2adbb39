"""
EPUB Book Builder
=================

Packs rendered pages into an EPUB book with ebooklib.

Book Layout
-----------
```
cover.jpg / cover.xhtml      optional cover image and its page
title.xhtml                  title page (title and author)
chapter_<n>.xhtml            one per page, in reading order
toc.ncx / nav.xhtml          navigation, one entry per page
```

The spine reads cover, title page, then chapters. The guide marks the
cover, the title page and the first chapter.
"""

from dataclasses import dataclass
from html import escape
from io import BytesIO
from pathlib import Path
from typing import Optional
import logging

from ebooklib import epub
from PIL import Image

from stevia.errors import CoverImageError

logger = logging.getLogger(__name__)


COVER_FILENAME = "cover.jpg"
TITLE_FILENAME = "title.xhtml"
LANGUAGE = "en"


# =============================================================================
# Cover Image
# =============================================================================

@dataclass(frozen=True)
class CoverImage:
    """A cover re-encoded as JPEG, with its pixel size."""
    data: bytes
    width: int
    height: int


def load_cover(path: str | Path) -> CoverImage:
    """
    Load any image Pillow can read and re-encode it as RGB JPEG.

    Raises:
        CoverImageError: If the file is missing or not a readable image
    """
    try:
        with Image.open(path) as image:
            rgb = image.convert("RGB")
            buffer = BytesIO()
            rgb.save(buffer, format="JPEG")
            return CoverImage(buffer.getvalue(), rgb.width, rgb.height)
    except OSError as e:
        raise CoverImageError(str(path), str(e)) from e


# =============================================================================
# Pages
# =============================================================================

@dataclass(frozen=True)
class Chapter:
    """One rendered page: its file name, display title and body markup."""
    filename: str
    title: str
    content: str


def render_title(title: str, author: str) -> str:
    return f"<h1>{escape(title)}</h1><p>{escape(author)}</p>"


def render_page(chapter: Chapter) -> str:
    # an empty body cannot be parsed back by ebooklib
    return f'<div class="page">{chapter.content}</div>'


# =============================================================================
# Book Assembly
# =============================================================================

def build_book(
    title: str,
    author: str,
    identifier: str,
    chapters: list[Chapter],
    cover: Optional[CoverImage] = None,
) -> epub.EpubBook:
    """
    Build the in-memory book.

    Args:
        title: Book title
        author: Book author
        identifier: Unique book identifier (e.g. "urn:uuid:...")
        chapters: Rendered pages, in reading order
        cover: Optional cover image

    Returns:
        The populated EpubBook
    """
    book = epub.EpubBook()
    book.set_identifier(identifier)
    book.set_title(title)
    book.set_language(LANGUAGE)
    book.add_author(author)

    spine: list = []

    if cover is not None:
        book.set_cover(COVER_FILENAME, cover.data)
        spine.append(book.get_item_with_id("cover"))
        book.guide.append({"type": "cover", "title": "Cover", "href": "cover.xhtml"})

    title_page = epub.EpubHtml(
        uid="title", file_name=TITLE_FILENAME, title=title, lang=LANGUAGE
    )
    title_page.content = render_title(title, author)
    book.add_item(title_page)
    spine.append(title_page)
    book.guide.append({"type": "title-page", "title": "Title", "href": TITLE_FILENAME})

    pages = []
    for index, chapter in enumerate(chapters):
        page = epub.EpubHtml(
            uid=f"page_{index}",
            file_name=chapter.filename,
            title=chapter.title,
            lang=LANGUAGE,
        )
        page.content = render_page(chapter)
        book.add_item(page)
        pages.append(page)

    if chapters:
        book.guide.append(
            {"type": "text", "title": chapters[0].title, "href": chapters[0].filename}
        )

    book.toc = [title_page, *pages]
    book.spine = spine + pages
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())

    logger.debug(f"Assembled '{title}': {len(pages)} chapters, cover={cover is not None}")
    return book


def build_epub(
    title: str,
    author: str,
    identifier: str,
    chapters: list[Chapter],
    cover: Optional[CoverImage] = None,
) -> bytes:
    """
    Build the book and serialise it to EPUB bytes.

    Returns:
        The EPUB file contents
    """
    book = build_book(title, author, identifier, chapters, cover)
    buffer = BytesIO()
    epub.write_epub(buffer, book)
    return buffer.getvalue()
