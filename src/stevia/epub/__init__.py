"""
Stevia E-book Export
====================

Renders a classified Stevia script as an EPUB book. Every bookmark
starts a new chapter and every choice becomes a link to the chapter of
its target, so the story can be read on any e-reader.

Main Components
---------------
- **EpubWriter**: Paginates a Script Document and builds the book
- **build_epub**: Assembles rendered chapters into a book with ebooklib
- **load_cover**: Loads and re-encodes a cover image with Pillow
"""

from stevia.epub.book import (
    Chapter,
    CoverImage,
    build_book,
    build_epub,
    load_cover,
)
from stevia.epub.writer import EpubWriter, chapter_filename, export_epub

__all__ = [
    "EpubWriter",
    "export_epub",
    "chapter_filename",
    "Chapter",
    "CoverImage",
    "build_book",
    "build_epub",
    "load_cover",
]
