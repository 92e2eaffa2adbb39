"""
Stevia Export Configuration
===========================

Settings shared by the command-line tools: output file naming, source
encoding, strictness, and the metadata used for e-book export.
Configuration can come from:
- Default values (defined here)
- Environment variables (ExportConfig.from_env)
- Command-line flags, which override both
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os


TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass
class ExportConfig:
    """
    Configuration for compiling and exporting scripts.

    Attributes:
        output_suffix: Suffix of the compiled file written next to the source
        epub_suffix: Suffix of the e-book written next to the source
        encoding: Encoding used to read script sources
        strict: Treat duplicate bookmarks as errors
        epub_title: Book title (defaults to the source file stem)
        epub_author: Book author
        cover_path: Optional cover image for the e-book
    """

    output_suffix: str = ".stevia"
    epub_suffix: str = ".epub"
    encoding: str = "utf-8"
    strict: bool = False

    epub_title: Optional[str] = None
    epub_author: str = "Unknown"
    cover_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "ExportConfig":
        """
        Create ExportConfig from environment variables.

        Environment variables (all optional):
            STEVIA_ENCODING: Source encoding
            STEVIA_STRICT: "1"/"true"/"yes"/"on" enables strict mode
            STEVIA_TITLE: E-book title
            STEVIA_AUTHOR: E-book author
            STEVIA_COVER: Path to the e-book cover image
        """
        config = cls()

        if "STEVIA_ENCODING" in os.environ:
            config.encoding = os.environ["STEVIA_ENCODING"]
        if "STEVIA_STRICT" in os.environ:
            config.strict = os.environ["STEVIA_STRICT"].strip().lower() in TRUE_VALUES
        if "STEVIA_TITLE" in os.environ:
            config.epub_title = os.environ["STEVIA_TITLE"]
        if "STEVIA_AUTHOR" in os.environ:
            config.epub_author = os.environ["STEVIA_AUTHOR"]
        if "STEVIA_COVER" in os.environ:
            config.cover_path = Path(os.environ["STEVIA_COVER"])

        return config

    def output_path_for(self, source: Path) -> Path:
        """Path of the compiled file for a source script."""
        return source.with_suffix(self.output_suffix)

    def epub_path_for(self, source: Path) -> Path:
        """Path of the e-book for a source script."""
        return source.with_suffix(self.epub_suffix)

    def title_for(self, source: Path) -> str:
        return self.epub_title or source.stem
