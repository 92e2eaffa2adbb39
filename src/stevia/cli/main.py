"""
stevia - Script Compiler Command-Line Interface
===============================================

This module implements the ``stevia`` command. It reads a script from the
path given on the command line, runs the compiler, and writes the result
next to the source file.

Usage Examples
--------------
Compile a script (writes story.stevia next to story.ink):
    $ stevia compile story.ink

With explicit output and a symbol table:
    $ stevia compile story.ink -o build/story.stevia -s story.sym

Export an e-book:
    $ stevia epub story.ink --title "My Story" --author Me --cover cover.png

Verbose mode:
    $ stevia -v compile story.ink
"""

import logging
from pathlib import Path
from typing import Optional

import click

from stevia import __version__
from stevia.cli.errors import handle_cli_exception
from stevia.compiler import Compiler, ScriptDocument
from stevia.config import ExportConfig
from stevia.epub import EpubWriter

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Holds the verbosity flag and the configuration read from the
    environment; command options override the configuration.
    """

    def __init__(self) -> None:
        self.verbose: bool = False
        self.config: ExportConfig = ExportConfig()

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.INFO
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(version=__version__, prog_name="stevia")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    Compile Stevia branching-dialogue scripts.

    \b
    Commands:
      compile   Compile a script to the .stevia format
      epub      Export a script as an EPUB e-book

    \b
    Environment:
      STEVIA_ENCODING, STEVIA_STRICT, STEVIA_TITLE,
      STEVIA_AUTHOR, STEVIA_COVER
    """
    ctx.verbose = verbose
    ctx.config = ExportConfig.from_env()
    ctx.setup_logging()


# =============================================================================
# Compile Command
# =============================================================================

@main.command("compile")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: input with .stevia suffix)",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the bookmark symbol table",
)
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Treat duplicate bookmarks as errors (default: warn, first wins)",
)
@pass_context
def cmd_compile(
    ctx: Context,
    input_file: Path,
    output: Optional[Path],
    symbols: Optional[Path],
    strict: Optional[bool],
) -> None:
    """
    Compile a script to the Stevia output format.

    INPUT_FILE is the script source (.ink).

    \b
    Examples:
      stevia compile story.ink               # Outputs story.stevia
      stevia compile story.ink -o out.stevia
      stevia compile story.ink -s story.sym  # Also write symbols
    """
    config = ctx.config
    if strict is not None:
        config.strict = strict

    output_file = output if output is not None else config.output_path_for(input_file)

    try:
        compiler = Compiler(strict=config.strict, encoding=config.encoding)

        logger.debug(f"Compiling {input_file}...")
        script = compiler.compile_file(input_file)

        for warning in script.warnings:
            click.echo(f"warning: {warning}", err=True)

        compiler.write_output(output_file)

        if symbols:
            compiler.write_symbols(symbols)
            logger.debug(f"Wrote symbols to {symbols}")

        if ctx.verbose:
            click.echo(f"Wrote {len(script.output.encode())} bytes to {output_file}")
            click.echo(f"Defined {len(script.symbols)} bookmarks")
        else:
            click.echo(f"Compiled {input_file} -> {output_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Compilation")


# =============================================================================
# EPUB Command
# =============================================================================

@main.command("epub")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: input with .epub suffix)",
)
@click.option(
    "-t", "--title",
    type=str,
    default=None,
    help="Book title (default: input file name)",
)
@click.option(
    "-a", "--author",
    type=str,
    default=None,
    help="Book author",
)
@click.option(
    "-c", "--cover",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Cover image (any format Pillow can read)",
)
@pass_context
def cmd_epub(
    ctx: Context,
    input_file: Path,
    output: Optional[Path],
    title: Optional[str],
    author: Optional[str],
    cover: Optional[Path],
) -> None:
    """
    Export a script as an EPUB e-book.

    Every bookmark starts a new chapter and every choice links to the
    chapter of its target.

    \b
    Examples:
      stevia epub story.ink                   # Outputs story.epub
      stevia epub story.ink -t "My Story" -a Me -c cover.png
    """
    config = ctx.config
    if title is not None:
        config.epub_title = title
    if author is not None:
        config.epub_author = author
    if cover is not None:
        config.cover_path = cover

    output_file = output if output is not None else config.epub_path_for(input_file)

    try:
        source = input_file.read_text(encoding=config.encoding)
        document = ScriptDocument.from_text(source, str(input_file))

        writer = EpubWriter(
            config.title_for(input_file),
            config.epub_author,
            config.cover_path,
        )
        writer.process_lines(document)
        bytes_written = writer.write(output_file)

        if ctx.verbose:
            click.echo(f"Wrote {bytes_written} bytes to {output_file}")
            click.echo(f"Rendered {len(writer.chapters())} chapters")
        else:
            click.echo(f"Exported {input_file} -> {output_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Export")


if __name__ == "__main__":
    main()
