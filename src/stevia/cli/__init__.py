"""
Stevia Command-Line Interface
=============================

This package provides the ``stevia`` command:

- **stevia compile**: compile a script to the .stevia output format
- **stevia epub**: export a script as an EPUB e-book

The command is a Click application with help on every subcommand and
shared error reporting (see stevia.cli.errors).
"""

__all__ = ["main"]
