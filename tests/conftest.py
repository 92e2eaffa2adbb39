"""
Stevia Test Configuration
=========================

Shared fixtures for the compiler, export and CLI tests.
"""

from pathlib import Path

import pytest


EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"

EXAMPLE_OUTPUT = (
    "P;Hello there|P;I'm a VN written in the Ink format|P;Do you like it?|"
    "Q;Yes, I like it!;00120;No, I do not like it;00136|"
    "P;Thank you!|E;|P;Oh, I see|E;"
)


@pytest.fixture
def example_path() -> Path:
    """The example script shipped in examples/."""
    return EXAMPLES_DIR / "example.ink"


@pytest.fixture
def example_source(example_path) -> str:
    return example_path.read_text(encoding="utf-8")


@pytest.fixture
def example_copy(tmp_path, example_source) -> Path:
    """A writable copy of the example script."""
    path = tmp_path / "example.ink"
    path.write_text(example_source, encoding="utf-8")
    return path


@pytest.fixture
def example_output() -> str:
    """Compiled form of the example script."""
    return EXAMPLE_OUTPUT
