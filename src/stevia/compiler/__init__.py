"""
Stevia Script Compiler
======================

This package compiles Stevia branching-dialogue scripts into the flat,
pipe-delimited text consumed by the Stevia playback engine.

Main Components
---------------
- **classify**: Turns one raw source line into a typed Line
- **ScriptDocument**: The ordered sequence of classified lines
- **Emitter**: Pass 1, serialises the document and records relocations
- **resolve**: Pass 2, patches forward references to bookmarks
- **Compiler**: Facade running the whole pipeline

Compilation Process
-------------------
1. **Classification**: every non-blank line becomes a Line record
   (text, question, bookmark, constant, comment, end or undefined).

2. **Emission** (pass 1): tokens are appended to the output buffer,
   bookmark addresses recorded, constants substituted, and a "00000"
   placeholder written for every jump to a bookmark not yet seen.

3. **Patching** (pass 2): every placeholder is overwritten in place with
   the final 5-digit address of its bookmark.

Example Usage
-------------
>>> from stevia.compiler import compile_script
>>> compile_script("Hello world\\n-> END").output
'P;Hello world|E;'
"""

from stevia.compiler.classifier import (
    Line,
    LineKind,
    QuestionPayload,
    BookmarkPayload,
    ConstantPayload,
    classify,
)
from stevia.compiler.document import (
    ScriptDocument,
    QuestionGroup,
    group_lines,
    parse_source,
)
from stevia.compiler.codegen import (
    Emitter,
    EmissionResult,
    Symbol,
    resolve,
    format_address,
    substitute_constants,
    find_similar_symbols,
)
from stevia.compiler.compiler import (
    Compiler,
    CompiledScript,
    compile_document,
    compile_script,
    compile_file,
)

__all__ = [
    # Classifier
    "Line",
    "LineKind",
    "QuestionPayload",
    "BookmarkPayload",
    "ConstantPayload",
    "classify",
    # Document
    "ScriptDocument",
    "QuestionGroup",
    "group_lines",
    "parse_source",
    # Code generator
    "Emitter",
    "EmissionResult",
    "Symbol",
    "resolve",
    "format_address",
    "substitute_constants",
    "find_similar_symbols",
    # Main class and functions
    "Compiler",
    "CompiledScript",
    "compile_document",
    "compile_script",
    "compile_file",
]
