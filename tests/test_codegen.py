# =============================================================================
# test_codegen.py - Code Generator Unit Tests
# =============================================================================
# Tests for the two-pass Stevia code generator.
#
# Test coverage includes:
#   - Paragraph, question and end tokens
#   - Bookmark addresses and the symbol table
#   - Forward references and the relocation table (pass 1)
#   - Patching of forward references (pass 2)
#   - Constants and placeholder substitution
#   - Duplicate bookmarks, unresolved symbols, address overflow
#   - Byte offsets over non-ASCII text
# =============================================================================

import logging

import pytest

from stevia.compiler.codegen import (
    Emitter,
    format_address,
    resolve,
    substitute_constants,
    find_similar_symbols,
)
from stevia.compiler.document import ScriptDocument
from stevia.errors import (
    AddressOverflowError,
    CompileError,
    DuplicateBookmarkError,
    MalformedLineError,
    UnresolvedSymbolError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def emit(source: str, strict: bool = False):
    """Run pass 1 only and return the emission result."""
    return Emitter(strict=strict).emit(ScriptDocument.from_text(source))


def build(source: str, strict: bool = False) -> str:
    """Run both passes and return the output text."""
    result = emit(source, strict)
    patched = resolve(result.buffer, result.relocations, result.symbols, result.references)
    return patched.decode("utf-8")


# =============================================================================
# Address Formatting
# =============================================================================

class TestFormatAddress:
    """Test the fixed-width 5-digit address field."""

    def test_zero(self):
        assert format_address(0) == b"00000"

    def test_padded(self):
        assert format_address(42) == b"00042"

    def test_maximum(self):
        assert format_address(99999) == b"99999"

    def test_overflow(self):
        with pytest.raises(AddressOverflowError) as exc_info:
            format_address(100000)
        assert exc_info.value.value == 100000

    def test_negative(self):
        with pytest.raises(AddressOverflowError):
            format_address(-1)


# =============================================================================
# Paragraphs
# =============================================================================

class TestParagraphs:
    """Test P; token emission."""

    def test_single_paragraph(self):
        result = emit("Hello world")
        assert result.output == "P;Hello world"
        assert len(result.buffer) == 13

    def test_two_paragraphs(self):
        result = emit("Hello world\nCiao mondo")
        assert result.output == "P;Hello world|P;Ciao mondo"
        assert len(result.buffer) == 26

    def test_three_paragraphs(self):
        result = emit("Hello world\nCiao mondo\nBonjour monde")
        assert result.output == "P;Hello world|P;Ciao mondo|P;Bonjour monde"
        assert len(result.buffer) == 42

    def test_empty_document(self):
        result = emit("")
        assert result.output == ""
        assert result.symbols == {}
        assert result.relocations == {}


# =============================================================================
# End Markers
# =============================================================================

class TestEnd:

    def test_end_only(self):
        result = emit("-> END")
        assert result.output == "E;"
        assert len(result.buffer) == 2

    def test_end_after_paragraph(self):
        result = emit("Hello world\n-> END")
        assert result.output == "P;Hello world|E;"
        assert len(result.buffer) == 16


# =============================================================================
# Bookmarks
# =============================================================================

class TestBookmarks:
    """Test bookmark addresses."""

    def test_bookmark_at_start(self):
        """A bookmark before any output is at address 0."""
        result = emit("=== hello")
        assert result.symbols == {"hello": 0}
        assert result.buffer == b""

    def test_bookmark_with_spaces(self):
        result = emit("   ===     hello")
        assert result.symbols == {"hello": 0}

    def test_two_bookmarks_at_start(self):
        result = emit("=== hello\n=== world")
        assert result.symbols == {"hello": 0, "world": 0}

    def test_bookmark_after_paragraph(self):
        """Address skips the separator written before the next token."""
        result = emit("Hello world\n=== hello\nCiao mondo")
        assert result.symbols == {"hello": 14}
        assert result.output == "P;Hello world|P;Ciao mondo"

    def test_two_bookmarks_after_paragraphs(self):
        result = emit("Hello world\n=== hello\nCiao mondo\n=== world\nBonjour monde")
        assert result.symbols == {"hello": 14, "world": 27}

    def test_bookmark_emits_nothing(self):
        assert emit("A\n=== x\nB").output == emit("A\nB").output

    def test_forward_reference_to_bookmark_after_question(self):
        """The bookmark follows the Q; token and its separator."""
        result = emit("+ [A] -> end\n=== end")
        assert result.symbols == {"end": 10}
        assert result.relocations == {"end": [4]}
        assert build("+ [A] -> end\n=== end") == "Q;A;00010"

    def test_bookmark_after_single_paragraph(self):
        assert emit("Hello\n=== tail").symbols == {"tail": 8}


# =============================================================================
# Questions (Pass 1)
# =============================================================================

class TestQuestionEmission:
    """Test Q; tokens and the relocation table before patching."""

    def test_forward_reference_placeholder(self):
        result = emit("+ [Hello world] -> example")
        assert result.output == "Q;Hello world;00000"
        assert result.relocations == {"example": [14]}

    def test_two_choices_one_token(self):
        result = emit("+ [Hello world] -> example\n+ [Ciao mondo] -> sample")
        assert result.output == "Q;Hello world;00000;Ciao mondo;00000"
        assert result.relocations == {"example": [14], "sample": [31]}

    def test_multiple_groups(self):
        source = (
            "+ [Hello world] -> example\n"
            "+ [Ciao mondo] -> sample\n"
            "Bonjour monde\n"
            "+ [Hello world] -> example\n"
            "+ [Ciao mondo] -> sample"
        )
        result = emit(source)
        assert result.output == (
            "Q;Hello world;00000;Ciao mondo;00000|P;Bonjour monde|"
            "Q;Hello world;00000;Ciao mondo;00000"
        )
        assert len(result.buffer) == 89
        assert result.relocations == {"example": [14, 67], "sample": [31, 84]}

    def test_relocations_point_at_placeholders(self):
        result = emit("Intro\n+ [A] -> a\n+ [B] -> b\nMore\n+ [C] -> a")
        for offsets in result.relocations.values():
            for offset in offsets:
                assert result.buffer[offset:offset + 5] == b"00000"

    def test_backward_reference_written_directly(self):
        result = emit("Intro\n=== loop\nHello\n+ [Again] -> loop")
        assert result.output == "P;Intro|P;Hello|Q;Again;00008"
        assert result.relocations == {}

    def test_backward_reference_to_start(self):
        result = emit("=== start\nHello\n+ [Again] -> start")
        assert result.output == "P;Hello|Q;Again;00000"
        assert result.relocations == {}

    def test_reference_location_recorded(self):
        result = emit("Intro\n+ [Go] -> there")
        assert result.references["there"].line == 2


# =============================================================================
# Patching (Pass 2)
# =============================================================================

class TestResolve:
    """Test pass 2 patching of forward references."""

    def test_question_group_patched(self):
        source = (
            "+ [Hello world] -> example\n"
            "+ [Ciao mondo] -> sample\n"
            "=== example\n"
            "Hello world\n"
            "=== sample\n"
            "Ciao mondo"
        )
        result = emit(source)
        assert result.symbols == {"example": 37, "sample": 51}

        output = resolve(result.buffer, result.relocations, result.symbols)
        assert output == b"Q;Hello world;00037;Ciao mondo;00051|P;Hello world|P;Ciao mondo"
        assert len(output) == 63

    def test_resolve_preserves_length(self):
        result = emit("+ [Go] -> x\n=== x\nHi")
        output = resolve(result.buffer, result.relocations, result.symbols)
        assert len(output) == len(result.buffer)

    def test_resolve_does_not_modify_input(self):
        buffer = bytearray(b"Q;Go;00000|P;Hi")
        resolve(buffer, {"x": [5]}, {"x": 11})
        assert buffer == bytearray(b"Q;Go;00000|P;Hi")

    def test_unresolved_symbol(self):
        result = emit("+ [Go] -> nowhere")
        with pytest.raises(UnresolvedSymbolError) as exc_info:
            resolve(result.buffer, result.relocations, result.symbols, result.references)
        assert exc_info.value.name == "nowhere"
        assert exc_info.value.location.line == 1

    def test_unresolved_symbol_hint(self):
        result = emit("+ [Go] -> endng\n=== ending\nBye")
        with pytest.raises(UnresolvedSymbolError) as exc_info:
            resolve(result.buffer, result.relocations, result.symbols, result.references)
        assert exc_info.value.similar_symbols == ["ending"]
        assert "did you mean 'ending'?" in str(exc_info.value)

    def test_bad_relocation_offset(self):
        with pytest.raises(CompileError):
            resolve(b"P;Hello world", {"x": [2]}, {"x": 0})

    def test_forward_address_overflow(self):
        source = "+ [Go] -> x\n" + "A" * 100000 + "\n=== x\nHi"
        result = emit(source)
        assert result.symbols["x"] > 99999
        with pytest.raises(AddressOverflowError):
            resolve(result.buffer, result.relocations, result.symbols, result.references)


# =============================================================================
# Constants
# =============================================================================

class TestConstants:
    """Test constant declaration and substitution."""

    def test_constant_emits_nothing(self):
        result = emit('CONST HELLO = "World"')
        assert result.output == ""
        assert result.constants == {"HELLO": "World"}

    def test_constant_value_trimmed(self):
        result = emit(' CONST  HELLO  =  " World "')
        assert result.constants == {"HELLO": "World"}

    def test_substitution(self):
        result = emit('CONST HELLO = "World"\nHello {HELLO}')
        assert result.output == "P;Hello World"
        assert len(result.buffer) == 13

    def test_two_substitutions(self):
        source = 'CONST HELLO = "World"\nCONST CIAO = "Mondo"\nHello {HELLO} Ciao {CIAO}'
        result = emit(source)
        assert result.output == "P;Hello World Ciao Mondo"
        assert len(result.buffer) == 24

    def test_last_definition_wins(self):
        result = emit('CONST A = "one"\nCONST A = "two"\n{A}')
        assert result.output == "P;two"
        assert result.constants == {"A": "two"}

    def test_redefinition_applies_from_that_point(self):
        result = emit('CONST A = "one"\n{A}\nCONST A = "two"\n{A}')
        assert result.output == "P;one|P;two"

    def test_substitution_in_choice_text(self):
        result = emit('CONST NAME = "Ada"\n+ [Talk to {NAME}] -> talk\n=== talk\nHi')
        assert result.output.startswith("Q;Talk to Ada;00000")

    def test_undefined_placeholder_left_literal(self):
        result = emit("Hello {WHO}")
        assert result.output == "P;Hello {WHO}"
        assert len(result.warnings) == 1
        assert "WHO" in result.warnings[0]

    def test_substitute_constants_function(self):
        undefined = []
        text = substitute_constants("{A} and {B}", {"A": "x"}, undefined)
        assert text == "x and {B}"
        assert undefined == ["B"]

    def test_substituted_value_not_rescanned(self):
        assert substitute_constants("{A}", {"A": "{B}", "B": "no"}) == "{B}"


# =============================================================================
# Comments and Zero-Width Lines
# =============================================================================

class TestComments:

    def test_comment_emits_nothing(self):
        assert emit("// Hello world").output == ""

    def test_comment_between_paragraphs(self):
        assert emit("// Hello world\nBonjour monde").output == "P;Bonjour monde"

    def test_comment_between_questions_keeps_one_token(self):
        result = emit("+ [A] -> x\n// note\n+ [B] -> x\n=== x\nDone")
        assert result.output == "Q;A;00000;B;00000|P;Done"
        assert result.relocations == {"x": [4, 12]}
        assert result.symbols == {"x": 18}

    def test_constant_between_questions(self):
        """A constant inside a group still takes effect for later choices."""
        source = (
            'CONST N = "one"\n'
            "+ [{N}] -> x\n"
            'CONST N = "two"\n'
            "+ [{N}] -> x\n"
            "=== x\n"
            "Done"
        )
        assert build(source) == "Q;one;00022;two;00022|P;Done"


# =============================================================================
# Duplicate Bookmarks
# =============================================================================

class TestDuplicateBookmarks:

    SOURCE = "=== a\nOne\n=== a\nTwo\n+ [Back] -> a"

    def test_first_declaration_wins(self):
        result = emit(self.SOURCE)
        assert result.symbols == {"a": 0}
        assert result.output == "P;One|P;Two|Q;Back;00000"

    def test_warning_recorded(self):
        result = emit(self.SOURCE)
        assert len(result.warnings) == 1
        assert "duplicate bookmark 'a'" in result.warnings[0]

    def test_strict_mode_raises(self):
        with pytest.raises(DuplicateBookmarkError) as exc_info:
            emit(self.SOURCE, strict=True)
        assert exc_info.value.name == "a"
        assert exc_info.value.location.line == 3
        assert exc_info.value.original_location.line == 1

    def test_warnings_not_logged(self, caplog):
        with caplog.at_level(logging.DEBUG):
            result = emit(self.SOURCE + "\nHi {NAME}")
        assert len(result.warnings) == 2
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


# =============================================================================
# Malformed Lines and Overflow
# =============================================================================

class TestErrors:

    def test_malformed_question(self):
        with pytest.raises(MalformedLineError) as exc_info:
            emit("Hello\n+ Missing brackets -> x")
        assert exc_info.value.line_number == 2

    def test_malformed_constant(self):
        with pytest.raises(MalformedLineError) as exc_info:
            emit("CONST BROKEN")
        assert exc_info.value.line_number == 1

    def test_backward_address_overflow(self):
        source = "A" * 100000 + "\n=== x\nHi\n+ [Back] -> x"
        with pytest.raises(AddressOverflowError) as exc_info:
            emit(source)
        assert exc_info.value.value == 100003


# =============================================================================
# Non-ASCII Text
# =============================================================================

class TestByteOffsets:
    """Addresses count UTF-8 bytes, not characters."""

    def test_multibyte_choice(self):
        output = build("+ [Sì] -> x\n=== x\nCiao")
        assert output == "Q;Sì;00012|P;Ciao"
        assert output.encode("utf-8")[12:] == b"P;Ciao"

    def test_multibyte_paragraph_shifts_bookmark(self):
        result = emit("Città\n=== x\nFine")
        assert result.symbols == {"x": 9}
        assert result.buffer[9:] == b"P;Fine"


# =============================================================================
# Emitter State
# =============================================================================

class TestEmitterState:

    def test_runs_are_independent(self):
        emitter = Emitter()
        emitter.emit(ScriptDocument.from_text('=== a\nCONST X = "y"\n+ [Go] -> b'))
        result = emitter.emit(ScriptDocument.from_text("Hello"))
        assert result.symbols == {}
        assert result.constants == {}
        assert result.relocations == {}
        assert result.output == "P;Hello"


# =============================================================================
# Similar Symbol Suggestions
# =============================================================================

class TestFindSimilarSymbols:

    def test_case_difference(self):
        assert find_similar_symbols("Start", {"start": 0}) == ["start"]

    def test_typo(self):
        assert find_similar_symbols("hte", {"the": 0, "other": 5}) == ["the"]

    def test_nothing_close(self):
        assert find_similar_symbols("xyz", {"beginning": 0}) == []
