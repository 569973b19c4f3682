"""
Unit Tests for the Reassembler

Checks chunk joining and the web-novel formatting passes.
"""

# Local application
from novel_refiner.services.reassembler import (
    CHUNK_SEPARATOR,
    apply_directional_quotes,
    normalize_web_novel_text,
    reassemble,
)


class TestReassemble:
    """Tests for reassemble."""

    def test_chunks_joined_in_order_with_separator(self):
        assert reassemble(["First.", "Second."]) == "First." + CHUNK_SEPARATOR + "Second."

    def test_empty_input(self):
        assert reassemble([]) == ""
        assert reassemble(["", "   "]) == ""

    def test_blank_chunks_do_not_leave_gaps(self):
        assert reassemble(["One.", "  ", "Two."]) == "One.\n\n\nTwo."

    def test_dialogue_and_sentences_become_paragraphs(self):
        chunks = [
            'He smiled.  "Was it a dream?" he whispered.',
            "The sword gleamed. He struck.",
        ]

        assert reassemble(chunks) == (
            "He smiled.\n\n"
            "“Was it a dream?”\n\n"
            "he whispered.\n\n\n"
            "The sword gleamed.\n\n"
            "He struck."
        )


class TestNormalizeWebNovelText:
    """Tests for the individual formatting passes."""

    def test_blank_lines_capped_at_two(self):
        assert normalize_web_novel_text("A.\n\n\n\n\n\nB.") == "A.\n\n\nB."

    def test_single_line_breaks_expanded(self):
        assert normalize_web_novel_text("Line one\nLine two") == "Line one\n\nLine two"

    def test_space_before_punctuation_removed(self):
        assert normalize_web_novel_text("Wait , what ?") == "Wait, what?"

    def test_padding_inside_quotes_trimmed(self):
        result = normalize_web_novel_text('He said " hello there " softly.')
        assert result == "He said\n\n“hello there”\n\nsoftly."

    def test_punctuation_after_dialogue_stays_with_it(self):
        assert normalize_web_novel_text('"Hello", he said.') == "“Hello”,\n\nhe said."

    def test_ellipsis_does_not_break_paragraph(self):
        text = "How could this happen... After everything."
        assert normalize_web_novel_text(text) == text

    def test_crlf_normalized(self):
        assert normalize_web_novel_text("One.\r\n\r\nTwo.") == "One.\n\nTwo."


class TestDirectionalQuotes:
    """Tests for apply_directional_quotes."""

    def test_double_quotes(self):
        assert apply_directional_quotes('"Go," she said. "Now."') == "“Go,” she said. “Now.”"

    def test_apostrophes_and_single_quotes(self):
        assert apply_directional_quotes("They'd say 'no' today.") == "They’d say ‘no’ today."

    def test_internal_thought(self):
        assert apply_directional_quotes("'Am I still... ruthless?'") == "‘Am I still... ruthless?’"

    def test_unbalanced_quote_left_straight(self):
        assert apply_directional_quotes('He said "wait') == 'He said "wait'
