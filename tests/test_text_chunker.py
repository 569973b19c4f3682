"""
Unit Tests for the Text Chunker

Covers paragraph packing, the sentence and fixed-size fallbacks, and the
size and ordering guarantees.
"""

# Third-party
import pytest

# Local application
from novel_refiner.services.text_chunker import (
    split_into_chunks,
    split_paragraphs,
    split_sentences,
)


def _squash(text: str) -> str:
    """Drop all whitespace so content can be compared."""
    return "".join(text.split())


class TestSplitHelpers:
    """Tests for the paragraph and sentence splitters."""

    def test_paragraphs_split_on_blank_lines(self):
        text = "First paragraph.\n\n\nSecond paragraph.\n  \nThird."
        assert split_paragraphs(text) == ["First paragraph.", "Second paragraph.", "Third."]

    def test_windows_line_endings(self):
        assert split_paragraphs("A\r\n\r\nB") == ["A", "B"]

    def test_single_newline_stays_in_paragraph(self):
        assert split_paragraphs("line one\nline two") == ["line one\nline two"]

    def test_sentences_keep_terminators_and_closing_quotes(self):
        assert split_sentences('"Run!" he said. Go.') == ['"Run!"', "he said.", "Go."]

    def test_unterminated_tail_is_kept(self):
        assert split_sentences("It ended. Or did it") == ["It ended.", "Or did it"]


class TestSplitIntoChunks:
    """Tests for split_into_chunks."""

    def test_three_short_paragraphs_make_one_chunk(self):
        text = "The sword gleamed.\n\nHe struck without hesitation.\n\nBlood sprayed."
        chunks = split_into_chunks(text, max_chars=4000)

        assert chunks == ["The sword gleamed.\n\nHe struck without hesitation.\n\nBlood sprayed."]

    def test_empty_and_blank_input(self):
        assert split_into_chunks("") == []
        assert split_into_chunks("   \n\n  \t ") == []

    def test_paragraphs_packed_greedily_in_order(self):
        paragraphs = [c * 30 for c in "abcde"]
        chunks = split_into_chunks("\n\n".join(paragraphs), max_chars=70)

        assert chunks == [
            "a" * 30 + "\n\n" + "b" * 30,
            "c" * 30 + "\n\n" + "d" * 30,
            "e" * 30,
        ]

    def test_long_paragraph_falls_back_to_sentences(self):
        paragraph = "One two three. Four five six. Seven eight nine."
        chunks = split_into_chunks(paragraph, max_chars=32)

        assert chunks == ["One two three. Four five six.", "Seven eight nine."]

    def test_long_sentence_is_sliced(self):
        chunks = split_into_chunks("a" * 25, max_chars=10)
        assert chunks == ["a" * 10, "a" * 10, "a" * 5]

    def test_pending_sentences_flushed_before_slices(self):
        paragraph = "Short one. " + "x" * 25 + "."
        chunks = split_into_chunks(paragraph, max_chars=12)

        assert chunks == ["Short one.", "x" * 12, "x" * 12, "x."]

    def test_sentences_continue_into_next_paragraph(self):
        text = "Alpha beta. Gamma delta.\n\nEnd."
        chunks = split_into_chunks(text, max_chars=20)

        assert chunks == ["Alpha beta.", "Gamma delta.\n\nEnd."]

    def test_no_chunk_exceeds_limit_and_content_survives(self):
        paragraphs = []
        for i in range(40):
            sentences = " ".join(f"Sentence {i}-{j} goes here." for j in range(i % 7 + 1))
            paragraphs.append(sentences)
        paragraphs.append("z" * 300)
        paragraphs.append("Mixed tail without a stop " * 5)
        text = "\n\n".join(paragraphs)

        chunks = split_into_chunks(text, max_chars=120)

        assert all(0 < len(chunk) <= 120 for chunk in chunks)
        assert _squash("".join(chunks)) == _squash(text)

    def test_chunk_order_matches_input_order(self):
        text = "\n\n".join(f"Paragraph number {i}." for i in range(50))
        chunks = split_into_chunks(text, max_chars=60)

        joined = "\n\n".join(chunks)
        positions = [joined.index(f"Paragraph number {i}.") for i in range(50)]
        assert positions == sorted(positions)

    def test_invalid_max_chars(self):
        with pytest.raises(ValueError):
            split_into_chunks("text", max_chars=0)
