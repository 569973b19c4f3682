# novel_refiner/services/text_chunker.py
from typing import List
import re

DEFAULT_CHUNK_SIZE = 4000   # Leaves room for the refinement prompt

PARAGRAPH_SEPARATOR = "\n\n"
SENTENCE_SEPARATOR = " "

_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n\s*")
# A run ending in terminal punctuation (plus closing quotes/brackets),
# or an unterminated tail.
_SENTENCE = re.compile(r"[^.!?]*[.!?]+[\"'”’)\]]*|[^.!?]+")


def split_paragraphs(text: str) -> List[str]:
    """Split on blank lines, dropping empty paragraphs."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def split_sentences(paragraph: str) -> List[str]:
    """Split a paragraph after sentence-terminal punctuation."""
    return [s.strip() for s in _SENTENCE.findall(paragraph) if s.strip()]


def slice_fixed(text: str, max_chars: int) -> List[str]:
    """Last resort: cut at fixed character offsets."""
    pieces = (text[i:i + max_chars].strip() for i in range(0, len(text), max_chars))
    return [piece for piece in pieces if piece]


def split_into_chunks(text: str, max_chars: int = DEFAULT_CHUNK_SIZE) -> List[str]:
    """
    Split text into ordered chunks of at most `max_chars` characters.

    Paragraphs are packed greedily (first fit, in order). A paragraph that
    is too long on its own is packed sentence by sentence, and a sentence
    that is still too long is sliced at fixed offsets.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    chunks: List[str] = []
    current = ""

    def flush() -> None:
        nonlocal current
        if current:
            chunks.append(current)
        current = ""

    for paragraph in split_paragraphs(text):
        candidate = f"{current}{PARAGRAPH_SEPARATOR}{paragraph}" if current else paragraph
        if len(candidate) <= max_chars:
            current = candidate
            continue

        flush()

        if len(paragraph) <= max_chars:
            current = paragraph
            continue

        for sentence in split_sentences(paragraph):
            if len(sentence) > max_chars:
                flush()
                chunks.extend(slice_fixed(sentence, max_chars))
                continue

            candidate = f"{current}{SENTENCE_SEPARATOR}{sentence}" if current else sentence
            if len(candidate) <= max_chars:
                current = candidate
            else:
                flush()
                current = sentence

    flush()
    return chunks
