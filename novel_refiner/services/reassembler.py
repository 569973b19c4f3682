"""
Reassembly of refined chunks into a single web-novel formatted text.

The passes are plain regular expressions, so they are best effort: nested or
unbalanced quotes and abbreviations such as "Mr." can format inconsistently.
"""

import re
from typing import Iterable, List

CHUNK_SEPARATOR = "\n\n\n"
PARAGRAPH_BREAK = "\n\n"

_LINE_ENDINGS = re.compile(r"\r\n?")
_TRAILING_SPACE = re.compile(r"[ \t]+(?=\n)")
_SPACE_RUN = re.compile(r"[ \t]{2,}")
_SPACE_BEFORE_PUNCT = re.compile(r"[ \t]+([,.!?;:])")
_QUOTE_PADDING = re.compile(r'"[ \t]*([^"\n]*?)[ \t]*"')
_EXCESS_BLANK_LINES = re.compile(r"\n{4,}")
_BLOCK_BREAK = re.compile(r"(\n{2,})")
_DIALOGUE = re.compile(r'("[^"\n]*")')
# Break after terminal punctuation, but not after an ellipsis
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])(?<!\.\.\.)\s+")
_LEADING_PUNCT = re.compile(r"^([,.!?;:]+)\s*")

_DOUBLE_QUOTED = re.compile(r'"([^"\n]*)"')
_APOSTROPHE = re.compile(r"(?<=\w)'(?=\w)")
_OPENING_SINGLE = re.compile(r"(?<![^\s(\[“])'(?=\S)")


def apply_directional_quotes(text: str) -> str:
    """Replace straight quotes with curly ones."""
    text = _DOUBLE_QUOTED.sub(lambda m: f"“{m.group(1)}”", text)
    text = _APOSTROPHE.sub("’", text)
    text = _OPENING_SINGLE.sub("‘", text)
    return text.replace("'", "’")


def _format_block(block: str) -> str:
    """One paragraph per sentence, dialogue on its own paragraph."""
    paragraphs: List[str] = []

    for line in block.split("\n"):
        for i, segment in enumerate(_DIALOGUE.split(line)):
            segment = segment.strip()
            if not segment:
                continue

            if i % 2:
                paragraphs.append(segment)
                continue

            # Punctuation left behind by a closing quote belongs to the dialogue
            match = _LEADING_PUNCT.match(segment)
            if match and paragraphs:
                paragraphs[-1] += match.group(1)
                segment = segment[match.end():]

            paragraphs.extend(
                sentence.strip()
                for sentence in _SENTENCE_BREAK.split(segment)
                if sentence.strip()
            )

    return PARAGRAPH_BREAK.join(paragraphs)


def normalize_web_novel_text(text: str) -> str:
    """Apply the web-novel formatting passes to already joined text."""
    text = _LINE_ENDINGS.sub("\n", text)
    text = _TRAILING_SPACE.sub("", text)
    text = _SPACE_RUN.sub(" ", text)
    text = _SPACE_BEFORE_PUNCT.sub(r"\1", text)
    text = _QUOTE_PADDING.sub(r'"\1"', text)
    text = _EXCESS_BLANK_LINES.sub(CHUNK_SEPARATOR, text)

    parts = _BLOCK_BREAK.split(text)
    text = "".join(
        part if i % 2 else _format_block(part)
        for i, part in enumerate(parts)
    )

    # Blocks that formatted to nothing can leave adjacent breaks behind
    text = _EXCESS_BLANK_LINES.sub(CHUNK_SEPARATOR, text)
    text = apply_directional_quotes(text)
    return text.strip()


def reassemble(chunks: Iterable[str], separator: str = CHUNK_SEPARATOR) -> str:
    """
    Join refined chunks in order and normalize the result.

    Args:
        chunks: Refined chunks, in the order of their source chunks
        separator: Text placed between consecutive chunks

    Returns:
        The formatted text
    """
    joined = separator.join(chunk.strip() for chunk in chunks if chunk and chunk.strip())
    return normalize_web_novel_text(joined)
