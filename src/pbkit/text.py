"""Plain-text rendering of HTML fields returned by ProductBoard.

Feature descriptions and note content arrive as HTML. Tools shorten them
for agent output with `clean_text`.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

ELLIPSIS = "…"

# Text appended after each block element
_BLOCK_BREAKS: dict[str, str] = {
    "br": "\n",
    "p": "\n\n",
    "div": "\n",
    "li": "\n",
    **{f"h{n}": "\n\n" for n in range(1, 7)},
}
_SPACES = re.compile(r"[ \t]+")
_BLANK_LINES = re.compile(r"\n{3,}")


def strip_html(text: str | None) -> str:
    """Convert HTML to plain text.

    Block elements become newlines, list items become bullets, remaining
    tags are dropped and entities decoded. Runs of spaces collapse to one
    and at most one blank line is kept between paragraphs.
    """
    if not text:
        return ""
    soup = BeautifulSoup(text, "html.parser")
    for tag in soup.find_all(list(_BLOCK_BREAKS)):
        if tag.name == "li":
            tag.insert(0, "• ")
        tag.insert_after(_BLOCK_BREAKS[tag.name])
    text = soup.get_text().replace("\xa0", " ")
    text = _BLANK_LINES.sub("\n\n", _SPACES.sub(" ", text))
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def truncate(text: str | None, max_length: int) -> str:
    """Cut `text` to `max_length`, preferring a word boundary, and append an ellipsis.

    Breaks at the last space when it falls within the final 30% of the
    allowed length; otherwise cuts mid-word.
    """
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    head = text[:max_length]
    last_space = head.rfind(" ")
    cut = last_space if last_space > max_length * 0.7 else max_length
    return head[:cut].rstrip() + ELLIPSIS


def clean_text(text: str | None, max_length: int = 200) -> str:
    return truncate(strip_html(text), max_length)
