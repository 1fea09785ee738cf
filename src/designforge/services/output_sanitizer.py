"""Output Sanitizer
=================

Turns raw completion text into source code by removing the model's
``<thinking>`` blocks and markdown fence lines.

The passes are regex based and re-applied until the text stops changing,
so ``sanitize_output(sanitize_output(s)) == sanitize_output(s)``.
"""

import re

THINKING_BLOCK_RE = re.compile(r'<thinking[^>]*>.*?</thinking\s*>', re.IGNORECASE | re.DOTALL)
THINKING_OPEN_RE = re.compile(r'<thinking[^>]*>', re.IGNORECASE)
THINKING_CLOSE_RE = re.compile(r'</thinking\s*>', re.IGNORECASE)

# A line that is only a fence delimiter, with or without an info string
FENCE_LINE_RE = re.compile(r'^[ \t]*`{3,}[^\n]*(?:\n|$)', re.MULTILINE)


def strip_thinking_blocks(text: str) -> str:
    """Remove complete ``<thinking>...</thinking>`` spans."""
    return THINKING_BLOCK_RE.sub('', text)


def strip_thinking_preamble(text: str) -> str:
    """Drop everything up to a closing tag that appears before any opening tag."""
    close = THINKING_CLOSE_RE.search(text)
    if close is None:
        return text
    opening = THINKING_OPEN_RE.search(text)
    if opening is not None and opening.start() < close.start():
        return text
    return text[close.end():]


def strip_open_thinking_tags(text: str) -> str:
    return THINKING_OPEN_RE.sub('', text)


def strip_fence_lines(text: str) -> str:
    return FENCE_LINE_RE.sub('', text)


def _sanitize_once(text: str) -> str:
    text = strip_thinking_blocks(text)
    text = strip_thinking_preamble(text)
    text = strip_open_thinking_tags(text)
    text = strip_fence_lines(text)
    return text.strip()


def sanitize_output(text: str) -> str:
    """Return compilable source from raw model output."""
    if not text:
        return ''
    previous = None
    cleaned = text
    while cleaned != previous:
        previous = cleaned
        cleaned = _sanitize_once(cleaned)
    return cleaned
