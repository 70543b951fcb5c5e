"""
Lightweight markup to HTML.

Supported syntax (one construct per line):
    # Heading / ## Heading / ### Heading
    > quoted line
    **bold** and *italic* inline
Blank lines separate paragraphs; single newlines become <br>.
"""

import re
from typing import List

from django.utils.html import escape

_BLOCK_SPLIT_RE = re.compile(r'\n\s*\n')
_HEADING_RE = re.compile(r'^(#{1,3})\s+(.+)$')
_QUOTE_RE = re.compile(r'^&gt;\s?(.*)$')
_BOLD_RE = re.compile(r'\*\*(.+?)\*\*')
_ITALIC_RE = re.compile(r'\*(\S(?:.*?\S)?)\*')


def _normalise(text: str) -> str:
    return (text or '').replace('\r\n', '\n').replace('\r', '\n').strip()


def render_inline(text: str) -> str:
    text = _BOLD_RE.sub(r'<strong>\1</strong>', text)
    return _ITALIC_RE.sub(r'<em>\1</em>', text)


def _render_block(block: str) -> List[str]:
    html: List[str] = []
    paragraph: List[str] = []
    quote: List[str] = []

    def flush_paragraph():
        if paragraph:
            html.append('<p>' + '<br>\n'.join(render_inline(line) for line in paragraph) + '</p>')
            paragraph.clear()

    def flush_quote():
        if quote:
            html.append('<blockquote>' + '<br>\n'.join(render_inline(line) for line in quote) + '</blockquote>')
            quote.clear()

    for raw_line in block.split('\n'):
        line = raw_line.strip()
        if not line:
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            flush_paragraph()
            flush_quote()
            level = len(heading.group(1))
            html.append(f"<h{level}>{render_inline(heading.group(2).strip())}</h{level}>")
            continue

        quoted = _QUOTE_RE.match(line)
        if quoted:
            flush_paragraph()
            quote.append(quoted.group(1))
            continue

        flush_quote()
        paragraph.append(line)

    flush_paragraph()
    flush_quote()
    return html


def render_markup(text: str) -> str:
    """Convert biography markup to HTML. Input is HTML-escaped first."""
    text = _normalise(text)
    if not text:
        return ''

    html: List[str] = []
    for block in _BLOCK_SPLIT_RE.split(escape(text)):
        html.extend(_render_block(block))
    return '\n'.join(html)


def wrap_paragraphs(text: str) -> str:
    """
    Wrap plain text into <p> paragraphs.

    Text that already contains a <p> tag is returned unchanged. The text is
    not escaped: news bodies may carry inline HTML from the editor.
    """
    text = _normalise(text)
    lowered = text.lower()
    if not text or '<p>' in lowered or '<p ' in lowered:
        return text

    paragraphs = []
    for block in _BLOCK_SPLIT_RE.split(text):
        block = block.strip()
        if block:
            paragraphs.append('<p>' + block.replace('\n', '<br>\n') + '</p>')
    return '\n'.join(paragraphs)
