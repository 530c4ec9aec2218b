"""
Escaping helpers for HTML output and link highlighting.
"""

import html
import re

ZERO_WIDTH_SPACE = "\u200b"

WHITESPACE_RE = re.compile(r"\s+")
ATTRIBUTE_ESCAPES = str.maketrans({"&": "&amp;", '"': "&quot;", "'": "&#x27;"})
PLAIN_LINK_RE = re.compile(r"(^|\s)(https?://\S+)(?=\s|$)")


def escapeHtml(text: str) -> str:
    """Escape `&`, `<`, `>` and both quote characters."""
    return html.escape(text, quote=True)


def escapeAttribute(text: str) -> str:
    """Escape `&`, `"` and `'` for a quoted attribute value, whitespace runs collapse to one space."""
    return WHITESPACE_RE.sub(" ", text.translate(ATTRIBUTE_ESCAPES))


def highlightLinksAsMarkdown(text: str) -> str:
    """
    Wrap bare http(s) links into link markup.

    Every link becomes `[url](url)` followed by a zero width space so the
    caret can be placed after the link without extending it.
    """
    return PLAIN_LINK_RE.sub(lambda match: f"{match[1]}[{match[2]}]({match[2]}){ZERO_WIDTH_SPACE}", text)
