"""
Token model for the composer markdown dialect.

Block tokens are produced by the BlockTokenizer, inline tokens by the
InlineTokenizer. The Parser folds both into the AST.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, List, Optional


class BlockTokenType(StrEnum):
    """Top-level block token types."""

    PARAGRAPH = "paragraph"
    QUOTE = "quote"
    PRE = "pre"


class InlineTokenType(StrEnum):
    """Inline token types.

    Formatting types (bold, italic, underline, strikethrough, spoiler) are
    marker tokens, their open/close role is resolved by the Parser.
    """

    TEXT = "text"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    MONOSPACE = "monospace"
    SPOILER = "spoiler"
    LINK = "link"
    LINK_CLOSE = "link-close"
    MENTION = "mention"
    CUSTOM_EMOJI = "customEmoji"
    LINE_BREAK = "line-break"


MARKER_TOKEN_TYPES = frozenset(
    {
        InlineTokenType.BOLD,
        InlineTokenType.ITALIC,
        InlineTokenType.UNDERLINE,
        InlineTokenType.STRIKETHROUGH,
        InlineTokenType.SPOILER,
    }
)


@dataclass
class InlineToken:
    """Single inline token.

    `value` carries the text of text/monospace/mention/customEmoji tokens and
    the href of link tokens.
    """

    type: InlineTokenType
    raw: str
    value: Optional[str] = None
    userId: Optional[str] = None
    documentId: Optional[str] = None

    def toDict(self) -> Dict[str, Any]:
        ret: Dict[str, Any] = {"type": self.type.value, "raw": self.raw}
        for key in ("value", "userId", "documentId"):
            value = getattr(self, key)
            if value is not None:
                ret[key] = value
        return ret


@dataclass
class BlockToken:
    """Top-level block token with its inline tokens."""

    type: BlockTokenType
    raw: str
    content: str
    tokens: List[InlineToken] = field(default_factory=list)
    language: Optional[str] = None
    closed: Optional[bool] = None

    def toDict(self) -> Dict[str, Any]:
        ret: Dict[str, Any] = {
            "type": self.type.value,
            "raw": self.raw,
            "content": self.content,
            "tokens": [token.toDict() for token in self.tokens],
        }
        if self.type == BlockTokenType.PRE:
            ret["language"] = self.language
            ret["closed"] = bool(self.closed)
        return ret
