"""
Inline tokenizer for the composer markdown dialect.

Splits the content of one block into text runs, formatting markers and the
self-contained link/mention/custom emoji constructs.
"""

import logging
import re
from typing import List

from .tokens import InlineToken, InlineTokenType

logger = logging.getLogger(__name__)

ESCAPE_PATTERN = re.compile(r"\\([*`~\[\]\\])")
UNDERLINE_PATTERN = re.compile(r"<u>|</u>")
MONOSPACE_PATTERN = re.compile(r"`([^`]+)`")
MENTION_PATTERN = re.compile(r"\[([^\]]+)\]\(id:([^)\s]+)\)")
LINK_PATTERN = re.compile(r"\[([^\]]+)\]\((?!(?:id|doc):)([^)]+)\)")
CUSTOM_EMOJI_PATTERN = re.compile(r"\[([^\]]+)\]\(doc:([^)]+)\)")

UNDERLINE_OPEN = "<u>"
UNDERLINE_CLOSE = "</u>"


class InlineTokenizer:
    """
    Tokenizer for inline markup.

    Patterns are tried in a fixed order at every position, the first match
    wins. Characters that start no construct are collected into text tokens.
    Formatting markers are emitted without pairing, the Parser decides
    whether a marker opens or closes a node.
    """

    def __init__(self, text: str, isRich: bool = True):
        self.text = text
        self.isRich = isRich
        self.pos = 0
        self.currentText = ""
        self.currentRaw = ""
        self.tokens: List[InlineToken] = []
        self.formatStack: List[InlineTokenType] = []

    def tokenize(self, isPlainText: bool = False) -> List[InlineToken]:
        """
        Tokenize the text.

        Args:
            isPlainText: Emit the whole text as a single literal text token

        Returns:
            List of inline tokens
        """
        self.pos = 0
        self.currentText = ""
        self.currentRaw = ""
        self.tokens = []
        self.formatStack = []

        if isPlainText:
            if self.text:
                self.tokens.append(InlineToken(InlineTokenType.TEXT, raw=self.text, value=self.text))
            return self.tokens

        while self.pos < len(self.text):
            if not self.isRich:
                if not self._tryCustomEmoji():
                    self._consumeChar()
                continue

            if (
                self._tryEscape()
                or self._tryTripleAsterisk()
                or self._tryBold()
                or self._tryItalic()
                or self._tryUnderline()
                or self._tryMonospace()
                or self._tryLink()
                or self._tryCustomEmoji()
                or self._tryMention()
                or self._tryMarker("~~", InlineTokenType.STRIKETHROUGH)
                or self._tryMarker("||", InlineTokenType.SPOILER)
            ):
                continue

            self._consumeChar()

        self._flushText()
        return self.tokens

    def _consumeChar(self) -> None:
        self.currentText += self.text[self.pos]
        self.currentRaw += self.text[self.pos]
        self.pos += 1

    def _flushText(self) -> None:
        if self.currentText:
            self.tokens.append(InlineToken(InlineTokenType.TEXT, raw=self.currentRaw, value=self.currentText))
            self.currentText = ""
            self.currentRaw = ""

    def _addMarker(self, tokenType: InlineTokenType, marker: str) -> None:
        self._flushText()
        self.tokens.append(InlineToken(tokenType, raw=marker))

    def _tryEscape(self) -> bool:
        match = ESCAPE_PATTERN.match(self.text, self.pos)
        if not match:
            return False
        self.currentText += match.group(1)
        self.currentRaw += match.group(0)
        self.pos = match.end()
        return True

    def _tryTripleAsterisk(self) -> bool:
        if not self.text.startswith("***", self.pos):
            return False

        if not self.formatStack:
            self._addMarker(InlineTokenType.BOLD, "**")
            self._addMarker(InlineTokenType.ITALIC, "*")
            self.formatStack.extend([InlineTokenType.BOLD, InlineTokenType.ITALIC])
        else:
            # Closing order is reversed: italic first, then bold
            if InlineTokenType.ITALIC in self.formatStack:
                self._addMarker(InlineTokenType.ITALIC, "*")
            if InlineTokenType.BOLD in self.formatStack:
                self._addMarker(InlineTokenType.BOLD, "**")
            self.formatStack = []

        self.pos += 3
        return True

    def _tryBold(self) -> bool:
        if not self.text.startswith("**", self.pos):
            return False
        self._addMarker(InlineTokenType.BOLD, "**")
        self.formatStack.append(InlineTokenType.BOLD)
        self.pos += 2
        return True

    def _tryItalic(self) -> bool:
        if not self.text.startswith("*", self.pos):
            return False
        self._addMarker(InlineTokenType.ITALIC, "*")
        self.formatStack.append(InlineTokenType.ITALIC)
        self.pos += 1
        return True

    def _tryUnderline(self) -> bool:
        match = UNDERLINE_PATTERN.match(self.text, self.pos)
        if not match:
            return False

        marker = match.group(0)
        if marker == UNDERLINE_OPEN:
            isMarkup = self.text.find(UNDERLINE_CLOSE, self.pos) != -1
        else:
            textBefore = self.text[: self.pos]
            isMarkup = textBefore.count(UNDERLINE_OPEN) > textBefore.count(UNDERLINE_CLOSE)

        if isMarkup:
            self._addMarker(InlineTokenType.UNDERLINE, marker)
        else:
            self.currentText += marker
            self.currentRaw += marker
        self.pos += len(marker)
        return True

    def _tryMonospace(self) -> bool:
        match = MONOSPACE_PATTERN.match(self.text, self.pos)
        if not match:
            return False
        self._flushText()
        self.tokens.append(InlineToken(InlineTokenType.MONOSPACE, raw=match.group(0), value=match.group(1)))
        self.pos = match.end()
        return True

    def _tryLink(self) -> bool:
        match = LINK_PATTERN.match(self.text, self.pos)
        if not match:
            return False

        label, href = match.group(1), match.group(2)
        self._flushText()
        self.tokens.append(InlineToken(InlineTokenType.LINK, raw=match.group(0), value=href))
        self.tokens.extend(InlineTokenizer(label, self.isRich).tokenize())
        self.tokens.append(InlineToken(InlineTokenType.LINK_CLOSE, raw=""))
        self.pos = match.end()
        return True

    def _tryCustomEmoji(self) -> bool:
        match = CUSTOM_EMOJI_PATTERN.match(self.text, self.pos)
        if not match:
            return False
        self._flushText()
        self.tokens.append(
            InlineToken(
                InlineTokenType.CUSTOM_EMOJI,
                raw=match.group(0),
                value=match.group(1),
                documentId=match.group(2),
            )
        )
        self.pos = match.end()
        return True

    def _tryMention(self) -> bool:
        match = MENTION_PATTERN.match(self.text, self.pos)
        if not match:
            return False

        name = match.group(1)
        if name.startswith("@"):
            name = name[1:]
        self._flushText()
        self.tokens.append(
            InlineToken(InlineTokenType.MENTION, raw=match.group(0), value=name, userId=match.group(2))
        )
        self.pos = match.end()
        return True

    def _tryMarker(self, marker: str, tokenType: InlineTokenType) -> bool:
        if not self.text.startswith(marker, self.pos):
            return False
        self._addMarker(tokenType, marker)
        self.pos += len(marker)
        return True
