"""
Block tokenizer for the composer markdown dialect.

Splits raw text into top-level paragraph, quote and pre (fenced code) block
tokens. Inline markup inside the blocks is left untouched here.
"""

import logging
import re
from typing import List, Optional

from .tokens import BlockToken, BlockTokenType

logger = logging.getLogger(__name__)

PRE_FENCE = "```"
QUOTE_MARKER = ">"


def normalizeLineEndings(text: str) -> str:
    """Convert \\r\\n and bare \\r to \\n."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


class BlockTokenizer:
    """
    Tokenizer that converts text into a list of block tokens.

    Rules, checked in order at every position:
    1. ``` opens a pre block running up to a closing fence at a line start.
    2. > at a line start opens a single-line quote block.
    3. \\n flushes the current paragraph and, unless a block follows, opens
       a new (possibly empty) one.
    4. Any other character is appended to the current paragraph.
    """

    def __init__(self, text: str, isSingleLine: bool = False):
        self.text = normalizeLineEndings(text)
        self.isSingleLine = isSingleLine
        self.pos = 0
        self.blocks: List[BlockToken] = []
        self.currentBlock: Optional[BlockToken] = None

    def tokenize(self) -> List[BlockToken]:
        """
        Tokenize the input text.

        Returns:
            List of block tokens with empty inline token lists.
        """
        self.pos = 0
        self.blocks = []
        self.currentBlock = None

        if self.isSingleLine:
            return self._tokenizeSingleLine()

        while self.pos < len(self.text):
            if self.text.startswith(PRE_FENCE, self.pos):
                self._flushCurrentBlock()
                self._handlePreBlock()
                continue

            if self._isLineStart() and self.text.startswith(QUOTE_MARKER, self.pos):
                self._flushCurrentBlock()
                self._handleQuoteBlock()
                continue

            char = self.text[self.pos]
            if char == "\n":
                if self.pos == 0:
                    self._beginParagraph()
                self._flushCurrentBlock()

                # No synthetic paragraph right before a block, unless the
                # newline is followed by another one
                if not self._isRightBeforeBlock(self.pos + 1) or self._charAt(self.pos + 1) == "\n":
                    self._beginParagraph()

                self.pos += 1
                continue

            if self.currentBlock is None:
                self._beginParagraph()
            self._addCharacterToCurrentParagraph(char)
            self.pos += 1

        self._flushCurrentBlock()
        logger.debug(f"Block tokenizer produced {len(self.blocks)} blocks")
        return self.blocks

    def _tokenizeSingleLine(self) -> List[BlockToken]:
        content = re.sub(r"\n+", " ", self.text)
        content = re.sub(r"\s+", " ", content)
        self.blocks = [BlockToken(BlockTokenType.PARAGRAPH, raw=content, content=content)]
        return self.blocks

    def _charAt(self, pos: int) -> str:
        return self.text[pos] if 0 <= pos < len(self.text) else ""

    def _isLineStart(self, pos: Optional[int] = None) -> bool:
        if pos is None:
            pos = self.pos
        return pos == 0 or self.text[pos - 1] == "\n"

    def _isRightBeforeBlock(self, pos: int) -> bool:
        while pos < len(self.text) and self.text[pos] == "\n":
            pos += 1
        return self.text.startswith(QUOTE_MARKER, pos) or self.text.startswith(PRE_FENCE, pos)

    def _beginParagraph(self) -> None:
        self.currentBlock = BlockToken(BlockTokenType.PARAGRAPH, raw="", content="")

    def _addCharacterToCurrentParagraph(self, char: str) -> None:
        if self.currentBlock is None:
            raise RuntimeError("No current block to append to")
        self.currentBlock.raw += char
        self.currentBlock.content += char

    def _flushCurrentBlock(self) -> None:
        if self.currentBlock is not None:
            self.blocks.append(self.currentBlock)
            self.currentBlock = None

    def _handlePreBlock(self) -> None:
        startPos = self.pos
        self.pos += len(PRE_FENCE)

        languageEnd = self.text.find("\n", self.pos)
        if languageEnd == -1:
            languageEnd = len(self.text)
        language = self.text[self.pos : languageEnd]
        self.pos = languageEnd + 1

        contentStart = self.pos
        contentEnd = self.pos
        closed = False

        while self.pos < len(self.text):
            if self._isLineStart() and self.text.startswith(PRE_FENCE, self.pos):
                closed = True
                break

            if (
                self.text[self.pos] == "\n"
                and self._isLineStart(self.pos + 1)
                and self.text.startswith(PRE_FENCE, self.pos + 1)
            ):
                # The newline before a closing fence belongs to the fence,
                # unless the line before it is empty
                if self._charAt(self.pos - 1) == "\n":
                    contentEnd = self.pos + 1
                else:
                    contentEnd = self.pos
                closed = True
            else:
                contentEnd = self.pos + 1
            self.pos += 1

        content = self.text[contentStart:contentEnd]
        if closed and self.text.startswith(PRE_FENCE, self.pos):
            self.pos += len(PRE_FENCE)

        self.pos = min(self.pos, len(self.text))
        self.blocks.append(
            BlockToken(
                BlockTokenType.PRE,
                raw=self.text[startPos : self.pos],
                content=content,
                language=language or None,
                closed=closed,
            )
        )

    def _handleQuoteBlock(self) -> None:
        # One quote block per line, the trailing newline is left for the main loop
        startPos = self.pos
        self.pos += len(QUOTE_MARKER)

        lineEnd = self.text.find("\n", self.pos)
        if lineEnd == -1:
            lineEnd = len(self.text)

        content = self.text[self.pos : lineEnd]
        self.pos = lineEnd
        self.blocks.append(BlockToken(BlockTokenType.QUOTE, raw=self.text[startPos:lineEnd], content=content))
