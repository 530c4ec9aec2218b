"""
Combined block and inline tokenizer.
"""

import logging
from typing import List

from .block_tokenizer import BlockTokenizer
from .inline_tokenizer import InlineTokenizer
from .tokens import BlockToken, BlockTokenType

logger = logging.getLogger(__name__)


class Tokenizer:
    """Run the block tokenizer, then tokenize every block's content inline."""

    def __init__(self, text: str, isRich: bool = True, isSingleLine: bool = False):
        self.isRich = isRich
        self.blockTokenizer = BlockTokenizer(text, isSingleLine=isSingleLine)

    def tokenize(self) -> List[BlockToken]:
        blocks = self.blockTokenizer.tokenize()
        for block in blocks:
            # Code blocks are literal
            isPlainText = block.type == BlockTokenType.PRE
            block.tokens = InlineTokenizer(block.content, self.isRich).tokenize(isPlainText=isPlainText)
        return blocks


def tokenize(text: str, isRich: bool = True, isSingleLine: bool = False) -> List[BlockToken]:
    """Tokenize markdown text into block tokens carrying their inline tokens."""
    return Tokenizer(text, isRich=isRich, isSingleLine=isSingleLine).tokenize()
