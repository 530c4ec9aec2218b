"""
Parser building the composer AST from block tokens.
"""

import logging
from typing import List, Sequence

from .ast_nodes import (
    ASTNode,
    ContainerNode,
    CustomEmojiNode,
    FormattingNode,
    LineBreakNode,
    LinkNode,
    MentionNode,
    MonospaceNode,
    NodeType,
    ParagraphNode,
    PreNode,
    QuoteNode,
    RootNode,
    TextNode,
)
from .node_utils import getClosingMarker, getOpeningMarker
from .tokens import MARKER_TOKEN_TYPES, BlockToken, BlockTokenType, InlineToken, InlineTokenType

logger = logging.getLogger(__name__)


class Parser:
    """
    Recursive descent parser over block tokens.

    Inline tokens of every paragraph and quote are folded into a tree with an
    explicit stack of open nodes. A formatting marker closes the nearest open
    node of the same type if there is one and opens a new node otherwise, so
    unmatched markers end up as nodes with `closed=False`.
    """

    def __init__(self, tokens: Sequence[BlockToken]):
        self.tokens = list(tokens)

    def parse(self) -> RootNode:
        blocks: List[ASTNode] = []

        for block in self.tokens:
            match block.type:
                case BlockTokenType.PARAGRAPH:
                    blocks.append(ParagraphNode(raw=block.raw, children=self._buildInlineTree(block.tokens)))
                case BlockTokenType.QUOTE:
                    blocks.append(QuoteNode(raw=block.raw, children=self._buildInlineTree(block.tokens)))
                case BlockTokenType.PRE:
                    blocks.append(
                        PreNode(
                            raw=block.raw,
                            value=block.content,
                            language=block.language,
                            closed=bool(block.closed),
                        )
                    )
                case _:
                    logger.warning(f"Skipping block token of unknown type {block.type}")

        logger.debug(f"Parsed {len(blocks)} blocks")
        return RootNode(raw="\n".join(block.raw for block in blocks), children=blocks)

    def _buildInlineTree(self, tokens: Sequence[InlineToken]) -> List[ASTNode]:
        result: List[ASTNode] = []
        stack: List[ContainerNode] = []

        def append(node: ASTNode) -> None:
            if stack:
                stack[-1].addChild(node)
            else:
                result.append(node)

        for token in tokens:
            match token.type:
                case InlineTokenType.TEXT:
                    append(TextNode(token.value or "", raw=token.raw))

                case InlineTokenType.MONOSPACE:
                    append(MonospaceNode(token.value or "", raw=token.raw, closed=True))

                case InlineTokenType.MENTION:
                    append(MentionNode(token.userId or "", token.value or "", raw=token.raw))

                case InlineTokenType.CUSTOM_EMOJI:
                    append(CustomEmojiNode(token.documentId or "", token.value or "", raw=token.raw))

                case InlineTokenType.LINE_BREAK:
                    append(LineBreakNode(token.raw))

                case InlineTokenType.LINK:
                    link = LinkNode(href=token.value or "", raw=token.raw, closed=False)
                    append(link)
                    stack.append(link)

                case InlineTokenType.LINK_CLOSE:
                    index = self._findLastUnclosed(stack, NodeType.LINK)
                    if index != -1:
                        link = stack[index]
                        self._closeNode(stack, index)
                        if isinstance(link, LinkNode):
                            link.raw = f"[{link.getChildrenRaw()}]({link.href})"

                case tokenType if tokenType in MARKER_TOKEN_TYPES:
                    nodeType = NodeType(tokenType.value)
                    index = self._findLastUnclosed(stack, nodeType)
                    if index != -1:
                        node = stack[index]
                        self._closeNode(stack, index)
                        node.raw = getOpeningMarker(nodeType) + node.getChildrenRaw() + getClosingMarker(nodeType)
                    else:
                        formatting = FormattingNode(nodeType, raw=token.raw, closed=False)
                        append(formatting)
                        stack.append(formatting)

                case _:
                    logger.warning(f"Skipping inline token of unknown type {token.type}")

        self._finalizeUnclosed(stack)
        return result

    def _findLastUnclosed(self, stack: List[ContainerNode], nodeType: NodeType) -> int:
        for index in range(len(stack) - 1, -1, -1):
            node = stack[index]
            if node.type == nodeType and not getattr(node, "closed", False):
                return index
        return -1

    def _closeNode(self, stack: List[ContainerNode], index: int) -> None:
        # Nodes opened inside the closed one stay unclosed
        self._finalizeUnclosed(stack[index + 1 :])
        setattr(stack[index], "closed", True)
        del stack[index:]

    def _finalizeUnclosed(self, nodes: List[ContainerNode]) -> None:
        # Innermost first, outer raws are built from inner ones
        for node in reversed(nodes):
            node.raw = getOpeningMarker(node.type) + node.getChildrenRaw()


def parse(tokens: Sequence[BlockToken]) -> RootNode:
    return Parser(tokens).parse()
