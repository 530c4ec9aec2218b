"""
Lookup of the AST node under the caret.

Offsets are markdown offsets: every node consumes the length of its
markdown form, blocks are separated by one implicit newline.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .ast_nodes import ASTNode, ContainerNode, NodeType, PreNode
from .node_utils import getClosingMarker, getOpeningMarker, getPreFences

logger = logging.getLogger(__name__)


@dataclass
class NodeLocation:
    """Result of getFocusedNode.

    Attributes:
        node: Most specific node containing the offset, None if nothing does
        parentNode: Parent of `node`
        currentOffset: Start offset of `node`, or the offset reached when nothing matched
        contentStart: Start of the literal content, for pre and monospace nodes
        contentEnd: End of the literal content, for pre and monospace nodes
    """

    node: Optional[ASTNode]
    parentNode: Optional[ASTNode]
    currentOffset: int
    contentStart: Optional[int] = None
    contentEnd: Optional[int] = None

    def toDict(self) -> Dict[str, Any]:
        ret: Dict[str, Any] = {
            "node": self.node.toDict() if self.node is not None else None,
            "parentNode": self.parentNode.toDict() if self.parentNode is not None else None,
            "currentOffset": self.currentOffset,
        }
        if self.contentStart is not None:
            ret["contentStart"] = self.contentStart
            ret["contentEnd"] = self.contentEnd
        return ret


def _notFound(currentOffset: int) -> NodeLocation:
    return NodeLocation(node=None, parentNode=None, currentOffset=currentOffset)


def _getMarkers(node: ASTNode) -> Tuple[str, str]:
    match node.type:
        case NodeType.PRE:
            assert isinstance(node, PreNode)
            return getPreFences(node)
        case NodeType.MONOSPACE:
            return "`", "`"
        case NodeType.QUOTE:
            return ">", ""
        case _:
            return "", ""


def getFocusedNode(
    offset: int,
    node: Optional[ASTNode],
    startOffset: int = 0,
    parentNode: Optional[ASTNode] = None,
) -> NodeLocation:
    """
    Find the most specific node containing the markdown offset.

    Args:
        offset: Markdown offset to look up
        node: Node to search in, usually the root
        startOffset: Markdown offset where `node` starts
        parentNode: Parent of `node`

    Returns:
        NodeLocation, `node` is None when the offset is outside of the tree
    """
    if node is None:
        return _notFound(offset)

    match node.type:
        case NodeType.TEXT:
            return _handleTextNode(node, offset, startOffset, parentNode)
        case NodeType.PRE | NodeType.MONOSPACE | NodeType.QUOTE:
            return _handleMarkedNode(node, offset, startOffset, parentNode)
        case NodeType.LINK | NodeType.MENTION:
            return _handleLinkLikeNode(node, offset, startOffset, parentNode)
        case NodeType.LINE_BREAK:
            return _handleLineBreakNode(node, offset, startOffset, parentNode)
        case NodeType.ROOT:
            return _handleRootNode(node, offset, startOffset)

    if isinstance(node, ContainerNode):
        return _handleNodeWithChildren(node, offset, startOffset, parentNode)

    # Custom emoji and other atoms
    endOffset = startOffset + len(node.raw)
    if startOffset <= offset <= endOffset:
        return NodeLocation(node, parentNode, startOffset)
    return _notFound(endOffset)


def _handleTextNode(node: ASTNode, offset: int, startOffset: int, parentNode: Optional[ASTNode]) -> NodeLocation:
    # Escapes make raw longer than value, offsets are in raw markdown
    endOffset = startOffset + len(node.raw)
    if startOffset <= offset <= endOffset:
        return NodeLocation(node, parentNode, startOffset)
    return _notFound(endOffset)


def _handleMarkedNode(node: ASTNode, offset: int, startOffset: int, parentNode: Optional[ASTNode]) -> NodeLocation:
    startMarker, endMarker = _getMarkers(node)

    if isinstance(node, ContainerNode):
        if startOffset <= offset < startOffset + len(startMarker):
            return NodeLocation(node, parentNode, startOffset)

        if not node.children and offset >= startOffset + len(startMarker):
            return NodeLocation(node, parentNode, startOffset)

        currentOffset = startOffset + len(startMarker)
        for child in node.children:
            result = getFocusedNode(offset, child, currentOffset, node)
            if result.node is not None:
                return result
            currentOffset = result.currentOffset

        if endMarker and currentOffset <= offset <= currentOffset + len(endMarker):
            return NodeLocation(node, parentNode, startOffset)

        return _notFound(currentOffset)

    content = getattr(node, "value", "")
    endOffset = startOffset + len(startMarker) + len(content) + len(endMarker)
    if startOffset <= offset <= endOffset:
        return NodeLocation(
            node,
            parentNode,
            startOffset,
            contentStart=startOffset + len(startMarker),
            contentEnd=endOffset - len(endMarker),
        )
    return _notFound(endOffset)


def _handleLinkLikeNode(node: ASTNode, offset: int, startOffset: int, parentNode: Optional[ASTNode]) -> NodeLocation:
    fullEnd = startOffset + len(node.raw)

    if isinstance(node, ContainerNode) and node.children:
        # Skip `[`
        textStart = startOffset + 1
        textEnd = textStart + len(node.getChildrenRaw())
        if textStart <= offset < textEnd:
            currentOffset = textStart
            for child in node.children:
                result = getFocusedNode(offset, child, currentOffset, node)
                if result.node is not None:
                    return result
                currentOffset = result.currentOffset

    if startOffset <= offset <= fullEnd:
        return NodeLocation(node, parentNode, startOffset)

    return _notFound(fullEnd)


def _handleLineBreakNode(node: ASTNode, offset: int, startOffset: int, parentNode: Optional[ASTNode]) -> NodeLocation:
    if offset - 1 == startOffset:
        return NodeLocation(node, parentNode, startOffset)
    return _notFound(startOffset + len(node.raw))


def _handleRootNode(node: ASTNode, offset: int, startOffset: int) -> NodeLocation:
    if not isinstance(node, ContainerNode):
        return _notFound(startOffset)

    currentOffset = startOffset
    for index, child in enumerate(node.children):
        result = getFocusedNode(offset, child, currentOffset, node)
        if result.node is not None:
            return result
        currentOffset = result.currentOffset
        if index < len(node.children) - 1:
            # Block separator
            currentOffset += 1

    return _notFound(currentOffset)


def _handleNodeWithChildren(
    node: ContainerNode,
    offset: int,
    startOffset: int,
    parentNode: Optional[ASTNode],
) -> NodeLocation:
    # Caret right before the opening marker
    if offset == startOffset:
        return NodeLocation(node, parentNode, startOffset)

    currentOffset = startOffset + len(getOpeningMarker(node.type))
    for child in node.children:
        result = getFocusedNode(offset, child, currentOffset, node)
        if result.node is not None:
            return result
        currentOffset = result.currentOffset

    currentOffset += len(getClosingMarker(node.type))

    if startOffset <= offset <= currentOffset:
        return NodeLocation(node, parentNode, startOffset)

    return _notFound(currentOffset)


def findDeepestTextNode(node: ASTNode) -> Optional[ASTNode]:
    """Find the first text node following first children down the tree."""
    if node.type == NodeType.TEXT:
        return node
    if isinstance(node, ContainerNode) and node.children:
        return findDeepestTextNode(node.children[0])
    return None
