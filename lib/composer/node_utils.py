"""
Helpers for working with AST nodes.
"""

import random
import string
from typing import List, Tuple

from .ast_nodes import (
    BLOCK_NODE_TYPES,
    ASTNode,
    ContainerNode,
    NodeType,
    PreNode,
    TextNode,
)

NODE_ID_ALPHABET = string.digits + string.ascii_lowercase
NODE_ID_LENGTH = 11

OPENING_MARKERS = {
    NodeType.BOLD: "**",
    NodeType.ITALIC: "*",
    NodeType.UNDERLINE: "<u>",
    NodeType.STRIKETHROUGH: "~~",
    NodeType.LINK: "[",
    NodeType.SPOILER: "||",
    NodeType.MONOSPACE: "`",
}

CLOSING_MARKERS = {
    NodeType.BOLD: "**",
    NodeType.ITALIC: "*",
    NodeType.UNDERLINE: "</u>",
    NodeType.STRIKETHROUGH: "~~",
    NodeType.LINK: "]",
    NodeType.SPOILER: "||",
    NodeType.MONOSPACE: "`",
}


def generateNodeId() -> str:
    """Generate random base-36 node id."""
    return "".join(random.choices(NODE_ID_ALPHABET, k=NODE_ID_LENGTH))


def isBlockNode(node: ASTNode) -> bool:
    return node.type in BLOCK_NODE_TYPES


def isNodeClosed(node: ASTNode) -> bool:
    """Nodes without a closed flag are always closed."""
    closed = getattr(node, "closed", True)
    return True if closed is None else bool(closed)


def areNodesEqual(node1: ASTNode, node2: ASTNode) -> bool:
    return node1.id == node2.id


def createTextNode(value: str) -> TextNode:
    return TextNode(value)


def getOpeningMarker(nodeType: NodeType) -> str:
    return OPENING_MARKERS.get(nodeType, "")


def getClosingMarker(nodeType: NodeType) -> str:
    return CLOSING_MARKERS.get(nodeType, "")


def getPreFences(node: PreNode) -> Tuple[str, str]:
    """
    Get markdown fences around pre content.

    The newline before a closing fence belongs to the fence unless the content
    is empty or already ends with a newline. Unclosed blocks have no closing
    fence.
    """
    opening = f"```{node.language or ''}\n"
    if not node.closed:
        return opening, ""
    if not node.value or node.value.endswith("\n"):
        return opening, "```"
    return opening, "\n```"


def splitByLineBreakNodes(node: ContainerNode) -> List[List[ASTNode]]:
    """
    Split quote children into lines at line-break nodes.

    A trailing line-break produces a final line with one empty text node,
    and a node without children produces a single such line.
    """
    lines: List[List[ASTNode]] = []
    currentLine: List[ASTNode] = []

    for index, child in enumerate(node.children):
        if child.type == NodeType.LINE_BREAK:
            lines.append(currentLine)
            currentLine = []
            if index == len(node.children) - 1:
                lines.append([createTextNode("")])
        else:
            currentLine.append(child)

    if currentLine:
        lines.append(currentLine)

    if not lines:
        lines.append([createTextNode("")])

    return lines
