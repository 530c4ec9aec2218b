"""
AST Node Classes for the composer

The tree is root -> blocks (paragraph, quote, pre) -> inline nodes. Every
node carries `raw`, the markdown-equivalent source it renders from and to,
and an optional `id` assigned by the MarkdownParser facade.

Algorithms walking the tree (parser, renderer, entity converter, focus
lookup) dispatch on `node.type`, the classes only hold data.
"""

from enum import StrEnum
from typing import Any, Dict, List, Optional


class NodeType(StrEnum):
    """Enumeration of all AST node types."""

    ROOT = "root"
    PARAGRAPH = "paragraph"
    QUOTE = "quote"
    PRE = "pre"
    TEXT = "text"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    SPOILER = "spoiler"
    MONOSPACE = "monospace"
    LINK = "link"
    MENTION = "mention"
    CUSTOM_EMOJI = "customEmoji"
    LINE_BREAK = "line-break"


BLOCK_NODE_TYPES = frozenset({NodeType.PARAGRAPH, NodeType.QUOTE, NodeType.PRE})
FORMATTING_NODE_TYPES = frozenset(
    {
        NodeType.BOLD,
        NodeType.ITALIC,
        NodeType.UNDERLINE,
        NodeType.STRIKETHROUGH,
        NodeType.SPOILER,
    }
)


class ASTNode:
    """Base class for all AST nodes."""

    __slots__ = ("type", "raw", "id")

    def __init__(self, nodeType: NodeType, raw: str = "", id: Optional[str] = None):
        self.type = NodeType(nodeType)
        self.raw = raw
        self.id = id

    def toDict(self, includeIds: bool = False) -> Dict[str, Any]:
        """Convert node to dictionary representation."""
        ret: Dict[str, Any] = {"type": self.type.value, "raw": self.raw}
        if includeIds and self.id is not None:
            ret["id"] = self.id
        self._fillDict(ret, includeIds)
        return ret

    def _fillDict(self, ret: Dict[str, Any], includeIds: bool) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.type.value}, raw={self.raw!r})"


class ContainerNode(ASTNode):
    """Node holding an ordered list of children."""

    __slots__ = ("children",)

    def __init__(
        self,
        nodeType: NodeType,
        raw: str = "",
        children: Optional[List[ASTNode]] = None,
        id: Optional[str] = None,
    ):
        super().__init__(nodeType, raw, id)
        self.children: List[ASTNode] = children if children is not None else []

    def addChild(self, child: ASTNode) -> None:
        self.children.append(child)

    def getChildrenRaw(self) -> str:
        return "".join(child.raw for child in self.children)

    def _fillDict(self, ret: Dict[str, Any], includeIds: bool) -> None:
        ret["children"] = [child.toDict(includeIds) for child in self.children]


class RootNode(ContainerNode):
    """Document root, children are block nodes."""

    __slots__ = ()

    def __init__(self, raw: str = "", children: Optional[List[ASTNode]] = None, id: Optional[str] = None):
        super().__init__(NodeType.ROOT, raw, children, id)


class ParagraphNode(ContainerNode):
    __slots__ = ()

    def __init__(self, raw: str = "", children: Optional[List[ASTNode]] = None, id: Optional[str] = None):
        super().__init__(NodeType.PARAGRAPH, raw, children, id)


class QuoteNode(ContainerNode):
    """Single quote block, `raw` starts with `>`."""

    __slots__ = ()

    def __init__(self, raw: str = "", children: Optional[List[ASTNode]] = None, id: Optional[str] = None):
        super().__init__(NodeType.QUOTE, raw, children, id)


class PreNode(ASTNode):
    """Fenced code block with literal content."""

    __slots__ = ("value", "language", "closed")

    def __init__(
        self,
        raw: str,
        value: str,
        language: Optional[str] = None,
        closed: bool = True,
        id: Optional[str] = None,
    ):
        super().__init__(NodeType.PRE, raw, id)
        self.value = value
        self.language = language
        self.closed = closed

    def _fillDict(self, ret: Dict[str, Any], includeIds: bool) -> None:
        ret["value"] = self.value
        ret["language"] = self.language
        ret["closed"] = self.closed


class TextNode(ASTNode):
    __slots__ = ("value",)

    def __init__(self, value: str, raw: Optional[str] = None, id: Optional[str] = None):
        super().__init__(NodeType.TEXT, value if raw is None else raw, id)
        self.value = value

    def _fillDict(self, ret: Dict[str, Any], includeIds: bool) -> None:
        ret["value"] = self.value


class FormattingNode(ContainerNode):
    """Bold, italic, underline, strikethrough or spoiler span."""

    __slots__ = ("closed",)

    def __init__(
        self,
        nodeType: NodeType,
        raw: str = "",
        children: Optional[List[ASTNode]] = None,
        closed: bool = True,
        id: Optional[str] = None,
    ):
        if nodeType not in FORMATTING_NODE_TYPES:
            raise ValueError(f"Not a formatting node type: {nodeType}")
        super().__init__(nodeType, raw, children, id)
        self.closed = closed

    def _fillDict(self, ret: Dict[str, Any], includeIds: bool) -> None:
        super()._fillDict(ret, includeIds)
        ret["closed"] = self.closed


class MonospaceNode(ASTNode):
    """Inline code, the value is literal."""

    __slots__ = ("value", "closed")

    def __init__(self, value: str, raw: Optional[str] = None, closed: bool = True, id: Optional[str] = None):
        super().__init__(NodeType.MONOSPACE, f"`{value}`" if raw is None else raw, id)
        self.value = value
        self.closed = closed

    def _fillDict(self, ret: Dict[str, Any], includeIds: bool) -> None:
        ret["value"] = self.value
        ret["closed"] = self.closed


class LinkNode(ContainerNode):
    __slots__ = ("href", "closed")

    def __init__(
        self,
        href: str,
        raw: str = "",
        children: Optional[List[ASTNode]] = None,
        closed: bool = True,
        id: Optional[str] = None,
    ):
        super().__init__(NodeType.LINK, raw, children, id)
        self.href = href
        self.closed = closed

    def _fillDict(self, ret: Dict[str, Any], includeIds: bool) -> None:
        super()._fillDict(ret, includeIds)
        ret["href"] = self.href
        ret["closed"] = self.closed


class MentionNode(ASTNode):
    """Mention of a user by id, `value` is the display name without `@`."""

    __slots__ = ("userId", "value")

    def __init__(self, userId: str, value: str, raw: Optional[str] = None, id: Optional[str] = None):
        super().__init__(NodeType.MENTION, f"[{value}](id:{userId})" if raw is None else raw, id)
        self.userId = userId
        self.value = value

    def _fillDict(self, ret: Dict[str, Any], includeIds: bool) -> None:
        ret["userId"] = self.userId
        ret["value"] = self.value


class CustomEmojiNode(ASTNode):
    __slots__ = ("documentId", "value")

    def __init__(self, documentId: str, value: str, raw: Optional[str] = None, id: Optional[str] = None):
        super().__init__(NodeType.CUSTOM_EMOJI, f"[{value}](doc:{documentId})" if raw is None else raw, id)
        self.documentId = documentId
        self.value = value

    def _fillDict(self, ret: Dict[str, Any], includeIds: bool) -> None:
        ret["documentId"] = self.documentId
        ret["value"] = self.value


class LineBreakNode(ASTNode):
    """Explicit line break inside a multi-line quote."""

    __slots__ = ()

    def __init__(self, raw: str = "\n", id: Optional[str] = None):
        super().__init__(NodeType.LINE_BREAK, raw, id)


def hasChildren(node: ASTNode) -> bool:
    return isinstance(node, ContainerNode)
