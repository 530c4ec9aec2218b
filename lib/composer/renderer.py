"""
Renderer of the composer AST to HTML and markdown.

One tree walk produces the output string and the offset mapping. The walk
keeps two cursors in a RenderContext: the caret offset in the rendered HTML
text and the caret offset in the markdown source. Blocks are separated by
one position in both spaces.
"""

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import List, Optional

from .ast_nodes import (
    ASTNode,
    ContainerNode,
    CustomEmojiNode,
    LinkNode,
    MentionNode,
    MonospaceNode,
    NodeType,
    PreNode,
    TextNode,
)
from .errors import RendererError
from .escape import escapeAttribute, escapeHtml
from .focused_node import getFocusedNode
from .node_utils import (
    generateNodeId,
    getClosingMarker,
    getOpeningMarker,
    getPreFences,
    isBlockNode,
    isNodeClosed,
    splitByLineBreakNodes,
)
from .offset_mapping import OffsetMappingRecord

logger = logging.getLogger(__name__)

HIGHLIGHTABLE_NODE_CLASS = "md-node-highlightable"
FOCUSED_NODE_CLASS = "md-node-focused"
BLOCK_GROUP_ATTR = "data-block-id"
PREVIEW_CHAR_CLASS = "md-preview-char"

HTML_TAGS = {
    NodeType.BOLD: "strong",
    NodeType.ITALIC: "em",
    NodeType.UNDERLINE: "span",
    NodeType.STRIKETHROUGH: "s",
    NodeType.SPOILER: "span",
    NodeType.MONOSPACE: "code",
}


class RenderMode(StrEnum):
    HTML = "html"
    MARKDOWN = "markdown"


@dataclass
class RenderOptions:
    """Render options.

    Attributes:
        mode: Output format
        isPreview: Show markdown syntax characters in HTML output
        previewNodeOffset: Markdown offset of the caret, when set only the
            node under the caret and its ancestors show syntax characters
    """

    mode: RenderMode = RenderMode.HTML
    isPreview: bool = False
    previewNodeOffset: Optional[int] = None


@dataclass
class RenderContext:
    """Mutable state of one render pass."""

    options: RenderOptions
    focusedNode: Optional[ASTNode] = None
    htmlOffset: int = 0
    mdOffset: int = 0
    offsetMapping: List[OffsetMappingRecord] = field(default_factory=list)

    @property
    def isHtml(self) -> bool:
        return self.options.mode == RenderMode.HTML

    def addToMapping(self, node: ASTNode, htmlLength: int, mdLength: int) -> OffsetMappingRecord:
        """Append record starting at the current cursors and move cursors past it."""
        record = OffsetMappingRecord(
            htmlStart=self.htmlOffset,
            htmlEnd=self.htmlOffset + htmlLength,
            mdStart=self.mdOffset,
            mdEnd=self.mdOffset + mdLength,
            nodeType=node.type,
            raw=node.raw,
            nodeId=node.id,
        )
        self.offsetMapping.append(record)
        self.htmlOffset += htmlLength
        self.mdOffset += mdLength
        return record

    def isDecorated(self, isFocused: bool) -> bool:
        if not self.options.isPreview:
            return False
        return self.options.previewNodeOffset is None or isFocused


def previewSpan(text: str) -> str:
    return f'<span class="{PREVIEW_CHAR_CLASS}">{text}</span>'


def focusedClass(isFocused: bool) -> str:
    return FOCUSED_NODE_CLASS if isFocused else ""


def buildCustomEmojiHtml(value: str, documentId: str) -> str:
    return (
        f'<img class="custom-emoji emoji" alt="{escapeAttribute(value)}" '
        f'data-document-id="{escapeAttribute(documentId)}" data-entity-type="MessageEntityCustomEmoji">'
    )


class RendererHtml:
    """
    Renders AST as HTML for the editing surface or as markdown source.

    `getOffsetMapping()` returns the mapping built by the last `render()`.
    """

    def __init__(self, options: Optional[RenderOptions] = None):
        self.options = options if options is not None else RenderOptions()
        self.offsetMapping: List[OffsetMappingRecord] = []

    def render(self, ast: ASTNode, options: Optional[RenderOptions] = None) -> str:
        """
        Render a tree or a single node.

        Raises:
            RendererError: If `ast` itself is of unknown type
        """
        if options is not None:
            self.options = options

        ctx = RenderContext(options=self.options)
        if self.options.previewNodeOffset is not None:
            location = getFocusedNode(self.options.previewNodeOffset, ast)
            # Text is styled by its container
            if location.node is not None and location.node.type in (NodeType.TEXT, NodeType.LINE_BREAK):
                ctx.focusedNode = location.parentNode
            else:
                ctx.focusedNode = location.node

        result = self._renderNode(ast, ctx, hasNextBlock=False)
        self.offsetMapping = ctx.offsetMapping

        if result is None:
            raise RendererError(f"Can not render node of unknown type: {ast.type}")
        return result

    def getOffsetMapping(self) -> List[OffsetMappingRecord]:
        return self.offsetMapping

    def _renderNode(self, node: ASTNode, ctx: RenderContext, hasNextBlock: bool) -> Optional[str]:
        if node.type == NodeType.ROOT:
            children = node.children if isinstance(node, ContainerNode) else []
            blocks: List[str] = []
            for index, child in enumerate(children):
                rendered = self._renderNode(child, ctx, hasNextBlock=index < len(children) - 1)
                if rendered is None:
                    logger.error(f"Can not render block of unknown type: {child.type}")
                    rendered = ""
                blocks.append(rendered)
            return ("" if ctx.isHtml else "\n").join(blocks)

        if isBlockNode(node):
            return self._renderBlockNode(node, ctx, hasNextBlock)

        return self._renderInlineNode(node, ctx)

    # ==========================================================================
    # Blocks
    # ==========================================================================

    def _createLine(self, lineType: str, text: str, groupId: str, isFocused: bool) -> str:
        return (
            f'<div {BLOCK_GROUP_ATTR}="{groupId}" '
            f'class="paragraph paragraph-{lineType} {HIGHLIGHTABLE_NODE_CLASS} {focusedClass(isFocused)}">{text}</div>'
        )

    def _prepareLines(
        self, lineType: str, prefix: str, content: str, suffix: str, groupId: str, isFocused: bool
    ) -> str:
        result: List[str] = []

        if prefix:
            result.append(self._createLine(lineType, prefix, groupId, isFocused))

        if content:
            # Trailing newline does not start a new line
            lines = (content[:-1] if content.endswith("\n") else content).split("\n")
            for line in lines:
                result.append(self._createLine(lineType, escapeHtml(line) or "<br>", groupId, isFocused))

        if suffix:
            result.append(self._createLine(lineType, suffix, groupId, isFocused))

        return "".join(result)

    def _renderBlockNode(self, node: ASTNode, ctx: RenderContext, hasNextBlock: bool) -> str:
        isFocused = ctx.focusedNode is not None and node is ctx.focusedNode

        match node.type:
            case NodeType.PARAGRAPH:
                children = self._renderChildren(node, ctx, None)
                blockHtml = f'<div class="paragraph">{children or "<br>"}</div>' if ctx.isHtml else children

            case NodeType.QUOTE:
                assert isinstance(node, ContainerNode)
                blockHtml = self._renderQuote(node, ctx, isFocused, hasNextBlock)

            case NodeType.PRE:
                assert isinstance(node, PreNode)
                blockHtml = self._renderPre(node, ctx, isFocused)

            case _:
                return ""

        # Block separator
        ctx.htmlOffset += 1
        ctx.mdOffset += 1
        return blockHtml

    def _renderQuote(self, node: ContainerNode, ctx: RenderContext, isFocused: bool, hasNextBlock: bool) -> str:
        savedMdOffset = ctx.mdOffset
        record = ctx.addToMapping(node, len(node.raw), len(node.raw))
        # The line break after a quote belongs to the quote
        if hasNextBlock:
            record.mdEnd += 1

        # Move past `>`
        ctx.htmlOffset = record.htmlStart + 1
        ctx.mdOffset = record.mdStart + 1

        lines = splitByLineBreakNodes(node)
        renderedLines: List[str] = []
        for index, line in enumerate(lines):
            if index > 0:
                ctx.htmlOffset += 1
                ctx.mdOffset += 1
            renderedLines.append("".join(self._renderChild(child, ctx, None) for child in line))

        record.htmlEnd = ctx.htmlOffset
        ctx.mdOffset = savedMdOffset + len(node.raw)

        if not ctx.isHtml:
            # Quotes are single-line, one "\n" separates them from the next block (DESIGN.md decision 1)
            return ">" + "\n".join(renderedLines)

        groupId = node.id or generateNodeId()
        linesHtml: List[str] = []
        for index, lineContent in enumerate(renderedLines):
            if index == 0:
                lineContent = previewSpan("&gt;") + lineContent
            linesHtml.append(self._createLine("quote", lineContent or "<br>", groupId, isFocused) + "\n")

        return (
            f'<div class="md-quote {HIGHLIGHTABLE_NODE_CLASS} {focusedClass(isFocused)}">'
            f'<div class="md-quote-content">{"".join(linesHtml)}</div></div>'
        )

    def _renderPre(self, node: PreNode, ctx: RenderContext, isFocused: bool) -> str:
        ctx.addToMapping(node, len(node.raw), len(node.raw))

        if not ctx.isHtml:
            opening, closing = getPreFences(node)
            if not node.closed and not node.value:
                return opening.rstrip("\n")
            return opening + node.value + closing

        isDecorated = ctx.isDecorated(isFocused)
        language = f'<span class="md-pre-language">{escapeHtml(node.language)}</span>' if node.language else ""
        prefix = previewSpan(f"```{language}") if isDecorated else ""
        suffix = previewSpan("```") if isDecorated and node.closed else ""

        lines = self._prepareLines("pre", prefix, node.value, suffix, node.id or generateNodeId(), isFocused)
        return f'<div class="md-pre">{lines}</div>'

    # ==========================================================================
    # Inline nodes
    # ==========================================================================

    def _renderChild(self, node: ASTNode, ctx: RenderContext, isFocusedOverride: Optional[bool]) -> str:
        rendered = self._renderInlineNode(node, ctx, isFocusedOverride)
        if rendered is None:
            logger.error(f"Can not render node of unknown type: {node.type}")
            return ""
        return rendered

    def _renderChildren(self, node: ASTNode, ctx: RenderContext, isFocusedOverride: Optional[bool]) -> str:
        if not isinstance(node, ContainerNode):
            return ""
        return "".join(self._renderChild(child, ctx, isFocusedOverride) for child in node.children)

    def _renderInlineNode(
        self, node: ASTNode, ctx: RenderContext, isFocusedOverride: Optional[bool] = None
    ) -> Optional[str]:
        isFocused = isFocusedOverride if isFocusedOverride is not None else self._isNodeFocused(node, ctx)

        match node.type:
            case NodeType.TEXT:
                assert isinstance(node, TextNode)
                ctx.addToMapping(node, len(node.value), len(node.raw))
                return escapeHtml(node.value) if ctx.isHtml else node.raw

            case NodeType.BOLD | NodeType.ITALIC | NodeType.STRIKETHROUGH | NodeType.SPOILER | NodeType.UNDERLINE:
                assert isinstance(node, ContainerNode)
                return self._renderFormatting(node, ctx, isFocused)

            case NodeType.MONOSPACE:
                assert isinstance(node, MonospaceNode)
                return self._renderMonospace(node, ctx, isFocused)

            case NodeType.LINK:
                assert isinstance(node, LinkNode)
                return self._renderLink(node, ctx, isFocused)

            case NodeType.MENTION:
                assert isinstance(node, MentionNode)
                mdText = f"[{node.value}](id:{node.userId})"
                ctx.addToMapping(node, len(node.value), len(node.raw))
                if ctx.isHtml:
                    return f'<span class="md-mention">{escapeHtml(node.value)}</span>'
                return mdText

            case NodeType.CUSTOM_EMOJI:
                assert isinstance(node, CustomEmojiNode)
                mdText = f"[{node.value}](doc:{node.documentId})"
                # Emoji image is a single caret position
                ctx.addToMapping(node, 1, len(node.raw))
                if ctx.isHtml:
                    return buildCustomEmojiHtml(node.value, node.documentId)
                return mdText

            case NodeType.PARAGRAPH:
                return self._renderChildren(node, ctx, isFocused)

            case NodeType.LINE_BREAK:
                ctx.htmlOffset += 1
                ctx.mdOffset += len(node.raw)
                if ctx.isHtml:
                    logger.warning("Unexpected line-break node in html mode")
                    return "<br>"
                return "\n"

            case _:
                return None

    def _renderFormatting(self, node: ContainerNode, ctx: RenderContext, isFocused: bool) -> str:
        nodeType = node.type
        openingMarker = getOpeningMarker(nodeType)
        closingMarker = getClosingMarker(nodeType)
        isClosed = isNodeClosed(node)

        # Same formatting twice in a row renders once
        if len(node.children) == 1 and node.children[0].type == nodeType:
            savedMdOffset = ctx.mdOffset
            ctx.mdOffset += len(openingMarker)
            content = self._renderChildren(node, ctx, isFocused)
            ctx.mdOffset = savedMdOffset + len(node.raw)
            return content

        isDecorated = ctx.isHtml and ctx.isDecorated(isFocused)
        savedMdOffset = ctx.mdOffset
        record = ctx.addToMapping(node, 0, len(node.raw))
        ctx.htmlOffset = record.htmlStart + (len(openingMarker) if isDecorated else 0)
        ctx.mdOffset = record.mdStart + len(openingMarker)

        content = self._renderChildren(node, ctx, isFocused)

        if isDecorated and isClosed:
            ctx.htmlOffset += len(closingMarker)
        record.htmlEnd = ctx.htmlOffset
        ctx.mdOffset = savedMdOffset + len(node.raw)

        if not ctx.isHtml:
            return f"{openingMarker}{content}{closingMarker if isClosed else ''}"

        prefix = previewSpan(escapeHtml(openingMarker)) if isDecorated else ""
        suffix = previewSpan(escapeHtml(closingMarker)) if isDecorated and isClosed else ""
        tag = HTML_TAGS[nodeType]
        return (
            f'<{tag} class="md-{nodeType.value} {HIGHLIGHTABLE_NODE_CLASS} {focusedClass(isFocused)}">'
            f"{prefix}{content}{suffix}</{tag}>"
        )

    def _renderMonospace(self, node: MonospaceNode, ctx: RenderContext, isFocused: bool) -> str:
        isDecorated = ctx.isHtml and ctx.isDecorated(isFocused)
        isClosed = isNodeClosed(node)

        htmlLength = len(node.value)
        if isDecorated:
            htmlLength += 2 if isClosed else 1
        ctx.addToMapping(node, htmlLength, len(node.raw))

        if not ctx.isHtml:
            return f"`{node.value}{'`' if isClosed else ''}"

        prefix = previewSpan("`") if isDecorated else ""
        suffix = previewSpan("`") if isDecorated and isClosed else ""
        return (
            f'<code class="md-monospace {HIGHLIGHTABLE_NODE_CLASS} {focusedClass(isFocused)}">'
            f"{prefix}{escapeHtml(node.value)}{suffix}</code>"
        )

    def _renderLink(self, node: LinkNode, ctx: RenderContext, isFocused: bool) -> str:
        isDecorated = ctx.isHtml and ctx.isDecorated(isFocused)
        savedMdOffset = ctx.mdOffset
        record = ctx.addToMapping(node, 0, len(node.raw))
        # Skip `[`
        ctx.htmlOffset = record.htmlStart + (1 if isDecorated else 0)
        ctx.mdOffset = record.mdStart + 1

        children = self._renderChildren(node, ctx, isFocused)

        if isDecorated:
            ctx.htmlOffset += len(f"]({node.href})")
        record.htmlEnd = ctx.htmlOffset
        ctx.mdOffset = savedMdOffset + len(node.raw)

        if not ctx.isHtml:
            return f"[{children}]({node.href})"

        href = escapeAttribute(node.href)
        if isDecorated:
            return "".join(
                [
                    f'<span class="{HIGHLIGHTABLE_NODE_CLASS} {focusedClass(isFocused)}">',
                    previewSpan("["),
                    f'<a href="{href}">{children}</a>',
                    previewSpan(f'](<a href="{href}">{escapeHtml(node.href)}</a>)'),
                    "</span>",
                ]
            )
        return f'<a href="{href}">{children}</a>'

    def _isNodeFocused(self, node: ASTNode, ctx: RenderContext) -> bool:
        """Node is focused when it or one of its descendants is the focused node."""
        if ctx.focusedNode is None:
            return False
        if node is ctx.focusedNode:
            return True
        if isinstance(node, ContainerNode):
            return any(self._isNodeFocused(child, ctx) for child in node.children)
        return False
