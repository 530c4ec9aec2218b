"""
Conversion between ApiFormattedText and the composer AST.

Entity offsets arrive in UTF-16 code units. They are converted to string
indices once, on the way in, and back on the way out; everything in between
works on plain Python string indices.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from .api_formatted import BLOCK_ENTITY_TYPES, ApiFormattedText, MessageEntity, MessageEntityType
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
from .utf16 import Utf16Index

logger = logging.getLogger(__name__)

FORMATTING_BY_ENTITY = {
    MessageEntityType.BOLD: NodeType.BOLD,
    MessageEntityType.ITALIC: NodeType.ITALIC,
    MessageEntityType.UNDERLINE: NodeType.UNDERLINE,
    MessageEntityType.STRIKE: NodeType.STRIKETHROUGH,
    MessageEntityType.SPOILER: NodeType.SPOILER,
}
ENTITY_BY_FORMATTING = {nodeType: entityType for entityType, nodeType in FORMATTING_BY_ENTITY.items()}

CONVERTIBLE_ENTITY_TYPES = frozenset(
    set(FORMATTING_BY_ENTITY)
    | {
        MessageEntityType.BLOCKQUOTE,
        MessageEntityType.CODE,
        MessageEntityType.PRE,
        MessageEntityType.TEXT_URL,
        MessageEntityType.MENTION_NAME,
        MessageEntityType.CUSTOM_EMOJI,
    }
)


def normalizeTextWithIndexMap(text: str) -> Tuple[str, List[int]]:
    """
    Normalize line endings keeping track of moved indices.

    Returns:
        Normalized text and a list mapping every index of the source text
        (including its end) to the index in the normalized text.
    """
    chars: List[str] = []
    indexMap: List[int] = []
    for index, char in enumerate(text):
        indexMap.append(len(chars))
        if char == "\r":
            if index + 1 < len(text) and text[index + 1] == "\n":
                continue
            chars.append("\n")
        else:
            chars.append(char)
    indexMap.append(len(chars))
    return "".join(chars), indexMap


class ApiFormattedParser:
    """Bidirectional converter between flat entities and the AST.

    In non-rich mode only custom emoji entities are kept, every other entity
    degrades to plain text.
    """

    def __init__(self, isRich: bool = True):
        self.isRich = isRich

    # ==========================================================================
    # Entities -> AST
    # ==========================================================================

    def fromApiFormattedToAst(self, formatted: ApiFormattedText) -> RootNode:
        """
        Build AST from text and entities.

        Text is split into blocks at newlines not covered by an entity. A
        block entity makes a block of its own, the rest of the line goes
        into a paragraph. An empty line is an empty paragraph.
        """
        text, entities = self._prepareEntities(formatted)

        topLevel: List[MessageEntity] = []
        for entity in entities:
            if not topLevel or entity.offset >= topLevel[-1].end:
                topLevel.append(entity)

        root = RootNode()
        for start, end in self._splitLines(text, topLevel):
            paragraph: Optional[ParagraphNode] = None
            pos = start

            for entity in (e for e in topLevel if start <= e.offset < end):
                if entity.offset > pos:
                    paragraph = paragraph or ParagraphNode()
                    paragraph.addChild(TextNode(text[pos : entity.offset]))

                node = self._convertEntityToNode(text, entity, self._getNestedEntities(entity, entities))
                if entity.type in BLOCK_ENTITY_TYPES:
                    if paragraph is not None:
                        root.addChild(paragraph)
                        paragraph = None
                    root.addChild(node)
                else:
                    paragraph = paragraph or ParagraphNode()
                    paragraph.addChild(node)
                pos = entity.end

            if pos < end:
                paragraph = paragraph or ParagraphNode()
                paragraph.addChild(TextNode(text[pos:end]))

            if paragraph is None and start == end:
                paragraph = ParagraphNode()
            if paragraph is not None:
                root.addChild(paragraph)

        for child in root.children:
            if child.type == NodeType.PARAGRAPH and isinstance(child, ContainerNode):
                child.raw = child.getChildrenRaw()
        root.raw = "\n".join(child.raw for child in root.children)

        logger.debug(f"Converted {len(entities)} entities into {len(root.children)} blocks")
        return root

    def _splitLines(self, text: str, topLevel: Sequence[MessageEntity]) -> List[Tuple[int, int]]:
        """Get (start, end) ranges of lines, newlines inside top-level entities do not split."""
        ranges: List[Tuple[int, int]] = []
        start = 0
        entityIndex = 0
        for index, char in enumerate(text):
            while entityIndex < len(topLevel) and topLevel[entityIndex].end <= index:
                entityIndex += 1
            if char != "\n":
                continue
            if entityIndex < len(topLevel) and topLevel[entityIndex].offset <= index:
                continue
            ranges.append((start, index))
            start = index + 1
        ranges.append((start, len(text)))
        return ranges

    def _prepareEntities(self, formatted: ApiFormattedText) -> Tuple[str, List[MessageEntity]]:
        """
        Validate entities and move them to normalized string indices.

        Invalid entities are dropped with a warning: out of range, splitting
        a surrogate pair, partially overlapping an earlier entity, or a block
        entity nested in another entity.
        """
        index = Utf16Index(formatted.text)
        text, indexMap = normalizeTextWithIndexMap(formatted.text)

        prepared: List[MessageEntity] = []
        for entity in formatted.entities or []:
            if entity.type not in CONVERTIBLE_ENTITY_TYPES:
                logger.debug(f"Entity {entity} has no formatting, keeping it as plain text")
                continue
            if not self.isRich and entity.type != MessageEntityType.CUSTOM_EMOJI:
                continue
            if entity.offset < 0 or entity.length <= 0:
                logger.warning(f"Dropping entity with invalid range: {entity}")
                continue

            start = index.toStrIndex(entity.offset)
            end = index.toStrIndex(entity.end)
            if start is None or end is None:
                logger.warning(f"Dropping entity outside of text bounds: {entity}")
                continue

            start, end = indexMap[start], indexMap[end]
            if start >= end:
                logger.warning(f"Dropping entity collapsed by line ending normalization: {entity}")
                continue
            prepared.append(entity.copy(offset=start, length=end - start))

        prepared.sort(key=lambda e: (e.offset, -e.length))

        kept: List[MessageEntity] = []
        openEntities: List[MessageEntity] = []
        for entity in prepared:
            while openEntities and openEntities[-1].end <= entity.offset:
                openEntities.pop()
            if openEntities and entity.end > openEntities[-1].end:
                logger.warning(f"Dropping entity partially overlapping {openEntities[-1]}: {entity}")
                continue
            if openEntities and entity.type in BLOCK_ENTITY_TYPES:
                logger.warning(f"Dropping block entity nested in {openEntities[-1]}: {entity}")
                continue
            kept.append(entity)
            openEntities.append(entity)

        return text, kept

    def _getNestedEntities(self, parent: MessageEntity, entities: Sequence[MessageEntity]) -> List[MessageEntity]:
        return [e for e in entities if e is not parent and e.offset >= parent.offset and e.end <= parent.end]

    def _buildChildren(self, text: str, start: int, end: int, nested: Sequence[MessageEntity]) -> List[ASTNode]:
        children: List[ASTNode] = []
        pos = start
        while pos < end:
            entity = next((e for e in nested if e.offset == pos), None)
            if entity is not None:
                children.append(self._convertEntityToNode(text, entity, self._getNestedEntities(entity, nested)))
                pos = entity.end
                continue

            nextEntity = next((e for e in nested if e.offset > pos), None)
            textEnd = nextEntity.offset if nextEntity is not None else end
            children.append(TextNode(text[pos:textEnd]))
            pos = textEnd
        return children

    def _convertEntityToNode(self, text: str, entity: MessageEntity, nested: Sequence[MessageEntity]) -> ASTNode:
        entityText = text[entity.offset : entity.end]

        match entity.type:
            case entityType if entityType in FORMATTING_BY_ENTITY:
                nodeType = FORMATTING_BY_ENTITY[entityType]
                formatting = FormattingNode(
                    nodeType, children=self._buildChildren(text, entity.offset, entity.end, nested)
                )
                formatting.raw = getOpeningMarker(nodeType) + formatting.getChildrenRaw() + getClosingMarker(nodeType)
                return formatting

            case MessageEntityType.BLOCKQUOTE:
                children = self._splitLineBreaks(self._buildChildren(text, entity.offset, entity.end, nested))
                quote = QuoteNode(children=children)
                quote.raw = ">" + quote.getChildrenRaw()
                return quote

            case MessageEntityType.CODE:
                return MonospaceNode(entityText)

            case MessageEntityType.PRE:
                return PreNode(
                    raw=f"```{entity.language or ''}\n{entityText}\n```",
                    value=entityText,
                    language=entity.language or None,
                    closed=True,
                )

            case MessageEntityType.TEXT_URL:
                url = entity.url or ""
                link = LinkNode(href=url, children=self._buildChildren(text, entity.offset, entity.end, nested))
                link.raw = f"[{link.getChildrenRaw()}]({url})"
                return link

            case MessageEntityType.MENTION_NAME:
                name = entityText[1:] if entityText.startswith("@") else entityText
                return MentionNode(entity.userId or "", name)

            case MessageEntityType.CUSTOM_EMOJI:
                return CustomEmojiNode(entity.documentId or "", entityText)

            case _:
                return TextNode(entityText)

    def _splitLineBreaks(self, children: List[ASTNode]) -> List[ASTNode]:
        ret: List[ASTNode] = []
        for child in children:
            if not isinstance(child, TextNode) or "\n" not in child.value:
                ret.append(child)
                continue
            for index, part in enumerate(child.value.split("\n")):
                if index > 0:
                    ret.append(LineBreakNode())
                if part:
                    ret.append(TextNode(part))
        return ret

    # ==========================================================================
    # AST -> Entities
    # ==========================================================================

    def fromAstToApiFormatted(self, ast: ASTNode) -> ApiFormattedText:
        """Flatten AST into text and entities, entities are listed in visit order."""
        parts: List[str] = []
        entities: List[MessageEntity] = []
        currentOffset = 0

        def emit(value: str) -> None:
            nonlocal currentOffset
            parts.append(value)
            currentOffset += len(value)

        def addEntity(entityType: MessageEntityType, offset: int, **kwargs) -> None:
            length = currentOffset - offset
            if length > 0:
                entities.append(MessageEntity(entityType, offset, length, **kwargs))

        def processChildren(node: ASTNode) -> None:
            if isinstance(node, ContainerNode):
                for child in node.children:
                    processNode(child)

        def processNode(node: ASTNode) -> None:
            nonlocal currentOffset
            match node.type:
                case NodeType.ROOT:
                    children = node.children if isinstance(node, ContainerNode) else []
                    for index, child in enumerate(children):
                        processNode(child)
                        if index < len(children) - 1:
                            parts.append("\n")
                            # A pre block already counted its trailing newline
                            if child.type != NodeType.PRE:
                                currentOffset += 1

                case NodeType.PARAGRAPH:
                    processChildren(node)

                case NodeType.QUOTE:
                    startOffset = currentOffset
                    processChildren(node)
                    addEntity(MessageEntityType.BLOCKQUOTE, startOffset)

                case NodeType.PRE:
                    assert isinstance(node, PreNode)
                    startOffset = currentOffset
                    emit(node.value)
                    addEntity(MessageEntityType.PRE, startOffset, language=node.language or None)
                    currentOffset += 1

                case NodeType.TEXT:
                    assert isinstance(node, TextNode)
                    emit(node.value)

                case NodeType.LINE_BREAK:
                    emit("\n")

                case nodeType if nodeType in ENTITY_BY_FORMATTING:
                    startOffset = currentOffset
                    processChildren(node)
                    addEntity(ENTITY_BY_FORMATTING[nodeType], startOffset)

                case NodeType.LINK:
                    assert isinstance(node, LinkNode)
                    startOffset = currentOffset
                    processChildren(node)
                    addEntity(MessageEntityType.TEXT_URL, startOffset, url=node.href)

                case NodeType.MENTION:
                    assert isinstance(node, MentionNode)
                    startOffset = currentOffset
                    emit(f"@{node.value}")
                    addEntity(MessageEntityType.MENTION_NAME, startOffset, userId=node.userId)

                case NodeType.MONOSPACE:
                    assert isinstance(node, MonospaceNode)
                    startOffset = currentOffset
                    emit(node.value)
                    addEntity(MessageEntityType.CODE, startOffset)

                case NodeType.CUSTOM_EMOJI:
                    assert isinstance(node, CustomEmojiNode)
                    startOffset = currentOffset
                    emit(node.value)
                    addEntity(MessageEntityType.CUSTOM_EMOJI, startOffset, documentId=node.documentId)

                case _:
                    logger.error(f"Can not convert node of unknown type {node.type} to entities")

        processNode(ast)
        text = "".join(parts)

        index = Utf16Index(text)
        wireEntities: List[MessageEntity] = []
        for entity in entities:
            start = index.toUtf16(entity.offset)
            wireEntities.append(entity.copy(offset=start, length=index.toUtf16(entity.end) - start))
        return ApiFormattedText(text, wireEntities or None)
