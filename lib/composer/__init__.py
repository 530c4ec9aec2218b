"""
lib.composer - rich text editor core, dood!

Converts between markdown-like editor text, an AST and flat formatted text
(plain string plus UTF-16 entity ranges), renders the AST to HTML or
markdown and maps caret offsets between rendered HTML and markdown source.

Main Components:
- MarkdownParser: Facade holding the current AST
- Tokenizer, BlockTokenizer, InlineTokenizer: Markdown tokenizers
- Parser: Builds the AST from tokens
- ApiFormattedParser: Entities <-> AST converter
- fromTelegramMessage, toTelegramEntities: python-telegram-bot entity adapter
- RendererHtml: HTML/markdown renderer with offset mapping
- getFocusedNode, mdToHtmlOffset, htmlToMdOffset: Caret helpers

Usage:
    from lib.composer import MarkdownParser, RenderOptions

    parser = MarkdownParser()
    parser.fromString("Hello **bold** world")
    html = parser.toHTML()
    formatted = parser.toApiFormattedText()
    mapping = parser.getOffsetMapping()
"""

from .api_formatted import ApiFormattedText, MessageEntity, MessageEntityType
from .api_formatted_parser import ApiFormattedParser
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
from .block_tokenizer import BlockTokenizer
from .errors import ComposerError, ConversionError, RendererError
from .focused_node import NodeLocation, findDeepestTextNode, getFocusedNode
from .inline_tokenizer import InlineTokenizer
from .markdown_parser import MarkdownParser
from .offset_mapping import OffsetMappingRecord, htmlToMdOffset, mdToHtmlOffset
from .parser import Parser
from .renderer import RendererHtml, RenderMode, RenderOptions
from .telegram_entities import fromTelegramEntity, fromTelegramMessage, toTelegramEntities, toTelegramEntity
from .tokenizer import Tokenizer, tokenize
from .tokens import BlockToken, BlockTokenType, InlineToken, InlineTokenType

__version__ = "1.0.0"

__all__ = [
    # Facade
    "MarkdownParser",
    # Tokenizers and parser
    "BlockTokenizer",
    "InlineTokenizer",
    "Tokenizer",
    "tokenize",
    "Parser",
    "BlockToken",
    "BlockTokenType",
    "InlineToken",
    "InlineTokenType",
    # AST
    "ASTNode",
    "ContainerNode",
    "RootNode",
    "ParagraphNode",
    "QuoteNode",
    "PreNode",
    "TextNode",
    "FormattingNode",
    "MonospaceNode",
    "LinkNode",
    "MentionNode",
    "CustomEmojiNode",
    "LineBreakNode",
    "NodeType",
    # Formatted text
    "ApiFormattedText",
    "MessageEntity",
    "MessageEntityType",
    "ApiFormattedParser",
    # Telegram Bot API entities
    "fromTelegramEntity",
    "fromTelegramMessage",
    "toTelegramEntity",
    "toTelegramEntities",
    # Rendering and caret helpers
    "RendererHtml",
    "RenderMode",
    "RenderOptions",
    "OffsetMappingRecord",
    "mdToHtmlOffset",
    "htmlToMdOffset",
    "NodeLocation",
    "getFocusedNode",
    "findDeepestTextNode",
    # Errors
    "ComposerError",
    "ConversionError",
    "RendererError",
]
