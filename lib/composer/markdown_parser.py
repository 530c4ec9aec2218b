"""
MarkdownParser: entry point of the composer core.

Holds the current AST with a node id index and a parent map, both rebuilt
on every setAST. Not thread safe: callers editing one document from several
threads must serialize parse, replace and render calls themselves.
"""

import logging
from typing import Dict, List, Optional

from .api_formatted import ApiFormattedText
from .api_formatted_parser import ApiFormattedParser
from .ast_nodes import ASTNode, ContainerNode, ParagraphNode, RootNode
from .focused_node import NodeLocation, getFocusedNode
from .node_utils import generateNodeId
from .offset_mapping import OffsetMappingRecord
from .parser import Parser
from .renderer import RendererHtml, RenderMode, RenderOptions
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


class MarkdownParser:
    """Facade over tokenizer, parser, renderer and entity converter.

    Args:
        isRich: Parse formatting markup, when False only custom emoji are kept
        isSingleLine: Collapse input into a single paragraph
    """

    def __init__(self, isRich: bool = True, isSingleLine: bool = False):
        self.isRich = isRich
        self.isSingleLine = isSingleLine
        self.renderer = RendererHtml()

        self.ast: Optional[RootNode] = None
        # Keyed by id() of the child node
        self.parentMap: Dict[int, ASTNode] = {}
        self.nodeIdMap: Dict[str, ASTNode] = {}

    def getAST(self) -> RootNode:
        """Get current AST, an empty root if nothing was loaded yet."""
        if self.ast is None:
            return RootNode(raw="", children=[])
        return self.ast

    def setAST(self, ast: RootNode) -> None:
        """Replace current AST assigning fresh ids to all nodes."""
        self.ast = ast

        self.nodeIdMap = {}
        self._assignNodeIds(ast)

        self.parentMap = {}
        self._buildParentMap(ast)

    def fromString(self, markdown: str) -> RootNode:
        ast = self.parse(markdown)
        self.setAST(ast)
        return ast

    def fromApiFormattedText(self, formatted: ApiFormattedText) -> RootNode:
        ast = ApiFormattedParser(self.isRich).fromApiFormattedToAst(formatted)
        self.setAST(ast)
        return ast

    def parse(self, markdown: str) -> RootNode:
        """Parse markdown into a new AST, current AST is left untouched.

        Empty input gives a root with a single empty paragraph.
        """
        ast = Parser(tokenize(markdown, self.isRich, self.isSingleLine)).parse()
        if not ast.children:
            ast.addChild(ParagraphNode(raw="", children=[]))
        return ast

    def render(self, options: Optional[RenderOptions] = None) -> str:
        if self.ast is None:
            return ""
        return self.renderer.render(self.ast, options or RenderOptions())

    def toHTML(self, isPreview: bool = False) -> str:
        if self.ast is None:
            return ""
        return self.renderer.render(self.ast, RenderOptions(mode=RenderMode.HTML, isPreview=isPreview))

    def toMarkdown(self, ast: Optional[ASTNode] = None) -> str:
        """Render given AST or the current one as normalized markdown."""
        ast = ast if ast is not None else self.ast
        if ast is None:
            return ""
        return self.renderer.render(ast, RenderOptions(mode=RenderMode.MARKDOWN))

    def toApiFormattedText(self, ast: Optional[ASTNode] = None) -> ApiFormattedText:
        ast = ast if ast is not None else self.ast
        if ast is None:
            return ApiFormattedText("")
        return ApiFormattedParser(self.isRich).fromAstToApiFormatted(ast)

    def getFocusedNode(self, offset: int, ast: Optional[ASTNode] = None) -> NodeLocation:
        return getFocusedNode(offset, ast if ast is not None else self.ast)

    def getOffsetMapping(self) -> List[OffsetMappingRecord]:
        """Offset mapping of the last render."""
        return self.renderer.getOffsetMapping()

    def getParentNode(self, node: ASTNode) -> Optional[ASTNode]:
        return self.parentMap.get(id(node), None)

    def replaceNode(self, node: ASTNode, newNode: ASTNode) -> None:
        """
        Replace node in its parent's children.

        Node ids and the parent map are not updated, call setAST to rebuild them.
        """
        parent = self.getParentNode(node)
        if not isinstance(parent, ContainerNode):
            logger.warning(f"Can not replace {node}: it has no parent")
            return
        parent.children = [newNode if child is node else child for child in parent.children]

    def getNodeById(self, nodeId: str) -> Optional[ASTNode]:
        return self.nodeIdMap.get(nodeId, None)

    def _buildParentMap(self, node: ASTNode, parent: Optional[ASTNode] = None) -> None:
        if parent is not None:
            self.parentMap[id(node)] = parent
        if isinstance(node, ContainerNode):
            for child in node.children:
                self._buildParentMap(child, node)

    def _assignNodeIds(self, node: ASTNode) -> None:
        if isinstance(node, ContainerNode):
            for child in node.children:
                self._assignNodeIds(child)
        node.id = generateNodeId()
        self.nodeIdMap[node.id] = node
