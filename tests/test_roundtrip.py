"""
Round-trip and robustness tests for the composer, dood!

Covers the laws every conversion has to keep:
- entities -> AST -> entities keeps text and entity set
- markdown -> AST -> markdown reparses to the same AST
- html -> markdown -> html caret translation is stable
- arbitrary input never raises
"""

import random
from typing import List

import pytest

from lib.composer import (
    ApiFormattedParser,
    ApiFormattedText,
    MarkdownParser,
    MessageEntity,
    MessageEntityType,
    RenderMode,
    RenderOptions,
    getFocusedNode,
    htmlToMdOffset,
    mdToHtmlOffset,
)

# ============================================================================
# Helpers
# ============================================================================


def entityKey(entity: MessageEntity):
    return (entity.type, entity.offset, entity.length, entity.url, entity.userId, entity.documentId, entity.language)


def renderMarkdown(parser: MarkdownParser) -> str:
    return parser.render(RenderOptions(mode=RenderMode.MARKDOWN))


# ============================================================================
# Entity Round Trip
# ============================================================================


class TestEntityRoundTrip:
    """Test entities -> AST -> entities"""

    def testSampleTexts(self, sampleFormattedTexts: List[ApiFormattedText]):
        """Every well formed sample keeps text and entities"""
        converter = ApiFormattedParser()
        for formatted in sampleFormattedTexts:
            result = converter.fromAstToApiFormatted(converter.fromApiFormattedToAst(formatted))

            assert result.text == formatted.text
            assert sorted(map(entityKey, result.entities or [])) == sorted(map(entityKey, formatted.entities or []))

    def testConsecutiveQuotes(self):
        """Two adjacent quotes stay two quotes"""
        formatted = ApiFormattedText(
            "a\nb",
            [MessageEntity(MessageEntityType.BLOCKQUOTE, 0, 1), MessageEntity(MessageEntityType.BLOCKQUOTE, 2, 1)],
        )
        parser = MarkdownParser()
        parser.fromApiFormattedText(formatted)

        assert parser.toMarkdown() == ">a\n>b"
        assert parser.toApiFormattedText() == formatted

    def testThroughMarkdown(self, sampleFormattedTexts: List[ApiFormattedText]):
        """Entities survive a trip through markdown source, quotes are single line there"""
        for formatted in sampleFormattedTexts:
            if any(entity.type == MessageEntityType.BLOCKQUOTE for entity in formatted.entities or []):
                continue
            source = MarkdownParser()
            source.fromApiFormattedText(formatted)
            markdown = source.toMarkdown()

            target = MarkdownParser()
            target.fromString(markdown)
            result = target.toApiFormattedText()

            assert result.text == formatted.text, markdown
            assert sorted(map(entityKey, result.entities or [])) == sorted(map(entityKey, formatted.entities or []))


# ============================================================================
# Markdown Round Trip
# ============================================================================


class TestMarkdownRoundTrip:
    """Test markdown -> AST -> markdown"""

    def testReparseKeepsRaw(self, sampleMarkdown: List[str]):
        """Rendered markdown parses back to the same tree"""
        for text in sampleMarkdown:
            parser = MarkdownParser()
            root = parser.fromString(text)
            rendered = renderMarkdown(parser)

            reparsed = MarkdownParser().parse(rendered)
            assert reparsed.raw == root.raw, text

    def testIdempotent(self, sampleMarkdown: List[str]):
        """Rendering markdown twice gives the same output"""
        for text in sampleMarkdown:
            first = MarkdownParser()
            first.fromString(text)
            once = renderMarkdown(first)

            second = MarkdownParser()
            second.fromString(once)
            assert renderMarkdown(second) == once, text

    @pytest.mark.parametrize(
        "text",
        [
            "Hello **bold** world",
            "**Bold *italic***",
            "Intro\n```python\nprint('x')\n```\nOutro",
            "[link **label**](https://example.com)",
            "a\n\nb",
        ],
    )
    @pytest.mark.parametrize("isPreview", [False, True])
    def testCaretTranslationIsStable(self, text: str, isPreview: bool):
        """html -> md -> html returns to the starting caret"""
        parser = MarkdownParser()
        parser.fromString(text)
        html = parser.render(RenderOptions(isPreview=isPreview))
        mapping = parser.getOffsetMapping()
        htmlLength = max(record.htmlEnd for record in mapping)

        assert html
        for htmlOffset in range(htmlLength + 1):
            assert mdToHtmlOffset(mapping, htmlToMdOffset(mapping, htmlOffset)) == htmlOffset


# ============================================================================
# Robustness
# ============================================================================


ODD_INPUTS = [
    "**",
    "***",
    "``````",
    "```",
    "```\n",
    "```lang",
    "[",
    "[]",
    "[](",
    "[a](",
    "[a](id:)",
    "[a](doc:x",
    "[😀](doc:1",
    ">",
    ">\n>",
    "\n>\n",
    "\\",
    "\\\\",
    "a\\",
    "<u>",
    "</u>",
    "<u><u>x",
    "||~~**__`",
    "`**`**",
    "**`x**`",
    "*a **b* c**",
    "[**a](b)**",
    "\r\n\r\n",
    "\r",
    "😀😀**😀",
    "> **quote\nplain**",
    "```\n**not bold**\n```",
]

MARKUP_ALPHABET = ["*", "**", "_", "~~", "||", "`", "```", "<u>", "</u>", "[", "]", "(", ")", "id:", "doc:",
                   ">", "\\", "\n", "\r\n", " ", "a", "b", "😀", "@", "https://x.y"]


def exerciseEverything(text: str) -> None:
    for isRich in (True, False):
        for isSingleLine in (False, True):
            parser = MarkdownParser(isRich=isRich, isSingleLine=isSingleLine)
            root = parser.fromString(text)

            parser.toHTML()
            parser.toHTML(isPreview=True)
            markdown = renderMarkdown(parser)
            mapping = parser.getOffsetMapping()
            for offset in range(len(text) + 2):
                getFocusedNode(offset, root)
                mdToHtmlOffset(mapping, offset)
                htmlToMdOffset(mapping, offset)
                parser.render(RenderOptions(isPreview=True, previewNodeOffset=offset))

            formatted = parser.toApiFormattedText()
            MarkdownParser(isRich=isRich).fromApiFormattedText(formatted)
            MarkdownParser().parse(markdown)


class TestRobustness:
    """Test that malformed input never raises"""

    @pytest.mark.parametrize("text", ODD_INPUTS)
    def testOddInputs(self, text: str):
        """Hand picked edge cases"""
        exerciseEverything(text)

    @pytest.mark.parametrize("seed", range(20))
    def testRandomMarkup(self, seed: int):
        """Random soup of markup characters"""
        rng = random.Random(seed)
        text = "".join(rng.choice(MARKUP_ALPHABET) for _ in range(rng.randint(1, 40)))
        exerciseEverything(text)

    @pytest.mark.parametrize("seed", range(20))
    def testRandomEntities(self, seed: int):
        """Random entity ranges are dropped or kept, never raise"""
        rng = random.Random(seed)
        text = "".join(rng.choice(["a", "b", " ", "\n", "😀", "\r\n"]) for _ in range(rng.randint(0, 20)))
        types = [
            MessageEntityType.BOLD,
            MessageEntityType.ITALIC,
            MessageEntityType.CODE,
            MessageEntityType.PRE,
            MessageEntityType.BLOCKQUOTE,
            MessageEntityType.TEXT_URL,
            MessageEntityType.MENTION_NAME,
            MessageEntityType.CUSTOM_EMOJI,
            MessageEntityType.URL,
        ]
        entities = [
            MessageEntity(
                rng.choice(types),
                rng.randint(-2, len(text) + 2),
                rng.randint(-1, len(text) + 2),
                url="https://example.com",
                userId="1",
                documentId="2",
            )
            for _ in range(rng.randint(0, 6))
        ]

        parser = MarkdownParser()
        root = parser.fromApiFormattedText(ApiFormattedText(text, entities))
        parser.toHTML()
        markdown = parser.toMarkdown()
        parser.toApiFormattedText()
        for offset in range(len(markdown) + 2):
            getFocusedNode(offset, root)
