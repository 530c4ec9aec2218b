"""
Pytest configuration and common fixtures for composer tests.

All fixtures follow camelCase naming convention.
"""

from pathlib import Path
from typing import Callable, List

import pytest

from lib.composer import ApiFormattedText, MarkdownParser, MessageEntity, MessageEntityType, RendererHtml

# ============================================================================
# Composer Fixtures
# ============================================================================


@pytest.fixture
def markdownParser() -> MarkdownParser:
    """
    Provide a rich multi-line MarkdownParser.

    Returns:
        MarkdownParser: Fresh parser without AST
    """
    return MarkdownParser()


@pytest.fixture
def renderer() -> RendererHtml:
    """Provide a renderer with default options."""
    return RendererHtml()


@pytest.fixture
def sampleMarkdown() -> List[str]:
    """
    Provide markdown documents covering every node type.

    Returns:
        List[str]: Markdown sources
    """
    return [
        "Hello **bold** world",
        "**Bold *italic***",
        "<u>under</u> ~~strike~~ ||spoiler|| `code`",
        "[link **label**](https://example.com)",
        "Hi [Name](id:123) [😀](doc:5368324170671202286)",
        "Intro\n```python\nprint('x')\n```\nOutro",
        "text\n>quote\n\nafter",
        "**unclosed *nested",
        "\\*escaped\\* text",
        "",
        "\n\n",
    ]


@pytest.fixture
def sampleFormattedTexts() -> List[ApiFormattedText]:
    """Provide formatted texts with well formed entities."""
    return [
        ApiFormattedText("Hello bold world", [MessageEntity(MessageEntityType.BOLD, 6, 4)]),
        ApiFormattedText(
            "Hello bold italic world",
            [
                MessageEntity(MessageEntityType.ITALIC, 11, 6),
                MessageEntity(MessageEntityType.BOLD, 6, 11),
            ],
        ),
        ApiFormattedText("Hello @user!", [MessageEntity(MessageEntityType.MENTION_NAME, 6, 5, userId="123")]),
        ApiFormattedText("const x = 42;", [MessageEntity(MessageEntityType.PRE, 0, 13, language="typescript")]),
        ApiFormattedText(
            "Quote 1\nline 2\nafter 😀",
            [
                MessageEntity(MessageEntityType.BLOCKQUOTE, 0, 14),
                MessageEntity(MessageEntityType.CUSTOM_EMOJI, 21, 2, documentId="1"),
            ],
        ),
        ApiFormattedText(
            "see docs and code",
            [
                MessageEntity(MessageEntityType.TEXT_URL, 4, 4, url="https://example.com"),
                MessageEntity(MessageEntityType.CODE, 13, 4),
            ],
        ),
        ApiFormattedText("plain text"),
    ]


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def writeFile(tmp_path: Path) -> Callable[[str, str], Path]:
    """
    Provide helper writing a file into the temporary directory.

    Returns:
        Callable: writeFile(name, content) -> Path
    """

    def _writeFile(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _writeFile
