"""
Tests for the command line entry point.
"""

import json
from pathlib import Path
from typing import Callable

import pytest

from main import main, parse_arguments

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def emptyConfig(writeFile: Callable[[str, str], Path]) -> Path:
    """Config file without any overrides"""
    return writeFile("config.toml", "")


def runMain(capsys, *argv: str) -> str:
    main(list(argv))
    return capsys.readouterr().out


# ============================================================================
# Argument Parsing
# ============================================================================


class TestArguments:
    """Test command line arguments"""

    def testDefaults(self):
        """Defaults read markdown from stdin"""
        args = parse_arguments([])
        assert args.input == "-"
        assert args.inputFormat == "markdown"
        assert args.outputFormat is None
        assert args.preview is None
        assert args.config.endswith("config.toml")

    def testPathsAreAbsolute(self):
        """Relative paths are resolved before config can change directory"""
        args = parse_arguments(["input.md", "-c", "my.toml", "--config-dir", "conf.d"])
        assert Path(args.input).is_absolute()
        assert Path(args.config).is_absolute()
        assert all(Path(path).is_absolute() for path in args.config_dir)

    def testUnknownFormat(self):
        """Unknown output format is rejected by argparse"""
        with pytest.raises(SystemExit):
            parse_arguments(["--to", "pdf"])


# ============================================================================
# Conversions
# ============================================================================


class TestConversions:
    """Test conversions through main()"""

    def testMarkdownToHtml(self, capsys, writeFile, emptyConfig):
        """Markdown renders to html by default"""
        source = writeFile("input.md", "Hello **bold**")
        output = runMain(capsys, str(source), "-c", str(emptyConfig))

        assert "<strong" in output
        assert "bold" in output
        assert "**" not in output

    def testMarkdownToMarkdown(self, capsys, writeFile, emptyConfig):
        """Markdown output keeps markup"""
        source = writeFile("input.md", "Hello **bold**\n>quote")
        output = runMain(capsys, str(source), "-c", str(emptyConfig), "--to", "markdown")

        assert output == "Hello **bold**\n>quote\n"

    def testMarkdownToEntities(self, capsys, writeFile, emptyConfig):
        """Entities output is a formatted text JSON document"""
        source = writeFile("input.md", "Hello **bold** world")
        output = runMain(capsys, str(source), "-c", str(emptyConfig), "--to", "entities")

        assert json.loads(output) == {
            "text": "Hello bold world",
            "entities": [{"type": "MessageEntityBold", "offset": 6, "length": 4}],
        }

    def testEntitiesToMarkdown(self, capsys, writeFile, emptyConfig):
        """Entities JSON input converts to markdown"""
        document = {
            "text": "Hello @user!",
            "entities": [{"type": "MessageEntityMentionName", "offset": 6, "length": 5, "userId": 123}],
        }
        source = writeFile("input.json", json.dumps(document))
        output = runMain(capsys, str(source), "-c", str(emptyConfig), "--from", "entities", "--to", "markdown")

        assert output == "Hello [user](id:123)!\n"

    def testMarkdownToTelegram(self, capsys, writeFile, emptyConfig):
        """Telegram output carries Bot API entity dicts"""
        source = writeFile("input.md", "Hello **bold**")
        output = runMain(capsys, str(source), "-c", str(emptyConfig), "--to", "telegram")

        message = json.loads(output)
        assert message["text"] == "Hello bold"
        assert len(message["entities"]) == 1
        entity = message["entities"][0]
        assert (entity["type"], entity["offset"], entity["length"]) == ("bold", 6, 4)

    def testTelegramToMarkdown(self, capsys, writeFile, emptyConfig):
        """Telegram message JSON input converts to markdown"""
        document = {
            "text": "Hello bold and code",
            "entities": [
                {"type": "bold", "offset": 6, "length": 4},
                {"type": "code", "offset": 15, "length": 4},
            ],
        }
        source = writeFile("input.json", json.dumps(document))
        output = runMain(capsys, str(source), "-c", str(emptyConfig), "--from", "telegram", "--to", "markdown")

        assert output == "Hello **bold** and `code`\n"

    def testOffsetMapping(self, capsys, writeFile, emptyConfig):
        """Offset mapping records follow the html"""
        source = writeFile("input.md", "ab")
        output = runMain(capsys, str(source), "-c", str(emptyConfig), "--offset-mapping")

        html, records = output.rstrip("\n").split("\n", 1)
        assert html
        mapping = json.loads(records)
        assert len(mapping) == 1
        assert mapping[0]["mdStart"] == 0
        assert mapping[0]["mdEnd"] == 2

    def testPlain(self, capsys, writeFile, emptyConfig):
        """Plain mode keeps markup as text"""
        source = writeFile("input.md", "**b**")
        output = runMain(capsys, str(source), "-c", str(emptyConfig), "--plain", "--to", "entities")

        assert json.loads(output) == {"text": "**b**"}

    def testConfigRendererMode(self, capsys, writeFile):
        """Renderer mode from config is the default output format"""
        config = writeFile("config.toml", '[renderer]\nmode = "markdown"\n')
        source = writeFile("input.md", "*a*")
        output = runMain(capsys, str(source), "-c", str(config))

        assert output == "*a*\n"

    def testPrintConfig(self, capsys, writeFile):
        """--print-config dumps configuration and exits"""
        config = writeFile("config.toml", '[renderer]\nmode = "markdown"\n')
        output = runMain(capsys, "-c", str(config), "--print-config")

        assert "=== Composer Configuration ===" in output
        assert '"mode": "markdown"' in output


# ============================================================================
# Errors
# ============================================================================


class TestErrors:
    """Test failure exit codes"""

    def testBadEntitiesJson(self, capsys, writeFile, emptyConfig):
        """Malformed JSON exits with status 1"""
        source = writeFile("input.json", "{not json")
        with pytest.raises(SystemExit) as excInfo:
            runMain(capsys, str(source), "-c", str(emptyConfig), "--from", "entities")
        assert excInfo.value.code == 1

    def testTelegramTextNotString(self, capsys, writeFile, emptyConfig):
        """Telegram message without string text exits with status 1"""
        source = writeFile("input.json", json.dumps({"text": 5}))
        with pytest.raises(SystemExit) as excInfo:
            runMain(capsys, str(source), "-c", str(emptyConfig), "--from", "telegram")
        assert excInfo.value.code == 1

    def testMissingInput(self, capsys, tmp_path, emptyConfig):
        """Missing input file exits with status 1"""
        with pytest.raises(SystemExit) as excInfo:
            runMain(capsys, str(tmp_path / "missing.md"), "-c", str(emptyConfig))
        assert excInfo.value.code == 1

    def testBadConfigMode(self, capsys, writeFile):
        """Unknown renderer mode in config exits with status 1"""
        config = writeFile("config.toml", '[renderer]\nmode = "pdf"\n')
        source = writeFile("input.md", "x")
        with pytest.raises(SystemExit) as excInfo:
            runMain(capsys, str(source), "-c", str(config))
        assert excInfo.value.code == 1
