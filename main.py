"""
Composer - convert editor markdown and formatted text entities from the command line.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

import telegram

from internal.config.manager import ConfigManager
from lib.composer import (
    ApiFormattedText,
    ComposerError,
    ConversionError,
    MarkdownParser,
    RenderMode,
    RenderOptions,
    fromTelegramMessage,
    toTelegramEntities,
)
from lib.logging_utils import initLogging
from lib.utils import jsonDumps

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.WARNING)
logger = logging.getLogger(__name__)

INPUT_FORMATS = ("markdown", "entities", "telegram")
OUTPUT_FORMATS = ("html", "markdown", "entities", "telegram")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Composer - convert editor markdown to html, markdown or formatted text entities",
    )
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Input file, '-' for stdin (default: stdin)",
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument(
        "--from",
        dest="inputFormat",
        choices=INPUT_FORMATS,
        default="markdown",
        help="Input format: markdown text, entities JSON or Telegram Bot API message JSON (default: markdown)",
    )
    parser.add_argument(
        "--to",
        dest="outputFormat",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: [renderer] mode from config)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        default=None,
        help="Show markdown syntax characters in html output",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        help="Ignore formatting markup, keep only custom emoji",
    )
    parser.add_argument(
        "--single-line",
        action="store_true",
        help="Collapse input into a single paragraph",
    )
    parser.add_argument(
        "--offset-mapping",
        action="store_true",
        help="Print offset mapping records as JSON after html output",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )
    args = parser.parse_args(argv)

    # Config may change working directory
    args.config = os.path.abspath(args.config)
    if args.input != "-":
        args.input = os.path.abspath(args.input)
    if args.config_dir:
        args.config_dir = [os.path.abspath(dir_path) for dir_path in args.config_dir]

    return args


def prettyPrintConfig(configManager: ConfigManager) -> None:
    """Pretty-print the loaded configuration."""
    print("=== Composer Configuration ===")
    print()
    print(jsonDumps(configManager.config, indent=2))
    print()
    print("=== Configuration loaded successfully ===")


def readInput(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "rt", encoding="utf-8") as f:
        return f.read()


def loadFormattedText(data: str) -> ApiFormattedText:
    """
    Parse entities JSON document.

    Raises:
        ConversionError: If the document is not valid JSON or has wrong shape
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise ConversionError(f"Invalid entities JSON: {e}") from e
    return ApiFormattedText.fromDict(payload)


def loadTelegramMessage(data: str) -> ApiFormattedText:
    """
    Parse Telegram Bot API message JSON: `{"text": ..., "entities": [...]}`.

    Raises:
        ConversionError: If the document is not valid JSON or has wrong shape
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise ConversionError(f"Invalid message JSON: {e}") from e
    if not isinstance(payload, dict) or not isinstance(payload.get("text", None), str):
        raise ConversionError("Message must be a dict with a string 'text' field")

    try:
        entities = telegram.MessageEntity.de_list(payload.get("entities", None) or [], None)
    except (KeyError, TypeError, ValueError) as e:
        raise ConversionError(f"Malformed message entities: {e}") from e
    return fromTelegramMessage(payload["text"], entities)


def dumpTelegramMessage(formatted: ApiFormattedText) -> str:
    entities = [entity.to_dict() for entity in toTelegramEntities(formatted)]
    return jsonDumps({"text": formatted.text, "entities": entities})


def convert(args: argparse.Namespace, configManager: ConfigManager) -> str:
    """Run one conversion according to arguments and config, return the output text."""
    composerConfig = configManager.getComposerConfig()
    rendererConfig = configManager.getRendererConfig()

    isRich = bool(composerConfig["rich"]) and not args.plain
    isSingleLine = bool(composerConfig["single-line"]) or args.single_line
    isPreview = bool(rendererConfig["preview"]) if args.preview is None else args.preview
    outputFormat = args.outputFormat or str(rendererConfig["mode"])
    if outputFormat not in OUTPUT_FORMATS:
        raise ComposerError(f"Unknown output format '{outputFormat}'")

    parser = MarkdownParser(isRich=isRich, isSingleLine=isSingleLine)
    data = readInput(args.input)

    match args.inputFormat:
        case "entities":
            parser.fromApiFormattedText(loadFormattedText(data))
        case "telegram":
            parser.fromApiFormattedText(loadTelegramMessage(data))
        case _:
            parser.fromString(data)

    match outputFormat:
        case "entities":
            return jsonDumps(parser.toApiFormattedText().toDict())
        case "telegram":
            return dumpTelegramMessage(parser.toApiFormattedText())
        case "markdown":
            return parser.toMarkdown()
        case _:
            result = parser.render(RenderOptions(mode=RenderMode.HTML, isPreview=isPreview))
            if args.offset_mapping:
                records = [record.toDict() for record in parser.getOffsetMapping()]
                result = f"{result}\n{jsonDumps(records)}"
            return result


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    configManager = ConfigManager(configPath=args.config, configDirs=args.config_dir)
    if args.print_config:
        prettyPrintConfig(configManager)
        return

    initLogging(configManager.getLoggingConfig())

    try:
        print(convert(args, configManager))
    except (ComposerError, OSError) as e:
        logger.error(f"Conversion failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
