"""
Tests for logging setup and common utilities.
"""

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from lib.logging_utils import configureLogger, getLogLevelByStr, initLogging
from lib.utils import jsonDumps, load_dotenv

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def restoreLoggers():
    """Restore root and composer loggers after test"""
    rootLogger = logging.getLogger()
    composerLogger = logging.getLogger("lib.composer")
    saved = [(lg, lg.level, lg.handlers[:], lg.propagate) for lg in (rootLogger, composerLogger)]
    yield
    for lg, level, handlers, propagate in saved:
        for handler in lg.handlers[:]:
            lg.removeHandler(handler)
            handler.close()
        for handler in handlers:
            lg.addHandler(handler)
        lg.setLevel(level)
        lg.propagate = propagate


# ============================================================================
# Logging
# ============================================================================


class TestLogLevels:
    """Test log level parsing"""

    def testKnownLevels(self):
        """Level names are case insensitive"""
        assert getLogLevelByStr("debug") == logging.DEBUG
        assert getLogLevelByStr("WARNING") == logging.WARNING

    def testUnknownLevel(self, caplog):
        """Unknown level returns default and logs error"""
        assert getLogLevelByStr("loud", logging.INFO) == logging.INFO
        assert getLogLevelByStr("basicConfig") is None
        assert "Invalid log level" in caplog.text


class TestConfigureLogger:
    """Test handler setup"""

    def testConsoleHandler(self, restoreLoggers):
        """Console handler uses console-level"""
        localLogger = logging.getLogger("lib.composer")
        configureLogger(localLogger, {"level": "DEBUG", "console": True, "console-level": "ERROR"})

        assert localLogger.level == logging.DEBUG
        assert len(localLogger.handlers) == 1
        assert localLogger.handlers[0].level == logging.ERROR

    def testHandlersAreReplaced(self, restoreLoggers):
        """Configuring twice does not duplicate handlers"""
        localLogger = logging.getLogger("lib.composer")
        configureLogger(localLogger, {"console": True})
        configureLogger(localLogger, {"console": True})

        assert len(localLogger.handlers) == 1

    def testFileHandler(self, restoreLoggers, tmp_path):
        """File handler creates missing directories"""
        logFile = tmp_path / "logs" / "composer.log"
        localLogger = logging.getLogger("lib.composer")
        configureLogger(localLogger, {"level": "INFO", "file": str(logFile), "file-level": "WARNING"})

        localLogger.warning("dropped entity")
        for handler in localLogger.handlers:
            handler.flush()

        assert logFile.exists()
        assert "dropped entity" in logFile.read_text(encoding="utf-8")

    def testRotatingFileHandler(self, restoreLoggers, tmp_path):
        """rotate enables daily rotation"""
        localLogger = logging.getLogger("lib.composer")
        configureLogger(localLogger, {"file": str(tmp_path / "composer.log"), "rotate": True})

        assert isinstance(localLogger.handlers[0], TimedRotatingFileHandler)


class TestInitLogging:
    """Test root and per-logger setup"""

    def testPerLoggerOverride(self, restoreLoggers):
        """[logging.logger.<name>] sections configure named loggers"""
        initLogging(
            {
                "level": "WARNING",
                "logger": {"lib.composer": {"level": "DEBUG", "propagate": False}},
            }
        )

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("lib.composer").level == logging.DEBUG
        assert logging.getLogger("lib.composer").propagate is False

    def testEmptyConfig(self, restoreLoggers):
        """Empty section keeps INFO on root"""
        initLogging({})
        assert logging.getLogger().level == logging.INFO


# ============================================================================
# Utilities
# ============================================================================


class TestJsonDumps:
    """Test JSON serialization"""

    def testCompactByDefault(self):
        """Compact separators, sorted keys, unicode kept"""
        assert jsonDumps({"b": 1, "a": "😀"}) == '{"a":"😀","b":1}'

    def testIndent(self):
        """indent means pretty-printed output"""
        assert jsonDumps({"a": [1]}, indent=2) == '{\n  "a": [\n    1\n  ]\n}'

    def testUnknownTypesUseStr(self):
        """Non-serializable values fall back to str()"""
        assert jsonDumps({"path": Path("logs")}, compact=True) == '{"path":"logs"}'
        assert jsonDumps(logging.INFO) == "20"


class TestLoadDotenv:
    """Test .env loading"""

    def testParsing(self, tmp_path, monkeypatch):
        """Comments and malformed lines are skipped, quotes stripped"""
        monkeypatch.delenv("COMPOSER_TEST_MODE", raising=False)
        envFile = tmp_path / ".env"
        envFile.write_text('# comment\nCOMPOSER_TEST_MODE = "markdown"\ngarbage\n\nEMPTY=\n', encoding="utf-8")

        values = load_dotenv(str(envFile), populateEnv=False)

        assert values == {"COMPOSER_TEST_MODE": "markdown", "EMPTY": ""}
        assert "COMPOSER_TEST_MODE" not in os.environ

    def testPopulateEnv(self, tmp_path, monkeypatch):
        """Values go to the environment by default"""
        monkeypatch.delenv("COMPOSER_TEST_MODE", raising=False)
        envFile = tmp_path / ".env"
        envFile.write_text("COMPOSER_TEST_MODE=html\n", encoding="utf-8")

        load_dotenv(str(envFile))

        assert os.environ["COMPOSER_TEST_MODE"] == "html"
        monkeypatch.delenv("COMPOSER_TEST_MODE")
