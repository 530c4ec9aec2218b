"""
Configuration management for the composer tool.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

import lib.utils as utils

logger = logging.getLogger(__name__)

DEFAULT_COMPOSER_CONFIG: Dict[str, Any] = {
    "rich": True,
    "single-line": False,
}

DEFAULT_RENDERER_CONFIG: Dict[str, Any] = {
    "mode": "html",
    "preview": False,
}


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace environment variable placeholder with its value.

    Args:
        match: A regex match object containing the environment variable name.

    Returns:
        str: The value of the environment variable or the original placeholder
             if the variable is not set.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} placeholders in configuration values.

    Strings get placeholders replaced, dicts and lists are processed
    recursively, other values are returned unchanged.
    """
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Loads TOML configuration of the composer tool."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """Initialize ConfigManager with config file path and optional config directories."""
        self.config_path = configPath
        self.config_dirs = configDirs or []
        if os.path.exists(dotEnvFile):
            utils.load_dotenv(path=dotEnvFile)
        self.config = substituteEnvVars(self._loadConfig())

        rootDir = self.config.get("application", {}).get("root-dir", None)
        if rootDir is not None:
            os.chdir(rootDir)
            logger.info(f"Changed root directory to {rootDir}")

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory."""
        toml_files = []
        dir_path = Path(directory)

        if not dir_path.exists():
            logger.warning(f"Config directory {directory} does not exist, skipping")
            return toml_files

        if not dir_path.is_dir():
            logger.warning(f"Config path {directory} is not a directory, skipping")
            return toml_files

        for toml_file in dir_path.rglob("*.toml"):
            if toml_file.is_file():
                toml_files.append(toml_file)
                logger.debug(f"Found config file: {toml_file}")

        # Sorted for stable merge order
        return sorted(toml_files)

    def _mergeConfigs(self, base_config: Dict[str, Any], new_config: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, new values win."""
        merged = base_config.copy()

        for key, value in new_config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def _loadConfig(self) -> Dict[str, Any]:
        """
        Load main TOML file, then merge every .toml file found in config directories.

        A missing main file is not an error, defaults are used. Broken files in
        config directories are logged and skipped.

        Raises:
            tomli.TOMLDecodeError: If the main config file is not valid TOML
        """
        config: Dict[str, Any] = {}

        config_file = Path(self.config_path)
        if config_file.exists():
            with open(config_file, "rb") as f:
                config = tomli.load(f)
            logger.info(f"Loaded main config from {self.config_path}")
        elif not self.config_dirs:
            logger.warning(f"Configuration file {self.config_path} not found, using defaults")

        if self.config_dirs:
            logger.info(f"Scanning {len(self.config_dirs)} config directories for .toml files")

            for config_dir in self.config_dirs:
                toml_files = self._findTomlFilesRecursive(config_dir)
                logger.info(f"Found {len(toml_files)} .toml files in {config_dir}")

                for toml_file in toml_files:
                    try:
                        with open(toml_file, "rb") as f:
                            dir_config = tomli.load(f)
                    except (OSError, tomli.TOMLDecodeError) as e:
                        logger.error(f"Failed to load config file {toml_file}: {e}")
                        continue

                    config = self._mergeConfigs(config, dir_config)
                    logger.info(f"Merged config from {toml_file}")

        logger.debug("Configuration loaded")
        return config

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging configuration, see lib.logging_utils.initLogging."""
        return self.get("logging", {})

    def getComposerConfig(self) -> Dict[str, Any]:
        """
        Get composer configuration.

        Returns:
            Dict with keys:
            - rich: Parse formatting markup (default true)
            - single-line: Collapse input into one paragraph (default false)
        """
        return self._mergeConfigs(DEFAULT_COMPOSER_CONFIG, self.get("composer", {}))

    def getRendererConfig(self) -> Dict[str, Any]:
        """
        Get renderer configuration.

        Returns:
            Dict with keys:
            - mode: "html" or "markdown" (default "html")
            - preview: Show markdown syntax characters in html (default false)
        """
        return self._mergeConfigs(DEFAULT_RENDERER_CONFIG, self.get("renderer", {}))
