"""Configuration loading from rc files.

Options are merged, lowest precedence first:

    defaults < ~/.md-to-epubrc < ~/.config/md-to-epub/config
             < nearest .md-to-epubrc found walking up from the working directory
             < explicit overrides (command-line flags)

An rc file is either a JSON object or ``key = value`` lines.
"""

import configparser
import json
import logging
import re
from pathlib import Path

from pydantic import ValidationError

from md_to_epub.exceptions import ConfigurationError
from schemas.config import ConverterConfig

logger = logging.getLogger(__name__)

APP_NAME = "md-to-epub"
RC_FILENAME = f".{APP_NAME}rc"


def _normalize_key(key: str) -> str:
    """Convert camelCase rc keys (e.g. ``outputDir``) to field names."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key.strip()).lower()


def find_rc_files(cwd: Path | None = None, home: Path | None = None) -> list[Path]:
    """Locate rc files, lowest precedence first.

    Args:
        cwd: Directory to start the upward search from (default: Path.cwd())
        home: Home directory (default: Path.home())

    Returns:
        Existing rc files in merge order
    """
    cwd = (cwd or Path.cwd()).resolve()
    home = home or Path.home()

    candidates = [
        home / RC_FILENAME,
        home / ".config" / APP_NAME / "config",
    ]

    for directory in (cwd, *cwd.parents):
        local_rc = directory / RC_FILENAME
        if local_rc.is_file():
            candidates.append(local_rc)
            break

    found: list[Path] = []
    for path in candidates:
        if path.is_file() and path not in found:
            found.append(path)
    return found


def read_rc_file(path: Path) -> dict:
    """Parse an rc file into a dict of normalized keys.

    Args:
        path: rc file to read

    Returns:
        Option values keyed by ConverterConfig field name

    Raises:
        ConfigurationError: If the file is neither JSON nor key/value text
    """
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str
        try:
            parser.read_string(f"[{APP_NAME}]\n{text}", source=str(path))
        except configparser.Error as e:
            raise ConfigurationError(f"Cannot parse config file {path}: {e}") from e
        data = dict(parser[APP_NAME])
    else:
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")

    logger.debug(f"Loaded config file {path}")
    return {_normalize_key(key): value for key, value in data.items()}


def load_config(
    overrides: dict | None = None,
    cwd: Path | None = None,
    home: Path | None = None,
) -> ConverterConfig:
    """Merge defaults, rc files and explicit overrides.

    Args:
        overrides: Explicit option values; None values are ignored
        cwd: Directory to start the rc search from
        home: Home directory for user-level rc files

    Returns:
        The merged ConverterConfig

    Raises:
        ConfigurationError: If an rc file or a merged value is invalid
    """
    merged: dict = {}
    for rc_path in find_rc_files(cwd, home):
        merged.update(read_rc_file(rc_path))

    for key, value in (overrides or {}).items():
        if value is not None:
            merged[_normalize_key(key)] = value

    try:
        return ConverterConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
