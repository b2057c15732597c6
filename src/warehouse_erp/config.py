"""Configuration handling for the warehouse tools.

Settings live in a ``config.ini`` file found either at an explicit path or by
walking up from the current working directory. The raw parser output is
converted into an immutable :class:`ConfigSettings` value; nothing else in the
package reads the file directly.

Example ``config.ini``::

    [Backend]
    BaseUrl = https://warehouse.example.com/api
    TimeoutSeconds = 10

    [Locale]
    Name = vi_VN

    [Export]
    OutputDir = exports
"""

from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import log
from .formatters import LOCALES

CONFIG_FILE_NAME = "config.ini"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_LOCALE = "vi_VN"
DEFAULT_OUTPUT_DIR = "exports"


@dataclass(frozen=True)
class ConfigSettings:
    """Typed representation of the ``config.ini`` settings we care about."""

    backend_url: str
    timeout_seconds: float
    locale_name: str
    output_dir: Path


def find_config_file(explicit_path: Optional[Path] = None) -> Path:
    """Locate the configuration file.

    An explicit path is returned as is, without checking that it exists.
    Otherwise the current working directory and each of its parents are
    searched for ``CONFIG_FILE_NAME`` and the first hit wins.

    Args:
        explicit_path (Path | None): Path to use instead of searching.

    Returns:
        Path: The explicit path or the discovered file.

    Raises:
        FileNotFoundError: If no parent directory holds ``CONFIG_FILE_NAME``.
    """

    if explicit_path:
        return explicit_path

    current = Path.cwd()
    for p in (current, *current.parents):
        candidate = p / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

    raise FileNotFoundError(f"Configuration file not found: {CONFIG_FILE_NAME}")


def read_config(config_path: Path) -> configparser.ConfigParser:
    """Load ``config_path`` into a ``ConfigParser``.

    Missing sections are not an error here; :func:`parse_settings` decides
    which entries are required.

    Raises:
        FileNotFoundError: If the file does not exist after ``~`` expansion.
    """

    config_path = Path(config_path).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path, encoding="utf-8")
    return parser


def parse_settings(parser: configparser.ConfigParser, *, base_path: Optional[Path] = None) -> ConfigSettings:
    """Convert a ``ConfigParser`` into :class:`ConfigSettings`.

    ``[Backend] BaseUrl`` is the only required entry. A relative
    ``[Export] OutputDir`` is anchored at ``base_path`` (the current working
    directory when omitted).

    Args:
        parser (configparser.ConfigParser): Parsed configuration data.
        base_path (Path | None): Anchor for a relative output directory.

    Returns:
        ConfigSettings: Immutable, fully defaulted settings.

    Raises:
        KeyError: If ``[Backend] BaseUrl`` is missing or the locale is not a
            known preset.
        ValueError: If a numeric option cannot be parsed.
    """

    try:
        backend_url = parser.get("Backend", "BaseUrl")
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise KeyError(f"Missing required configuration entry: {exc}") from exc

    timeout = parser.getfloat("Backend", "TimeoutSeconds", fallback=DEFAULT_TIMEOUT_SECONDS)
    locale_name = parser.get("Locale", "Name", fallback=DEFAULT_LOCALE)
    if locale_name not in LOCALES:
        raise KeyError(f"Unknown locale in configuration: {locale_name}")
    output_raw = parser.get("Export", "OutputDir", fallback=DEFAULT_OUTPUT_DIR)

    output_dir = Path(output_raw).expanduser()
    if not output_dir.is_absolute():
        if base_path is None:
            base_path = Path.cwd()
        output_dir = (base_path / output_dir).resolve()

    return ConfigSettings(
        backend_url=backend_url.strip(),
        timeout_seconds=timeout,
        locale_name=locale_name,
        output_dir=output_dir,
    )


def load_settings(explicit_path: Optional[Path] = None) -> ConfigSettings:
    """Find, read, and parse the configuration in one step.

    Relative paths inside the file are resolved against the file's directory.
    """

    config_path = find_config_file(explicit_path)
    parser = read_config(config_path)
    settings = parse_settings(parser, base_path=Path(config_path).expanduser().resolve().parent)
    log.debug("Loaded settings from %s", config_path)
    return settings


__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigSettings",
    "find_config_file",
    "read_config",
    "parse_settings",
    "load_settings",
]
