"""
Configuration for the Quill text viewer.

Settings live in a plain ``key=value`` file (default ``~/quill/config/quill.conf``,
or whatever ``QUILL_CONFIG`` points at). Lines starting with ``#`` are comments.
Unknown keys and bad values are logged and skipped, never fatal.
"""
import os
from dataclasses import dataclass

from quill import logger

DEFAULT_CONFIG_PATH = "~/quill/config/quill.conf"

VERSION = "1.0.0"

TAB_STOP = 8
MESSAGE_TIMEOUT = 5.0
READ_TIMEOUT = 0.1


@dataclass
class Settings:
    tab_stop: int = TAB_STOP
    message_timeout: float = MESSAGE_TIMEOUT
    read_timeout: float = READ_TIMEOUT


def config_path() -> str:
    """Return the config file path, honouring QUILL_CONFIG."""
    return os.path.expanduser(os.environ.get("QUILL_CONFIG", DEFAULT_CONFIG_PATH))


def _parse_tab_stop(value: str) -> int:
    tab_stop = int(value)
    if tab_stop < 1:
        raise ValueError(f"tab_stop must be >= 1, got {tab_stop}")
    return tab_stop


def _parse_seconds(value: str) -> float:
    seconds = float(value)
    if seconds < 0:
        raise ValueError(f"expected a non-negative number of seconds, got {seconds}")
    return seconds


_PARSERS = {
    "tab_stop": _parse_tab_stop,
    "message_timeout": _parse_seconds,
    "read_timeout": _parse_seconds,
}


def parse_settings(lines) -> Settings:
    """Build Settings from an iterable of ``key=value`` lines."""
    settings = Settings()
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            logger.log(f"config line {lineno}: expected key=value, got '{line}'")
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        parser = _PARSERS.get(key)
        if parser is None:
            logger.log(f"config line {lineno}: unknown setting '{key}'")
            continue
        try:
            setattr(settings, key, parser(value))
        except ValueError as e:
            logger.log(f"config line {lineno}: bad value for '{key}': {e}")
    return settings


def load_settings(path: str = None) -> Settings:
    """
    Load settings from the config file. A missing file yields the defaults;
    an unreadable one is logged and also yields the defaults.
    """
    path = path or config_path()
    if not os.path.isfile(path):
        return Settings()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return parse_settings(f)
    except OSError as e:
        logger.log(f"could not read config {path}: {e}")
        return Settings()
