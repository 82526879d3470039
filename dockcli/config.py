"""Locate the dockcli config directory and load config.json from it."""

import enum
import json
import logging
import os
import re
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DOCKER_CONFIG"
CONFIG_DIR_NAME = ".docker"
CONFIG_FILE_NAME = "config.json"

# RFC 7230 token characters
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
# Printable ASCII plus tab; no CR/LF or other control bytes
_HEADER_VALUE_RE = re.compile(r"[\t\x20-\x7e]*")


class ConfigError(Exception):
    """Base class for config directory and config file failures."""

    def __init__(self, message: str, path: Path | str):
        super().__init__(message)
        self.path = Path(path)


class ConfigDirUnavailableError(ConfigError):
    """Raised when a required config directory (or its file) can't be used."""


class ConfigParseError(ConfigError):
    """Raised when config.json exists but is not a valid config document."""


class ConfigDirSource(enum.Enum):
    FLAG = "--config flag"
    ENV = f"{CONFIG_ENV_VAR} environment variable"
    DEFAULT = "home directory default"


@dataclass(frozen=True)
class ConfigLocation:
    path: Path
    source: ConfigDirSource


@dataclass(frozen=True)
class ConfigFile:
    """Parsed config.json. Fields other than HttpHeaders/psFormat are kept in ``extra``."""

    http_headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    ps_format: str | None = None
    extra: Mapping = field(default_factory=lambda: MappingProxyType({}))


# ---------------------------------------------------------------------------
# Directory resolution
# ---------------------------------------------------------------------------


def home_key() -> str:
    """Name of the environment variable holding the user's home directory."""
    return "USERPROFILE" if sys.platform == "win32" else "HOME"


def home_dir(environ: Mapping[str, str] | None = None) -> Path:
    if environ is None:
        environ = os.environ
    home = environ.get(home_key())
    return Path(home) if home else Path.home()


def resolve_config_dir(
    flag: str | None,
    env_value: str | None,
    home: str | Path | Callable[[], Path],
) -> ConfigLocation:
    """Pick the config directory: --config flag > DOCKER_CONFIG > <home>/.docker.

    Empty strings count as unset. Values are used verbatim, existence is
    checked later by the command that needs the directory. ``home`` may be
    a callable; it is only called when the default is needed.
    """
    if flag:
        return ConfigLocation(Path(flag), ConfigDirSource.FLAG)
    if env_value:
        return ConfigLocation(Path(env_value), ConfigDirSource.ENV)
    if callable(home):
        home = home()
    return ConfigLocation(Path(home) / CONFIG_DIR_NAME, ConfigDirSource.DEFAULT)


def locate_config_dir(
    flag: str | None, environ: Mapping[str, str] | None = None
) -> ConfigLocation:
    """Resolve the config directory against an environment snapshot."""
    if environ is None:
        environ = os.environ
    location = resolve_config_dir(
        flag, environ.get(CONFIG_ENV_VAR), lambda: home_dir(environ)
    )
    logger.debug(
        "Using config directory %s (from %s)", location.path, location.source.value
    )
    return location


def require_config_dir(location: ConfigLocation) -> None:
    """Fail if an explicitly requested config directory is not usable.

    Only the --config flag makes the directory mandatory; a missing
    DOCKER_CONFIG or default directory just means "no config".
    """
    if location.source is not ConfigDirSource.FLAG:
        return
    if not location.path.is_dir():
        raise ConfigDirUnavailableError(
            f"config directory {location.path} does not exist or is not a directory",
            location.path,
        )
    if not os.access(location.path, os.R_OK | os.X_OK):
        raise ConfigDirUnavailableError(
            f"config directory {location.path} is not readable", location.path
        )


# ---------------------------------------------------------------------------
# config.json
# ---------------------------------------------------------------------------


def _parse_headers(raw, path: Path) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigParseError(
            f"{path}: HttpHeaders must be an object, got {type(raw).__name__}", path
        )
    headers = {}
    for name, value in raw.items():
        if not _HEADER_NAME_RE.fullmatch(name):
            raise ConfigParseError(
                f"{path}: invalid HTTP header name {name!r} in HttpHeaders", path
            )
        if not isinstance(value, str):
            raise ConfigParseError(
                f"{path}: value of HttpHeaders[{name!r}] must be a string", path
            )
        value = value.strip(" \t")
        if not _HEADER_VALUE_RE.fullmatch(value):
            raise ConfigParseError(
                f"{path}: value of HttpHeaders[{name!r}] must be printable ASCII",
                path,
            )
        headers[name] = value
    return headers


def load_config(config_dir: Path | str) -> ConfigFile:
    """Load <config_dir>/config.json.

    A missing directory or file yields an empty ConfigFile. A file that is
    present but malformed raises ConfigParseError.
    """
    path = Path(config_dir) / CONFIG_FILE_NAME
    if not path.is_file():
        logger.debug("No %s found in %s", CONFIG_FILE_NAME, config_dir)
        return ConfigFile()

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"{path}: invalid JSON: {e}", path) from e
    except OSError as e:
        raise ConfigDirUnavailableError(f"{path}: {e.strerror or e}", path) from e

    if not isinstance(data, dict):
        raise ConfigParseError(
            f"{path}: expected a JSON object, got {type(data).__name__}", path
        )

    headers = _parse_headers(data.pop("HttpHeaders", None), path)
    ps_format = data.pop("psFormat", None)
    if ps_format is not None and not isinstance(ps_format, str):
        raise ConfigParseError(f"{path}: psFormat must be a string", path)

    logger.debug("Loaded %s with %d custom HTTP header(s)", path, len(headers))
    return ConfigFile(
        http_headers=MappingProxyType(headers),
        ps_format=ps_format,
        extra=MappingProxyType(data),
    )
