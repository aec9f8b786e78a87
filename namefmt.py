#!/usr/bin/env python3
"""
namefmt - Format filenames according to configurable naming styles.

Rename files on disk by applying camelCase, snake_case or kebab-case
transformations chosen by pattern rules, with a few extra conventions:
- Executables (by extension) and files inside package roots (a directory
  holding package.json, Cargo.toml, pyproject.toml, ...) always get kebab-case
- Names that match no rule get their spaces replaced with underscores
- An optional YYYY_MM_DD__ prefix (UTC date) can be added to every name

Runs as a dry run by default, printing "Would rename: old -> new" lines.
Pass -i/--inplace to actually rename.

Configuration is a TOML file in the per-user config directory
(e.g. ~/.config/namefmt/namefmt.toml), created with defaults on first run:

    replace_spaces = true

    [[behaviors]]
    pattern = "*.rs"
    style = "snake_case"

    [detection]
    exe_extensions = ["exe", "bin", "app"]
    package_dirs = ["package.json", "Cargo.toml", "pyproject.toml"]

Behaviors are checked in order and the first matching pattern wins.
Patterns support at most one '*' wildcard; a pattern without one matches
any name containing it.

Version: 0.1.0
"""
__version__ = "0.1.0"

import os
import sys
import enum
import logging
import argparse
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, TextIO, Tuple

from colorama import Fore, Style, just_fix_windows_console

# Enable ANSI handling on Windows consoles; no-op elsewhere
just_fix_windows_console()

logger = logging.getLogger("namefmt")

CONFIG_FILE_NAME = "namefmt.toml"

DEFAULT_EXE_EXTENSIONS = ("exe", "bin", "app")
DEFAULT_PACKAGE_DIRS = ("package.json", "Cargo.toml", "pyproject.toml")

DEFAULT_CONFIG_TOML = """\
replace_spaces = true

[detection]
exe_extensions = ["exe", "bin", "app"]
package_dirs = ["package.json", "Cargo.toml", "pyproject.toml"]
"""


class NamefmtError(Exception):
    """Base class for all namefmt errors."""


class ConfigError(NamefmtError):
    """Raised when a config document has the wrong shape."""


class ConfigDirError(NamefmtError):
    """Raised when the per-user config directory cannot be determined."""


class TargetPathError(NamefmtError):
    """Raised when the path to process does not exist."""


def get_debug_level() -> str:
    """
    Get the debug level from environment. Returns one of:
    - 'detail': Trace every file examined (NAMEFMT_DEBUG=detail)
    - 'normal': Trace config resolution and renames (NAMEFMT_DEBUG=1)
    - 'off': Warnings only (default)
    """
    debug_env = os.environ.get('NAMEFMT_DEBUG')
    if debug_env == 'detail':
        return 'detail'
    if debug_env:
        return 'normal'
    return 'off'


def configure_logging(debug: bool = False) -> None:
    """Send namefmt log records to stderr; stdout is reserved for the rename report."""
    level = logging.DEBUG if debug or get_debug_level() != 'off' else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


def _paint(text: str, color: str, stream: TextIO) -> str:
    """Colorize text only when the stream is an interactive terminal."""
    isatty = getattr(stream, 'isatty', None)
    if isatty is not None and isatty():
        return f"{color}{text}{Style.RESET_ALL}"
    return text


def warn(message: str) -> None:
    print(_paint(f"Warning: {message}", Fore.YELLOW, sys.stderr), file=sys.stderr)


def error(message: str) -> None:
    print(_paint(f"Error: {message}", Fore.RED, sys.stderr), file=sys.stderr)


class NamingStyle(enum.Enum):
    """Naming styles, valued by how they are spelled in the config file."""

    CAMEL_CASE = "camelCase"
    SNAKE_CASE = "snake_case"
    KEBAB_CASE = "kebab-case"

    @classmethod
    def parse(cls, text: Any) -> "NamingStyle":
        try:
            return cls(text)
        except ValueError:
            choices = ", ".join(repr(style.value) for style in cls)
            raise ConfigError(f"unknown style {text!r}, expected one of {choices}") from None


@dataclass(frozen=True)
class Behavior:
    pattern: str
    style: NamingStyle


@dataclass(frozen=True)
class DetectionRules:
    exe_extensions: FrozenSet[str] = frozenset(DEFAULT_EXE_EXTENSIONS)
    package_dirs: FrozenSet[str] = frozenset(DEFAULT_PACKAGE_DIRS)


@dataclass(frozen=True)
class Config:
    """Resolved configuration for a run. Read-only once loaded.

    Behaviors keep their declaration order; the first matching one wins.
    """

    replace_spaces: bool = True
    behaviors: Tuple[Behavior, ...] = ()
    detection: DetectionRules = field(default_factory=DetectionRules)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Build a Config from a parsed TOML document.

        Missing keys take their defaults. Keys of the wrong type raise
        ConfigError so the caller can fall back to the default config.
        """
        replace_spaces = data.get('replace_spaces', True)
        if not isinstance(replace_spaces, bool):
            raise ConfigError(f"'replace_spaces' must be a boolean, got {replace_spaces!r}")

        raw_behaviors = data.get('behaviors', [])
        if not isinstance(raw_behaviors, list):
            raise ConfigError("'behaviors' must be an array of tables")
        behaviors = []
        for index, raw in enumerate(raw_behaviors):
            if not isinstance(raw, dict):
                raise ConfigError(f"behaviors[{index}] must be a table")
            if 'pattern' not in raw or 'style' not in raw:
                raise ConfigError(f"behaviors[{index}] needs both 'pattern' and 'style'")
            pattern = raw['pattern']
            if not isinstance(pattern, str):
                raise ConfigError(f"behaviors[{index}].pattern must be a string")
            behaviors.append(Behavior(pattern, NamingStyle.parse(raw['style'])))

        raw_detection = data.get('detection', {})
        if not isinstance(raw_detection, dict):
            raise ConfigError("'detection' must be a table")
        detection = DetectionRules(
            exe_extensions=_string_set(raw_detection, 'exe_extensions', DEFAULT_EXE_EXTENSIONS),
            package_dirs=_string_set(raw_detection, 'package_dirs', DEFAULT_PACKAGE_DIRS),
        )

        return cls(replace_spaces=replace_spaces, behaviors=tuple(behaviors), detection=detection)


def _string_set(table: Dict[str, Any], key: str, default: Tuple[str, ...]) -> FrozenSet[str]:
    values = table.get(key, list(default))
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ConfigError(f"'detection.{key}' must be an array of strings")
    return frozenset(values)


# ---------------------------------------------------------------------------
# Config file location and loading
# ---------------------------------------------------------------------------

def get_user_config_dir(app_name: str = "namefmt") -> str:
    """Get user configuration directory based on OS."""
    if os.name == "nt":
        base_dir = os.environ.get("APPDATA") or os.path.expanduser("~")
    elif sys.platform == "darwin":
        base_dir = os.path.expanduser("~/Library/Application Support")
    else:
        base_dir = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    # expanduser leaves '~' in place when there is no home directory
    if base_dir.startswith("~"):
        raise ConfigDirError("Could not determine config directory")
    return os.path.join(base_dir, app_name)


def get_config_path(custom_path: Optional[str] = None) -> Path:
    if custom_path:
        return Path(custom_path)
    return Path(get_user_config_dir()) / CONFIG_FILE_NAME


def load_config(config_path: Path) -> Config:
    """Load the config file, creating it with defaults if it doesn't exist.

    Never fails: any problem creating, reading or parsing the file is
    reported as a warning and the built-in defaults are used instead.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            warn(f"Failed to create config directory {config_path.parent}: {e}; using default configuration")
            return Config()
        try:
            config_path.write_text(DEFAULT_CONFIG_TOML, encoding='utf-8')
        except OSError as e:
            warn(f"Failed to write default config to {config_path}: {e}; using default configuration")
            return Config()
        logger.debug("Wrote default config to %s", config_path)

    try:
        content = config_path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        warn(f"Failed to read {config_path}: {e}; using default configuration")
        return Config()

    try:
        config = Config.from_dict(tomllib.loads(content))
    except (tomllib.TOMLDecodeError, ConfigError) as e:
        warn(f"Failed to parse {config_path}: {e}; using default configuration")
        return Config()

    logger.debug("Loaded config from %s: %d behavior(s), replace_spaces=%s",
                 config_path, len(config.behaviors), config.replace_spaces)
    return config


# ---------------------------------------------------------------------------
# Case conversions
# ---------------------------------------------------------------------------

def to_camel_case(text: str) -> str:
    """Join words split on space, underscore and hyphen into camelCase.

    The first word is lowercased; later words only get their first letter
    uppercased, the rest of each word is kept as written.
    """
    words = [w for w in text.replace('_', ' ').replace('-', ' ').split(' ') if w]
    if not words:
        return ''
    return words[0].lower() + ''.join(w[0].upper()[0] + w[1:] for w in words[1:])


def _separate_words(text: str, separator: str, normalized: str) -> str:
    """Shared snake/kebab algorithm.

    Uppercase letters are lowercased and preceded by the separator; any
    character in `normalized` is replaced by the separator. A separator is
    never emitted at the start or directly after another one.
    """
    result: List[str] = []
    for char in text:
        if char.isupper():
            if result and result[-1] != separator:
                result.append(separator)
            result.append(char.lower()[0])
        elif char in normalized:
            if result and result[-1] != separator:
                result.append(separator)
        else:
            result.append(char)
    return ''.join(result)


def to_snake_case(text: str) -> str:
    return _separate_words(text, '_', ' -')


def to_kebab_case(text: str) -> str:
    return _separate_words(text, '-', ' _')


STYLE_CONVERTERS = {
    NamingStyle.CAMEL_CASE: to_camel_case,
    NamingStyle.SNAKE_CASE: to_snake_case,
    NamingStyle.KEBAB_CASE: to_kebab_case,
}


def apply_style(name: str, style: NamingStyle) -> str:
    return STYLE_CONVERTERS[style](name)


# ---------------------------------------------------------------------------
# Pattern matching and detection
# ---------------------------------------------------------------------------

def matches_pattern(name: str, pattern: str) -> bool:
    """Match a name against a minimal glob pattern.

    - no '*': substring test
    - one '*': name starts with the part before it and ends with the part after it
    - more than one '*': never matches
    """
    if '*' not in pattern:
        return pattern in name
    parts = pattern.split('*')
    if len(parts) != 2:
        return False
    prefix, suffix = parts
    return name.startswith(prefix) and name.endswith(suffix)


def is_exe_or_package(path: Path, config: Config) -> bool:
    """Check whether a path is an executable or lives in a package root.

    True when the extension is one of the configured executable extensions
    (case-insensitive), when the path is a directory holding one of the
    package marker files, or when a file's parent directory holds one.
    Missing paths are not an error, they simply don't match.
    """
    path = Path(path)
    extension = os.path.splitext(path.name)[1][1:].lower()
    if extension and any(ext.lower() == extension for ext in config.detection.exe_extensions):
        return True

    root = path if path.is_dir() else path.parent
    return any((root / marker).exists() for marker in config.detection.package_dirs)


def get_timestamp_prefix(now: Optional[datetime] = None) -> str:
    """Return the 'YYYY_MM_DD__' prefix for today's UTC date."""
    now = now or datetime.now(timezone.utc)
    return f"{now:%Y_%m_%d}__"


def format_filename(name: str, config: Config, path: Path, timestamp: bool = False,
                    now: Optional[datetime] = None) -> Optional[str]:
    """Work out the new base name for a file.

    Exactly one transform applies to the name: kebab-case for executables
    and package files, else the style of the first matching behavior, else
    space replacement (if enabled). The timestamp prefix is added on top.

    Returns:
        The new name, or None when it equals the original.
    """
    if is_exe_or_package(path, config):
        logger.debug("%s: executable or package file, using kebab-case", name)
        result = to_kebab_case(name)
    else:
        behavior = next((b for b in config.behaviors if matches_pattern(name, b.pattern)), None)
        if behavior is not None:
            logger.debug("%s: matched pattern %r, using %s", name, behavior.pattern, behavior.style.value)
            result = apply_style(name, behavior.style)
        elif config.replace_spaces:
            result = name.replace(' ', '_')
        else:
            result = name

    if timestamp:
        result = get_timestamp_prefix(now) + result

    if result == name:
        return None
    return result


# ---------------------------------------------------------------------------
# Traversal and renaming
# ---------------------------------------------------------------------------

def display_path(path: Path) -> str:
    """Render a path for output, replacing bytes that are not valid UTF-8."""
    return os.fsencode(path).decode('utf-8', 'replace')


def iter_files(root: Path) -> Iterator[Path]:
    """Yield every regular file under root, depth first, sorted by name.

    Symlinks are neither followed nor yielded. A directory is listed in
    full before anything in it is yielded.
    """
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from iter_files(Path(entry.path))
        elif entry.is_file(follow_symlinks=False):
            yield Path(entry.path)


class NameTransformer:
    """Plans and applies renames for files under a path.

    Each file is handled in turn; the first filesystem error stops the run.
    """

    def __init__(self, config: Optional[Config] = None, inplace: bool = False,
                 timestamp: bool = False, out: Optional[TextIO] = None):
        """
        Args:
            config: Resolved configuration (defaults if None)
            inplace: Rename files instead of only reporting what would change
            timestamp: Prefix every name with the current UTC date
            out: Stream for the rename report (sys.stdout if None)
        """
        self.config = config or Config()
        self.inplace = inplace
        self.timestamp = timestamp
        self.out = out
        # One date and debug level for the whole run
        self.now = datetime.now(timezone.utc)
        self.trace_files = get_debug_level() == 'detail'

    def plan(self, path: Path) -> Optional[Path]:
        """Return the destination path for a file, or None if it keeps its name."""
        path = Path(path)
        new_name = format_filename(path.name, self.config, path, self.timestamp, now=self.now)
        if new_name is None:
            return None
        return path.parent / new_name

    def process_file(self, path: Path) -> Optional[Tuple[Path, Path]]:
        path = Path(path)
        if self.trace_files:
            logger.debug("Examining %s", display_path(path))
        new_path = self.plan(path)
        if new_path is None:
            return None

        if self.inplace:
            os.rename(path, new_path)
            self._report(f"Renamed: {display_path(path)} -> {display_path(new_path)}")
        else:
            self._report(f"Would rename: {display_path(path)} -> {display_path(new_path)}")
        return path, new_path

    def process_path(self, root: Path) -> List[Tuple[Path, Path]]:
        """
        Process a single file or every file below a directory.

        Returns:
            List[Tuple[Path, Path]]: (old_path, new_path) for each affected file

        Raises:
            TargetPathError: root does not exist
            OSError: listing or renaming failed; remaining files are skipped
        """
        root = Path(root)
        if root.is_file():
            files: Iterator[Path] = iter([root])
        elif root.is_dir():
            logger.debug("Walking %s", root)
            files = iter_files(root)
        else:
            raise TargetPathError(f"Path does not exist: {display_path(root)}")

        changes = []
        for file_path in files:
            change = self.process_file(file_path)
            if change is not None:
                changes.append(change)
        logger.debug("%d file(s) %s", len(changes), "renamed" if self.inplace else "to rename")
        return changes

    def _report(self, line: str) -> None:
        print(line, file=self.out or sys.stdout)


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='namefmt',
        description='Format filenames according to configuration',
    )
    parser.add_argument('path', nargs='?', default='.',
                        help='Path or file to process (default: current directory)')
    parser.add_argument('-i', '--inplace', action='store_true',
                        help='Actually perform renames (default: dry-run mode)')
    parser.add_argument('-c', '--config', dest='config_path',
                        help='Override config file location')
    parser.add_argument('--timestamp', action='store_true',
                        help='Prefix YYYY_MM_DD__ to all filenames')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug output on stderr')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Rename files according to the configured naming styles."""
    args = build_arg_parser().parse_args(argv)
    configure_logging(debug=args.debug)

    try:
        config_path = get_config_path(args.config_path)
    except ConfigDirError as e:
        error(str(e))
        return 1
    logger.debug("Using config file %s", config_path)

    config = load_config(config_path)
    transformer = NameTransformer(config, inplace=args.inplace, timestamp=args.timestamp)

    try:
        transformer.process_path(Path(args.path))
    except (NamefmtError, OSError) as e:
        error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
