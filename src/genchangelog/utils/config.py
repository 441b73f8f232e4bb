"""
Configuration Management Module

Layers defaults, environment variables, the configuration file and
command line overrides into one immutable ChangelogConfig.
"""
import os
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple
from dataclasses import dataclass, fields, replace
from dotenv import load_dotenv

from genchangelog.exceptions import ConfigError
from genchangelog.utils.logger import get_logger

logger = get_logger(__name__)

# Environment variables (and a local .env file)
load_dotenv()

ENV_PREFIX = "GENCHANGELOG_"
DEFAULT_CONFIG_FILE = ".genchangelog"

_TRUE_VALUES = ("true", "yes", "on", "1")
_FALSE_VALUES = ("false", "no", "off", "0")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# option name -> (field name, type)
OPTIONS: Dict[str, Tuple[str, type]] = {
    "change-log": ("changelog_path", str),
    "disable-hash": ("disable_hash", bool),
    "hash-length": ("hash_length", int),
    "line-length": ("line_length", int),
    "local-time": ("use_local_date", bool),
    "pre-load": ("preload_top_stanza", bool),
    "tab-width": ("tab_width", int),
    "use-x-seq": ("use_xseq_prefix", bool),
}


def parse_value(option: str, raw: str) -> Any:
    """
    Convert a raw string value for an option

    Raises:
        ValueError: The value does not fit the option's type
    """
    _, kind = OPTIONS[option]
    value = raw.strip()

    if kind is bool:
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"not a boolean: {raw!r}")

    if kind is int:
        number = int(value)
        if number <= 0:
            raise ValueError(f"must be positive: {raw!r}")
        return number

    if not value:
        raise ValueError("empty value")
    return value


@dataclass(frozen=True)
class ChangelogConfig:
    """Settings for one generation run"""
    changelog_path: str = "ChangeLog"
    hash_length: int = 8
    line_length: int = 74
    tab_width: int = 8
    disable_hash: bool = False
    preload_top_stanza: bool = False
    use_local_date: bool = False
    use_xseq_prefix: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> 'ChangelogConfig':
        """Defaults overridden by GENCHANGELOG_* environment variables"""
        values: Dict[str, Any] = {}
        for option, (field_name, _) in OPTIONS.items():
            env_name = ENV_PREFIX + option.upper().replace('-', '_')
            raw = os.getenv(env_name)
            if raw is None:
                continue
            try:
                values[field_name] = parse_value(option, raw)
            except ValueError as e:
                logger.warning(f"Ignoring environment variable {env_name}: {e}")

        log_level = os.getenv(ENV_PREFIX + "LOG_LEVEL")
        if log_level:
            if log_level.strip().upper() in LOG_LEVELS:
                values["log_level"] = log_level.strip().upper()
            else:
                logger.warning(f"Ignoring environment variable {ENV_PREFIX}LOG_LEVEL: unknown level {log_level!r}")

        return cls(**values)

    @classmethod
    def load(cls, config_file: Optional[str] = None, search_dir: Optional[str] = None) -> 'ChangelogConfig':
        """
        Build the effective configuration

        Args:
            config_file: Explicit configuration file; must be readable
            search_dir: Directory searched for the default file when no
                explicit file or GENCHANGELOG_CONFIG is given

        Returns:
            ChangelogConfig instance
        """
        config = cls.from_env()

        explicit = config_file or os.getenv(ENV_PREFIX + "CONFIG")
        if explicit:
            return config.load_from_file(explicit)

        default_path = Path(search_dir or ".") / DEFAULT_CONFIG_FILE
        if default_path.is_file():
            return config.load_from_file(str(default_path))
        return config

    def load_from_file(self, config_file: str) -> 'ChangelogConfig':
        """Return a copy updated from a `key = value` configuration file"""
        config_path = Path(config_file)

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                lines = f.readlines()
        except OSError as e:
            raise ConfigError(
                f"Cannot read configuration file {config_file}",
                details={"error": str(e)},
            ) from e

        values, problems = parse_config_lines(lines)
        for problem in problems:
            logger.warning(f"{config_file}: {problem}")

        logger.debug(f"Loaded {len(values)} setting(s) from {config_file}")
        return replace(self, **values)

    def with_overrides(self, **overrides: Any) -> 'ChangelogConfig':
        """Return a copy with the non-None overrides applied"""
        known = {f.name for f in fields(self)}
        values = {}
        for key, value in overrides.items():
            if key not in known:
                raise TypeError(f"Unknown configuration field: {key}")
            if value is not None:
                values[key] = value
        return replace(self, **values)

    def to_options(self) -> Dict[str, Any]:
        """Settings keyed by their option names"""
        return {option: getattr(self, field_name) for option, (field_name, _) in OPTIONS.items()}


def parse_config_lines(lines: List[str]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Parse configuration file lines

    Returns:
        (field values, problems) - problems are human readable descriptions
        of skipped lines
    """
    values: Dict[str, Any] = {}
    problems: List[str] = []

    for number, line in enumerate(lines, 1):
        text = line.strip()
        if not text or text.startswith('#'):
            continue

        if '=' not in text:
            problems.append(f"line {number}: malformed line skipped: {text!r}")
            continue

        key, raw = text.split('=', 1)
        key = key.strip()
        if key not in OPTIONS:
            problems.append(f"line {number}: unknown key {key!r} skipped")
            continue

        try:
            values[OPTIONS[key][0]] = parse_value(key, raw)
        except ValueError as e:
            problems.append(f"line {number}: bad value for {key!r} skipped: {e}")

    return values, problems
