"""
CommitGuard Configuration Management

Loads scan settings and secret-matching rules from .commitguard.yaml files.
The resulting ScanConfig is immutable and shared by every worker thread.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from commitguard.core.errors import ConfigError
from commitguard.core.finding import Severity


CONFIG_FILENAME = ".commitguard.yaml"

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_CONCURRENCY = 4
OSV_API_URL = "https://api.osv.dev/v1"

# (name, pattern, severity, description)
DEFAULT_SECRET_PATTERNS: list[tuple[str, str, str, str]] = [
    ("AWS Access Key",
     r"AKIA[0-9A-Z]{16}",
     "critical",
     "Amazon Web Services Access Key"),

    ("AWS Secret Key",
     r"aws_secret_access_key\s*=\s*[\"']?([A-Za-z0-9+/]{40})[\"']?",
     "critical",
     "Amazon Web Services Secret Key"),

    ("GitHub Token",
     r"ghp_[A-Za-z0-9]{36}",
     "high",
     "GitHub Personal Access Token"),

    ("GitHub Classic Token",
     r"[0-9a-f]{40}",
     "high",
     "GitHub Classic Personal Access Token"),

    ("Slack Token",
     r"xox[baprs]-[0-9a-zA-Z\-]+",
     "high",
     "Slack API Token"),

    ("Generic API Key",
     r"[Aa][Pp][Ii][_]?[Kk][Ee][Yy]\s*[:=]\s*[\"']?([a-zA-Z0-9]{20,})[\"']?",
     "medium",
     "Generic API Key Pattern"),

    ("Generic Password",
     r"[Pp][Aa][Ss][Ss][Ww][Oo][Rr][Dd]\s*[:=]\s*[\"']?([^\"'\s]{8,})[\"']?",
     "medium",
     "Generic Password Pattern"),

    ("JWT Token",
     r"eyJ[A-Za-z0-9_\-]*\.eyJ[A-Za-z0-9_\-]*\.[A-Za-z0-9_\-]*",
     "medium",
     "JSON Web Token"),

    ("Private Key",
     r"-----BEGIN\s+(RSA\s+)?PRIVATE KEY-----",
     "critical",
     "Private Key"),
]

DEFAULT_WHITELIST = [
    "example.com",
    "localhost",
    "127.0.0.1",
    "test",
    "demo",
    "sample",
]

DEFAULT_SOCIAL_KEYWORDS = [
    "hack",
    "backdoor",
    "malware",
    "exploit",
    "bypass",
    "disable security",
    "remove check",
    "temporary fix",
    "todo: security",
]


class ScanCategory(Enum):
    SECRETS = "secrets"
    DEPENDENCIES = "dependencies"
    SOCIAL = "social"


@dataclass(frozen=True)
class PatternRule:
    """A compiled secret-matching rule."""

    name: str
    pattern: re.Pattern
    severity: Severity
    description: str

    @classmethod
    def compile(cls, name: str, pattern: str, severity: str, description: str = "") -> "PatternRule":
        """Compile a rule, raising ConfigError if the regex or severity is invalid."""
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            raise ConfigError(f"failed to compile pattern '{name}': {exc}") from exc
        try:
            sev = Severity.from_string(severity)
        except (KeyError, AttributeError) as exc:
            raise ConfigError(f"pattern '{name}' has unknown severity '{severity}'") from exc
        return cls(name=name, pattern=compiled, severity=sev, description=description or name)


@dataclass(frozen=True)
class PatternSet:
    """Ordered, immutable collection of secret rules."""

    rules: tuple[PatternRule, ...] = ()

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    @classmethod
    def default(cls) -> "PatternSet":
        return cls(tuple(PatternRule.compile(*spec) for spec in DEFAULT_SECRET_PATTERNS))

    @classmethod
    def from_definitions(cls, definitions: Iterable[dict[str, Any]]) -> "PatternSet":
        """Build a PatternSet from config entries ({name, pattern, severity, description})."""
        rules = []
        for index, entry in enumerate(definitions):
            if not isinstance(entry, dict) or "pattern" not in entry:
                raise ConfigError(f"secret_patterns[{index}] must be a mapping with a 'pattern' key")
            name = str(entry.get("name") or f"pattern-{index}")
            rules.append(
                PatternRule.compile(
                    name=name,
                    pattern=str(entry["pattern"]),
                    severity=str(entry.get("severity", "medium")),
                    description=str(entry.get("description", "")),
                )
            )
        return cls(tuple(rules))


@dataclass(frozen=True)
class AdvisoryConfig:
    enabled: bool = True
    url: str = OSV_API_URL
    timeout: float = 30.0
    hydrate: bool = True


@dataclass(frozen=True)
class ScanConfig:
    """Root configuration object for CommitGuard."""

    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_concurrency: int = DEFAULT_CONCURRENCY
    patterns: PatternSet = field(default_factory=PatternSet.default)
    whitelist: tuple[str, ...] = tuple(DEFAULT_WHITELIST)
    enabled_categories: frozenset[ScanCategory] = frozenset(ScanCategory)
    social_keywords: tuple[str, ...] = tuple(DEFAULT_SOCIAL_KEYWORDS)
    ignore_file: str = ".gitignore"
    respect_ignore_file: bool = True
    exclude_paths: tuple[str, ...] = ()
    ignore_rules: tuple[str, ...] = ()
    advisories: AdvisoryConfig = field(default_factory=AdvisoryConfig)

    @property
    def concurrency(self) -> int:
        """Worker pool size; never below one."""
        return max(1, int(self.max_concurrency))

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "ScanConfig":
        """Load configuration from a YAML file, falling back to defaults when it is absent."""
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILENAME

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"failed to read config file {config_path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError(f"config file {config_path} must contain a mapping")

        return cls._from_dict(raw)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "ScanConfig":
        """Build config from a parsed YAML dictionary, rejecting wrongly typed values."""
        if "secret_patterns" in data:
            definitions = data.get("secret_patterns")
            if definitions is not None and not isinstance(definitions, list):
                raise ConfigError("'secret_patterns' must be a list")
            patterns = PatternSet.from_definitions(definitions or [])
        else:
            patterns = PatternSet.default()

        scanners_data = _mapping(data.get("scanners"), "scanners")
        sections = {
            category: _section(scanners_data.get(category.value), f"scanners.{category.value}")
            for category in ScanCategory
        }
        enabled = frozenset(
            category for category, section in sections.items() if _flag(section, "enabled", True)
        )
        social_data = sections[ScanCategory.SOCIAL]

        advisory_data = _section(data.get("advisories"), "advisories")
        advisories = AdvisoryConfig(
            enabled=_flag(advisory_data, "enabled", True),
            url=str(advisory_data.get("url", OSV_API_URL)).rstrip("/"),
            timeout=_number(advisory_data.get("timeout", 30.0), "advisories.timeout"),
            hydrate=_flag(advisory_data, "hydrate", True),
        )

        return cls(
            max_file_size=int(_number(data.get("max_file_size", DEFAULT_MAX_FILE_SIZE), "max_file_size")),
            max_concurrency=int(_number(data.get("max_concurrency", DEFAULT_CONCURRENCY), "max_concurrency")),
            patterns=patterns,
            whitelist=_strings(data.get("whitelist", DEFAULT_WHITELIST), "whitelist"),
            enabled_categories=enabled,
            social_keywords=_strings(
                social_data.get("keywords", DEFAULT_SOCIAL_KEYWORDS), "scanners.social.keywords"
            ),
            ignore_file=str(data.get("ignore_file", ".gitignore")),
            respect_ignore_file=_flag(data, "respect_ignore_file", True),
            exclude_paths=_strings(data.get("exclude_paths", []), "exclude_paths"),
            ignore_rules=_strings(data.get("ignore_rules", []), "ignore_rules"),
            advisories=advisories,
        )


def _number(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"'{key}' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{key}' must be a number, got {value!r}") from exc


def _mapping(value: Any, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _section(value: Any, key: str) -> dict[str, Any]:
    """A scanner or advisories section; a bare boolean is shorthand for `enabled`."""
    if isinstance(value, bool):
        return {"enabled": value}
    return _mapping(value, key)


def _flag(section: dict[str, Any], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}")
    return value


def _strings(value: Any, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list, got {type(value).__name__}")
    return tuple(str(item) for item in value)


def generate_default_config() -> str:
    """Generate a default .commitguard.yaml configuration file content."""
    return """\
# CommitGuard Configuration

# Files larger than this (bytes) are skipped
max_file_size: 10485760

# Number of files scanned in parallel
max_concurrency: 4

# Matches containing any of these substrings are not reported
whitelist:
  - example.com
  - localhost
  - 127.0.0.1
  - test
  - demo
  - sample

# Uncomment to replace the built-in secret rules
# secret_patterns:
#   - name: Internal Token
#     pattern: "itk_[A-Za-z0-9]{32}"
#     severity: high
#     description: Internal service token

# Paths excluded in addition to the ignore file (gitignore syntax)
ignore_file: .gitignore
respect_ignore_file: true
exclude_paths: []

# Findings from these rules are never reported (exact rule names)
ignore_rules: []

# Scanner settings
scanners:
  secrets:
    enabled: true
  dependencies:
    enabled: true
  social:
    enabled: true
    keywords:
      - hack
      - backdoor
      - malware
      - exploit
      - bypass
      - disable security
      - remove check
      - temporary fix
      - "todo: security"

# OSV vulnerability database
advisories:
  enabled: true
  url: https://api.osv.dev/v1
  timeout: 30
  hydrate: true
"""
