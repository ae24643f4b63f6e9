"""
CommitGuard Dependency Extractor

Turns dependency manifests into normalized Dependency records.
Supports: Node.js (package.json, package-lock.json), PHP (composer.json),
Go (go.mod), Python (requirements.txt), Ruby (Gemfile, Gemfile.lock),
Rust (Cargo.toml, Cargo.lock) and Java (pom.xml).

Manifests are recognised by exact basename (case-insensitive), never by
content sniffing.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

import structlog

log = structlog.get_logger("commitguard.dependencies")

ParsedPackage = tuple[str, str, int]

_RANGE_PREFIX = re.compile(r"^[\s^~>=<]+")


@dataclass(frozen=True)
class Dependency:
    name: str
    version: str
    ecosystem: str
    source_file: str
    line: int = 1

    def to_osv_query(self) -> dict[str, Any]:
        """Build one OSV query entry for this dependency."""
        return {
            "package": {
                "ecosystem": OSV_ECOSYSTEMS.get(self.ecosystem, self.ecosystem),
                "name": self.name,
            },
            "version": self.version,
        }


# Ecosystem tag -> OSV ecosystem identifier
OSV_ECOSYSTEMS = {
    "npm": "npm",
    "PyPI": "PyPI",
    "Go": "Go",
    "RubyGems": "RubyGems",
    "Maven": "Maven",
    "Packagist": "Packagist",
    "crates.io": "crates.io",
}


def clean_version(version: str) -> str:
    """Strip range operators (^ ~ >= <= > < =) from a version spec."""
    return _RANGE_PREFIX.sub("", version).strip()


def _line_of(lines: list[str], needle: str) -> int:
    for i, ln in enumerate(lines, start=1):
        if needle in ln:
            return i
    return 1


# ── Parsers ──

def _parse_package_json(content: str) -> list[ParsedPackage]:
    data = json.loads(content)
    lines = content.splitlines()
    packages = []
    for dep_key in ("dependencies", "devDependencies"):
        deps = data.get(dep_key) or {}
        for pkg_name, version_spec in deps.items():
            if not isinstance(version_spec, str):
                continue
            packages.append((pkg_name, clean_version(version_spec), _line_of(lines, f'"{pkg_name}"')))
    return packages


def _parse_package_lock_json(content: str) -> list[ParsedPackage]:
    data = json.loads(content)
    packages = []
    # lockfileVersion 2/3 uses "packages", v1 uses "dependencies"
    pkgs = data.get("packages") or data.get("dependencies") or {}
    for key, info in pkgs.items():
        if key == "" or not isinstance(info, dict):
            continue
        name = info.get("name") or key.split("node_modules/")[-1]
        version = info.get("version")
        if name and isinstance(version, str):
            packages.append((name, clean_version(version), 1))
    return packages


def _parse_composer_json(content: str) -> list[ParsedPackage]:
    data = json.loads(content)
    lines = content.splitlines()
    packages = []
    for dep_key in ("require", "require-dev"):
        deps = data.get(dep_key) or {}
        for pkg_name, version_spec in deps.items():
            # platform requirements are not packages
            if pkg_name == "php" or pkg_name.startswith("ext-"):
                continue
            if not isinstance(version_spec, str):
                continue
            packages.append((pkg_name, clean_version(version_spec), _line_of(lines, f'"{pkg_name}"')))
    return packages


_GO_REQUIRE = re.compile(r"^\s*([^\s]+)\s+v?([^\s]+)")


def _parse_go_mod(content: str) -> list[ParsedPackage]:
    packages = []
    in_require = False
    for line_no, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("//"):
            continue

        if stripped.startswith("require") and stripped.endswith("("):
            in_require = True
            continue
        if in_require and stripped == ")":
            in_require = False
            continue

        if stripped.startswith("require "):
            stripped = stripped[len("require "):]
        elif not in_require:
            continue

        match = _GO_REQUIRE.match(stripped)
        if match:
            packages.append((match.group(1), match.group(2), line_no))
    return packages


# "!=" is an exclusion, not a pin
_REQUIREMENT = re.compile(r"^([A-Za-z0-9._-]+)(?:\[[^\]]*\])?\s*[=~><]+\s*([0-9][^\s;,#]*)")


def _parse_requirements_txt(content: str) -> list[ParsedPackage]:
    packages = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#") or line.startswith("-"):
            continue
        # Handle: package==version, package>=version, package~=version
        match = _REQUIREMENT.match(line)
        if match:
            packages.append((match.group(1).lower(), match.group(2), line_no))
    return packages


_GEM = re.compile(r"""gem\s+['"]([^'"]+)['"]\s*,\s*['"]([^'"]+)['"]""")


def _parse_gemfile(content: str) -> list[ParsedPackage]:
    packages = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if stripped.startswith("#"):
            continue
        match = _GEM.search(stripped)
        if match:
            packages.append((match.group(1), clean_version(match.group(2)), line_no))
    return packages


_GEM_SPEC = re.compile(r"^([a-zA-Z0-9_.-]+)\s+\(([^)]+)\)")


def _parse_gemfile_lock(content: str) -> list[ParsedPackage]:
    packages = []
    in_specs = False
    for line_no, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if stripped == "specs:":
            in_specs = True
            continue
        if in_specs and not stripped:
            in_specs = False
            continue
        # nested lines list a gem's own requirements, not installed versions
        if in_specs and line.startswith("    ") and not line.startswith("      "):
            match = _GEM_SPEC.match(stripped)
            if match:
                packages.append((match.group(1), match.group(2), line_no))
    return packages


_CARGO_SECTIONS = {"[dependencies]", "[dev-dependencies]", "[build-dependencies]"}
_CARGO_PLAIN = re.compile(r'^([a-zA-Z0-9_\-]+)\s*=\s*"([^"]+)"')
_CARGO_TABLE = re.compile(r'^([a-zA-Z0-9_\-]+)\s*=\s*\{.*?\bversion\s*=\s*"([^"]+)"')


def _parse_cargo_toml(content: str) -> list[ParsedPackage]:
    packages = []
    in_deps = False
    for line_no, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if stripped.startswith("["):
            in_deps = stripped in _CARGO_SECTIONS
            continue
        if not in_deps or not stripped or stripped.startswith("#"):
            continue
        match = _CARGO_PLAIN.match(stripped) or _CARGO_TABLE.match(stripped)
        if match:
            packages.append((match.group(1), clean_version(match.group(2)), line_no))
    return packages


def _parse_cargo_lock(content: str) -> list[ParsedPackage]:
    packages = []
    current_name = None
    current_line = 0
    for line_no, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if stripped == "[[package]]":
            current_name = None
            current_line = line_no
        elif stripped.startswith('name = "'):
            current_name = stripped.split('"')[1]
        elif stripped.startswith('version = "') and current_name:
            version = stripped.split('"')[1]
            packages.append((current_name, version, current_line))
            current_name = None
    return packages


_POM_DEPENDENCY = re.compile(
    r"<groupId>([^<]+)</groupId>\s*<artifactId>([^<]+)</artifactId>\s*<version>([^<]+)</version>"
)


def _parse_pom_xml(content: str) -> list[ParsedPackage]:
    packages = []
    for match in _POM_DEPENDENCY.finditer(content):
        name = f"{match.group(1).strip()}:{match.group(2).strip()}"
        line_no = content.count("\n", 0, match.start()) + 1
        packages.append((name, match.group(3).strip(), line_no))
    return packages


class ManifestKind(Enum):
    """Supported manifest files: (basename, ecosystem tag)."""

    PACKAGE_JSON = ("package.json", "npm")
    PACKAGE_LOCK_JSON = ("package-lock.json", "npm")
    COMPOSER_JSON = ("composer.json", "Packagist")
    GO_MOD = ("go.mod", "Go")
    REQUIREMENTS_TXT = ("requirements.txt", "PyPI")
    GEMFILE = ("gemfile", "RubyGems")
    GEMFILE_LOCK = ("gemfile.lock", "RubyGems")
    CARGO_TOML = ("cargo.toml", "crates.io")
    CARGO_LOCK = ("cargo.lock", "crates.io")
    POM_XML = ("pom.xml", "Maven")

    def __init__(self, filename: str, ecosystem: str) -> None:
        self.filename = filename
        self.ecosystem = ecosystem

    @classmethod
    def for_path(cls, path: Union[str, Path]) -> Optional["ManifestKind"]:
        """Look up the manifest kind for a file by its basename."""
        return _KINDS_BY_FILENAME.get(Path(path).name.lower())

    def normalize(self, content: str, source_file: str) -> list[Dependency]:
        """Parse manifest content into Dependency records. Parse errors propagate."""
        parser = _PARSERS[self]
        return [
            Dependency(
                name=name,
                version=version,
                ecosystem=self.ecosystem,
                source_file=source_file,
                line=line_no,
            )
            for name, version, line_no in parser(content)
        ]


_KINDS_BY_FILENAME = {kind.filename: kind for kind in ManifestKind}

_PARSERS: dict[ManifestKind, Callable[[str], list[ParsedPackage]]] = {
    ManifestKind.PACKAGE_JSON: _parse_package_json,
    ManifestKind.PACKAGE_LOCK_JSON: _parse_package_lock_json,
    ManifestKind.COMPOSER_JSON: _parse_composer_json,
    ManifestKind.GO_MOD: _parse_go_mod,
    ManifestKind.REQUIREMENTS_TXT: _parse_requirements_txt,
    ManifestKind.GEMFILE: _parse_gemfile,
    ManifestKind.GEMFILE_LOCK: _parse_gemfile_lock,
    ManifestKind.CARGO_TOML: _parse_cargo_toml,
    ManifestKind.CARGO_LOCK: _parse_cargo_lock,
    ManifestKind.POM_XML: _parse_pom_xml,
}


def is_manifest(path: Union[str, Path]) -> bool:
    return ManifestKind.for_path(path) is not None


def extract_dependencies(file_path: Union[str, Path], content: str) -> list[Dependency]:
    """
    Extract dependencies from a manifest.

    Unknown basenames and unparseable manifests both yield an empty list.
    """
    kind = ManifestKind.for_path(file_path)
    if kind is None:
        return []
    try:
        return kind.normalize(content, str(file_path))
    except (ValueError, TypeError, AttributeError) as exc:
        log.debug("manifest_parse_failed", path=str(file_path), kind=kind.name, error=str(exc))
        return []
