"""
CommitGuard File Walker

Traverses a scan root and yields the files worth scanning:
- skips VCS, dependency, build and IDE directories entirely
- honors gitignore-style rules from the project ignore file
- keeps only known text/config file types
"""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Iterator, Optional, Union

import pathspec
import structlog

from commitguard.core.config import ScanConfig
from commitguard.core.errors import ScanError

log = structlog.get_logger("commitguard.walker")

SKIP_DIRS = {
    ".git", ".svn", ".hg",
    "node_modules", "vendor", ".venv", "venv",
    "target", "build", "dist", "out",
    ".idea", ".vscode",
}

# File extensions to scan (text-based files), compared lower-cased.
# The empty string admits extension-less files such as Dockerfile or .env
TEXT_EXTENSIONS = {
    ".go", ".py", ".js", ".jsx", ".ts", ".tsx", ".java", ".kt", ".scala",
    ".cpp", ".c", ".h", ".hpp", ".cs", ".php", ".rb", ".rs", ".swift",
    ".sh", ".bash", ".zsh", ".fish", ".ps1",
    ".yaml", ".yml", ".json", ".xml", ".toml", ".ini", ".cfg", ".conf",
    ".properties", ".tf", ".hcl", ".gradle",
    ".txt", ".md", ".rst", ".html", ".css", ".scss", ".sass",
    ".sql", ".env", ".envrc", ".dockerignore", ".gitignore",
    ".dockerfile", ".mod", ".lock",
    "",
}

# Config files recognised by exact basename regardless of extension
FILENAME_MATCHES = {
    "Dockerfile", "Makefile", "Jenkinsfile", "Vagrantfile",
    "Gemfile", "Gemfile.lock", "go.mod", "go.sum",
    "docker-compose.yml", "docker-compose.yaml",
    ".env.local", ".env.development", ".env.production",
    ".npmrc", ".pypirc",
}

PathLike = Union[str, "os.PathLike[str]"]


def should_scan_file(file_path: Path) -> bool:
    """Check a file against the extension/basename allow-list."""
    if file_path.name in FILENAME_MATCHES:
        return True
    return file_path.suffix.lower() in TEXT_EXTENSIONS


class FileWalker:
    """
    Yields scan-eligible files below a root.

    Every call to walk() starts a fresh traversal; nothing is cached between calls.
    """

    def __init__(self, config: Optional[ScanConfig] = None) -> None:
        self.config = config or ScanConfig()

    def walk(self, root: PathLike) -> Iterator[Path]:
        """
        Validate the root and return a lazy iterator over eligible files.

        Raises:
            ScanError: the root does not exist or cannot be listed.
        """
        root_path = Path(root)
        try:
            st = root_path.stat()
        except OSError as exc:
            raise ScanError(f"cannot access scan root {root_path}: {exc}") from exc

        if not stat.S_ISDIR(st.st_mode):
            return iter([root_path] if should_scan_file(root_path) else [])

        try:
            with os.scandir(root_path):
                pass
        except OSError as exc:
            raise ScanError(f"cannot list scan root {root_path}: {exc}") from exc

        return self._iter_tree(root_path, self._load_ignore_spec(root_path))

    def _iter_tree(self, root: Path, spec: Optional[pathspec.PathSpec]) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(root, onerror=self._on_walk_error):
            current = Path(dirpath)

            kept = []
            for name in dirnames:
                if name in SKIP_DIRS:
                    continue
                if spec is not None and spec.match_file(self._relative(root, current / name) + "/"):
                    continue
                kept.append(name)
            # prune in place so os.walk never descends
            dirnames[:] = kept

            for name in filenames:
                file_path = current / name
                if spec is not None and spec.match_file(self._relative(root, file_path)):
                    continue
                if should_scan_file(file_path):
                    yield file_path

    def _load_ignore_spec(self, root: Path) -> Optional[pathspec.PathSpec]:
        """Compile ignore-file rules and configured exclude patterns into one spec."""
        lines: list[str] = list(self.config.exclude_paths)

        if self.config.respect_ignore_file and self.config.ignore_file:
            ignore_path = root / self.config.ignore_file
            if ignore_path.is_file():
                try:
                    lines.extend(ignore_path.read_text(encoding="utf-8", errors="replace").splitlines())
                except OSError as exc:
                    log.debug("ignore_file_unreadable", path=str(ignore_path), error=str(exc))

        if not lines:
            return None
        return pathspec.GitIgnoreSpec.from_lines(lines)

    @staticmethod
    def _relative(root: Path, path: Path) -> str:
        return path.relative_to(root).as_posix()

    @staticmethod
    def _on_walk_error(exc: OSError) -> None:
        log.debug("walk_error", path=getattr(exc, "filename", None), error=str(exc))
