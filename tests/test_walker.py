"""
Tests for the File Walker
"""

from pathlib import Path

import pytest

from commitguard.core.config import ScanConfig
from commitguard.core.errors import ScanError
from commitguard.core.walker import FileWalker, should_scan_file


def _relative(root: Path, paths) -> set:
    return {p.relative_to(root).as_posix() for p in paths}


class TestShouldScanFile:
    """Tests for the extension/basename allow-list."""

    def test_text_files_are_scanned(self):
        assert should_scan_file(Path("app/main.py"))
        assert should_scan_file(Path("deploy/values.YAML"))
        assert should_scan_file(Path("go.mod"))

    def test_extensionless_config_files_are_scanned(self):
        assert should_scan_file(Path("Dockerfile"))
        assert should_scan_file(Path("Makefile"))
        assert should_scan_file(Path(".env"))

    def test_binary_types_are_not_scanned(self):
        assert not should_scan_file(Path("logo.png"))
        assert not should_scan_file(Path("bundle.zip"))
        assert not should_scan_file(Path("lib.so"))


class TestFileWalker:
    """Tests for FileWalker.walk."""

    def test_walks_fixture_tree(self, fixture_tree: Path, config: ScanConfig):
        """Only eligible files outside skipped directories are yielded."""
        found = _relative(fixture_tree, FileWalker(config).walk(fixture_tree))

        assert found == {
            "src/config.py",
            "src/auth.py",
            "src/clean.py",
            "Dockerfile",
            "package.json",
            "requirements.txt",
        }

    def test_skip_dirs_are_never_descended(self, temp_dir: Path, config: ScanConfig):
        """Nothing below node_modules, .git or vendor is yielded, at any depth."""
        for skipped in ("node_modules/a/b", ".git/objects", "pkg/vendor/lib"):
            (temp_dir / skipped).mkdir(parents=True)
            (temp_dir / skipped / "file.js").write_text("x")
        (temp_dir / "pkg" / "main.go").write_text("package main\n")

        found = _relative(temp_dir, FileWalker(config).walk(temp_dir))

        assert found == {"pkg/main.go"}

    def test_gitignore_is_honored(self, temp_dir: Path, config: ScanConfig):
        """Files and directories matched by .gitignore are skipped."""
        (temp_dir / ".gitignore").write_text("secrets/\n*.log.txt\n!keep.log.txt\n")
        (temp_dir / "secrets").mkdir()
        (temp_dir / "secrets" / "prod.env").write_text("KEY=1")
        (temp_dir / "debug.log.txt").write_text("x")
        (temp_dir / "keep.log.txt").write_text("x")
        (temp_dir / "app.py").write_text("x")

        found = _relative(temp_dir, FileWalker(config).walk(temp_dir))

        assert found == {".gitignore", "keep.log.txt", "app.py"}

    def test_ignore_file_can_be_disabled(self, temp_dir: Path):
        """respect_ignore_file=False scans ignored paths too."""
        (temp_dir / ".gitignore").write_text("ignored.py\n")
        (temp_dir / "ignored.py").write_text("x")

        walker = FileWalker(ScanConfig(respect_ignore_file=False))

        assert "ignored.py" in _relative(temp_dir, walker.walk(temp_dir))

    def test_exclude_paths(self, temp_dir: Path):
        """Configured exclude patterns use gitignore syntax."""
        (temp_dir / "fixtures").mkdir()
        (temp_dir / "fixtures" / "keys.txt").write_text("x")
        (temp_dir / "app.py").write_text("x")

        walker = FileWalker(ScanConfig(exclude_paths=("fixtures/",)))

        assert _relative(temp_dir, walker.walk(temp_dir)) == {"app.py"}

    def test_missing_root_raises(self, temp_dir: Path, config: ScanConfig):
        """An inaccessible root is an error, not an empty scan."""
        with pytest.raises(ScanError):
            FileWalker(config).walk(temp_dir / "does-not-exist")

    def test_single_file_root(self, secrets_test_file: Path, config: ScanConfig):
        """A file root yields just that file."""
        assert list(FileWalker(config).walk(secrets_test_file)) == [secrets_test_file]

    def test_single_ineligible_file_root(self, fixture_tree: Path, config: ScanConfig):
        assert list(FileWalker(config).walk(fixture_tree / "logo.png")) == []

    def test_walk_is_restartable(self, fixture_tree: Path, config: ScanConfig):
        """Each walk() call starts a fresh traversal."""
        walker = FileWalker(config)
        first = sorted(walker.walk(fixture_tree))
        second = sorted(walker.walk(fixture_tree))

        assert first == second
        assert len(first) == 6

    def test_empty_directory(self, temp_dir: Path, config: ScanConfig):
        assert list(FileWalker(config).walk(temp_dir)) == []
