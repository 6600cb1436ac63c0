"""
Filesystem helpers — tree copies and removals used by the compile.

Directory trees (node_modules, .gem) are moved between the build dir
and the cache dir wholesale; symlinks inside them (node_modules/.bin)
are preserved as links.
"""

from __future__ import annotations

import logging
import shutil
import stat
from pathlib import Path

logger = logging.getLogger(__name__)


def remove_path(path: Path) -> bool:
    """Remove a file, symlink or directory tree. Returns True if removed."""
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


def copy_tree(src: Path, dest: Path) -> None:
    """Copy ``src`` to ``dest``, replacing whatever was at ``dest``."""
    remove_path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(src, dest, symlinks=True)
    logger.debug("Copied %s -> %s", src, dest)


def move_tree(src: Path, dest: Path) -> None:
    """Move ``src`` to ``dest``, replacing whatever was at ``dest``."""
    remove_path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(src), str(dest))
    logger.debug("Moved %s -> %s", src, dest)


def reset_dir(path: Path) -> None:
    """Make ``path`` an empty directory."""
    remove_path(path)
    path.mkdir(parents=True, exist_ok=True)


def make_executable(directory: Path) -> int:
    """Add execute bits to every regular file in ``directory``."""
    count = 0
    if not directory.is_dir():
        return count
    for entry in directory.iterdir():
        if entry.is_file() and not entry.is_symlink():
            mode = entry.stat().st_mode
            entry.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            count += 1
    return count


def write_text(path: Path, content: str, *, append: bool = False) -> None:
    """Write (or append) a text file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a" if append else "w", encoding="utf-8") as f:
        f.write(content)


def read_line(path: Path) -> str | None:
    """First line of a single-line record file, or None if absent/empty."""
    if not path.is_file():
        return None
    value = path.read_text(encoding="utf-8").strip()
    return value or None
