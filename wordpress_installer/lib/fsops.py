from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def atomic_write_text(path: str, contents: str, *, mode: Optional[int] = None) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(contents)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp, mode)
        elif p.exists():
            os.chmod(tmp, stat.S_IMODE(p.stat().st_mode))
        os.replace(tmp, p)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def staging_path(target: Path) -> Path:
    return target.parent / f".{target.name}.staging"


def previous_path(target: Path) -> Path:
    return target.parent / f".{target.name}.previous"


def recover_interrupted_swap(target: Path) -> bool:
    """Put the previous tree back if a swap was interrupted between its two renames."""

    previous = previous_path(target)
    if not target.exists() and previous.is_dir():
        logger.warning("Restoring %s from interrupted swap (%s)", target, previous)
        os.rename(previous, target)
        return True
    return False


def swap_directory(new_tree: Path, target: Path) -> None:
    """Move new_tree into place at target by rename.

    Both paths must be on the same filesystem. This takes two renames, so
    between them target does not exist for a moment (requests in that window
    get a 404). Neither tree is ever partial: a crash in the window leaves the
    complete old tree at previous_path(target), which recover_interrupted_swap
    puts back. The old tree is only deleted after the new one is in place.
    """

    previous = previous_path(target)
    if previous.exists():
        # Leftover from a swap whose cleanup did not finish.
        shutil.rmtree(previous)

    if target.exists():
        os.rename(target, previous)
    os.rename(new_tree, target)

    if previous.exists():
        shutil.rmtree(previous)
    logger.info("Swapped %s into place at %s", new_tree, target)


def set_tree_permissions(root: Path, *, uid: int, gid: int, dir_mode: int, file_mode: int) -> None:
    """Recursive chown plus separate modes for directories and files (symlinks untouched)."""

    def _apply(p: Path, mode: int) -> None:
        os.chown(p, uid, gid, follow_symlinks=False)
        os.chmod(p, mode)

    _apply(root, dir_mode)
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames:
            p = Path(dirpath) / name
            if p.is_symlink():
                os.chown(p, uid, gid, follow_symlinks=False)
                continue
            _apply(p, dir_mode)
        for name in filenames:
            p = Path(dirpath) / name
            if p.is_symlink():
                os.chown(p, uid, gid, follow_symlinks=False)
                continue
            _apply(p, file_mode)


def has_owner_and_mode(path: Path, *, uid: int, gid: int, mode: int) -> bool:
    try:
        st = path.lstat()
    except FileNotFoundError:
        return False
    return st.st_uid == uid and st.st_gid == gid and stat.S_IMODE(st.st_mode) == mode
