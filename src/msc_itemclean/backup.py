"""Rotating backups of the items file.

items.txt -> items00.txt, items00.txt -> items01.txt, ... up to items10.txt
(the oldest one is deleted). Run before the items file is overwritten.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from msc_itemclean.errors import StorageError

KEEP_DEFAULT = 10


def backup_path(path: Path, i: int) -> Path:
    p = Path(path)
    return p.with_name(f"{p.stem}{i:02d}{p.suffix}")


def rotate_backups(path: Path, keep: int = KEEP_DEFAULT) -> Path:
    """Shift existing backups up by one and copy ``path`` to slot 00.

    Returns the path of the fresh backup.
    """
    src = Path(path)
    if keep < 0:
        raise ValueError(f"keep must be >= 0 (got {keep})")
    if not src.is_file():
        raise StorageError(f"File not found: {src}")

    oldest = backup_path(src, keep)
    if oldest.is_file():
        try:
            oldest.unlink()
        except OSError as e:
            raise StorageError(f"Failed to remove {oldest}: {e}") from e

    for i in range(keep - 1, -1, -1):
        frm = backup_path(src, i)
        if frm.is_file():
            try:
                frm.replace(backup_path(src, i + 1))
            except OSError as e:
                raise StorageError(f"Failed to rename {frm}: {e}") from e

    dst = backup_path(src, 0)
    try:
        shutil.copy2(src, dst)
    except OSError as e:
        raise StorageError(f"Failed to copy {src} to {dst}: {e}") from e
    return dst
