# pack_installer/io.py
from __future__ import annotations
import os
import tempfile
from pathlib import Path, PurePosixPath

from .errors import InstallerError
from .paths import PART_SUFFIX


def ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def safe_replace(src_tmp: Path, dst: Path) -> None:
    """Atomic replace on the same volume (os.replace is atomic on Windows too).
    Caller ensures src_tmp exists and is complete/verified.
    """
    dst.parent.mkdir(parents=True, exist_ok=True)
    os.replace(str(src_tmp), str(dst))


def write_atomic(dst: Path, data: bytes) -> None:
    """Write data to a unique temp file next to dst, then move it into place."""
    ensure_dir(dst.parent)
    tmp: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(dir=dst.parent, prefix=dst.name + ".",
                                         suffix=PART_SUFFIX, delete=False) as f:
            tmp = Path(f.name)
            f.write(data)
        safe_replace(tmp, dst)
    except BaseException:
        if tmp is not None:
            tmp.unlink(missing_ok=True)
        raise


def join_under(root: Path, rel: str) -> Path:
    """root/rel, refusing paths that would land outside root."""
    parts = PurePosixPath(rel.replace("\\", "/")).parts
    if not parts or parts[0] == "/" or any(p in ("", ".", "..") for p in parts):
        raise InstallerError(f"path escapes install root: {rel!r}")
    return root.joinpath(*parts)


def rm_empty_parents(root: Path, p: Path) -> list[Path]:
    """Remove empty folders from p's parent upward, stopping at root."""
    removed: list[Path] = []
    root = root.resolve()
    cur = p.parent
    while True:
        try:
            resolved = cur.resolve()
        except OSError:
            break
        if resolved == root or root not in resolved.parents:
            break
        try:
            cur.rmdir()
        except OSError:
            # not empty, gone already, or not ours to remove
            break
        removed.append(cur)
        cur = cur.parent
    return removed
