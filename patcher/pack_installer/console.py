# pack_installer/console.py
from __future__ import annotations
import io
import os
import sys

from tqdm import tqdm


def log(msg: str) -> None:
    """
    Print a line without tearing active progress bars.
    Falls back to plain print when tqdm cannot write (no stderr in frozen GUI builds).
    """
    try:
        tqdm.write(msg, file=tqdm_file())
        return
    except Exception:
        pass
    if getattr(sys, "stderr", None) is not None:
        print(msg, file=sys.stderr)
    else:
        print(msg)


def tqdm_file():
    """File-like object for tqdm; a sink when sys.stderr is None."""
    f = getattr(sys, "stderr", None)
    return f if (f is not None and hasattr(f, "write")) else io.StringIO()


def tqdm_disable(show_progress: bool = True) -> bool:
    """
    Disable tqdm when there is no real stderr or when explicitly requested.
    Env override: PACK_INSTALLER_TQDM=0 forces enable, =1 forces disable.
    """
    env = os.environ.get("PACK_INSTALLER_TQDM")
    if env == "0":
        return False
    if env == "1":
        return True
    if not show_progress:
        return True
    f = getattr(sys, "stderr", None)
    return not (f is not None and hasattr(f, "write"))


def progress(total: int, desc: str, show_progress: bool = True) -> tqdm:
    return tqdm(total=total, desc=desc, unit="file",
                file=tqdm_file(), disable=tqdm_disable(show_progress))
