# pack_installer/paths.py
from __future__ import annotations
from pathlib import Path

# Hidden state folder under the install root
STATE_DIR_NAME: str = ".pw-install"
INSTALLED_NAME: str = "installed"

# Suffix for files being written before the atomic replace
PART_SUFFIX: str = ".part"


def state_dir(root: str | Path) -> Path:
    return Path(root) / STATE_DIR_NAME


def state_file(root: str | Path, name: str) -> Path:
    return state_dir(root) / f"{name}.json"


__all__ = [
    "STATE_DIR_NAME", "INSTALLED_NAME", "PART_SUFFIX",
    "state_dir", "state_file",
]
