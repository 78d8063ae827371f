# pack_installer/snapshot.py
from __future__ import annotations
import json
from pathlib import Path

from .errors import InstallerError, SnapshotError
from .io import write_atomic
from .pack import ModFile
from .paths import INSTALLED_NAME, state_file


class SnapshotStore:
    """Keeps JSON state documents under <root>/.pw-install/."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path(self, name: str = INSTALLED_NAME) -> Path:
        return state_file(self.root, name)

    def save(self, name: str, v) -> None:
        p = self.path(name)
        data = json.dumps(v, indent=2).encode("utf-8")
        try:
            write_atomic(p, data)
        except OSError as e:
            raise SnapshotError(f"save {p}: {e}") from e

    def restore(self, name: str, default=None):
        """Load a state document; a missing file yields default."""
        p = self.path(name)
        try:
            raw = p.read_bytes()
        except FileNotFoundError:
            return default
        except OSError as e:
            raise SnapshotError(f"read {p}: {e}") from e
        try:
            return json.loads(raw)
        except ValueError as e:
            raise SnapshotError(f"parse {p}: {e}") from e

    def save_installed(self, files: list[ModFile]) -> None:
        self.save(INSTALLED_NAME, [f.to_dict() for f in files])

    def load_installed(self) -> list[ModFile]:
        raw = self.restore(INSTALLED_NAME, default=[])
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise SnapshotError(f"{self.path()}: expected a list of files")
        try:
            return [ModFile.from_dict(d) for d in raw]
        except (KeyError, TypeError, AttributeError, InstallerError) as e:
            raise SnapshotError(f"{self.path()}: bad entry: {e}") from e
