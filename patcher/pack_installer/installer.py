# pack_installer/installer.py
from __future__ import annotations
import stat
import threading
from dataclasses import dataclass, field
from pathlib import Path

from .config import InstallerConfig
from .console import log
from .curseforge import CurseClient
from .diff import diff_files
from .errors import InstallerError, InvalidProviderReference
from .fetch import Fetcher
from .hashing import verify_file
from .io import join_under, rm_empty_parents, write_atomic
from .pack import DirectURL, IndirectReference, ModFile, Pack
from .parallel import run_parallel
from .side import Side
from .snapshot import SnapshotStore


@dataclass
class Updates:
    """Changes made (or to be made) by one install run."""
    added: list[ModFile] = field(default_factory=list)
    removed: list[ModFile] = field(default_factory=list)
    unchanged: list[ModFile] = field(default_factory=list)

    def __str__(self) -> str:
        out = []
        for title, files in (("Added", self.added), ("Removed", self.removed),
                             ("Unchanged", self.unchanged)):
            out.append(f"{title}:")
            out.extend(f"  {p}" for p in sorted(m.path for m in files))
        return "\n".join(out) + "\n"


class LocalInstaller:
    """Installs and updates a resolved pack in a local directory.

    A run goes through barriers: integrity check of unchanged files,
    downloads, removals, then the installed list is saved. A failure in any
    phase stops the run before the list is saved, so the next run starts
    from the previous good state and re-checks the disk.
    """

    def __init__(self, pack: Pack, directory: str | Path, game_side: Side | str = Side.BOTH,
                 config: InstallerConfig | None = None,
                 fetcher: Fetcher | None = None,
                 providers: dict | None = None,
                 snapshot: SnapshotStore | None = None):
        self.pack = pack
        self.base_dir = Path(directory).resolve()
        self.game_side = Side.target(game_side)
        self.config = config or (fetcher.config if fetcher else InstallerConfig())
        self.fetcher = fetcher or Fetcher(self.config)
        if providers is None:
            cf = CurseClient(self.config, self.fetcher)
            providers = {cf.name: cf}
        self.providers = providers
        self.snapshot = snapshot or SnapshotStore(self.base_dir)

    # -- state --

    def get_installed(self) -> list[ModFile]:
        return self.snapshot.load_installed()

    def set_installed(self, files: list[ModFile]) -> None:
        self.snapshot.save_installed(files)

    def target_files(self) -> list[ModFile]:
        return [m for m in self.pack.files if self.game_side.should_install(m.side)]

    def get_updates(self) -> Updates:
        """Diff the installed list against the side-filtered pack."""
        installed = self.get_installed()
        a, r, u = diff_files(installed, self.target_files())
        return Updates(added=a, removed=r, unchanged=u)

    # -- single file operations --

    def file_path(self, m: ModFile) -> Path:
        return join_under(self.base_dir, m.path)

    def check_integrity(self, m: ModFile) -> bool:
        """True when m is on disk as a regular file with the expected hash."""
        p = self.file_path(m)
        try:
            st = p.stat()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise InstallerError(f"check integrity {p}: {e}") from e
        if stat.S_ISDIR(st.st_mode):
            return False
        try:
            return verify_file(p, m.hash_format, m.hash)
        except OSError as e:
            log(f"unreadable, will reinstall: {m.path} ({e})")
            return False

    def _provider(self, name: str):
        provider = self.providers.get(name)
        if provider is None:
            raise InvalidProviderReference(f"unknown download provider {name!r}")
        return provider

    def download_url(self, m: ModFile, cancel_event: threading.Event | None = None) -> str:
        d = m.download
        if isinstance(d, DirectURL):
            return d.url
        if isinstance(d, IndirectReference):
            return self._provider(d.provider).resolve(d.key, cancel_event)
        raise InstallerError(f"{m.path}: no download information")

    def install_file(self, m: ModFile, cancel_event: threading.Event | None = None) -> None:
        """Download, verify and write one file."""
        url = self.download_url(m, cancel_event)
        data = self.fetcher.fetch_valid_bytes(url, m.hash_format, m.hash, cancel_event)
        p = self.file_path(m)
        if p.is_dir():
            try:
                p.rmdir()
            except OSError as e:
                raise InstallerError(f"directory occupies {p}: {e}") from e
        try:
            write_atomic(p, data)
        except OSError as e:
            raise InstallerError(f"write {p}: {e}") from e

    def remove_file(self, m: ModFile) -> None:
        p = self.file_path(m)
        try:
            p.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise InstallerError(f"remove {p}: {e}") from e

    def _require_credentials(self, files: list[ModFile]) -> None:
        needed = {m.download.provider for m in files if isinstance(m.download, IndirectReference)}
        for name in sorted(needed):
            self._provider(name).require_credentials()

    # -- full run --

    def install(self, cancel_event: threading.Event | None = None) -> Updates:
        if cancel_event is None:
            cancel_event = threading.Event()
        workers = self.config.workers
        show = self.config.show_progress

        result = Updates()
        update = self.get_updates()
        mut = threading.Lock()

        # 1) unchanged files must still be intact on disk
        def _check(m: ModFile, ev: threading.Event) -> None:
            ok = self.check_integrity(m)
            with mut:
                if ok:
                    result.unchanged.append(m)
                else:
                    update.added.append(m)

        run_parallel(update.unchanged, _check, workers, cancel_event,
                     desc="Checking files", show_progress=show)

        # 2) downloads
        self._require_credentials(update.added)

        def _download(m: ModFile, ev: threading.Event) -> None:
            self.install_file(m, ev)
            with mut:
                result.added.append(m)

        run_parallel(update.added, _download, workers, cancel_event,
                     desc="Downloading", show_progress=show)

        # 3) removals; a path re-downloaded with a new hash stays on disk
        replaced = {m.path for m in result.added}

        def _remove(m: ModFile, ev: threading.Event) -> None:
            if m.path not in replaced:
                self.remove_file(m)
            with mut:
                result.removed.append(m)

        run_parallel(update.removed, _remove, workers, cancel_event,
                     desc="Removing", show_progress=show)
        for m in result.removed:
            if m.path not in replaced:
                rm_empty_parents(self.base_dir, self.file_path(m))

        # 4) only a fully applied run becomes the new installed list
        self.set_installed(result.unchanged + result.added)
        log(f"done. added={len(result.added)}, removed={len(result.removed)}, "
            f"unchanged={len(result.unchanged)}")
        return result
