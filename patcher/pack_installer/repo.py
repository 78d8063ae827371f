# pack_installer/repo.py
from __future__ import annotations
import threading

from .config import InstallerConfig
from .console import log
from .errors import ConfigError
from .fetch import Fetcher
from .manifest import (
    IndexedFile, IndexToml, MetafileToml, PackToml,
    parse_index, parse_metafile, parse_pack,
)
from .pack import Pack, resolve_url, to_pack
from .parallel import run_parallel


class Repository:
    """
    Remote pack: pack.toml, the index it points to, and every metafile.

    Each stage is verified before its contents are trusted:
    - pack.toml against the caller-supplied hash (if any),
    - the index against the hash pack.toml declares (mandatory),
    - each metafile against the hash its index entry declares.
    Later stages load earlier ones on demand.
    """

    def __init__(self, url: str, hash_format: str = "", hash: str = "",
                 fetcher: Fetcher | None = None,
                 config: InstallerConfig | None = None):
        self.url = url
        self.pack_hash_format = hash_format
        self.pack_hash = hash
        self.config = config or (fetcher.config if fetcher else InstallerConfig())
        self.fetcher = fetcher or Fetcher(self.config)

        self.pack: PackToml | None = None
        self.index: IndexToml | None = None
        self.metafiles: list[MetafileToml] | None = None

    @property
    def index_url(self) -> str:
        if self.pack is None:
            raise RuntimeError("pack.toml not loaded")
        return resolve_url(self.url, self.pack.index.file)

    def load_pack(self, cancel_event: threading.Event | None = None) -> PackToml:
        if self.pack_hash:
            data = self.fetcher.fetch_valid_bytes(
                self.url, self.pack_hash_format, self.pack_hash, cancel_event)
        else:
            data = self.fetcher.fetch_bytes(self.url, cancel_event)
        self.pack = parse_pack(data)
        return self.pack

    def load_index(self, cancel_event: threading.Event | None = None) -> IndexToml:
        if self.pack is None:
            self.load_pack(cancel_event)
        ref = self.pack.index
        if not ref.file:
            raise ConfigError("pack.toml: [index] has no file")
        if not ref.hash or not ref.hash_format:
            raise ConfigError("pack.toml: [index] must declare hash-format and hash")

        data = self.fetcher.fetch_valid_bytes(
            self.index_url, ref.hash_format, ref.hash, cancel_event)
        self.index = parse_index(data)
        return self.index

    def _fetch_metafile(self, entry: IndexedFile, cancel_event: threading.Event) -> MetafileToml:
        url = resolve_url(self.index_url, entry.file)
        hash_format = entry.hash_format or self.index.hash_format
        data = self.fetcher.fetch_valid_bytes(url, hash_format, entry.hash, cancel_event)
        mf = parse_metafile(data, entry.file)
        mf.index_name = entry.file
        return mf

    def load_metafiles(self, cancel_event: threading.Event | None = None) -> list[MetafileToml]:
        if self.index is None:
            self.load_index(cancel_event)

        entries = [f for f in self.index.files if f.metafile]
        mods: list[MetafileToml] = []
        lock = threading.Lock()

        def _one(entry: IndexedFile, ev: threading.Event) -> None:
            mf = self._fetch_metafile(entry, ev)
            with lock:
                mods.append(mf)

        run_parallel(entries, _one, self.config.workers, cancel_event,
                     desc="Fetching metafiles", show_progress=self.config.show_progress)
        self.metafiles = mods
        return mods

    def load(self, cancel_event: threading.Event | None = None) -> None:
        self.load_metafiles(cancel_event)
        log(f"resolved {len(self.index.files)} index entries ({len(self.metafiles)} metafiles)")

    def to_pack(self) -> Pack:
        if self.metafiles is None:
            self.load()
        return to_pack(self.url, self.pack, self.index, self.metafiles)
