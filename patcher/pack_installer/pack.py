# pack_installer/pack.py
from __future__ import annotations
import posixpath
from dataclasses import dataclass, field
from typing import Union
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

from .errors import ConfigError, InvalidProviderReference, MalformedManifest, MetafileNotFound
from .manifest import IndexToml, MetafileToml, PackToml
from .side import Side

PROVIDER_CURSEFORGE = "curseforge"

MODE_URL = "url"
MODE_CURSEFORGE = "metadata:curseforge"


@dataclass(frozen=True)
class DirectURL:
    url: str


@dataclass(frozen=True)
class IndirectReference:
    """Download that needs a provider lookup before it has a URL."""
    provider: str
    key: str


Download = Union[DirectURL, IndirectReference]


@dataclass(frozen=True)
class CurseforgeRef:
    project_id: int
    file_id: int

    def __str__(self) -> str:
        return f"{self.project_id}:{self.file_id}"

    @staticmethod
    def parse(s: str) -> "CurseforgeRef":
        parts = s.split(":")
        if len(parts) != 2:
            raise InvalidProviderReference(f"invalid curseforge reference {s!r}")
        try:
            return CurseforgeRef(int(parts[0]), int(parts[1]))
        except ValueError:
            raise InvalidProviderReference(f"invalid curseforge reference {s!r}") from None


@dataclass(frozen=True)
class ModFile:
    """One file of a resolved pack, relative to the install root."""
    path: str
    hash: str
    hash_format: str
    side: Side = Side.UNSPECIFIED
    download: Download | None = None

    def to_dict(self) -> dict:
        d = self.download
        if isinstance(d, DirectURL):
            dl = {"type": "url", "data": d.url}
        elif isinstance(d, IndirectReference):
            dl = {"type": d.provider, "data": d.key}
        else:
            dl = None
        out = {"path": self.path, "hash": self.hash, "hashFormat": self.hash_format}
        if self.side is not Side.UNSPECIFIED:
            out["side"] = self.side.value
        out["download"] = dl
        return out

    @staticmethod
    def from_dict(d: dict) -> "ModFile":
        dl = d.get("download")
        download: Download | None = None
        if dl:
            if dl.get("type") == "url":
                download = DirectURL(dl["data"])
            else:
                download = IndirectReference(dl["type"], dl["data"])
        return ModFile(
            path=d["path"],
            hash=d["hash"],
            hash_format=d["hashFormat"],
            side=Side.parse(d.get("side", "")),
            download=download,
        )


@dataclass
class Pack:
    name: str
    author: str = ""
    version: str = ""
    files: list[ModFile] = field(default_factory=list)


def rel_path(*parts: str) -> str:
    """Join manifest path parts into a clean, slash-separated relative path."""
    cleaned = [p.replace("\\", "/") for p in parts if p]
    joined = posixpath.join(*cleaned) if cleaned else ""
    norm = posixpath.normpath(joined) if joined else ""
    if not norm or norm == "." or norm.startswith("/") or norm == ".." or norm.startswith("../"):
        raise MalformedManifest(f"invalid path in manifest: {joined!r}")
    return norm


def resolve_url(base: str, rel: str) -> str:
    """Resolve rel against the directory of the document at base.

    The query of base (an access token, say) is carried over.
    """
    joined = urljoin(base, quote(rel.replace("\\", "/"), safe="/"))
    query = urlsplit(base).query
    if not query:
        return joined
    return urlunsplit(urlsplit(joined)._replace(query=query))


def _metafile_download(mf: MetafileToml) -> Download:
    mode = mf.download.mode
    if mode in ("", MODE_URL):
        if not mf.download.url:
            raise MalformedManifest(f"{mf.index_name}: download has no url")
        return DirectURL(mf.download.url)
    if mode == MODE_CURSEFORGE:
        cf = mf.curseforge
        if cf is None:
            raise InvalidProviderReference(f"{mf.index_name}: missing [update.curseforge]")
        ref = CurseforgeRef.parse(f"{cf.project_id}:{cf.file_id}")
        if ref.project_id <= 0 or ref.file_id <= 0:
            raise InvalidProviderReference(f"{mf.index_name}: invalid curseforge ids {ref}")
        return IndirectReference(PROVIDER_CURSEFORGE, str(ref))
    raise MalformedManifest(f"{mf.index_name}: unsupported download mode {mode!r}")


def _metafile_side(mf: MetafileToml) -> Side:
    try:
        return Side.parse(mf.side)
    except ConfigError as e:
        raise MalformedManifest(f"{mf.index_name}: {e}") from e


def to_pack(pack_url: str, pack: PackToml, index: IndexToml,
            metafiles: list[MetafileToml]) -> Pack:
    """Flatten the verified document chain into one list of ModFile."""
    by_name = {m.index_name: m for m in metafiles}
    index_dir = posixpath.dirname(pack.index.file.replace("\\", "/"))

    files: list[ModFile] = []
    for f in index.files:
        if f.metafile:
            mf = by_name.get(f.file)
            if mf is None:
                raise MetafileNotFound(f.file)
            entry_dir = posixpath.dirname(f.file.replace("\\", "/"))
            files.append(ModFile(
                path=rel_path(index_dir, entry_dir, mf.filename),
                hash=mf.download.hash,
                hash_format=mf.download.hash_format,
                side=_metafile_side(mf),
                download=_metafile_download(mf),
            ))
        else:
            path = rel_path(index_dir, f.file)
            files.append(ModFile(
                path=path,
                hash=f.hash,
                hash_format=f.hash_format or index.hash_format,
                side=Side.BOTH,
                download=DirectURL(resolve_url(pack_url, path)),
            ))

    return Pack(name=pack.name, author=pack.author, version=pack.version, files=files)
