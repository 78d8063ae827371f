# pack_installer/manifest.py
"""Typed views of the three TOML documents of a pack.

pack.toml -> index.toml -> one metafile (*.pw.toml) per indirect entry.
Only the fields the installer reads are kept; unknown keys are ignored.
"""
from __future__ import annotations
import tomllib
from dataclasses import dataclass, field

from .errors import MalformedManifest


@dataclass
class IndexRef:
    file: str = ""
    hash_format: str = ""
    hash: str = ""


@dataclass
class PackToml:
    name: str
    index: IndexRef
    author: str = ""
    version: str = ""
    description: str = ""
    pack_format: str = ""
    versions: dict[str, str] = field(default_factory=dict)


@dataclass
class IndexedFile:
    file: str
    hash: str = ""
    hash_format: str = ""
    alias: str = ""
    metafile: bool = False
    preserve: bool = False


@dataclass
class IndexToml:
    hash_format: str
    files: list[IndexedFile] = field(default_factory=list)


@dataclass
class MetafileDownload:
    url: str = ""
    hash_format: str = ""
    hash: str = ""
    mode: str = ""


@dataclass
class CurseForgeUpdate:
    project_id: int = 0
    file_id: int = 0


@dataclass
class MetafileToml:
    filename: str
    download: MetafileDownload
    name: str = ""
    side: str = ""
    curseforge: CurseForgeUpdate | None = None
    # index entry this metafile was fetched for; set by the resolver
    index_name: str = ""


def _load(data: bytes, what: str) -> dict:
    try:
        return tomllib.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise MalformedManifest(f"parse {what}: {e}") from e


def _table(doc: dict, key: str, what: str) -> dict:
    v = doc.get(key, {})
    if not isinstance(v, dict):
        raise MalformedManifest(f"{what}: [{key}] must be a table")
    return v


def _str(doc: dict, key: str, what: str, required: bool = False) -> str:
    v = doc.get(key, "")
    if not isinstance(v, str):
        raise MalformedManifest(f"{what}: {key!r} must be a string")
    if required and not v:
        raise MalformedManifest(f"{what}: {key!r} is required")
    return v


def _bool(doc: dict, key: str, what: str) -> bool:
    v = doc.get(key, False)
    if not isinstance(v, bool):
        raise MalformedManifest(f"{what}: {key!r} must be a boolean")
    return v


def _int(doc: dict, key: str, what: str) -> int:
    v = doc.get(key, 0)
    if isinstance(v, bool) or not isinstance(v, int):
        raise MalformedManifest(f"{what}: {key!r} must be an integer")
    return v


def parse_pack(data: bytes) -> PackToml:
    what = "pack.toml"
    doc = _load(data, what)
    idx = _table(doc, "index", what)
    versions = _table(doc, "versions", what)
    return PackToml(
        name=_str(doc, "name", what, required=True),
        author=_str(doc, "author", what),
        version=_str(doc, "version", what),
        description=_str(doc, "description", what),
        pack_format=_str(doc, "pack-format", what),
        index=IndexRef(
            file=_str(idx, "file", what),
            hash_format=_str(idx, "hash-format", what),
            hash=_str(idx, "hash", what),
        ),
        versions={str(k): str(v) for k, v in versions.items()},
    )


def parse_index(data: bytes) -> IndexToml:
    what = "index.toml"
    doc = _load(data, what)
    raw = doc.get("files", [])
    if not isinstance(raw, list):
        raise MalformedManifest(f"{what}: 'files' must be an array of tables")
    files = []
    for i, f in enumerate(raw):
        if not isinstance(f, dict):
            raise MalformedManifest(f"{what}: files[{i}] must be a table")
        w = f"{what} files[{i}]"
        files.append(IndexedFile(
            file=_str(f, "file", w, required=True),
            hash=_str(f, "hash", w),
            hash_format=_str(f, "hash-format", w),
            alias=_str(f, "alias", w),
            metafile=_bool(f, "metafile", w),
            preserve=_bool(f, "preserve", w),
        ))
    return IndexToml(hash_format=_str(doc, "hash-format", what), files=files)


def parse_metafile(data: bytes, name: str = "metafile") -> MetafileToml:
    doc = _load(data, name)
    dl = _table(doc, "download", name)
    update = _table(doc, "update", name)

    cf = None
    if "curseforge" in update:
        t = _table(update, "curseforge", name)
        cf = CurseForgeUpdate(project_id=_int(t, "project-id", name),
                              file_id=_int(t, "file-id", name))

    return MetafileToml(
        filename=_str(doc, "filename", name, required=True),
        name=_str(doc, "name", name),
        side=_str(doc, "side", name),
        download=MetafileDownload(
            url=_str(dl, "url", name),
            hash_format=_str(dl, "hash-format", name),
            hash=_str(dl, "hash", name),
            mode=_str(dl, "mode", name),
        ),
        curseforge=cf,
    )
