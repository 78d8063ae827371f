"""
Shared fixtures: an in-memory HTTP session and a helper that publishes
pack.toml / index.toml / metafiles / file bodies on it.
"""
import hashlib

import pytest
import requests

from pack_installer.config import InstallerConfig
from pack_installer.fetch import Fetcher

BASE = "https://packs.example.com/demo/"
PACK_URL = BASE + "pack.toml"


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class FakeResponse:
    def __init__(self, url, content=b"", status_code=200, json_data=None):
        self.url = url
        self.content = content
        self.status_code = status_code
        self._json = json_data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} for url: {self.url}", response=self)

    def json(self):
        if self._json is None:
            raise ValueError("no json body")
        return self._json


class FakeSession:
    """Stands in for requests.Session; unknown URLs answer 404."""

    def __init__(self):
        self.headers = {}
        self.routes = {}
        self.calls = []
        self.closed = False

    def add(self, url, content=b"", status_code=200, json_data=None):
        self.routes[url] = FakeResponse(url, content, status_code, json_data)

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers))
        if url not in self.routes:
            return FakeResponse(url, b"not found", 404)
        return self.routes[url]

    def urls(self):
        return [u for u, _ in self.calls]

    def close(self):
        self.closed = True


class PackServer:
    """Builds a pack on a FakeSession.

    files: {path: bytes} for plain index entries.
    metafiles: {metafile path: (metafile toml text)} for metafile entries.
    """

    def __init__(self, session: FakeSession):
        self.session = session

    def publish(self, files=None, metafiles=None, index_file="index.toml",
                pack_name="Demo Pack", index_hash=None, extra_pack=""):
        files = files or {}
        metafiles = metafiles or {}
        index_dir = index_file.rsplit("/", 1)[0] + "/" if "/" in index_file else ""

        lines = ['hash-format = "sha256"', ""]
        for path, body in files.items():
            lines += ["[[files]]", f'file = "{path}"', f'hash = "{sha256(body)}"', ""]
            self.session.add(BASE + index_dir + path, body)
        for path, text in metafiles.items():
            data = text.encode()
            lines += ["[[files]]", f'file = "{path}"', f'hash = "{sha256(data)}"',
                      "metafile = true", ""]
            self.session.add(BASE + index_dir + path, data)
        index = "\n".join(lines).encode()
        self.session.add(BASE + index_file, index)

        pack = (
            f'name = "{pack_name}"\n'
            'version = "1.0.0"\n'
            'pack-format = "packwiz:1.1.0"\n'
            f"{extra_pack}"
            "\n[index]\n"
            f'file = "{index_file}"\n'
            'hash-format = "sha256"\n'
            f'hash = "{sha256(index) if index_hash is None else index_hash}"\n'
            "\n[versions]\n"
            'minecraft = "1.20.1"\n'
        ).encode()
        self.session.add(PACK_URL, pack)
        return pack


def url_metafile(filename, url, body, side="both"):
    return (
        f'name = "{filename}"\n'
        f'filename = "{filename}"\n'
        f'side = "{side}"\n\n'
        "[download]\n"
        f'url = "{url}"\n'
        'hash-format = "sha256"\n'
        f'hash = "{sha256(body)}"\n'
    )


def curseforge_metafile(filename, body, project_id, file_id, side="both"):
    return (
        f'name = "{filename}"\n'
        f'filename = "{filename}"\n'
        f'side = "{side}"\n\n'
        "[download]\n"
        'hash-format = "sha256"\n'
        f'hash = "{sha256(body)}"\n'
        'mode = "metadata:curseforge"\n\n'
        "[update.curseforge]\n"
        f"file-id = {file_id}\n"
        f"project-id = {project_id}\n"
    )


@pytest.fixture
def config():
    return InstallerConfig(workers=4, show_progress=False, curseforge_api_key="")


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def fetcher(config, session):
    return Fetcher(config, session=session)


@pytest.fixture
def server(session):
    return PackServer(session)
