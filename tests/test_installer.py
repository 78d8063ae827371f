"""
Install/update scenarios against an in-memory pack server
"""
import pytest

from conftest import BASE, PACK_URL, curseforge_metafile, sha256, url_metafile
from pack_installer.config import InstallerConfig
from pack_installer.curseforge import CurseClient
from pack_installer.errors import (
    ConfigError, HashMismatch, InstallerError, MissingCredential, ProviderLookupFailed,
)
from pack_installer.fetch import Fetcher
from pack_installer.installer import LocalInstaller
from pack_installer.pack import DirectURL, ModFile, Pack
from pack_installer.repo import Repository
from pack_installer.snapshot import SnapshotStore

A = b"a.jar contents"
B = b"b.jar contents"
C = b"c.jar contents"


def resolve(fetcher):
    return Repository(PACK_URL, fetcher=fetcher).to_pack()


def run(fetcher, root, side="both"):
    inst = LocalInstaller(resolve(fetcher), root, side, fetcher=fetcher)
    return inst.install()


def paths(files):
    return sorted(m.path for m in files)


def body_urls(session):
    return [u for u in session.urls() if u.endswith(".jar")]


class TestScenarios:

    def test_first_install(self, server, fetcher, tmp_path):
        server.publish(files={"a.jar": A, "b.jar": B})
        res = run(fetcher, tmp_path)
        assert paths(res.added) == ["a.jar", "b.jar"]
        assert res.removed == [] and res.unchanged == []
        assert (tmp_path / "a.jar").read_bytes() == A
        assert (tmp_path / "b.jar").read_bytes() == B
        assert paths(SnapshotStore(tmp_path).load_installed()) == ["a.jar", "b.jar"]

    def test_second_run_is_noop(self, server, fetcher, session, tmp_path):
        server.publish(files={"a.jar": A, "b.jar": B})
        run(fetcher, tmp_path)
        session.calls.clear()

        res = run(fetcher, tmp_path)
        assert res.added == [] and res.removed == []
        assert paths(res.unchanged) == ["a.jar", "b.jar"]
        # only the manifest chain is fetched again
        assert body_urls(session) == []
        assert set(session.urls()) == {PACK_URL, BASE + "index.toml"}

    def test_missing_file_is_reinstalled(self, server, fetcher, tmp_path):
        server.publish(files={"a.jar": A, "b.jar": B})
        run(fetcher, tmp_path)
        (tmp_path / "a.jar").unlink()

        res = run(fetcher, tmp_path)
        assert paths(res.added) == ["a.jar"]
        assert paths(res.unchanged) == ["b.jar"]
        assert (tmp_path / "a.jar").read_bytes() == A

    def test_modified_file_is_reinstalled(self, server, fetcher, tmp_path):
        server.publish(files={"a.jar": A, "b.jar": B})
        run(fetcher, tmp_path)
        (tmp_path / "b.jar").write_bytes(b"locally edited")

        res = run(fetcher, tmp_path)
        assert paths(res.added) == ["b.jar"]
        assert (tmp_path / "b.jar").read_bytes() == B

    def test_directory_in_place_of_file(self, server, fetcher, tmp_path):
        server.publish(files={"a.jar": A})
        run(fetcher, tmp_path)
        (tmp_path / "a.jar").unlink()
        (tmp_path / "a.jar").mkdir()

        inst = LocalInstaller(resolve(fetcher), tmp_path, fetcher=fetcher)
        assert inst.check_integrity(inst.pack.files[0]) is False

        res = run(fetcher, tmp_path)
        assert paths(res.added) == ["a.jar"]
        assert (tmp_path / "a.jar").read_bytes() == A

        res = run(fetcher, tmp_path)
        assert res.added == []
        assert paths(res.unchanged) == ["a.jar"]

    def test_non_empty_directory_in_place_of_file(self, server, fetcher, tmp_path):
        server.publish(files={"a.jar": A})
        run(fetcher, tmp_path)
        (tmp_path / "a.jar").unlink()
        (tmp_path / "a.jar").mkdir()
        (tmp_path / "a.jar" / "keep.txt").write_bytes(b"user data")

        with pytest.raises(InstallerError, match="directory occupies"):
            run(fetcher, tmp_path)
        assert (tmp_path / "a.jar" / "keep.txt").read_bytes() == b"user data"

    def test_part_named_files_do_not_collide(self, server, fetcher, tmp_path):
        server.publish(files={"a.jar": A, "a.jar.part": B})
        run(fetcher, tmp_path)
        assert (tmp_path / "a.jar").read_bytes() == A
        assert (tmp_path / "a.jar.part").read_bytes() == B
        assert sorted(p.name for p in tmp_path.iterdir()) == [".pw-install", "a.jar", "a.jar.part"]

    def test_pack_change(self, server, fetcher, tmp_path):
        server.publish(files={"a.jar": A, "b.jar": B})
        run(fetcher, tmp_path)

        server.publish(files={"a.jar": A, "c.jar": C})
        res = run(fetcher, tmp_path)
        assert paths(res.removed) == ["b.jar"]
        assert paths(res.added) == ["c.jar"]
        assert paths(res.unchanged) == ["a.jar"]
        assert not (tmp_path / "b.jar").exists()
        assert (tmp_path / "c.jar").read_bytes() == C
        assert paths(SnapshotStore(tmp_path).load_installed()) == ["a.jar", "c.jar"]

    def test_updated_hash_replaces_file(self, server, fetcher, tmp_path):
        server.publish(files={"mods/a.jar": A})
        run(fetcher, tmp_path)

        server.publish(files={"mods/a.jar": b"a.jar v2"})
        res = run(fetcher, tmp_path)
        assert paths(res.added) == ["mods/a.jar"]
        assert paths(res.removed) == ["mods/a.jar"]
        assert (tmp_path / "mods" / "a.jar").read_bytes() == b"a.jar v2"
        [entry] = SnapshotStore(tmp_path).load_installed()
        assert entry.hash == sha256(b"a.jar v2")

    def test_hash_mismatch_aborts(self, server, fetcher, session, tmp_path):
        server.publish(files={"a.jar": A, "b.jar": B})
        session.add(BASE + "b.jar", b"tampered")
        with pytest.raises(HashMismatch):
            run(fetcher, tmp_path)
        assert not (tmp_path / "b.jar").exists()
        assert not SnapshotStore(tmp_path).path().exists()

    def test_failed_update_keeps_previous_snapshot(self, server, fetcher, session, tmp_path):
        server.publish(files={"a.jar": A})
        run(fetcher, tmp_path)
        before = SnapshotStore(tmp_path).path().read_bytes()

        server.publish(files={"a.jar": A, "b.jar": B})
        session.add(BASE + "b.jar", b"", status_code=500)
        with pytest.raises(InstallerError):
            run(fetcher, tmp_path)
        assert SnapshotStore(tmp_path).path().read_bytes() == before

        # re-running after the server recovers finishes the job
        session.add(BASE + "b.jar", B)
        res = run(fetcher, tmp_path)
        assert paths(res.added) == ["b.jar"]

    def test_removed_file_already_gone(self, server, fetcher, tmp_path):
        server.publish(files={"a.jar": A, "sub/b.jar": B})
        run(fetcher, tmp_path)
        (tmp_path / "sub" / "b.jar").unlink()

        server.publish(files={"a.jar": A})
        res = run(fetcher, tmp_path)
        assert paths(res.removed) == ["sub/b.jar"]

    def test_empty_parent_dirs_pruned(self, server, fetcher, tmp_path):
        server.publish(files={"a.jar": A, "deep/er/b.jar": B})
        run(fetcher, tmp_path)
        server.publish(files={"a.jar": A})
        run(fetcher, tmp_path)
        assert not (tmp_path / "deep").exists()
        assert (tmp_path / ".pw-install").is_dir()


class TestSides:

    def test_client_skips_server_files(self, server, fetcher, session, tmp_path):
        cdn = "https://cdn.example.com/"
        session.add(cdn + "client.jar", A)
        session.add(cdn + "server.jar", B)
        server.publish(metafiles={
            "mods/client.pw.toml": url_metafile("client.jar", cdn + "client.jar", A, "client"),
            "mods/server.pw.toml": url_metafile("server.jar", cdn + "server.jar", B, "server"),
        })
        res = run(fetcher, tmp_path, side="client")
        assert paths(res.added) == ["mods/client.jar"]
        assert not (tmp_path / "mods" / "server.jar").exists()

    def test_invalid_side(self, fetcher, tmp_path):
        with pytest.raises(ConfigError):
            LocalInstaller(Pack("x"), tmp_path, "desktop", fetcher=fetcher)


class FakeProvider:
    name = "curseforge"

    def __init__(self, urls):
        self.urls = urls
        self.keys = []

    def require_credentials(self):
        pass

    def resolve(self, key, cancel_event=None):
        self.keys.append(key)
        if key not in self.urls:
            raise ProviderLookupFailed(f"no file for {key}")
        return self.urls[key]


class TestProviders:

    def publish_cf(self, server, session):
        session.add("https://edge.forgecdn.net/jei.jar", C)
        server.publish(metafiles={
            "mods/jei.pw.toml": curseforge_metafile("jei.jar", C, 238222, 4712871),
        })

    def test_indirect_download(self, server, session, fetcher, tmp_path):
        self.publish_cf(server, session)
        provider = FakeProvider({"238222:4712871": "https://edge.forgecdn.net/jei.jar"})
        inst = LocalInstaller(resolve(fetcher), tmp_path, fetcher=fetcher,
                              providers={"curseforge": provider})
        res = inst.install()
        assert paths(res.added) == ["mods/jei.jar"]
        assert provider.keys == ["238222:4712871"]
        assert (tmp_path / "mods" / "jei.jar").read_bytes() == C

    def test_lookup_failure(self, server, session, fetcher, tmp_path):
        self.publish_cf(server, session)
        inst = LocalInstaller(resolve(fetcher), tmp_path, fetcher=fetcher,
                              providers={"curseforge": FakeProvider({})})
        with pytest.raises(ProviderLookupFailed):
            inst.install()
        assert not SnapshotStore(tmp_path).path().exists()

    def test_missing_api_key_fails_fast(self, server, session, fetcher, tmp_path):
        self.publish_cf(server, session)
        pack = resolve(fetcher)
        session.calls.clear()
        with pytest.raises(MissingCredential):
            LocalInstaller(pack, tmp_path, fetcher=fetcher).install()
        assert session.calls == []

    def test_curseforge_client(self, session):
        config = InstallerConfig(workers=2, show_progress=False, curseforge_api_key="secret")
        client = CurseClient(config, Fetcher(config, session=session))
        api = "https://api.curseforge.com/v1/mods/238222/files/4712871/download-url"
        session.add(api, json_data={"data": "https://edge.forgecdn.net/jei.jar"})
        assert client.resolve("238222:4712871") == "https://edge.forgecdn.net/jei.jar"
        assert session.calls == [(api, {"x-api-key": "secret"})]

    def test_curseforge_client_errors(self, session):
        config = InstallerConfig(workers=2, show_progress=False, curseforge_api_key="secret")
        client = CurseClient(config, Fetcher(config, session=session))
        with pytest.raises(ProviderLookupFailed):
            client.resolve("1:2")  # 404
        session.add("https://api.curseforge.com/v1/mods/1/files/3/download-url", json_data={"data": None})
        with pytest.raises(ProviderLookupFailed):
            client.resolve("1:3")


class TestPaths:

    def test_escaping_snapshot_entry_rejected(self, fetcher, tmp_path):
        evil = ModFile("../outside.jar", "x", "sha256", download=DirectURL("https://x"))
        SnapshotStore(tmp_path).save_installed([evil])
        inst = LocalInstaller(Pack("x"), tmp_path, fetcher=fetcher)
        with pytest.raises(InstallerError):
            inst.install()
