from __future__ import annotations
import argparse
from urllib.parse import urlparse

from . import __version__
from .config import InstallerConfig
from .console import log
from .errors import ConfigError, InstallerError
from .fetch import Fetcher
from .hashing import parse_hash_spec
from .installer import LocalInstaller
from .repo import Repository
from .side import Side


def _pack_url(s: str) -> str:
    u = urlparse(s)
    if u.scheme not in ("http", "https") or not u.netloc:
        raise argparse.ArgumentTypeError("the install command requires the URL of 'pack.toml'")
    return s


def _hash_flag(s: str) -> tuple[str, str]:
    try:
        return parse_hash_spec(s)
    except (ValueError, ConfigError):
        raise argparse.ArgumentTypeError("invalid --hash, expected <format>:<hash> "
                                         "with format murmur2/md5/sha1/sha256/sha512") from None


def _game_side(s: str) -> Side:
    try:
        return Side.target(s)
    except ConfigError:
        raise argparse.ArgumentTypeError("must be 'client', 'server', or 'both'") from None


def _cmd_install(args: argparse.Namespace) -> int:
    config = InstallerConfig.from_env(
        workers=args.workers,
        show_progress=False if args.no_progress else None,
    )
    fetcher = Fetcher(config)
    hash_format, hash = args.hash
    try:
        repo = Repository(args.url, hash_format, hash, fetcher=fetcher)
        repo.load()
        pack = repo.to_pack()

        inst = LocalInstaller(pack, args.dir, args.game_side, config=config, fetcher=fetcher)
        print("Pack:", pack.name, pack.version or "")
        print("URL: ", args.url)
        print("Dir: ", inst.base_dir)

        updates = inst.install()
    finally:
        fetcher.close()

    print(updates)
    print("Done.")
    return 0


def _cmd_version(args: argparse.Namespace) -> int:
    print(__version__)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pack-installer",
        description="Install and update a pack from its pack.toml (for clients and servers)",
    )
    p.add_argument("--version", action="version", version=__version__)
    sub = p.add_subparsers(dest="cmd", required=True)

    i = sub.add_parser("install", aliases=["i"], help="Install or update a pack")
    i.add_argument("url", type=_pack_url, help="URL of pack.toml")
    i.add_argument("--hash", type=_hash_flag, default=("", ""),
                   help='Hash of pack.toml as "<format>:<hash>", e.g. "sha256:abc012..."')
    i.add_argument("-d", "--dir", default=".", help="Directory to install the pack to")
    i.add_argument("-g", "--game-side", type=_game_side, default=Side.BOTH,
                   help="Side to install files for: 'client', 'server', or 'both'")
    i.add_argument("--workers", type=int, help="Parallel workers (default: CPU count)")
    i.add_argument("--no-progress", action="store_true", help="Hide progress bars")
    i.set_defaults(func=_cmd_install)

    v = sub.add_parser("version", help="Print the version")
    v.set_defaults(func=_cmd_version)

    return p


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except InstallerError as e:
        log(f"error: {e}")
        return 1
    except KeyboardInterrupt:
        log("aborted")
        return 1
