# pack_installer/hashing.py
from __future__ import annotations
import hashlib
import struct
from pathlib import Path

from .errors import EmptyExpectedHash, UnsupportedAlgorithm

# Supported hash formats, most preferred first.
PREFERRED_HASHES: tuple[str, ...] = (
    "murmur2",
    "md5",
    "sha1",
    "sha256",
    "sha512",
)

CHUNK_SIZE = 1024 * 1024

_M = 0x5BD1E995
_MASK = 0xFFFFFFFF
# bytes the CurseForge fingerprint strips before hashing
_CF_WHITESPACE = b"\t\n\r "


def murmur2(data: bytes, seed: int = 0) -> int:
    """32-bit MurmurHash2 of data."""
    length = len(data)
    h = (seed ^ length) & _MASK
    n4 = length - (length % 4)
    for (k,) in struct.iter_unpack("<I", data[:n4]):
        k = (k * _M) & _MASK
        k ^= k >> 24
        k = (k * _M) & _MASK
        h = (h * _M) & _MASK
        h ^= k

    tail = data[n4:]
    if len(tail) == 3:
        h ^= tail[2] << 16
    if len(tail) >= 2:
        h ^= tail[1] << 8
    if len(tail) >= 1:
        h ^= tail[0]
        h = (h * _M) & _MASK

    h ^= h >> 13
    h = (h * _M) & _MASK
    h ^= h >> 15
    return h


class Murmur2CF:
    """CurseForge fingerprint: murmur2, seed 1, whitespace stripped.

    Needs the whole input, so update() only buffers.
    """
    name = "murmur2"

    def __init__(self) -> None:
        self._buf = bytearray()

    def update(self, data: bytes) -> None:
        self._buf += bytes(data).translate(None, _CF_WHITESPACE)

    def intdigest(self) -> int:
        return murmur2(bytes(self._buf), seed=1)

    def hexdigest(self) -> str:
        return f"{self.intdigest():08x}"


def new_hasher(algorithm: str):
    """Return a fresh hasher (update/hexdigest) for a registered format."""
    if algorithm not in PREFERRED_HASHES:
        raise UnsupportedAlgorithm(algorithm)
    if algorithm == "murmur2":
        return Murmur2CF()
    return hashlib.new(algorithm)


def digest_matches(algorithm: str, actual_hex: str, expected: str) -> bool:
    expected = expected.strip()
    if expected.lower() == actual_hex.lower():
        return True
    # pack indexes usually store murmur2 fingerprints in decimal
    if algorithm == "murmur2" and expected.isdigit():
        return int(expected) == int(actual_hex, 16)
    return False


def hash_bytes(data: bytes, algorithm: str) -> str:
    h = new_hasher(algorithm)
    h.update(data)
    return h.hexdigest()


def verify(data: bytes, algorithm: str, expected: str) -> bool:
    """True when data hashes to expected (case-insensitive hex)."""
    if not expected:
        raise EmptyExpectedHash(algorithm)
    return digest_matches(algorithm, hash_bytes(data, algorithm), expected)


def hash_file(p: Path, algorithm: str) -> str:
    h = new_hasher(algorithm)
    with Path(p).open("rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_file(p: Path, algorithm: str, expected: str) -> bool:
    if not expected:
        raise EmptyExpectedHash(algorithm)
    return digest_matches(algorithm, hash_file(p, algorithm), expected)


def parse_hash_spec(s: str) -> tuple[str, str]:
    """Split a "<format>:<hex>" string; empty input means "no hash"."""
    if not s:
        return "", ""
    fmt, sep, value = s.partition(":")
    if not sep or not fmt or not value:
        raise ValueError(f"invalid hash {s!r}, expected <format>:<hash>")
    if fmt not in PREFERRED_HASHES:
        raise UnsupportedAlgorithm(fmt)
    return fmt, value
