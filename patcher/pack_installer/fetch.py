# pack_installer/fetch.py
from __future__ import annotations
import threading

import requests

from .config import InstallerConfig
from .errors import Cancelled, EmptyExpectedHash, FetchError, HashMismatch
from .hashing import digest_matches, new_hasher


class Fetcher:
    """Thin wrapper over one requests.Session.

    Cancellation is only checked before a request goes out; a request that
    has been issued runs to completion (or failure) so a verified download is
    never left half-done.
    """

    def __init__(self, config: InstallerConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": config.user_agent})

    def _get(self, url: str, headers: dict | None, cancel_event: threading.Event | None):
        if cancel_event is not None and cancel_event.is_set():
            raise Cancelled(f"cancelled before fetching {url}")
        try:
            r = self.session.get(url, headers=headers, timeout=self.config.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e
        return r

    def fetch_bytes(self, url: str, cancel_event: threading.Event | None = None) -> bytes:
        return self._get(url, None, cancel_event).content

    def fetch_valid_bytes(self, url: str, hash_format: str, hash: str,
                          cancel_event: threading.Event | None = None) -> bytes:
        if not hash:
            raise EmptyExpectedHash(hash_format)
        h = new_hasher(hash_format)
        data = self.fetch_bytes(url, cancel_event)
        h.update(data)
        actual = h.hexdigest()
        if not digest_matches(hash_format, actual, hash):
            raise HashMismatch(url, hash, actual)
        return data

    def fetch_json(self, url: str, headers: dict | None = None,
                   cancel_event: threading.Event | None = None):
        r = self._get(url, headers, cancel_event)
        try:
            return r.json()
        except ValueError as e:
            raise FetchError(url, f"invalid JSON: {e}") from e

    def close(self) -> None:
        self.session.close()
