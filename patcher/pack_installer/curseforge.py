# pack_installer/curseforge.py
from __future__ import annotations
import threading

from .config import InstallerConfig
from .errors import FetchError, MissingCredential, ProviderLookupFailed
from .fetch import Fetcher
from .pack import CurseforgeRef


class CurseClient:
    """Turns a CurseForge project/file id pair into a download URL."""

    name = "curseforge"

    def __init__(self, config: InstallerConfig, fetcher: Fetcher | None = None):
        self.api_key = config.curseforge_api_key
        self.api_host = config.curseforge_api_host.rstrip("/")
        self.fetcher = fetcher or Fetcher(config)

    def require_credentials(self) -> None:
        if not self.api_key:
            raise MissingCredential(
                "curseforge api key not set; export CF_API_KEY to install curseforge files")

    def _get_json(self, path: str, cancel_event: threading.Event | None = None):
        self.require_credentials()
        try:
            return self.fetcher.fetch_json(
                self.api_host + path, headers={"x-api-key": self.api_key},
                cancel_event=cancel_event)
        except FetchError as e:
            raise ProviderLookupFailed(f"curseforge api: {e}") from e

    def get_download_url(self, ref: CurseforgeRef,
                         cancel_event: threading.Event | None = None) -> str:
        path = f"/v1/mods/{ref.project_id}/files/{ref.file_id}/download-url"
        res = self._get_json(path, cancel_event)
        url = res.get("data") if isinstance(res, dict) else None
        if not url or not isinstance(url, str):
            raise ProviderLookupFailed(f"curseforge api: no download url for {ref}")
        return url

    def resolve(self, key: str, cancel_event: threading.Event | None = None) -> str:
        return self.get_download_url(CurseforgeRef.parse(key), cancel_event)
