# pack_installer/config.py
from __future__ import annotations
import os
from dataclasses import dataclass, field

from . import __version__
from .errors import ConfigError
from .system import optimal_threads

USER_AGENT = f"pack-installer/{__version__} (python-requests)"

# Build-time default; CF_API_KEY in the environment wins.
CURSEFORGE_API_KEY = ""
CURSEFORGE_API_HOST = "https://api.curseforge.com"

DEFAULT_TIMEOUT = 60.0


@dataclass
class InstallerConfig:
    """Settings shared by the fetcher, the resolver and the installer.

    One instance is built by the CLI and passed down explicitly.
    """
    user_agent: str = USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    workers: int = field(default_factory=optimal_threads)
    curseforge_api_key: str = CURSEFORGE_API_KEY
    curseforge_api_host: str = CURSEFORGE_API_HOST
    show_progress: bool = True

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")

    @classmethod
    def from_env(cls, env: dict | None = None, **overrides) -> "InstallerConfig":
        env = os.environ if env is None else env
        kw: dict = {}
        key = env.get("CF_API_KEY")
        if key:
            kw["curseforge_api_key"] = key
        workers = env.get("PACK_INSTALLER_WORKERS")
        if workers:
            try:
                kw["workers"] = int(workers)
            except ValueError:
                raise ConfigError(f"PACK_INSTALLER_WORKERS is not a number: {workers!r}") from None
        # explicit overrides (CLI flags) beat the environment; None means unset
        kw.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kw)
