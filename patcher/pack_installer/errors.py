# pack_installer/errors.py
from __future__ import annotations


class InstallerError(Exception):
    """Base class for every error raised by the installer."""


class ConfigError(InstallerError):
    pass


class MissingCredential(ConfigError):
    """Raised before any provider call when no API key is configured."""


class UnsupportedAlgorithm(ConfigError):
    def __init__(self, algorithm: str):
        super().__init__(f"unsupported hash format {algorithm!r}")
        self.algorithm = algorithm


class EmptyExpectedHash(ConfigError):
    def __init__(self, algorithm: str):
        super().__init__(f"expected hash is empty (format={algorithm})")
        self.algorithm = algorithm


class MalformedManifest(InstallerError):
    pass


class FetchError(InstallerError):
    def __init__(self, url: str, reason: str):
        super().__init__(f"fetch {url}: {reason}")
        self.url = url


class HashMismatch(InstallerError):
    def __init__(self, url: str, expected: str = "", actual: str = ""):
        msg = f"download hash mismatched: {url}"
        if expected:
            msg += f" (expected {expected}, got {actual})"
        super().__init__(msg)
        self.url = url
        self.expected = expected
        self.actual = actual


class MetafileNotFound(InstallerError):
    def __init__(self, name: str):
        super().__init__(f"metafile not found: {name}")
        self.name = name


class InvalidProviderReference(InstallerError):
    pass


class ProviderLookupFailed(InstallerError):
    pass


class SnapshotError(InstallerError):
    pass


class Cancelled(InstallerError):
    """Raised by a task that noticed its phase was cancelled."""
