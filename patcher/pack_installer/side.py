# pack_installer/side.py
from __future__ import annotations
from enum import Enum

from .errors import ConfigError


class Side(str, Enum):
    CLIENT = "client"
    SERVER = "server"
    BOTH = "both"
    # files only; a target side is never unspecified
    UNSPECIFIED = ""

    @classmethod
    def parse(cls, value: str | None) -> "Side":
        """Side of a file as declared by a metafile; unknown values are rejected."""
        try:
            return cls(value or "")
        except ValueError:
            raise ConfigError(f"invalid side {value!r}") from None

    @classmethod
    def target(cls, value: str) -> "Side":
        """Side of an installation target: client, server or both."""
        side = cls.parse(value)
        if not side.is_valid():
            raise ConfigError("invalid game side, must be 'client', 'server', or 'both'")
        return side

    def is_valid(self) -> bool:
        return self in (Side.CLIENT, Side.SERVER, Side.BOTH)

    def should_install(self, file_side: "Side") -> bool:
        """Whether a file tagged file_side belongs on a target of this side."""
        if self is Side.BOTH:
            return True
        if self in (Side.CLIENT, Side.SERVER):
            return file_side in (self, Side.BOTH, Side.UNSPECIFIED)
        return False
