"""Install and update file packs described by a hash-chained TOML manifest."""

__version__ = "0.3.0"
