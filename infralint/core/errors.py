"""Exception taxonomy for the lint run."""

from __future__ import annotations

__all__ = ["FatalRunError", "ConfigError", "RegistryError", "LoadError"]


class FatalRunError(Exception):
    """The run cannot proceed at all (exit code 2)."""


class ConfigError(FatalRunError):
    """User or built-in configuration is unusable."""


class RegistryError(FatalRunError):
    """The rule registry was assembled from contradictory definitions."""


class LoadError(Exception):
    """A single input could not be read; recovered at the per-file boundary."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")
