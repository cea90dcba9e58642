"""Error taxonomy for configuration resolution and story discovery.

Fatal errors propagate unchanged to the caller. ``ConfigFileLoadError`` is the
only recoverable one: the resolver logs and continues unless strict mode is
requested.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple


class StoryshotError(Exception):
    """Base class for all storyshot errors."""


class ConfigFileLoadError(StoryshotError):
    """A project config file could not be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to load config file {path}: {reason}")
        self.path = path
        self.reason = reason


class InvalidLocaleError(StoryshotError):
    """The requested locale code is not among the configured locales."""

    def __init__(self, requested: Optional[str], available: Iterable[str]) -> None:
        self.requested = requested
        self.available: Tuple[str, ...] = tuple(available)
        listed = ", ".join(self.available) or "none configured"
        if requested is None:
            message = f"No locales to run. Available locales: {listed}"
        else:
            message = f"Invalid locale: {requested}. Available locales: {listed}"
        super().__init__(message)


class InvalidPortError(StoryshotError, ValueError):
    """Storybook port is not an integer in [1, 65535]."""

    def __init__(self, port: object) -> None:
        super().__init__(f"Invalid Storybook port: {port}")
        self.port = port


class InvalidThresholdError(StoryshotError, ValueError):
    """A position/size threshold is negative or not a number."""

    def __init__(self, name: str, value: object) -> None:
        super().__init__(f"Invalid {name} threshold: {value}")
        self.name = name
        self.value = value


class CatalogFetchError(StoryshotError):
    """The story catalog returned an error or could not be reached."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"Unable to load Storybook index from {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class CatalogTimeoutError(CatalogFetchError):
    """The story catalog did not answer within the configured timeout."""

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(url, f"timed out after {timeout:g}s")
        self.timeout = timeout
