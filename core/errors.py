from __future__ import annotations

from pathlib import Path
from typing import Union


class InsightsError(Exception):
    """Base class for every error raised by the core package."""


class ResourceUnavailable(InsightsError):
    """A required input file cannot be located or read."""

    def __init__(self, path: Union[str, Path], reason: str = "") -> None:
        self.path = Path(path)
        self.reason = reason
        msg = f"Resource unavailable: {self.path.name}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class RowMalformed(InsightsError):
    """A data row cannot be turned into a record. Loaders drop the row."""

    def __init__(self, kind: str, reason: str) -> None:
        self.kind = kind
        self.reason = reason
        super().__init__(reason)


class NotFound(InsightsError, KeyError):
    """Lookup by a key that is absent from its index."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return f"{self.kind} not found: {self.key!r}"
