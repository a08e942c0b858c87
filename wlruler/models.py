"""Lightweight data models and exceptions for wlruler."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlparse


class Flag(Enum):
    """Kind of a whitelist rule, as announced by its leading flag."""

    NONE = "NONE"
    ALL = "ALL"
    REG = "REG"
    RZDB = "RZDB"


@dataclass(frozen=True)
class RuleRecord:
    """Classified rule, consumed while indexing.

    Attributes:
        raw: Normalized rule line, flag included.
        flag: The detected rule kind.
        body: The rule without its flag and separator.
    """

    raw: str
    flag: Flag
    body: str


@dataclass
class Source:
    """Rule or blocklist source reference.

    Attributes:
        raw: Original string (URL, local path, or file URI).
        resolved_path: Absolute filesystem path for local files, if resolved.
    """

    raw: str
    resolved_path: Optional[str] = None

    def is_url(self) -> bool:
        """Return True if this source is an HTTP(S) URL.

        file:// URIs are treated as local paths.
        """
        parsed = urlparse(self.raw)
        return parsed.scheme in {"http", "https"}

    def is_file_url(self) -> bool:
        """Return True if this source is a file:// URL."""
        parsed = urlparse(self.raw)
        return parsed.scheme == "file"


class WlrulerError(Exception):
    """Base class for wlruler errors."""


class NetLocationError(WlrulerError, ValueError):
    """Raised when no network location can be extracted from a string."""


class CatalogFetchError(WlrulerError):
    """Raised when the extension catalog cannot be populated."""


class InvalidRegexRuleError(WlrulerError, ValueError):
    """Raised when a REG rule does not compile."""


__all__ = [
    "CatalogFetchError",
    "Flag",
    "InvalidRegexRuleError",
    "NetLocationError",
    "RuleRecord",
    "Source",
    "WlrulerError",
]
