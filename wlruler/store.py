"""Lookup structures backing the whitelist rules.

The store keeps four coexisting indices:

- ``strict``: exact strings, bucketed by their first four characters.
- ``present``: same layout as ``strict``; checked on lookup but not fed by any
  rule kind yet.
- ``ends``: suffix patterns, bucketed by their last three characters.
- ``regex``: an ordered list of clauses compiled into one alternation.

The store is owned by a single :class:`wlruler.ruler.Ruler` and is not
thread-safe.
"""

import logging
import re
from typing import Dict, List, Optional, Pattern

from wlruler.constants import ENDS_KEY_LENGTH, INLINE_FLAGS_RE, STRICT_KEY_LENGTH

from .models import InvalidRegexRuleError

_LOGGER = logging.getLogger(__name__)


def strict_search_key(subject: str) -> str:
    """Return the bucket key of an exact entry (its first four characters)."""
    if len(subject) < STRICT_KEY_LENGTH:
        return subject
    return subject[:STRICT_KEY_LENGTH]


def ends_search_key(subject: str) -> str:
    """Return the bucket key of a suffix entry (its last three characters)."""
    if len(subject) < ENDS_KEY_LENGTH:
        return subject
    return subject[-ENDS_KEY_LENGTH:]


def _push(index: Dict[str, List[str]], key: str, entry: str) -> None:
    index.setdefault(key, []).append(entry)


def _pull(index: Dict[str, List[str]], key: str, entry: str) -> bool:
    """Remove the first occurrence of ``entry`` from a bucket."""
    bucket = index.get(key)
    if not bucket or entry not in bucket:
        return False
    bucket.remove(entry)
    if not bucket:
        del index[key]
    return True


def _scoped(clause: str) -> str:
    """Turn leading inline flags (``(?i)^ads``) into a scoped group."""
    match = INLINE_FLAGS_RE.match(clause)
    if not match:
        return clause
    return f"(?{match.group(1)}:{clause[match.end() :]})"


def _alternation(clauses: List[str]) -> str:
    """Join regex clauses into one alternation, each in its own group."""
    return "|".join(f"(?:{_scoped(clause)})" for clause in clauses)


class IndexStore:
    """Strict, present, suffix and regex indices of a ruler."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or _LOGGER
        self.strict: Dict[str, List[str]] = {}
        self.present: Dict[str, List[str]] = {}
        self.ends: Dict[str, List[str]] = {}
        self.regex_clauses: List[str] = []
        self.compiled_regex: Optional[Pattern[str]] = None

    def _trace(self, message: str, entry: str, key: str) -> None:
        self.logger.debug(message, extra={"rule": entry, "search_key": key})

    def push_strict(self, entry: str) -> None:
        """Index an exact entry. Duplicates are kept."""
        key = strict_search_key(entry)
        _push(self.strict, key, entry)
        self._trace("Pushed strict rule", entry, key)

    def pull_strict(self, entry: str) -> bool:
        """Remove the first matching exact entry; no-op when absent."""
        key = strict_search_key(entry)
        pulled = _pull(self.strict, key, entry)
        if pulled:
            self._trace("Pulled strict rule", entry, key)
        return pulled

    def push_present(self, entry: str) -> None:
        """Index an entry in the present index."""
        key = strict_search_key(entry)
        _push(self.present, key, entry)
        self._trace("Pushed present rule", entry, key)

    def pull_present(self, entry: str) -> bool:
        """Remove the first matching present entry; no-op when absent."""
        key = strict_search_key(entry)
        pulled = _pull(self.present, key, entry)
        if pulled:
            self._trace("Pulled present rule", entry, key)
        return pulled

    def push_ends(self, entry: str) -> None:
        """Index a suffix entry (normally starting with ``.``)."""
        key = ends_search_key(entry)
        _push(self.ends, key, entry)
        self._trace("Pushed ends rule", entry, key)

    def pull_ends(self, entry: str) -> bool:
        """Remove the first matching suffix entry; no-op when absent."""
        key = ends_search_key(entry)
        pulled = _pull(self.ends, key, entry)
        if pulled:
            self._trace("Pulled ends rule", entry, key)
        return pulled

    def push_regex(self, clause: str) -> None:
        """Append a clause to the shared alternation and recompile it.

        Raises:
            InvalidRegexRuleError: If the clause does not compile. The store
                is left untouched.
        """
        clauses = self.regex_clauses + [clause]
        try:
            compiled = re.compile(_alternation(clauses))
        except re.error as e:
            raise InvalidRegexRuleError(f"invalid regex rule {clause!r}: {e}") from e

        self.regex_clauses = clauses
        self.compiled_regex = compiled
        self.logger.debug(
            "Pushed regex rule",
            extra={"rule": clause, "regexp": self.regex_pattern},
        )

    def pull_regex(self, clause: str) -> bool:
        """Remove the first occurrence of a clause and recompile."""
        if clause not in self.regex_clauses:
            return False
        self.regex_clauses.remove(clause)
        self._rebuild_regex()
        self.logger.debug(
            "Pulled regex rule",
            extra={"rule": clause, "regexp": self.regex_pattern},
        )
        return True

    @property
    def regex_pattern(self) -> str:
        """Return the alternation built from the current clauses."""
        return _alternation(self.regex_clauses)

    def _rebuild_regex(self) -> None:
        if not self.regex_clauses:
            self.compiled_regex = None
            return
        self.compiled_regex = re.compile(self.regex_pattern)

    def in_strict(self, subject: str) -> bool:
        """Return True if the subject is an exact entry."""
        return subject in self.strict.get(strict_search_key(subject), ())

    def in_present(self, subject: str) -> bool:
        """Return True if the subject is a present entry."""
        return subject in self.present.get(strict_search_key(subject), ())

    def match_ends(self, subject: str) -> Optional[str]:
        """Return the first suffix entry the subject ends with, if any."""
        for entry in self.ends.get(ends_search_key(subject), ()):
            if subject.endswith(entry):
                return entry
        return None

    def match_regex(self, subject: str) -> bool:
        """Return True if any regex clause matches somewhere in the subject."""
        return bool(self.compiled_regex and self.compiled_regex.search(subject))
