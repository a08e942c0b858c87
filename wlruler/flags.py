"""Rule flag classification.

A rule may start with one of the ``ALL``, ``REG``, ``RZD``/``RZDB`` flags
followed by one of the accepted separators. Matching is case-insensitive and
driven by a fixed, ordered table of ``(flag, prefix)`` pairs.
"""

from typing import Dict, Tuple

from wlruler.constants import (
    CANONICAL_FLAG_SEPARATOR,
    FLAG_ALL_TOKENS,
    FLAG_REG_TOKENS,
    FLAG_RZDB_TOKENS,
    FLAG_SEPARATORS,
)

from .models import Flag, RuleRecord

CLASSIFICATION_ORDER: Tuple[Flag, ...] = (Flag.ALL, Flag.REG, Flag.RZDB)

_FLAG_TOKENS: Dict[Flag, Tuple[str, ...]] = {
    Flag.ALL: FLAG_ALL_TOKENS,
    Flag.REG: FLAG_REG_TOKENS,
    Flag.RZDB: FLAG_RZDB_TOKENS,
}

FLAG_PREFIXES: Tuple[Tuple[Flag, str], ...] = tuple(
    (flag, (token + separator).lower())
    for flag in CLASSIFICATION_ORDER
    for token in _FLAG_TOKENS[flag]
    for separator in FLAG_SEPARATORS
)


def _prefixes_of(flag: Flag) -> Tuple[str, ...]:
    return tuple(prefix for f, prefix in FLAG_PREFIXES if f is flag)


def _matched_prefix(flag: Flag, line: str) -> str:
    """Return the prefix of ``flag`` that starts the line, or ``""``."""
    lowered = line.lstrip().lower()
    for prefix in _prefixes_of(flag):
        if lowered.startswith(prefix):
            return prefix
    return ""


def has_flag(flag: Flag, line: str) -> bool:
    """Return True if the line starts with any ``<flag><separator>`` pair."""
    if flag is Flag.NONE:
        return False
    return bool(_matched_prefix(flag, line))


def cleanup_flags(flag: Flag, line: str) -> str:
    """Strip the flag and its separator from the line.

    Args:
        flag: The flag family to remove.
        line: The rule line.

    Returns:
        The rule body, trimmed. Lines without the flag are only trimmed.
    """
    line = line.strip()
    prefix = _matched_prefix(flag, line) if flag is not Flag.NONE else ""
    return line[len(prefix) :].strip()


def classify(line: str) -> RuleRecord:
    """Classify a normalized rule line.

    ``ALL`` is tried first, then ``REG``, then ``RZDB``; anything else is a
    plain rule.
    """
    for flag in CLASSIFICATION_ORDER:
        if has_flag(flag, line):
            return RuleRecord(raw=line, flag=flag, body=cleanup_flags(flag, line))
    return RuleRecord(raw=line, flag=Flag.NONE, body=line.strip())


def prefix_flag(flag: Flag, text: str) -> str:
    """Prefix a rule with the canonical form of a flag (e.g. ``ALL@``)."""
    if flag is Flag.NONE:
        return text
    return f"{flag.value}{CANONICAL_FLAG_SEPARATOR}{text}"
