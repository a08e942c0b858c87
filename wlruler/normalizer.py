"""Normalization utilities for rules and subjects.

Maps raw text (a rule line, a subject line, or a URL) into the canonical
form shared by every index: comments removed, Unicode labels converted to
their IDNA ASCII representation, and URL hosts extracted. Every function
here is pure; encoding problems degrade to the original text.
"""

from typing import Tuple
from urllib.parse import urlsplit

from wlruler.constants import (
    COMMENT_CHAR,
    COMPLEMENT_PREFIX,
    HTTP_PREFIXES,
    RESERVED_HOSTS_RE,
    SPACE,
    TAB,
)

from .flags import FLAG_PREFIXES
from .models import NetLocationError


def is_url(text: str) -> bool:
    """Return True if the text starts with an HTTP(S) scheme."""
    return text.startswith(HTTP_PREFIXES)


def idna_encode(subject: str) -> str:
    """Convert a single token to its IDNA ASCII representation.

    Empty labels (``.example.org``) are kept as they are. Returns the token
    unchanged when any label cannot be encoded (oversized labels,
    prohibited code points).
    """
    try:
        return subject.encode("idna").decode("ascii")
    except UnicodeError:
        pass

    labels = []
    for label in subject.split("."):
        if not label:
            labels.append(label)
            continue
        try:
            labels.append(label.encode("idna").decode("ascii"))
        except UnicodeError:
            return subject
    return ".".join(labels)


def idna_encode_line(line: str) -> str:
    """Encode every subject of a hosts-like line, keeping its layout.

    Tokens are split on tabs when the line holds one, otherwise on spaces.
    Reserved local hostnames are left as-is, and the separators plus any
    trailing ``#`` comment are reassembled verbatim.

    Args:
        line: The line to encode.

    Returns:
        The encoded line, stripped of surrounding whitespace.
    """
    line = line.strip()

    if not line or line.startswith(COMMENT_CHAR) or RESERVED_HOSTS_RE.search(line):
        return line

    if TAB in line:
        separator = TAB
    elif SPACE in line:
        separator = SPACE
    else:
        return idna_encode(line)

    subjects, _, comment = line.partition(COMMENT_CHAR)

    encoded = []
    for subject in subjects.split(separator):
        if not subject or RESERVED_HOSTS_RE.search(subject):
            encoded.append(subject)
        else:
            encoded.append(idna_encode(subject))

    result = separator.join(encoded)
    if comment:
        return f"{result}{COMMENT_CHAR}{comment}"
    return result


def strip_inline_comment(line: str) -> str:
    """Remove everything from the first ``#`` onward and trim."""
    index = line.find(COMMENT_CHAR)
    if index < 0:
        return line.strip()
    return line[:index].strip()


def split_flag_prefix(line: str) -> Tuple[str, str]:
    """Split a leading ``<FLAG><SEP>`` prefix from the rest of a rule.

    The prefix is kept apart so that neither comment stripping (for the
    ``#`` separator) nor IDNA encoding ever touch it.
    """
    for _, prefix in FLAG_PREFIXES:
        if line[: len(prefix)].lower() == prefix:
            return line[: len(prefix)], line[len(prefix) :]
    return "", line


def extract_net_location(raw: str) -> str:
    """Extract the network location (host) from a URL-like string.

    Bare strings without a scheme (``example.com``) are parsed as a path and
    returned as-is, which is how plain hosts are treated as net locations.
    User-info and port are dropped, as is anything after the first ``/``.

    Args:
        raw: The URL or host string.

    Returns:
        The extracted host, possibly empty (e.g. for ``/some/path``).

    Raises:
        NetLocationError: If ``raw`` is empty or cannot be parsed.
    """
    if not raw:
        raise NetLocationError("URL cannot be empty")

    try:
        parsed = urlsplit(raw)
    except ValueError as e:
        raise NetLocationError(f"failed to parse URL: {e}") from e

    if parsed.netloc:
        result = parsed.netloc.rsplit("@", 1)[-1].split(":")[0]
    elif parsed.path and (not parsed.scheme or parsed.path.startswith("/")):
        result = parsed.path
    else:
        result = raw

    if "//" in result:
        result = result[result.index("//") + 2 :]

    if "/" in result:
        result = result[: result.index("/")]

    return result


def normalize_url(url: str) -> str:
    """IDNA-encode the host of a URL, leaving scheme, path and query intact.

    Returns the URL unchanged if no host can be extracted.
    """
    try:
        netloc = extract_net_location(url)
    except NetLocationError:
        return url

    if not netloc:
        return url

    return url.replace(netloc, idna_encode_line(netloc), 1)


def normalize_rule(rule: str) -> str:
    """Normalize a rule line for further processing.

    Args:
        rule: The raw rule line, optionally flagged (``ALL@``, ``REG ``...).

    Returns:
        The normalized rule, or an empty string for blank and comment lines.
    """
    rule = rule.strip()

    if not rule or rule.startswith(COMMENT_CHAR):
        return ""

    if is_url(rule):
        return normalize_url(rule)

    prefix, body = split_flag_prefix(rule)
    body = body.strip()

    if is_url(body):
        return prefix + normalize_url(body)

    return prefix + idna_encode_line(strip_inline_comment(body))


def normalize_subject(subject: str, complement_handling: bool = False) -> str:
    """Normalize a subject before it is looked up.

    Args:
        subject: The subject to normalize.
        complement_handling: Whether ``www.example.com`` and ``example.com``
            are considered the same subject.

    Returns:
        The normalized subject, or an empty string for blank and comment
        lines.
    """
    subject = subject.strip()

    if not subject or subject.startswith(COMMENT_CHAR):
        return ""

    if is_url(subject):
        return normalize_url(subject)

    normalized = idna_encode_line(strip_inline_comment(subject))

    if complement_handling and normalized.startswith(COMPLEMENT_PREFIX):
        normalized = normalized[len(COMPLEMENT_PREFIX) :]

    return normalized


def toggle_complement(subject: str) -> str:
    """Return the ``www.`` complement of a subject.

    ``example.com`` becomes ``www.example.com`` and vice versa.
    """
    if subject.startswith(COMPLEMENT_PREFIX):
        return subject[len(COMPLEMENT_PREFIX) :]
    return COMPLEMENT_PREFIX + subject
