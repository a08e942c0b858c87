"""I/O helpers for rule sources and cleaned output.

Resolves command-line source strings into ``Source`` objects, reads local
blocklists line by line, and writes text outputs with LF endings.
"""

from os import fdopen, makedirs, path, remove, replace
from shutil import copymode
from tempfile import mkstemp
from typing import Iterable, Iterator, List
from urllib import parse

from .models import Source


def to_sources(items: Iterable[str]) -> List[Source]:
    """Turn raw source strings into ``Source`` objects.

    Local paths are resolved to absolute paths; URLs and file URIs are kept
    as-is.

    Args:
        items: Paths, ``file://`` URIs or HTTP(S) URLs.

    Returns:
        A list of ``Source`` objects in the given order.
    """
    sources: List[Source] = []
    for raw in items:
        if _is_urlish(raw):
            sources.append(Source(raw=raw))
        else:
            sources.append(Source(raw=raw, resolved_path=path.abspath(raw)))
    return sources


def _is_urlish(s: str) -> bool:
    """Return True if the string looks like a URL we fetch via HTTP(S) or file URI.

    Notes:
        On Windows, absolute paths like "C:\\path\\to\\file.txt" may be parsed
        by ``urlparse`` as having a single-letter scheme ("c"). We avoid
        misclassifying such paths by only treating http/https/file schemes as URLish
        and by requiring the typical "://" delimiter for other cases.
    """
    parsed = parse.urlparse(s)
    if parsed.scheme in {"http", "https", "file"}:
        return True
    return "://" in s


def iter_lines(file: str) -> Iterator[str]:
    """Yield the lines of a UTF-8 text file without their line endings."""
    with open(file, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            yield line.rstrip("\r\n")


def write_output(file: str, lines: Iterable[str]) -> int:
    """Write lines to a file (LF endings), creating the parent directory.

    Lines go to a temporary file in the target directory which then replaces
    the target, so ``lines`` may still be reading from ``file``.

    Args:
        file: Output file path.
        lines: Lines to write.

    Returns:
        The number of lines written.
    """
    directory = path.dirname(path.abspath(file))
    makedirs(directory, exist_ok=True)
    fd, tmp_path = mkstemp(dir=directory, prefix=".wlruler-", suffix=".tmp")
    count = 0
    try:
        with fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            for line in lines:
                f.write(line + "\n")
                count += 1
        if path.exists(file):
            copymode(file, tmp_path)
        replace(tmp_path, file)
    except BaseException:
        remove(tmp_path)
        raise
    return count
