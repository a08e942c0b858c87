"""Concurrent fetcher for HTTP(S) and local rule sources.

Uses a thread pool and a custom User-Agent to retrieve text content from
URLs and local files, and exposes a JSON helper for the extension feeds.
"""

from concurrent import futures
from contextlib import closing
from json import loads
from socket import timeout
from typing import List, Tuple
from urllib import parse, request

from wlruler.constants import FETCH_TIMEOUT, FETCH_WORKERS, USER_AGENT

from .models import Source

ERROR_MARKER = "# ERROR fetching"


def fetch(sources: List[Source]) -> Tuple[List[Tuple[Source, List[str]]], List[Source]]:
    """Fetch all sources concurrently and return raw lines per source.

    Args:
        sources: List of Source objects to fetch

    Returns a tuple of:
    - List of ``(source, lines)`` tuples in the order of ``sources``.
    - List of failed sources that could not be fetched.
    """
    by_source: dict = {}
    failed_sources: List[Source] = []
    total_sources = len(sources)

    with futures.ThreadPoolExecutor(max_workers=max(1, FETCH_WORKERS)) as ex:
        fut_to_idx = {ex.submit(_fetch_one, s): i for i, s in enumerate(sources)}
        for fut in futures.as_completed(fut_to_idx):
            source, lines = fut.result()
            if len(lines) == 1 and lines[0].startswith(ERROR_MARKER):
                failed_sources.append(source)
            by_source[fut_to_idx[fut]] = (source, lines)

    results = [by_source[i] for i in range(total_sources)]
    return results, failed_sources


def _fetch_one(source: Source) -> Tuple[Source, List[str]]:
    """Fetch or read one source and return its split lines.

    Args:
        source: Source descriptor (URL, file:// URI, or local path).

    Returns:
        ``(source, lines)`` where ``lines`` are the text lines (or a single
        error marker line starting with ``# ERROR fetching``).
    """
    try:
        if source.is_url():
            text = http_fetch(source.raw)
        elif source.is_file_url():
            path = request.url2pathname(parse.urlparse(source.raw).path)
            text = _read_file(path)
        else:
            path = source.resolved_path or source.raw
            text = _read_file(path)
        lines = text.splitlines()
        return source, lines
    except (
        timeout,
        OSError,
        ValueError,
    ) as e:
        return source, [f"{ERROR_MARKER} {source.raw}: {e}"]


def _read_file(path: str) -> str:
    """Read a text file as UTF-8, replacing invalid sequences."""
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def http_fetch(url: str) -> str:
    """Fetch text content from an HTTP(S) URL.

    Uses a 30s request timeout. Propagates network-related errors.
    """
    req = request.Request(url, headers={"User-Agent": USER_AGENT})
    with closing(request.urlopen(req, timeout=FETCH_TIMEOUT)) as resp:
        charset = resp.headers.get_content_charset() or "utf-8"
        return resp.read().decode(charset, errors="replace")


def fetch_json(url: str) -> object:
    """Fetch and decode a JSON document from an HTTP(S) URL."""
    return loads(http_fetch(url))
