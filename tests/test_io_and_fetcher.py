"""Tests for wlruler.io and wlruler.fetcher modules."""

# pylint: disable=missing-function-docstring
from pathlib import Path

from wlruler import fetcher, io
from wlruler.fetcher import fetch
from wlruler.models import Source


def test_to_sources_resolves_local_paths(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    sources = io.to_sources(
        ["rules/whitelist.list", "https://example.com/list.txt", "file:///etc/hosts"]
    )

    assert [s.raw for s in sources] == [
        "rules/whitelist.list",
        "https://example.com/list.txt",
        "file:///etc/hosts",
    ]
    assert sources[0].resolved_path == str(tmp_path / "rules" / "whitelist.list")
    assert sources[1].resolved_path is None and sources[1].is_url()
    assert sources[2].resolved_path is None and sources[2].is_file_url()


def test_fetcher_reads_local_files_in_order(tmp_path: Path):
    first = tmp_path / "first.list"
    first.write_text("one\n# comment\ntwo\n", encoding="utf-8")
    second = tmp_path / "second.list"
    second.write_text("ALL .org\n", encoding="utf-8")
    sources = io.to_sources([str(first), str(second)])

    results, failed = fetch(sources)

    assert not failed
    assert [src.raw for src, _ in results] == [str(first), str(second)]
    assert results[0][1] == ["one", "# comment", "two"]
    assert results[1][1] == ["ALL .org"]


def test_fetcher_reports_missing_file(tmp_path: Path):
    missing = Source(raw=str(tmp_path / "missing.list"))

    results, failed = fetch([missing])

    assert failed == [missing]
    assert results[0][1][0].startswith(fetcher.ERROR_MARKER)


def test_fetcher_routes_urls_through_http(monkeypatch):
    monkeypatch.setattr(fetcher, "http_fetch", lambda url: "a.example\nb.example")

    results, failed = fetch([Source(raw="https://lists.example/wl.txt")])

    assert not failed
    assert results[0][1] == ["a.example", "b.example"]


def test_fetch_json_decodes_http_body(monkeypatch):
    monkeypatch.setattr(fetcher, "http_fetch", lambda url: '{"de": null}')

    assert fetcher.fetch_json("https://feeds.example/iana.json") == {"de": None}


def test_iter_lines_and_write_output(tmp_path: Path):
    src = tmp_path / "source.list"
    src.write_bytes(b"0.0.0.0 a.example\r\nb.example\n\n")
    out = tmp_path / "nested" / "out.list"

    lines = list(io.iter_lines(str(src)))
    written = io.write_output(str(out), (line for line in lines if line))

    assert lines == ["0.0.0.0 a.example", "b.example", ""]
    assert written == 2
    assert out.read_bytes() == b"0.0.0.0 a.example\nb.example\n"


def test_write_output_can_rewrite_its_own_input(tmp_path: Path):
    target = tmp_path / "hosts.list"
    target.write_text("a.example\nb.example\nc.example\n", encoding="utf-8")

    kept = (line for line in io.iter_lines(str(target)) if line != "b.example")
    written = io.write_output(str(target), kept)

    assert written == 2
    assert target.read_text(encoding="utf-8") == "a.example\nc.example\n"
    assert [p.name for p in tmp_path.iterdir()] == ["hosts.list"]
