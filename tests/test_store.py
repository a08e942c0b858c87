"""Tests for the index structures in wlruler.store."""

# pylint: disable=missing-function-docstring
import logging

from pytest import mark, raises

from wlruler.models import InvalidRegexRuleError
from wlruler.store import IndexStore, ends_search_key, strict_search_key


@mark.parametrize(
    "value,strict,ends",
    [
        ("", "", ""),
        ("ab", "ab", "ab"),
        ("abc", "abc", "abc"),
        ("example.com", "exam", "com"),
        (".org", ".org", "org"),
    ],
)
def test_search_keys(value, strict, ends):
    assert strict_search_key(value) == strict
    assert ends_search_key(value) == ends


def test_strict_duplicates_and_first_occurrence_removal():
    store = IndexStore()
    store.push_strict("example.com")
    store.push_strict("example.com")

    assert store.strict == {"exam": ["example.com", "example.com"]}
    assert store.pull_strict("example.com") is True
    assert store.in_strict("example.com")
    assert store.pull_strict("example.com") is True
    assert not store.in_strict("example.com")
    assert store.pull_strict("example.com") is False
    assert not store.strict


def test_strict_is_exact_within_bucket():
    store = IndexStore()
    store.push_strict("example.com")

    assert not store.in_strict("example.co")
    assert not store.in_strict("example.com.evil")


def test_ends_match_is_a_true_suffix_test():
    store = IndexStore()
    store.push_ends(".org")
    store.push_ends(".foo.saarlouis.de")

    assert store.match_ends("bar.example.org") == ".org"
    assert store.match_ends("bar.foo.saarlouis.de") == ".foo.saarlouis.de"
    assert store.match_ends("saarlouis.de") is None
    assert store.match_ends("example.com") is None
    assert store.pull_ends(".org") is True
    assert store.match_ends("bar.example.org") is None
    assert store.pull_ends(".org") is False


def test_present_index_is_checked_separately():
    store = IndexStore()

    assert not store.in_present("example.com")

    store.push_present("example.com")

    assert store.in_present("example.com")
    assert not store.in_strict("example.com")
    assert store.pull_present("example.com") is True
    assert not store.in_present("example.com")


def test_regex_clauses_are_removed_by_identity():
    store = IndexStore()
    store.push_regex("foo")
    store.push_regex("foobar")

    assert store.regex_pattern == "(?:foo)|(?:foobar)"
    assert store.match_regex("xfoox")

    assert store.pull_regex("foo") is True

    assert store.regex_clauses == ["foobar"]
    assert not store.match_regex("xfoox")
    assert store.match_regex("afoobarb")


def test_regex_matcher_discarded_when_empty():
    store = IndexStore()
    store.push_regex("^a.*")
    store.pull_regex("^a.*")

    assert store.compiled_regex is None
    assert not store.match_regex("abc")
    assert store.pull_regex("^a.*") is False


def test_invalid_regex_leaves_store_untouched():
    store = IndexStore()
    store.push_regex("^ok$")

    with raises(InvalidRegexRuleError):
        store.push_regex("(unbalanced")

    assert store.regex_clauses == ["^ok$"]
    assert store.match_regex("ok")


def test_leading_inline_flags_are_scoped_per_clause():
    store = IndexStore()
    store.push_regex("^cdn")
    store.push_regex("(?i)^ads\\.")

    assert store.regex_pattern == "(?:^cdn)|(?:(?i:^ads\\.))"
    assert store.match_regex("ADS.example.com")
    assert not store.match_regex("CDN.example.com")

    assert store.pull_regex("(?i)^ads\\.") is True
    assert not store.match_regex("ADS.example.com")


def test_store_logs_to_the_given_logger(caplog):
    logger = logging.getLogger("tests.store")
    store = IndexStore(logger=logger)

    with caplog.at_level(logging.DEBUG, logger="tests.store"):
        store.push_strict("foo.example.com")
        store.push_ends(".example.org")

    assert [(r.name, r.getMessage()) for r in caplog.records] == [
        ("tests.store", "Pushed strict rule"),
        ("tests.store", "Pushed ends rule"),
    ]
