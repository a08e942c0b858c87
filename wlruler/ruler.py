"""Whitelist rule engine.

Orchestrates the normalizer, the flag classifier, the index store and the
extension catalog. Rules are added or removed one line at a time and
subjects are checked against the resulting indices::

    ruler = Ruler(handle_complement=True)
    ruler.add_rule("ALL .example.org")
    ruler.is_subject_whitelisted("www.foo.example.org")  # True
"""

import logging
from typing import Callable, List, Optional

from wlruler.constants import COMMENT_CHAR, COMPLEMENT_PREFIX

from .extensions import ExtensionCatalog
from .flags import classify, prefix_flag
from .models import Flag, InvalidRegexRuleError, NetLocationError, RuleRecord
from .normalizer import (
    extract_net_location,
    is_url,
    normalize_rule,
    normalize_subject,
    toggle_complement,
)
from .store import IndexStore

_LOGGER = logging.getLogger(__name__)


class Ruler:
    """Rule-based whitelist engine.

    Args:
        handle_complement: Whether ``www.example.com`` and ``example.com``
            are treated as the same subject.
        logger: Logger receiving the debug trace of every decision.
        catalog: Extension catalog used by RZDB rules. Defaults to one
            backed by the upstream root-zone and public-suffix feeds.
    """

    def __init__(
        self,
        handle_complement: bool = False,
        logger: Optional[logging.Logger] = None,
        catalog: Optional[ExtensionCatalog] = None,
    ):
        self.handle_complement = handle_complement
        self.logger = logger or _LOGGER
        self.catalog = catalog or ExtensionCatalog(logger=self.logger)
        self.store = IndexStore(logger=self.logger)

    def add_rule(self, rule: str) -> bool:
        """Index a rule.

        Args:
            rule: The rule line, optionally flagged.

        Returns:
            True if the rule was processed. False for blank or comment lines
            and for regex rules that do not compile.
        """
        record = self._record(rule, "Adding rule")
        if record is None:
            return False
        return self._apply(record, adding=True)

    def add_rule_with_flag(self, rule: str, flag: Flag) -> bool:
        """Index a rule after prefixing it with the given flag."""
        if not normalize_rule(rule):
            return False
        return self.add_rule(prefix_flag(flag, rule.strip()))

    def remove_rule(self, rule: str) -> bool:
        """Remove a previously added rule.

        Returns:
            True if removal logic ran, whether or not anything was indexed
            for that rule. False for blank or comment lines.
        """
        record = self._record(rule, "Removing rule")
        if record is None:
            return False
        return self._apply(record, adding=False)

    def remove_rule_with_flag(self, rule: str, flag: Flag) -> bool:
        """Remove a rule after prefixing it with the given flag."""
        if not normalize_rule(rule):
            return False
        return self.remove_rule(prefix_flag(flag, rule.strip()))

    def is_subject_whitelisted(self, subject: str) -> bool:
        """Return True if the subject matches any indexed rule.

        The subject's net location is checked first; for URL subjects the
        whole normalized URL is checked as well. Each candidate is checked
        against the strict, present, ends and regex indices in that order.
        """
        normalized = normalize_subject(subject, self.handle_complement)
        extra = {"subject": subject, "normalized_subject": normalized}
        self.logger.debug("Checking subject", extra=extra)

        if not normalized:
            self.logger.debug("Normalized subject is empty, skipping", extra=extra)
            return False

        try:
            netloc = extract_net_location(normalized)
        except NetLocationError as e:
            self.logger.debug(
                "Failed to extract net location", extra={**extra, "error": str(e)}
            )
            return False

        candidates = [netloc]
        if is_url(subject.strip()):
            candidates.append(normalized)

        for candidate in candidates:
            if self._matches(candidate, extra):
                return True

        self.logger.debug("Subject not matched any rule", extra=extra)
        return False

    def is_subject_blacklisted(self, subject: str) -> bool:
        """Return True if the subject is not whitelisted."""
        return not self.is_subject_whitelisted(subject)

    def get_whitelisted_from_line(self, line: str) -> List[str]:
        """Return the whitelisted subjects of a hosts or plain-text line."""
        return self._filter_line(line, self.is_subject_whitelisted)

    def get_blacklisted_from_line(self, line: str) -> List[str]:
        """Return the blacklisted subjects of a hosts or plain-text line."""
        return self._filter_line(line, self.is_subject_blacklisted)

    def _record(self, rule: str, action: str) -> Optional[RuleRecord]:
        """Normalize and classify a rule; None when there is nothing to do."""
        normalized = normalize_rule(rule)
        extra = {"rule": rule, "normalized_rule": normalized}
        self.logger.debug(action, extra=extra)

        if not normalized:
            self.logger.debug("Rule is empty or a comment, skipping", extra=extra)
            return None

        record = classify(normalized)
        self.logger.debug(
            "Rule classified",
            extra={**extra, "flag": record.flag.value, "body": record.body},
        )
        return record

    def _apply(self, record: RuleRecord, adding: bool) -> bool:
        if not record.body:
            self.logger.debug(
                "Flagged rule has no body, skipping", extra={"rule": record.raw}
            )
            return True
        if record.flag is Flag.ALL:
            self._apply_all(record.body, adding)
            return True
        if record.flag is Flag.REG:
            return self._apply_regex(record.body, adding)
        if record.flag is Flag.RZDB:
            self._apply_rzdb(record.body, adding)
            return True
        return self._apply_plain(record.body, adding)

    def _strict(self, entry: str, adding: bool) -> None:
        if adding:
            self.store.push_strict(entry)
        else:
            self.store.pull_strict(entry)

    def _apply_all(self, record: str, adding: bool) -> None:
        if record.startswith("."):
            if record.count(".") > 1:
                bare = record[1:]
                if self.handle_complement:
                    self._strict(toggle_complement(bare), adding)
                self._strict(bare, adding)
            suffix = record
        else:
            suffix = "." + record
            self._strict(record, adding)

        if adding:
            self.store.push_ends(suffix)
        else:
            self.store.pull_ends(suffix)

    def _apply_regex(self, record: str, adding: bool) -> bool:
        if not adding:
            self.store.pull_regex(record)
            return True
        try:
            self.store.push_regex(record)
        except InvalidRegexRuleError as e:
            self.logger.warning(
                "Skipping invalid regex rule", extra={"rule": record, "error": str(e)}
            )
            return False
        return True

    def _apply_rzdb(self, record: str, adding: bool) -> None:
        if self.handle_complement and record.startswith(COMPLEMENT_PREFIX):
            record = record[len(COMPLEMENT_PREFIX) :]

        extensions = self.catalog.get_extensions()
        self.logger.debug(
            "Expanding RZDB rule",
            extra={"rule": record, "extensions": len(extensions)},
        )

        for extension in extensions:
            self._strict(f"{record}.{extension}", adding)
            if self.handle_complement:
                self._strict(f"{COMPLEMENT_PREFIX}{record}.{extension}", adding)

    def _apply_plain(self, record: str, adding: bool) -> bool:
        if self.handle_complement:
            if is_url(record):
                try:
                    netloc = extract_net_location(record)
                except NetLocationError as e:
                    self.logger.debug(
                        "Failed to extract net location from rule",
                        extra={"rule": record, "error": str(e)},
                    )
                    return False
                complement = record.replace(netloc, toggle_complement(netloc), 1)
            else:
                complement = toggle_complement(record)
            self._strict(complement, adding)

        self._strict(record, adding)
        return True

    def _matches(self, candidate: str, extra: dict) -> bool:
        """Check every index for a single candidate."""
        extra = {**extra, "extracted_subject": candidate}

        if self.store.in_strict(candidate):
            self.logger.debug("Subject found in strict rules", extra=extra)
            return True

        if self.store.in_present(candidate):
            self.logger.debug("Subject found in present rules", extra=extra)
            return True

        matched = self.store.match_ends(candidate)
        if matched is not None:
            self.logger.debug(
                "Subject found in ends rules", extra={**extra, "rule": matched}
            )
            return True

        if self.store.match_regex(candidate):
            self.logger.debug("Subject found in regex rules", extra=extra)
            return True

        self.logger.debug("Subject not found in any index", extra=extra)
        return False

    @staticmethod
    def _filter_line(line: str, predicate: Callable[[str], bool]) -> List[str]:
        """Split a line into subjects and keep those matching ``predicate``.

        Blank and comment lines yield nothing; adjacent duplicates collapse.
        """
        normalized = line.strip()
        if not normalized or normalized.startswith(COMMENT_CHAR):
            return []

        normalized = normalized.split(COMMENT_CHAR, 1)[0]

        subjects: List[str] = []
        for subject in normalized.split():
            if not subjects or subjects[-1] != subject:
                subjects.append(subject)

        return [subject for subject in subjects if predicate(subject)]
