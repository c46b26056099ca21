"""Merging and presentation state for compliance issues."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable

from pydantic import ValidationError

from doccraft.core.schema import ComplianceIssue

logger = logging.getLogger(__name__)

SEVERITY_RANK: dict[str, int] = {"error": 0, "warning": 1, "suggestion": 2}

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def merge(
    rule_issues: Iterable[ComplianceIssue],
    advisory_issues: Iterable[ComplianceIssue],
) -> list[ComplianceIssue]:
    """Concatenate rule issues and advisory issues, keeping ids unique.

    Findings are never deduplicated by content; only identifiers are
    guaranteed unique. An advisory issue whose id is blank or already taken
    receives the next free ``ai-N`` id.
    """

    merged: list[ComplianceIssue] = []
    used: set[str] = set()
    for issue in rule_issues:
        merged.append(issue)
        used.add(issue.id)

    counter = 0
    for issue in advisory_issues:
        if not issue.id or issue.id in used:
            while f"ai-{counter}" in used:
                counter += 1
            issue = issue.model_copy(update={"id": f"ai-{counter}"})
        merged.append(issue)
        used.add(issue.id)
    return merged


def sort_by_severity(issues: Iterable[ComplianceIssue]) -> list[ComplianceIssue]:
    # sorted() is stable, equal severities keep their input order
    return sorted(issues, key=lambda issue: SEVERITY_RANK[issue.severity])


def _strip_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw).strip()


def parse_advisory_issues(raw: str | None) -> list[ComplianceIssue]:
    """Parse an advisory issue list, dropping anything that does not validate."""

    if not raw:
        return []
    try:
        data: Any = json.loads(_strip_fences(raw))
    except json.JSONDecodeError:
        logger.warning("advisory compliance response is not valid JSON; ignoring it")
        return []
    if isinstance(data, dict):
        data = data.get("issues", [])
    if not isinstance(data, list):
        return []

    issues: list[ComplianceIssue] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            continue
        payload = dict(item)
        # ids may arrive as numbers or null
        payload["id"] = str(payload.get("id") or f"ai-{index}")
        try:
            issues.append(ComplianceIssue(**payload))
        except ValidationError:
            logger.debug("dropping malformed advisory issue %r", item)
    return issues


class IssueBoard:
    """View state over a merged issue set.

    Dismissal and expansion only affect presentation; the underlying issues
    are never modified or removed.
    """

    def __init__(self, issues: Iterable[ComplianceIssue] = ()) -> None:
        self._issues: list[ComplianceIssue] = list(issues)
        self._ids: set[str] = {issue.id for issue in self._issues}
        self._dismissed: set[str] = set()
        self._expanded: set[str] = set()

    @classmethod
    def from_sources(
        cls,
        rule_issues: Iterable[ComplianceIssue],
        advisory_issues: Iterable[ComplianceIssue],
    ) -> "IssueBoard":
        return cls(merge(rule_issues, advisory_issues))

    @property
    def issues(self) -> list[ComplianceIssue]:
        return list(self._issues)

    def _require(self, issue_id: str) -> ComplianceIssue:
        for issue in self._issues:
            if issue.id == issue_id:
                return issue
        raise KeyError(issue_id)

    def visible(self) -> list[ComplianceIssue]:
        return sort_by_severity(issue for issue in self._issues if not self.is_dismissed(issue.id))

    def dismiss(self, issue_id: str) -> None:
        self._require(issue_id)
        self._dismissed.add(issue_id)

    def dismiss_all(self) -> None:
        self._dismissed.update(self._ids)

    def is_dismissed(self, issue_id: str) -> bool:
        return issue_id in self._dismissed

    def expand(self, issue_id: str) -> None:
        issue = self._require(issue_id)
        if issue.problematic_text:
            self._expanded.add(issue_id)

    def collapse(self, issue_id: str) -> None:
        self._require(issue_id)
        self._expanded.discard(issue_id)

    def is_expanded(self, issue_id: str) -> bool:
        return issue_id in self._expanded

    def counts(self) -> dict[str, int]:
        counts = {severity: 0 for severity in SEVERITY_RANK}
        for issue in self.visible():
            counts[issue.severity] += 1
        return counts

    def snapshot(self) -> dict[str, object]:
        return {
            "items": [
                {**issue.model_dump(), "expanded": issue.id in self._expanded}
                for issue in self.visible()
            ],
            "counts": self.counts(),
            "total": len(self._issues),
            "dismissed": len(self._dismissed),
        }
