"""Deterministic terminology checks against the MSTP baseline and a user glossary.

Two passes run over the document:

* preferred terms first, because they carry an actionable replacement;
* forbidden terms second, skipping any term already reported as preferred.

Each distinct term yields at most one issue no matter how often it occurs.
Terms are matched case-insensitively on word boundaries, so suffixed forms
such as ``logins`` do not match ``login``.
"""
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

import yaml

from doccraft.core.schema import ComplianceIssue, GlossaryData, TerminologyIssue

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

DEFAULT_FORBIDDEN: list[str] = [
    "please",
    "simply",
    "easy",
    "easily",
    "straightforward",
    "as mentioned",
    "as noted above",
    "it should be noted",
]

DEFAULT_PREFERRED: dict[str, str] = {
    "utilize": "use",
    "in order to": "to",
    "due to the fact that": "because",
    "note that": "**Note:**",
    "sign in": "log in",
    "login": "log in",
}


def _load_baseline() -> dict:
    path = CONFIG_DIR / "mstp_baseline.yaml"
    if not path.exists():
        return {"forbidden_terms": DEFAULT_FORBIDDEN, "preferred_terms": DEFAULT_PREFERRED}
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    return {
        "forbidden_terms": [str(term) for term in data.get("forbidden_terms") or DEFAULT_FORBIDDEN],
        "preferred_terms": {
            str(term): str(replacement)
            for term, replacement in (data.get("preferred_terms") or DEFAULT_PREFERRED).items()
        },
    }


MSTP_BASELINE = _load_baseline()


def _term_key(term: str) -> str:
    return term.casefold()


@lru_cache(maxsize=512)
def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)


def contains_term(text: str, term: str) -> bool:
    return _term_pattern(term).search(text) is not None


def effective_forbidden_terms(glossary: GlossaryData | None = None) -> list[str]:
    terms: list[str] = []
    seen: set[str] = set()
    extra = glossary.forbidden_terms if glossary else []
    for term in [*MSTP_BASELINE["forbidden_terms"], *extra]:
        term = term.strip()
        key = _term_key(term)
        if not term or key in seen:
            continue
        seen.add(key)
        terms.append(term)
    return terms


def effective_preferred_terms(glossary: GlossaryData | None = None) -> list[tuple[str, str]]:
    # keyed case-insensitively so a glossary "Login" replaces the baseline "login"
    merged: dict[str, tuple[str, str]] = {}
    for term, replacement in MSTP_BASELINE["preferred_terms"].items():
        merged[_term_key(term)] = (term, replacement)
    if glossary:
        for term, replacement in glossary.preferred_terms.items():
            term = term.strip()
            if term:
                merged[_term_key(term)] = (term, replacement)
    return list(merged.values())


def evaluate(document: str, glossary: GlossaryData | None = None) -> list[TerminologyIssue]:
    """Return terminology issues for ``document`` in a stable order."""

    issues: list[TerminologyIssue] = []
    claimed: set[str] = set()

    for term, replacement in effective_preferred_terms(glossary):
        if contains_term(document, term):
            claimed.add(_term_key(term))
            issues.append(
                TerminologyIssue(
                    term=term,
                    issue_type="preferred",
                    message=f'Replace "{term}" with "{replacement}".',
                    suggestion=replacement,
                )
            )

    for term in effective_forbidden_terms(glossary):
        key = _term_key(term)
        if key in claimed:
            continue
        if contains_term(document, term):
            claimed.add(key)
            issues.append(
                TerminologyIssue(
                    term=term,
                    issue_type="forbidden",
                    message=f'Avoid "{term}": the Microsoft Style Guide flags this word.',
                )
            )

    return issues


def to_compliance_issue(issue: TerminologyIssue, index: int) -> ComplianceIssue:
    forbidden = issue.issue_type == "forbidden"
    if issue.suggestion:
        suggestion = f'Replace "{issue.term}" with "{issue.suggestion}".'
    else:
        suggestion = f'Remove or rephrase "{issue.term}".'
    return ComplianceIssue(
        id=f"term-{index}",
        category="terminology",
        severity="error" if forbidden else "suggestion",
        rule="MSTP: Avoid discouraged words" if forbidden else "MSTP: Use preferred terminology",
        problematic_text=issue.term,
        suggestion=suggestion,
    )


def compliance_issues(document: str, glossary: GlossaryData | None = None) -> list[ComplianceIssue]:
    return [to_compliance_issue(issue, index) for index, issue in enumerate(evaluate(document, glossary))]
