from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from doccraft.core.schema import GlossaryData
from doccraft.core.terminology import (
    MSTP_BASELINE,
    compliance_issues,
    contains_term,
    effective_forbidden_terms,
    effective_preferred_terms,
    evaluate,
)


def test_baseline_is_loaded_from_yaml():
    assert "simply" in MSTP_BASELINE["forbidden_terms"]
    assert MSTP_BASELINE["preferred_terms"]["utilize"] == "use"
    assert MSTP_BASELINE["preferred_terms"]["note that"] == "**Note:**"


def test_clean_document_has_no_issues():
    assert evaluate("Open the portal and add a device.") == []


def test_preferred_term_reported_once_with_replacement():
    issues = evaluate("We utilize the tool. Then we utilize it again. UTILIZE everything.")

    assert len(issues) == 1
    issue = issues[0]
    assert issue.term == "utilize"
    assert issue.issue_type == "preferred"
    assert issue.suggestion == "use"
    assert issue.message == 'Replace "utilize" with "use".'


def test_matching_respects_word_boundaries():
    assert not contains_term("The capitalized heading", "utilize")
    assert not contains_term("We utilized the tool", "utilize")
    assert not contains_term("Review the logins table", "login")
    assert contains_term("Step one, LOGIN to the portal.", "login")
    assert evaluate("The capitalized heading") == []


def test_multi_word_terms_match():
    issues = evaluate("Restart the service in order to apply it, as mentioned earlier.")

    terms = [(issue.term, issue.issue_type) for issue in issues]
    assert terms == [("in order to", "preferred"), ("as mentioned", "forbidden")]


def test_preferred_pass_runs_before_forbidden_pass():
    issues = evaluate("Please utilize the portal. It is easy.")

    assert [issue.issue_type for issue in issues] == ["preferred", "forbidden", "forbidden"]
    assert [issue.term for issue in issues] == ["utilize", "please", "easy"]


def test_term_in_both_lists_is_reported_once_as_preferred():
    glossary = GlossaryData(forbidden_terms=["Login"], preferred_terms={})

    issues = evaluate("Use the login page.", glossary)

    assert len(issues) == 1
    assert issues[0].issue_type == "preferred"
    assert issues[0].suggestion == "log in"


def test_glossary_extends_and_overrides_baseline():
    glossary = GlossaryData(
        forbidden_terms=["whitelist", "please"],
        preferred_terms={"Login": "sign in", "e-mail": "email"},
    )

    forbidden = effective_forbidden_terms(glossary)
    assert forbidden.count("please") == 1
    assert "whitelist" in forbidden

    preferred = dict(effective_preferred_terms(glossary))
    assert preferred["Login"] == "sign in"
    assert "login" not in preferred
    assert preferred["e-mail"] == "email"

    issues = evaluate("Add the host to the whitelist, then login.", glossary)
    by_term = {issue.term: issue for issue in issues}
    assert by_term["Login"].suggestion == "sign in"
    assert by_term["whitelist"].issue_type == "forbidden"


def test_glossary_login_example():
    glossary = GlossaryData(preferred_terms={"login": "log in"})

    issues = evaluate("Step one, login to the portal.", glossary)

    assert len(issues) == 1
    assert issues[0].model_dump() == {
        "term": "login",
        "issue_type": "preferred",
        "message": 'Replace "login" with "log in".',
        "suggestion": "log in",
    }


def test_evaluate_is_deterministic():
    document = "Simply utilize the login page. Note that it is straightforward."
    assert evaluate(document) == evaluate(document)


def test_compliance_issue_mapping():
    issues = compliance_issues("Please utilize the portal.")

    assert [issue.id for issue in issues] == ["term-0", "term-1"]
    preferred, forbidden = issues
    assert preferred.category == "terminology"
    assert preferred.severity == "suggestion"
    assert preferred.rule == "MSTP: Use preferred terminology"
    assert preferred.suggestion == 'Replace "utilize" with "use".'
    assert forbidden.severity == "error"
    assert forbidden.rule == "MSTP: Avoid discouraged words"
    assert forbidden.problematic_text == "please"
    assert forbidden.suggestion == 'Remove or rephrase "please".'
