from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from doccraft.core.questions import GapQuestionSet
from doccraft.core.schema import GapQuestion


@pytest.fixture()
def questions() -> GapQuestionSet:
    return GapQuestionSet.from_payload(
        [
            {"id": "q1", "question": "Who is the reader?", "category": "missing"},
            {"id": "q2", "question": "Which version?", "category": "ambiguous", "answer": "stale"},
            {"id": "q3", "question": "Is a license required?", "category": "assumption"},
        ]
    )


def test_from_payload_resets_answers(questions):
    assert all(question.answer == "" and not question.skipped for question in questions)
    assert questions.completion() == (0, 3)


def test_from_payload_repairs_missing_and_duplicate_ids():
    repaired = GapQuestionSet.from_payload(
        [
            GapQuestion(id="q1", question="First"),
            {"id": "q1", "question": "Second"},
            {"question": "Third"},
        ]
    )

    ids = [question.id for question in repaired]
    assert ids[0] == "q1"
    assert len(set(ids)) == 3


def test_answer_then_skip_clears_answer(questions):
    questions.set_answer("q1", "Administrators")
    assert questions.get("q1").answer == "Administrators"
    assert questions.completion() == (1, 3)

    questions.toggle_skip("q1")
    question = questions.get("q1")
    assert question.skipped is True
    assert question.answer == ""
    assert questions.completion() == (1, 3)

    # un-skipping does not bring the old answer back
    questions.toggle_skip("q1")
    question = questions.get("q1")
    assert question.skipped is False
    assert question.answer == ""
    assert questions.completion() == (0, 3)


def test_answering_clears_skip(questions):
    questions.toggle_skip("q2")
    questions.set_answer("q2", "v2")

    question = questions.get("q2")
    assert question.skipped is False
    assert question.answer == "v2"


def test_whitespace_answer_is_not_complete(questions):
    questions.set_answer("q3", "   ")
    assert questions.completion() == (0, 3)


def test_answered_and_skipped_partitions(questions):
    questions.set_answer("q1", "Admins")
    questions.toggle_skip("q2")

    assert [q.id for q in questions.answered()] == ["q1"]
    assert [q.id for q in questions.skipped()] == ["q2"]


def test_unknown_question_raises(questions):
    with pytest.raises(KeyError):
        questions.set_answer("nope", "x")
    with pytest.raises(KeyError):
        questions.toggle_skip("nope")


def test_copy_is_independent(questions):
    clone = questions.copy()
    clone.set_answer("q1", "changed")

    assert questions.get("q1").answer == ""
