from __future__ import annotations

from typing import Any, Iterable

from doccraft.core.schema import GapQuestion


class GapQuestionSet:
    """Clarification questions for one workflow run.

    Answering and skipping are mutually exclusive: answering clears the skip
    flag, and skipping clears the answer.
    """

    def __init__(self, questions: Iterable[GapQuestion] = ()) -> None:
        self._questions: list[GapQuestion] = [question.model_copy() for question in questions]

    @classmethod
    def from_payload(cls, items: Iterable[GapQuestion | dict[str, Any]]) -> "GapQuestionSet":
        """Build a fresh set, resetting answers and repairing missing or duplicate ids."""

        questions: list[GapQuestion] = []
        seen: set[str] = set()
        for index, item in enumerate(items, start=1):
            data = item.model_dump() if isinstance(item, GapQuestion) else dict(item)
            question_id = str(data.get("id") or "").strip()
            if not question_id or question_id in seen:
                question_id = f"q{index}"
                while question_id in seen:
                    question_id = f"{question_id}_"
            seen.add(question_id)
            questions.append(
                GapQuestion(
                    id=question_id,
                    question=str(data.get("question") or ""),
                    category=data.get("category") or "missing",
                )
            )
        return cls(questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)

    def _index(self, question_id: str) -> int:
        for index, question in enumerate(self._questions):
            if question.id == question_id:
                return index
        raise KeyError(question_id)

    def get(self, question_id: str) -> GapQuestion:
        return self._questions[self._index(question_id)]

    def set_answer(self, question_id: str, text: str) -> GapQuestion:
        index = self._index(question_id)
        updated = self._questions[index].model_copy(update={"answer": text, "skipped": False})
        self._questions[index] = updated
        return updated

    def toggle_skip(self, question_id: str) -> GapQuestion:
        index = self._index(question_id)
        current = self._questions[index]
        # un-skipping leaves the answer empty; the previous answer is not restored
        updated = current.model_copy(update={"skipped": not current.skipped, "answer": ""})
        self._questions[index] = updated
        return updated

    def completion(self) -> tuple[int, int]:
        answered = sum(1 for question in self._questions if question.answer.strip() or question.skipped)
        return answered, len(self._questions)

    def answered(self) -> list[GapQuestion]:
        return [q for q in self._questions if not q.skipped and q.answer.strip()]

    def skipped(self) -> list[GapQuestion]:
        return [q for q in self._questions if q.skipped]

    def to_list(self) -> list[GapQuestion]:
        return [question.model_copy() for question in self._questions]

    def copy(self) -> "GapQuestionSet":
        return GapQuestionSet(self._questions)
