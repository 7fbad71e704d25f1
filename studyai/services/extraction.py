"""
Turn free-form model output into validated records.

The model is asked for a bare JSON array but is free to wrap it in prose or
markdown fences, so extraction looks for the widest ``[...]`` span and parses
only that. Flashcards are validated leniently, quiz questions strictly.
"""
from __future__ import annotations

import json
from typing import Any, List

from studyai.schemas import DEFAULT_EXPLANATION, FlashcardRecord, QuizQuestionRecord
from studyai.services.errors import ExtractionFailed


def extract_json_array(raw_text: str) -> List[Any]:
    text = raw_text or ""
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end == -1 or end < start:
        raise ExtractionFailed(ExtractionFailed.NO_ARRAY)
    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise ExtractionFailed(ExtractionFailed.MALFORMED, detail=str(e)) from e
    if not isinstance(data, list):
        raise ExtractionFailed(ExtractionFailed.NOT_ARRAY)
    return data


def _text_field(item: Any, key: str) -> str:
    if not isinstance(item, dict):
        return ""
    value = item.get(key)
    if value is None:
        return ""
    return str(value).strip()


def parse_flashcards(raw_text: str, count: int) -> List[FlashcardRecord]:
    # Partial records are kept; persistence decides whether empties are acceptable
    items = extract_json_array(raw_text)[:count]
    return [
        FlashcardRecord(question=_text_field(item, "question"), answer=_text_field(item, "answer"))
        for item in items
    ]


def _correct_index(value: Any):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    if not 0 <= value <= 3:
        return None
    return int(value)


def _validate_question(item: Any, index: int) -> QuizQuestionRecord:
    if not isinstance(item, dict):
        raise ExtractionFailed(ExtractionFailed.INVALID_ELEMENT, index=index, detail="not an object")

    question = item.get("question")
    if not isinstance(question, str) or not question.strip():
        raise ExtractionFailed(ExtractionFailed.INVALID_ELEMENT, index=index, detail="missing question")

    options = item.get("options")
    if not isinstance(options, list) or len(options) != 4:
        raise ExtractionFailed(
            ExtractionFailed.INVALID_ELEMENT, index=index, detail="options must have exactly 4 entries"
        )

    correct = _correct_index(item.get("correctAnswer"))
    if correct is None:
        raise ExtractionFailed(
            ExtractionFailed.INVALID_ELEMENT, index=index, detail="correctAnswer must be a number 0-3"
        )

    explanation = item.get("explanation")
    if not isinstance(explanation, str) or not explanation.strip():
        explanation = DEFAULT_EXPLANATION

    return QuizQuestionRecord(
        question=question.strip(),
        options=[str(o).strip() for o in options],
        correct_answer=correct,
        explanation=explanation.strip(),
    )


def parse_quiz_questions(raw_text: str, count: int) -> List[QuizQuestionRecord]:
    """All-or-nothing: one bad element fails the whole set."""
    items = extract_json_array(raw_text)[:count]
    return [_validate_question(item, idx) for idx, item in enumerate(items)]
