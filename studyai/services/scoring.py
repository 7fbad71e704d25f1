"""
One-shot quiz scoring.

A quiz is scored exactly once. The result is computed in full before the
attempt is touched, then answers, score and completion time are written
together, so callers never see a half-completed quiz.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

import structlog

from studyai.models import Quiz
from studyai.schemas import QuizQuestionRecord, QuizScore
from studyai.services.errors import AlreadyCompleted
from studyai.services.monitoring import QUIZ_SUBMISSIONS

logger = structlog.get_logger()


def _is_answer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def score_answers(questions: Sequence[QuizQuestionRecord], answers: Sequence[Optional[int]]) -> int:
    """Count exact index matches; missing or non-integer answers never match."""
    correct = 0
    for i, question in enumerate(questions):
        if i >= len(answers):
            break
        answer = answers[i]
        if _is_answer(answer) and answer == question.correct_answer:
            correct += 1
    return correct


def percentage(correct: int, total: int) -> int:
    # round half up, in integers: floor(100 * correct / total + 1/2)
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def submit_quiz(quiz, answers: Sequence[Optional[int]], now: Optional[datetime] = None) -> QuizScore:
    if quiz.completed_at is not None:
        QUIZ_SUBMISSIONS.labels(status="rejected").inc()
        logger.warning("quiz_already_completed", quiz_id=getattr(quiz, "id", None))
        raise AlreadyCompleted(getattr(quiz, "id", None))

    questions = [QuizQuestionRecord.model_validate(q) for q in quiz.questions]
    total = quiz.total_questions or len(questions)
    correct = score_answers(questions, answers)
    result = QuizScore(score=percentage(correct, total), correct_count=correct, total_questions=total)

    quiz.user_answers = list(answers)
    quiz.score = result.score
    quiz.completed_at = now or datetime.utcnow()

    QUIZ_SUBMISSIONS.labels(status="completed").inc()
    logger.info(
        "quiz_submitted",
        quiz_id=getattr(quiz, "id", None),
        score=result.score,
        correct_count=correct,
        total_questions=total,
    )
    return result


def record_submission(session, quiz) -> None:
    """Write a scored attempt, but only over a quiz that is still open in storage.

    The write is conditional on ``completed_at IS NULL``, so of two submits that
    both read an open quiz only the first one lands. The loser's session is
    rolled back and it gets AlreadyCompleted.
    """
    table = Quiz.__table__
    claimed = session.connection().execute(
        table.update()
        .where(table.c.id == quiz.id, table.c.completed_at.is_(None))
        .values(user_answers=quiz.user_answers, score=quiz.score, completed_at=quiz.completed_at)
    )
    if claimed.rowcount != 1:
        session.rollback()
        QUIZ_SUBMISSIONS.labels(status="rejected").inc()
        logger.warning("quiz_already_completed", quiz_id=quiz.id, concurrent=True)
        raise AlreadyCompleted(quiz.id)
    # The row already holds these values; drop the pending ORM copy of them
    session.expire(quiz)
    session.commit()
