from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from studyai.db import get_session
from studyai.models import Document, Quiz
from studyai.schemas import QuizIn, QuizOut, QuizSubmission
from studyai.services.scoring import record_submission, submit_quiz


router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


def _quiz_out(quiz: Quiz) -> QuizOut:
    return QuizOut(
        id=quiz.id,
        document_id=quiz.document_id,
        questions=quiz.questions,
        total_questions=quiz.total_questions,
        user_answers=quiz.user_answers or [],
        score=quiz.score,
        completed_at=quiz.completed_at,
        created_at=quiz.created_at,
    )


def _get_quiz(session: Session, quiz_id: int) -> Quiz:
    quiz = session.get(Quiz, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.post("/", response_model=QuizOut)
def save_quiz(body: QuizIn, session: Session = Depends(get_session)):
    if not session.get(Document, body.document_id):
        raise HTTPException(status_code=404, detail="Document not found")
    quiz = Quiz(
        document_id=body.document_id,
        questions=[q.model_dump(by_alias=True) for q in body.questions],
        total_questions=len(body.questions),
    )
    session.add(quiz)
    session.commit()
    session.refresh(quiz)
    return _quiz_out(quiz)


@router.get("/document/{document_id}", response_model=list[QuizOut])
def list_document_quizzes(document_id: int, session: Session = Depends(get_session)):
    quizzes = session.exec(
        select(Quiz).where(Quiz.document_id == document_id).order_by(Quiz.created_at.desc())
    ).all()
    return [_quiz_out(q) for q in quizzes]


@router.get("/{quiz_id}", response_model=QuizOut)
def get_quiz(quiz_id: int, session: Session = Depends(get_session)):
    return _quiz_out(_get_quiz(session, quiz_id))


@router.post("/{quiz_id}/submit")
def submit(quiz_id: int, body: QuizSubmission, session: Session = Depends(get_session)):
    quiz = _get_quiz(session, quiz_id)
    result = submit_quiz(quiz, body.answers)
    record_submission(session, quiz)
    session.refresh(quiz)
    return {
        "message": "Quiz submitted successfully",
        **result.model_dump(by_alias=True),
        "quiz": _quiz_out(quiz),
    }


@router.delete("/document/{document_id}")
def delete_document_quizzes(document_id: int, session: Session = Depends(get_session)):
    quizzes = session.exec(select(Quiz).where(Quiz.document_id == document_id)).all()
    for quiz in quizzes:
        session.delete(quiz)
    session.commit()
    return {"message": "All quizzes deleted successfully", "deleted": len(quizzes)}


@router.delete("/{quiz_id}")
def delete_quiz(quiz_id: int, session: Session = Depends(get_session)):
    quiz = _get_quiz(session, quiz_id)
    session.delete(quiz)
    session.commit()
    return {"message": "Quiz deleted successfully"}
