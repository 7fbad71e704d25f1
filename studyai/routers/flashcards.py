from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from studyai.db import get_session
from studyai.models import Document, Flashcard
from studyai.schemas import FlashcardSetIn, FlashcardUpdate


router = APIRouter(prefix="/api/flashcards", tags=["flashcards"])


def _card_out(card: Flashcard) -> dict:
    return {
        "id": card.id,
        "documentId": card.document_id,
        "question": card.question,
        "answer": card.answer,
        "isFavorite": card.is_favorite,
    }


def _get_card(session: Session, card_id: int) -> Flashcard:
    card = session.get(Flashcard, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return card


@router.post("/")
def save_flashcards(body: FlashcardSetIn, session: Session = Depends(get_session)):
    if not session.get(Document, body.document_id):
        raise HTTPException(status_code=404, detail="Document not found")
    created: List[Flashcard] = []
    for c in body.flashcards:
        card = Flashcard(document_id=body.document_id, question=c.question, answer=c.answer)
        session.add(card)
        created.append(card)
    session.commit()
    for card in created:
        session.refresh(card)
    return {"created": len(created), "flashcards": [_card_out(c) for c in created]}


@router.get("/document/{document_id}")
def list_flashcards(document_id: int, session: Session = Depends(get_session)):
    cards = session.exec(
        select(Flashcard).where(Flashcard.document_id == document_id).order_by(Flashcard.id)
    ).all()
    return [_card_out(c) for c in cards]


@router.get("/favorites")
def list_favorites(session: Session = Depends(get_session)):
    cards = session.exec(
        select(Flashcard).where(Flashcard.is_favorite == True).order_by(Flashcard.created_at.desc())  # noqa: E712
    ).all()
    return [_card_out(c) for c in cards]


@router.put("/{card_id}")
def update_flashcard(card_id: int, body: FlashcardUpdate, session: Session = Depends(get_session)):
    card = _get_card(session, card_id)
    if body.question is not None:
        card.question = body.question
    if body.answer is not None:
        card.answer = body.answer
    session.add(card)
    session.commit()
    session.refresh(card)
    return _card_out(card)


@router.put("/{card_id}/favorite")
def toggle_favorite(card_id: int, session: Session = Depends(get_session)):
    card = _get_card(session, card_id)
    card.is_favorite = not card.is_favorite
    session.add(card)
    session.commit()
    session.refresh(card)
    return _card_out(card)


@router.delete("/document/{document_id}")
def delete_document_flashcards(document_id: int, session: Session = Depends(get_session)):
    cards = session.exec(select(Flashcard).where(Flashcard.document_id == document_id)).all()
    for card in cards:
        session.delete(card)
    session.commit()
    return {"message": "All flashcards deleted", "deleted": len(cards)}


@router.delete("/{card_id}")
def delete_flashcard(card_id: int, session: Session = Depends(get_session)):
    card = _get_card(session, card_id)
    session.delete(card)
    session.commit()
    return {"message": "Flashcard deleted"}
