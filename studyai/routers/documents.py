import io

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pypdf import PdfReader
from pypdf.errors import PdfReadError
from sqlmodel import Session, select

from studyai.db import get_session
from studyai.models import Document, Flashcard, Quiz


router = APIRouter(prefix="/documents", tags=["documents"])

MAX_PDF_PAGES = 200


def _extract_text(filename: str, content: bytes) -> str:
    if not filename.lower().endswith(".pdf"):
        return content.decode("utf-8", errors="ignore")
    try:
        reader = PdfReader(io.BytesIO(content))
        return "\n".join((page.extract_text() or "") for page in reader.pages[:MAX_PDF_PAGES])
    except PdfReadError as e:
        raise HTTPException(status_code=400, detail=f"PDF parse error: {e}")


def _document_out(document: Document) -> dict:
    return {
        "id": document.id,
        "filename": document.filename,
        "chars": len(document.text or ""),
        "summary": document.summary,
        "createdAt": document.created_at.isoformat(),
    }


@router.post("/upload")
async def upload_document(file: UploadFile = File(...), session: Session = Depends(get_session)):
    content = await file.read()
    text = _extract_text(file.filename or "upload", content)
    document = Document(filename=file.filename or "upload", text=text)
    session.add(document)
    session.commit()
    session.refresh(document)
    return _document_out(document)


@router.get("/{document_id}")
def get_document(document_id: int, session: Session = Depends(get_session)):
    document = session.get(Document, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return _document_out(document)


@router.delete("/{document_id}")
def delete_document(document_id: int, session: Session = Depends(get_session)):
    document = session.get(Document, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    for card in session.exec(select(Flashcard).where(Flashcard.document_id == document_id)).all():
        session.delete(card)
    for quiz in session.exec(select(Quiz).where(Quiz.document_id == document_id)).all():
        session.delete(quiz)
    session.delete(document)
    session.commit()
    return {"message": "Document deleted"}
