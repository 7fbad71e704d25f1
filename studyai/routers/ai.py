from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from studyai.db import get_session
from studyai.deps import get_inference_client, get_summary_flight
from studyai.middleware.rate_limit import ai_generation_limit
from studyai.models import Document
from studyai.schemas import ChatRequest, ConceptRequest, FlashcardRequest, HealthReport, QuizRequest
from studyai.services import llm
from studyai.services.errors import EndpointUnavailable
from studyai.services.inference import InferenceClient
from studyai.services.monitoring import check_health, list_models
from studyai.services.singleflight import SingleFlight


router = APIRouter(prefix="/api/ai", tags=["ai"])


def _load_document(session: Session, document_id: int) -> Document:
    document = session.get(Document, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    if not document.text or not document.text.strip():
        raise HTTPException(
            status_code=400,
            detail="Document text not available. The PDF might not have extractable text.",
        )
    return document


@router.get("/health", response_model=HealthReport)
def ai_health(client: InferenceClient = Depends(get_inference_client)):
    return check_health(client)


@router.get("/models")
def ai_models(client: InferenceClient = Depends(get_inference_client)):
    try:
        models = list_models(client)
    except EndpointUnavailable as e:
        # Listing is not a generation task
        return JSONResponse(
            status_code=503,
            content={"message": "Failed to fetch models", "kind": e.kind, "hint": e.hint},
        )
    return {"models": models}


@router.post("/chat/{document_id}")
@ai_generation_limit()
def chat(
    request: Request,
    document_id: int,
    body: ChatRequest,
    session: Session = Depends(get_session),
    client: InferenceClient = Depends(get_inference_client),
):
    document = _load_document(session, document_id)
    answer = llm.chat(client, document.text, body.question)
    return {"answer": answer, "question": body.question}


@router.post("/summary/{document_id}")
@ai_generation_limit()
def summary(
    request: Request,
    document_id: int,
    session: Session = Depends(get_session),
    client: InferenceClient = Depends(get_inference_client),
    flight: SingleFlight = Depends(get_summary_flight),
):
    document = _load_document(session, document_id)
    if document.summary:
        return {"summary": document.summary, "cached": True}

    def generate_and_store() -> str:
        # Another request may have stored it since we looked
        session.refresh(document)
        if document.summary:
            return document.summary
        text = llm.generate_summary(client, document.text)
        document.summary = text
        session.add(document)
        session.commit()
        return text

    text = flight.do(f"summary:{document_id}", generate_and_store)
    return {"summary": text, "cached": False}


@router.post("/explain/{document_id}")
@ai_generation_limit()
def explain(
    request: Request,
    document_id: int,
    body: ConceptRequest,
    session: Session = Depends(get_session),
    client: InferenceClient = Depends(get_inference_client),
):
    document = _load_document(session, document_id)
    explanation = llm.explain_concept(client, document.text, body.concept)
    return {"explanation": explanation, "concept": body.concept}


@router.post("/flashcards/{document_id}")
@ai_generation_limit()
def flashcards(
    request: Request,
    document_id: int,
    body: FlashcardRequest = FlashcardRequest(),
    session: Session = Depends(get_session),
    client: InferenceClient = Depends(get_inference_client),
):
    document = _load_document(session, document_id)
    cards = llm.generate_flashcards(client, document.text, body.count)
    return {"flashcards": cards, "count": len(cards)}


@router.post("/quiz/{document_id}")
@ai_generation_limit()
def quiz(
    request: Request,
    document_id: int,
    body: QuizRequest = QuizRequest(),
    session: Session = Depends(get_session),
    client: InferenceClient = Depends(get_inference_client),
):
    document = _load_document(session, document_id)
    questions = llm.generate_quiz(client, document.text, body.question_count)
    return {"questions": questions, "count": len(questions)}
