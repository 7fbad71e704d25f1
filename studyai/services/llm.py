from __future__ import annotations

from typing import List

import structlog

from studyai.schemas import FlashcardRecord, QuizQuestionRecord
from studyai.services.errors import GenerationFailed, InvalidInput
from studyai.services.extraction import parse_flashcards, parse_quiz_questions
from studyai.services.inference import InferenceClient
from studyai.services.logging import log_performance
from studyai.services.monitoring import AI_GENERATION_REQUESTS
from studyai.services.prompts import TASK_PROFILES, GenerationTask, build_prompt

logger = structlog.get_logger()

MAX_FLASHCARDS = 20
MAX_QUIZ_QUESTIONS = 15


def _require_text(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} is required", field=field)
    return value


def _require_count(value: int, field: str, upper: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= upper:
        raise InvalidInput(f"{field} must be between 1 and {upper}", field=field)
    return value


def _complete(client: InferenceClient, task: GenerationTask, prompt: str) -> str:
    profile = TASK_PROFILES[task]
    try:
        raw = client.generate(
            prompt,
            temperature=profile.temperature,
            top_p=profile.top_p,
            max_tokens=profile.max_tokens,
        )
    except GenerationFailed as e:
        _failed(task, e)
        raise
    logger.debug("raw_model_output", task=task.value, preview=raw[:200])
    return raw


def _failed(task: GenerationTask, error: GenerationFailed) -> None:
    error.task = task.value
    AI_GENERATION_REQUESTS.labels(type=task.value, status="error").inc()
    logger.error("generation_failed", task=task.value, kind=error.kind, error=str(error))


def _succeeded(task: GenerationTask, **context) -> None:
    AI_GENERATION_REQUESTS.labels(type=task.value, status="success").inc()
    logger.info("generation_completed", task=task.value, **context)


def _plain_text(client: InferenceClient, task: GenerationTask, prompt: str) -> str:
    text = _complete(client, task, prompt)
    if not text.strip():
        error = GenerationFailed("model returned an empty response")
        _failed(task, error)
        raise error
    _succeeded(task, response_chars=len(text))
    return text


@log_performance("chat")
def chat(client: InferenceClient, source_text: str, question: str) -> str:
    _require_text(source_text, "source_text")
    _require_text(question, "question")
    prompt = build_prompt(GenerationTask.CHAT, source_text, question=question)
    return _plain_text(client, GenerationTask.CHAT, prompt)


@log_performance("generate_summary")
def generate_summary(client: InferenceClient, source_text: str) -> str:
    _require_text(source_text, "source_text")
    prompt = build_prompt(GenerationTask.SUMMARY, source_text)
    return _plain_text(client, GenerationTask.SUMMARY, prompt)


@log_performance("explain_concept")
def explain_concept(client: InferenceClient, source_text: str, concept: str) -> str:
    _require_text(source_text, "source_text")
    _require_text(concept, "concept")
    prompt = build_prompt(GenerationTask.EXPLANATION, source_text, concept=concept)
    return _plain_text(client, GenerationTask.EXPLANATION, prompt)


@log_performance("generate_flashcards")
def generate_flashcards(client: InferenceClient, source_text: str, count: int = 10) -> List[FlashcardRecord]:
    _require_text(source_text, "source_text")
    _require_count(count, "count", MAX_FLASHCARDS)
    task = GenerationTask.FLASHCARDS
    raw = _complete(client, task, build_prompt(task, source_text, count=count))
    try:
        cards = parse_flashcards(raw, count)
    except GenerationFailed as e:
        _failed(task, e)
        raise
    _succeeded(task, requested=count, returned=len(cards))
    return cards


@log_performance("generate_quiz")
def generate_quiz(client: InferenceClient, source_text: str, question_count: int = 5) -> List[QuizQuestionRecord]:
    _require_text(source_text, "source_text")
    _require_count(question_count, "question_count", MAX_QUIZ_QUESTIONS)
    task = GenerationTask.QUIZ
    raw = _complete(client, task, build_prompt(task, source_text, count=question_count))
    try:
        questions = parse_quiz_questions(raw, question_count)
    except GenerationFailed as e:
        _failed(task, e)
        raise
    _succeeded(task, requested=question_count, returned=len(questions))
    return questions
