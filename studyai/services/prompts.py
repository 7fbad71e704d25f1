"""
Prompt templates for each generation task.

Everything here is pure: the same task, text and parameters always give the
same prompt. Source text longer than the task's budget is cut silently.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from studyai.services.errors import InvalidInput


TRUNCATION_MARKER = "..."
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TOP_P = 0.9


class GenerationTask(str, Enum):
    CHAT = "chat"
    SUMMARY = "summary"
    EXPLANATION = "explanation"
    FLASHCARDS = "flashcards"
    QUIZ = "quiz"


@dataclass(frozen=True)
class TaskProfile:
    temperature: float
    max_tokens: int
    truncation: int
    top_p: float = DEFAULT_TOP_P


TASK_PROFILES = {
    GenerationTask.CHAT: TaskProfile(temperature=0.7, max_tokens=DEFAULT_MAX_TOKENS, truncation=10_000),
    GenerationTask.SUMMARY: TaskProfile(temperature=0.5, max_tokens=500, truncation=15_000),
    GenerationTask.EXPLANATION: TaskProfile(temperature=0.6, max_tokens=DEFAULT_MAX_TOKENS, truncation=10_000),
    GenerationTask.FLASHCARDS: TaskProfile(temperature=0.7, max_tokens=3000, truncation=8_000),
    GenerationTask.QUIZ: TaskProfile(temperature=0.8, max_tokens=4000, truncation=8_000),
}


def truncate_text(text: str, max_length: int) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def _chat_prompt(document: str, question: str) -> str:
    return (
        "You are a helpful learning assistant. Based on the following document, "
        "answer the user's question accurately and concisely.\n\n"
        f"Document:\n{document}\n\n"
        f"Question: {question}\n\n"
        "Answer:"
    )


def _summary_prompt(document: str) -> str:
    return (
        "Provide a clear and concise summary of the following document in 200-300 words. "
        "Focus on the main ideas and key points.\n\n"
        f"Document:\n{document}\n\n"
        "Summary:"
    )


def _explanation_prompt(document: str, concept: str) -> str:
    return (
        "Based on the following document, provide a detailed and easy-to-understand "
        f'explanation of the concept: "{concept}"\n\n'
        f"Document:\n{document}\n\n"
        f'Explain the concept of "{concept}" in detail:'
    )


def _flashcards_prompt(document: str, count: int) -> str:
    return (
        f"Generate exactly {count} educational flashcards from the following document. "
        "Each flashcard should have a question and a detailed answer.\n\n"
        "Return ONLY a valid JSON array with no additional text, explanations, or markdown "
        "formatting. Format:\n"
        "[\n"
        '  {"question": "Question text here", "answer": "Answer text here"},\n'
        '  {"question": "Question text here", "answer": "Answer text here"}\n'
        "]\n\n"
        f"Document:\n{document}\n\n"
        "JSON array of flashcards:"
    )


def _quiz_prompt(document: str, count: int) -> str:
    return (
        f"Generate exactly {count} multiple-choice quiz questions from the following document.\n\n"
        "Return ONLY a valid JSON array with no additional text, explanations, or markdown "
        "formatting. Format:\n"
        "[\n"
        "  {\n"
        '    "question": "Question text",\n'
        '    "options": ["Option A", "Option B", "Option C", "Option D"],\n'
        '    "correctAnswer": 0,\n'
        '    "explanation": "Explanation of why this is correct"\n'
        "  }\n"
        "]\n\n"
        "Requirements:\n"
        "- Each question must have exactly 4 options\n"
        "- correctAnswer must be a number (0-3) indicating the index of the correct option\n"
        "- Include a brief explanation for each answer\n\n"
        f"Document:\n{document}\n\n"
        "JSON array of quiz questions:"
    )


def _require(params: dict, name: str):
    value = params.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInput(f"{name} is required", field=name)
    return value


def build_prompt(task: GenerationTask, source_text: str, **params) -> str:
    """Assemble the full prompt for ``task`` over a truncated view of the text."""
    try:
        task = GenerationTask(task)
    except ValueError:
        raise InvalidInput(f"Unknown generation task: {task!r}", field="task")
    document = truncate_text(source_text, TASK_PROFILES[task].truncation)

    if task is GenerationTask.CHAT:
        return _chat_prompt(document, _require(params, "question"))
    if task is GenerationTask.SUMMARY:
        return _summary_prompt(document)
    if task is GenerationTask.EXPLANATION:
        return _explanation_prompt(document, _require(params, "concept"))
    if task is GenerationTask.FLASHCARDS:
        return _flashcards_prompt(document, _require(params, "count"))
    return _quiz_prompt(document, _require(params, "count"))
