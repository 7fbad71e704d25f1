"""
Error taxonomy for the generation pipeline and quiz scoring.

Callers branch on the exception class (or its ``kind`` tag), never on the
message text. ``public_message`` and ``hint`` are the only parts that are
safe to show to end users; ``str(exc)`` carries the internal detail for logs.
"""
from __future__ import annotations

from typing import Optional


class StudyAIError(Exception):
    kind = "error"

    def __init__(self, detail: str, *, hint: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.hint = hint

    @property
    def public_message(self) -> str:
        return self.detail

    def to_dict(self) -> dict:
        data = {"message": self.public_message, "kind": self.kind}
        if self.hint:
            data["hint"] = self.hint
        return data


class GenerationFailed(StudyAIError):
    """A generation task could not produce a usable result."""

    kind = "generation_failed"

    # Human wording of each task's output, used in the generic message
    TASK_NOUNS = {
        "chat": "an answer",
        "summary": "summary",
        "explanation": "explanation",
        "flashcards": "flashcards",
        "quiz": "quiz",
    }

    def __init__(self, detail: str, *, task: Optional[str] = None, hint: Optional[str] = None):
        super().__init__(detail, hint=hint)
        self.task = task

    @property
    def public_message(self) -> str:
        noun = self.TASK_NOUNS.get(self.task or "", "a response")
        return f"Failed to generate {noun}. Please try again."


class EndpointUnavailable(GenerationFailed):
    kind = "endpoint_unavailable"

    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"

    def __init__(self, detail: str, *, reason: str = UNAVAILABLE, task: Optional[str] = None):
        if reason == self.CONNECTION_REFUSED:
            hint = "Ollama is not running. Start it with: ollama serve"
        elif reason == self.TIMEOUT:
            hint = "The AI service took too long to respond. Try again with a shorter document."
        else:
            hint = "The AI service is unavailable. Check that Ollama is running and reachable."
        super().__init__(detail, task=task, hint=hint)
        self.reason = reason


class ModelNotFound(GenerationFailed):
    kind = "model_not_found"

    def __init__(self, model: str, *, task: Optional[str] = None):
        super().__init__(
            f'Model "{model}" not found',
            task=task,
            hint=f"Pull it with: ollama pull {model}",
        )
        self.model = model


class ExtractionFailed(GenerationFailed):
    """Model output could not be turned into the required structured shape."""

    kind = "extraction_failed"

    NO_ARRAY = "no JSON array found"
    MALFORMED = "malformed JSON"
    NOT_ARRAY = "not an array"
    INVALID_ELEMENT = "invalid element"

    def __init__(
        self,
        reason: str,
        *,
        index: Optional[int] = None,
        detail: Optional[str] = None,
        task: Optional[str] = None,
    ):
        message = reason if index is None else f"{reason} at index {index}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, task=task)
        self.reason = reason
        self.index = index


class InvalidInput(StudyAIError):
    kind = "invalid_input"

    def __init__(self, detail: str, *, field: Optional[str] = None):
        super().__init__(detail)
        self.field = field


class AlreadyCompleted(StudyAIError):
    kind = "already_completed"

    def __init__(self, quiz_id: Optional[int] = None):
        super().__init__("Quiz already completed")
        self.quiz_id = quiz_id
