from __future__ import annotations

import os
from dataclasses import dataclass


DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2"

GENERATE_TIMEOUT_SECONDS = 120.0
HEALTH_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class InferenceSettings:
    """Where the inference endpoint lives and which model to ask for."""

    base_url: str = DEFAULT_OLLAMA_URL
    model: str = DEFAULT_MODEL
    api_key: str = "ollama"
    generate_timeout: float = GENERATE_TIMEOUT_SECONDS
    health_timeout: float = HEALTH_TIMEOUT_SECONDS

    @property
    def api_base(self) -> str:
        # Ollama serves the OpenAI-compatible API under /v1
        return self.base_url.rstrip("/") + "/v1"

    @classmethod
    def from_env(cls) -> "InferenceSettings":
        return cls(
            base_url=os.getenv("OLLAMA_URL", DEFAULT_OLLAMA_URL),
            model=os.getenv("LLAMA_MODEL", DEFAULT_MODEL),
            api_key=os.getenv("OLLAMA_API_KEY", "ollama"),
        )
