from __future__ import annotations

from typing import List, Optional

import httpx
import openai
import structlog
from openai import OpenAI

from studyai.config import InferenceSettings
from studyai.schemas import ModelDescriptor
from studyai.services.errors import EndpointUnavailable, ModelNotFound
from studyai.services.prompts import DEFAULT_MAX_TOKENS, DEFAULT_TOP_P

logger = structlog.get_logger()


def _build_client(settings: InferenceSettings, http_client: Optional[httpx.Client] = None) -> OpenAI:
    # One attempt per call; retrying is the caller's decision
    return OpenAI(
        base_url=settings.api_base,
        api_key=settings.api_key,
        max_retries=0,
        http_client=http_client,
    )


def _is_connection_refused(exc: BaseException) -> bool:
    cause = exc.__cause__
    return isinstance(cause, httpx.ConnectError) or isinstance(cause, ConnectionRefusedError)


class InferenceClient:
    """Thin client over an Ollama server's OpenAI-compatible completion API."""

    def __init__(self, settings: InferenceSettings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self._client = _build_client(settings, http_client)

    @property
    def model(self) -> str:
        return self.settings.model

    def generate(
        self,
        prompt: str,
        temperature: float = 0.7,
        top_p: float = DEFAULT_TOP_P,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> str:
        """Send one prompt, return the generated text.

        Raises EndpointUnavailable or ModelNotFound; never retries.
        """
        logger.info(
            "inference_request",
            model=self.model,
            base_url=self.settings.base_url,
            prompt_chars=len(prompt),
            temperature=temperature,
            max_tokens=max_tokens,
        )
        client = self._client.with_options(timeout=self.settings.generate_timeout)
        try:
            rsp = client.completions.create(
                model=self.model,
                prompt=prompt,
                stream=False,
                temperature=temperature,
                top_p=top_p,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as e:
            logger.error("inference_failed", model=self.model, reason="timeout", error=str(e))
            raise EndpointUnavailable(
                f"Request timed out after {self.settings.generate_timeout:.0f}s",
                reason=EndpointUnavailable.TIMEOUT,
            ) from e
        except openai.APIConnectionError as e:
            reason = (
                EndpointUnavailable.CONNECTION_REFUSED
                if _is_connection_refused(e)
                else EndpointUnavailable.UNAVAILABLE
            )
            logger.error("inference_failed", model=self.model, reason=reason, error=str(e))
            raise EndpointUnavailable(f"AI service unavailable: {e}", reason=reason) from e
        except openai.NotFoundError as e:
            logger.error("inference_failed", model=self.model, reason="model_not_found", error=str(e))
            raise ModelNotFound(self.model) from e
        except openai.APIError as e:
            logger.error("inference_failed", model=self.model, reason="unavailable", error=str(e))
            raise EndpointUnavailable(f"AI service unavailable: {e}") from e

        if not rsp.choices:
            logger.error("inference_failed", model=self.model, reason="empty_choices")
            raise EndpointUnavailable("AI service returned no completion")
        text = rsp.choices[0].text or ""
        logger.info("inference_completed", model=self.model, response_chars=len(text))
        return text

    def list_models(self, timeout: Optional[float] = None) -> List[ModelDescriptor]:
        # Catalog calls are always short; never fall back to the SDK default timeout
        client = self._client.with_options(timeout=timeout or self.settings.health_timeout)
        try:
            page = client.models.list()
        except openai.APIError as e:
            logger.warning("model_list_failed", base_url=self.settings.base_url, error=str(e))
            reason = (
                EndpointUnavailable.CONNECTION_REFUSED
                if _is_connection_refused(e)
                else EndpointUnavailable.UNAVAILABLE
            )
            raise EndpointUnavailable("Failed to fetch models", reason=reason) from e
        return [
            ModelDescriptor(
                name=m.id,
                owned_by=getattr(m, "owned_by", None),
                created=getattr(m, "created", None),
            )
            for m in page.data
        ]
