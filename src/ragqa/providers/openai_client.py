"""
OpenAI provider client.

Thin wrapper around the OpenAI SDK for embeddings and chat completions.
SDK errors are normalized to ProviderError; retries are handled by the
pipeline's retry policy, so the SDK's own retries are disabled.
"""

import logging
from typing import Dict, List, Optional

import openai
from openai import OpenAI

from ..contracts.retrieval_contracts import ChatChoice, ChatCompletion
from ..core.exceptions import ConfigError, ProviderError
from ..core.types import ProviderConfig

logger = logging.getLogger(__name__)


class OpenAIClient:
    """
    Embedding and completion client for the OpenAI API.

    Example:
        >>> client = OpenAIClient(ProviderConfig(provider="openai", api_key="sk-..."))
        >>> vectors = client.embed(["Hello world"], model="text-embedding-ada-002")
    """

    def __init__(self, config: ProviderConfig):
        if not config.api_key:
            raise ConfigError("Missing OpenAI API key (set OPENAI_API_KEY)")

        self.config = config
        self.client = OpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_retries=0,
        )

    def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        """
        Generate embeddings for a list of texts.

        The API tags each vector with the index of its input; vectors are
        returned sorted by that index.

        Raises:
            ProviderError: If the request fails
        """
        logger.debug(f"Requesting {len(texts)} embeddings from {model}")
        try:
            response = self.client.embeddings.create(model=model, input=texts)
        except openai.OpenAIError as e:
            raise self._to_provider_error("embeddings", e) from e

        data = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in data]

    def chat(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.0,
    ) -> ChatCompletion:
        """
        Generate a chat completion.

        Raises:
            ProviderError: If the request fails
        """
        logger.debug(f"Requesting chat completion from {model}")
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
            )
        except openai.OpenAIError as e:
            raise self._to_provider_error("chat completion", e) from e

        choices = [
            ChatChoice(content=choice.message.content if choice.message else None)
            for choice in (response.choices or [])
        ]
        usage = getattr(response, "usage", None)

        return ChatCompletion(
            choices=choices,
            model=getattr(response, "model", model),
            prompt_tokens=getattr(usage, "prompt_tokens", None) if usage else None,
            completion_tokens=getattr(usage, "completion_tokens", None) if usage else None,
        )

    @staticmethod
    def _to_provider_error(operation: str, error: Exception) -> ProviderError:
        status_code = getattr(error, "status_code", None)
        logger.error(f"OpenAI {operation} request failed: {error}")
        return ProviderError(
            f"OpenAI {operation} request failed: {error}",
            provider="openai",
            status_code=status_code,
        )
