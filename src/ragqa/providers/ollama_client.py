"""
Ollama provider client.

Thin HTTP client for Ollama's REST API. Embeddings use /api/embed; chat uses
either the native /api/chat endpoint or the OpenAI-compatible
/v1/chat/completions endpoint.
"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.request import Request, urlopen
from urllib.error import URLError, HTTPError

from ..contracts.retrieval_contracts import ChatChoice, ChatCompletion
from ..core.exceptions import ProviderError
from ..core.types import ProviderConfig


logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class OllamaClient:
    """
    HTTP client for the Ollama provider.

    Supports two chat API modes, chosen with ``extra_params["api_mode"]``:
    - "native": /api/chat (default)
    - "openai": /v1/chat/completions

    Requests are non-streaming so responses can be parsed in one piece.

    Example:
        >>> client = OllamaClient(ProviderConfig(provider="ollama"))
        >>> vectors = client.embed(["Hello world"], model="nomic-embed-text")
        >>> completion = client.chat([{"role": "user", "content": "Hi"}], model="llama3.2")
    """

    def __init__(self, config: ProviderConfig):
        """
        Initialize the Ollama client.

        Args:
            config: Provider configuration
        """
        self.config = config
        self.base_url = (config.base_url or DEFAULT_OLLAMA_URL).rstrip("/")
        self.timeout = config.timeout_seconds
        self.api_mode = config.extra_params.get("api_mode", "native")

        logger.debug(
            f"Initialized OllamaClient: base_url={self.base_url}, api_mode={self.api_mode}"
        )

    def embed(self, texts: List[str], model: Optional[str] = None) -> List[List[float]]:
        """
        Generate embeddings for a list of texts.

        Args:
            texts: List of texts to embed
            model: Embedding model to use

        Returns:
            One embedding vector per input text, in input order

        Raises:
            ProviderError: If the request fails
        """
        url = f"{self.base_url}/api/embed"
        payload = {
            "model": model,
            "input": texts,
        }

        result = self._make_request(url, payload)
        embeddings = result.get("embeddings")
        if not isinstance(embeddings, list):
            raise ProviderError(
                "Ollama embed response has no 'embeddings' list",
                provider="ollama",
            )
        return embeddings

    def chat(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = 0.0,
    ) -> ChatCompletion:
        """
        Generate a chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Chat model to use
            temperature: Sampling temperature

        Returns:
            ChatCompletion with the returned choices

        Raises:
            ProviderError: If the request fails
        """
        if self.api_mode == "openai":
            url = f"{self.base_url}/v1/chat/completions"
            payload = {
                "model": model,
                "messages": messages,
                "stream": False,
                "temperature": temperature,
            }
            result = self._make_request(url, payload)
            return self._parse_openai_compat(result)

        url = f"{self.base_url}/api/chat"
        payload = {
            "model": model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": temperature},
        }
        result = self._make_request(url, payload)
        return self._parse_native_chat(result)

    def _make_request(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON payload and decode the JSON response.

        Raises:
            ProviderError: If the request fails
        """
        try:
            data = json.dumps(payload).encode("utf-8")
            request = Request(
                url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )

            logger.debug(f"Making request to {url}")

            with urlopen(request, timeout=self.timeout) as response:
                response_data = response.read().decode("utf-8")
                return json.loads(response_data)

        except HTTPError as e:
            error_body = e.read().decode("utf-8") if e.fp else str(e)
            logger.error(f"HTTP error from Ollama: {e.code} - {error_body}")
            raise ProviderError(
                f"Ollama API error: {e.code} - {error_body}",
                provider="ollama",
                status_code=e.code,
            ) from e
        except URLError as e:
            logger.error(f"Failed to connect to Ollama: {e}")
            raise ProviderError(
                f"Failed to connect to Ollama at {self.base_url}: {e}",
                provider="ollama",
            ) from e
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON response from Ollama: {e}")
            raise ProviderError(
                f"Invalid JSON response from Ollama: {e}",
                provider="ollama",
                status_code=502,
            ) from e
        except OSError as e:
            logger.error(f"Unexpected error calling Ollama: {e}")
            raise ProviderError(
                f"Unexpected error calling Ollama: {e}",
                provider="ollama",
            ) from e

    def _parse_native_chat(self, result: Dict[str, Any]) -> ChatCompletion:
        """Native chat returns a single message rather than a list of choices."""
        message = result.get("message")
        choices = [ChatChoice(content=message.get("content"))] if message else []

        return ChatCompletion(
            choices=choices,
            model=result.get("model"),
            prompt_tokens=result.get("prompt_eval_count"),
            completion_tokens=result.get("eval_count"),
            raw_response=result,
        )

    def _parse_openai_compat(self, result: Dict[str, Any]) -> ChatCompletion:
        choices = [
            ChatChoice(content=(choice.get("message") or {}).get("content"))
            for choice in result.get("choices", [])
        ]
        usage = result.get("usage", {})

        return ChatCompletion(
            choices=choices,
            model=result.get("model"),
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            raw_response=result,
        )
