"""OpenAI HTTP client implementing both provider interfaces."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import httpx
import numpy as np

from ragpdf.config import DEFAULT_CHAT_MODEL, DEFAULT_EMBEDDING_MODEL
from ragpdf.errors import ProviderError
from ragpdf.models import Role, Turn
from ragpdf.providers.retry import call_with_retry

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
TRANSIENT_STATUS_CODES = {408, 409, 429}


def build_messages(
    preamble: str, context: str, history: Sequence[Turn], new_turn: str
) -> List[Dict[str, str]]:
    """Assemble the chat payload: system prompt with context, history, then the new turn."""
    system = preamble
    if context:
        system = f"{preamble}\n\nContext from the document:\n{context}"
    messages = [{"role": Role.SYSTEM.value, "content": system}]
    messages.extend({"role": turn.role.value, "content": turn.text} for turn in history)
    messages.append({"role": Role.USER.value, "content": new_turn})
    return messages


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("message", ""))
    return str(body)[:200]


class OpenAIClient:
    """Synchronous client for the OpenAI embeddings and chat completions endpoints.

    Every request carries the configured timeout; transient failures are
    retried by :func:`call_with_retry`.
    """

    def __init__(
        self,
        api_key: str,
        *,
        chat_model: str = DEFAULT_CHAT_MODEL,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
        base_url: str | None = None,
        timeout: float = 30.0,
        max_attempts: int = 3,
        initial_backoff: float = 1.0,
        temperature: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.chat_model = chat_model
        self.embedding_model = embedding_model
        self.max_attempts = max_attempts
        self.initial_backoff = initial_backoff
        self.temperature = temperature
        self._client = httpx.Client(
            base_url=base_url or DEFAULT_BASE_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "OpenAIClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.post(path, json=payload)
        except httpx.TimeoutException as exc:
            raise ProviderError(f"Request to {path} timed out", transient=True) from exc
        except httpx.TransportError as exc:
            raise ProviderError(f"Request to {path} failed: {exc}", transient=True) from exc
        except httpx.RequestError as exc:
            raise ProviderError(f"Request to {path} failed: {exc}") from exc

        status = response.status_code
        if status in TRANSIENT_STATUS_CODES or status >= 500:
            raise ProviderError(
                f"{path} returned HTTP {status}: {_error_detail(response)}", transient=True
            )
        if status >= 400:
            raise ProviderError(f"{path} returned HTTP {status}: {_error_detail(response)}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(f"{path} returned a malformed body") from exc
        if not isinstance(data, dict):
            raise ProviderError(f"{path} returned an unexpected body")
        return data

    def _request(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return call_with_retry(
            lambda: self._post(path, payload),
            max_attempts=self.max_attempts,
            initial_wait=self.initial_backoff,
            description=f"POST {path}",
        )

    def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        texts = list(texts)
        if not texts:
            return []
        LOGGER.debug("Embedding %d texts with %s", len(texts), self.embedding_model)
        data = self._request("/embeddings", {"model": self.embedding_model, "input": texts})
        try:
            items = sorted(data["data"], key=lambda item: item["index"])
            vectors = [np.asarray(item["embedding"], dtype=np.float32) for item in items]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Malformed embeddings response: {exc}") from exc
        if len(vectors) != len(texts):
            raise ProviderError(
                f"Embeddings response has {len(vectors)} vectors for {len(texts)} inputs"
            )
        return vectors

    def embed(self, text: str) -> np.ndarray:
        return self.embed_batch([text])[0]

    def complete(
        self,
        preamble: str,
        context: str,
        history: Sequence[Turn],
        new_turn: str,
    ) -> str:
        messages = build_messages(preamble, context, history, new_turn)
        payload: Dict[str, Any] = {"model": self.chat_model, "messages": messages}
        if self.temperature is not None:
            payload["temperature"] = self.temperature

        LOGGER.debug(
            "Chat request: model=%s messages=%d context_chars=%d",
            self.chat_model,
            len(messages),
            len(context),
        )
        data = self._request("/chat/completions", payload)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(f"Malformed chat completion response: {exc}") from exc
        return (content or "").strip()
