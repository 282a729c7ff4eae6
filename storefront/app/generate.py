#!/usr/bin/env python3
"""
Completion client for the storefront support bot.

Talks to an OpenAI-compatible chat-completions endpoint. Every call gets one
retry after a short fixed delay; a second failure surfaces as ``UpstreamError``
so callers can fall back to a deterministic reply.
"""

from typing import Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .errors import UpstreamError
from ..utils.logger import get_logger

logger = get_logger(__name__)

_RETRYABLE = (requests.RequestException, ValueError, KeyError, IndexError, TypeError)


class CompletionClient:
    """Client for chat completions (system + user message in, text out)."""

    def __init__(self, api_key: Optional[str], base_url: str = "https://api.openai.com/v1",
                 model: str = "gpt-4o-mini", timeout: float = 30, retry_delay: float = 0.3,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.retry_delay = retry_delay
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "CompletionClient":
        return cls(
            api_key=config.OPENAI_API_KEY,
            base_url=config.OPENAI_BASE_URL,
            model=config.OPENAI_MODEL,
            timeout=config.COMPLETION_TIMEOUT,
            retry_delay=config.COMPLETION_RETRY_DELAY,
        )

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _post(self, payload) -> str:
        response = self.session.post(
            f"{self.base_url}/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json=payload,
            timeout=self.timeout,
        )
        if response.status_code != 200:
            logger.debug("Completion error body: %s", response.text[:500])
            response.raise_for_status()
        data = response.json()
        return (data["choices"][0]["message"]["content"] or "").strip()

    def complete(self, system: str, user: str, temperature: float = 0.2, max_tokens: int = 400) -> str:
        """
        Generate a completion.

        Args:
            system: System instruction
            user: User message (may embed context)

        Returns:
            Generated text, stripped

        Raises:
            UpstreamError: the service is not configured or failed twice
        """
        if not self.available:
            raise UpstreamError("Completion service is not configured", code="CompletionUnavailable")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        retrying = Retrying(
            stop=stop_after_attempt(2),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(_RETRYABLE),
            reraise=True,
        )
        try:
            return retrying(self._post, payload)
        except _RETRYABLE as e:
            logger.error("Completion call failed after retry: %s", e)
            raise UpstreamError("Completion service failed", code="CompletionFailed", detail=str(e)) from e
