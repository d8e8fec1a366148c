from __future__ import annotations
import logging
import requests
from typing import List, Optional, Dict, Any

from config import Settings

logger = logging.getLogger(__name__)

class OpenRouterError(RuntimeError):
    """Transport, auth or envelope failure talking to OpenRouter."""

class OpenRouterClient:
    """
    Minimal OpenRouter chat client.
    Docs: https://openrouter.ai/docs/api-reference/chat-completion
    """
    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or Settings.from_env()
        self.api_key = settings.api_key
        if not self.api_key:
            raise OpenRouterError("Missing OPENROUTER_API_KEY")

        self.api_url = settings.api_url
        self.model = settings.model

        # Optional attribution headers recommended by OpenRouter
        self.referer = settings.referer
        self.title = settings.title
        self.timeout = settings.oracle_timeout

        masked = (self.api_key[:6] + "..." + self.api_key[-4:]) if len(self.api_key) > 10 else "***"
        logger.info(
            "OpenRouter client ready: key=%s model=%s url=%s timeout=%.1fs",
            masked, self.model, self.api_url, self.timeout,
        )

    def _headers(self) -> Dict[str, str]:
        h = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.referer:
            h["HTTP-Referer"] = self.referer
        if self.title:
            h["X-Title"] = self.title
        return h

    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        json_mode: bool = False,
        extra: Optional[Dict[str, Any]] = None,
    ) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        if extra:
            payload.update(extra)

        try:
            resp = requests.post(self.api_url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise OpenRouterError(f"OpenRouter request failed: {e}") from e

        if resp.status_code != 200:
            raise OpenRouterError(f"OpenRouter error {resp.status_code}: {resp.text[:500]}")

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise OpenRouterError(f"Malformed OpenRouter response: {resp.text[:500]}") from e
        if not isinstance(content, str):
            raise OpenRouterError("OpenRouter response content is not text")
        return content
