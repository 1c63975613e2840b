"""LLM provider contracts and the HTTP adapter for Ollama and Gemini."""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from time import perf_counter

import requests

from rfpdesk.core.config import Config, get_config
from rfpdesk.core.exceptions import AiError, AiRateLimitError

logger = logging.getLogger(__name__)
_RATE_LOCK = threading.Lock()
_LAST_REQUEST_TS = 0.0

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
_RATE_LIMIT_MARKERS = ("resource_exhausted", "resource exhausted", "too many requests")


@dataclass(frozen=True)
class LLMRequest:
    prompt_key: str
    prompt: str
    json_mode: bool = True


@dataclass(frozen=True)
class LLMResponse:
    text: str
    model_name: str
    prompt_hash: str
    latency_ms: int
    generated_at: str


def _apply_rate_limit(min_interval_seconds: float) -> None:
    global _LAST_REQUEST_TS
    if min_interval_seconds <= 0:
        return

    with _RATE_LOCK:
        now = time.monotonic()
        elapsed = now - _LAST_REQUEST_TS
        if elapsed < min_interval_seconds:
            time.sleep(min_interval_seconds - elapsed)
        _LAST_REQUEST_TS = time.monotonic()


def _raise_for_provider_error(response: requests.Response) -> None:
    if response.status_code < 400:
        return
    body = response.text or ""
    if response.status_code == 429 or any(marker in body.lower() for marker in _RATE_LIMIT_MARKERS):
        raise AiRateLimitError(f"LLM provider rate limited the request (HTTP {response.status_code}).")
    raise AiError(f"LLM provider returned HTTP {response.status_code}.")


class LLMClient:
    """Single-shot completion call; retries belong to the gateway."""

    def __init__(self, config: Config | None = None, session: requests.Session | None = None) -> None:
        self.config = config or get_config()
        self.session = session or requests.Session()

    @property
    def model_name(self) -> str:
        if self.config.LLM_PROVIDER == "gemini":
            return self.config.LLM_MODEL
        return self.config.OLLAMA_MODEL

    def generate(self, request: LLMRequest) -> LLMResponse:
        started = perf_counter()
        _apply_rate_limit(self.config.LLM_MIN_INTERVAL_SECONDS)
        try:
            if self.config.LLM_PROVIDER == "gemini":
                text = self._call_gemini(request)
            else:
                text = self._call_ollama(request)
        except requests.exceptions.RequestException as exc:
            logger.warning(
                "llm.call.failed",
                extra={"event": "llm.call.failed", "prompt_key": request.prompt_key, "error": str(exc)},
            )
            raise AiError(f"LLM provider request failed: {exc.__class__.__name__}") from exc

        latency_ms = int((perf_counter() - started) * 1000)
        prompt_hash = hashlib.sha256(request.prompt.encode("utf-8")).hexdigest()
        logger.info(
            "llm.call.completed",
            extra={
                "event": "llm.call.completed",
                "prompt_key": request.prompt_key,
                "model": self.model_name,
                "latency_ms": latency_ms,
            },
        )
        return LLMResponse(
            text=text,
            model_name=self.model_name,
            prompt_hash=prompt_hash,
            latency_ms=latency_ms,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

    def _call_ollama(self, request: LLMRequest) -> str:
        payload = {
            "model": self.config.OLLAMA_MODEL,
            "prompt": request.prompt,
            "stream": False,
        }
        if request.json_mode:
            payload["format"] = "json"

        response = self.session.post(
            self.config.OLLAMA_URL,
            json=payload,
            timeout=(2, self.config.LLM_TIMEOUT_SECONDS),
        )
        _raise_for_provider_error(response)
        try:
            return response.json().get("response", "")
        except ValueError as exc:
            raise AiError("LLM provider returned a non-JSON body.") from exc

    def _call_gemini(self, request: LLMRequest) -> str:
        if not self.config.LLM_API_KEY:
            raise AiError("LLM_API_KEY is not configured for the gemini provider.")

        payload: dict = {"contents": [{"parts": [{"text": request.prompt}]}]}
        if request.json_mode:
            payload["generationConfig"] = {"responseMimeType": "application/json"}

        response = self.session.post(
            GEMINI_URL.format(model=self.config.LLM_MODEL),
            params={"key": self.config.LLM_API_KEY},
            json=payload,
            timeout=(5, self.config.LLM_TIMEOUT_SECONDS),
        )
        _raise_for_provider_error(response)
        try:
            body = response.json()
            parts = body["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise AiError("LLM provider returned an unexpected response shape.") from exc
        return "".join(part.get("text", "") for part in parts)
