# -*- coding: utf-8 -*-
"""Annotation generator: OpenAI-compatible chat completions over httpx."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from ..config import Settings
from ..errors import ConfigurationError, GenerationError
from .usage import UsageStore

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = """You are a daily weight-loss coach. Given a user's day data and their goal, write a SHORT coaching summary (1-2 sentences max, under 120 characters ideally).

Rules:
- Be direct and specific about how this day helps or hurts their goal
- Reference actual numbers (kcal, steps, sleep hours) when relevant
- Use a supportive but honest tone
- Do NOT use quotes around your response
- Do NOT use markdown or formatting
- Just plain text, 1-2 sentences
- If data is sparse, comment on what's available

Examples:
Great step count at 12k! 1800 kcal intake keeps you in deficit. Solid day.
Only 4k steps and 2400 kcal, you're likely over your target today.
7.5h sleep + 10k steps is a winning combo. Watch dinner portions though.
No meals logged yet, track everything to stay accountable."""

LANGUAGE_SUFFIX = {
    "sl": "\n\nIMPORTANT: Respond in Slovenian (slovenščina).",
    "hu": "\n\nIMPORTANT: Respond in Hungarian (magyar).",
}


class AnnotationGenerator(Protocol):
    @property
    def configured(self) -> bool:
        ...

    async def generate(self, context_text: str) -> str:
        ...


@dataclass(frozen=True)
class GeneratorSettings:
    api_key: Optional[str]
    base_url: str
    model: str
    timeout: float
    max_tokens: int
    temperature: float
    language: str = "en"

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeneratorSettings":
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            timeout=settings.openai_timeout,
            max_tokens=settings.openai_max_tokens,
            temperature=settings.openai_temperature,
            language=settings.language,
        )


def _completions_url(base_url: str) -> str:
    base = base_url.rstrip("/")
    if base.endswith("/chat/completions"):
        return base
    return f"{base}/chat/completions"


def _clean_summary(text: str) -> str:
    return text.strip().strip('"').strip()


def _extract_content(data: Dict[str, Any]) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise GenerationError(f"Malformed completion response: {exc}") from exc
    if not isinstance(content, str):
        raise GenerationError("Completion content is not text")
    return content


class OpenAIAnnotationGenerator:
    feature = "day_summary"

    def __init__(
        self,
        config: GeneratorSettings,
        *,
        usage: Optional[UsageStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.usage = usage
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool((self.config.api_key or "").strip())

    def _payload(self, context_text: str) -> Dict[str, Any]:
        system_prompt = SUMMARY_SYSTEM_PROMPT + LANGUAGE_SUFFIX.get(self.config.language, "")
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": context_text},
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }

    def _record_usage(self, data: Dict[str, Any]) -> None:
        if self.usage is None:
            return
        usage = data.get("usage") or {}
        try:
            self.usage.record(
                feature=self.feature,
                model=str(data.get("model") or self.config.model),
                prompt_tokens=int(usage.get("prompt_tokens") or 0),
                completion_tokens=int(usage.get("completion_tokens") or 0),
            )
        except Exception as exc:
            logger.warning("Failed to record AI usage: %s", exc)

    async def generate(self, context_text: str) -> str:
        if not self.configured:
            raise ConfigurationError("OPENAI_API_KEY not set")

        url = _completions_url(self.config.base_url)
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        logger.info("Summary request: %s", context_text[:80].replace("\n", " | "))
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout, transport=self._transport
            ) as client:
                resp = await client.post(url, json=self._payload(context_text), headers=headers)
        except httpx.HTTPError as exc:
            raise GenerationError(f"Completion API unreachable: {exc}") from exc

        if resp.status_code != 200:
            body = resp.text[:200]
            raise GenerationError(
                f"Completion API error {resp.status_code}: {body}", status_code=resp.status_code
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise GenerationError(f"Completion API returned invalid JSON: {exc}") from exc

        self._record_usage(data)
        summary = _clean_summary(_extract_content(data))
        if not summary:
            raise GenerationError("Completion API returned an empty summary")
        logger.info("Summary response (%d chars): %s", len(summary), summary[:120])
        return summary
