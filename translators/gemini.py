"""Gemini translation service with rate-limit retries and permissive response parsing."""

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import aiohttp

from config.constants import (
    GEMINI_API_URL,
    MAX_CHARS_PER_BATCH,
    MAX_RETRIES,
    PRO_MODEL,
    STANDARD_MODEL,
)
from errors import ConfigurationError
from utils.progress import StatusCallback, null_status
from .base import BaseTranslator
from .outcomes import BatchOutcome, Failed, FailureKind, Outcome, Translated, fail_all

logger = logging.getLogger(__name__)

CODE_FENCE_START = re.compile(r'^```[A-Za-z]*\s*')
CODE_FENCE_END = re.compile(r'\s*```$')
# Greedy: from the first '[' to the last ']'
ARRAY_PATTERN = re.compile(r'\[.*\]', re.DOTALL)

PROMPT_TEMPLATE = (
    "You are a translation API. Your only function is to translate text. "
    "Translate each string in the following JSON array to {target_lang}. "
    "Detect the source language. Your response MUST BE ONLY a valid JSON array of strings "
    "containing the translations in the exact same order. "
    "Do not include any other text, markdown, or explanations. Input: {items_json}"
)


class ModelTier(Enum):
    """Gemini models offered to the user."""
    STANDARD = STANDARD_MODEL
    PRO = PRO_MODEL

    @property
    def model(self) -> str:
        return self.value

    @property
    def throttled(self) -> bool:
        """Free-tier keys are limited to 60 requests per minute."""
        return self is ModelTier.STANDARD

    @classmethod
    def from_name(cls, name: Union[str, "ModelTier"]) -> "ModelTier":
        if isinstance(name, ModelTier):
            return name
        normalized = name.strip().lower()
        if normalized in {"flash", "standard", "free", STANDARD_MODEL}:
            return cls.STANDARD
        if normalized in {"pro", "paid", PRO_MODEL}:
            return cls.PRO
        raise ValueError(f"Unknown model '{name}'. Use 'flash' or 'pro'.")


@dataclass
class TranslationStats:
    """Track translation statistics."""
    total_requests: int = 0
    total_items: int = 0
    successful_items: int = 0
    failed_items: int = 0
    rate_limit_waits: int = 0
    avg_response_time: float = 0.0

    def record_outcome(self, outcome: BatchOutcome, response_time: float):
        self.total_requests += 1
        self.total_items += len(outcome)
        succeeded = sum(1 for item in outcome if isinstance(item, Translated))
        self.successful_items += succeeded
        self.failed_items += len(outcome) - succeeded
        # Exponential moving average
        if self.avg_response_time == 0:
            self.avg_response_time = response_time
        else:
            self.avg_response_time = 0.9 * self.avg_response_time + 0.1 * response_time

    def record_failure(self, items_count: int):
        self.total_items += items_count
        self.failed_items += items_count

    def record_rate_limit_wait(self):
        self.rate_limit_waits += 1


class GeminiTranslatorService(BaseTranslator):
    """
    Google Gemini translation service.

    Sends one generateContent request per batch and asks the model for a JSON
    array of translations. Every failure is returned as a ``Failed`` outcome
    for the items it affects; nothing is raised into the caller's data path.

    Features:
    - Exponential backoff (2^attempt seconds) on HTTP 429
    - Oversized batches are rejected before any request is made
    - Strict JSON parse with a bracket-extraction fallback
    """

    def __init__(
        self,
        target_lang: str,
        api_key: Optional[str] = None,
        model: Union[str, ModelTier] = ModelTier.STANDARD,
        max_retries: int = MAX_RETRIES,
        max_chars: int = MAX_CHARS_PER_BATCH,
        status_callback: Optional[StatusCallback] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(target_lang, api_key, http_session)
        self.model = ModelTier.from_name(model)
        self.max_retries = max_retries
        self.max_chars = max_chars
        self.status_callback = status_callback or null_status
        self._sleep = sleep
        self._stats = TranslationStats()

    def _create_batch_prompt(self, texts: List[str], target_lang: str) -> str:
        """Create a prompt for batch translation."""
        return PROMPT_TEMPLATE.format(
            target_lang=target_lang,
            items_json=json.dumps(texts, ensure_ascii=False),
        )

    async def _post(self, url: str, api_key: str, payload: Dict) -> Tuple[int, str]:
        session = await self._init_http_session()
        async with session.post(url, params={"key": api_key}, json=payload) as response:
            return response.status, await response.text()

    async def translate_batch(
        self,
        texts: List[str],
        progress: Optional[float] = None,
        *,
        target_lang: Optional[str] = None,
        model: Optional[Union[str, ModelTier]] = None,
        api_key: Optional[str] = None,
    ) -> BatchOutcome:
        """
        Translate a batch of texts in a single request.

        Args:
            texts: Source texts, sent as one JSON array
            progress: Overall progress value echoed in retry status updates
            target_lang: Overrides the service's target language
            model: Overrides the service's model tier
            api_key: Overrides the service's API key

        Returns:
            One outcome per input text, in input order
        """
        if not texts:
            return []

        target_lang = target_lang or self.target_lang
        tier = ModelTier.from_name(model) if model else self.model
        api_key = api_key or self.api_key
        if not api_key:
            raise ConfigurationError("A Gemini API key is required to translate.")

        total_chars = sum(len(text) for text in texts)
        if total_chars > self.max_chars:
            logger.warning(
                f"Batch of {len(texts)} text(s) has {total_chars} characters "
                f"(limit {self.max_chars}), not sending it."
            )
            self._stats.record_failure(len(texts))
            return fail_all(texts, FailureKind.REQUEST_TOO_LARGE, "request too large")

        url = GEMINI_API_URL.format(model=tier.model)
        payload = {"contents": [{"parts": [{"text": self._create_batch_prompt(texts, target_lang)}]}]}

        attempt = 0
        while attempt < self.max_retries:
            start_time = time.time()
            try:
                status, body = await self._post(url, api_key, payload)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                message = str(e) or e.__class__.__name__
                logger.error(f"Network error while translating batch of {len(texts)}: {message}")
                self._stats.record_failure(len(texts))
                return fail_all(texts, FailureKind.NETWORK_ERROR, f"network error: {message}")

            if status == 429:
                attempt += 1
                self._stats.record_rate_limit_wait()
                if attempt >= self.max_retries:
                    break
                delay = 2 ** attempt
                wait_message = (
                    f"Rate limit hit. Waiting {delay}s before retrying... "
                    f"(Attempt {attempt}/{self.max_retries})"
                )
                logger.warning(wait_message)
                self.status_callback("Translating...", wait_message, progress, False)
                await self._sleep(delay)
                continue

            outcome = self._handle_response(status, body, texts)
            elapsed = time.time() - start_time
            self._stats.record_outcome(outcome, elapsed)
            logger.debug(f"Batch of {len(texts)} handled in {elapsed:.2f}s (HTTP {status})")
            return outcome

        logger.error(f"Rate limit exceeded after {self.max_retries} attempts")
        self._stats.record_failure(len(texts))
        return fail_all(texts, FailureKind.RATE_LIMIT_EXCEEDED, "rate limit exceeded")

    def _handle_response(self, status: int, body: str, texts: List[str]) -> BatchOutcome:
        """Classify a non-429 HTTP response into per-item outcomes."""
        try:
            data = json.loads(body) if body and body.strip() else None
        except json.JSONDecodeError:
            data = None

        if not 200 <= status < 300:
            message = self._error_message(data, body)
            logger.error(f"Gemini API error {status}: {message}")
            if status == 413 or "request payload size" in message.lower():
                return fail_all(texts, FailureKind.REQUEST_TOO_LARGE, "request too large")
            return fail_all(texts, FailureKind.API_ERROR, f"{status} - {message}")

        if not isinstance(data, dict):
            logger.error("Gemini API returned a body that is not a JSON object")
            return fail_all(texts, FailureKind.INVALID_FORMAT, "invalid format")

        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback") or {}
            reason = feedback.get("blockReason") or "Safety Filter"
            logger.warning(f"Gemini returned no candidates: {reason}")
            return fail_all(texts, FailureKind.BLOCKED, f"blocked: {reason}")

        content = self._candidate_text(candidates[0])
        if content is None:
            reason = "Safety Filter"
            if isinstance(candidates[0], dict):
                reason = candidates[0].get("finishReason") or reason
            logger.warning(f"Gemini candidate has no text: {reason}")
            return fail_all(texts, FailureKind.BLOCKED, f"blocked: {reason}")

        return self._parse_batch_response(content, texts)

    @staticmethod
    def _error_message(data: Any, body: str) -> str:
        if isinstance(data, dict) and "error" in data:
            error = data["error"]
            if isinstance(error, dict):
                return str(error.get("message") or json.dumps(error, ensure_ascii=False))
            return str(error)
        if data is not None:
            return json.dumps(data, ensure_ascii=False)
        return (body or "").strip()[:500] or "Unknown error"

    @staticmethod
    def _candidate_text(candidate: Any) -> Optional[str]:
        if not isinstance(candidate, dict):
            return None
        parts = (candidate.get("content") or {}).get("parts") or []
        chunks = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
        if not chunks:
            return None
        return "".join(chunks)

    @staticmethod
    def _strip_code_fence(content: str) -> str:
        """Remove leading/trailing markdown code fences if present."""
        stripped = CODE_FENCE_START.sub('', content.strip())
        return CODE_FENCE_END.sub('', stripped).strip()

    def _parse_batch_response(self, content: str, texts: List[str]) -> BatchOutcome:
        """Parse the model output into one outcome per input text.

        The whole text is parsed first. If that fails, the widest
        ``[...]`` substring is tried. When neither yields an array of the
        expected length, every item fails: a batch is never half-parsed.
        """
        content = self._strip_code_fence(content)
        expected = len(texts)

        parsed = self._parse_strict(content, expected)
        if parsed is None:
            parsed = self._parse_embedded_array(content, expected)
        if parsed is None:
            logger.error(f"Invalid format from model for batch of {expected}: {content[:200]!r}")
            return fail_all(texts, FailureKind.INVALID_FORMAT, "invalid format")

        return [self._to_outcome(item) for item in parsed]

    @staticmethod
    def _parse_strict(content: str, expected: int) -> Optional[List[Any]]:
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError:
            return None
        if isinstance(parsed, list) and len(parsed) == expected:
            return parsed
        if expected == 1 and isinstance(parsed, str):
            return [parsed]
        return None

    @staticmethod
    def _parse_embedded_array(content: str, expected: int) -> Optional[List[Any]]:
        match = ARRAY_PATTERN.search(content)
        if not match:
            return None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.debug(f"Failed to parse extracted JSON: {match.group(0)[:200]!r}")
            return None
        if isinstance(parsed, list) and len(parsed) == expected:
            return parsed
        return None

    @staticmethod
    def _to_outcome(item: Any) -> Outcome:
        if isinstance(item, str) and item.strip():
            return Translated(item)
        return Failed(FailureKind.INVALID_FORMAT, "invalid format")

    def get_stats(self) -> Dict:
        """Get translation statistics."""
        return {
            'total_requests': self._stats.total_requests,
            'total_items': self._stats.total_items,
            'successful_items': self._stats.successful_items,
            'failed_items': self._stats.failed_items,
            'success_rate': f"{(self._stats.successful_items / max(1, self._stats.total_items)):.2%}",
            'rate_limit_waits': self._stats.rate_limit_waits,
            'avg_response_time': f"{self._stats.avg_response_time:.3f}s",
        }

    async def cleanup(self):
        """Cleanup resources."""
        await super().cleanup()

        if self._stats.total_items > 0:
            stats = self.get_stats()
            logger.info(
                f"Gemini stats: {stats['successful_items']}/{stats['total_items']} items "
                f"({stats['success_rate']} success), requests: {stats['total_requests']}, "
                f"rate waits: {stats['rate_limit_waits']}, avg response: {stats['avg_response_time']}"
            )
