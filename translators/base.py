"""Base translator class."""

from abc import ABC, abstractmethod
from typing import List, Optional

import aiohttp

from config.constants import CONNECT_TIMEOUT, REQUEST_TIMEOUT
from .outcomes import BatchOutcome, Failed, FailureKind, Outcome


class BaseTranslator(ABC):
    """Base class for translation services that call an HTTP API."""

    def __init__(
        self,
        target_lang: str,
        api_key: Optional[str] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        self.target_lang = target_lang
        self.api_key = api_key
        self.http_session = http_session
        # Sessions handed in from outside are closed by their owner
        self._owns_session = http_session is None

    async def _init_http_session(self):
        """Initialize HTTP session for async requests."""
        if self.http_session is None:
            timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT)
            self.http_session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self.http_session

    async def _close_http_session(self):
        """Close HTTP session."""
        if self.http_session and self._owns_session:
            await self.http_session.close()
            self.http_session = None

    async def initialize(self):
        """Initialize the translator (open the HTTP session)."""
        await self._init_http_session()

    @abstractmethod
    async def translate_batch(self, texts: List[str], progress: Optional[float] = None) -> BatchOutcome:
        """Translate a batch of texts, one outcome per text in the same order."""
        pass

    async def translate_single(self, text: str) -> Outcome:
        """Translate a single text (default implementation uses batch)."""
        results = await self.translate_batch([text])
        if not results:
            return Failed(FailureKind.INVALID_FORMAT, "invalid format")
        return results[0]

    async def cleanup(self):
        """Cleanup resources."""
        await self._close_http_session()
