"""Persistent settings (API key) stored as a small JSON document."""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiofiles

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Outcome of an asynchronous settings commit."""
    succeeded: bool
    error: Optional[str] = None


def mask_api_key(api_key: str) -> str:
    """Mask an API key for display purposes (e.g. "AIza...J8ZU")."""
    if len(api_key) > 8:
        return f"{api_key[:4]}...{api_key[-4:]}"
    return api_key


class SettingsStore:
    """Key/value settings backed by a JSON file."""

    def __init__(self, settings_file: str):
        self.settings_file = settings_file
        self._values: Dict[str, Any] = {}

    async def load(self) -> Dict[str, Any]:
        """Load settings from disk. A missing or unreadable file yields empty settings."""
        self._values = {}
        if not os.path.exists(self.settings_file):
            return self._values

        try:
            async with aiofiles.open(self.settings_file, 'r', encoding='utf-8') as f:
                content = await f.read()
            data = json.loads(content) if content.strip() else {}
            if isinstance(data, dict):
                self._values = data
            else:
                logger.warning(f"Settings file {self.settings_file} is not a JSON object, ignoring it.")
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading settings file: {e}")
        return self._values

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any):
        self._values[key] = value

    async def save(self) -> SaveResult:
        """Commit settings to disk and report success or failure."""
        try:
            content = json.dumps(self._values, ensure_ascii=False, indent=2)
            async with aiofiles.open(self.settings_file, 'w', encoding='utf-8') as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"Error writing settings file: {e}")
            return SaveResult(succeeded=False, error=str(e))
        return SaveResult(succeeded=True)
