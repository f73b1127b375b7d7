import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from openpyxl.utils import get_column_letter

# Ensure repository root is available for imports
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hosts.base import RangeData, WorkbookHost, local_address  # noqa: E402


def gemini_body(text: str) -> str:
    """generateContent response whose single candidate carries ``text``."""
    return json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]})


class FakeResponse:
    def __init__(self, status: int, body: str):
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body


class _RequestContext:
    def __init__(self, result):
        self._result = result

    async def __aenter__(self):
        if isinstance(self._result, BaseException):
            raise self._result
        status, body = self._result
        return FakeResponse(status, body)

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession; replies with queued (status, body) pairs or exceptions."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def queue(self, status: int, body: str):
        self.responses.append((status, body))

    def post(self, url, params=None, json=None):
        self.calls.append({"url": url, "params": params, "json": json})
        if not self.responses:
            raise AssertionError("Unexpected request: no response queued")
        return _RequestContext(self.responses.pop(0))

    def prompt(self, index: int = -1) -> str:
        return self.calls[index]["json"]["contents"][0]["parts"][0]["text"]

    def sent_texts(self, index: int = -1) -> List[str]:
        prompt = self.prompt(index)
        return json.loads(prompt[prompt.index("Input: ") + len("Input: "):])

    async def close(self):
        self.closed = True


class EchoSession(FakeSession):
    """Translates every text by prefixing it, like a model that always succeeds."""

    def __init__(self, prefix: str = "fr:"):
        super().__init__()
        self.prefix = prefix

    def post(self, url, params=None, json=None):
        self.calls.append({"url": url, "params": params, "json": json})
        texts = self.sent_texts()
        translated = [f"{self.prefix}{text}" for text in texts]
        return _RequestContext((200, gemini_body(json_dumps(translated))))


def json_dumps(value) -> str:
    return json.dumps(value, ensure_ascii=False)


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)

    @property
    def total(self) -> float:
        return sum(self.delays)


class InMemoryHost(WorkbookHost):
    """Workbook held as {sheet name: grid}; every sheet's used range starts at A1."""

    def __init__(self, sheets: Dict[str, List[List[Any]]], copy_creates_sheet: bool = True):
        self.sheets = {name: [list(row) for row in grid] for name, grid in sheets.items()}
        self.order = list(sheets)
        self.copy_creates_sheet = copy_creates_sheet
        self.writes: List[tuple] = []
        self.renames: List[tuple] = []

    @staticmethod
    def _address(grid) -> str:
        rows = max(1, len(grid))
        cols = max(1, max((len(row) for row in grid), default=1))
        return f"A1:{get_column_letter(cols)}{rows}"

    async def sheet_names(self):
        return list(self.order)

    async def read_range(self, sheet_name, address):
        grid = self.sheets[sheet_name]
        return RangeData(sheet_name, f"{sheet_name}!{local_address(address)}", [list(row) for row in grid])

    async def read_used_range(self, sheet_name):
        grid = self.sheets[sheet_name]
        if not any(value is not None for row in grid for value in row):
            return None
        return RangeData(sheet_name, f"{sheet_name}!{self._address(grid)}", [list(row) for row in grid])

    async def write_range(self, sheet_name, address, values):
        self.writes.append((sheet_name, address, values))
        self.sheets[sheet_name] = [list(row) for row in values]

    async def copy_sheet_after(self, sheet_name):
        if not self.copy_creates_sheet:
            return
        copy_name = f"{sheet_name} (2)"
        self.sheets[copy_name] = [list(row) for row in self.sheets[sheet_name]]
        self.order.insert(self.order.index(sheet_name) + 1, copy_name)

    async def rename_sheet(self, sheet_name, new_name):
        self.renames.append((sheet_name, new_name))
        self.sheets[new_name] = self.sheets.pop(sheet_name)
        self.order[self.order.index(sheet_name)] = new_name


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def echo_session():
    return EchoSession()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_host():
    return InMemoryHost


@pytest.fixture
def body():
    return gemini_body
