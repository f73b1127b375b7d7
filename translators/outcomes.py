"""Per-item translation outcomes returned by translator services."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Union


class FailureKind(Enum):
    """Why a text could not be translated."""
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    REQUEST_TOO_LARGE = "request_too_large"
    API_ERROR = "api_error"
    BLOCKED = "blocked"
    INVALID_FORMAT = "invalid_format"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class Translated:
    text: str


@dataclass(frozen=True)
class Failed:
    kind: FailureKind
    reason: str

    def __str__(self) -> str:
        return self.reason


Outcome = Union[Translated, Failed]
# Same length and order as the texts that were sent.
BatchOutcome = List[Outcome]


def fail_all(texts: List[str], kind: FailureKind, reason: str) -> BatchOutcome:
    """Apply one batch-wide failure to every item."""
    failure = Failed(kind=kind, reason=reason)
    return [failure for _ in texts]
