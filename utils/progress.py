"""Status/progress reporting callbacks."""

import logging
from typing import Callable, Optional

from tqdm import tqdm

logger = logging.getLogger(__name__)

# (message, detail, progress percent or None, is_error)
StatusCallback = Callable[[str, Optional[str], Optional[float], bool], None]


def null_status(message: str, detail: Optional[str] = None, progress: Optional[float] = None, is_error: bool = False):
    """Status callback that ignores every update."""
    return None


class LoggingStatusReporter:
    """Forward status updates to the logger."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def __call__(self, message: str, detail: Optional[str] = None, progress: Optional[float] = None, is_error: bool = False):
        text = f"{message} {detail}" if detail else message
        if progress is not None:
            text = f"[{progress:5.1f}%] {text}"
        if is_error:
            self.log.error(text)
        else:
            self.log.info(text)


class TqdmStatusReporter:
    """Render status updates on a 0-100 tqdm progress bar."""

    def __init__(self, desc: str = "Translating"):
        self.pbar = tqdm(total=100, desc=desc, unit="%", bar_format="{l_bar}{bar}| {n:.0f}/{total:.0f}%")
        self._last_message: Optional[str] = None

    def __call__(self, message: str, detail: Optional[str] = None, progress: Optional[float] = None, is_error: bool = False):
        if message != self._last_message:
            self.pbar.set_description_str(message.rstrip("."))
            self._last_message = message
        self.pbar.set_postfix_str(detail or "")
        if progress is not None:
            # Workbook runs restart per-sheet progress, so the bar may move backwards
            self.pbar.n = max(0.0, min(100.0, progress))
            self.pbar.refresh()
        if is_error:
            tqdm.write(f"ERROR: {message}" + (f" ({detail})" if detail else ""))

    def close(self):
        self.pbar.close()
