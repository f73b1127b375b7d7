"""Translation manager that orchestrates extraction, caching, batching and write-back."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Pattern, Tuple

from config.constants import CELL_CHAR_LIMIT, MAX_CHARS_PER_BATCH, MAX_ITEMS_PER_BATCH
from errors import SheetCreationError, SheetNameTranslationError
from hosts.base import WorkbookHost, local_address
from translators.gemini import GeminiTranslatorService
from translators.outcomes import Failed, Translated
from utils.batch_manager import CharBudgetBatchBuilder
from utils.cache import TranslationCache
from utils.extractor import Grid, extract_translatable_cells
from utils.progress import StatusCallback, null_status
from utils.rate_limiter import RateLimiter
from utils.reconciler import count_unresolved_cells, reconcile_grid
from utils.validators import sanitize_sheet_name, unique_sheet_name

logger = logging.getLogger(__name__)

MODE_REPLACE = "replace"
MODE_NEW_SHEET = "new_sheet"
OUTPUT_MODES = (MODE_REPLACE, MODE_NEW_SHEET)
# Spellings used by the add-in settings
MODE_ALIASES = {"newSheet": MODE_NEW_SHEET}


@dataclass
class TranslationReport:
    """Summary of one translation run, for user-facing messages."""
    total_errors: int = 0  # cells left untranslated
    failed_texts: int = 0  # unique texts that failed
    first_error_message: Optional[str] = None
    translated_cells: int = 0
    cached_texts: int = 0
    batches: int = 0

    def record_failure(self, failure: Failed):
        self.failed_texts += 1
        if self.first_error_message is None:
            self.first_error_message = failure.reason

    def merge(self, other: "TranslationReport"):
        self.total_errors += other.total_errors
        self.failed_texts += other.failed_texts
        self.translated_cells += other.translated_cells
        self.cached_texts += other.cached_texts
        self.batches += other.batches
        if self.first_error_message is None:
            self.first_error_message = other.first_error_message


class TranslationManager:
    """
    Runs the translation pipeline over a grid or a workbook range:
    extract -> cache lookup -> batch -> translate sequentially -> reconcile.

    Batches are sent one at a time. On the throttled model tier a counted
    pause separates consecutive batches. Failed texts never overwrite cells.
    """

    def __init__(
        self,
        translator: GeminiTranslatorService,
        cache: Optional[TranslationCache] = None,
        host: Optional[WorkbookHost] = None,
        mode: str = MODE_REPLACE,
        status_callback: Optional[StatusCallback] = None,
        rate_limiter: Optional[RateLimiter] = None,
        ignore_patterns: Optional[List[Pattern]] = None,
        max_items: int = MAX_ITEMS_PER_BATCH,
        max_chars: int = MAX_CHARS_PER_BATCH,
        cell_char_limit: int = CELL_CHAR_LIMIT,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        mode = MODE_ALIASES.get(mode, mode)
        if mode not in OUTPUT_MODES:
            raise ValueError(f"Unknown output mode '{mode}'. Use one of: {', '.join(OUTPUT_MODES)}")
        self.translator = translator
        self.cache = cache if cache is not None else TranslationCache()
        self.host = host
        self.mode = mode
        self.status = status_callback or null_status
        self.rate_limiter = rate_limiter or RateLimiter(sleep=sleep)
        self.ignore_patterns = ignore_patterns or []
        self.batch_builder = CharBudgetBatchBuilder(max_items=max_items, max_chars=max_chars)
        self.cell_char_limit = cell_char_limit
        # Shares the translator's status channel for retry countdowns
        self.translator.status_callback = self.status

    @property
    def target_lang(self) -> str:
        return self.translator.target_lang

    def set_target_language(self, target_lang: str):
        """Switch the target language; cached translations are for the old one and are dropped."""
        if target_lang != self.translator.target_lang:
            logger.info(f"Target language changed from {self.translator.target_lang} to {target_lang}.")
            self.cache.clear()
            self.translator.target_lang = target_lang

    def _require_host(self) -> WorkbookHost:
        if self.host is None:
            raise RuntimeError("This operation needs a workbook host.")
        return self.host

    async def translate_values(self, values: Grid) -> Tuple[Grid, TranslationReport]:
        """Translate every text cell of ``values`` and return the new grid with a report."""
        report = TranslationReport()
        self.status("Reading data from sheet...", None, 0, False)

        cells, unique_texts = extract_translatable_cells(values, self.ignore_patterns)
        if not cells:
            logger.info("No text cells to translate.")
            return [list(row) for row in values], report

        outcomes = {}
        texts_to_fetch: List[str] = []
        for text in unique_texts:
            cached = self.cache.get(text)
            if cached is not None:
                outcomes[text] = Translated(cached)
            else:
                texts_to_fetch.append(text)

        report.cached_texts = len(unique_texts) - len(texts_to_fetch)
        if report.cached_texts > 0:
            self.status(f"Found {report.cached_texts} translations in cache.", "Checking for new text...", 10, False)
        logger.info(
            f"{len(cells)} text cells, {len(unique_texts)} unique texts, "
            f"{report.cached_texts} cached, {len(texts_to_fetch)} to translate."
        )

        if texts_to_fetch:
            batches = self.batch_builder(texts_to_fetch)
            report.batches = len(batches)
            await self._translate_batches(batches, outcomes, report)

        self.status("Writing translations...", "Applying changes...", 95, False)
        new_values = reconcile_grid(values, cells, outcomes, self.cell_char_limit)
        report.total_errors = count_unresolved_cells(cells, outcomes)
        report.translated_cells = len(cells) - report.total_errors
        return new_values, report

    async def _translate_batches(self, batches: List[List[str]], outcomes: dict, report: TranslationReport):
        total_batches = len(batches)
        throttled = self.translator.model.throttled

        for i, batch in enumerate(batches):
            overall_progress = 10 + ((i + 1) / total_batches) * 80
            self.status("Translating...", f"Processing batch {i + 1} of {total_batches} from API", overall_progress, False)

            start_time = time.time()
            batch_outcome = await self.translator.translate_batch(batch, progress=overall_progress)
            logger.debug(f"Batch {i + 1}/{total_batches} ({len(batch)} texts) took {time.time() - start_time:.2f}s")

            for text, result in zip(batch, batch_outcome):
                outcomes[text] = result
                if isinstance(result, Translated):
                    self.cache.set(text, result.text)
                else:
                    report.record_failure(result)

            if throttled and i < total_batches - 1:
                self.status("Waiting for API rate limit...", None, overall_progress, False)
                await self.rate_limiter.wait(
                    on_tick=lambda remaining, p=overall_progress: self.status(
                        "Waiting for API rate limit...", f"Next request in {remaining:.1f}s...", p, False
                    )
                )

    async def translate_range(self, sheet_name: str, address: Optional[str] = None) -> TranslationReport:
        """
        Translate a range (or the used range) of a sheet and write the result
        according to the output mode.
        """
        host = self._require_host()
        if address is None:
            data = await host.read_used_range(sheet_name)
            if data is None:
                logger.info(f"Sheet '{sheet_name}' is empty. Skipping.")
                return TranslationReport()
        else:
            data = await host.read_range(sheet_name, address)

        new_values, report = await self.translate_values(data.values)

        if self.mode == MODE_REPLACE:
            await host.write_range(sheet_name, data.address, new_values)
        else:
            new_sheet = await self._create_sheet_copy(sheet_name)
            await host.write_range(new_sheet, local_address(data.address), new_values)
            logger.info(f"Wrote translations of '{sheet_name}' to new sheet '{new_sheet}'.")
        return report

    async def _create_sheet_copy(self, sheet_name: str) -> str:
        """Copy a sheet and return the copy's name, found by diffing sheet names."""
        host = self._require_host()
        existing = set(await host.sheet_names())
        await host.copy_sheet_after(sheet_name)
        for name in await host.sheet_names():
            if name not in existing:
                return name
        raise SheetCreationError("Could not find the newly created worksheet after copy operation.")

    async def translate_workbook(self) -> TranslationReport:
        """Translate the used range of every sheet that exists when the run starts."""
        host = self._require_host()
        total = TranslationReport()
        sheet_names = await host.sheet_names()

        for i, sheet_name in enumerate(sheet_names):
            progress = ((i + 1) / len(sheet_names)) * 100
            self.status(f"Processing sheet {i + 1}/{len(sheet_names)}: '{sheet_name}'", None, progress, False)
            report = await self.translate_range(sheet_name)
            total.merge(report)

        if total.total_errors:
            logger.warning(f"Workbook translation completed with {total.total_errors} errors.")
        return total

    async def translate_sheet_name(self, sheet_name: str) -> str:
        """Translate a sheet's name and rename it; returns the name the sheet ends up with."""
        host = self._require_host()
        self.status("Translating sheet name...", None, 20, False)
        existing_names = await host.all_sheet_names()

        translated = self.cache.get(sheet_name)
        if translated is None:
            result = await self.translator.translate_single(sheet_name)
            if isinstance(result, Failed):
                raise SheetNameTranslationError(f"Could not translate sheet name '{sheet_name}': {result.reason}")
            translated = result.text
            self.cache.set(sheet_name, translated)

        final_name = sanitize_sheet_name(translated)
        if not final_name:
            raise SheetNameTranslationError(f"Translated name for '{sheet_name}' is empty after cleanup.")
        if final_name.lower() == sheet_name.lower():
            return sheet_name

        unique_name = unique_sheet_name(final_name, existing_names)
        await host.rename_sheet(sheet_name, unique_name)
        logger.info(f"Renamed sheet '{sheet_name}' to '{unique_name}'.")
        return unique_name
