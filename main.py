import argparse
import asyncio
import logging
import os
import re
import sys
from typing import List, Optional

from config.constants import API_KEY_ENV, API_KEY_SETTING
from config.settings import SettingsStore, mask_api_key
from errors import ConfigurationError, SheetNameTranslationError, TranslatorError
from hosts.openpyxl_host import OpenpyxlWorkbookHost
from manager import MODE_ALIASES, MODE_REPLACE, OUTPUT_MODES, TranslationManager
from translators.gemini import GeminiTranslatorService, ModelTier
from utils.cache import TranslationCache
from utils.progress import TqdmStatusReporter
from utils.validators import compile_ignore_patterns

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = os.path.join(os.path.expanduser("~"), ".sheet_translator.json")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bulk-translate text cells of an Excel workbook with Gemini")
    parser.add_argument("-i", "--input_file", help="Path to input .xlsx file")
    parser.add_argument("-o", "--output_file", help="Path to output .xlsx file. Defaults to <input>_<target_lang>.xlsx")
    parser.add_argument("-t", "--target_lang", help="Target language (e.g. 'French', 'Japanese')")
    parser.add_argument("-m", "--model", default="flash", help="Model: 'flash' (free tier, throttled) or 'pro' (default: flash)")
    parser.add_argument("--mode", default=MODE_REPLACE, choices=[*OUTPUT_MODES, *MODE_ALIASES], help="Replace text in place or write to a copy of each sheet (default: replace)")
    parser.add_argument("--sheet", help="Only translate this sheet (default: every sheet)")
    parser.add_argument("--range", dest="cell_range", help="Range to translate within --sheet, e.g. 'A1:D20' (default: used range)")
    parser.add_argument("--sheet_names", action="store_true", help="Also translate the names of the processed sheets")
    parser.add_argument("-k", "--api_key", help=f"Gemini API key. Falls back to the settings file, then ${API_KEY_ENV}")
    parser.add_argument("--settings_file", default=DEFAULT_SETTINGS_FILE, help=f"Path to settings file (default: {DEFAULT_SETTINGS_FILE})")
    parser.add_argument("--save_key", action="store_true", help="Store the --api_key value in the settings file")
    parser.add_argument("--ignore_regex", action="append", help="Regex pattern to ignore during translation (can be specified multiple times). Example: '^[0-9]+$' to ignore pure numbers")
    return parser


def derive_output_path(input_file: str, target_lang: str) -> str:
    stem, suffix = os.path.splitext(input_file)
    language = re.sub(r"[^A-Za-z0-9\-]+", "", re.sub(r"\s+", "-", target_lang.strip())) or "translated"
    return f"{stem}_{language}{suffix or '.xlsx'}"


async def resolve_api_key(args: argparse.Namespace, settings: SettingsStore) -> Optional[str]:
    """Pick the API key from the command line, the settings file or the environment."""
    await settings.load()

    if args.save_key:
        if not args.api_key or not args.api_key.strip():
            raise ConfigurationError("Please provide a valid API key with --api_key to save it.")
        settings.set(API_KEY_SETTING, args.api_key.strip())
        result = await settings.save()
        if result.succeeded:
            logger.info(f"API key {mask_api_key(args.api_key.strip())} saved to {settings.settings_file}.")
        else:
            logger.error(f"Could not save API key: {result.error}")

    api_key = args.api_key or settings.get(API_KEY_SETTING) or os.environ.get(API_KEY_ENV)
    return api_key.strip() if api_key else None


async def run_translation(args: argparse.Namespace, api_key: str) -> int:
    if not args.target_lang:
        raise ConfigurationError("A target language is required (-t/--target_lang).")
    if args.cell_range and not args.sheet:
        raise ConfigurationError("--range needs --sheet.")
    try:
        model = ModelTier.from_name(args.model)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    output_file = args.output_file or derive_output_path(args.input_file, args.target_lang)
    host = await OpenpyxlWorkbookHost(args.input_file, output_file).open()
    reporter = TqdmStatusReporter()
    translator = GeminiTranslatorService(target_lang=args.target_lang, api_key=api_key, model=model)
    manager = TranslationManager(
        translator=translator,
        cache=TranslationCache(),
        host=host,
        mode=args.mode,
        status_callback=reporter,
        ignore_patterns=compile_ignore_patterns(args.ignore_regex or []),
    )
    logger.info(f"Translating {args.input_file} to {args.target_lang} using {model.model} ({args.mode})...")

    try:
        await translator.initialize()
        sheets: List[str] = [args.sheet] if args.sheet else await host.sheet_names()
        name_errors = 0

        if args.sheet:
            report = await manager.translate_range(args.sheet, args.cell_range)
        else:
            report = await manager.translate_workbook()

        if args.sheet_names:
            for sheet_name in sheets:
                try:
                    await manager.translate_sheet_name(sheet_name)
                except SheetNameTranslationError as e:
                    logger.error(str(e))
                    reporter("Sheet name translation failed.", str(e), None, True)
                    name_errors += 1

        if report.total_errors > 0:
            reporter(f"{report.total_errors} cells could not be translated.", report.first_error_message, 100, True)
        else:
            reporter("Translated successfully!", None, 100, False)

        await host.save()
    finally:
        reporter.close()
        await translator.cleanup()
        await host.close()

    if report.total_errors > 0:
        logger.warning(
            f"{report.total_errors} cells could not be translated. First error: {report.first_error_message}"
        )
        return 1
    if name_errors:
        logger.warning(f"{name_errors} sheet names could not be translated.")
        return 1
    logger.info(f"Translation completed: {report.translated_cells} cells translated, output: {output_file}")
    return 0


async def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = SettingsStore(args.settings_file)
    api_key = await resolve_api_key(args, settings)

    if not args.input_file:
        if args.save_key:
            return 0
        parser.error("the following arguments are required: -i/--input_file")
    if not api_key:
        raise ConfigurationError(
            f"No API key found. Pass --api_key, save one with --save_key, or set ${API_KEY_ENV}."
        )

    return await run_translation(args, api_key)


def cli():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Process interrupted by user.")
        sys.exit(130)
    except TranslatorError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        sys.exit(2)


if __name__ == "__main__":
    cli()
