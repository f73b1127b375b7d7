"""Constants and configuration values."""

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

STANDARD_MODEL = "gemini-1.5-flash"
PRO_MODEL = "gemini-1.5-pro"

# Batching limits for a single API request
MAX_ITEMS_PER_BATCH = 100
MAX_CHARS_PER_BATCH = 15_000

# Delay between batches for the free tier (60 requests/minute)
SAFE_MODE_DELAY = 1.2
COUNTDOWN_TICK = 0.1

MAX_RETRIES = 3
REQUEST_TIMEOUT = 120
CONNECT_TIMEOUT = 10

# Spreadsheet limits
CELL_CHAR_LIMIT = 32_767
SHEET_NAME_MAX_LENGTH = 31
SHEET_NAME_FORBIDDEN = r'[:\\/?*\[\]]'

API_KEY_SETTING = "apiKey"
API_KEY_ENV = "GEMINI_API_KEY"
