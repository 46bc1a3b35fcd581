"""Engine constants: windows, thresholds, timing and capability paths."""

from datetime import timedelta

SUPPORTED_WINDOWS: tuple[str, ...] = ("24h", "7d", "30d")

WINDOW_DURATIONS: dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

DEFAULT_WINDOWS: tuple[str, ...] = ("24h",)

# Canonical liquidity thresholds, in basis points
DEFAULT_SLIPPAGE_THRESHOLDS_BPS: tuple[int, ...] = (50, 100)

BPS_DENOMINATOR = 10_000

# Fee rate used for estimated (non-live) quotes
DEFAULT_FEE_BPS = 5

# Binary search bounds in whole-token units
LIQUIDITY_MIN_AMOUNT = 1_000
LIQUIDITY_MAX_AMOUNT = 10_000_000
LIQUIDITY_SEARCH_ITERATIONS = 20

MIN_REQUEST_INTERVAL_SECONDS = 0.1
DEFAULT_RETRY_AFTER_SECONDS = 60.0
PING_TIMEOUT_SECONDS = 5.0

API_KEY_HEADER = "X-API-Key"

VOLUME_PATH = "/volume"
QUOTE_PATH = "/quote"
ASSETS_PATH = "/assets"
HEALTH_PATH = "/health"
