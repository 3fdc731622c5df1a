"""
Configuration file for Stryktipset Pool
Store API endpoints, paths, and pool parameters
"""

import os
from pathlib import Path

# Project directories
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("STRYKTIPSET_POOL_DATA_DIR", BASE_DIR / "data"))
ROOMS_DIR = DATA_DIR / "rooms"
COUPONS_DIR = DATA_DIR / "coupons"
LOGS_DIR = BASE_DIR / "logs"

# Create directories if they don't exist
for directory in [DATA_DIR, ROOMS_DIR, COUPONS_DIR, LOGS_DIR]:
    directory.mkdir(parents=True, exist_ok=True)

# Svenska Spel draw API
SVENSKA_SPEL_BASE_URL = os.getenv(
    "SVENSKA_SPEL_BASE_URL",
    "https://api.spela.svenskaspel.se/draw/1/stryktipset",
)
SVENSKA_SPEL_COUPON_URL = "https://www.svenskaspel.se/stryktipset"
REQUEST_TIMEOUT_SECONDS = 10
DRAW_CACHE_SECONDS = 60  # Draw list changes during the week, keep it short
MIN_SECONDS_BETWEEN_REQUESTS = 0.2
LIVE_RESULTS_REFRESH_SECONDS = 30

# Pool rules
MATCHES_PER_ROUND = 13
OUTCOMES = ("1", "X", "2")  # Canonical order, also used for tie-breaks
OUTCOME_LABELS = {
    "1": "Home win",
    "X": "Draw",
    "2": "Away win",
}
DEFAULT_TARGET_COST = 192  # 2^6 × 3^1
COST_PER_COMBINATION = 1  # SEK per row

# Reject tickets when Svenska Spel reports no open draw
REQUIRE_OPEN_DRAW = os.getenv("STRYKTIPSET_REQUIRE_OPEN_DRAW", "1") == "1"

# Room status values
ROOM_STATUS_OPEN = "open"
ROOM_STATUS_CLOSED = "closed"
ROOM_LOCK_TIMEOUT_SECONDS = 10  # Wait for another process writing the same room

# Logging Configuration
LOG_LEVEL = os.getenv("STRYKTIPSET_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
