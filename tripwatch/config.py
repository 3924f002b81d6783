"""
tripwatch/config.py
-------------------
Central configuration for Tripwatch.
API keys and policy values come from the environment.

Policy constants below are defaults only: every component takes them as
keyword arguments so callers (and tests) can override per call.
"""

import logging
import os

# ── External APIs ─────────────────────────────────────────────────────────────
GOOGLE_MAPS_API_KEY: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
WEATHER_API_KEY: str     = os.getenv("WEATHER_API_KEY", "")

MAPS_API_URL: str    = os.getenv("MAPS_API_URL", "https://maps.googleapis.com/maps/api")
WEATHER_API_URL: str = os.getenv("WEATHER_API_URL", "https://api.weatherapi.com/v1")

# Every provider call carries this timeout; a timeout counts as a provider failure.
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

# ── Persistence ───────────────────────────────────────────────────────────────
TRIP_STATE_PATH: str = os.getenv("TRIP_STATE_PATH", "./trip-state.json")
TRIP_STATE_DIR: str  = os.getenv("TRIP_STATE_DIR", "")   # one file per trip when set

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# ── Activity tracking (metres / minutes) ──────────────────────────────────────
ARRIVED_RADIUS_M: float      = float(os.getenv("ARRIVED_RADIUS_M",      "1000"))  # inner ring
UNCERTAIN_RADIUS_M: float    = float(os.getenv("UNCERTAIN_RADIUS_M",    "2000"))  # outer ring
IN_PROGRESS_DWELL_MIN: float = float(os.getenv("IN_PROGRESS_DWELL_MIN", "20"))
DEFAULT_PLANNED_DURATION_MIN: int = int(os.getenv("DEFAULT_PLANNED_DURATION_MIN", "60"))

# ── Schedule drift (minutes, positive = running late) ─────────────────────────
DRIFT_ALERT_MIN: int   = int(os.getenv("DRIFT_ALERT_MIN",   "40"))
DRIFT_OBSERVE_MIN: int = int(os.getenv("DRIFT_OBSERVE_MIN", "10"))

# ── Route corridor search ─────────────────────────────────────────────────────
CORRIDOR_SEARCH_RADIUS_M: int  = int(os.getenv("CORRIDOR_SEARCH_RADIUS_M", "5000"))
CORRIDOR_MAX_WAYPOINTS: int    = int(os.getenv("CORRIDOR_MAX_WAYPOINTS",   "5"))
CORRIDOR_MAX_CANDIDATES: int   = int(os.getenv("CORRIDOR_MAX_CANDIDATES",  "12"))
CORRIDOR_MAX_PARALLEL: int     = int(os.getenv("CORRIDOR_MAX_PARALLEL",    "4"))
DEFAULT_DETOUR_BUDGET_MIN: int = int(os.getenv("DEFAULT_DETOUR_BUDGET_MIN", "20"))

# ── Fuel and lodging searches ─────────────────────────────────────────────────
FUEL_DETOUR_BUDGET_MIN: int  = int(os.getenv("FUEL_DETOUR_BUDGET_MIN",  "20"))
FUEL_PAIR_RADIUS_M: float    = float(os.getenv("FUEL_PAIR_RADIUS_M",    "402"))    # ~0.25 mi
HOTEL_SEARCH_RADIUS_M: int   = int(os.getenv("HOTEL_SEARCH_RADIUS_M",   "15000"))
MAX_SUGGESTIONS: int         = int(os.getenv("MAX_SUGGESTIONS",         "3"))

# ── Proactive heartbeat ───────────────────────────────────────────────────────
HEARTBEAT_INTERVAL_MIN: int = int(os.getenv("HEARTBEAT_INTERVAL_MIN", "15"))
NO_REPEAT_WINDOW_MIN: int   = int(os.getenv("NO_REPEAT_WINDOW_MIN",   "30"))
LODGING_NUDGE_HOUR: int     = int(os.getenv("LODGING_NUDGE_HOUR",     "17"))   # local 24h clock
RAIN_PRECIP_THRESHOLD: int  = int(os.getenv("RAIN_PRECIP_THRESHOLD",  "60"))   # percent


def configure_logging(level: str | None = None) -> None:
    """Apply LOG_LEVEL to the root logger. Called by entry points, never on import."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
