"""
tripwatch/modules/tool_usage/weather_tool.py
--------------------------------------------
WeatherAPI.com wrapper. Implements WeatherProvider.

current_conditions() uses the one-day forecast endpoint rather than
current.json so the day's chance of rain comes back in the same call.
sunset_info() reads the same endpoint's astronomy block for a given date.
"""

from __future__ import annotations
import logging
from datetime import date, datetime, time, timedelta

import requests

from tripwatch import config
from tripwatch.errors import ProviderError
from tripwatch.modules.tool_usage.base import SunsetInfo, WeatherReport

logger = logging.getLogger(__name__)

GOLDEN_HOUR_START_MIN = 60   # before sunset
GOLDEN_HOUR_END_MIN = 10


class WeatherApiTool:
    """Wraps the WeatherAPI forecast endpoint."""

    name = "weatherapi"

    def __init__(
        self,
        api_url: str = config.WEATHER_API_URL,
        api_key: str = config.WEATHER_API_KEY,
        timeout: float = config.HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def current_conditions(self, lat: float, lon: float) -> WeatherReport:
        data = self._forecast(lat, lon)
        logger.debug("[Weather] conditions fetched for (%s,%s)", lat, lon)
        return self._parse_report(data)

    def sunset_info(self, lat: float, lon: float, on: date | None = None) -> SunsetInfo:
        """Sunrise, sunset and the golden-hour window on `on` (today when omitted)."""
        on = on or date.today()
        data = self._forecast(lat, lon, dt=on.isoformat())
        logger.debug("[Weather] astronomy fetched for (%s,%s) on %s", lat, lon, on)
        return self._parse_astro(data)

    # ── Internals ─────────────────────────────────────────────────────────────

    def _forecast(self, lat: float, lon: float, **extra) -> dict:
        params = {
            "key":    self.api_key,
            "q":      f"{lat},{lon}",
            "days":   1,
            "aqi":    "no",
            "alerts": "no",
            **extra,
        }
        try:
            response = requests.get(f"{self.api_url}/forecast.json", params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise ProviderError(self.name, f"forecast request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(self.name, "forecast returned invalid JSON") from exc

    def _parse_report(self, data: dict) -> WeatherReport:
        try:
            current = data["current"]
            condition = current["condition"]["text"]
        except (KeyError, TypeError) as exc:
            raise ProviderError(self.name, "forecast payload missing current conditions") from exc

        chance = None
        days = (data.get("forecast") or {}).get("forecastday") or []
        if days:
            raw = (days[0].get("day") or {}).get("daily_chance_of_rain")
            if raw is not None:
                chance = int(raw)

        return WeatherReport(condition=condition, temp_f=current.get("temp_f"), precip_chance=chance)

    def _parse_astro(self, data: dict) -> SunsetInfo:
        try:
            astro = data["forecast"]["forecastday"][0]["astro"]
            sunrise = _clock(astro["sunrise"])
            sunset = _clock(astro["sunset"])
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise ProviderError(self.name, "forecast payload missing astronomy data") from exc

        anchor = datetime.combine(date.today(), sunset)
        return SunsetInfo(
            sunrise=sunrise,
            sunset=sunset,
            golden_hour_start=(anchor - timedelta(minutes=GOLDEN_HOUR_START_MIN)).time(),
            golden_hour_end=(anchor - timedelta(minutes=GOLDEN_HOUR_END_MIN)).time(),
        )


def _clock(text: str) -> time:
    """'07:42 PM' → 19:42."""
    return datetime.strptime(text.strip(), "%I:%M %p").time()
