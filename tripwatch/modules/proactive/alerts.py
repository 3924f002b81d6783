"""
tripwatch/modules/proactive/alerts.py
-------------------------------------
Alert catalogue and the no-repeat guard.

Catalogue functions only render text: each returns a message with two or
three numbered options and their tradeoffs. Deciding *whether* to alert is
the heartbeat's job.

No-repeat guard: an alert type already sent less than NO_REPEAT_WINDOW_MIN
(30) minutes ago is suppressed. The last-sent table belongs to the caller
(it lives in the trip document); the guard itself holds no state.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from tripwatch import config
from tripwatch.modules.tool_usage.base import WeatherReport
from tripwatch.schemas.itinerary import Activity, ActivityCategory
from tripwatch.schemas.trip import DeferredRequest

logger = logging.getLogger(__name__)

# ── Alert types and severities ────────────────────────────────────────────────

SCHEDULE_DRIFT = "schedule-drift"
WEATHER        = "weather"
LODGING_NUDGE  = "lodging-nudge"
DEFERRED       = "deferred"

HIGH   = "high"
MEDIUM = "medium"
LOW    = "low"
INFO   = "info"

SEVERITY_ORDER: tuple[str, ...] = (HIGH, MEDIUM, LOW, INFO)


@dataclass
class Alert:
    type: str
    severity: str
    message: str
    activity_id: Optional[str] = None


@dataclass
class Option:
    name: str
    tradeoff: str = ""


def pick_primary(alerts: list[Alert]) -> Alert:
    """Highest severity wins; within a tier the first candidate wins."""
    for severity in SEVERITY_ORDER:
        for alert in alerts:
            if alert.severity == severity:
                return alert
    return alerts[0]


# ── No-repeat guard ───────────────────────────────────────────────────────────

def should_suppress(
    alert_type: str,
    last_sent_at: datetime | None,
    now: datetime | None = None,
    window_minutes: float = config.NO_REPEAT_WINDOW_MIN,
) -> bool:
    """True when `alert_type` went out less than `window_minutes` ago."""
    if last_sent_at is None:
        return False
    now = now or datetime.now(last_sent_at.tzinfo)
    try:
        elapsed = (now - last_sent_at).total_seconds() / 60
    except TypeError:
        logger.warning("[Guard] incomparable last-sent time for '%s' → allow", alert_type)
        return False
    suppress = elapsed < window_minutes
    logger.debug("[Guard] '%s' last sent %.1f min ago → %s",
                 alert_type, elapsed, "suppress" if suppress else "allow")
    return suppress


# ── Catalogue ─────────────────────────────────────────────────────────────────

def _numbered(options: Iterable[Option]) -> list[str]:
    lines = []
    for i, opt in enumerate(options, start=1):
        tradeoff = f" ({opt.tradeoff})" if opt.tradeoff else ""
        lines.append(f"{i}. {opt.name}{tradeoff}")
    return lines


def drift_options(drift_minutes: int, activity_name: str) -> list[Option]:
    return [
        Option(f"Press on and arrive {drift_minutes} min late", "keeps the stop, compresses the day"),
        Option(f"Skip {activity_name}", "back on schedule, lose the stop"),
        Option("Shorten the next stop", "partial recovery, keeps both"),
    ]


def schedule_alert(drift_minutes: int, activity_name: str, options: list[Option] | None = None) -> str:
    direction = "behind" if drift_minutes >= 0 else "ahead of"
    magnitude = abs(drift_minutes)
    opts = (options or drift_options(magnitude, activity_name))[:3]
    lines = [
        f"⏰ Running {magnitude} min {direction} schedule.",
        f"{activity_name} is affected. A few options:",
        "",
        *_numbered(opts),
        "",
        "Which works best for the family?",
    ]
    return "\n".join(lines)


def weather_alert(report: WeatherReport, activity_name: str) -> str:
    chance = f" ({report.precip_chance}% chance)" if report.precip_chance is not None else ""
    lines = [
        f"🌧 {report.condition or 'Rain'}{chance} forecast at {activity_name}.",
        "",
        *_numbered([
            Option("Go as planned", "it may clear"),
            Option(f"Swap in something indoors and come back to {activity_name} later"),
            Option("Skip it and add time at the next stop"),
        ]),
        "",
        "What would you like to do?",
    ]
    return "\n".join(lines)


def lodging_nudge(
    tomorrow_name: str | None,
    budget_min: float | None = None,
    budget_max: float | None = None,
) -> str:
    budget = ""
    if budget_max:
        budget = f" (budget: ${budget_min or 0:.0f}–${budget_max:.0f}/night)"
    first_stop = tomorrow_name or "tomorrow's first stop"
    lines = [
        f"🏨 It's past 5 PM and nothing is booked for tonight{budget}.",
        f"Tomorrow starts at {first_stop}, so where you sleep matters.",
        "",
        *_numbered([
            Option("Find lodging near where you are now"),
            Option(f"Find lodging closer to {first_stop}", "shorter drive tomorrow"),
            Option("Remind me again in 30 minutes"),
        ]),
        "",
        "Rooms go fast in the evening. Want me to search now?",
    ]
    return "\n".join(lines)


def flight_delay_alert(flight_number: str, delay_minutes: int, day_activities: list[Activity]) -> str:
    """Triage text for a delayed flight; offers to drop up to two flexible stops."""
    hours, minutes = divmod(max(0, delay_minutes), 60)
    if hours:
        delay = f"{hours} hr" + (f" {minutes} min" if minutes else "")
    else:
        delay = f"{minutes} min"

    flexible = [a for a in day_activities if a.category != ActivityCategory.HARD][:2]
    if flexible:
        skip = "skip " + " and ".join(a.label for a in flexible)
    else:
        skip = "skip the first stop"

    lines = [
        f"✈️ {flight_number or 'Your flight'} is delayed {delay}.",
        "",
        *_numbered([
            Option("Adjust today's plan", "later start, dinner still works"),
            Option(f"Simplify today: {skip} and head straight to lodging"),
            Option("Keep the plan and see how it shakes out"),
        ]),
        "",
        "How do you want to play it?",
    ]
    return "\n".join(lines)


def deferred_reminder(request: DeferredRequest) -> str:
    return f"⏰ Reminder: {request.text}"
