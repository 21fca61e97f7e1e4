from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from .analysis_utils import active_dates
from .checkins import CheckIn, utc_date


def compute_current_streak(dates: List[date], today: date) -> Tuple[int, Optional[date]]:
    # today may not have a check-in yet, so counting starts at yesterday
    date_set = set(dates)
    streak = 0
    start: Optional[date] = None
    day = today - timedelta(days=1)
    while day in date_set:
        streak += 1
        start = day
        day = day - timedelta(days=1)
    return streak, start


def compute_longest_streak(dates: List[date]) -> int:
    if not dates:
        return 0
    best = 1
    current = 1
    for prev, curr in zip(dates, dates[1:]):
        if curr == prev + timedelta(days=1):
            current += 1
            best = max(best, current)
        else:
            current = 1
    return best


def calculate_streak(checkins: Sequence[CheckIn], now: datetime) -> dict:
    dates = active_dates(checkins)
    if not dates:
        return {
            "currentStreak": 0,
            "longestStreak": 0,
            "activeDays": 0,
            "totalDays": 0,
            "streakStartDate": None,
            "lastLogDate": None,
        }

    current_streak, streak_start = compute_current_streak(dates, utc_date(now))
    return {
        "currentStreak": current_streak,
        "longestStreak": compute_longest_streak(dates),
        "activeDays": len(dates),
        "totalDays": (dates[-1] - dates[0]).days + 1,
        "streakStartDate": streak_start.isoformat() if streak_start else None,
        "lastLogDate": dates[-1].isoformat(),
    }
