# snow_season.py — festive-season helper

from __future__ import annotations
import datetime
from typing import Optional


def is_festive_season(today: Optional[datetime.date] = None) -> bool:
    """True from December 1 through January 3."""
    today = today or datetime.date.today()
    return today.month == 12 or (today.month == 1 and today.day <= 3)
