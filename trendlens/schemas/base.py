"""
Common enums used across the application.

They define the vocabulary of the system: article categories, sentiment
labels and the time windows offered by the query engine.
"""

from datetime import timedelta
from enum import Enum
from typing import Dict, Optional


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS - Classification Types
# ══════════════════════════════════════════════════════════════════════════════

class Category(str, Enum):
    """Article category labels. ALL is the classifier fallback and the 'no filter' value."""
    ALL = "all"
    AI = "ai"
    SECURITY = "security"
    STARTUP = "startup"
    DEVTOOLS = "devtools"
    MOBILE = "mobile"
    CLOUD = "cloud"
    GAMING = "gaming"
    CRYPTO = "crypto"
    DATA = "data"


class Sentiment(str, Enum):
    """Heuristic sentiment labels."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class TimeFilter(str, Enum):
    """Publish-time windows for the query engine."""
    ALL_TIME = "All time"
    TODAY = "Today"
    THIS_WEEK = "This week"
    THIS_MONTH = "This month"

    @property
    def window(self) -> Optional[timedelta]:
        return _TIME_WINDOWS.get(self)


_TIME_WINDOWS: Dict[TimeFilter, timedelta] = {
    TimeFilter.TODAY: timedelta(hours=24),
    TimeFilter.THIS_WEEK: timedelta(days=7),
    TimeFilter.THIS_MONTH: timedelta(days=30),
}

CATEGORY_DISPLAY_NAMES: Dict[str, str] = {
    "all": "Trending",
    "ai": "AI/ML tech",
    "startup": "Startup",
    "security": "Security",
    "mobile": "Mobile tech",
    "devtools": "DevTools",
    "gaming": "Gaming",
    "crypto": "Crypto",
    "cloud": "Cloud tech",
    "data": "Data tech",
}
