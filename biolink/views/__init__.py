"""Profile page view layer."""

from biolink.views.profile_page import ProfilePage
from biolink.views.stats_panel import PeriodLoad, ProfileStatsView, build_chart

__all__ = [
    "ProfilePage",
    "PeriodLoad",
    "ProfileStatsView",
    "build_chart",
]
