"""
Slack Module

Status lookups over Slack channel history:
- Channel resolution and history fetching (SlackStatusAdapter)
- Timeframe windows (today, yesterday, this_week)
- Lunch, update and report classification
"""

from .timeframes import TIMEFRAMES, get_time_window, validate_timeframe

from .reports import (
    compute_lunch_status,
    compute_update_status,
    compute_report_status,
    REPORT_BUILDERS,
)

from .adapter import SlackStatusAdapter, classify_slack_error, REQUIRED_SCOPES

__all__ = [
    # Timeframes
    "TIMEFRAMES",
    "get_time_window",
    "validate_timeframe",
    # Reports
    "compute_lunch_status",
    "compute_update_status",
    "compute_report_status",
    "REPORT_BUILDERS",
    # Adapter
    "SlackStatusAdapter",
    "classify_slack_error",
    "REQUIRED_SCOPES",
]
