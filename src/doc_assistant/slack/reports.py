"""
Status Reports

Classifies channel authors by the hashtag markers they posted:

- lunch: #lunchstart, and #lunchend or #lunchover (equivalent)
- update: #update
- report: #report

Markers match case-insensitively anywhere in the message text. Messages are
scanned in chronological order, so "first occurrence" means earliest.
"""

from datetime import datetime
from typing import Iterable, Optional

from ..models import (
    LUNCH_COMPLETE,
    LUNCH_MISSING_BOTH,
    LUNCH_MISSING_END,
    LUNCH_MISSING_START,
    LunchUser,
    PostedMessage,
    PostUser,
    SlackMessage,
    StatusReport,
)

LUNCH_START_TAG = "#lunchstart"
LUNCH_END_TAGS = ("#lunchend", "#lunchover")
UPDATE_TAG = "#update"
REPORT_TAG = "#report"

DEFAULT_STATUS_BOT_NAME = "Status Bot"
SLACKBOT_USER_ID = "USLACKBOT"


def format_ts(ts: float) -> str:
    """Convert a Slack timestamp to a local ISO-8601 string."""
    return datetime.fromtimestamp(ts).astimezone().isoformat(timespec="seconds")


def _group_by_author(
    messages: Iterable[SlackMessage],
    excluded_names: Iterable[str],
) -> dict[str, list[SlackMessage]]:
    excluded = {name.lower() for name in excluded_names}
    by_author: dict[str, list[SlackMessage]] = {}

    for message in sorted(messages, key=lambda m: m.ts):
        if message.user_id == SLACKBOT_USER_ID or message.user_name.lower() in excluded:
            continue
        by_author.setdefault(message.user_id, []).append(message)

    return by_author


def _sorted_users(users: list) -> list:
    return sorted(users, key=lambda u: u.name.lower())


def _lunch_status(has_start: bool, has_end: bool) -> str:
    if has_start and has_end:
        return LUNCH_COMPLETE
    if has_start:
        return LUNCH_MISSING_END
    if has_end:
        return LUNCH_MISSING_START
    return LUNCH_MISSING_BOTH


def compute_lunch_status(
    messages: Iterable[SlackMessage],
    channel: str = "",
    timeframe: str = "today",
    excluded_names: Iterable[str] = (DEFAULT_STATUS_BOT_NAME,),
    now: Optional[datetime] = None,
) -> StatusReport:
    """Build the lunch report: first start and first end marker per author."""
    users = []
    for user_id, user_messages in _group_by_author(messages, excluded_names).items():
        start: Optional[float] = None
        end: Optional[float] = None

        for message in user_messages:
            text = message.text.lower()
            if start is None and LUNCH_START_TAG in text:
                start = message.ts
            if end is None and any(tag in text for tag in LUNCH_END_TAGS):
                end = message.ts

        users.append(LunchUser(
            id=user_id,
            name=user_messages[0].user_name,
            status=_lunch_status(start is not None, end is not None),
            lunch_start=format_ts(start) if start is not None else None,
            lunch_end=format_ts(end) if end is not None else None,
            duration_seconds=end - start if start is not None and end is not None else None,
        ))

    return _report("lunch", channel, timeframe, users, now)


def _compute_post_status(
    kind: str,
    tag: str,
    messages: Iterable[SlackMessage],
    channel: str,
    timeframe: str,
    excluded_names: Iterable[str],
    now: Optional[datetime],
) -> StatusReport:
    users = []
    for user_id, user_messages in _group_by_author(messages, excluded_names).items():
        posted = [
            PostedMessage(timestamp=format_ts(m.ts), text=m.text)
            for m in user_messages
            if tag in m.text.lower()
        ]
        users.append(PostUser(
            id=user_id,
            name=user_messages[0].user_name,
            has_posted=bool(posted),
            messages=posted,
        ))

    return _report(kind, channel, timeframe, users, now)


def compute_update_status(
    messages: Iterable[SlackMessage],
    channel: str = "",
    timeframe: str = "today",
    excluded_names: Iterable[str] = (DEFAULT_STATUS_BOT_NAME,),
    now: Optional[datetime] = None,
) -> StatusReport:
    """Build the update report: every #update message per author."""
    return _compute_post_status("update", UPDATE_TAG, messages, channel, timeframe, excluded_names, now)


def compute_report_status(
    messages: Iterable[SlackMessage],
    channel: str = "",
    timeframe: str = "today",
    excluded_names: Iterable[str] = (DEFAULT_STATUS_BOT_NAME,),
    now: Optional[datetime] = None,
) -> StatusReport:
    """Build the daily-report summary: every #report message per author."""
    return _compute_post_status("report", REPORT_TAG, messages, channel, timeframe, excluded_names, now)


def _report(kind: str, channel: str, timeframe: str, users: list, now: Optional[datetime]) -> StatusReport:
    users = _sorted_users(users)
    return StatusReport(
        kind=kind,
        channel=channel,
        timeframe=timeframe,
        users=users,
        total=len(users),
        timestamp=(now or datetime.now()).astimezone().isoformat(timespec="seconds"),
    )


REPORT_BUILDERS = {
    "lunch": compute_lunch_status,
    "update": compute_update_status,
    "report": compute_report_status,
}
