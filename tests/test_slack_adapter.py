"""
Slack adapter tests against a fake AsyncWebClient.
"""

import asyncio
from datetime import datetime

import aiohttp
import pytest

from conftest import FakeSlackClient, slack_error, slack_post
from doc_assistant.slack.adapter import REQUIRED_SCOPES, SlackStatusAdapter, classify_slack_error
from doc_assistant.utils.errors import (
    ChannelNotFound,
    ConfigurationMissing,
    InvalidRequest,
    MissingScope,
    NotChannelMember,
    SlackAuthError,
    SlackError,
)

NOW = datetime(2026, 10, 14, 15, 0).astimezone()
NOON = datetime(2026, 10, 14, 12, 0).astimezone().timestamp()
YESTERDAY_NOON = NOON - 24 * 3600


@pytest.fixture
def adapter(slack_client):
    return SlackStatusAdapter(slack_client, status_bot_name="Status Bot")


# ── Error classification ─────────────────────────────────

@pytest.mark.parametrize("code, expected", [
    ("channel_not_found", ChannelNotFound),
    ("not_in_channel", NotChannelMember),
    ("missing_scope", MissingScope),
    ("invalid_auth", SlackAuthError),
    ("token_revoked", SlackAuthError),
    ("ratelimited", SlackError),
])
def test_classify_slack_error(code, expected):
    assert isinstance(classify_slack_error(slack_error(code), "conversations.history", "general"), expected)


# ── Channels ─────────────────────────────────────────────

def test_resolve_channel(adapter):
    assert asyncio.run(adapter.resolve_channel("#general")) == "C001"


def test_resolve_channel_follows_pagination(slack_client, adapter):
    slack_client.channel_pages = [
        [{"id": "C001", "name": "general", "is_member": True}],
        [{"id": "C009", "name": "lunch-crew", "is_member": True}],
    ]

    assert asyncio.run(adapter.resolve_channel("lunch-crew")) == "C009"
    list_calls = [kwargs for method, kwargs in slack_client.calls if method == "conversations_list"]
    assert len(list_calls) == 2
    assert list_calls[1]["cursor"] == "1"


def test_unknown_channel(adapter):
    with pytest.raises(ChannelNotFound) as exc:
        asyncio.run(adapter.resolve_channel("does-not-exist"))
    assert exc.value.channel_name == "does-not-exist"


@pytest.mark.parametrize("error", [
    aiohttp.ClientConnectionError("Cannot connect to host slack.com:443"),
    asyncio.TimeoutError(),
])
def test_network_failure_is_a_slack_error(slack_client, adapter, error):
    slack_client.errors["conversations_list"] = error

    with pytest.raises(SlackError) as exc:
        asyncio.run(adapter.resolve_channel("general"))
    assert exc.value.code.value == "upstream_error"
    assert exc.value.user_message.startswith("The Slack request failed")
    assert isinstance(exc.value.__cause__, type(error))


def test_missing_token():
    adapter = SlackStatusAdapter(None)

    assert adapter.is_configured is False
    with pytest.raises(ConfigurationMissing) as exc:
        asyncio.run(adapter.resolve_channel("general"))
    assert exc.value.variable == "SLACK_BOT_TOKEN"


def test_from_token_without_token():
    assert SlackStatusAdapter.from_token(None).is_configured is False
    assert SlackStatusAdapter.from_token("xoxb-test").is_configured is True


# ── History ──────────────────────────────────────────────

def test_fetch_history_filters_window_and_noise(slack_client, adapter):
    slack_client.history["C001"] = [
        slack_post("U002", "#lunchend", NOON + 1800),
        slack_post("U001", "#lunchstart", NOON),
        slack_post("U001", "joined", NOON + 60, subtype="channel_join"),
        slack_post("U001", "", NOON + 120),
        slack_post("U001", "#update from yesterday", YESTERDAY_NOON),
        {"type": "message", "subtype": "bot_message", "bot_id": "B42", "username": "deploy-bot",
         "text": "#update deployed", "ts": f"{NOON + 600:.6f}"},
    ]

    messages = asyncio.run(adapter.fetch_history("C001", "today", now=NOW))

    assert [(m.user_name, m.text) for m in messages] == [
        ("alice", "#lunchstart"),
        ("deploy-bot", "#update deployed"),
        ("Bob Jones", "#lunchend"),
    ]
    history_call = next(kwargs for method, kwargs in slack_client.calls if method == "conversations_history")
    assert float(history_call["oldest"]) == pytest.approx(NOW.replace(hour=0).timestamp())
    assert float(history_call["latest"]) == pytest.approx(NOW.timestamp())


def test_user_names_are_cached(slack_client, adapter):
    slack_client.history["C001"] = [
        slack_post("U001", "#update one", NOON),
        slack_post("U001", "#update two", NOON + 60),
    ]

    asyncio.run(adapter.fetch_history("C001", "today", now=NOW))

    assert [m for m, _ in slack_client.calls].count("users_info") == 1


def test_unknown_user_falls_back_to_id(slack_client, adapter):
    slack_client.history["C001"] = [slack_post("U404", "#update", NOON)]

    messages = asyncio.run(adapter.fetch_history("C001", "today", now=NOW))

    assert messages[0].user_name == "U404"


# ── Reports ──────────────────────────────────────────────

def test_lunch_report(slack_client, adapter):
    slack_client.history["C001"] = [
        slack_post("U001", "#lunchstart", NOON),
        slack_post("U001", "#lunchend", NOON + 2400),
        slack_post("U002", "#lunchstart", NOON + 300),
    ]

    report = asyncio.run(adapter.get_status_report("lunch", "general", "today", now=NOW))

    statuses = {u.name: u.status for u in report.users}
    assert statuses == {"alice": "complete", "Bob Jones": "missing #lunchend"}
    assert report.channel == "general"


def test_status_bot_posts_ignored(slack_client, adapter):
    slack_client.history["C001"] = [
        {"type": "message", "subtype": "bot_message", "bot_id": "B1", "username": "Status Bot",
         "text": "Time to post your #update", "ts": f"{NOON:.6f}"},
        slack_post("U001", "#update done", NOON + 60),
    ]

    report = asyncio.run(adapter.get_status_report("update", "general", now=NOW))

    assert [u.name for u in report.users] == ["alice"]


def test_bot_not_member(adapter, slack_client):
    with pytest.raises(NotChannelMember) as exc:
        asyncio.run(adapter.get_status_report("lunch", "random", now=NOW))
    assert "/invite" in exc.value.user_message
    assert not any(method == "conversations_history" for method, _ in slack_client.calls)


def test_not_in_channel_from_history(slack_client, adapter):
    slack_client.errors["conversations_history"] = slack_error("not_in_channel")

    with pytest.raises(NotChannelMember):
        asyncio.run(adapter.get_status_report("report", "general", now=NOW))


def test_missing_scope_from_history(slack_client, adapter):
    slack_client.errors["conversations_history"] = slack_error("missing_scope", needed="channels:history")

    with pytest.raises(MissingScope) as exc:
        asyncio.run(adapter.get_status_report("update", "general", now=NOW))
    assert exc.value.needed == "channels:history"


def test_unknown_kind_and_timeframe(adapter):
    with pytest.raises(InvalidRequest):
        asyncio.run(adapter.get_status_report("birthday", "general", now=NOW))
    with pytest.raises(InvalidRequest):
        asyncio.run(adapter.get_status_report("lunch", "general", "next_week", now=NOW))


# ── Token validation ─────────────────────────────────────

def test_validate_token(adapter):
    result = asyncio.run(adapter.validate_token())

    assert result["valid"] is True
    assert result["status"] == "verified"
    assert result["team"] == "Acme"
    assert result["permissions"] == {"channels_read": True}
    assert result["channel_access"] == {
        "total_channels": 2,
        "accessible_channels": 1,
        "channels": ["general"],
        "has_more": False,
    }


def test_validate_token_without_channel_scope(slack_client, adapter):
    slack_client.errors["conversations_list"] = slack_error("missing_scope")

    result = asyncio.run(adapter.validate_token())

    assert result["valid"] is True
    assert result["permissions"] == {"channels_read": False}
    assert result["channel_access"]["total_channels"] == 0


def test_validate_invalid_token(slack_client, adapter):
    slack_client.errors["auth_test"] = slack_error("invalid_auth")

    result = asyncio.run(adapter.validate_token())

    assert result["valid"] is False
    assert result["status"] == "invalid_auth"
    assert result["required_scopes"] == REQUIRED_SCOPES


def test_validate_unreachable_slack(slack_client, adapter):
    slack_client.errors["auth_test"] = aiohttp.ServerTimeoutError("Timeout on reading data from socket")

    result = asyncio.run(adapter.validate_token())

    assert result["valid"] is False
    assert result["status"] == "unreachable"
    assert "Timeout on reading data" in result["message"]


def test_validate_missing_token():
    result = asyncio.run(SlackStatusAdapter(None).validate_token())

    assert result["valid"] is False
    assert result["status"] == "missing"


def test_many_member_channels_are_truncated():
    channels = [{"id": f"C{i:03}", "name": f"team-{i}", "is_member": True} for i in range(12)]
    adapter = SlackStatusAdapter(FakeSlackClient(channels=channels))

    access = asyncio.run(adapter.validate_token())["channel_access"]

    assert access["accessible_channels"] == 12
    assert len(access["channels"]) == 10
    assert access["has_more"] is True
