"""
Slack Status Adapter

Wraps the Slack Web API calls the status reports need: channel lookup,
channel history within a timeframe, user names, and token validation.

Slack API errors are converted to typed errors with a closed error code
(see utils.errors) so callers can pick a remediation message.
"""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional
import aiohttp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from ..models import SlackMessage, StatusReport
from ..utils.errors import (
    ChannelNotFound,
    ConfigurationMissing,
    InvalidRequest,
    MissingScope,
    NotChannelMember,
    SlackAuthError,
    SlackError,
)
from ..utils.logger import get_logger
from .reports import REPORT_BUILDERS
from .timeframes import get_time_window, validate_timeframe

logger = get_logger(__name__)

CHANNEL_TYPES = "public_channel,private_channel"

# Transport failures raised by the aiohttp-based client before Slack answers
SLACK_NETWORK_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)

REQUIRED_SCOPES = [
    "channels:read",
    "channels:history",
    "users:read",
    "groups:read",  # Optional for private channels
]

AUTH_ERRORS = {"invalid_auth", "not_authed", "token_revoked", "token_expired", "account_inactive"}

# Message subtypes that carry a real post (everything else is channel noise)
POST_SUBTYPES = {None, "bot_message", "thread_broadcast", "file_share"}


def classify_slack_error(error: SlackApiError, operation: str, channel_name: Optional[str] = None) -> Exception:
    """Map a Slack API error response to a typed application error."""
    code = error.response.get("error", "") or "unknown_error"

    if code == "channel_not_found":
        return ChannelNotFound(channel_name or "unknown")
    if code == "not_in_channel":
        return NotChannelMember(channel_name or "unknown")
    if code == "missing_scope":
        return MissingScope(error.response.get("needed"))
    if code in AUTH_ERRORS:
        return SlackAuthError(code)
    return SlackError(operation, code)


class SlackStatusAdapter:
    """
    Slack access for the status tools.

    Constructed once at startup. When SLACK_BOT_TOKEN is not configured the
    adapter is still built, and every call raises ConfigurationMissing.
    """

    def __init__(
        self,
        client: Optional[AsyncWebClient],
        status_bot_name: str = "Status Bot",
    ):
        self.client = client
        self.status_bot_name = status_bot_name
        self._user_names: dict[str, str] = {}

    @classmethod
    def from_token(cls, token: Optional[str], status_bot_name: str = "Status Bot") -> "SlackStatusAdapter":
        client = AsyncWebClient(token=token) if token else None
        return cls(client, status_bot_name)

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _get_client(self) -> AsyncWebClient:
        if self.client is None:
            raise ConfigurationMissing("SLACK_BOT_TOKEN")
        return self.client

    async def _call(
        self,
        operation: str,
        func: Callable[..., Awaitable[Any]],
        channel_name: Optional[str] = None,
        **kwargs,
    ) -> Any:
        try:
            return await func(**kwargs)
        except SlackApiError as e:
            logger.warning(f"Slack {operation} failed: {e.response.get('error')}")
            raise classify_slack_error(e, operation, channel_name) from e
        except SLACK_NETWORK_ERRORS as e:
            detail = str(e) or type(e).__name__
            logger.warning(f"Slack {operation} unreachable: {detail}")
            raise SlackError(operation, detail) from e

    # ── Channels ─────────────────────────────────────────

    async def list_channels(self) -> list[dict]:
        """List every public and private channel visible to the token (all pages)."""
        client = self._get_client()
        channels: list[dict] = []
        cursor = None

        while True:
            kwargs = {"types": CHANNEL_TYPES, "limit": 1000, "exclude_archived": True}
            if cursor:
                kwargs["cursor"] = cursor
            result = await self._call("conversations.list", client.conversations_list, **kwargs)
            channels.extend(result.get("channels", []))

            cursor = (result.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return channels

    async def find_channel(self, name: str) -> dict:
        """
        Find a channel by exact name.

        Raises:
            ChannelNotFound: if no visible channel has that name
        """
        name = name.lstrip("#")
        for channel in await self.list_channels():
            if channel.get("name") == name:
                return channel
        raise ChannelNotFound(name)

    async def resolve_channel(self, name: str) -> str:
        """Resolve a channel name to its id."""
        channel = await self.find_channel(name)
        return channel["id"]

    # ── History ──────────────────────────────────────────

    async def get_user_name(self, user_id: str) -> str:
        """Get a display name for a user id (cached)."""
        if user_id in self._user_names:
            return self._user_names[user_id]

        client = self._get_client()
        try:
            result = await self._call("users.info", client.users_info, user=user_id)
        except SlackError as e:
            logger.warning(f"Could not resolve user {user_id}: {e}")
            return user_id

        user = result.get("user", {})
        profile = user.get("profile", {})
        name = profile.get("display_name") or user.get("real_name") or user.get("name") or user_id
        self._user_names[user_id] = name
        return name

    async def fetch_history(
        self,
        channel_id: str,
        timeframe: str,
        channel_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[SlackMessage]:
        """
        Fetch the channel's posts inside the timeframe window (all pages).

        Returns:
            Messages with resolved author names, oldest first
        """
        client = self._get_client()
        start, end = get_time_window(timeframe, now)
        oldest, latest = start.timestamp(), end.timestamp()

        raw: list[dict] = []
        cursor = None
        while True:
            kwargs = {
                "channel": channel_id,
                "oldest": f"{oldest:.6f}",
                "latest": f"{latest:.6f}",
                "limit": 200,
            }
            if cursor:
                kwargs["cursor"] = cursor
            result = await self._call(
                "conversations.history",
                client.conversations_history,
                channel_name=channel_name,
                **kwargs,
            )
            raw.extend(result.get("messages", []))

            cursor = (result.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break

        messages = []
        for msg in raw:
            if msg.get("type", "message") != "message" or msg.get("subtype") not in POST_SUBTYPES:
                continue
            ts = float(msg.get("ts", 0))
            if not (oldest <= ts < latest) or not msg.get("text"):
                continue

            if msg.get("user"):
                user_id = msg["user"]
                user_name = await self.get_user_name(user_id)
            else:
                user_id = msg.get("bot_id", "unknown")
                user_name = msg.get("username") or (msg.get("bot_profile") or {}).get("name") or user_id

            messages.append(SlackMessage(user_id=user_id, user_name=user_name, text=msg["text"], ts=ts))

        messages.sort(key=lambda m: m.ts)
        logger.info(
            f"Fetched {len(messages)} messages",
            extra={"extra_fields": {"channel": channel_id, "timeframe": timeframe}},
        )
        return messages

    # ── Reports ──────────────────────────────────────────

    async def get_status_report(
        self,
        kind: str,
        channel_name: str,
        timeframe: Optional[str] = "today",
        now: Optional[datetime] = None,
    ) -> StatusReport:
        """
        Build a lunch, update or report status for a channel.

        Raises:
            ConfigurationMissing, ChannelNotFound, NotChannelMember,
            MissingScope, SlackAuthError, SlackError
        """
        if kind not in REPORT_BUILDERS:
            raise InvalidRequest(f"Unknown status kind {kind!r}")
        timeframe = validate_timeframe(timeframe)
        name = channel_name.lstrip("#")

        channel = await self.find_channel(name)
        if not channel.get("is_member", False):
            raise NotChannelMember(name)

        messages = await self.fetch_history(channel["id"], timeframe, channel_name=name, now=now)
        return REPORT_BUILDERS[kind](
            messages,
            channel=name,
            timeframe=timeframe,
            excluded_names=(self.status_bot_name,),
            now=now,
        )

    # ── Diagnostics ──────────────────────────────────────

    async def validate_token(self) -> dict:
        """
        Check the bot token and what it can see.

        Never raises for Slack API or network errors; they are reported in the result.
        """
        if self.client is None:
            return {
                "valid": False,
                "status": "missing",
                "message": "SLACK_BOT_TOKEN is not set in environment variables",
                "required_scopes": REQUIRED_SCOPES,
            }

        try:
            auth = await self.client.auth_test()
        except SlackApiError as e:
            error = e.response.get("error", "unknown_error")
            return {
                "valid": False,
                "status": error,
                "message": f"Slack API error: {error}",
                "required_scopes": REQUIRED_SCOPES,
            }
        except SLACK_NETWORK_ERRORS as e:
            return {
                "valid": False,
                "status": "unreachable",
                "message": f"Could not reach Slack: {str(e) or type(e).__name__}",
                "required_scopes": REQUIRED_SCOPES,
            }

        channels_read = True
        channels: list[dict] = []
        try:
            channels = await self.list_channels()
        except (MissingScope, SlackAuthError, SlackError) as e:
            logger.warning(f"Channel listing failed during validation: {e}")
            channels_read = False

        member_channels = [c["name"] for c in channels if c.get("is_member")]

        return {
            "valid": True,
            "status": "verified",
            "bot_id": auth.get("bot_id"),
            "user_id": auth.get("user_id"),
            "team": auth.get("team"),
            "permissions": {"channels_read": channels_read},
            "message": "Slack token is valid",
            "channel_access": {
                "total_channels": len(channels),
                "accessible_channels": len(member_channels),
                "channels": member_channels[:10],
                "has_more": len(member_channels) > 10,
            },
            "required_scopes": REQUIRED_SCOPES,
        }
