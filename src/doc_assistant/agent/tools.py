"""
Chat Tools

Function schemas offered to the model on every turn. Argument models are
pydantic so the same definition produces the JSON schema and validates what
the model sends back.
"""

from dataclasses import dataclass
from typing import Optional, Type
from pydantic import BaseModel, Field

from ..models import CamelModel, Theme, Timeframe


class SetThemeArgs(CamelModel):
    theme: Theme = Field(description="The theme to switch to: 'light' or 'dark'")


class SlackStatusArgs(CamelModel):
    channel_name: str = Field(description="Slack channel name without the # prefix, e.g. 'general'")
    timeframe: Timeframe = Field(
        default="today",
        description="Which period to check: 'today', 'yesterday' or 'this_week'",
    )


@dataclass(frozen=True)
class ChatTool:
    name: str
    description: str
    args_model: Type[BaseModel]
    status_kind: Optional[str] = None

    def schema(self) -> dict:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_model.model_json_schema(by_alias=True),
            },
        }


SET_THEME = ChatTool(
    name="setTheme",
    description="Switch the chat interface between light and dark mode",
    args_model=SetThemeArgs,
)

GET_LUNCH_STATUS = ChatTool(
    name="getSlackLunchStatus",
    description="Get who has started and ended lunch (#lunchstart / #lunchend) in a Slack channel",
    args_model=SlackStatusArgs,
    status_kind="lunch",
)

GET_UPDATE_STATUS = ChatTool(
    name="getSlackUpdateStatus",
    description="Get who has posted a daily #update in a Slack channel",
    args_model=SlackStatusArgs,
    status_kind="update",
)

GET_REPORT_STATUS = ChatTool(
    name="getSlackReportStatus",
    description="Get who has posted a #report in a Slack channel",
    args_model=SlackStatusArgs,
    status_kind="report",
)

TOOLS: dict[str, ChatTool] = {
    tool.name: tool
    for tool in (SET_THEME, GET_LUNCH_STATUS, GET_UPDATE_STATUS, GET_REPORT_STATUS)
}


def tool_schemas() -> list[dict]:
    """OpenAI `tools` parameter for chat completions."""
    return [tool.schema() for tool in TOOLS.values()]
