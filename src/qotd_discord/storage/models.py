from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

# ping role values with a special meaning, anything else is a role id
PING_ROLE_OFF = "0"
PING_ROLE_EVERYONE = "1"


class Question(BaseModel):
    """Question from the global pool."""

    model_config = ConfigDict(frozen=True)

    id: int
    text: str
    in_use: bool

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Question:
        return cls(id=row["question_id"], text=row["question_string"], in_use=row["in_use"])


class CustomQuestion(BaseModel):
    """Question submitted by the administrators of a single guild."""

    model_config = ConfigDict(frozen=True)

    id: int
    guild_id: str
    text: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> CustomQuestion:
        return cls(id=row["question_id"], guild_id=row["guild_id"], text=row["question_string"])


class Poll(BaseModel):
    """Poll from the global pool, the first option is the poll question."""

    model_config = ConfigDict(frozen=True)

    id: int
    options: tuple[str, ...]
    in_use: bool

    @property
    def question(self) -> str:
        return self.options[0] if self.options else ""

    @property
    def answers(self) -> tuple[str, ...]:
        return self.options[1:]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Poll:
        return cls(id=row["poll_id"], options=tuple(row["poll_string"]), in_use=row["in_use"])


class CustomPoll(BaseModel):
    """Poll submitted by the administrators of a single guild."""

    model_config = ConfigDict(frozen=True)

    id: int
    guild_id: str
    options: tuple[str, ...]

    @property
    def question(self) -> str:
        return self.options[0] if self.options else ""

    @property
    def answers(self) -> tuple[str, ...]:
        return self.options[1:]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> CustomPoll:
        return cls(id=row["poll_id"], guild_id=row["guild_id"], options=tuple(row["poll_string"]))


class ChannelConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: str
    channel_id: str


class PingRoleConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: str
    role_id: str

    @property
    def is_off(self) -> bool:
        return self.role_id == PING_ROLE_OFF

    @property
    def is_everyone(self) -> bool:
        return self.role_id == PING_ROLE_EVERYONE
