"""Bot configuration loaded from a TOML file."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_MAX_ID = 2**64


def _snowflake(value: Any, name: str) -> int:
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name}: expected an ID, got {value!r}")
    if not 0 < value < _MAX_ID:
        raise ValueError(f"{name}: ID out of range: {value}")
    return value


def _optional_snowflake(data: dict, key: str, prefix: str) -> int | None:
    value = data.get(key)
    return None if value is None else _snowflake(value, f"{prefix}.{key}")


def _string(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name}: expected a string, got {value!r}")
    return value


def _table(value: Any, name: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"{name}: expected a table, got {value!r}")
    return value


def _required(data: dict, key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


@dataclass(frozen=True)
class ForumChannelConfig:
    id: int
    open_tag_id: int | None = None
    closed_tag_id: int | None = None
    mention_role_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ForumChannelConfig:
        data = _table(data, "forum_channel")
        return cls(
            id=_snowflake(_required(data, "id"), "forum_channel.id"),
            open_tag_id=_optional_snowflake(data, "open_tag_id", "forum_channel"),
            closed_tag_id=_optional_snowflake(data, "closed_tag_id", "forum_channel"),
            mention_role_id=_optional_snowflake(data, "mention_role_id", "forum_channel"),
        )


@dataclass(frozen=True)
class MessageConfig:
    status: str = "Message me to contact staff!"
    anonymous_reply_title: str = "Staff Member"
    thread_open: str | None = None
    thread_closed: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> MessageConfig:
        data = _table(data, "messages")
        defaults = cls()
        optional = {
            key: None if data.get(key) is None else _string(data[key], f"messages.{key}")
            for key in ("thread_open", "thread_closed")
        }
        return cls(
            status=_string(data.get("status", defaults.status), "messages.status"),
            anonymous_reply_title=_string(
                data.get("anonymous_reply_title", defaults.anonymous_reply_title),
                "messages.anonymous_reply_title",
            ),
            **optional,
        )


@dataclass(frozen=True)
class Config:
    server_id: int
    forum_channel: ForumChannelConfig
    staff_roles: frozenset[int] = frozenset()
    prefix: str = "="
    messages: MessageConfig = field(default_factory=MessageConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Build a configuration from parsed TOML data, raising ValueError if invalid."""
        data = _table(data, "config")
        roles = data.get("staff_roles", [])
        if not isinstance(roles, list):
            raise ValueError(f"staff_roles: expected an array, got {roles!r}")
        return cls(
            server_id=_snowflake(_required(data, "server_id"), "server_id"),
            forum_channel=ForumChannelConfig.from_dict(_required(data, "forum_channel")),
            staff_roles=frozenset(_snowflake(role, "staff_roles") for role in roles),
            prefix=_string(data.get("prefix", "="), "prefix"),
            messages=MessageConfig.from_dict(data.get("messages", {})),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Read a configuration from a TOML file."""
        text = Path(path).read_text(encoding="utf-8")
        return cls.from_dict(tomllib.loads(text))