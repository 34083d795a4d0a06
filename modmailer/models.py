"""Chat platform objects and the helpers that render them.

The bot talks to the chat service through a client object. The parts of
that client used here are:

- ``guild_icon_url(guild_id)``: the cached icon URL of a server, or None;
- ``await fetch_member(guild_id, user_id)``: a :class:`Member`, raising
  :class:`HttpError` when it cannot be fetched;
- ``member_roles(member)``: the cached role IDs of a member, or None when
  the server is not cached;
- ``await download(url)``: the bytes behind a URL;
- ``await respond(context, content=..., embed=..., attachment=...,
  ephemeral=..., reply=...)``: answer a command, returning the sent
  :class:`Message`;
- ``await defer(context, ephemeral=...)``: acknowledge a command.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

CDN_BASE = "https://cdn.discordapp.com"
SNOWFLAKE_EPOCH = datetime(2015, 1, 1, tzinfo=timezone.utc)

MESSAGE_REGULAR = "regular"
MESSAGE_INLINE_REPLY = "inline_reply"

RELATIVE_TIME = "R"
SHORT_DATE_TIME = "f"


class HttpError(Exception):
    """A request to the chat service failed."""

    def __init__(self, status: int, message: str = "", code: int | None = None):
        super().__init__(f"HTTP {status}: {message}" if message else f"HTTP {status}")
        self.status = status
        self.message = message
        self.code = code


def snowflake_created_at(snowflake: int) -> datetime:
    """Return the creation time encoded in a snowflake ID."""
    return SNOWFLAKE_EPOCH + timedelta(milliseconds=snowflake >> 22)


def user_mention(user_id: int) -> str:
    return f"<@{user_id}>"


def role_mention(role_id: int) -> str:
    return f"<@&{role_id}>"


def channel_mention(channel_id: int) -> str:
    return f"<#{channel_id}>"


def format_timestamp(when: datetime, style: str | None = None) -> str:
    """Render a timestamp the client displays in the reader's locale."""
    unix = math.floor(when.timestamp())
    if style is None:
        return f"<t:{unix}>"
    return f"<t:{unix}:{style}>"


@dataclass(frozen=True)
class User:
    id: int
    name: str
    discriminator: int | None = None
    global_name: str | None = None
    avatar: str | None = None
    bot: bool = False

    def display_name(self) -> str:
        return self.global_name or self.name

    def tag(self) -> str:
        if self.discriminator:
            return f"{self.name}#{self.discriminator:04}"
        return self.name

    def avatar_url(self) -> str | None:
        if not self.avatar:
            return None
        ext = "gif" if self.avatar.startswith("a_") else "webp"
        return f"{CDN_BASE}/avatars/{self.id}/{self.avatar}.{ext}?size=1024"

    def default_avatar_url(self) -> str:
        if self.discriminator:
            index = self.discriminator % 5
        else:
            index = (self.id >> 22) % 6
        return f"{CDN_BASE}/embed/avatars/{index}.png"

    def created_at(self) -> datetime:
        return snowflake_created_at(self.id)


@dataclass
class Member:
    user: User
    guild_id: int
    roles: list[int] = field(default_factory=list)
    joined_at: datetime | None = None


@dataclass(frozen=True)
class Attachment:
    id: int
    filename: str
    url: str
    content_type: str | None = None


@dataclass
class Message:
    id: int
    channel_id: int
    author: User
    content: str = ""
    guild_id: int | None = None
    kind: str = MESSAGE_REGULAR
    attachments: list[Attachment] = field(default_factory=list)
    referenced_message_id: int | None = None


@dataclass
class CommandContext:
    """One invocation of a command.

    ``message`` is the invoking message for prefix commands and None for
    application (slash or context-menu) commands.
    """

    client: Any
    data: Any
    author: User
    channel_id: int
    guild_id: int | None
    created_at: datetime
    message: Message | None = None

    @property
    def is_application(self) -> bool:
        return self.message is None

    async def author_member(self) -> Member | None:
        if self.guild_id is None:
            return None
        try:
            return await self.client.fetch_member(self.guild_id, self.author.id)
        except HttpError:
            return None

    async def send(
        self,
        content: str | None = None,
        *,
        embed: Any = None,
        attachment: Any = None,
        ephemeral: bool = False,
        reply: bool = False,
    ) -> Message:
        return await self.client.respond(
            self,
            content=content,
            embed=embed,
            attachment=attachment,
            ephemeral=ephemeral,
            reply=reply,
        )

    async def say(self, content: str) -> Message:
        return await self.send(content)

    async def reply(self, content: str) -> Message:
        return await self.send(content, reply=True)

    async def defer(self, ephemeral: bool = False) -> None:
        await self.client.defer(self, ephemeral=ephemeral)


async def require_staff(context: CommandContext) -> bool:
    """Whether the invoking member holds any configured staff role."""
    member = await context.author_member()
    if member is None:
        return False
    return any(role in member.roles for role in context.data.config.staff_roles)