"""Embeds and text shown in forum threads and direct messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .config import Config
from .models import (
    RELATIVE_TIME,
    SHORT_DATE_TIME,
    HttpError,
    User,
    format_timestamp,
    role_mention,
    user_mention,
)

GREEN = 0x57F287
YELLOW = 0xFEE75C
BLURPLE = 0x5865F2


@dataclass
class Embed:
    description: str | None = None
    color: int | None = None
    author_name: str | None = None
    author_icon_url: str | None = None
    footer: str | None = None
    image_url: str | None = None
    fields: list[tuple[str, str, bool]] = field(default_factory=list)


@dataclass(frozen=True)
class AllowedMentions:
    """Which mentions in a message may notify; empty means none."""

    roles: tuple[int, ...] = ()
    users: tuple[int, ...] = ()


def _footer(user: User) -> str:
    return f"Username: {user.tag()} ({user.id})"


def make_message_embed(
    client: Any,
    config: Config,
    author: User,
    content: str,
    image_filename: str | None = None,
    outgoing: bool = False,
    anonymous: bool = False,
    user_info: bool = False,
) -> Embed:
    """Build the embed that carries a relayed message."""
    embed = Embed(description=content, color=GREEN if outgoing else YELLOW)

    if anonymous:
        embed.author_name = config.messages.anonymous_reply_title
        embed.author_icon_url = client.guild_icon_url(config.server_id) or ""
    else:
        embed.author_name = author.display_name()
        embed.author_icon_url = author.avatar_url() or author.default_avatar_url()

    if user_info:
        embed.footer = _footer(author)

    if image_filename is not None:
        embed.image_url = f"attachment://{image_filename}"

    return embed


def make_thread_info(
    config: Config,
    user_id: int,
    opened: tuple[int, datetime],
    closed: tuple[int, datetime] | None = None,
) -> str:
    """Build the text at the top of a thread saying who opened and closed it."""
    opened_by, opened_at = opened
    opened_stamp = format_timestamp(opened_at, RELATIVE_TIME)
    lines = []

    role = config.forum_channel.mention_role_id
    if role is not None:
        lines.append(f"{role_mention(role)}\n")

    if user_id == opened_by:
        lines.append(f"📩 Thread opened by {user_mention(user_id)} {opened_stamp}")
    else:
        lines.append(
            f"📩 Thread for {user_mention(user_id)} opened by "
            f"{user_mention(opened_by)} {opened_stamp}"
        )

    if closed is not None:
        closed_by, closed_at = closed
        lines.append(
            f"⛔ Thread closed by {user_mention(closed_by)} "
            f"{format_timestamp(closed_at, RELATIVE_TIME)}"
        )

    return "".join(line + "\n" for line in lines)


def make_thread_info_allowed_mentions(config: Config) -> AllowedMentions:
    role = config.forum_channel.mention_role_id
    return AllowedMentions(roles=(role,)) if role is not None else AllowedMentions()


async def make_user_info_embed(client: Any, config: Config, user: User) -> Embed:
    """Build the embed describing a user at the start of a thread."""
    try:
        member = await client.fetch_member(config.server_id, user.id)
    except HttpError:
        member = None

    embed = Embed(
        color=BLURPLE,
        author_name=user.display_name(),
        author_icon_url=user.avatar_url() or user.default_avatar_url(),
        footer=_footer(user),
    )
    embed.fields.append(
        ("Account Created At", format_timestamp(user.created_at(), SHORT_DATE_TIME), True)
    )

    if member is not None:
        joined = (
            format_timestamp(member.joined_at, SHORT_DATE_TIME)
            if member.joined_at is not None
            else "*Unknown Date*"
        )
        embed.fields.append(("Server Member Since", joined, True))

        roles = client.member_roles(member)
        if roles is not None:
            roles_text = " ".join(role_mention(role) for role in roles) or "*No Roles*"
            embed.fields.append(("Roles", roles_text, False))

    return embed