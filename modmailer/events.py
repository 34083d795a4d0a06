"""Handlers for gateway events: relaying direct messages into forum threads.

Events reach :func:`handle_event` as ``(kind, payload)`` pairs:

- ``("message", Message)``: a new message anywhere the bot can see;
- ``("message_update", MessageUpdate)``: an edited message;
- ``("reaction_add", Reaction)`` and ``("reaction_remove", Reaction)``;
- ``("thread_delete", thread_id)``;
- ``("guild_member_addition", Member)``;
- ``("guild_member_removal", (guild_id, User))``.

Other kinds are ignored. Besides the client methods listed in
:mod:`modmailer.models`, the handlers use:

- ``client.current_user_id``: the bot's own user ID;
- ``await send_message(channel_id, content=..., embed=..., attachment=...,
  reply_to=..., allowed_mentions=...)``: the sent :class:`Message`;
- ``await edit_message(channel_id, message_id, embed=...)``;
- ``await add_reaction(channel_id, message_id, emoji)``;
- ``await delete_reaction(channel_id, message_id, user_id, emoji)``;
- ``await fetch_channel(channel_id)``: an object with ``guild_id`` and
  ``parent_id``;
- ``await create_forum_post(forum_id, name=..., content=..., embed=...,
  allowed_mentions=..., applied_tags=...)``: the ID of the new thread.

The bot's state is expected at ``data.config`` and ``data.db``.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from .attachments import clone_attachment, first_image_attachment
from .error_codes import UNKNOWN_CHANNEL, get_json_error_code
from .formatting import (
    AllowedMentions,
    make_message_embed,
    make_thread_info,
    make_thread_info_allowed_mentions,
    make_user_info_embed,
)
from .models import (
    MESSAGE_INLINE_REPLY,
    MESSAGE_REGULAR,
    HttpError,
    Member,
    Message,
    User,
    snowflake_created_at,
)
from .storage import ReceivedMessage, Thread

THREAD_STARTED_MESSAGE = "🧵 Started a new thread."
EDIT_FAILED_MESSAGE = "❌ An error occured - your edit did not go through."
CONTACT_WARNING = (
    "⚠️ The **contact** command must be used if you wish to open a new thread."
)
REJOINED_MESSAGE = "📥 The user has rejoined the server."
LEFT_MESSAGE = "📤 The user has left the server."

SUCCESS_EMOJI = "✅"
FAILURE_EMOJI = "❌"
PENDING_EMOJI = "⌛"


@dataclass(frozen=True)
class MessageUpdate:
    """An edit to a message; fields the edit left alone may be None."""

    id: int
    channel_id: int
    guild_id: int | None = None
    author: User | None = None
    content: str | None = None


@dataclass(frozen=True)
class Reaction:
    message_id: int
    channel_id: int
    emoji: str
    user_id: int | None = None


async def handle_event(client: Any, event: tuple[str, Any], data: Any) -> None:
    """Route one gateway event to its handlers."""
    kind, payload = event
    match kind:
        case "message":
            await handle_incoming_message(client, payload, data)
            await handle_thread_create_warning(client, payload, data)
        case "message_update":
            await handle_incoming_edit(client, payload, data)
        case "reaction_add":
            await handle_incoming_reaction_add(client, payload, data)
        case "reaction_remove":
            await handle_incoming_reaction_remove(client, payload, data)
        case "thread_delete":
            await handle_thread_delete(payload, data)
        case "guild_member_addition":
            await handle_thread_user_join(client, payload, data)
        case "guild_member_removal":
            guild_id, user = payload
            await handle_thread_user_leave(client, guild_id, user, data)
        case _:
            pass


async def handle_incoming_message(client: Any, message: Message, data: Any) -> None:
    """Relay a direct message into its thread, marking it as failed on error."""
    try:
        await _relay_incoming_message(client, message, data)
    except Exception:
        with suppress(HttpError):
            await client.add_reaction(message.channel_id, message.id, FAILURE_EMOJI)
        raise


async def _relay_incoming_message(client: Any, message: Message, data: Any) -> None:
    if message.guild_id is not None:
        return
    if message.author.bot:
        return
    if message.kind not in (MESSAGE_REGULAR, MESSAGE_INLINE_REPLY):
        return

    db = data.db
    existing = await db.get_thread_by_dm_channel(message.channel_id)
    if existing is not None:
        thread_id = existing.id
    else:
        if await db.is_user_blocked(message.author.id):
            return
        thread_id = await _create_thread_from(client, message, data)

    image = first_image_attachment(message.attachments)
    image_filename = image.filename if image is not None else None
    upload = await clone_attachment(client, image) if image is not None else None

    embed = make_message_embed(
        client,
        data.config,
        message.author,
        message.content,
        image_filename,
        outgoing=False,
        anonymous=False,
        user_info=True,
    )

    try:
        forwarded = await client.send_message(thread_id, embed=embed, attachment=upload)
    except HttpError as error:
        # Only a vanished thread is replaced; deleting one is irreversible.
        if get_json_error_code(error) != UNKNOWN_CHANNEL:
            raise
        if await db.is_user_blocked(message.author.id):
            return
        await db.delete_thread(thread_id)
        thread_id = await _create_thread_from(client, message, data)
        forwarded = await client.send_message(thread_id, embed=embed, attachment=upload)

    await db.insert_received_message(
        ReceivedMessage(
            id=message.id,
            thread_id=thread_id,
            forwarded_message_id=forwarded.id,
            image_filename=image_filename,
        )
    )

    await client.add_reaction(message.channel_id, message.id, SUCCESS_EMOJI)


async def _create_thread_from(client: Any, message: Message, data: Any) -> int:
    config = data.config
    author = message.author
    created_at = snowflake_created_at(message.id)

    open_tag = config.forum_channel.open_tag_id
    thread_id = await client.create_forum_post(
        config.forum_channel.id,
        name=f"Thread from {author.tag()}",
        content=make_thread_info(config, author.id, (author.id, created_at)),
        embed=await make_user_info_embed(client, config, author),
        allowed_mentions=make_thread_info_allowed_mentions(config),
        applied_tags=[open_tag] if open_tag is not None else [],
    )

    await data.db.insert_thread(
        Thread(
            id=thread_id,
            dm_channel_id=message.channel_id,
            user_id=author.id,
            opened_by_id=author.id,
            created_at=created_at,
        )
    )

    notice = THREAD_STARTED_MESSAGE
    if config.messages.thread_open is not None:
        notice += "\n" + config.messages.thread_open
    await client.send_message(message.channel_id, content=notice)

    return thread_id


async def handle_incoming_edit(client: Any, update: MessageUpdate, data: Any) -> None:
    """Carry a user's edit of a direct message over to the relayed copy."""
    if update.guild_id is not None:
        return
    if update.author is None or update.content is None:
        return

    received = await data.db.get_received_message(update.id)
    if received is None:
        return

    await client.add_reaction(update.channel_id, update.id, PENDING_EMOJI)

    embed = make_message_embed(
        client,
        data.config,
        update.author,
        update.content,
        received.image_filename,
        outgoing=False,
        anonymous=False,
        user_info=True,
    )

    try:
        await client.edit_message(
            received.thread_id, received.forwarded_message_id, embed=embed
        )
    except HttpError:
        await client.send_message(
            update.channel_id,
            content=EDIT_FAILED_MESSAGE,
            reply_to=update.id,
            allowed_mentions=AllowedMentions(),
        )

    await client.delete_reaction(
        update.channel_id, update.id, client.current_user_id, PENDING_EMOJI
    )


async def handle_incoming_reaction_add(client: Any, reaction: Reaction, data: Any) -> None:
    """Mirror a user's reaction on a relayed reply onto the staff's message."""
    sent = await data.db.get_sent_message_by_forwarded_message(reaction.message_id)
    if sent is None:
        return
    # The bot may lack access to the emoji.
    with suppress(HttpError):
        await client.add_reaction(sent.thread_id, sent.id, reaction.emoji)


async def handle_incoming_reaction_remove(
    client: Any, reaction: Reaction, data: Any
) -> None:
    """Remove the mirrored reaction when the user takes theirs back."""
    sent = await data.db.get_sent_message_by_forwarded_message(reaction.message_id)
    if sent is None:
        return
    # The reaction may have been added while the bot was offline.
    with suppress(HttpError):
        await client.delete_reaction(
            sent.thread_id, sent.id, client.current_user_id, reaction.emoji
        )


async def handle_thread_create_warning(client: Any, message: Message, data: Any) -> None:
    """Warn staff who open a forum thread by hand instead of using contact."""
    # A thread's starter message has the same ID as the thread.
    if message.id != message.channel_id:
        return
    if message.author.id == client.current_user_id:
        return

    channel = await client.fetch_channel(message.channel_id)
    if channel.guild_id is None:
        return
    parent_id = getattr(channel, "parent_id", None)
    if parent_id is None or parent_id != data.config.forum_channel.id:
        return

    await client.send_message(
        message.channel_id, content=CONTACT_WARNING, reply_to=message.id
    )


async def handle_thread_delete(thread_id: int, data: Any) -> None:
    """Forget a thread whose forum post was deleted."""
    if await data.db.get_thread(thread_id) is None:
        return
    await data.db.delete_thread(thread_id)


async def handle_thread_user_join(client: Any, member: Member, data: Any) -> None:
    """Tell a user's open thread that they rejoined the server."""
    if member.guild_id != data.config.server_id:
        return
    thread = await data.db.get_thread_by_user(member.user.id)
    if thread is None:
        return
    await client.send_message(thread.id, content=REJOINED_MESSAGE)


async def handle_thread_user_leave(
    client: Any, guild_id: int, user: User, data: Any
) -> None:
    """Tell a user's open thread that they left the server."""
    if guild_id != data.config.server_id:
        return
    thread = await data.db.get_thread_by_user(user.id)
    if thread is None:
        return
    await client.send_message(thread.id, content=LEFT_MESSAGE)