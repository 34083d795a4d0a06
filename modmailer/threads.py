"""Commands that open and close mod-mail threads.

Besides the client methods listed in :mod:`modmailer.models`, these
commands use:

- ``await send_message(channel_id, content=..., allowed_mentions=...)``;
- ``await delete_message(channel_id, message_id)``;
- ``await fetch_channel(channel_id)``: an object whose ``guild_id`` is None
  for channels outside a server;
- ``await edit_message(channel_id, message_id, content=..., allowed_mentions=...)``;
- ``await edit_thread(thread_id, locked=..., archived=..., applied_tags=...)``,
  where ``applied_tags`` of None leaves the tags unchanged;
- ``await create_dm_channel(user)``: the ID of the direct-message channel;
- ``await create_forum_post(forum_id, name=..., content=..., embed=...,
  allowed_mentions=..., applied_tags=...)``: the ID of the new thread.

Every client call may raise :class:`~modmailer.models.HttpError`.
"""

from __future__ import annotations

from contextlib import suppress

from .formatting import (
    AllowedMentions,
    make_thread_info,
    make_thread_info_allowed_mentions,
    make_user_info_embed,
)
from .markdown import escape_markdown
from .models import CommandContext, HttpError, User, channel_mention, user_mention
from .storage import Thread

NO_THREAD_MESSAGE = "❌ No open thread in this channel."
BOT_CONTACT_MESSAGE = "❌ Bot users cannot receive direct messages."


async def _close(context: CommandContext, silent: bool, anonymous: bool) -> None:
    client = context.client
    config = context.data.config
    db = context.data.db

    thread_data = await db.get_thread(context.channel_id)
    if thread_data is None:
        await context.send(NO_THREAD_MESSAGE, ephemeral=True)
        return

    await context.defer()
    await db.delete_thread(context.channel_id)

    if anonymous:
        notification = "⛔ Thread closed."
    else:
        notification = (
            f"⛔ Thread closed by **{escape_markdown(context.author.display_name())}**."
        )
    if config.messages.thread_closed is not None:
        notification += "\n" + config.messages.thread_closed

    if not silent:
        # The user may no longer be reachable; the thread is closed regardless.
        with suppress(HttpError):
            await client.send_message(
                thread_data.dm_channel_id,
                content=notification,
                allowed_mentions=AllowedMentions(),
            )

    await context.say(f"⛔ Thread closed by **{user_mention(context.author.id)}**.")

    if context.message is not None:
        with suppress(HttpError):
            await client.delete_message(context.message.channel_id, context.message.id)

    channel = await client.fetch_channel(context.channel_id)
    if channel.guild_id is None:
        raise RuntimeError("Channel is not guild channel!")

    info = make_thread_info(
        config,
        thread_data.user_id,
        (thread_data.opened_by_id, thread_data.created_at),
        (context.author.id, context.created_at),
    )
    # A forum thread's starter message shares the thread's ID.
    await client.edit_message(
        context.channel_id,
        context.channel_id,
        content=info,
        allowed_mentions=make_thread_info_allowed_mentions(config),
    )

    closed_tag = config.forum_channel.closed_tag_id
    await client.edit_thread(
        context.channel_id,
        locked=True,
        archived=True,
        applied_tags=[closed_tag] if closed_tag is not None else None,
    )


async def close(context: CommandContext) -> None:
    """Close a mod-mail thread."""
    await _close(context, silent=False, anonymous=False)


async def anon_close(context: CommandContext) -> None:
    """Close a mod-mail thread anonymously."""
    await _close(context, silent=False, anonymous=True)


async def silent_close(context: CommandContext) -> None:
    """Close a mod-mail thread without telling the user."""
    await _close(context, silent=True, anonymous=True)


async def contact(context: CommandContext, user: User) -> None:
    """Create a new mod-mail thread for a user."""
    client = context.client
    config = context.data.config
    db = context.data.db

    if user.bot:
        await context.send(BOT_CONTACT_MESSAGE, ephemeral=True)
        return

    existing = await db.get_thread_by_user(user.id)
    if existing is not None:
        await context.send(
            f"❌ The specified user already has an open thread: "
            f"{channel_mention(existing.id)}.",
            ephemeral=True,
        )
        return

    await context.defer()

    dm_channel_id = await client.create_dm_channel(user)
    created_at = context.created_at

    open_tag = config.forum_channel.open_tag_id
    thread_id = await client.create_forum_post(
        config.forum_channel.id,
        name=f"Thread for {user.tag()}",
        content=make_thread_info(config, user.id, (context.author.id, created_at)),
        embed=await make_user_info_embed(client, config, user),
        allowed_mentions=make_thread_info_allowed_mentions(config),
        applied_tags=[open_tag] if open_tag is not None else [],
    )

    await db.insert_thread(
        Thread(
            id=thread_id,
            dm_channel_id=dm_channel_id,
            user_id=user.id,
            opened_by_id=context.author.id,
            created_at=created_at,
        )
    )

    await context.say(
        f"✅ Thread opened for {user_mention(user.id)}: {channel_mention(thread_id)}"
    )