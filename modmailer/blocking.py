"""Commands that stop and allow users opening threads.

Besides the client methods listed in :mod:`modmailer.models`, these
commands use ``await client.send_direct_message(user, content)``, which
raises :class:`~modmailer.models.HttpError` when the user cannot be
reached. The bot's state is expected at ``context.data.config`` and
``context.data.db``.
"""

from __future__ import annotations

from contextlib import suppress

from .markdown import escape_markdown
from .models import CommandContext, HttpError, User

APP_BLOCK_MESSAGE = "❌ Blocks upon an app have no effect."
ALREADY_BLOCKED_MESSAGE = "❌ The specified user is already blocked."
NOT_BLOCKED_MESSAGE = "❌ The specified user is not blocked."
BLOCKED_NOTICE = "🚫 You have been blocked from creating threads."
UNBLOCKED_NOTICE = "\u26d3\ufe0f\u200d\U0001f4a5 You have been unblocked."
SELF_BLOCK_MESSAGE = "✅ Why do this to yourself?"


async def _notify(context: CommandContext, user: User, content: str) -> None:
    await context.defer()
    # The user may have direct messages closed; the block still stands.
    with suppress(HttpError):
        await context.client.send_direct_message(user, content)


async def _block(context: CommandContext, user: User, silent: bool) -> None:
    if user.bot:
        await context.send(APP_BLOCK_MESSAGE, ephemeral=True)
        return

    db = context.data.db
    if await db.is_user_blocked(user.id):
        await context.send(ALREADY_BLOCKED_MESSAGE, ephemeral=True)
        return

    await db.block_user(user.id)

    if not silent:
        await _notify(context, user, BLOCKED_NOTICE)

    if context.author.id == user.id:
        await context.reply(SELF_BLOCK_MESSAGE)
    else:
        await context.reply(f"✅ Blocked **{escape_markdown(user.tag())}**!")


async def _unblock(context: CommandContext, user: User, silent: bool) -> None:
    if user.bot:
        await context.send(APP_BLOCK_MESSAGE, ephemeral=True)
        return

    db = context.data.db
    if not await db.is_user_blocked(user.id):
        await context.send(NOT_BLOCKED_MESSAGE, ephemeral=True)
        return

    await db.unblock_user(user.id)

    if not silent:
        await _notify(context, user, UNBLOCKED_NOTICE)

    await context.reply(f"✅ Unblocked **{escape_markdown(user.tag())}**!")


async def block(context: CommandContext, user: User) -> None:
    """Block a user from creating threads."""
    await _block(context, user, silent=False)


async def silent_block(context: CommandContext, user: User) -> None:
    """Block a user from creating threads without notifying them."""
    await _block(context, user, silent=True)


async def unblock(context: CommandContext, user: User) -> None:
    """Unblock a user blocked using the block command."""
    await _unblock(context, user, silent=False)


async def silent_unblock(context: CommandContext, user: User) -> None:
    """Unblock a user blocked using the block command without notifying them."""
    await _unblock(context, user, silent=True)