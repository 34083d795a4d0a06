"""Commands that relay staff replies to a thread's user and amend them.

Besides the client methods listed in :mod:`modmailer.models`, these
commands use:

- ``await send_message(channel_id, content=..., embed=..., attachment=...)``:
  the sent :class:`~modmailer.models.Message`;
- ``await edit_message(channel_id, message_id, embed=...)``;
- ``await delete_message(channel_id, message_id)``.

Every client call may raise :class:`~modmailer.models.HttpError`. The bot's
state is expected at ``context.data.config`` and ``context.data.db``.
"""

from __future__ import annotations

from contextlib import suppress

from .attachments import UploadFile, clone_attachment, first_image_attachment
from .error_codes import CANNOT_MESSAGE, get_json_error_code
from .formatting import make_message_embed
from .models import CommandContext, HttpError, Message
from .storage import SentMessage, Thread

NO_THREAD_MESSAGE = "❌ No open thread in this channel."
CANNOT_MESSAGE_TEXT = (
    "❌ Cannot currently send messages to the user. This is most likely because:\n"
    "- The app has been blocked.\n"
    "- The user does not share any mutual servers.\n"
    "- The users privacy settings do not allow direct messages."
)
NOT_A_REPLY_MESSAGE = "❌ Please run this command as a reply to a message."
UNKNOWN_REPLY_MESSAGE = (
    "❌ This message was not sent with the reply command or the thread was closed."
)
NOT_AUTHOR_MESSAGE = "❌ This reply was not authored by you."
DELETED_MESSAGE = "✅ Deleted reply."


async def _delete_invocation(context: CommandContext) -> None:
    if context.message is not None:
        with suppress(HttpError):
            await context.client.delete_message(
                context.message.channel_id, context.message.id
            )


async def _reply(context: CommandContext, message: str, anonymous: bool) -> None:
    client = context.client
    config = context.data.config
    db = context.data.db

    thread = await db.get_thread(context.channel_id)
    if thread is None:
        await context.send(NO_THREAD_MESSAGE, ephemeral=True)
        return

    await context.defer()

    image = (
        first_image_attachment(context.message.attachments)
        if context.message is not None
        else None
    )
    upload: UploadFile | None = (
        await clone_attachment(client, image) if image is not None else None
    )
    image_filename = image.filename if image is not None else None

    forwarded_embed = make_message_embed(
        client,
        config,
        context.author,
        message,
        image_filename,
        outgoing=False,
        anonymous=anonymous,
        user_info=False,
    )
    try:
        forwarded = await client.send_message(
            thread.dm_channel_id, embed=forwarded_embed, attachment=upload
        )
    except HttpError as error:
        if get_json_error_code(error) == CANNOT_MESSAGE:
            await context.say(CANNOT_MESSAGE_TEXT)
            return
        raise

    source_embed = make_message_embed(
        client,
        config,
        context.author,
        message,
        image_filename,
        outgoing=True,
        anonymous=anonymous,
        user_info=True,
    )
    source = await context.send(embed=source_embed, attachment=upload)

    await db.insert_sent_message(
        SentMessage(
            id=source.id,
            thread_id=context.channel_id,
            forwarded_message_id=forwarded.id,
            author_id=context.author.id,
            anonymous=anonymous,
            image_filename=image_filename,
        )
    )

    await _delete_invocation(context)


async def reply(context: CommandContext, message: str) -> None:
    """Reply to a mod-mail thread."""
    await _reply(context, message, anonymous=False)


async def anon_reply(context: CommandContext, message: str) -> None:
    """Reply to a mod-mail thread anonymously."""
    await _reply(context, message, anonymous=True)


async def _thread_of(context: CommandContext, sent: SentMessage) -> Thread:
    thread = await context.data.db.get_thread(sent.thread_id)
    if thread is None:
        raise RuntimeError("Thread went missing!")
    return thread


async def _delete(context: CommandContext, message_id: int, ephemeral: bool) -> bool:
    client = context.client
    db = context.data.db

    sent = await db.get_sent_message(message_id)
    if sent is None:
        await context.send(UNKNOWN_REPLY_MESSAGE, ephemeral=ephemeral)
        return False

    thread = await _thread_of(context, sent)

    await context.defer(ephemeral=True)

    await client.delete_message(thread.dm_channel_id, sent.forwarded_message_id)
    await client.delete_message(sent.thread_id, message_id)
    await db.delete_sent_message(sent.id)
    return True


async def delete(context: CommandContext) -> None:
    """Delete the mod-mail reply that the invoking message replies to."""
    referenced = context.message.referenced_message_id if context.message else None
    if referenced is None:
        await context.say(NOT_A_REPLY_MESSAGE)
        return

    if await _delete(context, referenced, ephemeral=False):
        await _delete_invocation(context)


async def delete_context_menu(context: CommandContext, message: Message) -> None:
    """Delete a mod-mail reply chosen from a message's context menu."""
    if await _delete(context, message.id, ephemeral=True):
        await context.send(DELETED_MESSAGE, ephemeral=True)


async def _edit(
    context: CommandContext, message_id: int, content: str, ephemeral: bool
) -> bool:
    client = context.client
    config = context.data.config
    db = context.data.db

    sent = await db.get_sent_message(message_id)
    if sent is None:
        await context.send(UNKNOWN_REPLY_MESSAGE, ephemeral=ephemeral)
        return False

    if sent.author_id != context.author.id:
        await context.send(NOT_AUTHOR_MESSAGE, ephemeral=ephemeral)
        return False

    thread = await _thread_of(context, sent)

    forwarded_embed = make_message_embed(
        client,
        config,
        context.author,
        content,
        sent.image_filename,
        outgoing=False,
        anonymous=sent.anonymous,
        user_info=False,
    )
    await client.edit_message(
        thread.dm_channel_id, sent.forwarded_message_id, embed=forwarded_embed
    )

    source_embed = make_message_embed(
        client,
        config,
        context.author,
        content,
        sent.image_filename,
        outgoing=True,
        anonymous=sent.anonymous,
        user_info=True,
    )
    await client.edit_message(sent.thread_id, message_id, embed=source_embed)
    return True


async def edit(context: CommandContext, content: str) -> None:
    """Edit the mod-mail reply that the invoking message replies to."""
    referenced = context.message.referenced_message_id if context.message else None
    if referenced is None:
        await context.say(NOT_A_REPLY_MESSAGE)
        return

    if await _edit(context, referenced, content, ephemeral=False):
        await context.client.delete_message(
            context.message.channel_id, context.message.id
        )


async def edit_context_menu(
    context: CommandContext, message: Message, content: str | None
) -> None:
    """Edit a mod-mail reply chosen from a context menu.

    ``content`` is what was entered in the edit dialog, or None when the
    dialog was dismissed.
    """
    if content is None:
        return
    await _edit(context, message.id, content, ephemeral=True)