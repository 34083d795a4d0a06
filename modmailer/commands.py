"""The table of bot commands and prefix-command parsing."""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from . import blocking, replies, threads
from .models import require_staff


class Argument(enum.Enum):
    """What a command takes after its context."""

    NONE = "none"
    USER = "user"
    REST = "rest"
    MESSAGE = "message"


@dataclass(frozen=True)
class Command:
    name: str
    callback: Callable[..., Awaitable[None]]
    description: str
    argument: Argument = Argument.NONE
    aliases: tuple[str, ...] = ()
    prefix_command: bool = True
    slash_command: bool = True
    context_menu: str | None = None
    guild_only: bool = True
    check: Callable[[Any], Awaitable[bool]] | None = require_staff

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


def commands() -> list[Command]:
    """Every command the bot registers, in registration order."""
    return [
        Command(
            "reply", replies.reply, "Reply to a mod-mail thread.",
            Argument.REST, ("r",),
        ),
        Command(
            "anon_reply", replies.anon_reply,
            "Reply to a mod-mail thread anonymously.",
            Argument.REST, ("ar", "areply"),
        ),
        Command(
            "delete", replies.delete, "Delete a mod-mail reply.",
            aliases=("del", "d"), slash_command=False,
        ),
        Command(
            "delete_context_menu", replies.delete_context_menu,
            "Delete a mod-mail reply.", Argument.MESSAGE,
            prefix_command=False, slash_command=False,
            context_menu="🗑 Delete Reply",
        ),
        Command(
            "edit", replies.edit, "Edit a mod-mail reply.",
            Argument.REST, ("e", "edit"), slash_command=False,
        ),
        Command(
            "edit_context_menu", replies.edit_context_menu,
            "Edit a mod-mail reply.", Argument.MESSAGE,
            prefix_command=False, slash_command=False,
            context_menu="✏ Edit Reply",
        ),
        Command("close", threads.close, "Close a mod-mail thread.", aliases=("c",)),
        Command(
            "anon_close", threads.anon_close,
            "Close a mod-mail thread anonymously.", aliases=("ac", "aclose"),
        ),
        Command(
            "silent_close", threads.silent_close,
            'Close a mod-mail thread without sending the "Thread closed" message.',
            aliases=("sc", "sclose"),
        ),
        Command(
            "contact", threads.contact, "Create a new mod-mail thread.", Argument.USER
        ),
        Command(
            "block", blocking.block, "Block a user from creating threads.",
            Argument.USER,
        ),
        Command(
            "silent_block", blocking.silent_block,
            "Block a user from creating threads without notifying them.",
            Argument.USER, ("sblock",),
        ),
        Command(
            "unblock", blocking.unblock,
            "Unblock a user blocked using the block command.", Argument.USER,
        ),
        Command(
            "silent_unblock", blocking.silent_unblock,
            "Unblock a user blocked using the block command without notifying them.",
            Argument.USER, ("sunblock",),
        ),
    ]


_COMMANDS = commands()


def find_command(name: str) -> Command | None:
    """Return the command with this name or alias, or None."""
    return next((command for command in _COMMANDS if name in command.names), None)


def parse_prefix_command(content: str, prefix: str) -> tuple[str, str] | None:
    """Split a prefixed message into a command name and its arguments.

    Returns None when the message does not start with the prefix or names
    no command.
    """
    if not prefix or not content.startswith(prefix):
        return None
    parts = content[len(prefix):].split(maxsplit=1)
    if not parts:
        return None
    return parts[0], parts[1] if len(parts) > 1 else ""