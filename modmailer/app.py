"""Bot start-up, command dispatch and error reporting.

Besides the client methods listed in :mod:`modmailer.models`, this module
uses:

- ``await register_commands(commands)``: publish the application commands;
- ``set_activity(status)``: show a custom status;
- ``await shutdown()``: disconnect from the gateway;
- ``await fetch_user(user_id)``: a :class:`~modmailer.models.User`, raising
  :class:`~modmailer.models.HttpError` when there is no such user.
"""

from __future__ import annotations

import logging
import re
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .commands import Argument, Command, commands, find_command, parse_prefix_command
from .config import Config
from .models import CommandContext, HttpError
from .storage import Database

log = logging.getLogger(__name__)

GENERIC_ERROR = "❌ Something went wrong whilst executing this command."
PERMISSION_DENIED = "❌ Permission denied."

_USER_ARGUMENT = re.compile(r"<@!?(\d+)>|(\d+)")


@dataclass
class BotData:
    """State shared by every command and event handler."""

    config: Config
    db: Database


class CommandError(Exception):
    """A command raised while it was running."""

    def __init__(self, command_name: str, original: BaseException):
        super().__init__(f"command {command_name} failed: {original!r}")
        self.command_name = command_name
        self.original = original


class CheckFailed(Exception):
    """A command's permission check refused the caller or raised.

    ``original`` is the error the check raised, or None when it simply
    returned False.
    """

    def __init__(self, command_name: str, original: BaseException | None = None):
        reason = f": {original!r}" if original is not None else ""
        super().__init__(f"check for {command_name} failed{reason}")
        self.command_name = command_name
        self.original = original


class _ArgumentError(ValueError):
    """A prefix command's argument could not be understood."""


async def handle_error(context: CommandContext | None, error: BaseException) -> None:
    """Report an error from a command, a check or (with no context) an event handler."""
    match error:
        case CommandError():
            log.error(
                "Error executing command %s:\n%r",
                error.command_name,
                error.original,
                exc_info=error.original,
            )
            if context is not None:
                with suppress(HttpError):
                    await context.say(GENERIC_ERROR)
        case CheckFailed() if error.original is not None:
            log.error(
                "Error checking permissions for %s:\n%r",
                error.command_name,
                error.original,
                exc_info=error.original,
            )
            if context is not None:
                with suppress(HttpError):
                    await context.say(GENERIC_ERROR)
        case CheckFailed():
            if context is not None and context.is_application:
                with suppress(HttpError):
                    await context.send(PERMISSION_DENIED, ephemeral=True)
        case _ if context is None:
            log.error(
                "Event handler encountered an error:\n%r", error, exc_info=error
            )
        case _:
            log.error("Unhandled error:\n%r", error, exc_info=error)
            with suppress(HttpError):
                await context.say(GENERIC_ERROR)


async def setup(client: Any, config_path: str | Path, database_path: str | Path) -> BotData:
    """Register commands, load the configuration and open the database.

    On failure the client is shut down and the error is raised again.
    """
    try:
        await client.register_commands(commands())
        config = Config.from_file(config_path)
        client.set_activity(config.messages.status)
        db = await Database.open(database_path)
        try:
            await db.migrate()
        except BaseException:
            await db.close()
            raise
    except Exception:
        log.error("Error setting up framework; exiting...")
        await client.shutdown()
        raise
    return BotData(config=config, db=db)


async def run_command(command: Command, context: CommandContext, *args: Any) -> bool:
    """Run a command after its guild and permission checks.

    Returns False when the command was skipped because it only runs in a
    server. Raises :class:`CheckFailed` or :class:`CommandError`.
    """
    if command.guild_only and context.guild_id is None:
        return False

    if command.check is not None:
        try:
            allowed = await command.check(context)
        except Exception as error:
            raise CheckFailed(command.name, error) from error
        if not allowed:
            raise CheckFailed(command.name)

    try:
        await command.callback(context, *args)
    except Exception as error:
        raise CommandError(command.name, error) from error
    return True


async def _convert_arguments(
    command: Command, context: CommandContext, text: str
) -> tuple[Any, ...]:
    match command.argument:
        case Argument.NONE:
            return ()
        case Argument.REST:
            if not text.strip():
                raise _ArgumentError("Missing argument.")
            return (text.strip(),)
        case Argument.USER:
            words = text.split()
            if not words:
                raise _ArgumentError("Missing argument.")
            match = _USER_ARGUMENT.fullmatch(words[0])
            if match is None:
                raise _ArgumentError(f"Could not find user `{words[0]}`.")
            user_id = int(match.group(1) or match.group(2))
            try:
                return (await context.client.fetch_user(user_id),)
            except HttpError:
                raise _ArgumentError(f"Could not find user `{words[0]}`.") from None
        case _:
            raise _ArgumentError("This command cannot be used with a prefix.")


async def dispatch_prefix_message(context: CommandContext, data: BotData) -> bool:
    """Run the prefix command in the context's message, if it holds one.

    Returns True when the message named a prefix command.
    """
    message = context.message
    if message is None or message.author.bot:
        return False

    parsed = parse_prefix_command(message.content, data.config.prefix)
    if parsed is None:
        return False
    name, rest = parsed

    command = find_command(name)
    if command is None or not command.prefix_command:
        return False

    try:
        args = await _convert_arguments(command, context, rest)
    except _ArgumentError as error:
        with suppress(HttpError):
            await context.say(f"❌ {error}")
        return True

    try:
        await run_command(command, context, *args)
    except (CommandError, CheckFailed) as error:
        await handle_error(context, error)
    return True