# modmailer

The logic of a mod-mail bot for community servers. Members send the bot a
direct message; each conversation becomes a thread in a staff forum
channel. Staff answer from that thread, and the replies go back to the
member's direct messages, either under the staff member's name or
anonymously.

## What it does

- **Incoming messages** (`modmailer.events`). A direct message from a
  member opens a new forum thread, or goes to the member's open one. It is
  forwarded as an embed with the first image attachment re-uploaded. The
  member's message gets a ✅ reaction when it arrives, or ❌ if something
  failed. If the thread has vanished, a new one is opened in its place.
  Blocked members open no threads.
- **Edits and reactions.** A member's edit of a relayed message is carried
  over to the forwarded copy (an ⌛ reaction shows while it is pending).
  Reactions a member adds to or removes from a staff reply are mirrored
  onto the staff member's message in the thread.
- **Staff commands** (`modmailer.replies`, `modmailer.threads`,
  `modmailer.blocking`): `reply` / `anon_reply`, `edit` and
  `edit_context_menu`, `delete` and `delete_context_menu`, `close` /
  `anon_close` / `silent_close`, `contact` (open a thread for a member),
  and `block` / `unblock` with their `silent_` variants.
  `modmailer.commands.commands()` lists them with their aliases and
  descriptions, `find_command` looks one up by name or alias, and
  `parse_prefix_command` splits a prefixed message into name and
  arguments. Every command is server-only and needs one of the configured
  staff roles (`modmailer.models.require_staff`).
- **Notices.** When a member with an open thread leaves or rejoins the
  server, the thread is told. Staff who open a forum thread by hand are
  reminded to use `contact`.
- **Storage** (`modmailer.storage.Database`). Threads, relayed messages and
  blocked users are kept in SQLite through `aiosqlite`;
  `Database.migrate()` creates the schema.

## Configuration

Settings are read from a TOML file with `Config.from_file`:

```toml
server_id = 111111111111111111
staff_roles = [222222222222222222]
prefix = "="

[forum_channel]
id = 333333333333333333
open_tag_id = 444444444444444444      # optional, applied to new threads
closed_tag_id = 555555555555555555    # optional, applied on close
mention_role_id = 222222222222222222  # optional, pinged in the thread header

[messages]
status = "Message me to contact staff!"
anonymous_reply_title = "Staff Member"
thread_open = "A staff member will be with you shortly."   # optional
thread_closed = "Feel free to message again any time."     # optional
```

`staff_roles`, `prefix` and the whole `[messages]` table may be left out;
the values shown for `prefix`, `status` and `anonymous_reply_title` are the
defaults. A missing or malformed field raises `ValueError`.

```python
from modmailer.config import Config

config = Config.from_file("config.toml")
print(config.prefix, config.forum_channel.id)
```

## Wiring it to a chat client

`modmailer.app.setup(client, config_path, database_path)` registers the
commands, loads the configuration, sets the bot's status, opens and
migrates the database and returns a `BotData` (`config` and `db`). If any
step fails the client is shut down and the error is raised again.

From there:

- gateway events go to `modmailer.events.handle_event(client, (kind,
  payload), data)`, with kinds such as `"message"`, `"message_update"`,
  `"reaction_add"`, `"thread_delete"` and `"guild_member_removal"`;
- a message that may hold a prefix command goes to
  `dispatch_prefix_message(context, data)`, with a `CommandContext` built
  for it;
- other invocations run through `run_command(command, context, *args)`,
  which raises `CheckFailed` or `CommandError`; `handle_error` logs these
  and answers the invoker.

```python
from modmailer.app import setup, dispatch_prefix_message
from modmailer.events import handle_event

data = await setup(client, "config.toml", "modmail.sqlite3")
await handle_event(client, ("message", message), data)
```

## Helpers

```python
from modmailer.markdown import escape_markdown

escape_markdown("some_user")   # 'some\\_user'
```

`modmailer.formatting` builds the thread header (`make_thread_info`, with
`make_thread_info_allowed_mentions` so that only the configured role is
pinged) and the `Embed`s for relayed messages and user information
(`make_message_embed`, `make_user_info_embed`).

## What it does not include

The package does not talk to the chat service itself. There is no gateway
connection, no HTTP client and no command to start a bot: you supply a
`client` object with the methods described in the docstrings of
`modmailer.models`, `modmailer.threads`, `modmailer.replies`,
`modmailer.blocking`, `modmailer.events` and `modmailer.app`, turn the
service's events into the package's `Message`, `MessageUpdate`, `Reaction`,
`Member` and `User` objects, and feed them in. Reading a bot token and
logging in are left to that client.