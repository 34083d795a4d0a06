from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio

from modmailer.blocking import block, silent_block, silent_unblock, unblock
from modmailer.config import Config, ForumChannelConfig
from modmailer.markdown import escape_markdown
from modmailer.models import CommandContext, HttpError, Message, User
from modmailer.storage import Database

STAFF = User(id=1001, name="staffer")
TARGET = User(id=2002, name="some_user")
BOT = User(id=3003, name="helper", bot=True)


@dataclass
class Data:
    config: Config
    db: Database


class FakeClient:
    def __init__(self, fail_dm=False):
        self.responses = []
        self.defers = []
        self.dms = []
        self.fail_dm = fail_dm
        self._next_id = 9000

    async def respond(self, context, *, content, embed, attachment, ephemeral, reply):
        self.responses.append({"content": content, "ephemeral": ephemeral, "reply": reply})
        self._next_id += 1
        return Message(id=self._next_id, channel_id=context.channel_id, author=STAFF)

    async def defer(self, context, *, ephemeral=False):
        self.defers.append(ephemeral)

    async def send_direct_message(self, user, content):
        if self.fail_dm:
            raise HttpError(403, "Cannot send messages to this user", code=50007)
        self.dms.append((user.id, content))


@pytest_asyncio.fixture
async def db():
    database = await Database.open(":memory:")
    await database.migrate()
    yield database
    await database.close()


def make_context(db: Database, client: Any, author: User = STAFF) -> CommandContext:
    config = Config(server_id=500, forum_channel=ForumChannelConfig(id=600))
    return CommandContext(
        client=client,
        data=Data(config=config, db=db),
        author=author,
        channel_id=700,
        guild_id=500,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.mark.asyncio
async def test_block_stores_user_and_notifies(db):
    client = FakeClient()
    await block(make_context(db, client), TARGET)

    assert await db.is_user_blocked(TARGET.id) is True
    assert client.dms == [(TARGET.id, "🚫 You have been blocked from creating threads.")]
    assert client.defers == [False]
    assert client.responses == [
        {
            "content": f"✅ Blocked **{escape_markdown(TARGET.tag())}**!",
            "ephemeral": False,
            "reply": True,
        }
    ]


@pytest.mark.asyncio
async def test_block_reply_escapes_markdown(db):
    client = FakeClient()
    await block(make_context(db, client), TARGET)
    assert client.responses[-1]["content"] == "✅ Blocked **some\\_user**!"


@pytest.mark.asyncio
async def test_block_bot_user_is_refused(db):
    client = FakeClient()
    await block(make_context(db, client), BOT)

    assert await db.is_user_blocked(BOT.id) is False
    assert client.responses == [
        {"content": "❌ Blocks upon an app have no effect.", "ephemeral": True, "reply": False}
    ]


@pytest.mark.asyncio
async def test_block_already_blocked(db):
    await db.block_user(TARGET.id)
    client = FakeClient()
    await block(make_context(db, client), TARGET)

    assert client.dms == []
    assert client.responses == [
        {
            "content": "❌ The specified user is already blocked.",
            "ephemeral": True,
            "reply": False,
        }
    ]


@pytest.mark.asyncio
async def test_block_self(db):
    client = FakeClient()
    await block(make_context(db, client), STAFF)

    assert await db.is_user_blocked(STAFF.id) is True
    assert client.responses[-1]["content"] == "✅ Why do this to yourself?"


@pytest.mark.asyncio
async def test_silent_block_sends_no_message(db):
    client = FakeClient()
    await silent_block(make_context(db, client), TARGET)

    assert await db.is_user_blocked(TARGET.id) is True
    assert client.dms == []
    assert client.defers == []
    assert len(client.responses) == 1


@pytest.mark.asyncio
async def test_block_survives_failed_direct_message(db):
    client = FakeClient(fail_dm=True)
    await block(make_context(db, client), TARGET)

    assert await db.is_user_blocked(TARGET.id) is True
    assert client.responses[-1]["content"].startswith("✅ Blocked")


@pytest.mark.asyncio
async def test_unblock_round_trip(db):
    client = FakeClient()
    context = make_context(db, client)
    await block(context, TARGET)
    await unblock(context, TARGET)

    assert await db.is_user_blocked(TARGET.id) is False
    assert client.dms[-1] == (TARGET.id, "\u26d3\ufe0f\u200d\U0001f4a5 You have been unblocked.")
    assert client.responses[-1] == {
        "content": f"✅ Unblocked **{escape_markdown(TARGET.tag())}**!",
        "ephemeral": False,
        "reply": True,
    }


@pytest.mark.asyncio
async def test_unblock_not_blocked(db):
    client = FakeClient()
    await unblock(make_context(db, client), TARGET)

    assert client.dms == []
    assert client.responses == [
        {"content": "❌ The specified user is not blocked.", "ephemeral": True, "reply": False}
    ]


@pytest.mark.asyncio
async def test_unblock_bot_user_is_refused(db):
    client = FakeClient()
    await unblock(make_context(db, client), BOT)
    assert client.responses[0]["content"] == "❌ Blocks upon an app have no effect."


@pytest.mark.asyncio
async def test_silent_unblock_sends_no_message(db):
    await db.block_user(TARGET.id)
    client = FakeClient()
    await silent_unblock(make_context(db, client), TARGET)

    assert await db.is_user_blocked(TARGET.id) is False
    assert client.dms == []
    assert client.defers == []