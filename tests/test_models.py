from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from modmailer.models import (
    CommandContext,
    HttpError,
    Member,
    Message,
    User,
    channel_mention,
    format_timestamp,
    require_staff,
    role_mention,
    snowflake_created_at,
    user_mention,
)


class FakeClient:
    def __init__(self, members=None):
        self.members = members or {}
        self.responses = []
        self.deferred = []

    async def fetch_member(self, guild_id, user_id):
        try:
            return self.members[(guild_id, user_id)]
        except KeyError:
            raise HttpError(404, "Unknown Member", code=10007) from None

    async def respond(self, context, **kwargs):
        self.responses.append(kwargs)
        return Message(id=len(self.responses), channel_id=context.channel_id, author=context.author,
                       content=kwargs["content"] or "")

    async def defer(self, context, ephemeral=False):
        self.deferred.append(ephemeral)


def make_context(client, guild_id=1, staff_roles=(10,), author_id=500):
    data = SimpleNamespace(config=SimpleNamespace(staff_roles=set(staff_roles)))
    return CommandContext(
        client=client,
        data=data,
        author=User(id=author_id, name="mod"),
        channel_id=77,
        guild_id=guild_id,
        created_at=datetime.now(timezone.utc),
    )


def test_display_name_prefers_global_name():
    assert User(1, "alice", global_name="Alice A").display_name() == "Alice A"
    assert User(1, "alice").display_name() == "alice"


def test_tag_pads_discriminator():
    assert User(1, "alice", discriminator=7).tag() == "alice#0007"
    assert User(1, "alice").tag() == "alice"
    assert User(1, "alice", discriminator=0).tag() == "alice"


def test_avatar_url():
    assert User(1, "a").avatar_url() is None
    still = User(123, "a", avatar="abc").avatar_url()
    animated = User(123, "a", avatar="a_abc").avatar_url()
    assert "/123/abc." in still and still.endswith(".webp?size=1024")
    assert "/123/a_abc." in animated and animated.endswith(".gif?size=1024")


def test_default_avatar_url_legacy_is_modulo_five():
    a = User(1, "a", discriminator=5).default_avatar_url()
    b = User(2, "b", discriminator=10).default_avatar_url()
    assert a == b


def test_default_avatar_url_new_usernames_within_range():
    for uid in (0, 1 << 22, 5 << 22, 123456789012345678):
        url = User(uid, "a").default_avatar_url()
        assert any(url.endswith(f"/{i}.png") for i in range(6))


def test_snowflake_epoch_and_offset():
    assert snowflake_created_at(0) == datetime(2015, 1, 1, tzinfo=timezone.utc)
    for ms in (1, 1000, 86_400_000):
        assert snowflake_created_at(ms << 22) - snowflake_created_at(0) == timedelta(milliseconds=ms)
    assert User(5000 << 22, "a").created_at() == snowflake_created_at(5000 << 22)


def test_mentions():
    assert user_mention(5) == "<@5>"
    assert role_mention(9) == user_mention(9).replace("<@", "<@&")
    assert channel_mention(9) == user_mention(9).replace("@", "#")


def test_format_timestamp():
    when = datetime.fromtimestamp(1_700_000_000, timezone.utc)
    assert format_timestamp(when, "R") == "<t:1700000000:R>"
    assert format_timestamp(when) == format_timestamp(when, "R").replace(":R", "")


@pytest.mark.asyncio
async def test_require_staff_true_for_staff_role():
    member = Member(user=User(500, "mod"), guild_id=1, roles=[3, 10])
    context = make_context(FakeClient({(1, 500): member}))
    assert await require_staff(context) is True


@pytest.mark.asyncio
async def test_require_staff_false_without_role():
    member = Member(user=User(500, "mod"), guild_id=1, roles=[3])
    context = make_context(FakeClient({(1, 500): member}))
    assert await require_staff(context) is False


@pytest.mark.asyncio
async def test_require_staff_false_without_member():
    assert await require_staff(make_context(FakeClient())) is False
    assert await require_staff(make_context(FakeClient(), guild_id=None)) is False


@pytest.mark.asyncio
async def test_context_send_delegates_to_client():
    client = FakeClient()
    context = make_context(client)
    sent = await context.say("hi")
    await context.reply("there")
    await context.defer(ephemeral=True)
    assert sent.content == "hi"
    assert client.responses[0]["reply"] is False
    assert client.responses[1]["reply"] is True
    assert client.deferred == [True]
    assert context.is_application