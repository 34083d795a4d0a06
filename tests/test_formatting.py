from datetime import datetime, timezone

import pytest

from modmailer.config import Config
from modmailer.formatting import (
    BLURPLE,
    GREEN,
    YELLOW,
    AllowedMentions,
    make_message_embed,
    make_thread_info,
    make_thread_info_allowed_mentions,
    make_user_info_embed,
)
from modmailer.models import (
    SHORT_DATE_TIME,
    HttpError,
    Member,
    User,
    format_timestamp,
    role_mention,
    user_mention,
)

WHEN = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def config(role=None):
    forum = {"id": 222}
    if role is not None:
        forum["mention_role_id"] = role
    return Config.from_dict({"server_id": 111, "forum_channel": forum})


class FakeClient:
    def __init__(self, icon=None, member=None, roles=None):
        self.icon = icon
        self.member = member
        self.roles = roles

    def guild_icon_url(self, guild_id):
        return self.icon

    async def fetch_member(self, guild_id, user_id):
        if self.member is None:
            raise HttpError(404, "Unknown Member")
        return self.member

    def member_roles(self, member):
        return self.roles


USER = User(id=42 << 22, name="alice", global_name="Alice", avatar="hash")


def test_message_embed_colors():
    assert make_message_embed(FakeClient(), config(), USER, "x", outgoing=True).color == GREEN
    assert make_message_embed(FakeClient(), config(), USER, "x").color == YELLOW


def test_message_embed_author_and_content():
    embed = make_message_embed(FakeClient(), config(), USER, "hello")
    assert embed.description == "hello"
    assert embed.author_name == USER.display_name()
    assert embed.author_icon_url == USER.avatar_url()
    assert embed.footer is None and embed.image_url is None
    plain = User(id=1, name="bob")
    assert make_message_embed(FakeClient(), config(), plain, "x").author_icon_url == plain.default_avatar_url()


def test_message_embed_anonymous():
    cfg = config()
    embed = make_message_embed(FakeClient(icon="icon-url"), cfg, USER, "x", anonymous=True)
    assert embed.author_name == cfg.messages.anonymous_reply_title
    assert embed.author_icon_url == "icon-url"
    assert make_message_embed(FakeClient(), cfg, USER, "x", anonymous=True).author_icon_url == ""


def test_message_embed_footer_and_image():
    embed = make_message_embed(FakeClient(), config(), USER, "x", "pic.png", user_info=True)
    assert embed.footer == f"Username: {USER.tag()} ({USER.id})"
    assert embed.image_url == "attachment://pic.png"


def test_thread_info_opened_by_user():
    info = make_thread_info(config(), 5, (5, WHEN))
    assert info == f"📩 Thread opened by {user_mention(5)} {format_timestamp(WHEN, 'R')}\n"


def test_thread_info_opened_by_staff_and_closed():
    info = make_thread_info(config(), 5, (6, WHEN), (7, WHEN))
    lines = info.splitlines()
    assert len(lines) == 2 and info.endswith("\n")
    assert lines[0].startswith(f"📩 Thread for {user_mention(5)} opened by {user_mention(6)}")
    assert lines[1].startswith(f"⛔ Thread closed by {user_mention(7)}")


def test_thread_info_mentions_role():
    info = make_thread_info(config(role=9), 5, (5, WHEN))
    assert info.startswith(role_mention(9) + "\n\n📩")


def test_allowed_mentions():
    assert make_thread_info_allowed_mentions(config(role=9)) == AllowedMentions(roles=(9,))
    assert make_thread_info_allowed_mentions(config()) == AllowedMentions()


@pytest.mark.asyncio
async def test_user_info_without_member():
    embed = await make_user_info_embed(FakeClient(), config(), USER)
    assert embed.color == BLURPLE
    assert embed.fields == [
        ("Account Created At", format_timestamp(USER.created_at(), SHORT_DATE_TIME), True)
    ]
    assert embed.footer == f"Username: {USER.tag()} ({USER.id})"


@pytest.mark.asyncio
async def test_user_info_with_member_and_roles():
    member = Member(user=USER, guild_id=111, roles=[3, 4], joined_at=WHEN)
    embed = await make_user_info_embed(FakeClient(member=member, roles=[3, 4]), config(), USER)
    names = [name for name, _, _ in embed.fields]
    assert names == ["Account Created At", "Server Member Since", "Roles"]
    assert embed.fields[1][1] == format_timestamp(WHEN, SHORT_DATE_TIME)
    assert embed.fields[2] == ("Roles", f"{role_mention(3)} {role_mention(4)}", False)


@pytest.mark.asyncio
async def test_user_info_unknown_join_and_no_roles():
    member = Member(user=USER, guild_id=111)
    embed = await make_user_info_embed(FakeClient(member=member, roles=[]), config(), USER)
    assert embed.fields[1][1] == "*Unknown Date*"
    assert embed.fields[2][1] == "*No Roles*"


@pytest.mark.asyncio
async def test_user_info_roles_not_cached():
    member = Member(user=USER, guild_id=111, joined_at=WHEN)
    embed = await make_user_info_embed(FakeClient(member=member, roles=None), config(), USER)
    assert [name for name, _, _ in embed.fields] == ["Account Created At", "Server Member Since"]