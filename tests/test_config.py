import pytest

from modmailer.config import Config, ForumChannelConfig, MessageConfig

MINIMAL = """
server_id = 111
[forum_channel]
id = 222
"""

FULL = """
server_id = 111
staff_roles = [5, 6]
prefix = "!"
[forum_channel]
id = 222
open_tag_id = 1
closed_tag_id = "2"
mention_role_id = 3
[messages]
status = "DM me"
thread_open = "hello"
"""


def write(tmp_path, text):
    path = tmp_path / "config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_minimal_uses_defaults(tmp_path):
    config = Config.from_file(write(tmp_path, MINIMAL))
    assert config.server_id == 111
    assert config.forum_channel == ForumChannelConfig(id=222)
    assert config.prefix == "="
    assert config.staff_roles == frozenset()
    assert config.messages == MessageConfig()
    assert config.messages.status == "Message me to contact staff!"
    assert config.messages.anonymous_reply_title == "Staff Member"


def test_full_config(tmp_path):
    config = Config.from_file(write(tmp_path, FULL))
    assert config.staff_roles == {5, 6}
    assert config.prefix == "!"
    assert config.forum_channel.closed_tag_id == 2
    assert config.forum_channel.mention_role_id == 3
    assert config.messages.status == "DM me"
    assert config.messages.thread_open == "hello"
    assert config.messages.thread_closed is None
    assert config.messages.anonymous_reply_title == MessageConfig().anonymous_reply_title


@pytest.mark.parametrize(
    "data",
    [
        {"forum_channel": {"id": 1}},
        {"server_id": 1},
        {"server_id": 1, "forum_channel": {}},
        {"server_id": 0, "forum_channel": {"id": 1}},
        {"server_id": "abc", "forum_channel": {"id": 1}},
        {"server_id": 1, "forum_channel": {"id": 1}, "prefix": 3},
        {"server_id": 1, "forum_channel": {"id": 1}, "staff_roles": 4},
        {"server_id": 1, "forum_channel": {"id": 1}, "messages": {"status": 1}},
    ],
)
def test_invalid_config_raises(data):
    with pytest.raises(ValueError):
        Config.from_dict(data)


def test_invalid_toml_raises(tmp_path):
    with pytest.raises(ValueError):
        Config.from_file(write(tmp_path, "server_id = ["))


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.from_file(tmp_path / "absent.toml")