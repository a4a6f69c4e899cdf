import pytest

from roledash.client.emoji_picker import (
    COMMON_EMOJIS,
    EmojiPicker,
    describe_emoji,
    format_custom_emoji,
)
from roledash.client.form import ReactionRoleForm
from roledash.schemas import GuildEmoji

POG = GuildEmoji(id="55", name="pog", animated=False, url="https://cdn.discordapp.com/emojis/55.png")
DANCE = GuildEmoji(id="66", name="dance", animated=True)


class StubStore:
    def __init__(self):
        self.calls = 0

    async def get_guild_emojis(self, guild_id):
        self.calls += 1
        return [POG, DANCE]


def test_common_set():
    assert len(COMMON_EMOJIS) == 20
    assert COMMON_EMOJIS[0] == "👍"
    assert COMMON_EMOJIS[-1] == "💎"


def test_select_writes_binding_and_closes():
    form = ReactionRoleForm()
    form.add_binding()
    picker = EmojiPicker(form)

    picker.open(1)
    assert picker.is_open
    picker.select("🔥")
    assert not picker.is_open
    assert form.draft.reactions[1].emoji == "🔥"
    assert form.draft.reactions[0].emoji == ""


def test_select_without_target_is_ignored():
    form = ReactionRoleForm()
    picker = EmojiPicker(form)
    picker.select("🔥")
    assert form.draft.reactions[0].emoji == ""
    with pytest.raises(IndexError):
        picker.open(4)


def test_outside_click_closes():
    picker = EmojiPicker(ReactionRoleForm())
    picker.open(0)
    picker.handle_outside_click()
    assert not picker.is_open


def test_guild_emoji_formatting():
    assert format_custom_emoji(POG) == "<:pog:55>"
    assert format_custom_emoji(DANCE) == "<a:dance:66>"

    form = ReactionRoleForm()
    picker = EmojiPicker(form)
    picker.open(0)
    picker.select_guild_emoji(DANCE)
    assert form.draft.reactions[0].emoji == "<a:dance:66>"


def test_describe_emoji():
    emojis = [POG, DANCE]
    assert describe_emoji("<:pog:55>", emojis) == "https://cdn.discordapp.com/emojis/55.png"
    assert describe_emoji("<a:dance:66>", emojis) == "https://cdn.discordapp.com/emojis/66.gif"
    assert describe_emoji("<:gone:77>", emojis) == ":gone:"
    assert describe_emoji("🚀", emojis) == "🚀"
    assert describe_emoji("", emojis) == "🎉"
    assert describe_emoji(None) == "🎉"


@pytest.mark.asyncio
async def test_guild_emojis_loaded_once():
    store = StubStore()
    picker = EmojiPicker(ReactionRoleForm(), store, "g1")
    await picker.load_guild_emojis()
    await picker.load_guild_emojis()
    assert store.calls == 1
    assert picker.describe("<:pog:55>") == POG.url
