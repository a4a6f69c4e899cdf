import pytest

from roledash.client.form import DEFAULT_CUSTOM_MESSAGE, ReactionRoleForm
from roledash.errors import ValidationError
from roledash.schemas import BindingType, ReactionBinding, ReactionRoleGroup, ReactionRoleRow


def _group():
    return ReactionRoleGroup(
        id="7",
        message_id="m1",
        channel_id="c1",
        title="Games",
        custom_message="Pick",
        status=True,
        reactions=[
            ReactionBinding(id="b1", emoji="🎮", role_id="r1"),
            ReactionBinding(id="b2", emoji="🎵", role_id="r2", type=BindingType.ADD_ONLY),
        ],
    )


def test_start_new_defaults():
    form = ReactionRoleForm()
    draft = form.start_new()
    assert form.mode == "create"
    assert draft.custom_message == DEFAULT_CUSTOM_MESSAGE
    assert draft.status is True
    assert len(draft.reactions) == 1
    assert draft.reactions[0].type is BindingType.TOGGLE
    assert not form.is_dirty()


def test_reset_is_idempotent():
    form = ReactionRoleForm()
    form.start_edit(_group())
    form.set_field("title", "Other")
    form.add_binding()
    first = form.reset().model_dump()
    second = form.reset().model_dump()
    assert first == second == _group().model_dump()

    form.start_new()
    form.set_field("channel_id", "c9")
    assert form.reset().model_dump() == ReactionRoleForm().draft.model_dump()
    assert not form.is_dirty()


def test_remove_binding_keeps_one():
    form = ReactionRoleForm()
    assert form.remove_binding(0) is False
    assert len(form.draft.reactions) == 1

    form.add_binding()
    assert form.remove_binding(1) is True
    assert len(form.draft.reactions) == 1
    with pytest.raises(IndexError):
        form.remove_binding(3)


def test_dirty_tracking_after_edit():
    form = ReactionRoleForm()
    form.start_edit(_group())
    assert not form.is_dirty()

    form.update_binding(0, "emoji", "🔥")
    assert form.is_dirty()
    form.update_binding(0, "emoji", "🎮")
    assert not form.is_dirty()


def test_start_edit_copies_group():
    group = _group()
    form = ReactionRoleForm()
    form.start_edit(group)
    form.update_binding(0, "roleId", "r9")
    assert group.reactions[0].role_id == "r1"
    assert form.editing


def test_start_edit_accepts_legacy_row():
    row = ReactionRoleRow(
        id="b5", message_id="m5", channel_id="c5", emoji="⭐", role_id="r5", title=None
    )
    form = ReactionRoleForm()
    draft = form.start_edit(row)
    assert [(b.id, b.emoji, b.role_id) for b in draft.reactions] == [("b5", "⭐", "r5")]
    assert draft.title == ""
    assert draft.custom_message == DEFAULT_CUSTOM_MESSAGE
    assert not form.is_dirty()


def test_update_binding_fields():
    form = ReactionRoleForm()
    form.update_binding(0, "type", "remove_only")
    assert form.draft.reactions[0].type is BindingType.REMOVE_ONLY
    with pytest.raises(KeyError):
        form.update_binding(0, "color", "red")
    with pytest.raises(ValueError):
        form.update_binding(0, "type", "sometimes")


def test_submit_gate():
    form = ReactionRoleForm()
    assert not form.can_submit

    form.set_field("channel_id", "c1")
    form.set_field("title", "Games")
    form.update_binding(0, "emoji", "🎮")
    assert not form.can_submit
    assert form.validate() == ["Reaction 1 needs a role"]

    form.update_binding(0, "role_id", "r1")
    assert form.can_submit

    form.update_binding(0, "emoji", "   ")
    assert not form.can_submit
    form.update_binding(0, "emoji", "🎮")

    form.set_field("custom_message", "")
    assert form.validate() == ["Message is required"]
    with pytest.raises(ValidationError):
        form.require_valid()


def test_whitespace_title_passes_gate():
    form = ReactionRoleForm()
    form.set_field("channel_id", "c1")
    form.set_field("title", "  ")
    form.update_binding(0, "emoji", "🎮")
    form.update_binding(0, "role_id", "r1")
    assert form.can_submit


def test_payload_create_and_edit():
    form = ReactionRoleForm()
    form.set_field("channelId", "c1")
    form.set_field("title", "Games")
    form.update_binding(0, "emoji", "🎮")
    form.update_binding(0, "role_id", "r1")
    assert form.payload("g1") == {
        "guildId": "g1",
        "channelId": "c1",
        "title": "Games",
        "customMessage": DEFAULT_CUSTOM_MESSAGE,
        "status": True,
        "reactions": [{"emoji": "🎮", "roleId": "r1", "type": "toggle"}],
    }

    form.start_edit(_group())
    assert form.payload("g1")["messageId"] == "m1"
