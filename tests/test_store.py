import json

import httpx
import pytest

from roledash.client.http import ApiClient
from roledash.client.session import MemorySessionStore, Session
from roledash.client.store import ReactionRoleStore, SelfRoleStore
from roledash.errors import ValidationError
from roledash.schemas import (
    BindingType,
    ReactionBinding,
    ReactionRoleGroup,
    SelfRoleCommand,
    SelfRoleOption,
)


class Recorder:
    def __init__(self, responses=None):
        self.requests: list[httpx.Request] = []
        self.responses = responses or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        status, payload = self.responses.get(key, (200, {}))
        return httpx.Response(status, json=payload)


def _api(recorder):
    return ApiClient(
        Session(MemorySessionStore("tok")),
        "http://dash.test",
        transport=httpx.MockTransport(recorder),
    )


def _store(recorder):
    return ReactionRoleStore(_api(recorder))


def _draft():
    return ReactionRoleGroup(
        message_id="m1",
        channel_id="c1",
        title="Games",
        custom_message="Pick",
        reactions=[
            ReactionBinding(id="b42", emoji="🎮", role_id="r1"),
            ReactionBinding(emoji="🎵", role_id="r2", type=BindingType.REMOVE_ONLY),
        ],
    )


@pytest.mark.asyncio
async def test_list_projects_rows():
    rec = Recorder(
        {
            ("GET", "/api/roles/reaction-roles"): (
                200,
                {
                    "reactionRoles": [
                        {"id": "1", "messageId": "M1", "channelId": "C", "emoji": "👍", "roleId": "R1", "type": "toggle"},
                        {"id": "2", "messageId": "M1", "channelId": "C", "emoji": "👎", "roleId": "R2", "type": "add_only"},
                    ]
                },
            )
        }
    )
    groups = await _store(rec).list("g1")
    assert len(groups) == 1
    assert [b.type for b in groups[0].reactions] == [BindingType.TOGGLE, BindingType.ADD_ONLY]
    request = rec.requests[0]
    assert request.url.params["guildId"] == "g1"
    assert request.headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_create_body_and_idempotency_header():
    rec = Recorder()
    await _store(rec).create("g1", _draft(), idempotency_key="k1")
    request = rec.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/roles/reaction-roles"
    assert request.headers["Idempotency-Key"] == "k1"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {
        "guildId": "g1",
        "channelId": "c1",
        "title": "Games",
        "customMessage": "Pick",
        "status": True,
        "reactions": [
            {"emoji": "🎮", "roleId": "r1", "type": "toggle"},
            {"emoji": "🎵", "roleId": "r2", "type": "remove_only"},
        ],
    }


@pytest.mark.asyncio
async def test_update_keeps_message_id():
    rec = Recorder()
    await _store(rec).update("b42", "g1", _draft())
    request = rec.requests[0]
    assert (request.method, request.url.path) == ("PUT", "/api/roles/reaction-roles/b42")
    assert json.loads(request.content)["messageId"] == "m1"
    assert "Idempotency-Key" not in request.headers


@pytest.mark.asyncio
async def test_status_delete_and_lookups():
    rec = Recorder(
        {
            ("PATCH", "/api/roles/reaction-roles/b42/status"): (200, {"success": True, "status": False}),
            ("GET", "/api/roles"): (200, {"roles": [{"id": "1", "name": "Admin", "position": 3}]}),
            ("GET", "/api/channels"): (200, {"channels": [{"id": "9", "name": "general"}]}),
            ("GET", "/api/guilds/g1/emojis"): (200, {"emojis": [{"id": "5", "name": "pog"}]}),
        }
    )
    store = _store(rec)

    assert await store.set_binding_status("b42", "g1", False) is False
    await store.delete_by_message("m1", "g1")
    await store.delete_binding("b7", "g1")
    roles = await store.get_roles("g1")
    channels = await store.get_channels("g1")
    emojis = await store.get_guild_emojis("g1")

    calls = [(r.method, r.url.path) for r in rec.requests]
    assert calls == [
        ("PATCH", "/api/roles/reaction-roles/b42/status"),
        ("DELETE", "/api/roles/reaction-roles/message/m1"),
        ("DELETE", "/api/roles/reaction-roles/b7"),
        ("GET", "/api/roles"),
        ("GET", "/api/channels"),
        ("GET", "/api/guilds/g1/emojis"),
    ]
    assert json.loads(rec.requests[0].content) == {"guildId": "g1", "status": False}
    assert json.loads(rec.requests[1].content) == {"guildId": "g1"}
    assert roles[0].name == "Admin"
    assert channels[0].id == "9"
    assert emojis[0].name == "pog"


@pytest.mark.asyncio
async def test_server_message_surfaces_verbatim():
    rec = Recorder({("POST", "/api/roles/reaction-roles"): (404, {"error": "Channel not found"})})
    with pytest.raises(ValidationError) as excinfo:
        await _store(rec).create("g1", _draft())
    assert str(excinfo.value) == "Channel not found"
    assert excinfo.value.status == 404
    assert len(rec.requests) == 1


@pytest.mark.asyncio
async def test_self_role_store_round_trips():
    path = "/api/roles/guild/g1/self-assignable-roles"
    listed = {
        "success": True,
        "slashRoles": [
            {
                "id": "g1-team colors",
                "commandName": "team colors",
                "roles": [{"id": 3, "roleId": "r1", "type": "add_only"}],
                "status": False,
            }
        ],
    }
    rec = Recorder(
        {
            ("GET", path): (200, listed),
            ("POST", path): (200, listed),
            ("PATCH", f"{path}/team colors/toggle"): (200, listed),
            ("PUT", f"{path}/team colors"): (200, listed),
        }
    )
    store = SelfRoleStore(_api(rec), "g1")
    command = SelfRoleCommand(
        command_name="team colors",
        roles=[SelfRoleOption(role_id="r1", type=BindingType.ADD_ONLY)],
    )

    (loaded,) = await store.list()
    await store.create(command)
    await store.set_status("team colors", True)
    await store.update("team colors", description="New")
    await store.delete("team colors")

    assert loaded.roles[0].id == "3"
    assert loaded.status is False
    assert [(r.method, r.url.raw_path.decode()) for r in rec.requests] == [
        ("GET", path),
        ("POST", path),
        ("PATCH", f"{path}/team%20colors/toggle"),
        ("PUT", f"{path}/team%20colors"),
        ("DELETE", f"{path}/team%20colors"),
    ]
    assert json.loads(rec.requests[1].content) == {
        "commandName": "team colors",
        "description": "",
        "channelId": None,
        "roles": [{"roleId": "r1", "type": "add_only"}],
        "requirePermission": False,
        "allowedRoles": [],
        "status": True,
    }
    assert json.loads(rec.requests[2].content) == {"status": True}
    assert json.loads(rec.requests[3].content) == {"description": "New"}


@pytest.mark.asyncio
async def test_delete_unknown_message_raises_not_found():
    rec = Recorder(
        {
            ("DELETE", "/api/roles/reaction-roles/message/m9"): (
                404,
                {"error": "Reaction role configuration not found"},
            )
        }
    )
    with pytest.raises(ValidationError) as excinfo:
        await _store(rec).delete_by_message("m9", "g1")
    assert excinfo.value.status == 404
    assert str(excinfo.value) == "Reaction role configuration not found"
