from __future__ import annotations

import asyncio
import itertools
import types

import discord
import httpx
import pytest
import pytest_asyncio

from roledash.config import AppConfig, ServerConfig
from roledash.db.session import dispose_db, init_db
from roledash.http.api import create_app
from roledash.http.discord_client import set_discord_client
from roledash.http.routes import emojis

TOKEN = "test-token"
GUILD_ID = "100"
CHANNEL_ID = "200"


def not_found() -> discord.NotFound:
    return discord.NotFound(types.SimpleNamespace(status=404, reason="Not Found"), "Unknown")


def http_error(status: int = 500) -> discord.HTTPException:
    return discord.HTTPException(types.SimpleNamespace(status=status, reason="Error"), "boom")


class DummyMessage:
    def __init__(self, mid: int, content: str):
        self.id = mid
        self.content = content
        self.reactions: list[str] = []
        self.deleted = False
        self.edits: list[str] = []
        self.fail_reaction = False

    async def add_reaction(self, emoji):
        if self.fail_reaction:
            raise http_error(400)
        self.reactions.append(emoji)

    async def clear_reactions(self):
        self.reactions = []

    async def edit(self, content=None):
        self.edits.append(content)
        self.content = content

    async def delete(self):
        self.deleted = True


class DummyChannel:
    _ids = itertools.count(900000)

    def __init__(self, cid: int, position: int = 0, name: str = "general"):
        self.id = cid
        self.name = name
        self.position = position
        self.category_id = None
        self.type = discord.ChannelType.text
        self.messages: dict[int, DummyMessage] = {}
        self.fail_send = False
        # when set, sends block until this many are in flight
        self.hold_sends = 0
        self._pending = 0
        self._released = asyncio.Event()

    async def send(self, content):
        if self.fail_send:
            raise http_error()
        if self.hold_sends:
            self._pending += 1
            if self._pending >= self.hold_sends:
                self._released.set()
            await self._released.wait()
        message = DummyMessage(next(self._ids), content)
        self.messages[message.id] = message
        return message

    async def fetch_message(self, mid):
        try:
            return self.messages[mid]
        except KeyError:
            raise not_found() from None


class DummyGuild:
    def __init__(self, gid: int, roles=(), channels=(), emojis=()):
        self.id = gid
        self.roles = list(roles)
        self.text_channels = list(channels)
        self.emojis = list(emojis)


class DummyClient:
    def __init__(self, channels=(), guilds=(), ready: bool = True):
        self.channels = {c.id: c for c in channels}
        self.guilds = {g.id: g for g in guilds}
        self.ready = ready

    def is_ready(self):
        return self.ready

    def is_closed(self):
        return False

    def get_channel(self, cid):
        return self.channels.get(cid)

    async def fetch_channel(self, cid):
        raise not_found()

    def get_guild(self, gid):
        return self.guilds.get(gid)

    async def fetch_guild(self, gid):
        raise not_found()


@pytest_asyncio.fixture
async def db(tmp_path):
    await dispose_db()
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'roledash.db'}")
    yield
    await dispose_db()


@pytest.fixture
def channel():
    return DummyChannel(int(CHANNEL_ID))


@pytest.fixture
def discord_stub(channel):
    client = DummyClient(channels=[channel])
    set_discord_client(client)
    emojis._emoji_cache.clear()
    yield client
    set_discord_client(None)
    emojis._emoji_cache.clear()


@pytest.fixture
def app(db, discord_stub):
    return create_app(AppConfig(server=ServerConfig(api_tokens=[TOKEN])))


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {TOKEN}"},
    ) as http:
        yield http
