import argparse
import asyncio
import logging
import sys

from .log_config import setup_logging


logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="roledash command line interface")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the API server and the Discord bot")

    login = subparsers.add_parser("login", help="Store an API token for the client")
    login.add_argument("token")

    subparsers.add_parser("logout", help="Forget the stored API token")

    list_cmd = subparsers.add_parser("list", help="List reaction-role groups of a guild")
    list_cmd.add_argument("guild")

    toggle = subparsers.add_parser("toggle", help="Enable or disable a reaction-role group")
    toggle.add_argument("guild")
    toggle.add_argument("binding_id")
    state = toggle.add_mutually_exclusive_group(required=True)
    state.add_argument("--on", dest="status", action="store_true")
    state.add_argument("--off", dest="status", action="store_false")

    delete = subparsers.add_parser("delete", help="Delete the reaction-role message")
    delete.add_argument("guild")
    delete.add_argument("message_id")

    self_roles = subparsers.add_parser(
        "self-roles", help="List self-assignable role commands of a guild"
    )
    self_roles.add_argument("guild")

    subparsers.add_parser("check-config", help="Validate configuration file")

    args = parser.parse_args(argv)

    setup_logging(debug=args.debug)

    if args.command == "serve":
        asyncio.run(_serve())
    elif args.command == "login":
        _login(args.token)
    elif args.command == "logout":
        _logout()
    elif args.command == "list":
        return asyncio.run(_list(args.guild))
    elif args.command == "toggle":
        return asyncio.run(_toggle(args.guild, args.binding_id, args.status))
    elif args.command == "delete":
        return asyncio.run(_delete(args.guild, args.message_id))
    elif args.command == "self-roles":
        return asyncio.run(_self_roles(args.guild))
    elif args.command == "check-config":
        return _check_config()
    return 0


async def _serve() -> None:
    """Start the API server and, when a token is configured, the bot."""
    import discord
    import uvicorn
    from discord.ext import commands

    from .config import load_config
    from .db.session import dispose_db, init_db, mask_url
    from .http.api import create_app
    from .http.discord_client import set_discord_client

    cfg = load_config()
    db_url = cfg.database.url
    logger.info("Initialising database at %s", mask_url(db_url))
    try:
        await init_db(db_url)
    except Exception:
        logger.exception("Database initialization failed")
        sys.exit(1)

    app = create_app(cfg)
    server = uvicorn.Server(
        uvicorn.Config(app, host=cfg.server.host, port=cfg.server.port, log_level="info")
    )
    tasks = [server.serve()]
    bot = None
    if cfg.discord_token:
        intents = discord.Intents.default()
        intents.reactions = True
        intents.guilds = True
        bot = commands.Bot(command_prefix="!", intents=intents)
        set_discord_client(bot)
        tasks.append(bot.start(cfg.discord_token))
    else:
        logger.warning("No Discord token configured; Discord-backed routes answer 503")

    logger.info("ApiBaseUrl: http://%s:%s", cfg.server.host, cfg.server.port)
    try:
        await asyncio.gather(*tasks)
    finally:
        if bot is not None:
            await bot.close()
        set_discord_client(None)
        await dispose_db()


def _session():
    from .client.session import Session, SessionStore
    from .config import load_config

    cfg = load_config()
    return cfg, Session(SessionStore(cfg.client.session_path))


def _login(token: str) -> None:
    _, session = _session()
    session.login(token)
    logger.info("Token stored at %s", session.store.path)


def _logout() -> None:
    _, session = _session()
    session.invalidate("Logged out")
    logger.info("Logged out")


def _panel(cfg, session, guild: str):
    from .client.http import ApiClient
    from .client.panel import ReactionRolesPanel
    from .client.store import ReactionRoleStore

    api = ApiClient(
        session,
        cfg.client.api_base,
        timeout=cfg.client.timeout,
        retries=cfg.client.retries,
    )
    return api, ReactionRolesPanel(ReactionRoleStore(api), guild)


def _flush_toasts(panel) -> int:
    failed = 0
    for toast in panel.toasts.drain():
        print(toast.message, file=sys.stderr if toast.tone == "error" else sys.stdout)
        failed += toast.tone == "error"
    return 1 if failed else 0


async def _list(guild: str) -> int:
    cfg, session = _session()
    api, panel = _panel(cfg, session, guild)
    async with api:
        groups = await panel.load()
    for group in groups:
        state = "on" if group.status else "off"
        print(
            f"[{state}] {group.title or '(untitled)'} "
            f"message={group.message_id} channel={group.channel_id} proxy={group.proxy_id}"
        )
        for binding in group.reactions:
            print(f"    {binding.id}: {binding.emoji} -> {binding.role_id} ({binding.type.value})")
    return _flush_toasts(panel)


async def _toggle(guild: str, binding_id: str, status: bool) -> int:
    from .schemas import ReactionBinding, ReactionRoleGroup

    cfg, session = _session()
    api, panel = _panel(cfg, session, guild)
    group = ReactionRoleGroup(status=not status, reactions=[ReactionBinding(id=binding_id)])
    async with api:
        await panel.toggle_status(group)
    return _flush_toasts(panel)


async def _delete(guild: str, message_id: str) -> int:
    from .schemas import ReactionRoleGroup

    cfg, session = _session()
    api, panel = _panel(cfg, session, guild)
    async with api:
        await panel.delete(ReactionRoleGroup(message_id=message_id))
    return _flush_toasts(panel)


async def _self_roles(guild: str) -> int:
    from .client.http import ApiClient
    from .client.store import SelfRoleStore
    from .errors import DashboardError

    cfg, session = _session()
    async with ApiClient(
        session, cfg.client.api_base, timeout=cfg.client.timeout, retries=cfg.client.retries
    ) as api:
        try:
            commands = await SelfRoleStore(api, guild).list()
        except DashboardError as exc:
            print(f"Failed to load self-assignable roles: {exc}", file=sys.stderr)
            return 1
    for command in commands:
        state = "on" if command.status else "off"
        roles = ", ".join(f"{r.role_id} ({r.type.value})" for r in command.roles)
        print(f"[{state}] /{command.command_name}: {roles}")
    return 0


def _check_config() -> int:
    """Validate that the configuration has what ``serve`` needs."""
    from .config import CFG_PATH, load_config, missing_values

    logger.info("Checking configuration…")
    if not CFG_PATH.exists():
        logger.warning("Configuration file not found at %s, using defaults", CFG_PATH)
    missing = missing_values(load_config())
    if missing:
        logger.warning("Missing config values: %s", ", ".join(missing))
        return 1
    logger.info("Configuration looks good.")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
