from __future__ import annotations

"""Configuration handling for roledash.

Settings live in a JSON file (``~/.config/roledash/config.json`` unless
``ROLEDASH_CONFIG`` points elsewhere).  A small set of environment variables
overrides the file so containers can be configured without writing it; these
mirror the constants the dashboard backend has always read from its
environment (``DASHBOARD_PORT``, ``DASHBOARD_CORS_ORIGINS`` and friends).
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
import json
import logging
import os
from urllib.parse import quote_plus

CFG_PATH = Path(
    os.getenv("ROLEDASH_CONFIG", str(Path.home() / ".config" / "roledash" / "config.json"))
)
SESSION_PATH = Path.home() / ".config" / "roledash" / "session.json"


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 3001
    api_tokens: list[str] = field(default_factory=list)
    cors_origins: list[str] = field(default_factory=list)
    cors_allow_all: bool = False
    rate_window_ms: int = 60000
    rate_max: int = 120


@dataclass
class DBProfile:
    """Connection information for a single database profile."""

    host: str = "127.0.0.1"
    port: int = 3306
    database: str = "roledash"
    user: str = "roledash"
    password: str = ""


@dataclass
class DatabaseConfig:
    """Database configuration containing local and remote profiles.

    ``url_override`` wins over both profiles; it is how SQLite (or any other
    SQLAlchemy async URL) is selected.
    """

    use_remote: bool = False
    local: DBProfile = field(default_factory=DBProfile)
    remote: DBProfile = field(default_factory=DBProfile)
    url_override: str | None = None

    def active(self) -> DBProfile:
        return self.remote if self.use_remote else self.local

    @property
    def url(self) -> str:
        if self.url_override:
            return self.url_override
        cfg = self.active()
        return (
            f"mysql+aiomysql://{quote_plus(cfg.user)}:{quote_plus(cfg.password)}"
            f"@{cfg.host}:{cfg.port}/{cfg.database}"
        )


@dataclass
class ClientConfig:
    api_base: str = "http://127.0.0.1:3001"
    session_path: str = str(SESSION_PATH)
    timeout: float = 10.0
    retries: int = 1


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    discord_token: str = ""


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def apply_env_overrides(cfg: AppConfig, env: dict[str, str] | None = None) -> AppConfig:
    """Overlay environment variables on ``cfg`` and return it."""

    env = dict(os.environ) if env is None else env
    if env.get("DASHBOARD_HOST"):
        cfg.server.host = env["DASHBOARD_HOST"]
    if env.get("DASHBOARD_PORT"):
        cfg.server.port = int(env["DASHBOARD_PORT"])
    if env.get("DASHBOARD_API_TOKENS"):
        cfg.server.api_tokens = _split_csv(env["DASHBOARD_API_TOKENS"])
    if env.get("DASHBOARD_CORS_ORIGINS"):
        cfg.server.cors_origins = _split_csv(env["DASHBOARD_CORS_ORIGINS"])
    if "DASHBOARD_CORS_ALLOW_ALL" in env:
        cfg.server.cors_allow_all = env["DASHBOARD_CORS_ALLOW_ALL"] == "1"
    if env.get("DASHBOARD_RATE_WINDOW_MS"):
        cfg.server.rate_window_ms = int(env["DASHBOARD_RATE_WINDOW_MS"])
    if env.get("DASHBOARD_RATE_MAX"):
        cfg.server.rate_max = int(env["DASHBOARD_RATE_MAX"])
    if env.get("ROLEDASH_DATABASE_URL"):
        cfg.database.url_override = env["ROLEDASH_DATABASE_URL"]
    if env.get("DISCORD_TOKEN"):
        cfg.discord_token = env["DISCORD_TOKEN"]
    if env.get("ROLEDASH_API_BASE"):
        cfg.client.api_base = env["ROLEDASH_API_BASE"]
    if env.get("ROLEDASH_SESSION_PATH"):
        cfg.client.session_path = env["ROLEDASH_SESSION_PATH"]
    if env.get("ROLEDASH_TIMEOUT"):
        cfg.client.timeout = float(env["ROLEDASH_TIMEOUT"])
    return cfg


def load_config(path: Path | None = None, env: dict[str, str] | None = None) -> AppConfig:
    path = path or CFG_PATH
    cfg = AppConfig()
    if path.exists():
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError:
            logging.warning("Invalid JSON in %s, using defaults", path)
            return apply_env_overrides(cfg, env)
        db_data = data.get("database", {})
        cfg = AppConfig(
            server=ServerConfig(**data.get("server", {})),
            database=DatabaseConfig(
                use_remote=db_data.get("use_remote", False),
                local=DBProfile(**db_data.get("local", {})),
                remote=DBProfile(**db_data.get("remote", {})),
                url_override=db_data.get("url_override"),
            ),
            client=ClientConfig(**data.get("client", {})),
            discord_token=data.get("discord_token", ""),
        )
    return apply_env_overrides(cfg, env)


def save_config(cfg: AppConfig, path: Path | None = None) -> None:
    path = path or CFG_PATH
    data = {
        "server": asdict(cfg.server),
        "database": asdict(cfg.database),
        "client": asdict(cfg.client),
        "discord_token": cfg.discord_token,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    try:
        path.chmod(0o600)
    except OSError as exc:  # pragma: no cover - platform dependent
        logging.warning("Unable to set permissions on %s: %s", path, exc)


def missing_values(cfg: AppConfig) -> list[str]:
    """Return the names of settings ``serve`` cannot run without."""

    missing: list[str] = []
    if not cfg.server.api_tokens:
        missing.append("server.api_tokens")
    if not cfg.database.url_override:
        profile = cfg.database.active()
        if not profile.user or not profile.password:
            missing.append("database credentials")
    return missing
