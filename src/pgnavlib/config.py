from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .credentials import decrypt_password, encrypt_password
from .errors import CredentialError
from .models import ConnectionProfile

logger = logging.getLogger(__name__)

DEFAULT_ITEMS_PER_PAGE = 20
DEFAULT_LOG_FILE = "/tmp/pgnav_debug.log"


class ConfigError(RuntimeError):
    pass


@dataclass
class StoredConnection:
    name: str
    host: str
    port: int
    database: str
    username: str
    password: Optional[str] = None
    password_cipher: Optional[str] = None
    password_nonce: Optional[str] = None

    def to_profile(self) -> ConnectionProfile:
        return ConnectionProfile(
            name=self.name,
            host=self.host,
            port=self.port,
            database=self.database,
            username=self.username,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "username": self.username,
        }
        if self.password_cipher is not None:
            out["password_cipher"] = self.password_cipher
            out["password_nonce"] = self.password_nonce
        elif self.password is not None:
            out["password"] = self.password
        return out


@dataclass
class Config:
    version: int = 1
    items_per_page: int = DEFAULT_ITEMS_PER_PAGE
    log_file: str = DEFAULT_LOG_FILE
    connections: Dict[str, StoredConnection] = field(default_factory=dict)
    source_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "items_per_page": self.items_per_page,
            "log_file": self.log_file,
            "connections": {name: conn.to_dict() for name, conn in sorted(self.connections.items())},
        }


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        # Expand ${VAR} style
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def _as_connection(name: str, raw: Dict[str, Any]) -> StoredConnection:
    if not isinstance(raw, dict):
        raise ConfigError(f"Connection '{name}' is not a mapping")
    try:
        port = int(raw.get("port", 5432))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Connection '{name}' has an invalid port: {raw.get('port')!r}") from e
    if not 0 < port < 65536:
        raise ConfigError(f"Connection '{name}' has an invalid port: {port}")

    return StoredConnection(
        name=name,
        host=str(raw.get("host", "localhost")),
        port=port,
        database=str(raw.get("database", "")),
        username=str(raw.get("username", "")),
        password=raw.get("password"),
        password_cipher=raw.get("password_cipher"),
        password_nonce=raw.get("password_nonce"),
    )


def resolve_config_path() -> Path:
    """Locate the config file; the returned path may not exist yet."""
    # Highest priority: explicit override
    override = os.environ.get("PGNAV_CONFIG")
    if override:
        return Path(override).expanduser()

    # XDG base dirs
    xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser()
    default = xdg_home / "pgnav" / "config.yaml"
    candidates = [default]

    xdg_dirs = os.environ.get("XDG_CONFIG_DIRS", "/etc/xdg")
    for d in xdg_dirs.split(":"):
        if d:
            candidates.append(Path(d) / "pgnav" / "config.yaml")

    for c in candidates:
        if c.is_file():
            return c

    return default


def load_config(path: Optional[Path] = None) -> Config:
    cfg_path = path or resolve_config_path()
    if not cfg_path.is_file():
        logger.info("No config at %s, starting empty", cfg_path)
        return Config(source_path=cfg_path)

    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {cfg_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {cfg_path} is not a mapping")

    data = _expand_env(data)
    connections_raw = data.get("connections") or {}
    if not isinstance(connections_raw, dict):
        raise ConfigError("'connections' is not a mapping")
    connections: Dict[str, StoredConnection] = {
        str(name): _as_connection(str(name), raw or {}) for name, raw in connections_raw.items()
    }

    try:
        items_per_page = int(data.get("items_per_page", DEFAULT_ITEMS_PER_PAGE))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"items_per_page must be an integer: {data.get('items_per_page')!r}") from e
    if items_per_page <= 0:
        raise ConfigError(f"items_per_page must be positive, got {items_per_page}")

    return Config(
        version=int(data.get("version", 1)),
        items_per_page=items_per_page,
        log_file=str(data.get("log_file") or DEFAULT_LOG_FILE),
        connections=connections,
        source_path=cfg_path,
    )


class ProfileStore:
    """Named connection profiles persisted in the config file.

    Passwords are stored encrypted with a key kept in ``key.bin`` next to the
    config file. Legacy plaintext ``password`` entries are still readable.
    """

    def __init__(self, config: Config):
        self.config = config
        path = config.source_path or resolve_config_path()
        self.path = path
        self.key_path = path.parent / "key.bin"

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ProfileStore":
        return cls(load_config(path))

    def list(self) -> List[str]:
        return sorted(self.config.connections)

    def get(self, name: str) -> Optional[ConnectionProfile]:
        stored = self.config.connections.get(name)
        if stored is None:
            return None
        return stored.to_profile()

    def resolve_password(self, profile: ConnectionProfile) -> str:
        stored = self.config.connections.get(profile.name)
        if stored is None:
            raise CredentialError(f"Connection '{profile.name}' is not stored")
        if stored.password_cipher and stored.password_nonce:
            return decrypt_password(stored.password_cipher, stored.password_nonce, self.key_path)
        if stored.password is not None:
            return str(stored.password)
        raise CredentialError(f"No password stored for connection '{profile.name}'")

    def add(self, profile: ConnectionProfile, password: str) -> None:
        cipher, nonce = encrypt_password(password, self.key_path)
        self.config.connections[profile.name] = StoredConnection(
            name=profile.name,
            host=profile.host,
            port=profile.port,
            database=profile.database,
            username=profile.username,
            password_cipher=cipher,
            password_nonce=nonce,
        )
        logger.info("Stored connection '%s'", profile.name)

    def remove(self, name: str) -> bool:
        removed = self.config.connections.pop(name, None) is not None
        if removed:
            logger.info("Removed connection '%s'", name)
        return removed

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(self.config.to_dict(), sort_keys=False))
        logger.info("Saved config to %s", self.path)
