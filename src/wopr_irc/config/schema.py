"""IRC config: typed per-connection settings and the schema shown to the host."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger

from wopr_irc.core.constants import (
    DEFAULT_COMMAND_PREFIX,
    DEFAULT_FLOOD_DELAY_MS,
    DEFAULT_MAX_MESSAGE_LENGTH,
    DEFAULT_PORT,
    DEFAULT_REALNAME,
    RECONNECT_MAX_RETRIES,
    RECONNECT_MAX_WAIT,
)
from wopr_irc.core.errors import ConfigurationError

if TYPE_CHECKING:
    from wopr_irc.adapters.irc.client import ConnectOptions


def _parse_bool(val: Any) -> bool | None:
    """Parse bool or bool-like string; None if not recognized."""
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float)):
        return bool(val)
    v = str(val).strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    return None


def _pick(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present, non-None value among ``keys`` (camelCase and snake_case spellings)."""
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return default


def _int_field(name: str, value: Any, *, minimum: int, maximum: int | None = None) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer", code=f"invalid_{name}", details={"value": value})
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"{name} must be an integer",
            code=f"invalid_{name}",
            details={"value": value},
            original_error=exc,
        ) from exc
    if number < minimum or (maximum is not None and number > maximum):
        raise ConfigurationError(
            f"{name} out of range",
            code=f"invalid_{name}",
            details={"value": number, "min": minimum, "max": maximum},
        )
    return number


def _channels(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(c.strip() for c in value.split(",") if c.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(c).strip() for c in value if str(c).strip())
    raise ConfigurationError(
        "channels must be a list",
        code="invalid_channels",
        details={"type": type(value).__name__},
    )


@dataclass(frozen=True)
class IrcConfig:
    """Settings for one connection. Flood delay is in milliseconds."""

    server: str
    nick: str
    channels: tuple[str, ...]
    port: int = DEFAULT_PORT
    use_tls: bool = True
    password: str | None = None
    flood_delay: int = DEFAULT_FLOOD_DELAY_MS
    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH
    command_prefix: str = DEFAULT_COMMAND_PREFIX
    username: str = ""
    realname: str = DEFAULT_REALNAME

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None) -> IrcConfig | None:
        """Build from host config.

        Returns None (with a warning) when server, nick or channels are
        missing. Raises ConfigurationError when a value is present but invalid.
        """
        if raw is not None and not isinstance(raw, dict):
            raise ConfigurationError(
                "IRC config must be a mapping",
                code="invalid_config",
                details={"type": type(raw).__name__},
            )
        raw = raw or {}
        server = str(raw.get("server") or "").strip()
        nick = str(raw.get("nick") or "").strip()
        channels = _channels(raw["channels"]) if raw.get("channels") is not None else ()
        if not server or not nick or not channels:
            logger.warning("IRC plugin not configured (missing server, nick, or channels)")
            return None

        use_tls = _parse_bool(_pick(raw, "useTLS", "use_tls", "tls", default=True))
        if use_tls is None:
            raise ConfigurationError("useTLS must be a boolean", code="invalid_use_tls")

        password = _pick(raw, "password")
        prefix = _pick(raw, "commandPrefix", "command_prefix", default=DEFAULT_COMMAND_PREFIX)

        return cls(
            server=server,
            nick=nick,
            channels=channels,
            port=_int_field("port", _pick(raw, "port", default=DEFAULT_PORT), minimum=1, maximum=65535),
            use_tls=use_tls,
            password=str(password) if password else None,
            flood_delay=_int_field(
                "flood_delay",
                _pick(raw, "floodDelay", "flood_delay", default=DEFAULT_FLOOD_DELAY_MS),
                minimum=0,
            ),
            max_message_length=_int_field(
                "max_message_length",
                _pick(raw, "maxMessageLength", "max_message_length", default=DEFAULT_MAX_MESSAGE_LENGTH),
                minimum=1,
            ),
            command_prefix=str(prefix),
            username=str(_pick(raw, "username", default="") or ""),
            realname=str(_pick(raw, "realname", default="") or "") or DEFAULT_REALNAME,
        )

    def connect_options(self) -> ConnectOptions:
        from wopr_irc.adapters.irc.client import ConnectOptions

        return ConnectOptions(
            host=self.server,
            port=self.port,
            nick=self.nick,
            username=self.username or self.nick,
            gecos=self.realname or DEFAULT_REALNAME,
            tls=self.use_tls,
            password=self.password or None,
            auto_reconnect=True,
            auto_reconnect_max_wait=RECONNECT_MAX_WAIT,
            auto_reconnect_max_retries=RECONNECT_MAX_RETRIES,
        )


@dataclass
class ConfigField:
    name: str
    type: str
    label: str
    description: str = ""
    placeholder: str | None = None
    default: Any = None
    required: bool = False
    secret: bool = False
    items: ConfigField | None = None
    setup_flow: str = "paste"


@dataclass
class ConfigSchema:
    """Form description the host renders for plugin setup."""

    title: str
    description: str
    fields: list[ConfigField] = field(default_factory=list)

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def to_dict(self) -> dict[str, Any]:
        """Plain dict with unset optional keys removed."""

        def _clean(value: Any) -> Any:
            if isinstance(value, dict):
                return {k: _clean(v) for k, v in value.items() if v is not None and v is not False}
            if isinstance(value, list):
                return [_clean(v) for v in value]
            return value

        return _clean(asdict(self))


CONFIG_SCHEMA = ConfigSchema(
    title="IRC Integration",
    description="Configure IRC bot integration for channels and private messages",
    fields=[
        ConfigField(
            name="server",
            type="text",
            label="IRC Server",
            placeholder="irc.libera.chat",
            required=True,
            description="IRC server hostname",
        ),
        ConfigField(
            name="port",
            type="number",
            label="Port",
            placeholder="6697",
            default=DEFAULT_PORT,
            description="IRC server port (6697 for TLS, 6667 for plain)",
        ),
        ConfigField(
            name="nick",
            type="text",
            label="Nickname",
            placeholder="wopr-bot",
            required=True,
            description="IRC nickname for the bot",
        ),
        ConfigField(
            name="channels",
            type="array",
            label="Channels",
            required=True,
            description="IRC channels to join (e.g., #general)",
            items=ConfigField(name="channel", type="text", label="Channel", placeholder="#channel"),
        ),
        ConfigField(
            name="useTLS",
            type="checkbox",
            label="Use TLS/SSL",
            default=True,
            description="Connect using TLS/SSL encryption",
        ),
        ConfigField(
            name="password",
            type="password",
            label="Server Password",
            description="IRC server password (optional)",
            secret=True,
        ),
        ConfigField(
            name="floodDelay",
            type="number",
            label="Flood Delay (ms)",
            default=DEFAULT_FLOOD_DELAY_MS,
            description="Minimum delay between outgoing messages",
        ),
        ConfigField(
            name="maxMessageLength",
            type="number",
            label="Max Message Length",
            default=DEFAULT_MAX_MESSAGE_LENGTH,
            description="Maximum message length in bytes (IRC standard: 512)",
        ),
        ConfigField(
            name="commandPrefix",
            type="text",
            label="Command Prefix",
            default=DEFAULT_COMMAND_PREFIX,
            description="Prefix character for bot commands",
        ),
        ConfigField(
            name="username",
            type="text",
            label="Username",
            placeholder="wopr",
            description="IRC username (ident)",
        ),
        ConfigField(
            name="realname",
            type="text",
            label="Real Name",
            placeholder="WOPR Bot",
            description="IRC real name (GECOS)",
        ),
    ],
)
