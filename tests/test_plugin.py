"""Tests for IRCPlugin lifecycle and wire-event handling (adapters/irc/adapter.py)."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, call, patch

import pytest
from mocks import MockHost, make_mock_client, valid_config

from wopr_irc.adapters.irc.adapter import MANIFEST, ConnectionState, IRCPlugin, is_valid_channel
from wopr_irc.config.schema import CONFIG_SCHEMA
from wopr_irc.core.errors import NotConnectedError
from wopr_irc.events import (
    Close,
    CtcpRequest,
    Kick,
    NickChange,
    NickInUse,
    PrivMsg,
    Reconnecting,
    Registered,
    SocketError,
)
from wopr_irc.gateway.registry import Command, DispatchRegistry

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _start(config: dict | None = None, *, rejoin_delay: float = 0.05, **host_kwargs):
    """Init a plugin against a mock host with a mocked wire client."""
    host = MockHost(config if config is not None else valid_config(), **host_kwargs)
    client = make_mock_client("testbot")
    plugin = IRCPlugin(rejoin_delay=rejoin_delay)
    with patch("wopr_irc.adapters.irc.adapter.IRCClient", MagicMock(return_value=client)):
        await plugin.init(host)
    return plugin, host, client


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


class TestInit:
    @pytest.mark.asyncio
    async def test_connect_uses_defaults(self):
        # Arrange / Act
        plugin, _, client = await _start({"server": "irc.test.com", "nick": "bot", "channels": ["#test"]})

        # Assert
        client.start.assert_called_once()
        options = client.start.call_args.args[0]
        assert options.host == "irc.test.com"
        assert options.tls is True
        assert options.port == 6697
        assert options.auto_reconnect is True
        assert options.auto_reconnect_max_wait == 30.0
        assert options.auto_reconnect_max_retries == 10
        assert options.username == "bot"
        assert options.gecos == "WOPR Bot"
        assert options.password is None
        assert plugin.state is ConnectionState.CONNECTING
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_client_built_from_config_identity(self):
        # Arrange
        factory = MagicMock(return_value=make_mock_client("bot"))
        plugin = IRCPlugin()
        config = {"server": "irc.test.com", "nick": "bot", "channels": ["#test"], "username": "ident", "realname": "Real"}

        # Act
        with patch("wopr_irc.adapters.irc.adapter.IRCClient", factory):
            await plugin.init(MockHost(config))

        # Assert
        factory.assert_called_once_with("bot", username="ident", realname="Real", on_event=plugin.handle_event)
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_registers_schema_and_provider(self):
        # Arrange / Act
        plugin, host, _ = await _start()

        # Assert
        assert host.schemas["wopr-plugin-irc"] is CONFIG_SCHEMA
        assert host.providers["irc"] is plugin.provider
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_flood_delay_converted_to_seconds(self):
        # Arrange / Act
        plugin, _, _ = await _start(valid_config(floodDelay=750))

        # Assert
        assert plugin.context.pacer.delay == 0.75
        await plugin.shutdown()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "config",
        [
            {},
            {"server": "irc.test.com", "nick": "bot"},
            {"server": "irc.test.com", "channels": ["#a"]},
            {"nick": "bot", "channels": ["#a"]},
            {"server": "irc.test.com", "nick": "bot", "channels": []},
        ],
    )
    async def test_incomplete_config_stays_unconfigured(self, config):
        # Arrange
        factory = MagicMock()
        plugin = IRCPlugin()
        host = MockHost(config)

        # Act
        with patch("wopr_irc.adapters.irc.adapter.IRCClient", factory):
            await plugin.init(host)

        # Assert
        factory.assert_not_called()
        assert plugin.state is ConnectionState.UNCONFIGURED
        assert plugin.client is None
        assert "irc" in host.providers

    @pytest.mark.asyncio
    async def test_malformed_config_stays_unconfigured(self):
        # Arrange
        factory = MagicMock()
        plugin = IRCPlugin()

        # Act
        with patch("wopr_irc.adapters.irc.adapter.IRCClient", factory):
            await plugin.init(MockHost(valid_config(port="not-a-port")))

        # Assert
        factory.assert_not_called()
        assert plugin.state is ConnectionState.UNCONFIGURED

    @pytest.mark.asyncio
    async def test_second_init_is_ignored(self):
        # Arrange
        plugin, host, client = await _start()

        # Act
        with patch("wopr_irc.adapters.irc.adapter.IRCClient") as factory:
            await plugin.init(host)

        # Assert
        factory.assert_not_called()
        assert plugin.client is client
        await plugin.shutdown()

    def test_metadata(self):
        assert IRCPlugin.name == "wopr-plugin-irc"
        assert IRCPlugin.version == "1.0.0"
        assert MANIFEST.name == "@wopr-network/wopr-plugin-irc"
        assert MANIFEST.capabilities == ("channel", "commands")
        assert MANIFEST.category == "channel"
        assert {"irc", "chat"} <= set(MANIFEST.tags)
        assert MANIFEST.lifecycle["shutdown_behavior"] == "graceful"
        assert MANIFEST.config_schema is CONFIG_SCHEMA


# ---------------------------------------------------------------------------
# Registration / joins
# ---------------------------------------------------------------------------


class TestRegistered:
    @pytest.mark.asyncio
    async def test_joins_each_channel_once_in_order(self):
        # Arrange
        plugin, _, client = await _start(valid_config(channels=["#one", "#two", "&three"]))

        # Act
        await plugin.handle_event(Registered(nick="testbot"))

        # Assert
        assert client.join_channel.call_args_list == [call("#one"), call("#two"), call("&three")]
        assert plugin.state is ConnectionState.REGISTERED
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_invalid_channel_names_skipped(self):
        # Arrange
        plugin, _, client = await _start(valid_config(channels=["#ok", "nohash", "#bad name", "#a,b", "#fine"]))

        # Act
        await plugin.handle_event(Registered(nick="testbot"))

        # Assert
        assert client.join_channel.call_args_list == [call("#ok"), call("#fine")]
        await plugin.shutdown()

    @pytest.mark.parametrize(
        ("name", "valid"),
        [("#chan", True), ("&local", True), ("+modeless", True), ("!safe", True), ("#", False), ("chan", False),
         ("#a b", False), ("#a,b", False), ("#bell\x07", False)],
    )
    def test_channel_name_validation(self, name, valid):
        assert is_valid_channel(name) is valid


# ---------------------------------------------------------------------------
# Kick / rejoin
# ---------------------------------------------------------------------------


class TestKick:
    @pytest.mark.asyncio
    async def test_own_kick_rejoins_after_delay(self):
        # Arrange
        plugin, _, client = await _start(rejoin_delay=0.05)

        # Act
        await plugin.handle_event(Kick(kicked="testbot", nick="op", channel="#test", message="bye"))

        # Assert: not before the delay
        await asyncio.sleep(0.02)
        client.join_channel.assert_not_called()
        await asyncio.sleep(0.06)
        client.join_channel.assert_called_once_with("#test")
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_own_kick_matches_nick_case_insensitively(self):
        # Arrange
        plugin, _, client = await _start(rejoin_delay=0)

        # Act
        await plugin.handle_event(Kick(kicked="TESTBOT", nick="op", channel="#test"))
        await asyncio.sleep(0.01)

        # Assert
        client.join_channel.assert_called_once_with("#test")
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_other_kick_ignored(self):
        # Arrange
        plugin, _, client = await _start(rejoin_delay=0)

        # Act
        await plugin.handle_event(Kick(kicked="alice", nick="op", channel="#test"))
        await asyncio.sleep(0.01)

        # Assert
        client.join_channel.assert_not_called()
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending_rejoin(self):
        # Arrange
        plugin, _, client = await _start(rejoin_delay=0.05)
        await plugin.handle_event(Kick(kicked="testbot", nick="op", channel="#test"))

        # Act
        await plugin.shutdown()
        await asyncio.sleep(0.08)

        # Assert
        client.join_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejoin_while_disconnected_is_contained(self):
        # Arrange
        plugin, _, client = await _start(rejoin_delay=0)
        client.join_channel.side_effect = NotConnectedError("Not connected to IRC server", code="not_connected")
        await plugin.handle_event(Kick(kicked="testbot", nick="op", channel="#test"))
        rejoin = next(iter(plugin._tasks))

        # Act
        await rejoin

        # Assert
        client.join_channel.assert_called_once_with("#test")
        assert rejoin.exception() is None
        await plugin.shutdown()

    def test_default_rejoin_delay_is_two_seconds(self):
        assert IRCPlugin()._rejoin_delay == 2.0


# ---------------------------------------------------------------------------
# CTCP
# ---------------------------------------------------------------------------


class TestCtcp:
    @pytest.mark.asyncio
    async def test_version(self):
        # Arrange
        plugin, _, client = await _start()

        # Act
        await plugin.handle_event(CtcpRequest(nick="alice", target="testbot", type="VERSION"))

        # Assert
        client.ctcp_response.assert_called_once_with("alice", "VERSION", "WOPR IRC Plugin 1.0.0")
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_ping_echoes_payload(self):
        # Arrange
        plugin, _, client = await _start()

        # Act
        await plugin.handle_event(CtcpRequest(nick="alice", target="testbot", type="ping", message="1234567890"))

        # Assert
        client.ctcp_response.assert_called_once_with("alice", "PING", "1234567890")
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_other_types_ignored(self):
        # Arrange
        plugin, _, client = await _start()

        # Act
        await plugin.handle_event(CtcpRequest(nick="alice", target="testbot", type="TIME"))

        # Assert
        client.ctcp_response.assert_not_called()
        await plugin.shutdown()


# ---------------------------------------------------------------------------
# Nicks
# ---------------------------------------------------------------------------


class TestNicks:
    @pytest.mark.asyncio
    async def test_nick_in_use_picks_suffixed_alternative(self):
        # Arrange
        plugin, _, client = await _start()

        # Act
        with patch("wopr_irc.adapters.irc.adapter.random.randint", return_value=42):
            await plugin.handle_event(NickInUse())

        # Assert
        client.change_nick.assert_called_once_with("testbot_42")
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_reclaims_configured_nick_when_released(self):
        # Arrange
        plugin, _, client = await _start()
        client.nick = "testbot_42"

        # Act
        await plugin.handle_event(NickChange(nick="testbot", new_nick="ghost"))

        # Assert
        client.change_nick.assert_called_once_with("testbot")
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_no_reclaim_when_holding_configured_nick(self):
        # Arrange
        plugin, _, client = await _start()

        # Act
        await plugin.handle_event(NickChange(nick="testbot", new_nick="other"))

        # Assert
        client.change_nick.assert_not_called()
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_unrelated_nick_change_ignored(self):
        # Arrange
        plugin, _, client = await _start()
        client.nick = "testbot_42"

        # Act
        await plugin.handle_event(NickChange(nick="alice", new_nick="alice_away"))

        # Assert
        client.change_nick.assert_not_called()
        await plugin.shutdown()


# ---------------------------------------------------------------------------
# Messages and connection events
# ---------------------------------------------------------------------------


class TestEvents:
    @pytest.mark.asyncio
    async def test_privmsg_runs_pipeline_in_background(self):
        # Arrange
        plugin, host, client = await _start(response="hello alice")

        # Act
        await plugin.handle_event(
            PrivMsg(nick="alice", ident="a", hostname="h", target="#test", message="hi bot")
        )
        await asyncio.sleep(0.01)

        # Assert
        assert host.injects[0]["text"] == "hi bot"
        client.say.assert_called_once_with("#test", "hello alice")
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_registered_command_reachable_from_wire(self):
        # Arrange
        plugin, host, client = await _start()

        async def ping(ctx) -> None:
            await ctx.reply(f"pong {ctx.sender}")

        plugin.provider.register_command(Command(name="ping", handler=ping))

        # Act
        await plugin.handle_event(PrivMsg(nick="alice", ident="a", hostname="h", target="#test", message="!ping"))
        await asyncio.sleep(0.01)

        # Assert
        client.say.assert_called_once_with("#test", "pong alice")
        assert host.injects == []
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_action_messages_not_dispatched(self):
        # Arrange
        plugin, host, _ = await _start()

        # Act
        await plugin.handle_event(
            PrivMsg(nick="alice", ident="a", hostname="h", target="#test", message="waves", type="action")
        )
        await asyncio.sleep(0.01)

        # Assert
        assert host.injects == []
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_reconnecting_updates_state(self):
        # Arrange
        plugin, _, _ = await _start()

        # Act
        await plugin.handle_event(Reconnecting(attempt=2, delay=1.5))

        # Assert
        assert plugin.state is ConnectionState.RECONNECTING
        await plugin.handle_event(Registered(nick="testbot"))
        assert plugin.state is ConnectionState.REGISTERED
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_close_and_socket_error_are_logged_only(self):
        # Arrange
        plugin, _, client = await _start()

        # Act
        await plugin.handle_event(Close())
        await plugin.handle_event(SocketError(error=OSError("reset")))

        # Assert
        client.join_channel.assert_not_called()
        assert plugin.state is ConnectionState.CONNECTING
        await plugin.shutdown()


# ---------------------------------------------------------------------------
# shutdown
# ---------------------------------------------------------------------------


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_tears_down(self):
        # Arrange
        plugin, host, client = await _start()
        pacer = plugin.context.pacer

        # Act
        await plugin.shutdown()

        # Assert
        client.quit.assert_awaited_once_with("WOPR shutting down")
        client.close.assert_awaited_once()
        assert host.unregistered_providers == ["irc"]
        assert host.unregistered_schemas == ["wopr-plugin-irc"]
        assert plugin.client is None
        assert plugin.context.pacer is None
        assert plugin.config is None
        assert pacer.pending == 0
        assert plugin.state is ConnectionState.SHUT_DOWN

    @pytest.mark.asyncio
    async def test_shutdown_twice_quits_once(self):
        # Arrange
        plugin, host, client = await _start()

        # Act
        await plugin.shutdown()
        await plugin.shutdown()

        # Assert
        client.quit.assert_awaited_once()
        assert host.unregistered_providers == ["irc"]

    @pytest.mark.asyncio
    async def test_quit_failure_still_closes(self):
        # Arrange
        plugin, _, client = await _start()
        client.quit.side_effect = ConnectionResetError("reset")

        # Act
        await plugin.shutdown()

        # Assert
        client.close.assert_awaited_once()
        assert plugin.state is ConnectionState.SHUT_DOWN

    @pytest.mark.asyncio
    async def test_shutdown_without_init_is_noop(self):
        # Arrange
        plugin = IRCPlugin()

        # Act
        await plugin.shutdown()

        # Assert
        assert plugin.state is ConnectionState.UNCONFIGURED

    @pytest.mark.asyncio
    async def test_events_after_shutdown_ignored(self):
        # Arrange
        plugin, _, client = await _start()
        await plugin.shutdown()

        # Act
        await plugin.handle_event(Registered(nick="testbot"))

        # Assert
        client.join_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_registry_survives_reinit(self):
        # Arrange
        registry = DispatchRegistry()
        registry.register_command(Command(name="ping", handler=lambda ctx: None))
        plugin = IRCPlugin(registry=registry)
        host = MockHost(valid_config())

        # Act
        with patch("wopr_irc.adapters.irc.adapter.IRCClient", MagicMock(side_effect=lambda *args, **kw: make_mock_client())):
            await plugin.init(host)
            await plugin.shutdown()
            await plugin.init(host)

        # Assert
        assert plugin.provider.get_commands()[0].name == "ping"
        assert plugin.state is ConnectionState.CONNECTING
        await plugin.shutdown()

    @pytest.mark.asyncio
    async def test_send_after_shutdown_raises(self):
        # Arrange
        from wopr_irc.core.errors import ClientNotInitializedError

        plugin, _, _ = await _start()
        await plugin.shutdown()

        # Act / Assert
        with pytest.raises(ClientNotInitializedError):
            await plugin.provider.send("#test", "late")
