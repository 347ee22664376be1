#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Blocking socket driver for the logon and world connections.

The protocol objects never touch a socket; this module only moves bytes:
    logon:  connect -> challenge/proof -> realm list -> close
    world:  connect -> auth session -> character list -> login -> chat

Console commands while in world:
    /login <name>        enter the world with a character
    /w <name> <text>     whisper
    /g <text>            guild chat
    /y <text>            yell
    /join <channel>      join a chat channel
    /c <channel> <text>  channel chat
    /logout              back to character selection
    /quit                disconnect
    anything else        say
"""

import select
import socket
import sys

from realmlink.auth.AuthConnection import AuthConnection, AuthOutcome, AuthState
from realmlink.events import EventBus as events
from realmlink.events.EventBus import EventBus
from realmlink.exceptions import InvalidCredentialsError, RealmLinkError, StateError
from realmlink.utils.ConfigLoader import ConfigLoader
from realmlink.utils.Logger import Logger
from realmlink.world.WorldConnection import WorldConnection
from realmlink.world.WorldSession import WorldState
from realmlink.world.models import ChatType

RECV_SIZE = 4096


class RealmClient:
    def __init__(self, username: str, password: str, character: str | None = None,
                 config: dict | None = None, interactive: bool = True):
        self.cfg = config or ConfigLoader.get_config()
        self.username = username
        self.password = password
        self.character = character
        self.interactive = interactive

        self.events = EventBus()
        self.world: WorldConnection | None = None
        self._running = False
        self._register_listeners()

    # ============================================================
    # Flow
    # ============================================================

    def run(self) -> bool:
        """Log on, then stay in the world until the server or the user hangs up."""
        try:
            outcome = self._auth_flow()
            if outcome is None:
                return False
            self._world_flow(outcome)
        except InvalidCredentialsError as e:
            Logger.error(f"Bad credentials: {e}")
            return False
        except RealmLinkError:
            # already reported through auth_error / connection_error
            return False
        except OSError as e:
            Logger.error(f"Connection failed: {e}")
            return False
        return True

    def _connect(self, host: str, port: int) -> socket.socket:
        timeout = self.cfg["logon"].get("connect_timeout", 10)
        sock = socket.create_connection((host, port), timeout=timeout)
        sock.settimeout(None)
        return sock

    def _auth_flow(self) -> AuthOutcome | None:
        host = self.cfg["logon"]["host"]
        port = self.cfg["logon"]["port"]
        Logger.info(f"Connecting to logon server {host}:{port}")

        auth = AuthConnection(self.username, self.password, self.events, self.cfg)
        sock = self._connect(host, port)
        try:
            sock.sendall(auth.connection_made())
            while auth.state not in (AuthState.DONE, AuthState.FAILED):
                data = sock.recv(RECV_SIZE)
                if not data:
                    Logger.error("Logon server closed the connection")
                    break
                for pkt in auth.feed(data):
                    sock.sendall(pkt)
        finally:
            sock.close()
            auth.connection_lost()

        if auth.state is not AuthState.DONE:
            return None
        return auth.outcome

    def _world_flow(self, outcome: AuthOutcome) -> None:
        realm = outcome.realm
        Logger.info(f"Connecting to world server {realm.name} ({realm.address})")

        self.world = WorldConnection(outcome.username, outcome.session_key, self.events, self.cfg)
        sock = self._connect(realm.host, realm.port)
        self._running = True
        try:
            self.world.connection_made()
            self._loop(sock)
        finally:
            sock.close()
            self.world.connection_lost()
            self._running = False

    def _loop(self, sock: socket.socket) -> None:
        watch = [sock]
        if self.interactive:
            watch.append(sys.stdin)

        while self._running:
            readable, _, _ = select.select(watch, [], [])

            if sock in readable:
                data = sock.recv(RECV_SIZE)
                if not data:
                    Logger.warning("World server closed the connection")
                    return
                # includes whatever the listeners sent while it ran
                for pkt in self.world.feed(data):
                    sock.sendall(pkt)

            if sys.stdin in readable:
                line = sys.stdin.readline()
                if not line:
                    watch.remove(sys.stdin)
                    continue
                pkt = self._command(line.strip())
                if pkt:
                    sock.sendall(pkt)

    # ============================================================
    # Console
    # ============================================================

    def _command(self, text: str) -> bytes | None:
        if not text:
            return None

        world = self.world
        cmd, _, rest = text.partition(" ")
        try:
            if cmd == "/quit":
                self._running = False
                return None
            if cmd == "/login":
                return world.login(rest)
            if cmd == "/logout":
                return world.logout()
            if cmd == "/g":
                return world.guild_chat(rest)
            if cmd == "/y":
                return world.yell(rest)
            if cmd == "/join":
                return world.join_channel(rest)
            if cmd in ("/w", "/c"):
                target, _, msg = rest.partition(" ")
                if not target or not msg:
                    Logger.error(f"Usage: {cmd} <name> <message>")
                    return None
                return world.whisper(target, msg) if cmd == "/w" else world.channel_chat(target, msg)
            if cmd.startswith("/"):
                Logger.error(f"Unknown command {cmd}")
                return None
            return world.say(text)
        except StateError as e:
            Logger.warning(str(e))
            return None

    # ============================================================
    # Event listeners
    # ============================================================

    def _register_listeners(self):
        bus = self.events
        bus.add_listener(events.AUTH_SUCCEEDED, lambda user: Logger.success(f"Logged on as {user}"))
        bus.add_listener(events.REALM_SELECTED, lambda realm: Logger.success(f"Realm {realm.name} selected"))
        bus.add_listener(events.AUTH_ERROR, lambda e: Logger.error(f"Authentication failed: {e}"))
        bus.add_listener(events.CONNECTION_ERROR, lambda e: Logger.error(f"Connection error: {e}"))
        bus.add_listener(events.AUTH_QUEUED, lambda pos: Logger.info(f"Queued, position {pos}"))
        bus.add_listener(events.CHARACTER_ENUM, self._on_character_enum)
        bus.add_listener(events.LOGIN_SUCCEEDED, lambda char: Logger.success(f"Entered the world as {char.name}"))
        bus.add_listener(events.LOGIN_FAILED, lambda name: Logger.error(f"Unable to log in as {name}"))
        bus.add_listener(events.LOGOUT_SUCCEEDED, lambda: Logger.info("Logged out"))
        bus.add_listener(events.CHAT_MESSAGE_RECEIVED, self._on_chat)
        bus.add_listener(events.PLAYER_NOT_FOUND, lambda name: Logger.warning(f"No player named '{name}'"))
        bus.add_listener(events.CHANNEL_NOTIFICATION_RECEIVED,
                         lambda n: Logger.info(f"[Channel] {n.name} (notify 0x{n.type:02X})"))
        bus.add_listener(events.MOTD_RECEIVED, lambda motd: Logger.info(f"MOTD: {motd}"))
        bus.add_listener(events.SERVER_NOTIFICATION_RECEIVED, lambda text: Logger.info(f"[Server] {text}"))
        bus.add_listener(events.GUILD_UPDATED,
                         lambda guild: Logger.info(f"[Guild] {len(guild.online())}/{len(guild.members)} online"))

    def _on_character_enum(self, characters):
        if not characters:
            Logger.warning("No characters on this account")
            return

        for char in characters:
            Logger.info(f"  {char.name} (level {char.level})")

        name = self.character or (characters[0].name if not self.interactive else None)
        if name and self.world.state is WorldState.CHARACTER_SELECT:
            # queued by the connection and written from the feed() result
            self.world.login(name)
        elif self.interactive:
            Logger.info("Choose a character with /login <name>")

    def _on_chat(self, msg):
        who = msg.sender or f"0x{msg.guid:X}"
        if msg.type == ChatType.CHANNEL:
            Logger.info(f"[{msg.channel}] {who}: {msg.text}")
        elif msg.type == ChatType.WHISPER:
            Logger.info(f"{who} whispers: {msg.text}")
        elif msg.type == ChatType.GUILD:
            Logger.info(f"[Guild] {who}: {msg.text}")
        else:
            Logger.info(f"{who}: {msg.text}")


def main(args=None) -> int:
    from realmlink.utils.CliArgs import parse_args, resolve_password

    args = args or parse_args()
    if args.config:
        ConfigLoader.reload_config(args.config)
    cfg = ConfigLoader.get_config()

    if args.verbose:
        Logger.set_level("All")
    if args.host:
        cfg["logon"]["host"] = args.host
    if args.port:
        cfg["logon"]["port"] = args.port
    if args.realm:
        cfg["realm"]["preferred"] = args.realm

    client = RealmClient(args.username, resolve_password(args), args.character, cfg)
    return 0 if client.run() else 1
