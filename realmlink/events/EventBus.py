#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Named notifications emitted by the protocol engine."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

from realmlink.utils.Logger import Logger

Listener = Callable[..., Any]

AUTH_OPENED = "auth_opened"
AUTH_CLOSED = "auth_closed"
AUTH_SUCCEEDED = "auth_succeeded"
REALM_SELECTED = "realm_selected"
WORLD_OPENED = "world_opened"
WORLD_CLOSED = "world_closed"
PACKET_SENT = "packet_sent"
PACKET_RECEIVED = "packet_received"
AUTH_ERROR = "auth_error"
CONNECTION_ERROR = "connection_error"
AUTH_QUEUED = "auth_queued"
CHARACTER_ENUM = "character_enum"
LOGIN_SUCCEEDED = "login_succeeded"
LOGIN_FAILED = "login_failed"
LOGOUT_SUCCEEDED = "logout_succeeded"
CHAT_MESSAGE_RECEIVED = "chat_message_received"
CHANNEL_NOTIFICATION_RECEIVED = "channel_notification_received"
PLAYER_NOT_FOUND = "player_not_found"
NAME_RESOLVED = "name_resolved"
GUILD_UPDATED = "guild_updated"
GUILD_EVENT = "guild_event"
SOCIAL_UPDATED = "social_updated"
MOTD_RECEIVED = "motd_received"
SERVER_NOTIFICATION_RECEIVED = "server_notification_received"


class EventBus:
    """Synchronous listener registry keyed by event name."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def add_listener(self, event: str, callback: Listener) -> None:
        if callback not in self._listeners[event]:
            self._listeners[event].append(callback)

    def remove_listener(self, event: str, callback: Listener) -> None:
        if callback in self._listeners.get(event, []):
            self._listeners[event].remove(callback)

    def notify(self, event: str, *args: Any) -> None:
        """Call every listener of event in registration order.

        A failing listener is logged and skipped; it never reaches the
        connection that emitted the event.
        """
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(*args)
            except Exception as e:
                Logger.error(f"[EventBus] listener for '{event}' failed: {e}")
