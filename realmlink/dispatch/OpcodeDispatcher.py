#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Opcode -> handler registry, one per protocol phase.

Handlers follow a single shape:

    handler(session, body: ByteBuffer) -> HandlerResult | None

`session` is the explicit connection state, `body` is the message with its
header already consumed. Handlers never touch the transport: they return the
packets to send and the events to emit, and the connection applies them in
order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from realmlink.codec.ByteBuffer import ByteBuffer
from realmlink.crypto.HeaderCrypt import HeaderCrypt
from realmlink.utils.Logger import Logger


@dataclass
class HandlerResult:
    """What a handler asks its connection to do."""

    packets: list[bytes] = field(default_factory=list)
    events: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    # installed only after `packets` went out, so they stay plaintext
    cipher: Optional[HeaderCrypt] = None

    def send(self, packet: bytes) -> "HandlerResult":
        self.packets.append(packet)
        return self

    def emit(self, event: str, *args: Any) -> "HandlerResult":
        self.events.append((event, args))
        return self


Handler = Callable[[Any, ByteBuffer], Optional[HandlerResult]]


class OpcodeDispatcher:
    """Integer-keyed dispatch table for one protocol phase."""

    def __init__(self, phase: str) -> None:
        self.phase = phase
        self._handlers: dict[int, Handler] = {}

    def __contains__(self, opcode: int) -> bool:
        return opcode in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def register(self, opcode: int, handler: Handler) -> None:
        """Bind handler to opcode; a later registration replaces an earlier one."""
        self._handlers[opcode] = handler

    def on(self, opcode: int) -> Callable[[Handler], Handler]:
        """Decorator form of register()."""
        def decorator(handler: Handler) -> Handler:
            self.register(opcode, handler)
            return handler
        return decorator

    def handler_for(self, opcode: int) -> Optional[Handler]:
        return self._handlers.get(opcode)

    def dispatch(self, session: Any, opcode: int, body: ByteBuffer) -> Optional[HandlerResult]:
        """Route body to the handler for opcode. Unknown opcodes are ignored."""
        handler = self._handlers.get(opcode)
        if handler is None:
            Logger.debug(f"[{self.phase}] no handler for opcode 0x{opcode:04X}, ignored")
            return None
        return handler(session, body)
