#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Realm list parsing and realm selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from realmlink.auth.AuthOpcodes import REALM_UNAVAILABLE_MASK, RealmFlags
from realmlink.codec.ByteBuffer import ByteBuffer
from realmlink.exceptions import MalformedPacketError, NoRealmAvailableError

DEFAULT_WORLD_PORT = 8085


@dataclass
class Realm:
    """One entry of REALM_LIST_S."""

    name: str
    host: str
    port: int
    flags: int = 0
    population: float = 0.0
    characters: int = 0
    type: int = 0
    locked: int = 0
    timezone: int = 0
    id: int = 0
    build: Optional[tuple[int, int, int, int]] = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def available(self) -> bool:
        return not self.flags & REALM_UNAVAILABLE_MASK


def split_address(address: str, default_port: int = DEFAULT_WORLD_PORT) -> tuple[str, int]:
    """Split "host:port"; a bare host gets default_port."""
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, default_port
    try:
        return host, int(port)
    except ValueError:
        raise MalformedPacketError(f"Invalid realm address '{address}'")


def read_realm(buf: ByteBuffer, default_port: int = DEFAULT_WORLD_PORT) -> Realm:
    """
    Read a single realm record. The trailing version tuple is only present
    when the realm carries the SPECIFYBUILD flag.
    """
    realm_type = buf.uint8()
    locked = buf.uint8()
    flags = buf.uint8()
    name = buf.cstring()
    host, port = split_address(buf.cstring(), default_port)
    population = buf.float()
    characters = buf.uint8()
    timezone = buf.uint8()
    realm_id = buf.uint8()

    build = None
    if flags & RealmFlags.SPECIFYBUILD:
        build = (buf.uint8(), buf.uint8(), buf.uint8(), buf.uint16())

    return Realm(
        name=name,
        host=host,
        port=port,
        flags=flags,
        population=population,
        characters=characters,
        type=realm_type,
        locked=locked,
        timezone=timezone,
        id=realm_id,
        build=build,
    )


def parse_realm_list(body: ByteBuffer, default_port: int = DEFAULT_WORLD_PORT) -> list[Realm]:
    """Parse the sized body of REALM_LIST_S (after cmd + size)."""
    body.uint32()  # unused
    count = body.uint16()
    return [read_realm(body, default_port) for _ in range(count)]


def eligible_realms(realms: Iterable[Realm]) -> list[Realm]:
    """Drop realms flagged invalid, offline or full, keeping list order."""
    return [realm for realm in realms if realm.available]


def select_realm(realms: Iterable[Realm], preferred: Optional[str] = None) -> Realm:
    """
    Pick the realm to join: the preferred one when it is eligible, otherwise
    the first eligible realm in server order.
    """
    candidates = eligible_realms(realms)
    if not candidates:
        raise NoRealmAvailableError()

    if preferred:
        for realm in candidates:
            if realm.name.lower() == preferred.lower():
                return realm

    return candidates[0]
