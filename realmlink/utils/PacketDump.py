#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from realmlink.utils.Logger import Logger


def bytes_to_hex_offsets(data: bytes, width=16):
    out = []
    for offset in range(0, len(data), width):
        chunk = data[offset:offset+width]

        hex_part = " ".join(f"{b:02X}" for b in chunk)
        pad = "   " * (width - len(chunk))
        ascii_part = "".join(chr(b) if 32 <= b <= 126 else "." for b in chunk)

        out.append(f"{offset:04X}: {hex_part}{pad}  {ascii_part}")

    return out


def dump_packet(direction: str, name: str, data: bytes) -> None:
    """Trace a packet at PACKET level as an offset/hex/ascii table."""
    lines = bytes_to_hex_offsets(data)
    Logger.packet(f"{direction} {name} ({len(data)} bytes)\n" + "\n".join(lines))
