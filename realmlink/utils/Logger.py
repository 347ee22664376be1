#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from colorama import init, Fore, Style
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path

from realmlink.utils.ConfigLoader import ConfigLoader

init()


class DebugColorLevel(Enum):
    SUCCESS = Fore.GREEN + Style.BRIGHT
    INFO = Fore.BLUE + Style.BRIGHT
    WARNING = Fore.YELLOW + Style.BRIGHT
    ERROR = Fore.RED + Style.BRIGHT
    DEBUG = Fore.CYAN + Style.BRIGHT
    PACKET = Fore.MAGENTA + Style.BRIGHT


class DebugLevel(IntEnum):
    NONE = 0x00
    SUCCESS = 0x01
    INFO = 0x02
    WARNING = 0x08
    ERROR = 0x10
    DEBUG = 0x20
    PACKET = 0x40
    ALL = 0xff


LEVEL_MAP = {
    'None': DebugLevel.NONE,
    'Success': DebugLevel.SUCCESS,
    'Information': DebugLevel.INFO,
    'Warning': DebugLevel.WARNING,
    'Error': DebugLevel.ERROR,
    'Debug': DebugLevel.DEBUG,
    'Packet': DebugLevel.PACKET,
    'All': DebugLevel.ALL
}


class Logger:
    """Unified colored console logger + file logger."""

    @staticmethod
    def _logging_config() -> dict:
        return ConfigLoader.get_config().get('Logging', {})

    @staticmethod
    def _get_logging_mask(levels):
        mask = DebugLevel.NONE
        for level in levels:
            if level in LEVEL_MAP:
                mask |= LEVEL_MAP[level]

        return mask

    @staticmethod
    def _should_log(level: DebugLevel):
        levels = Logger._logging_config().get('logging_levels', 'All').split(', ')
        mask = Logger._get_logging_mask(levels)
        return (mask & level) != 0

    @staticmethod
    def _should_log_file(level: DebugLevel):
        if not Logger._logging_config().get('log_file'):
            return False
        levels = Logger._logging_config().get('logging_file_levels', 'All').split(', ')
        mask = Logger._get_logging_mask(levels)
        return (mask & level) != 0

    @staticmethod
    def _timestamp() -> str:
        return datetime.now().strftime(Logger._logging_config().get('date_format', '[%H:%M:%S]'))

    @staticmethod
    def _colorize(label, color, msg):
        if label:
            return f"{color.value}{label}{Style.RESET_ALL}{Logger._timestamp()} {msg}"
        return msg

    @staticmethod
    def add_to_log(msg, level_tag):
        path = Path(Logger._logging_config()['log_file'])
        path.parent.mkdir(parents=True, exist_ok=True)

        if level_tag:
            line = f"[{level_tag}] {Logger._timestamp()} {msg}"
        else:
            line = msg

        with open(path, "a", encoding='utf-8', errors='replace') as log:
            log.write(line + "\n")

    @staticmethod
    def set_level(levels: str):
        """Override console levels, e.g. "All" or "Error, Warning"."""
        ConfigLoader.get_config().setdefault('Logging', {})['logging_levels'] = levels

    # ===================================================================
    # Console + File logging methods
    # ===================================================================

    @staticmethod
    def _emit(level: DebugLevel, color: DebugColorLevel, tag: str, msg):
        if Logger._should_log(level):
            print(Logger._colorize(f"[{tag}]", color, msg))
        if Logger._should_log_file(level):
            Logger.add_to_log(msg, tag)

    @staticmethod
    def debug(msg):
        Logger._emit(DebugLevel.DEBUG, DebugColorLevel.DEBUG, "DEBUG", msg)

    @staticmethod
    def info(msg):
        Logger._emit(DebugLevel.INFO, DebugColorLevel.INFO, "INFO", msg)

    @staticmethod
    def warning(msg):
        Logger._emit(DebugLevel.WARNING, DebugColorLevel.WARNING, "WARNING", msg)

    @staticmethod
    def error(msg):
        Logger._emit(DebugLevel.ERROR, DebugColorLevel.ERROR, "ERROR", msg)

    @staticmethod
    def success(msg):
        Logger._emit(DebugLevel.SUCCESS, DebugColorLevel.SUCCESS, "SUCCESS", msg)

    @staticmethod
    def packet(msg):
        Logger._emit(DebugLevel.PACKET, DebugColorLevel.PACKET, "PACKET", msg)
