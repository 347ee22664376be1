#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import os
import yaml
from pathlib import Path
from copy import deepcopy

from realmlink.exceptions import ConfigError

# GLOBALS
_config = None

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "etc" / "config.yaml"
CONFIG_ENV = "REALMLINK_CONFIG"

DEFAULTS = {
    "logon": {
        "host": "127.0.0.1",
        "port": 3724,
        "connect_timeout": 10,
    },
    "client": {
        "version": [2, 4, 3],
        "build": 8606,
        "platform": "x86",
        "os": "Win",
        "locale": "enGB",
        "timezone": 60,
        "ip": "127.0.0.1",
    },
    "realm": {
        "preferred": None,
    },
    "world": {
        "header_cipher": "hmac_xor",
        "max_opcode": 0x0FFF,
        "default_port": 8085,
    },
    "Logging": {
        "logging_levels": "Information, Success, Warning, Error",
        "logging_file_levels": "All",
        "date_format": "[%H:%M:%S]",
        "log_file": "",
    },
}


def _merge_dicts(base: dict, override: dict) -> dict:
    """
    Shallow+nested merge: values in override win; dict values are merged recursively.
    """
    result = deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _merge_dicts(result[k], v)
        else:
            result[k] = deepcopy(v)
    return result


def _resolve_path(filepath) -> tuple[Path, bool]:
    """Return (path, explicit) for the config file to load."""
    if filepath:
        return Path(filepath), True
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path), True
    return DEFAULT_CONFIG_PATH, False


class ConfigLoader:
    @staticmethod
    def get_config() -> dict:
        """
        Returns the cached configuration, loading it on first use.
        """
        global _config
        if _config is None:
            _config = ConfigLoader.load_config()
        return _config

    @staticmethod
    def load_config(filepath: str | None = None) -> dict:
        """
        Loads the configuration file if not already cached.

        The file is merged over DEFAULTS so a partial config.yaml is enough.
        An explicitly requested file that does not exist is an error; a
        missing default file falls back to DEFAULTS.
        """
        global _config

        if _config is None:
            path, explicit = _resolve_path(filepath)
            file_cfg = {}
            try:
                with open(path, "r", encoding="utf-8") as file:
                    file_cfg = yaml.safe_load(file) or {}
            except FileNotFoundError:
                if explicit:
                    raise ConfigError(f"Configuration file not found at {path}.")
            except yaml.YAMLError as e:
                raise ConfigError(f"Error parsing YAML file: {e}")

            if not isinstance(file_cfg, dict):
                raise ConfigError(f"Configuration root must be a mapping: {path}")

            _config = _merge_dicts(DEFAULTS, file_cfg)

        return _config

    @staticmethod
    def reload_config(filepath: str | None = None) -> dict:
        """
        Reload the configuration from disk.

        Returns:
            dict: The reloaded configuration dictionary.
        """

        global _config
        _config = None

        return ConfigLoader.load_config(filepath)
