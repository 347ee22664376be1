#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import argparse
import getpass

import argcomplete


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="realmlink - logon and world chat client")
    parser.add_argument("-u", "--username", type=str, required=True, help="Account name")
    parser.add_argument("-p", "--password", type=str, help="Account password (prompted when omitted)")
    parser.add_argument("-H", "--host", type=str, help="Logon server host")
    parser.add_argument("-P", "--port", type=int, help="Logon server port")
    parser.add_argument("-r", "--realm", type=str, help="Preferred realm name")
    parser.add_argument("-c", "--character", type=str, help="Character to enter the world with")
    parser.add_argument("--config", type=str, help="Path to an alternative config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging output")
    return parser


def parse_args(argv=None):
    parser = build_parser()
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)


def resolve_password(args) -> str:
    return args.password if args.password else getpass.getpass("Password: ")
