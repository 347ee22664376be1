#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# PYTHON_ARGCOMPLETE_OK

import sys

from realmlink.clients.RealmClient import main

if __name__ == "__main__":
    sys.exit(main())
