#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Print a fresh RS256 key pair for JWT_PRIVATE_KEY / JWT_PUBLIC_KEY.

Without configured keys the API generates a pair per process, which logs
every staff member out on restart.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.auth import generate_key_pair  # noqa: E402


if __name__ == "__main__":
    private_key, public_key = generate_key_pair()

    newline = "\\n"
    print(f'JWT_PRIVATE_KEY="{private_key.replace(chr(10), newline)}"')
    print(f'JWT_PUBLIC_KEY="{public_key.replace(chr(10), newline)}"')
