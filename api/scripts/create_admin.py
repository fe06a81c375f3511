#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Grant dashboard access to a staff member.

Creates (or resets the password of) the staff credential and maps its email
to an admin record. A credential without that mapping is refused at login.

Usage:
    python scripts/create_admin.py gestora@prefeitura.gov.br "Gestora Municipal"
"""

import sys
import os
import getpass
import logging
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.mongodb import MongoDBService  # noqa: E402
from domain.validation import MIN_PASSWORD_LENGTH  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Create or update a dashboard administrator")
    parser.add_argument("email")
    parser.add_argument("full_name")
    args = parser.parse_args()

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        logger.error(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")
        sys.exit(1)

    mongodb_service = MongoDBService()
    try:
        admin = mongodb_service.register_admin(args.email, args.full_name, password)
        logger.info(f"Administrator ready: {admin.email} ({admin.id})")
    except Exception as e:
        logger.error(f"Failed to register administrator: {e}")
        sys.exit(1)
    finally:
        mongodb_service.close_connection()


if __name__ == "__main__":
    main()
