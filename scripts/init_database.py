#!/usr/bin/env python3
"""
Database initialization script for the barbershop booking backend.

Creates every table defined by the models. With --reset, drops them first
(development databases only).

Usage: python scripts/init_database.py [--reset]
"""

import sys
import os

# Add the parent directory to sys.path to allow imports from src
sys.path.append(os.path.join(os.path.dirname(__file__), '../src'))

from core.config import DATABASE_URL
from core.database import create_tables, drop_tables


def main():
    reset = "--reset" in sys.argv[1:]
    print(f"Database URL: {DATABASE_URL}")

    if reset:
        # Confirm action (in case someone runs this against a real database)
        if "_dev" not in DATABASE_URL and "sqlite" not in DATABASE_URL:
            print("❌ ERROR: --reset only works with development databases (*_dev or sqlite)!")
            sys.exit(1)
        print("🗑️  Dropping all tables...")
        drop_tables()

    print("🏗️  Creating tables...")
    create_tables()
    print("✅ Database ready")


if __name__ == "__main__":
    main()
