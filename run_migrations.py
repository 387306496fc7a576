#!/usr/bin/env python3
"""
Apply the storekeeper migrations with Alembic.

Usage:
    python3 run_migrations.py            # upgrade to head
    python3 run_migrations.py --sql      # print the SQL instead of running it

Connection settings come from the DB_* environment variables (see migrations/env.py).
"""
import argparse
import sys
from pathlib import Path
from typing import Optional, TextIO

from alembic import command
from alembic.config import Config

ALEMBIC_INI = Path(__file__).resolve().parent / "storekeeper" / "alembic.ini"


def alembic_config(output_buffer: Optional[TextIO] = None) -> Config:
    return Config(str(ALEMBIC_INI), output_buffer=output_buffer)


def run_migrations(revision: str = "head", sql: bool = False, output_buffer: Optional[TextIO] = None) -> None:
    """Upgrade the store to `revision`; with sql=True only emit the DDL (offline mode)."""
    command.upgrade(alembic_config(output_buffer), revision, sql=sql)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument("--sql", action="store_true", help="print SQL instead of executing it")
    args = parser.parse_args(argv)
    run_migrations(args.revision, sql=args.sql)
    return 0


if __name__ == "__main__":
    sys.exit(main())
