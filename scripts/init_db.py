from __future__ import annotations

import argparse
import importlib
import logging
from pathlib import Path

from config import get_settings_module

from team_portal.common.logging_setup import setup_logging
from team_portal.database.bootstrap import apply_schema, ensure_demo_users, list_tables

logger = logging.getLogger("init_db")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the team portal tables (idempotent).")
    parser.add_argument("--seed", action="store_true", help="also create the demo admin/manager/member accounts")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", None))
    db_config = dict(settings.DB_CONFIG)

    schema_path = Path(__file__).resolve().parents[1] / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)
    if args.seed:
        ensure_demo_users(db_config)

    tables = list_tables(db_config)
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (tables=%d)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
    )


if __name__ == "__main__":
    main()
