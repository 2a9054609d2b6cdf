"""Create the database and its tables from database/schema.sql.

Run from anywhere: `python scripts/init_db.py [--seed]`. The target database
comes from the settings module selected by APP_ENV.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.training_center.training_center.database.bootstrap import (
    apply_schema,
    ensure_default_admin,
    ensure_default_deductions,
    missing_tables,
)
from src.training_center.training_center.database.connection import DBConfig


def main(argv: list[str]) -> int:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = DBConfig.from_dict(db_config).describe()

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    missing = missing_tables(db_config)
    if missing:
        print(f"FAILED: {target} is missing table(s): {', '.join(missing)}")
        return 1
    print(f"OK: Schema ready -> {target}")

    if "--seed" in argv:
        ensure_default_admin(db_config)
        print(f"OK: {ensure_default_deductions(db_config)} default deduction config(s) added")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
