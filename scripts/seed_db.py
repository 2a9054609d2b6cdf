from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.training_center.training_center.database.bootstrap import ensure_default_admin, ensure_default_deductions
from src.training_center.training_center.database.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    admin_created = ensure_default_admin(db_config)
    configs_created = ensure_default_deductions(db_config)

    print(
        f"OK: Seeded database -> {DBConfig.from_dict(db_config).describe()} "
        f"(default admin {'created' if admin_created else 'already present'}, "
        f"{configs_created} deduction config(s) added)"
    )


if __name__ == "__main__":
    main()
