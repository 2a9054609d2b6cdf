"""Example: drive the service layer directly (no Flask).

Controllers are thin; the business rules live in the services.
"""

import importlib

from config import get_settings_module

from src.training_center.training_center.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    for student in container.student_service.list_students()[:5]:
        report = container.profit_report_service.student_profit(student.student_id)
        print(f"{student.name}: income={report['total_income']:.2f} profit={report['profit']:.2f}")

    print(container.stats_service.stats("month"))


if __name__ == "__main__":
    main()
