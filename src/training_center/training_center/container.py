from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .database.connection import DBConfig, DatabaseConnection
from .deductions.mysql_deduction_detail_repository import MySQLDeductionDetailRepository
from .deductions.mysql_deduction_repository import MySQLDeductionConfigRepository, MySQLStudentDeductionRepository
from .deductions.service import DeductionConfigService, DeductionDetailService, StudentDeductionService
from .income.mysql_income_repository import MySQLIncomeRepository
from .income.service import IncomeService
from .operation_logs.mysql_operation_log_repository import MySQLOperationLogRepository
from .operation_logs.recorder import make_log_operation
from .operation_logs.service import OperationLogService
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.service import ProfitReportService, StatsService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.service import StudentService
from .users.guards import Guards, make_guards
from .users.mysql_session_repository import MySQLLoginAttemptRepository, MySQLSessionRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService
from .users.tokens import JWTTokenIssuer


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    user_service: UserService
    student_service: StudentService
    income_service: IncomeService
    deduction_config_service: DeductionConfigService
    student_deduction_service: StudentDeductionService
    deduction_detail_service: DeductionDetailService
    stats_service: StatsService
    profit_report_service: ProfitReportService
    operation_log_service: OperationLogService

    guards: Guards
    log_operation: Callable


def assemble(
    *,
    users_repo,
    sessions_repo,
    attempts_repo,
    token_issuer,
    students_repo,
    income_repo,
    configs_repo,
    assignments_repo,
    details_repo,
    reports_repo,
    logs_repo,
) -> Container:
    """Wire services on top of any set of repositories (MySQL or in-memory)."""
    auth_service = AuthService(users_repo, sessions_repo, attempts_repo, token_issuer)
    operation_log_service = OperationLogService(logs_repo)

    return Container(
        auth_service=auth_service,
        user_service=UserService(users_repo),
        student_service=StudentService(students_repo),
        income_service=IncomeService(income_repo, students_repo),
        deduction_config_service=DeductionConfigService(configs_repo),
        student_deduction_service=StudentDeductionService(assignments_repo, configs_repo, students_repo),
        deduction_detail_service=DeductionDetailService(details_repo, students_repo),
        stats_service=StatsService(reports_repo),
        profit_report_service=ProfitReportService(reports_repo, students_repo, configs_repo, assignments_repo),
        operation_log_service=operation_log_service,
        guards=make_guards(auth_service),
        log_operation=make_log_operation(operation_log_service),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attempts_repo=MySQLLoginAttemptRepository(conn),
        token_issuer=JWTTokenIssuer(),
        students_repo=MySQLStudentRepository(conn),
        income_repo=MySQLIncomeRepository(conn),
        configs_repo=MySQLDeductionConfigRepository(conn),
        assignments_repo=MySQLStudentDeductionRepository(conn),
        details_repo=MySQLDeductionDetailRepository(conn),
        reports_repo=MySQLReportRepository(conn),
        logs_repo=MySQLOperationLogRepository(conn),
    )
