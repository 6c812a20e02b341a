from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.memory_attendance_repository import InMemoryAttendanceRecords
from .attendance.mysql_attendance_repository import MySQLAttendanceRecords
from .attendance.repository import AttendanceRecordGateway
from .core.policy import WorkflowPolicy
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_directory import MySQLEmployeeDirectory
from .employees.repository import EmployeeDirectory, InMemoryEmployeeDirectory
from .requests.approval_service import ApprovalService
from .requests.bulk_service import BulkOperationService
from .requests.cancellation_service import CancellationService
from .requests.memory_request_store import InMemoryCorrectionRequestStore
from .requests.mysql_request_store import MySQLCorrectionRequestStore
from .requests.query_service import QueryService
from .requests.registration_service import RegistrationService
from .requests.repository import CorrectionRequestStore


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    policy: WorkflowPolicy

    request_store: CorrectionRequestStore
    attendance_records: AttendanceRecordGateway
    employees: EmployeeDirectory

    registration_service: RegistrationService
    approval_service: ApprovalService
    cancellation_service: CancellationService
    bulk_service: BulkOperationService
    query_service: QueryService


def _wire(
    *,
    conn: Optional[DatabaseConnection],
    policy: WorkflowPolicy,
    store: CorrectionRequestStore,
    attendance: AttendanceRecordGateway,
    employees: EmployeeDirectory,
) -> Container:
    approval_service = ApprovalService(store, attendance, policy)
    return Container(
        conn=conn,
        policy=policy,
        request_store=store,
        attendance_records=attendance,
        employees=employees,
        registration_service=RegistrationService(store, attendance, policy),
        approval_service=approval_service,
        cancellation_service=CancellationService(store, policy),
        bulk_service=BulkOperationService(approval_service, policy),
        query_service=QueryService(store, policy),
    )


def build_container(*, db_config: dict, policy: Optional[WorkflowPolicy] = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return _wire(
        conn=conn,
        policy=policy or WorkflowPolicy(),
        store=MySQLCorrectionRequestStore(conn),
        attendance=MySQLAttendanceRecords(conn),
        employees=MySQLEmployeeDirectory(conn),
    )


def build_in_memory_container(
    *,
    clock: Optional[Callable[[], datetime]] = None,
    attendance: Optional[InMemoryAttendanceRecords] = None,
    employees: Optional[EmployeeDirectory] = None,
    policy: Optional[WorkflowPolicy] = None,
) -> Container:
    employees = employees or InMemoryEmployeeDirectory()
    return _wire(
        conn=None,
        policy=policy or WorkflowPolicy(),
        store=InMemoryCorrectionRequestStore(clock=clock, employees=employees),
        attendance=attendance if attendance is not None else InMemoryAttendanceRecords(),
        employees=employees,
    )
