from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import EventStore
from .attendance.service import AttendanceService
from .common.civil_time import CivilClock
from .core.constants import DEFAULT_CIVIL_TIMEZONE, DEFAULT_REPAIR_WINDOW_DAYS, DEFAULT_REPORT_DAYS
from .database.connection import DBConfig, DatabaseConnection
from .maintenance.service import RepairService
from .payroll.calculator.half_hour_calculator import HalfHourPayrollCalculator
from .payroll.mysql_trip_repository import MySQLTripRepository
from .payroll.repository import TripDistanceSource
from .payroll.service import PayrollReportService
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.repository import CloseRequestRepository
from .requests.service import CloseRequestService
from .sites.geofence import GeofenceValidator
from .sites.mysql_site_repository import MySQLSiteRepository
from .sites.repository import SiteRepository
from .workers.mysql_worker_repository import MySQLWorkerRepository
from .workers.repository import WorkerRepository


@dataclass(frozen=True)
class Container:
    clock: CivilClock

    events_repo: EventStore
    workers_repo: WorkerRepository
    sites_repo: SiteRepository
    requests_repo: CloseRequestRepository
    trips_repo: Optional[TripDistanceSource]

    attendance_service: AttendanceService
    payroll_report_service: PayrollReportService
    close_request_service: CloseRequestService
    repair_service: RepairService

    report_default_days: int = DEFAULT_REPORT_DAYS


def wire(
    *,
    events: EventStore,
    workers: WorkerRepository,
    sites: SiteRepository,
    requests: CloseRequestRepository,
    trips: Optional[TripDistanceSource] = None,
    civil_timezone: str = DEFAULT_CIVIL_TIMEZONE,
    repair_window_days: int = DEFAULT_REPAIR_WINDOW_DAYS,
    report_default_days: int = DEFAULT_REPORT_DAYS,
) -> Container:
    """Build the services on top of any set of storage collaborators."""
    clock = CivilClock(civil_timezone)
    calculator = HalfHourPayrollCalculator(clock)

    return Container(
        clock=clock,
        events_repo=events,
        workers_repo=workers,
        sites_repo=sites,
        requests_repo=requests,
        trips_repo=trips,
        attendance_service=AttendanceService(events, workers, sites, geofence=GeofenceValidator(), clock=clock),
        payroll_report_service=PayrollReportService(
            events, workers, sites, trips=trips, calculator=calculator, clock=clock
        ),
        close_request_service=CloseRequestService(requests, events, clock=clock),
        repair_service=RepairService(events, requests, clock=clock, default_window_days=repair_window_days),
        report_default_days=int(report_default_days),
    )


def build_container(
    *,
    db_config: dict,
    civil_timezone: str = DEFAULT_CIVIL_TIMEZONE,
    repair_window_days: int = DEFAULT_REPAIR_WINDOW_DAYS,
    report_default_days: int = DEFAULT_REPORT_DAYS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire(
        events=MySQLAttendanceRepository(conn),
        workers=MySQLWorkerRepository(conn),
        sites=MySQLSiteRepository(conn),
        requests=MySQLRequestRepository(conn),
        trips=MySQLTripRepository(conn),
        civil_timezone=civil_timezone,
        repair_window_days=repair_window_days,
        report_default_days=report_default_days,
    )
