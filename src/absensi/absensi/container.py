from __future__ import annotations

from dataclasses import dataclass

from .announcements.mysql_announcement_repository import MySQLAnnouncementRepository
from .announcements.service import AnnouncementService
from .attendance.commands import CaptureService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .geo.geocoding import NOMINATIM_REVERSE_URL, NominatimGeocoder
from .photos.store import LocalPhotoStore
from .recap.exporter import RecapExporter
from .recap.service import RecapService
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.service import RequestService
from .schedules.classifier import ScheduleClassifier
from .schedules.holidays import HolidayCalendar, parse_holiday_list
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.service import ScheduleService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    upload_dir: str
    timezone: str

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    schedules_repo: MySQLScheduleRepository
    requests_repo: MySQLRequestRepository
    announcements_repo: MySQLAnnouncementRepository

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    capture_service: CaptureService
    schedule_service: ScheduleService
    recap_service: RecapService
    recap_exporter: RecapExporter
    request_service: RequestService
    announcement_service: AnnouncementService


def build_container(
    *,
    db_config: dict,
    timezone: str = DEFAULT_TIMEZONE,
    upload_dir: str = "uploads",
    photo_watermark: bool = True,
    geocoder_url: str = NOMINATIM_REVERSE_URL,
    geocoder_user_agent: str = "AbsensiNH/1.0",
    geocoder_timeout: float = 10,
    extra_holidays: str = "",
) -> Container:
    conn = DatabaseConnection(DBConfig.from_settings(db_config))

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    schedules_repo = MySQLScheduleRepository(conn)
    requests_repo = MySQLRequestRepository(conn)
    announcements_repo = MySQLAnnouncementRepository(conn)

    classifier = ScheduleClassifier(holidays=HolidayCalendar.default(parse_holiday_list(extra_holidays)))

    auth_service = AuthService(users_repo)
    user_service = UserService(users_repo, attendance_repo, timezone=timezone)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        schedules_repo,
        classifier=classifier,
        timezone=timezone,
    )
    capture_service = CaptureService(
        attendance_service,
        users_repo,
        LocalPhotoStore(upload_dir, watermark=photo_watermark),
        NominatimGeocoder(url=geocoder_url, user_agent=geocoder_user_agent, timeout=geocoder_timeout),
        timezone=timezone,
    )
    schedule_service = ScheduleService(schedules_repo, users_repo)
    recap_service = RecapService(attendance_repo, users_repo, timezone=timezone)
    recap_exporter = RecapExporter(timezone=timezone)
    request_service = RequestService(requests_repo, users_repo, schedules_repo)
    announcement_service = AnnouncementService(announcements_repo)

    return Container(
        conn=conn,
        upload_dir=upload_dir,
        timezone=timezone,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        schedules_repo=schedules_repo,
        requests_repo=requests_repo,
        announcements_repo=announcements_repo,
        auth_service=auth_service,
        user_service=user_service,
        attendance_service=attendance_service,
        capture_service=capture_service,
        schedule_service=schedule_service,
        recap_service=recap_service,
        recap_exporter=recap_exporter,
        request_service=request_service,
        announcement_service=announcement_service,
    )
