import logging
import re
from datetime import date
from io import BytesIO
from typing import List, Optional, Tuple

from portal.core.exceptions import ValidationFailedError
from portal.schemas.attendance import (
    EmployeeAttendanceRollup, MonthSummaryStats, MonthSummaryView, RollupRow
)
from portal.schemas.auth import SessionContext
from portal.services.attendance_service import month_bounds
from portal.services.backend_client import BackendClient
from portal.services.export_service import export_service

logger = logging.getLogger(__name__)

TIERS = ("all", "high", "medium", "low")
CSV_COLUMNS = ["Employee Name", "Present Days", "Absent Days", "Leave Days", "Attendance Rate"]

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def month_range(month: str) -> Tuple[date, date]:
    """``"2025-09"`` -> (2025-09-01, 2025-09-30)."""
    match = _MONTH_RE.match(month or "")
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise ValidationFailedError(f"Invalid month '{month}', expected YYYY-MM")
    return month_bounds(int(match.group(1)), int(match.group(2)))


def attendance_rate(present: int, total_days: int) -> float:
    if not total_days:
        return 0.0
    return present / total_days * 100


def in_tier(rate: float, tier: str) -> bool:
    if tier == "high":
        return rate > 90
    if tier == "medium":
        return 70 <= rate <= 90
    if tier == "low":
        return rate < 70
    return True


class AttendanceSummaryService:
    """Monthly attendance rollup for every employee (admin/HR view)."""

    def fetch(self, client: BackendClient, session: SessionContext, month: str) -> List[EmployeeAttendanceRollup]:
        date_from, date_to = month_range(month)
        data = client.admin_attendance(session, date_from, date_to)
        return [EmployeeAttendanceRollup.model_validate(item) for item in data]

    def stats(self, rollups: List[EmployeeAttendanceRollup]) -> MonthSummaryStats:
        rates = [attendance_rate(r.present, r.totalDays) for r in rollups]
        average = round(sum(rates) / len(rates), 1) if rates else 0
        return MonthSummaryStats(
            total_employees=len(rollups),
            average_attendance=average,
            high_performers=sum(1 for rate in rates if rate > 90),
        )

    def filter_rows(
        self,
        rollups: List[EmployeeAttendanceRollup],
        search: Optional[str] = None,
        tier: str = "all"
    ) -> List[RollupRow]:
        if tier not in TIERS:
            raise ValidationFailedError(f"Unknown filter '{tier}'")
        needle = (search or "").lower()
        rows = []
        for r in rollups:
            rate = attendance_rate(r.present, r.totalDays)
            if needle not in r.name.lower() or not in_tier(rate, tier):
                continue
            rows.append(RollupRow(**r.model_dump(), attendance_rate=round(rate, 1)))
        return rows

    def summary(
        self,
        client: BackendClient,
        session: SessionContext,
        month: str,
        search: Optional[str] = None,
        tier: str = "all"
    ) -> MonthSummaryView:
        date_from, date_to = month_range(month)
        rollups = self.fetch(client, session, month)
        return MonthSummaryView(
            month=month,
            date_from=date_from,
            date_to=date_to,
            # Stats cover everyone; only the table is filtered
            stats=self.stats(rollups),
            rows=self.filter_rows(rollups, search, tier),
        )

    def export_csv(self, rows: List[RollupRow]) -> BytesIO:
        data = [
            {
                "Employee Name": row.name,
                "Present Days": row.present,
                "Absent Days": row.absent,
                "Leave Days": row.onLeave,
                "Attendance Rate": f"{row.attendance_rate:.1f}%",
            }
            for row in rows
        ]
        logger.info(f"Exporting attendance summary with {len(data)} rows")
        return export_service.export_to_csv(data, columns=CSV_COLUMNS)


def export_filename(month: str) -> str:
    return f"attendance-report-{month}.csv"


# Singleton instance
attendance_summary_service = AttendanceSummaryService()
