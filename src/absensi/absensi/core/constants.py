"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_TIMEZONE = "Asia/Jakarta"

REGULAR_DEADLINE = time(8, 30)
PIKET_DEADLINE = time(8, 15)

# Resumed sessions outside this window are overtime.
WORKDAY_START = time(6, 0)
WORKDAY_END = time(17, 0)

AUTO_CLOSE_AT = time(6, 0)
AUTO_CLOSE_NOTE = "(Auto-closed at 06:00)"

DEFAULT_SHIFT_LABEL = "Management"

NOTE_NATIONAL_HOLIDAY = "Hari Libur Nasional"
NOTE_WEEKEND = "Hari Libur Pekan"

PAYROLL_PERIOD_START_DAY = 26
PAYROLL_PERIOD_END_DAY = 25

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_PASSWORD = "password123"

STATUS_LABELS = {
    "present": "Hadir",
    "late": "Telat",
    "sick": "Sakit",
    "permission": "Izin",
    "absent": "Alpha",
    "overtime": "Lembur",
}
