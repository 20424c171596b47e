"""
Enumeration definitions for the Staffing Metrics backend.

All enums inherit from both `str` and `Enum` so they serialize as plain
strings in pydantic models and API responses.
"""

from enum import Enum


class AtsSystem(str, Enum):
    """
    ATS systems of record.

    Each division is routed to exactly one of these. The value is also the
    `ats_source` label stored on a discovered user config.
    """
    SYMPLR = "symplr"
    BULLHORN = "bullhorn"


class RecruiterRole(str, Enum):
    """
    Role inferred from a user's ATS title.

    - recruiter: recruiter, staffing specialist, talent acquisition, sourcer
    - account_manager: account manager/executive, sales, business
      development, client manager
    - unknown: no keyword matched, or no title
    """
    RECRUITER = "recruiter"
    ACCOUNT_MANAGER = "account_manager"
    UNKNOWN = "unknown"


class BullhornPlacementStatus(str, Enum):
    """Bullhorn placement statuses that count toward billing."""
    STARTED = "Started"
    APPROVED = "Approved"
    COMPLETED = "Completed"
    CLEARED = "Cleared"


class WeekPeriod(str, Enum):
    """
    Relative label of a week in the hours report.

    Labels are relative to the current date, so they move every Sunday.
    """
    LAST_WEEK = "Last Week"
    THIS_WEEK = "This Week"
    NEXT_WEEK = "Next Week"


class DayBucket(int, Enum):
    """
    Hours snapshot columns. Sunday and Monday share one bucket.
    """
    SUN_MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4
    SAT = 5
