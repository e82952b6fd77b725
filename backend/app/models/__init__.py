from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.attendance import AttendanceStatus, FacultyAttendance  # noqa: F401
from app.models.department import Department  # noqa: F401
from app.models.faculty import Faculty  # noqa: F401
from app.models.leave_request import LeaveRequest, LeaveStatus, LeaveType  # noqa: F401
from app.models.notification import Notification, NotificationType  # noqa: F401
from app.models.rearrangement_request import (  # noqa: F401
    RearrangementRequest,
    RearrangementResolution,
    RearrangementStatus,
)
from app.models.weekly_schedule import SubjectType, WeeklyScheduleEntry  # noqa: F401
