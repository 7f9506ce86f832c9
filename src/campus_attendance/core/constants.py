"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_INSTRUCTOR_MAX_DEVICES = 2
DEFAULT_STUDENT_MAX_DEVICES = 1
UNLIMITED_DEVICES = "unlimited"

EVENT_ATTENDANCE_MARKED = "attendance-marked"
EVENT_ATTENDANCE_UPDATED = "attendance-updated"
EVENT_SUBJECT_ADDED = "subject-added"
EVENT_STUDENT_ADDED = "student-added"

MIN_SUBJECT_CREDITS = 1
MAX_SUBJECT_CREDITS = 6
