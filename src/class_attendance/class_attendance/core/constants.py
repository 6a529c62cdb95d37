"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_MAX_ABSENT_ALLOWED = 3
MAX_ATTENDANCE_SCORE = 10
ABSENT_PENALTY_POINTS = 2
DEFAULT_FACE_CONFIDENCE = 0.0

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
