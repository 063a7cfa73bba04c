"""
Leaderboard Configuration
Result caps and time windows
"""

import os
from datetime import timedelta

# Result caps per requester role
STUDENT_TOP_LIMIT = int(os.getenv("LEADERBOARD_STUDENT_LIMIT", "50"))
TEACHER_TOP_LIMIT = int(os.getenv("LEADERBOARD_TEACHER_LIMIT", "100"))

# Trailing windows for game boards
WINDOW_LENGTHS = {
    "daily": timedelta(hours=24),
    "weekly": timedelta(days=7),
}

# Placeholder when a display name cannot be resolved
DEFAULT_DISPLAY_NAME = "Student"

HISTORY_MAX_LIMIT = 100
