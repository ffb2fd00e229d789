"""Application constants."""

# Canvas pagination
DEFAULT_PER_PAGE = 100
DEFAULT_PARALLEL_BATCHES = 2
REQUEST_TIMEOUT = 30

# Per-course assignment fetching
MAX_CONCURRENT_COURSES = 3
MAX_FETCH_RETRIES = 2
RETRY_BACKOFF_SECONDS = 1.0

# Job polling
JOB_POLL_MAX_ATTEMPTS = 30
JOB_POLL_INTERVAL = 1.0

# Cache keys and persisted collection names
COURSES_CACHE_KEY = "courses"
ASSIGNMENTS_COLLECTION = "assignments"
COURSE_NICKNAME_PREFIX = "course_nickname"

# Supabase tables and edge functions
PROCESSED_LINKS_TABLE = "processed_links"
AUTOMATION_RESULTS_TABLE = "automation_results"
LINK_PROCESSOR_FUNCTION = "aws-processor"
GEMINI_PROCESSOR_FUNCTION = "gemini-processor"

# Gemini text operations
WRITING_OPERATIONS = (
    "analyze_requirements",
    "generate_content",
    "improve_writing",
    "format_text",
    "adjust_grade_level",
)
DEFAULT_GRADE_LEVEL = 8
MIN_GRADE_LEVEL = 1
MAX_GRADE_LEVEL = 12

# Link processing job types
LINK_JOB_TYPES = ("assignment", "reading", "quiz")

# Due status labels
DUE_STATUS_OVERDUE = "Overdue"
DUE_STATUS_TODAY = "Due today"
DUE_SOON_DAYS = 3

# Discord message limit
MAX_MESSAGE_LENGTH = 2000
