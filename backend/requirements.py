# Credits (completed + planned) a student needs for senior standing when a
# course sets the flag without its own threshold.
DEFAULT_SENIOR_STANDING_CREDITS = 90

# Term tags used by the planner. "summer" is the only term a summer-only
# course may be scheduled in.
SUMMER_TERM = "summer"
VALID_TERMS = ("1", "2", SUMMER_TERM)

# Semester label prefix that maps to the summer term ("3/2026").
SUMMER_LABEL_PREFIX = "3"

# Statuses a student can give a planned course.
PLANNED_STATUSES = ("planning", "will-take", "considering")
DEFAULT_PLANNED_STATUS = "planning"

# Validation outcome attached to each planned course.
VALIDATION_VALID = "valid"
VALIDATION_WARNING = "warning"
VALIDATION_ERROR = "error"

# Selected-concentration values that mean "analyze every concentration".
GENERAL_CONCENTRATION_SENTINELS = {"", "general"}

# Credits assumed for a planning record that carries none.
DEFAULT_COREQ_CREDITS = 3

# Note attached to courses pulled in by a primary course's corequisite list.
COREQ_NOTE_TEMPLATE = "Auto-added as corequisite for {code}"
