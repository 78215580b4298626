# Constants for candidate selection and the topic guard.
import re

# Any format answer meaning "no preference"
FORMAT_ANY = "any"

# Budget brackets (quiz)
BUDGET_NONE = "none"
BUDGET_UNDER_25 = "<25"
BUDGET_25_50 = "25-50"
BUDGET_50_PLUS = "50+"
ALL_BUDGETS = {BUDGET_UNDER_25, BUDGET_25_50, BUDGET_50_PLUS, BUDGET_NONE}

# THC soft-deprioritization for first-timers
HIGH_THC_THRESHOLD = 28.0  # percent
EXPERIENCE_NEW = "new"
HIGH_GOALS = {"high", "get high", "get-high", "get_high"}

# Chat variant buckets, in prompt order: (bucket name, category substrings)
CATEGORY_BUCKETS = (
    ("flower", ("flower",)),
    ("preroll", ("roll",)),
    ("vape", ("cartridge", "vape")),
    ("edible", ("edible",)),
    ("concentrate", ("concentrate", "rosin")),
)

# Strain placeholder written by some POS exports
STRAIN_UNKNOWN = "N/A"

# Short replies that are almost always budget / confirmation answers in context
FAST_PATH_RE = re.compile(
    r"^\d+$|^under\s+\d+$|^less\s+than\s+\d+$|^\$?\d+$|^yes$|^no$|^maybe$",
    re.IGNORECASE,
)

OFF_TOPIC_MESSAGE = (
    "I'm specifically here to help you find the perfect cannabis products! "
    "For other questions, please contact our team directly. "
    "Now, what can I help you find today? 🌿"
)
