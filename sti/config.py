"""
Project configuration and versioning for the Systematic Theology Index.
"""

import os

APP_NAME = "Systematic Theology Index"
__version__ = "0.3.0"

# Environment overrides (CLI flags win over these).
DB_ENV_VAR = "STI_DB"

SUMMARY_API_KEY = os.getenv("STI_SUMMARY_API_KEY", "")
SUMMARY_API_URL = os.getenv(
    "STI_SUMMARY_API_URL", "https://openrouter.ai/api/v1/chat/completions"
)
SUMMARY_MODEL = os.getenv("STI_SUMMARY_MODEL", "google/gemini-2.5-flash-lite")
SUMMARY_TIMEOUT = 60

# Citation markup written into entry content.
SCRIPTURE_LINK_CLASS = "scripture-link"

# Number of references per entry flagged as primary ("key references").
PRIMARY_REFERENCE_LIMIT = 5

# Body fragments this short (after conversion) are dropped.
MIN_BODY_FRAGMENT = 10
