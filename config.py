"""
Document Assembler Configuration
"""
import os
from pathlib import Path

from dotenv import dotenv_values

# Base paths
BASE_DIR = Path(__file__).parent

# Load environment variables from .env file
_env_path = BASE_DIR / ".env"
if _env_path.exists():
    _env_values = dotenv_values(_env_path)
    for key, value in _env_values.items():
        if value and not os.environ.get(key):  # Set if value exists and env not already set
            os.environ[key] = value

# Logging
LOG_LEVEL = os.getenv("ASSEMBLER_LOG_LEVEL", "INFO").upper()

# Numbering: label emitted for [[ARTICLE]] markers ("Article 1")
ARTICLE_PREFIX = os.getenv("ASSEMBLER_ARTICLE_PREFIX", "Article")

# Children below this age count as minors for grammar and loop filtering
MATURITY_AGE = int(os.getenv("ASSEMBLER_MATURITY_AGE", "18"))

# Re-scan limits for nested block markup
MAX_CONDITIONAL_PASSES = int(os.getenv("ASSEMBLER_MAX_CONDITIONAL_PASSES", "10"))
MAX_LOOP_PASSES = int(os.getenv("ASSEMBLER_MAX_LOOP_PASSES", "10"))

# Condition trees deeper than this evaluate to False
MAX_CONDITION_DEPTH = int(os.getenv("ASSEMBLER_MAX_CONDITION_DEPTH", "32"))

# Passes for placeholders whose values contain further placeholders
MAX_NESTED_PLACEHOLDER_DEPTH = int(os.getenv("ASSEMBLER_MAX_NESTED_DEPTH", "5"))

# Dutch month names used for long-form dates
DUTCH_MONTHS = [
    "januari", "februari", "maart", "april", "mei", "juni",
    "juli", "augustus", "september", "oktober", "november", "december",
]
