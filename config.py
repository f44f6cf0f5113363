# config.py
import os

def _flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}

# Storage
DB_PATH = os.getenv("DB_PATH", "trainer_feedback.db")
SEED_SAMPLE_DATA = _flag("SEED_SAMPLE_DATA", "1")

# Seeded demo accounts share this password
DEFAULT_PASSWORD = os.getenv("DEFAULT_PASSWORD", "password")

# Sentiment buckets (score is 0-100)
SENTIMENT_POSITIVE_THRESHOLD = int(os.getenv("SENTIMENT_POSITIVE_THRESHOLD", "70"))
SENTIMENT_NEUTRAL_THRESHOLD = int(os.getenv("SENTIMENT_NEUTRAL_THRESHOLD", "40"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
