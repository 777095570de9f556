# config.py
# Simple centralized configuration values.
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_FILE = os.getenv("DATABASE_FILE", "database.json")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")

DEFAULT_ADMIN_SECRET = "lovinglyhost"
ADMIN_SECRET = os.getenv("ADMIN_SECRET", DEFAULT_ADMIN_SECRET)

# "open" logs persistence failures and carries on, "closed" raises them
PERSISTENCE_POLICY = os.getenv("PERSISTENCE_POLICY", "open").lower()

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Registration / upload limits
MIN_AGE = 18
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB per file

# Matchmaking weights
BASELINE_SCORE = 50
SHARED_INTEREST_POINTS = 15  # per shared tag
AGE_PROXIMITY_YEARS = 3
AGE_PROXIMITY_POINTS = 10
SAME_GOAL_POINTS = 20
MAX_MATCH_SCORE = 99  # never 100
