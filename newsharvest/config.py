import os
from dotenv import load_dotenv

load_dotenv()

DB_PATH = os.getenv("NEWSHARVEST_DB_PATH", os.path.join("data", "news.db"))
TIMEZONE = os.getenv("TIMEZONE", "America/Moncton")
WINDOW_START_HOUR = int(os.getenv("WINDOW_START_HOUR", "7"))
WINDOW_HOURS = int(os.getenv("WINDOW_HOURS", "24"))
HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "20"))
BROWSER_TIMEOUT_S = float(os.getenv("BROWSER_TIMEOUT_S", "60"))
USER_AGENT = os.getenv(
    "NEWSHARVEST_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
)
OUT_DIR = os.getenv("NEWSHARVEST_OUT_DIR", "out")
SOURCES_FILE = os.getenv("NEWSHARVEST_SOURCES_FILE", "").strip() or None

# Fail fast on values the window filter cannot work with
_invalid = []
if not 0 <= WINDOW_START_HOUR <= 23:
    _invalid.append(f"WINDOW_START_HOUR={WINDOW_START_HOUR} (expected 0..23)")
if WINDOW_HOURS <= 0:
    _invalid.append(f"WINDOW_HOURS={WINDOW_HOURS} (expected > 0)")
if _invalid:
    raise EnvironmentError(
        f"Invalid environment variables: {', '.join(_invalid)}. "
        "Fix them in .env or the process environment."
    )
