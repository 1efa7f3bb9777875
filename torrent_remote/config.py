import os
import dotenv


dotenv.load_dotenv()


# Defaults
DEBUG = True
VERBOSE = False
LOG_PATH = "torrent_remote.log"
LOG_LEVEL = "DEBUG" if DEBUG else "INFO"
LOG_ROTATION = "1 week"
LOG_RETENTION = "1 month"

# Daemon connection
QBT_URL = "http://localhost:8080"
QBT_USERNAME = "admin"
QBT_PASSWORD = ""
REQUEST_TIMEOUT = 10.0

# Search job polling (seconds)
SEARCH_POLL_INTERVAL = 1.0
SEARCH_MAX_POLLS = 15
SEARCH_TIMEOUT = 15.0
SEARCH_STABILITY_WINDOW = 2        # Consecutive equal non-zero totals treated as converged
SEARCH_RESULT_LIMIT = 200
SEARCH_PLUGINS = "enabled"
SEARCH_CATEGORIES = "all,movies,tv,music,games,anime,software,books"


class Config:
    DEBUG = os.getenv("DEBUG", str(DEBUG)).lower() == "true"
    VERBOSE = os.getenv("VERBOSE", str(VERBOSE)).lower() == "true"

    LOG_PATH = os.getenv("LOG_PATH", LOG_PATH)
    LOG_LEVEL = os.getenv("LOG_LEVEL", LOG_LEVEL)
    LOG_ROTATION = os.getenv("LOG_ROTATION", LOG_ROTATION)
    LOG_RETENTION = os.getenv("LOG_RETENTION", LOG_RETENTION)

    # Daemon Configuration
    QBT_URL = os.getenv("QBT_URL", QBT_URL).rstrip('/')
    QBT_USERNAME = os.getenv("QBT_USERNAME", QBT_USERNAME)
    QBT_PASSWORD = os.getenv("QBT_PASSWORD", QBT_PASSWORD)
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", REQUEST_TIMEOUT))

    # Search Configuration
    SEARCH_POLL_INTERVAL = float(os.getenv("SEARCH_POLL_INTERVAL", SEARCH_POLL_INTERVAL))
    SEARCH_MAX_POLLS = int(os.getenv("SEARCH_MAX_POLLS", SEARCH_MAX_POLLS))
    SEARCH_TIMEOUT = float(os.getenv("SEARCH_TIMEOUT", SEARCH_TIMEOUT))
    SEARCH_STABILITY_WINDOW = int(os.getenv("SEARCH_STABILITY_WINDOW", SEARCH_STABILITY_WINDOW))
    SEARCH_RESULT_LIMIT = int(os.getenv("SEARCH_RESULT_LIMIT", SEARCH_RESULT_LIMIT))
    SEARCH_PLUGINS = os.getenv("SEARCH_PLUGINS", SEARCH_PLUGINS)
    SEARCH_CATEGORIES = [
        c.strip() for c in os.getenv("SEARCH_CATEGORIES", SEARCH_CATEGORIES).split(",") if c.strip()
    ]
