# config.py
# Flask-style settings. Each can be overridden with a HOTEL_-prefixed
# environment variable, e.g. HOTEL_DATA_FILE=db.json or
# HOTEL_BREAKFAST_NIGHTLY_RATE=120000.
from pricing import BREAKFAST_NIGHTLY_RATE, EXTRA_BED_NIGHTLY_RATE


class DefaultConfig:
    SECRET_KEY = "dev-secret"
    # None keeps everything in memory
    DATA_FILE = None
    # JSON document loaded into an empty store at start-up
    SEED_FILE = None
    EXTRA_BED_NIGHTLY_RATE = EXTRA_BED_NIGHTLY_RATE
    BREAKFAST_NIGHTLY_RATE = BREAKFAST_NIGHTLY_RATE
    CURRENCY = "VND"
    # decimal places shown for CURRENCY
    CURRENCY_PLACES = 0
    LOG_LEVEL = "INFO"
    # "text" or "json"
    LOG_FORMAT = "text"


class TestingConfig(DefaultConfig):
    TESTING = True
    LOG_LEVEL = "WARNING"
