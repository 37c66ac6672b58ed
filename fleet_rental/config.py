import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    DATA_PATH = os.getenv("DATA_PATH", str(BASE_DIR / "data.pkl"))
    # seconds a bearer token stays valid (7 days)
    TOKEN_MAX_AGE = int(os.getenv("TOKEN_MAX_AGE", 7 * 24 * 3600))
    SSE_QUEUE_SIZE = int(os.getenv("SSE_QUEUE_SIZE", 100))
    # seconds between keep-alive comments on an idle event stream
    SSE_HEARTBEAT = float(os.getenv("SSE_HEARTBEAT", 15))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    JSON_SORT_KEYS = False


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SSE_HEARTBEAT = 0.05
    LOG_LEVEL = "WARNING"
