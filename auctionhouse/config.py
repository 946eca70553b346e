"""Process configuration, read from the environment (and an optional .env)."""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")


class Config:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///auctionhouse.db")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))


config = Config()
