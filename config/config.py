import os
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]


class Config:
    """Shared defaults; each environment module exports the flat names the app reads."""

    SECRET_KEY = os.environ.get("SECRET_KEY") or "please-set-SECRET_KEY"

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "class_attendance")

    UPLOAD_DIR = os.environ.get("UPLOAD_DIR", str(REPO_ROOT / "uploads" / "faces"))
    UPLOAD_URL_PREFIX = os.environ.get("UPLOAD_URL_PREFIX", "/uploads/faces")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))


def db_config() -> dict:
    return {
        "host": Config.DB_HOST,
        "port": Config.DB_PORT,
        "user": Config.DB_USER,
        "password": Config.DB_PASSWORD,
        "database": Config.DB_NAME,
    }
