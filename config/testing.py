import os
import tempfile

from .config import db_config

SECRET_KEY = "test-secret"

DB_CONFIG = db_config()

UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(tempfile.gettempdir(), "class_attendance_faces"))
UPLOAD_URL_PREFIX = "/uploads/faces"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
