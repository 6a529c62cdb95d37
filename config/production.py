from .config import Config, db_config

SECRET_KEY = Config.SECRET_KEY

DB_CONFIG = db_config()

UPLOAD_DIR = Config.UPLOAD_DIR
UPLOAD_URL_PREFIX = Config.UPLOAD_URL_PREFIX

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL

AUTO_INIT_DB = Config.AUTO_INIT_DB
