import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "tuition_center"),
}

API_PREFIX = os.getenv("API_PREFIX", "/api")
CURRENCY_LABEL = os.getenv("CURRENCY_LABEL", "Rs.")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEBUG = False
TESTING = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
