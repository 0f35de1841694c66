import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "absensi_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

TIMEZONE = "Asia/Jakarta"

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "/tmp/absensi-test-uploads")
PHOTO_WATERMARK = False

GEOCODER_URL = "https://nominatim.openstreetmap.org/reverse"
GEOCODER_USER_AGENT = "AbsensiNH-test/1.0"
GEOCODER_TIMEOUT = 2.0

EXTRA_HOLIDAYS = ""

LOG_LEVEL = "WARNING"
LOG_FORMAT = "text"
