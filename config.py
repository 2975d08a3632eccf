import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./gateway.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
    STORE_TIMEOUT_SECONDS = float(data.get("STORE_TIMEOUT_SECONDS", 5))
    GEO_LOOKUP_URL = data.get("GEO_LOOKUP_URL", "http://ip-api.com/json")
    GEO_LOOKUP_TIMEOUT_SECONDS = float(data.get("GEO_LOOKUP_TIMEOUT_SECONDS", 3))
    FAIL_CLOSED_RATE_LIMIT_ENDPOINTS = data.get("FAIL_CLOSED_RATE_LIMIT_ENDPOINTS", [])
    EVENT_DEDUP_WINDOW_SECONDS = int(data.get("EVENT_DEDUP_WINDOW_SECONDS", 60))
    ALLOWED_COUNTRIES = data.get(
        "ALLOWED_COUNTRIES", ["US", "CA", "GB", "AU", "DE", "FR", "NL", "CH", "JP", "SG"]
    )
    BLOCKED_COUNTRIES = data.get("BLOCKED_COUNTRIES", ["KP", "IR", "SY", "CU", "RU", "CN", "BY"])
