import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


DEFAULT_RATE_LIMITS = {
    # Public validation reads: per IP, fail open when the limiter is down
    "code_validation": {"limit": 10, "window_seconds": 60, "block_seconds": 0, "fail_open": True},
    "code_redemption": {"limit": 10, "window_seconds": 60, "block_seconds": 0, "fail_open": True},
    # Generation: per user, fail closed
    "invite_code_generation": {
        "limit": 20,
        "window_seconds": 3600,
        "block_seconds": 3600,
        "fail_open": False,
    },
    "hospital_code_generation": {
        "limit": 5,
        "window_seconds": 3600,
        "block_seconds": 3600,
        "fail_open": False,
    },
}


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./hospital_codes.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    CACHE_BACKEND = data.get("CACHE_BACKEND", "redis")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Rate limiting
    RATE_LIMITS = {**DEFAULT_RATE_LIMITS, **data.get("RATE_LIMITS", {})}
    RATE_LIMIT_SUSPICIOUS_AFTER = data.get("RATE_LIMIT_SUSPICIOUS_AFTER", 3)
    RATE_LIMIT_VIOLATION_WINDOW_SECONDS = data.get("RATE_LIMIT_VIOLATION_WINDOW_SECONDS", 3600)
    RATE_LIMIT_SUSPICIOUS_TTL_SECONDS = data.get("RATE_LIMIT_SUSPICIOUS_TTL_SECONDS", 86400)

    # Timeouts for external checks
    LOOKUP_TIMEOUT_SECONDS = data.get("LOOKUP_TIMEOUT_SECONDS", 5.0)
    RATE_LIMIT_TIMEOUT_SECONDS = data.get("RATE_LIMIT_TIMEOUT_SECONDS", 0.5)
    AUDIT_TIMEOUT_SECONDS = data.get("AUDIT_TIMEOUT_SECONDS", 2.0)

    # Alert rules
    ALERT_WINDOW_SECONDS = data.get("ALERT_WINDOW_SECONDS", 300)
    ALERT_FAILED_CODES_THRESHOLD = data.get("ALERT_FAILED_CODES_THRESHOLD", 5)
    ALERT_SIGNUP_THRESHOLD = data.get("ALERT_SIGNUP_THRESHOLD", 5)
    ALERT_SIGNUP_WINDOW_SECONDS = data.get("ALERT_SIGNUP_WINDOW_SECONDS", 600)
    ALERT_DISTINCT_CODES_THRESHOLD = data.get("ALERT_DISTINCT_CODES_THRESHOLD", 8)
    ALERT_USER_AGENT_THRESHOLD = data.get("ALERT_USER_AGENT_THRESHOLD", 5)
    ALERT_COOLDOWN_SECONDS = data.get("ALERT_COOLDOWN_SECONDS", 3600)

    # Codes
    HOSPITAL_CODE_MAX_ATTEMPTS = data.get("HOSPITAL_CODE_MAX_ATTEMPTS", 5)
    INVITE_CODE_DEFAULT_EXPIRY_HOURS = data.get("INVITE_CODE_DEFAULT_EXPIRY_HOURS", 168)
    INVITE_CODE_MAX_EXPIRY_HOURS = data.get("INVITE_CODE_MAX_EXPIRY_HOURS", 8760)
    INVITE_CODE_MAX_USES_LIMIT = data.get("INVITE_CODE_MAX_USES_LIMIT", 1000)
