"""
Environment-aware configuration.
Values come from the process environment (and .env via python-dotenv).
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEFAULT_ACCESS_SECRET = "dev-access-secret-change-me-0123456789abcdef"
DEFAULT_REFRESH_SECRET = "dev-refresh-secret-change-me-0123456789abcdef"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: "*" is allowed outside production only; otherwise a comma-separated list of origins
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///session-auth.db")
    STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "5"))

    # Access and refresh tokens are signed with different keys
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", DEFAULT_ACCESS_SECRET)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", DEFAULT_REFRESH_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "60")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "604800")))

    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refresh_token")
    REFRESH_COOKIE_PATH = os.getenv("REFRESH_COOKIE_PATH", "/")
    REFRESH_COOKIE_SECURE = _env_flag("REFRESH_COOKIE_SECURE", "false")

    ARGON2_TIME_COST = int(os.getenv("ARGON2_TIME_COST", "3"))
    ARGON2_MEMORY_COST = int(os.getenv("ARGON2_MEMORY_COST", "65536"))
    ARGON2_PARALLELISM = int(os.getenv("ARGON2_PARALLELISM", "4"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "test"
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///session-auth-test.db")
    LOG_LEVEL = "WARNING"
    # cheap hashing keeps the suite fast
    ARGON2_TIME_COST = 1
    ARGON2_MEMORY_COST = 8
    ARGON2_PARALLELISM = 1


class ProductionConfig(BaseConfig):
    DEBUG = False
    APP_ENV = "prod"
    REFRESH_COOKIE_SECURE = _env_flag("REFRESH_COOKIE_SECURE", "true")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def check_secrets(config) -> None:
    """Refuse to run in production with default or shared signing keys."""
    if config.get("APP_ENV") not in ("prod", "production"):
        return
    access, refresh = config["JWT_ACCESS_SECRET"], config["JWT_REFRESH_SECRET"]
    if access in (DEFAULT_ACCESS_SECRET, DEFAULT_REFRESH_SECRET) or refresh in (
        DEFAULT_ACCESS_SECRET,
        DEFAULT_REFRESH_SECRET,
    ):
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set in production")
    if access == refresh:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")


def parse_origins(value):
    """'*' stays a wildcard; anything else is a comma-separated list of origins."""
    if isinstance(value, (list, tuple)):
        return [origin.strip() for origin in value if origin.strip()]
    value = (value or "").strip()
    if value == "*":
        return "*"
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def check_cors(config) -> None:
    """Credentialed CORS must name its origins in production."""
    if config.get("APP_ENV") not in ("prod", "production"):
        return
    origins = parse_origins(config.get("CORS_ORIGINS", "*"))
    if origins == "*" or "*" in origins:
        raise RuntimeError("CORS_ORIGINS must list explicit origins in production")
