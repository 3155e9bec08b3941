"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: int
        Value returned when the variable is unset or blank.

    Returns
    -------
    int
        Parsed value.

    Raises
    ------
    ValueError
        If the variable is set to something that is not an integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer, got {val!r}") from exc


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    APP_NAME: str
        Display name reported by the health endpoint and logs.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_ACCESS_SECRET: str
        HMAC secret for access tokens.
    JWT_REFRESH_SECRET: str
        HMAC secret for refresh tokens. Must differ from the access secret.
    JWT_ACCESS_TTL: int
        Access-token lifetime in seconds.
    JWT_REFRESH_TTL: int
        Refresh-token lifetime in seconds.
    JWT_ALGORITHM: str
        Signing algorithm shared by both token kinds.
    JWT_SECRET_KEY: str
        Key ``flask-jwt-extended`` falls back to; per-kind secrets are
        resolved by the decode-key hook, so this only mirrors the access secret.
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method. It encodes the hash cost, e.g.
        ``"pbkdf2:sha256:600000"`` or ``"scrypt:32768:8:1"``.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    REDIS_URL: str | None
        Redis connection string for the revocation ledger.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    SLOW_REQUEST_MS: int
        Requests slower than this are logged as warnings.
    LOG_REQUEST_BODIES: bool
        When ``True`` redacted JSON bodies are logged at debug level.
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS (``*`` for any).
    OAUTH_GOOGLE_USERINFO_URL: str
        Endpoint resolving a Google access token into a profile.
    OAUTH_FACEBOOK_ME_URL: str
        Graph API endpoint resolving a Facebook access token into a profile.
    OAUTH_HTTP_TIMEOUT: int
        Timeout in seconds for provider profile lookups.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_NAME = "Portfolio API"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "CHANGE_ME_ACCESS")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "CHANGE_ME_REFRESH")
    JWT_ACCESS_TTL = env_int("JWT_ACCESS_TTL", 15 * 60)
    JWT_REFRESH_TTL = env_int("JWT_REFRESH_TTL", 7 * 24 * 60 * 60)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_SECRET_KEY = JWT_ACCESS_SECRET
    JWT_TOKEN_LOCATION = ["headers"]
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Cache
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    SLOW_REQUEST_MS = env_int("SLOW_REQUEST_MS", 1000)
    LOG_REQUEST_BODIES = env_bool("LOG_REQUEST_BODIES", False)
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # OAuth providers
    OAUTH_GOOGLE_USERINFO_URL = os.getenv(
        "OAUTH_GOOGLE_USERINFO_URL", "https://www.googleapis.com/oauth2/v3/userinfo"
    )
    OAUTH_FACEBOOK_ME_URL = os.getenv(
        "OAUTH_FACEBOOK_ME_URL", "https://graph.facebook.com/me"
    )
    OAUTH_HTTP_TIMEOUT = env_int("OAUTH_HTTP_TIMEOUT", 5)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Leaves ``REDIS_URL`` unset; the test suite installs an in-memory Redis.
    - Uses a cheap password hash so suites stay fast.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = None
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled while relying on WSGI-level log
    configuration for noise control. :func:`validate_config` rejects shared or
    placeholder JWT secrets for this environment.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_config(config: Mapping[str, object]) -> None:
    """Fail fast on token settings that would break the session lifecycle.

    Parameters
    ----------
    config: Mapping[str, object]
        Loaded Flask configuration.

    Raises
    ------
    RuntimeError
        If a lifetime is not positive, or, outside debug/testing, when the
        access and refresh secrets are equal or still the shipped placeholders.
    """
    for key in ("JWT_ACCESS_TTL", "JWT_REFRESH_TTL"):
        value = config.get(key)
        if not isinstance(value, int) or value <= 0:
            raise RuntimeError(f"{key} must be a positive number of seconds.")

    if config.get("DEBUG") or config.get("TESTING"):
        return

    access = config.get("JWT_ACCESS_SECRET")
    refresh = config.get("JWT_REFRESH_SECRET")
    if access == refresh:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ.")
    placeholders = {"CHANGE_ME_ACCESS", "CHANGE_ME_REFRESH"}
    if access in placeholders or refresh in placeholders:
        raise RuntimeError("JWT secrets must be configured for this environment.")
