"""Settings loader with environment variable and .env file integration."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


ENV_FILE_NAME = ".env"
ENV_FILE_SEARCH_DEPTH = 5

DEFAULT_JWK_URL = "http://localhost:8080/realms/idm/protocol/openid-connect/certs"
SUPPORTED_DB_DRIVERS = {"postgres"}
LOG_LEVELS = {"debug", "info", "warn", "error", "panic", "fatal"}

# Required variables mapped to the AppConfig field they populate
REQUIRED_VARIABLES = {
    "DB_DRIVER_NAME": "db_driver_name",
    "DB_DSN": "db_dsn",
    "APP_NAME": "app_name",
    "APP_VERSION": "app_version",
    "SSL_SERT": "ssl_cert",
    "SSL_KEY": "ssl_key",
}


@dataclass
class AppConfig:
    """Application configuration container."""
    # Database
    db_driver_name: str
    db_dsn: str

    # Build info
    app_name: str
    app_version: str

    # TLS
    ssl_cert: str
    ssl_key: str

    # Logging
    log_level: str = "info"
    log_develop_mode: bool = False

    # Keycloak/OIDC
    keycloak_jwk_url: str = DEFAULT_JWK_URL
    keycloak_issuer: str = ""
    jwks_cache_lifespan: int = 3600

    # Requests
    request_timeout_seconds: int = 30

    # Connection pool
    db_max_open_conns: int = 20
    db_max_idle_conns: int = 5
    db_conn_max_lifetime: int = 60

    @property
    def jwk_url_is_default(self) -> bool:
        return self.keycloak_jwk_url == DEFAULT_JWK_URL


def find_env_file(start: Optional[Path] = None) -> Optional[Path]:
    """Look for a .env file in ``start`` (default: cwd) and its parents.

    Returns:
        Path of the first .env file found, or None
    """
    directory = (start or Path.cwd()).resolve()
    for _ in range(ENV_FILE_SEARCH_DEPTH):
        candidate = directory / ENV_FILE_NAME
        if candidate.is_file():
            return candidate
        if directory.parent == directory:
            break
        directory = directory.parent
    return None


def _get_bool(var_name: str, default: bool = False) -> bool:
    value = os.environ.get(var_name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(var_name: str, default: int, errors: list[str]) -> int:
    value = os.environ.get(var_name, "").strip()
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        errors.append(f"{var_name} must be an integer (got {value!r})")
        return default
    if parsed <= 0:
        errors.append(f"{var_name} must be positive (got {parsed})")
        return default
    return parsed


def load_settings(env_file: Optional[str | Path] = None) -> AppConfig:
    """Load application settings from the environment and an optional .env file.

    Variables already present in the process environment take precedence over
    values from the .env file.

    Args:
        env_file: Explicit .env path. When omitted, the nearest .env file
            above the working directory is used (if any).

    Returns:
        Validated AppConfig

    Raises:
        RuntimeError: If required variables are missing or values are invalid
    """
    path = Path(env_file) if env_file else find_env_file()
    if path and path.is_file():
        load_dotenv(path, override=False)
        print(f"[settings] Loaded environment file {path}")

    values: dict[str, str] = {}
    missing = []
    for var_name, field_name in REQUIRED_VARIABLES.items():
        value = os.environ.get(var_name, "").strip()
        if not value:
            missing.append(var_name)
        values[field_name] = value

    if missing:
        raise RuntimeError(
            f"Missing required configuration: {', '.join(missing)}. "
            "Set them in the environment or in a .env file."
        )

    errors: list[str] = []

    driver = values["db_driver_name"].lower()
    if driver not in SUPPORTED_DB_DRIVERS:
        errors.append(f"DB_DRIVER_NAME must be 'postgres' (got {values['db_driver_name']!r})")

    log_level = os.environ.get("LOG_LEVEL", "").strip().lower() or "info"
    if log_level not in LOG_LEVELS:
        errors.append(f"LOG_LEVEL must be one of {', '.join(sorted(LOG_LEVELS))} (got {log_level!r})")

    request_timeout_seconds = _get_int("REQUEST_TIMEOUT_SECONDS", 30, errors)
    jwks_cache_lifespan = _get_int("JWKS_CACHE_LIFESPAN", 3600, errors)
    db_max_open_conns = _get_int("DB_MAX_OPEN_CONNS", 20, errors)
    db_max_idle_conns = _get_int("DB_MAX_IDLE_CONNS", 5, errors)
    db_conn_max_lifetime = _get_int("DB_CONN_MAX_LIFETIME", 60, errors)
    if db_max_idle_conns > db_max_open_conns:
        errors.append("DB_MAX_IDLE_CONNS must not exceed DB_MAX_OPEN_CONNS")

    if errors:
        raise RuntimeError(f"Invalid configuration: {'; '.join(errors)}")

    keycloak_jwk_url = os.environ.get("KEYCLOAK_JWK_URL", "").strip() or DEFAULT_JWK_URL

    cfg = AppConfig(
        db_driver_name=driver,
        db_dsn=values["db_dsn"],
        app_name=values["app_name"],
        app_version=values["app_version"],
        ssl_cert=values["ssl_cert"],
        ssl_key=values["ssl_key"],
        log_level=log_level,
        log_develop_mode=_get_bool("LOG_DEVELOP_MODE"),
        keycloak_jwk_url=keycloak_jwk_url,
        keycloak_issuer=os.environ.get("KEYCLOAK_ISSUER", "").strip(),
        jwks_cache_lifespan=jwks_cache_lifespan,
        request_timeout_seconds=request_timeout_seconds,
        db_max_open_conns=db_max_open_conns,
        db_max_idle_conns=db_max_idle_conns,
        db_conn_max_lifetime=db_conn_max_lifetime,
    )

    print(f"[settings] app={cfg.app_name} version={cfg.app_version}; log_level={cfg.log_level}")
    return cfg
