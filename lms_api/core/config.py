from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so casting/validation stays in one place
    return os.environ.get(name, default).strip()


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)
    identity_jwks_url: str | None = None
    identity_public_key: str | None = None
    identity_issuer: str | None = None
    identity_audience: str | None = None
    identity_algorithms: tuple[str, ...] = ("RS256",)
    s3_bucket_name: str = ""
    aws_region: str = "us-east-1"
    cloudfront_domain: str = ""
    store_cas_retries: int = 5

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def identity_configured(self) -> bool:
        return bool(self.identity_jwks_url or self.identity_public_key)


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    port_raw = _getenv("PORT", "8000")
    retries_raw = _getenv("STORE_CAS_RETRIES", "5")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in ("true", "false", "1", "0", "yes", "no"):
        raise ValueError(f"LOG_JSON must be true|false (got {log_json_raw!r})")

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    try:
        store_cas_retries = int(retries_raw)
    except ValueError:
        raise ValueError(
            f"STORE_CAS_RETRIES must be an integer (got {retries_raw!r})"
        ) from None
    if store_cas_retries < 1:
        raise ValueError(
            f"STORE_CAS_RETRIES must be at least 1 (got {store_cas_retries})"
        )

    algorithms = _split_csv(_getenv("IDENTITY_ALGORITHMS", "RS256"))
    if not algorithms:
        raise ValueError("IDENTITY_ALGORITHMS must name at least one algorithm")

    # PEM keys passed through env vars usually arrive with escaped newlines
    public_key = _getenv("IDENTITY_PUBLIC_KEY", "").replace("\\n", "\n") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("true", "1", "yes"),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        cors_origins=_split_csv(_getenv("CORS_ORIGINS", "http://localhost:3000")),
        identity_jwks_url=_getenv("IDENTITY_JWKS_URL", "") or None,
        identity_public_key=public_key,
        identity_issuer=_getenv("IDENTITY_ISSUER", "") or None,
        identity_audience=_getenv("IDENTITY_AUDIENCE", "") or None,
        identity_algorithms=algorithms,
        s3_bucket_name=_getenv("S3_BUCKET_NAME", ""),
        aws_region=_getenv("AWS_REGION", "us-east-1"),
        cloudfront_domain=_getenv("CLOUDFRONT_DOMAIN", "").rstrip("/"),
        store_cas_retries=store_cas_retries,
    )


# Module-level instance so imports are cheap
SETTINGS = load_settings()
