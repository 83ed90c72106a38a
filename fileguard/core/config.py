"""
Config Maker
"""

# pyright: basic

__all__ = ("SCHEDULE_CRONS", "settings")

from typing import Literal

from pydantic_settings import BaseSettings

from fileguard import __project__, __version__

SCHEDULE_CRONS: dict[str, str] = {
    "hourly": "0 * * * *",
    "twicedaily": "0 */12 * * *",
    "daily": "0 3 * * *",
    "weekly": "0 3 * * 0",
}


class Settings(BaseSettings):
    PROJECT_NAME: str = __project__
    PROJECT_VERSION: str = __version__
    API_VERSION: int = 1
    DEBUG: bool = False
    LOG_MESSAGE_MAX_LEN: int = 2000

    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8084
    APP_WORKERS: int = 1
    APP_AUTH_KEY: str

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB_BROKER: int = 0
    REDIS_DB_RESULTS: int = 1
    REDIS_DB_STATE: int = 2
    REDIS_PASSWORD: str | None = None
    REPORT_TTL_SECONDS: int | None = None
    RUN_LOCK_TIMEOUT_SECONDS: int = 3600

    # Target distribution
    TARGET_ROOT: str = "/var/www/html"
    DIST_VERSION: str = "6.5.5"
    DIST_LOCALE: str = "en_US"
    SITE_NAME: str = "WordPress"

    # Checks
    CHECK_CORE: bool = True
    CHECK_UNKNOWN: bool = True
    RESTORE_MODIFIED: bool = True
    EXCLUSIONS: list[str] = [
        ".htaccess",
        "php.ini",
        "wp-config.php",
        "robots.txt",
        "favicon.ico",
        ".user.ini",
        "web.config",
        ".well-known",
        "sitemap.xml",
        "humans.txt",
        "error_log",
        "php_errorlog",
    ]
    EXCLUDED_SUBTREES: list[str] = ["wp-content"]
    SCHEDULE: Literal["hourly", "twicedaily", "daily", "weekly"] = "daily"

    # Remote authority
    MANIFEST_URL: str = "https://api.wordpress.org/core/checksums/1.0/"
    RESTORE_URL_TEMPLATE: str = "https://raw.githubusercontent.com/WordPress/WordPress/{version}/{path}"
    MANIFEST_CACHE_TTL: int = 300

    # Timeouts & concurrency
    HTTP_TIMEOUT_SECONDS: float = 30.0
    RUN_TIMEOUT_SECONDS: float = 900.0
    SCAN_WORKERS: int = 8
    RESTORE_CONCURRENCY: int = 4

    # Preview
    PREVIEW_MAX_BYTES: int = 1024 * 1024

    # Notification
    NOTIFY_ENABLED: bool = False
    EMAIL_RECIPIENT: str | None = None
    EMAIL_SENDER: str = "fileguard@localhost"
    EMAIL_SUBJECT: str = "[{site_name}] File Integrity Check Report"
    EMAIL_TEMPLATE: str = (
        "File Integrity Check Report for {site_name}\n\n"
        "Modified Files:\n{modified_files}\n\n"
        "Unknown Files:\n{unknown_files}\n\n"
        "Restored Files:\n{restored_files}\n\n"
        "Restoration Failures:\n{restoration_failures}"
    )
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_STARTTLS: bool = False
    SMTP_TIMEOUT_SECONDS: float = 30.0

    class Config:
        env_file = ".env"
        env_prefix = "FG_"
        env_file_encoding = "utf-8"
        extra = "ignore"
        case_sensitive = True


settings = Settings()  # type: ignore[call-arg]
