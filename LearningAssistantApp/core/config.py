import os
from dataclasses import dataclass

from sqlalchemy.engine import URL


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    db_host: str = os.getenv("DB_HOST", "localhost")
    db_port: int = int(os.getenv("DB_PORT", "3306"))
    db_user: str = os.getenv("DB_USER", "root")
    db_password: str = os.getenv("DB_PASSWORD", "admin")
    db_name: str = os.getenv("DB_NAME", "javalearningassistant")
    db_driver: str = os.getenv("DB_DRIVER", "mysql+mysqlconnector")
    database_url: str | None = os.getenv("DATABASE_URL")

    db_connect_timeout: int = int(os.getenv("DB_CONNECT_TIMEOUT", "10"))
    db_statement_timeout_ms: int = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "30000"))
    db_create_if_missing: bool = _env_flag("DB_CREATE_IF_MISSING", "true")

    password_hash_method: str = os.getenv("PASSWORD_HASH_METHOD", "pbkdf2:sha256:600000")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str | None = os.getenv("LOG_FILE")

    @property
    def database_url_resolved(self) -> str:
        """SQLAlchemy URL, either the explicit override or one built from the DB_* parts."""
        if self.database_url:
            return self.database_url
        return URL.create(
            self.db_driver,
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)


settings = Settings()
