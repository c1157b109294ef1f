# orgstruct/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Organization Structure API"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Departments tree and employees."
    API_PREFIX: str = ""

    API_KEY: str = "changeme"

    # local | dev | prod
    ENV: str = "local"

    # MySQL
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_DB: str = "orgstruct"
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: str = "2023"
    MYSQL_CHARSET: str = "utf8mb4"

    # full SQLAlchemy URL, wins over the MYSQL_* fields when set
    DATABASE_URL: str | None = None

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_RECYCLE: int = 1800
    CREATE_SCHEMA_ON_STARTUP: bool = True

    DEFAULT_DEPTH: int = 1
    MAX_DEPTH: int = 5

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def sqlalchemy_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}"
            f"@{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DB}"
            f"?charset={self.MYSQL_CHARSET}"
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
