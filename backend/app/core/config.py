from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Production points this at MySQL, e.g. mysql+aiomysql://user:pw@host/posweb
    DATABASE_URL: str = "sqlite+aiosqlite:///./posweb.db"
    DATABASE_ECHO: bool = False

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]
    LOG_LEVEL: str = "INFO"

    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Account lockout
    MAX_LOGIN_ATTEMPTS: int = 3

    # bcrypt cost for hashes produced at migration time
    BCRYPT_ROUNDS: int = 10

    # Per-IP throttle on the login route
    LOGIN_RATE_LIMIT_ATTEMPTS: int = 10
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 60


settings = Settings()
