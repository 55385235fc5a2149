import os  # environment variables (from the OS or .env)
from functools import lru_cache  # one Settings object per process

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()  # read .env into os.environ before Settings picks values up


class Settings(BaseModel):
    # signs the session cookie; must be secret in production
    secret_key: str = os.getenv("SECRET_KEY", "dev-secret-change")

    # any SQLAlchemy URL; SQLite file next to the project by default
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./finance.db")

    # cookie name + lifetime (seconds) for the signed session
    session_cookie: str = os.getenv("SESSION_COOKIE_NAME", "ft_session")
    session_max_age: int = int(os.getenv("SESSION_MAX_AGE", "1800"))

    # currency shown by the money filter in templates
    currency: str = os.getenv("CURRENCY", "BRL")

    # root log level (DEBUG, INFO, WARNING...)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # closing day given to new financial profiles
    default_closing_day: int = int(os.getenv("DEFAULT_CLOSING_DAY", "1"))


@lru_cache
def get_settings() -> Settings:
    return Settings()
