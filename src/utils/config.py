# runtime settings, read from the environment (and a local .env if present)
import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    DB_PATH: str = os.getenv("BACKOFFICE_DB_PATH", "data/backoffice.sqlite")
    SECRET_KEY: str = os.getenv("ACCESS_TOKEN_KEY", "")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
    EXPORT_DIR: str = os.getenv("EXPORT_DIR", "data/exports")
    SEED_DEMO_DATA: bool = _flag("SEED_DEMO_DATA", "1")
    DEBUG: bool = _flag("DEBUG")


settings = Settings()
