from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".studydeck" / "data"
    sqlite_filename: str = "studydeck.db"
    log_level: str = "warning"
    due_limit_default: int = 20
    due_limit_max: int = 200
    cors_origins: list[str] = ["*"]

    model_config = {"env_prefix": "STUDYDECK_"}


settings = Settings()
