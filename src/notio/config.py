from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".notio"
    db_filename: str = "notio.db"
    max_session_cards: int = Field(15, gt=0)
    session_title: str = "Today's session"
    log_level: str = "WARNING"

    model_config = {"env_prefix": "NOTIO_"}

    @property
    def db_path(self) -> str:
        return str(self.data_dir / self.db_filename)


settings = Settings()
