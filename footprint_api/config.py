from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 3001
    data_dir: Path = Path("public/data")
    cors_origin: str = "http://localhost:3000"
    log_level: str = "INFO"
