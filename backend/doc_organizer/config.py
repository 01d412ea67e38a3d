from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    storage_path: Path = Path.home() / "DocumentOrganizer"
    max_upload_bytes: int = 10 * 1024 * 1024  # 10 MiB
    api_prefix: str = "/api"
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"
    # Exposes /documents/debug/* listings of the upload tree.
    debug_routes: bool = True
    cors_origins: list[str] = [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ]

    @property
    def db_path(self) -> Path:
        return self.storage_path / "documents.db"

    @property
    def uploads_path(self) -> Path:
        return self.storage_path / "uploads"

    @property
    def staging_path(self) -> Path:
        return self.uploads_path / "_temp"

    model_config = {"env_prefix": "DOCORG_"}


settings = Settings()
