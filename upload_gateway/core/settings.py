"""Unified settings for gemini-upload-gateway."""

import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

MiB = 1024 * 1024


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict."""
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(base_dir: Path) -> str:
    """Get version from git tags or fallback to package metadata."""
    try:
        import git

        repo = git.Repo(base_dir, search_parent_directories=True)
        latest_tag = max(repo.tags, key=lambda t: t.commit.committed_datetime, default=None)
        return str(latest_tag) if latest_tag else "0.0.0"
    except Exception:
        try:
            import importlib.metadata

            return importlib.metadata.version("gemini-upload-gateway")
        except Exception:
            return "0.0.0"


class Settings(BaseSettings):
    """Unified settings for the upload gateway service."""

    DEBUG: bool = True
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "gemini-upload-gateway")
    API_VERSION: ClassVar[str] = get_version(BASE_DIR)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Gemini Files API
    GOOGLE_API_KEY: SecretStr = SecretStr("")
    UPLOAD_TIMEOUT: float = 180.0

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "https://ed-tech-steel.vercel.app",
        "https://ed-tech-6r0b.onrender.com",
    ]
    CORS_METHODS: list[str] = ["GET", "POST", "OPTIONS"]
    CORS_HEADERS: list[str] = ["Content-Type", "Authorization"]
    CORS_CREDENTIALS: bool = True

    # Buffering: disk when the declared size or the memory usage ratio is above these
    MEMORY_THRESHOLD: float = 0.80
    DISK_FALLBACK_SIZE: int = 15 * MiB

    # Receiver limits
    MAX_FILE_SIZE: int = 50 * MiB
    MAX_FILES: int = 1
    MAX_PAYLOAD_SIZE: int = 64 * MiB

    # Paths
    UPLOADS_PATH: Path = BASE_DIR / "uploads"
    PUBLIC_PATH: Path = BASE_DIR / "public"
    STATIC_ROUTE: str = "/static"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()  # type: ignore
