import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_prefix: str = os.getenv("API_PREFIX", "/api/v1/books")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Book Catalog API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _as_bool(os.getenv("DEBUG", "False"))
    environment: str = os.getenv("ENVIRONMENT", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Catalog settings
    seed_sample_books: bool = _as_bool(os.getenv("SEED_SAMPLE_BOOKS", "True"))

    # CLI settings
    cli_timeout: float = float(os.getenv("CLI_TIMEOUT", "10"))

    @property
    def api_base_url(self) -> str:
        return f"http://{self.api_host}:{self.api_port}"


settings = Settings()
