import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    app_name: str = "CPQ - Configure Price Quote"
    environment: str = os.getenv("ENVIRONMENT", "dev")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./cpq.db")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Comma separated, e.g. "http://localhost:5173,http://127.0.0.1:5173"
    cors_origins: list[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173"
        ).split(",")
        if origin.strip()
    ]

    # Where quote / order PDFs are written
    generated_dir: str = os.getenv("GENERATED_DIR", "generated")
    company_name: str = os.getenv("COMPANY_NAME", "CPQ Sales")


settings = Settings()
