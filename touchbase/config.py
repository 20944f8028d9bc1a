from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()

class Settings(BaseModel):
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./touchbase.db")
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    APP_BASE_URL: str = os.getenv("APP_BASE_URL", "http://localhost:8000")

    DEFAULT_CADENCE_DAYS: int = int(os.getenv("DEFAULT_CADENCE_DAYS", "30"))

    FROM_EMAIL: str = os.getenv("FROM_EMAIL", "")
    FROM_NAME: str = os.getenv("FROM_NAME", "Touchbase")
    REPLY_TO: str = os.getenv("REPLY_TO", "")

    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")

    DIGEST_ENABLED: bool = os.getenv("DIGEST_ENABLED", "true").lower() in ("1", "true", "yes")
    DIGEST_HOUR: int = int(os.getenv("DIGEST_HOUR", "8"))
    DIGEST_MINUTE: int = int(os.getenv("DIGEST_MINUTE", "0"))
    PER_EMAIL_DELAY_SECONDS: float = float(os.getenv("PER_EMAIL_DELAY_SECONDS", "2"))

settings = Settings()
