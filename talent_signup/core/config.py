from typing import Dict

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    BOT_TOKEN: str = Field(default="")
    BACKEND_URL: str = Field(default="http://localhost:8000")
    SIGNATURE_ENDPOINT_URL: str = Field(default="http://localhost:3000/api/upload-signature")
    UPLOAD_STORE_URL: str = Field(default="https://api.cloudinary.com/v1_1")
    UPLOAD_MAX_MB: int = Field(default=15)

    CLOUDINARY_API_KEY: str = Field(default="")
    CLOUDINARY_API_SECRET: str = Field(default="")
    CLOUDINARY_CLOUD_NAME: str = Field(default="")
    CLOUDINARY_UPLOAD_FOLDER: str = Field(default="cv")

    PORTFOLIO_FILE_STRATEGY: str = Field(default="inline")
    CV_FILE_STRATEGY: str = Field(default="signed_upload")
    STAGE_VALIDATION: bool = Field(default=True)
    SESSION_TIMEOUT_MINUTES: int = Field(default=30)

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="signup_bot.log")

settings = Settings()

BOT_TOKEN = settings.BOT_TOKEN
BACKEND_URL = settings.BACKEND_URL
SIGNATURE_ENDPOINT_URL = settings.SIGNATURE_ENDPOINT_URL
UPLOAD_STORE_URL = settings.UPLOAD_STORE_URL
UPLOAD_MAX_BYTES = settings.UPLOAD_MAX_MB * 1024 * 1024
STAGE_VALIDATION = settings.STAGE_VALIDATION
SESSION_TIMEOUT_MINUTES = settings.SESSION_TIMEOUT_MINUTES

ATTACHMENT_STRATEGIES: Dict[str, str] = {
    "portfolio_file": settings.PORTFOLIO_FILE_STRATEGY,
    "cv_file": settings.CV_FILE_STRATEGY,
}
