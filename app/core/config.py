from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    APP_NAME: str = "Resume Builder API"
    APP_VERSION: str = "0.3.0"
    LOG_LEVEL: str = "INFO"

    # "mongo" in deployments, "memory" for local development and tests
    STORAGE_BACKEND: Literal["mongo", "memory"] = "mongo"
    MONGODB_URI: Optional[str] = None
    MONGODB_DATABASE: str = "resume_builder"

    SECTIONS_TABLE: str = "sections"
    RESUMES_TABLE: str = "resumes"
    TEMPLATES_TABLE: str = "templates"
    PROFILES_TABLE: str = "profiles"

    # Per-request item limits of the underlying store
    BATCH_WRITE_LIMIT: int = 25
    BATCH_GET_LIMIT: int = 100

    DEFAULT_PAGE_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 100
    MAX_NAME_LENGTH: int = 200
    MAX_SECTION_TYPE_LENGTH: int = 50
    MAX_TAGS_PER_SECTION: int = 20

    GOOGLE_API_KEY: Optional[str] = None
    RECOMMENDATION_MODEL: str = "gemini-2.5-flash"
    RECOMMENDATION_TEMPERATURE: float = 0.7
    RECOMMENDATION_MAX_TOKENS: int = 4000
    MIN_MATCH_SCORE: int = 60

    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None
    CLOUDINARY_FOLDER: str = "resume-builder"
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
