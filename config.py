"""
Configuration management for the CardSync API.

Handles environment variables, credentials locations, and application settings.
"""

import os
import logging
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Application configuration class.

    Attributes:
        DEBUG: Enable debug mode
        TESTING: Enable testing mode
        SECRET_KEY: Flask secret key
        MAX_CONTENT_LENGTH: Maximum upload file size (16MB default)
        ALLOWED_EXTENSIONS: Allowed image file extensions
        OCR_ENGINE: auto, easyocr or vision
        SHEETS_PROVIDER: Default sheet backend (google, zoho, memory)
    """

    # Flask Settings
    DEBUG: bool = _env_bool("CARDSYNC_DEBUG")
    TESTING: bool = _env_bool("CARDSYNC_TESTING")
    SECRET_KEY: str = os.getenv("CARDSYNC_SECRET_KEY", "dev-secret-key-change-in-production")

    # File Upload Settings
    MAX_CONTENT_LENGTH: int = 16 * 1024 * 1024  # 16MB max file size
    ALLOWED_EXTENSIONS: set = {"png", "jpg", "jpeg", "gif", "bmp", "webp"}

    # OCR Settings
    OCR_ENGINE: str = os.getenv("CARDSYNC_OCR_ENGINE", "auto")
    OCR_LANGUAGES: list = os.getenv("CARDSYNC_OCR_LANGUAGES", "en").split(",")
    OCR_GPU: bool = _env_bool("CARDSYNC_OCR_GPU")
    OCR_MODEL_DIR: Optional[str] = os.getenv("CARDSYNC_OCR_MODEL_DIR")
    OCR_MIN_CONFIDENCE: float = float(os.getenv("CARDSYNC_OCR_MIN_CONFIDENCE", "0.15"))
    OCR_MIN_TEXT_LENGTH: int = int(os.getenv("CARDSYNC_OCR_MIN_TEXT_LENGTH", "5"))
    GOOGLE_VISION_API_KEY: Optional[str] = os.getenv("GOOGLE_VISION_API_KEY")

    # Sheet Settings
    SHEETS_PROVIDER: str = os.getenv("CARDSYNC_SHEETS_PROVIDER", "google")
    GOOGLE_SERVICE_ACCOUNT_FILE: Optional[str] = os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE")
    ZOHO_ACCESS_TOKEN: Optional[str] = os.getenv("ZOHO_ACCESS_TOKEN")
    ZOHO_API_BASE: str = os.getenv("CARDSYNC_ZOHO_API_BASE", "https://sheet.zoho.com/api/v2")
    SHEETS_TIMEOUT: float = float(os.getenv("CARDSYNC_SHEETS_TIMEOUT", "10"))
    SHEETS_NUM_RETRIES: int = int(os.getenv("CARDSYNC_SHEETS_NUM_RETRIES", "0"))
    # Serialize saves to the same sheet within this process
    SERIALIZE_SAVES: bool = _env_bool("CARDSYNC_SERIALIZE_SAVES", "True")

    # Logging
    LOG_LEVEL: str = os.getenv("CARDSYNC_LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def init_app(cls, app) -> None:
        """Initialize Flask app with configuration.

        Args:
            app: Flask application instance
        """
        app.config.from_object(cls)

        # Configure logging
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL.upper()),
            format=cls.LOG_FORMAT
        )

        logger.info("Configuration initialized successfully")


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    LOG_LEVEL = "INFO"


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    LOG_LEVEL = "DEBUG"
    OCR_ENGINE = "easyocr"
    GOOGLE_VISION_API_KEY = None
    SHEETS_PROVIDER = "memory"


# Configuration mapping
config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig
}


def get_config(config_name: Optional[str] = None) -> Config:
    """Get configuration class by name.

    Args:
        config_name: Configuration name (development, production, testing)

    Returns:
        Configuration class
    """
    if config_name is None:
        config_name = os.getenv("CARDSYNC_ENV", "development")
    return config_by_name.get(config_name, DevelopmentConfig)
